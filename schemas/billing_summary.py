"""
Pydantic schemas for billing summary generation and lifecycle.
"""
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional, List
from pydantic import BaseModel, Field, ConfigDict

from models.billing_summary import SummaryStatus


class SkipReason(str, Enum):
     """Why a collector produced no summary write."""
     NO_APPROVED_ITEMS = "NO_APPROVED_ITEMS"
     EXISTING_SUMMARY = "EXISTING_SUMMARY"


class SummaryAction(str, Enum):
     CREATED = "CREATED"
     UPDATED = "UPDATED"


class GenerateSummariesRequest(BaseModel):
     """Request body for POST /api/billing-summaries/generate-all."""
     org_id: int = Field(..., gt=0, description="Organization whose collectors are billed")
     billing_month: str = Field(..., description="Billing month (YYYY-MM or YYYY-MM-01)")
     tax_rate: Optional[Decimal] = Field(
          None, ge=0, le=1,
          description="Tax rate as a fraction (default: organization setting, then DEFAULT_TAX_RATE)"
     )
     force_regenerate: bool = Field(default=False, description="Overwrite existing summaries")

     model_config = ConfigDict(
          json_schema_extra={
               "example": {
                    "org_id": 1,
                    "billing_month": "2025-09-01",
                    "tax_rate": 0.10,
                    "force_regenerate": False
               }
          }
     )


class GeneratedSummaryEntry(BaseModel):
     collector_id: int
     collector_name: str
     summary_id: int
     total_amount: Decimal
     items_count: int
     action: SummaryAction


class SkippedCollectorEntry(BaseModel):
     collector_id: int
     collector_name: str
     reason: SkipReason
     message: str


class CollectorErrorEntry(BaseModel):
     """Per-collector failure; carries enough context to retry only this slice."""
     collector_id: int
     collector_name: str
     stage: str
     error_type: str
     error: str


class SummaryGenerationResult(BaseModel):
     """Outcome of one GenerateSummaries run."""
     org_id: int
     billing_month: date
     collectors_processed: int = 0
     cancelled: bool = False
     generated: List[GeneratedSummaryEntry] = Field(default_factory=list)
     skipped: List[SkippedCollectorEntry] = Field(default_factory=list)
     errors: List[CollectorErrorEntry] = Field(default_factory=list)

     @property
     def generated_count(self) -> int:
          return len(self.generated)

     @property
     def skipped_count(self) -> int:
          return len(self.skipped)

     @property
     def error_count(self) -> int:
          return len(self.errors)


class BillingSummaryResponse(BaseModel):
     """Schema for billing summary response."""
     id: int
     org_id: int
     collector_id: int
     collector_name: Optional[str] = None
     billing_month: date
     total_fixed_amount: Decimal
     total_metered_amount: Decimal
     total_other_amount: Decimal
     subtotal_amount: Decimal
     tax_rate: Decimal
     tax_amount: Decimal
     total_amount: Decimal
     total_items_count: int
     fixed_items_count: int
     metered_items_count: int
     other_items_count: int
     status: SummaryStatus
     notes: Optional[str] = None
     rejected_reason: Optional[str] = None
     approved_at: Optional[datetime] = None

     model_config = ConfigDict(from_attributes=True)


class BillingSummaryListResponse(BaseModel):
     summaries: List[BillingSummaryResponse]
     total: int


class SummaryStatusChangeRequest(BaseModel):
     """Bulk status change for billing summaries."""
     billing_summary_ids: List[int] = Field(..., min_length=1)
     reason: Optional[str] = Field(None, max_length=500, description="Rejection reason")

     model_config = ConfigDict(
          json_schema_extra={
               "example": {
                    "billing_summary_ids": [1, 2, 3]
               }
          }
     )


class SummaryStatusChangeResponse(BaseModel):
     count: int
     status: SummaryStatus
     message: str
