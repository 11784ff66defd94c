"""
Pydantic schemas for commission rule administration.
"""
from datetime import date, datetime
from decimal import Decimal
from typing import Optional, List
from pydantic import BaseModel, Field, ConfigDict, model_validator

from models.commission_rule import CommissionType, RuleBillingType


class CommissionRuleCreate(BaseModel):
     """Schema for creating a commission rule."""
     org_id: int = Field(..., gt=0, description="Organization ID (must exist)")
     collector_id: Optional[int] = Field(None, gt=0, description="Collector ID; omit to apply to all collectors")
     billing_type: RuleBillingType = Field(default=RuleBillingType.ALL)
     commission_type: CommissionType
     commission_value: Decimal = Field(..., gt=0, max_digits=14, decimal_places=2)
     description: Optional[str] = Field(None, max_length=255)
     effective_from: date
     effective_to: Optional[date] = None

     model_config = ConfigDict(
          json_schema_extra={
               "example": {
                    "org_id": 1,
                    "collector_id": None,
                    "billing_type": "METERED",
                    "commission_type": "PERCENTAGE",
                    "commission_value": 5,
                    "effective_from": "2025-04-01",
                    "effective_to": None
               }
          }
     )

     @model_validator(mode="after")
     def _check_rule(self):
          if self.commission_type == CommissionType.PERCENTAGE and self.commission_value > 100:
               raise ValueError("Percentage commission cannot exceed 100")
          if self.effective_to is not None and self.effective_to < self.effective_from:
               raise ValueError("effective_to must be on or after effective_from")
          return self


class CommissionRuleResponse(BaseModel):
     """Schema for commission rule response."""
     id: int
     org_id: int
     collector_id: Optional[int] = None
     billing_type: RuleBillingType
     commission_type: CommissionType
     commission_value: Decimal
     description: Optional[str] = None
     is_active: bool
     is_management_fee: bool
     effective_from: date
     effective_to: Optional[date] = None
     created_at: Optional[datetime] = None

     model_config = ConfigDict(from_attributes=True)


class CommissionRuleListResponse(BaseModel):
     rules: List[CommissionRuleResponse]
     total: int
