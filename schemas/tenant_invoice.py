"""
Pydantic schemas for Tenant Invoice API request/response validation.
"""
from datetime import date, datetime
from decimal import Decimal
from typing import Optional, List
from pydantic import BaseModel, Field, ConfigDict

from models.tenant_invoice import InvoiceItemType, TenantInvoiceStatus


class GenerateInvoiceRequest(BaseModel):
     """Request body for POST /api/tenant-invoices/generate."""
     org_id: int = Field(..., gt=0, description="Organization to invoice")
     billing_month: str = Field(..., description="Billing month (YYYY-MM or YYYY-MM-01)")

     model_config = ConfigDict(
          json_schema_extra={
               "example": {
                    "org_id": 1,
                    "billing_month": "2025-09-01"
               }
          }
     )


class TenantInvoiceItemResponse(BaseModel):
     id: int
     item_type: InvoiceItemType
     billing_summary_id: Optional[int] = None
     collector_id: Optional[int] = None
     item_name: str
     base_amount: Decimal
     commission_amount: Decimal
     subtotal: Decimal
     tax_rate: Decimal
     tax_amount: Decimal
     total_amount: Decimal
     is_auto_calculated: bool
     display_order: int

     model_config = ConfigDict(from_attributes=True)


class TenantInvoiceResponse(BaseModel):
     """Schema for tenant invoice response; items are ordered by display_order."""
     id: int
     org_id: int
     billing_month: date
     invoice_number: str
     collectors_subtotal: Decimal
     collectors_tax: Decimal
     collectors_total: Decimal
     commission_subtotal: Decimal
     commission_tax: Decimal
     commission_total: Decimal
     grand_subtotal: Decimal
     grand_tax: Decimal
     grand_total: Decimal
     status: TenantInvoiceStatus
     created_by: Optional[int] = None
     submitted_at: Optional[datetime] = None
     finalized_at: Optional[datetime] = None
     items: List[TenantInvoiceItemResponse] = Field(default_factory=list)

     model_config = ConfigDict(
          from_attributes=True,
          json_schema_extra={
               "example": {
                    "id": 1,
                    "org_id": 1,
                    "billing_month": "2025-09-01",
                    "invoice_number": "TI-202509-0001",
                    "collectors_subtotal": 100000,
                    "collectors_tax": 10000,
                    "collectors_total": 110000,
                    "commission_subtotal": 0,
                    "commission_tax": 0,
                    "commission_total": 0,
                    "grand_subtotal": 100000,
                    "grand_tax": 10000,
                    "grand_total": 110000,
                    "status": "DRAFT",
                    "items": []
               }
          }
     )
