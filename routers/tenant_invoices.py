# routers/tenant_invoices.py
"""
Tenant invoice API routes.

Generating and finalizing an invoice requires the admin role.
"""
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from database import get_session
from dependencies import require_admin, verify_token
from routers.errors import to_http_exception
from services.exceptions import BillingError
from services.tenant_invoice_service import TenantInvoiceService
from schemas.tenant_invoice import GenerateInvoiceRequest, TenantInvoiceResponse

router = APIRouter(prefix="/api/tenant-invoices", tags=["tenant-invoices"])


@router.post(
     "/generate",
     response_model=TenantInvoiceResponse,
     status_code=status.HTTP_201_CREATED,
     summary="Generate the tenant invoice for a month"
)
def generate_invoice(
     body: GenerateInvoiceRequest,
     db: Session = Depends(get_session),
     token: dict = Depends(require_admin)
):
     """
     Compose one invoice from the organization's APPROVED billing summaries.

     - **409** if an invoice already exists for the month
     - **404** if the organization or approved summaries are missing
     """
     try:
          invoice = TenantInvoiceService.generate_invoice(
               db,
               org_id=body.org_id,
               billing_month=body.billing_month,
               created_by=token.get("id"),
          )
     except BillingError as exc:
          raise to_http_exception(exc)
     return TenantInvoiceResponse.model_validate(invoice)


@router.get(
     "",
     response_model=TenantInvoiceResponse,
     summary="Get the tenant invoice for an organization and month"
)
def get_invoice_for_month(
     org_id: int = Query(..., gt=0, description="Organization ID"),
     billing_month: str = Query(..., description="Billing month (YYYY-MM or YYYY-MM-01)"),
     db: Session = Depends(get_session),
     token: dict = Depends(verify_token)
):
     try:
          invoice = TenantInvoiceService.get_invoice_for_month(db, org_id, billing_month)
     except BillingError as exc:
          raise to_http_exception(exc)
     return TenantInvoiceResponse.model_validate(invoice)


@router.get(
     "/{invoice_id}",
     response_model=TenantInvoiceResponse,
     summary="Get a tenant invoice by ID"
)
def get_invoice(
     invoice_id: int,
     db: Session = Depends(get_session),
     token: dict = Depends(verify_token)
):
     try:
          invoice = TenantInvoiceService.get_invoice(db, invoice_id)
     except BillingError as exc:
          raise to_http_exception(exc)
     return TenantInvoiceResponse.model_validate(invoice)


@router.patch(
     "/{invoice_id}/submit",
     response_model=TenantInvoiceResponse,
     summary="Submit a draft invoice"
)
def submit_invoice(
     invoice_id: int,
     db: Session = Depends(get_session),
     token: dict = Depends(verify_token)
):
     try:
          invoice = TenantInvoiceService.submit_invoice(db, invoice_id)
     except BillingError as exc:
          raise to_http_exception(exc)
     return TenantInvoiceResponse.model_validate(invoice)


@router.patch(
     "/{invoice_id}/finalize",
     response_model=TenantInvoiceResponse,
     summary="Finalize a submitted invoice"
)
def finalize_invoice(
     invoice_id: int,
     db: Session = Depends(get_session),
     token: dict = Depends(require_admin)
):
     try:
          invoice = TenantInvoiceService.finalize_invoice(db, invoice_id)
     except BillingError as exc:
          raise to_http_exception(exc)
     return TenantInvoiceResponse.model_validate(invoice)
