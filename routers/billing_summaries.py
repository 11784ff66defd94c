# routers/billing_summaries.py
"""
Billing summary API routes.

- Generate per-collector summaries for an organization and month
- List summaries
- Bulk lifecycle transitions (submit / approve / reject)

Approve and reject require the admin role.
"""
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from database import get_session
from dependencies import require_admin, verify_token
from models import BillingSummary, SummaryStatus
from routers.errors import to_http_exception
from services.billing_summary_service import BillingSummaryService
from services.exceptions import BillingError
from schemas.billing_summary import (
     GenerateSummariesRequest,
     SummaryGenerationResult,
     BillingSummaryResponse,
     BillingSummaryListResponse,
     SummaryStatusChangeRequest,
     SummaryStatusChangeResponse,
)

router = APIRouter(prefix="/api/billing-summaries", tags=["billing-summaries"])


def _build_summary_response(summary: BillingSummary) -> BillingSummaryResponse:
     response = BillingSummaryResponse.model_validate(summary)
     if summary.collector is not None:
          response.collector_name = summary.collector.company_name
     return response


@router.post(
     "/generate-all",
     response_model=SummaryGenerationResult,
     summary="Generate billing summaries for every collector"
)
def generate_all_summaries(
     body: GenerateSummariesRequest,
     db: Session = Depends(get_session),
     token: dict = Depends(verify_token)
):
     """
     Aggregate approved billing items into one summary per collector.

     Each collector is committed on its own; failures are reported in
     **errors** and do not stop the other collectors.
     """
     try:
          return BillingSummaryService.generate_summaries(
               db,
               org_id=body.org_id,
               billing_month=body.billing_month,
               tax_rate=body.tax_rate,
               force_regenerate=body.force_regenerate,
          )
     except BillingError as exc:
          raise to_http_exception(exc)


@router.get(
     "",
     response_model=BillingSummaryListResponse,
     summary="List billing summaries for a month"
)
def list_summaries(
     org_id: int = Query(..., gt=0, description="Organization ID"),
     billing_month: str = Query(..., description="Billing month (YYYY-MM or YYYY-MM-01)"),
     status: Optional[SummaryStatus] = Query(None, description="Filter by status"),
     db: Session = Depends(get_session),
     token: dict = Depends(verify_token)
):
     try:
          summaries = BillingSummaryService.list_summaries(db, org_id, billing_month, status)
     except BillingError as exc:
          raise to_http_exception(exc)
     return BillingSummaryListResponse(
          summaries=[_build_summary_response(summary) for summary in summaries],
          total=len(summaries)
     )


@router.post(
     "/submit",
     response_model=SummaryStatusChangeResponse,
     summary="Submit draft summaries"
)
def submit_summaries(
     body: SummaryStatusChangeRequest,
     db: Session = Depends(get_session),
     token: dict = Depends(verify_token)
):
     count = BillingSummaryService.submit_summaries(db, body.billing_summary_ids)
     return SummaryStatusChangeResponse(
          count=count,
          status=SummaryStatus.SUBMITTED,
          message=f"{count} billing summaries submitted"
     )


@router.post(
     "/approve",
     response_model=SummaryStatusChangeResponse,
     summary="Approve submitted summaries"
)
def approve_summaries(
     body: SummaryStatusChangeRequest,
     db: Session = Depends(get_session),
     token: dict = Depends(require_admin)
):
     count = BillingSummaryService.approve_summaries(db, body.billing_summary_ids, approved_by=token.get("id"))
     return SummaryStatusChangeResponse(
          count=count,
          status=SummaryStatus.APPROVED,
          message=f"{count} billing summaries approved"
     )


@router.post(
     "/reject",
     response_model=SummaryStatusChangeResponse,
     summary="Reject submitted summaries"
)
def reject_summaries(
     body: SummaryStatusChangeRequest,
     db: Session = Depends(get_session),
     token: dict = Depends(require_admin)
):
     count = BillingSummaryService.reject_summaries(db, body.billing_summary_ids, reason=body.reason)
     return SummaryStatusChangeResponse(
          count=count,
          status=SummaryStatus.REJECTED,
          message=f"{count} billing summaries rejected"
     )
