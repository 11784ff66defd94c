# routers/commission_rules.py
"""
Commission rule administration routes.
"""
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from database import get_session
from dependencies import require_admin, verify_token
from routers.errors import to_http_exception
from services.commission_rule_service import CommissionRuleService
from services.exceptions import BillingError
from schemas.commission_rule import (
     CommissionRuleCreate,
     CommissionRuleResponse,
     CommissionRuleListResponse,
)

router = APIRouter(prefix="/api/commission-rules", tags=["commission-rules"])


@router.post(
     "",
     response_model=CommissionRuleResponse,
     status_code=status.HTTP_201_CREATED,
     summary="Create a commission rule"
)
def create_rule(
     rule_data: CommissionRuleCreate,
     db: Session = Depends(get_session),
     token: dict = Depends(require_admin)
):
     """
     Create a commission rule.

     - **collector_id**: omit for an organization-wide rule; an organization-wide
       rule with **billing_type** OTHER is the monthly system management fee
     - **commission_type**: PERCENTAGE (value in (0, 100]) or FIXED_AMOUNT
     """
     try:
          rule = CommissionRuleService.create_rule(db, rule_data)
     except BillingError as exc:
          raise to_http_exception(exc)
     return CommissionRuleResponse.model_validate(rule)


@router.get(
     "",
     response_model=CommissionRuleListResponse,
     summary="List commission rules of an organization"
)
def list_rules(
     org_id: int = Query(..., gt=0, description="Organization ID"),
     active_only: bool = Query(True, description="Only active rules"),
     db: Session = Depends(get_session),
     token: dict = Depends(verify_token)
):
     rules = CommissionRuleService.list_rules(db, org_id, active_only)
     return CommissionRuleListResponse(
          rules=[CommissionRuleResponse.model_validate(rule) for rule in rules],
          total=len(rules)
     )


@router.delete(
     "/{rule_id}",
     response_model=CommissionRuleResponse,
     summary="Deactivate a commission rule"
)
def deactivate_rule(
     rule_id: int,
     db: Session = Depends(get_session),
     token: dict = Depends(require_admin)
):
     try:
          rule = CommissionRuleService.deactivate_rule(db, rule_id)
     except BillingError as exc:
          raise to_http_exception(exc)
     return CommissionRuleResponse.model_validate(rule)
