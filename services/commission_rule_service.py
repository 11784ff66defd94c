"""
Commission rule administration: create, list and deactivate rules.
"""
import logging
from datetime import datetime
from typing import List

from sqlalchemy.orm import Session

from models import Collector, CommissionRule, Organization
from schemas.commission_rule import CommissionRuleCreate
from services.exceptions import NotFoundError, ValidationError

logger = logging.getLogger(__name__)


class CommissionRuleService:
     """Service class for commission rule administration."""

     @staticmethod
     def create_rule(db: Session, data: CommissionRuleCreate) -> CommissionRule:
          """
          Create a commission rule.

          Raises:
               NotFoundError: If the organization doesn't exist
               ValidationError: If the collector doesn't belong to the organization
          """
          organization = db.query(Organization).filter(Organization.id == data.org_id).first()
          if not organization:
               raise NotFoundError(f"Organization with ID {data.org_id} not found", context={"org_id": data.org_id})

          if data.collector_id is not None:
               collector = db.query(Collector).filter(Collector.id == data.collector_id).first()
               if not collector or collector.org_id != data.org_id:
                    raise ValidationError(
                         "Collector does not belong to the specified organization",
                         context={"org_id": data.org_id, "collector_id": data.collector_id}
                    )

          rule = CommissionRule(
               org_id=data.org_id,
               collector_id=data.collector_id,
               billing_type=data.billing_type,
               commission_type=data.commission_type,
               commission_value=data.commission_value,
               description=data.description,
               is_active=True,
               effective_from=data.effective_from,
               effective_to=data.effective_to,
          )
          db.add(rule)
          db.commit()
          db.refresh(rule)
          logger.info("Created commission rule %s for org %s", rule.id, rule.org_id)
          return rule

     @staticmethod
     def list_rules(db: Session, org_id: int, active_only: bool = True) -> List[CommissionRule]:
          query = db.query(CommissionRule).filter(
               CommissionRule.org_id == org_id,
               CommissionRule.deleted_at.is_(None),
          )
          if active_only:
               query = query.filter(CommissionRule.is_active.is_(True))
          return query.order_by(CommissionRule.id).all()

     @staticmethod
     def deactivate_rule(db: Session, rule_id: int) -> CommissionRule:
          """Soft-delete a rule. Invoices already generated are not affected."""
          rule = (
               db.query(CommissionRule)
               .filter(CommissionRule.id == rule_id, CommissionRule.deleted_at.is_(None))
               .first()
          )
          if not rule:
               raise NotFoundError(f"Commission rule with ID {rule_id} not found", context={"rule_id": rule_id})

          rule.is_active = False
          rule.deleted_at = datetime.utcnow()
          db.commit()
          logger.info("Deactivated commission rule %s", rule_id)
          return rule
