"""
Billing Summary Service - aggregates approved billing items into one
summary per collector per month.

Each collector is processed in its own unit of work: a failure for one
collector is reported in `errors` and the loop moves on. Summaries already
committed stay valid if the run stops half-way; re-running with
force_regenerate recomputes them from the current items.
"""
import logging
import threading
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Iterable, List, Optional, Tuple, Union

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from config import settings
from models import (
     BillingItem, BillingSettings, BillingSummary, BillingType, Collector,
     CommissionRule, Organization, SummaryStatus, TaxRoundingMode
)
from schemas.billing_summary import (
     CollectorErrorEntry,
     GeneratedSummaryEntry,
     SkippedCollectorEntry,
     SkipReason,
     SummaryAction,
     SummaryGenerationResult,
)
from services import conflict_guard
from services.commission_service import describe_rule, rule_is_effective
from services.exceptions import ConflictError, NotFoundError
from services.tax_calculator import calculate_tax, to_decimal, validate_tax_rate
from utils.billing_month import parse_billing_month

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


@dataclass
class SummaryTotals:
     """Totals of one collector's approved items for a month."""
     total_fixed_amount: Decimal = ZERO
     total_metered_amount: Decimal = ZERO
     total_other_amount: Decimal = ZERO
     fixed_items_count: int = 0
     metered_items_count: int = 0
     other_items_count: int = 0
     subtotal_amount: Decimal = ZERO
     tax_rate: Decimal = ZERO
     tax_amount: Decimal = ZERO
     total_amount: Decimal = ZERO

     @property
     def total_items_count(self) -> int:
          return self.fixed_items_count + self.metered_items_count + self.other_items_count

     def apply_to(self, summary: BillingSummary) -> None:
          summary.total_fixed_amount = self.total_fixed_amount
          summary.total_metered_amount = self.total_metered_amount
          summary.total_other_amount = self.total_other_amount
          summary.subtotal_amount = self.subtotal_amount
          summary.tax_rate = self.tax_rate
          summary.tax_amount = self.tax_amount
          summary.total_amount = self.total_amount
          summary.total_items_count = self.total_items_count
          summary.fixed_items_count = self.fixed_items_count
          summary.metered_items_count = self.metered_items_count
          summary.other_items_count = self.other_items_count


def aggregate_items(
     items: Iterable[BillingItem],
     tax_rate: Union[Decimal, float, str] = Decimal("0.10"),
     rounding_mode: TaxRoundingMode = TaxRoundingMode.FLOOR
) -> SummaryTotals:
     """
     Bucket item amounts by billing type and compute subtotal, tax and total.

     Always a from-scratch computation over the given items, so regenerating
     never drifts from the current item set.
     """
     totals = SummaryTotals()
     for item in items:
          amount = to_decimal(item.amount or 0)
          if item.billing_type == BillingType.FIXED:
               totals.total_fixed_amount += amount
               totals.fixed_items_count += 1
          elif item.billing_type == BillingType.METERED:
               totals.total_metered_amount += amount
               totals.metered_items_count += 1
          else:
               totals.total_other_amount += amount
               totals.other_items_count += 1

     totals.subtotal_amount = (
          totals.total_fixed_amount + totals.total_metered_amount + totals.total_other_amount
     )
     totals.tax_rate = validate_tax_rate(tax_rate)
     totals.tax_amount = calculate_tax(totals.subtotal_amount, tax_rate, rounding_mode)
     totals.total_amount = totals.subtotal_amount + totals.tax_amount
     return totals


def resolve_tax_settings(
     db: Session,
     org_id: int,
     tax_rate: Union[Decimal, float, str, None] = None
) -> Tuple[Decimal, TaxRoundingMode]:
     """
     Tax rate and rounding mode for an organization.

     The rate is the explicit tax_rate when given, else the organization's
     BillingSettings.tax_rate, else settings.DEFAULT_TAX_RATE.
     """
     billing_settings = db.query(BillingSettings).filter(BillingSettings.org_id == org_id).first()
     rounding_mode = billing_settings.tax_rounding_mode if billing_settings else TaxRoundingMode.FLOOR
     if tax_rate is None and billing_settings is not None:
          tax_rate = billing_settings.tax_rate
     if tax_rate is None:
          tax_rate = settings.DEFAULT_TAX_RATE
     return validate_tax_rate(tax_rate), rounding_mode


class BillingSummaryService:
     """Service class for billing summary aggregation and lifecycle."""

     @staticmethod
     def generate_summaries(
          db: Session,
          org_id: int,
          billing_month: Union[str, date],
          tax_rate: Union[Decimal, float, str, None] = None,
          force_regenerate: bool = False,
          cancel_event: Optional[threading.Event] = None
     ) -> SummaryGenerationResult:
          """
          Generate billing summaries for every active collector of an organization.

          Args:
               db: SQLAlchemy database session
               org_id: Organization ID
               billing_month: First day of the month (date, YYYY-MM or YYYY-MM-01)
               tax_rate: Rate as a fraction (default: the organization's BillingSettings.tax_rate,
                    then settings.DEFAULT_TAX_RATE)
               force_regenerate: Overwrite summaries that already exist
               cancel_event: Optional event; when set, processing stops before the next collector

          Returns:
               SummaryGenerationResult with generated, skipped and errors lists

          Raises:
               ValidationError: Bad billing month or tax rate (no side effects)
               NotFoundError: Organization doesn't exist (no side effects)
          """
          month = parse_billing_month(billing_month)
          if tax_rate is not None:
               validate_tax_rate(tax_rate)

          organization = db.query(Organization).filter(Organization.id == org_id).first()
          if not organization:
               raise NotFoundError(f"Organization with ID {org_id} not found", context={"org_id": org_id})

          rate, rounding_mode = resolve_tax_settings(db, org_id, tax_rate)
          collectors = (
               db.query(Collector)
               .filter(Collector.org_id == org_id, Collector.active_and_visible())
               .order_by(Collector.id)
               .all()
          )
          rules = (
               db.query(CommissionRule)
               .filter(CommissionRule.org_id == org_id, CommissionRule.active_and_visible())
               .order_by(CommissionRule.created_at.desc(), CommissionRule.id.desc())
               .all()
          )

          result = SummaryGenerationResult(
               org_id=org_id,
               billing_month=month,
               collectors_processed=0,
          )
          if not collectors:
               logger.info("No active collectors for org %s; nothing to summarize for %s", org_id, month)
               return result

          logger.info(
               "Generating billing summaries for org %s, month %s (%d collectors, force=%s)",
               org_id, month, len(collectors), force_regenerate
          )

          for collector in collectors:
               if cancel_event is not None and cancel_event.is_set():
                    result.cancelled = True
                    logger.warning("Summary generation for org %s cancelled before collector %s", org_id, collector.id)
                    break

               result.collectors_processed += 1
               BillingSummaryService._process_collector(
                    db, result, organization, collector, month, rate, rounding_mode, rules, force_regenerate
               )

          logger.info(
               "Billing summaries for org %s %s: %d generated, %d skipped, %d errors",
               org_id, month, result.generated_count, result.skipped_count, result.error_count
          )
          return result

     @staticmethod
     def _process_collector(
          db: Session,
          result: SummaryGenerationResult,
          organization: Organization,
          collector: Collector,
          month: date,
          tax_rate: Decimal,
          rounding_mode: TaxRoundingMode,
          rules: List[CommissionRule],
          force_regenerate: bool
     ) -> None:
          # captured up front: a rollback expires the instance
          collector_id, collector_name = collector.id, collector.company_name
          stage = "fetch_items"
          try:
               items = (
                    db.query(BillingItem)
                    .filter(
                         BillingItem.org_id == organization.id,
                         BillingItem.collector_id == collector.id,
                         BillingItem.billing_month == month,
                         BillingItem.approved_and_visible(),
                    )
                    .order_by(BillingItem.id)
                    .all()
               )
               if not items:
                    logger.info("Skipped %s (no approved items)", collector.company_name)
                    result.skipped.append(SkippedCollectorEntry(
                         collector_id=collector.id,
                         collector_name=collector.company_name,
                         reason=SkipReason.NO_APPROVED_ITEMS,
                         message="No approved billing items for this month",
                    ))
                    return

               stage = "check_existing"
               existing = conflict_guard.find_existing_summary(db, organization.id, collector.id, month)
               if existing and not force_regenerate:
                    logger.info("Skipped %s (existing summary %s)", collector.company_name, existing.id)
                    result.skipped.append(SkippedCollectorEntry(
                         collector_id=collector.id,
                         collector_name=collector.company_name,
                         reason=SkipReason.EXISTING_SUMMARY,
                         message=f"Summary {existing.id} already exists",
                    ))
                    return

               stage = "aggregate"
               totals = aggregate_items(items, tax_rate, rounding_mode)
               notes = _commission_note(rules, collector.id, month)

               stage = "upsert"
               with conflict_guard.unique_key_guard(
                    db, "billing summary",
                    org_id=organization.id, collector_id=collector.id, billing_month=month.isoformat()
               ):
                    if existing:
                         summary = existing
                         action = SummaryAction.UPDATED
                    else:
                         summary = BillingSummary(
                              org_id=organization.id,
                              collector_id=collector.id,
                              billing_month=month,
                         )
                         db.add(summary)
                         action = SummaryAction.CREATED
                    totals.apply_to(summary)
                    summary.status = SummaryStatus.DRAFT
                    summary.notes = notes
                    summary.rejected_reason = None
                    summary.approved_at = None
                    summary.approved_by = None
                    db.flush()
                    db.commit()

               logger.info(
                    "%s summary %s for %s (total %s)",
                    action.value.capitalize(), summary.id, collector.company_name, summary.total_amount
               )
               result.generated.append(GeneratedSummaryEntry(
                    collector_id=collector.id,
                    collector_name=collector.company_name,
                    summary_id=summary.id,
                    total_amount=summary.total_amount,
                    items_count=summary.total_items_count,
                    action=action,
               ))
          except ConflictError as exc:
               # unique_key_guard has already rolled back
               result.errors.append(_error_entry(collector_id, collector_name, stage, exc))
          except SQLAlchemyError as exc:
               db.rollback()
               logger.error("Persistence error for collector %s at %s: %s", collector_id, stage, exc)
               result.errors.append(_error_entry(collector_id, collector_name, stage, exc))

     @staticmethod
     def list_summaries(
          db: Session,
          org_id: int,
          billing_month: Union[str, date],
          status: Optional[SummaryStatus] = None
     ) -> List[BillingSummary]:
          """Summaries of an organization for a month, ordered by collector."""
          month = parse_billing_month(billing_month)
          query = (
               db.query(BillingSummary)
               .options(joinedload(BillingSummary.collector))
               .filter(BillingSummary.org_id == org_id, BillingSummary.billing_month == month)
          )
          if status is not None:
               query = query.filter(BillingSummary.status == status)
          return query.order_by(BillingSummary.collector_id).all()

     @staticmethod
     def submit_summaries(db: Session, summary_ids: List[int]) -> int:
          """DRAFT -> SUBMITTED. Returns the number of summaries changed."""
          summaries = BillingSummaryService._in_status(db, summary_ids, SummaryStatus.DRAFT)
          for summary in summaries:
               summary.submit()
          db.commit()
          return len(summaries)

     @staticmethod
     def approve_summaries(db: Session, summary_ids: List[int], approved_by: Optional[int] = None) -> int:
          """SUBMITTED -> APPROVED. Returns the number of summaries changed."""
          summaries = BillingSummaryService._in_status(db, summary_ids, SummaryStatus.SUBMITTED)
          for summary in summaries:
               summary.approve(approved_by)
          db.commit()
          return len(summaries)

     @staticmethod
     def reject_summaries(db: Session, summary_ids: List[int], reason: Optional[str] = None) -> int:
          """SUBMITTED -> REJECTED. Returns the number of summaries changed."""
          summaries = BillingSummaryService._in_status(db, summary_ids, SummaryStatus.SUBMITTED)
          for summary in summaries:
               summary.reject(reason)
          db.commit()
          return len(summaries)

     @staticmethod
     def _in_status(db: Session, summary_ids: List[int], status: SummaryStatus) -> List[BillingSummary]:
          return (
               db.query(BillingSummary)
               .filter(BillingSummary.id.in_(summary_ids), BillingSummary.status == status)
               .all()
          )


def _commission_note(rules: List[CommissionRule], collector_id: int, month: date) -> Optional[str]:
     """Describe the most recent collector-specific rule in effect, if any."""
     for rule in rules:
          if rule.collector_id == collector_id and rule_is_effective(rule, month):
               return describe_rule(rule)
     return None


def _error_entry(collector_id: int, collector_name: str, stage: str, exc: Exception) -> CollectorErrorEntry:
     if isinstance(exc, ConflictError):
          error_type = "CONFLICT"
     else:
          error_type = "PERSISTENCE"
     return CollectorErrorEntry(
          collector_id=collector_id,
          collector_name=collector_name,
          stage=stage,
          error_type=error_type,
          error=str(exc),
     )
