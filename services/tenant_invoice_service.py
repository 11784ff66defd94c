"""
Tenant Invoice Service - composes the monthly tenant invoice from approved
collector billing summaries, commissions and the management fee.

The whole invoice is written in one transaction: either the invoice and
all of its items are committed, or nothing is.
"""
import logging
import threading
from datetime import date
from decimal import Decimal
from typing import List, Optional, Union

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload, selectinload

from config import settings
from models import (
     BillingSummary, CommissionRule, InvoiceItemType, Organization,
     SummaryStatus, TenantInvoice, TenantInvoiceItem, TenantInvoiceStatus
)
from services import conflict_guard
from services.billing_summary_service import resolve_tax_settings
from services.commission_service import (
     CommissionResult,
     compute_commission,
     compute_management_fee,
     find_management_fee_rule,
)
from services.exceptions import (
     BillingError, ConflictError, NotFoundError, OperationCancelled, PersistenceError
)
from services.tax_calculator import tax_rate_percent
from utils.billing_month import format_month_code, parse_billing_month

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
MANAGEMENT_FEE_ITEM_NAME = "System management fee"


class _InvoiceTotals:
     """Running sums kept while items are emitted."""

     def __init__(self):
          self.collectors_subtotal = ZERO
          self.collectors_tax = ZERO
          self.collectors_total = ZERO
          self.commission_subtotal = ZERO
          self.commission_tax = ZERO
          self.commission_total = ZERO

     def add(self, item: TenantInvoiceItem) -> None:
          if item.item_type == InvoiceItemType.COLLECTOR_BILLING:
               self.collectors_subtotal += item.subtotal
               self.collectors_tax += item.tax_amount
               self.collectors_total += item.total_amount
          else:
               self.commission_subtotal += item.subtotal
               self.commission_tax += item.tax_amount
               self.commission_total += item.total_amount

     def apply_to(self, invoice: TenantInvoice) -> None:
          invoice.collectors_subtotal = self.collectors_subtotal
          invoice.collectors_tax = self.collectors_tax
          invoice.collectors_total = self.collectors_total
          invoice.commission_subtotal = self.commission_subtotal
          invoice.commission_tax = self.commission_tax
          invoice.commission_total = self.commission_total
          invoice.grand_subtotal = self.collectors_subtotal + self.commission_subtotal
          invoice.grand_tax = self.collectors_tax + self.commission_tax
          invoice.grand_total = self.collectors_total + self.commission_total


def build_invoice_number(organization: Organization, billing_month: date) -> str:
     """e.g. TI-202509-ACME"""
     return f"{settings.INVOICE_NUMBER_PREFIX}-{format_month_code(billing_month)}-{organization.invoice_suffix}"


def _check_cancelled(cancel_event: Optional[threading.Event], org_id: int) -> None:
     if cancel_event is not None and cancel_event.is_set():
          raise OperationCancelled(
               "Invoice generation cancelled",
               context={"org_id": org_id, "stage": "compose"}
          )


class TenantInvoiceService:
     """Service class for tenant invoice composition and lifecycle."""

     @staticmethod
     def generate_invoice(
          db: Session,
          org_id: int,
          billing_month: Union[str, date],
          created_by: Optional[int] = None,
          cancel_event: Optional[threading.Event] = None
     ) -> TenantInvoice:
          """
          Generate the tenant invoice of an organization for one month.

          Args:
               db: SQLAlchemy database session
               org_id: Organization ID
               billing_month: First day of the month (date, YYYY-MM or YYYY-MM-01)
               created_by: Optional user ID recorded on the invoice
               cancel_event: Optional event; when set, the transaction is rolled back

          Returns:
               The committed TenantInvoice with items ordered by display_order

          Raises:
               ValidationError: Bad billing month
               NotFoundError: Unknown organization or no approved summaries
               ConflictError: An invoice already exists for (org_id, billing_month)
               PersistenceError: Storage failure; nothing was written
               OperationCancelled: cancel_event was set; nothing was written
          """
          month = parse_billing_month(billing_month)

          organization = db.query(Organization).filter(Organization.id == org_id).first()
          if not organization:
               raise NotFoundError(f"Organization with ID {org_id} not found", context={"org_id": org_id})

          existing = conflict_guard.find_existing_invoice(db, org_id, month)
          if existing:
               raise ConflictError(
                    f"Tenant invoice for {month:%Y-%m} already exists ({existing.invoice_number})",
                    context={"org_id": org_id, "billing_month": month.isoformat(), "invoice_id": existing.id}
               )

          summaries = (
               db.query(BillingSummary)
               .options(joinedload(BillingSummary.collector))
               .filter(
                    BillingSummary.org_id == org_id,
                    BillingSummary.billing_month == month,
                    BillingSummary.status == SummaryStatus.APPROVED,
               )
               .order_by(BillingSummary.collector_id)
               .all()
          )
          if not summaries:
               raise NotFoundError(
                    f"No approved billing summaries for {month:%Y-%m}",
                    context={"org_id": org_id, "billing_month": month.isoformat()}
               )

          rules = (
               db.query(CommissionRule)
               .filter(CommissionRule.org_id == org_id, CommissionRule.active_and_visible())
               .order_by(CommissionRule.id)
               .all()
          )
          tax_rate, _ = resolve_tax_settings(db, org_id)
          invoice_number = build_invoice_number(organization, month)

          try:
               invoice = TenantInvoice(
                    org_id=org_id,
                    billing_month=month,
                    invoice_number=invoice_number,
                    status=TenantInvoiceStatus.DRAFT,
                    created_by=created_by,
               )
               db.add(invoice)
               with conflict_guard.unique_key_guard(
                    db, "tenant invoice", org_id=org_id, billing_month=month.isoformat()
               ):
                    db.flush()

               TenantInvoiceService._compose_items(
                    invoice, summaries, rules, tax_rate, cancel_event
               )

               _check_cancelled(cancel_event, org_id)
               with conflict_guard.unique_key_guard(
                    db, "tenant invoice", org_id=org_id, billing_month=month.isoformat()
               ):
                    db.flush()
                    db.commit()
          except BillingError:
               db.rollback()
               raise
          except SQLAlchemyError as exc:
               db.rollback()
               logger.error("Tenant invoice generation for org %s %s rolled back: %s", org_id, month, exc)
               raise PersistenceError(
                    "Failed to write tenant invoice",
                    context={"org_id": org_id, "billing_month": month.isoformat(), "stage": "compose"},
                    cause=exc
               ) from exc
          except BaseException:
               db.rollback()
               raise

          logger.info(
               "Created tenant invoice %s for org %s: %d items, grand total %s",
               invoice.invoice_number, org_id, len(invoice.items), invoice.grand_total
          )
          return invoice

     @staticmethod
     def _compose_items(
          invoice: TenantInvoice,
          summaries: List[BillingSummary],
          rules: List[CommissionRule],
          tax_rate: Decimal,
          cancel_event: Optional[threading.Event]
     ) -> None:
          """
          Emit invoice items in display order and roll the totals up onto the invoice.

          Collector lines carry the rate their summary was taxed at; commission and
          management-fee lines carry tax_rate.
          """
          rate_percent = tax_rate_percent(tax_rate)
          totals = _InvoiceTotals()
          display_order = 1

          def emit(item: TenantInvoiceItem) -> None:
               nonlocal display_order
               item.display_order = display_order
               if item.tax_rate is None:
                    item.tax_rate = rate_percent
               invoice.items.append(item)
               totals.add(item)
               display_order += 1

          # Sorted explicitly; fetch order is not a stable sequence
          for summary in sorted(summaries, key=lambda s: s.collector_id):
               _check_cancelled(cancel_event, invoice.org_id)
               collector_name = summary.collector.company_name if summary.collector else f"Collector {summary.collector_id}"

               emit(TenantInvoiceItem(
                    item_type=InvoiceItemType.COLLECTOR_BILLING,
                    billing_summary_id=summary.id,
                    collector_id=summary.collector_id,
                    item_name=f"{collector_name} billing",
                    base_amount=summary.subtotal_amount,
                    commission_amount=ZERO,
                    subtotal=summary.subtotal_amount,
                    tax_rate=tax_rate_percent(summary.tax_rate),
                    tax_amount=summary.tax_amount,
                    total_amount=summary.total_amount,
               ))

               commission = compute_commission(summary, rules, tax_rate)
               if commission.has_commission:
                    emit(_commission_item(
                         InvoiceItemType.COMMISSION,
                         f"{collector_name} commission",
                         commission,
                         collector_id=summary.collector_id,
                    ))

          fee_rule = find_management_fee_rule(rules, invoice.billing_month)
          if fee_rule is not None:
               fee = compute_management_fee(fee_rule, tax_rate)
               if fee.has_commission:
                    emit(_commission_item(InvoiceItemType.MANAGEMENT_FEE, MANAGEMENT_FEE_ITEM_NAME, fee))

          totals.apply_to(invoice)

          item_total = sum((item.total_amount for item in invoice.items), ZERO)
          if item_total != invoice.grand_total:
               raise PersistenceError(
                    f"Invoice items total {item_total} does not match grand total {invoice.grand_total}",
                    context={"org_id": invoice.org_id, "stage": "totals"}
               )

     @staticmethod
     def get_invoice(db: Session, invoice_id: int) -> TenantInvoice:
          invoice = (
               db.query(TenantInvoice)
               .options(selectinload(TenantInvoice.items))
               .filter(TenantInvoice.id == invoice_id)
               .first()
          )
          if not invoice:
               raise NotFoundError(f"Tenant invoice with ID {invoice_id} not found", context={"invoice_id": invoice_id})
          return invoice

     @staticmethod
     def get_invoice_for_month(db: Session, org_id: int, billing_month: Union[str, date]) -> TenantInvoice:
          month = parse_billing_month(billing_month)
          invoice = conflict_guard.find_existing_invoice(db, org_id, month)
          if not invoice:
               raise NotFoundError(
                    f"No tenant invoice for {month:%Y-%m}",
                    context={"org_id": org_id, "billing_month": month.isoformat()}
               )
          return invoice

     @staticmethod
     def submit_invoice(db: Session, invoice_id: int) -> TenantInvoice:
          """DRAFT -> SUBMITTED."""
          invoice = TenantInvoiceService.get_invoice(db, invoice_id)
          TenantInvoiceService._require_status(invoice, TenantInvoiceStatus.DRAFT)
          invoice.mark_as_submitted()
          db.commit()
          return invoice

     @staticmethod
     def finalize_invoice(db: Session, invoice_id: int) -> TenantInvoice:
          """SUBMITTED -> FINALIZED."""
          invoice = TenantInvoiceService.get_invoice(db, invoice_id)
          TenantInvoiceService._require_status(invoice, TenantInvoiceStatus.SUBMITTED)
          invoice.mark_as_finalized()
          db.commit()
          return invoice

     @staticmethod
     def _require_status(invoice: TenantInvoice, expected: TenantInvoiceStatus) -> None:
          if invoice.status != expected:
               raise ConflictError(
                    f"Invoice {invoice.invoice_number} is {invoice.status.value}, expected {expected.value}",
                    context={"invoice_id": invoice.id, "status": invoice.status.value}
               )


def _commission_item(
     item_type: InvoiceItemType,
     item_name: str,
     result: CommissionResult,
     collector_id: Optional[int] = None
) -> TenantInvoiceItem:
     return TenantInvoiceItem(
          item_type=item_type,
          collector_id=collector_id,
          item_name=item_name,
          base_amount=ZERO,
          commission_amount=result.commission_amount,
          subtotal=result.commission_amount,
          tax_amount=result.commission_tax_amount,
          total_amount=result.commission_total_amount,
     )
