"""
Commission Calculator - evaluates commission rules against a collector's
monthly billing summary.

Matching rules stack additively:
- METERED + PERCENTAGE     -> total_metered_amount * value / 100
- FIXED + PERCENTAGE       -> total_fixed_amount * value / 100
- ALL + PERCENTAGE         -> subtotal_amount * value / 100
- FIXED_AMOUNT (any type)  -> value, unscaled

The organization's management-fee rule (collector_id NULL, billing_type
OTHER) never takes part in per-collector commission; it is billed once per
invoice through `compute_management_fee`.

Commission and management-fee tax is always truncated (FLOOR); the
organization's rounding mode applies to collector summaries only.
"""
import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, ROUND_DOWN
from typing import Iterable, List, Optional, Sequence

from config import settings
from models import BillingSummary, CommissionRule, CommissionType, RuleBillingType, TaxRoundingMode
from services.tax_calculator import calculate_tax, to_decimal

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
HUNDRED = Decimal("100")


@dataclass
class CommissionResult:
     """Commission computed for one collector (or the management fee)."""
     collector_id: Optional[int] = None
     commission_amount: Decimal = ZERO
     commission_tax_amount: Decimal = ZERO
     commission_total_amount: Decimal = ZERO
     applied_rule_ids: List[int] = field(default_factory=list)

     @property
     def has_commission(self) -> bool:
          return self.commission_amount > 0


def rule_is_effective(rule: CommissionRule, billing_month: date) -> bool:
     """Active, and billing_month within [effective_from, effective_to]."""
     if not rule.is_active or rule.deleted_at is not None:
          return False
     if rule.effective_from > billing_month:
          return False
     return rule.effective_to is None or rule.effective_to >= billing_month


def select_applicable_rules(
     rules: Iterable[CommissionRule],
     collector_id: int,
     billing_month: date
) -> List[CommissionRule]:
     """Rules that apply to a collector's summary for the month, management fee excluded."""
     return [
          rule for rule in rules
          if rule_is_effective(rule, billing_month)
          and (rule.collector_id is None or rule.collector_id == collector_id)
          and not rule.is_management_fee
     ]


def _rule_amount(rule: CommissionRule, summary: BillingSummary) -> Decimal:
     value = to_decimal(rule.commission_value)
     if rule.commission_type == CommissionType.FIXED_AMOUNT:
          return value

     if rule.billing_type == RuleBillingType.METERED:
          base = summary.total_metered_amount
     elif rule.billing_type == RuleBillingType.FIXED:
          base = summary.total_fixed_amount
     elif rule.billing_type == RuleBillingType.ALL:
          base = summary.subtotal_amount
     else:
          # Percentage of OTHER charges has no defined base
          logger.debug("Rule %s (OTHER/PERCENTAGE) contributes no commission", rule.id)
          return ZERO
     return to_decimal(base or 0) * value / HUNDRED


def compute_commission(
     summary: BillingSummary,
     rules: Sequence[CommissionRule],
     tax_rate=Decimal("0.10")
) -> CommissionResult:
     """
     Compute the commission owed on a collector's monthly summary.

     Args:
          summary: Billing summary of one collector for one month
          rules: Candidate rules of the organization (filtered here)
          tax_rate: Rate applied to the commission (0.10 = 10%)

     Returns:
          CommissionResult; all amounts are zero when nothing is owed
     """
     applicable = select_applicable_rules(rules, summary.collector_id, summary.billing_month)

     amount = ZERO
     for rule in applicable:
          amount += _rule_amount(rule, summary)
     amount = amount.quantize(settings.COMMISSION_PRECISION, rounding=ROUND_DOWN)

     if amount <= 0:
          return CommissionResult(collector_id=summary.collector_id)

     tax_amount = calculate_tax(amount, tax_rate, TaxRoundingMode.FLOOR)
     return CommissionResult(
          collector_id=summary.collector_id,
          commission_amount=amount,
          commission_tax_amount=tax_amount,
          commission_total_amount=amount + tax_amount,
          applied_rule_ids=[rule.id for rule in applicable],
     )


def find_management_fee_rule(
     rules: Iterable[CommissionRule],
     billing_month: date
) -> Optional[CommissionRule]:
     """The organization's effective management-fee rule; lowest id wins when several apply."""
     candidates = [
          rule for rule in rules
          if rule.is_management_fee and rule_is_effective(rule, billing_month)
     ]
     if not candidates:
          return None
     return min(candidates, key=lambda rule: rule.id)


def compute_management_fee(
     rule: CommissionRule,
     tax_rate=Decimal("0.10")
) -> CommissionResult:
     """Flat management fee with tax, computed the same way as commission tax."""
     amount = to_decimal(rule.commission_value).quantize(settings.COMMISSION_PRECISION, rounding=ROUND_DOWN)
     if amount <= 0:
          return CommissionResult()
     tax_amount = calculate_tax(amount, tax_rate, TaxRoundingMode.FLOOR)
     return CommissionResult(
          commission_amount=amount,
          commission_tax_amount=tax_amount,
          commission_total_amount=amount + tax_amount,
          applied_rule_ids=[rule.id],
     )


def describe_rule(rule: CommissionRule) -> str:
     """Short human-readable description, e.g. 'Commission: 5%' or 'Commission: ¥30,000'."""
     value = to_decimal(rule.commission_value)
     if rule.commission_type == CommissionType.PERCENTAGE:
          return f"Commission: {value.normalize():f}% of {rule.billing_type.value}"
     return f"Commission: ¥{value:,.0f}"
