"""
Consumption tax calculation.

Tax is computed on the pre-tax amount and reduced to the smallest currency
unit with the organization's rounding mode:

     calculate_tax(10000, "0.10")          -> 1000
     calculate_tax(10003, "0.10")          -> 1000  (FLOOR, default)
     calculate_tax(10003, "0.10", CEIL)    -> 1001
     calculate_tax(10005, "0.10", ROUND)   -> 1001
"""
from decimal import Decimal, ROUND_DOWN, ROUND_CEILING, ROUND_HALF_UP, InvalidOperation
from typing import Optional, Union

from config import settings
from models.billing_settings import TaxRoundingMode
from services.exceptions import ValidationError

Number = Union[Decimal, int, float, str]

_ROUNDING = {
     TaxRoundingMode.FLOOR: ROUND_DOWN,
     TaxRoundingMode.CEIL: ROUND_CEILING,
     TaxRoundingMode.ROUND: ROUND_HALF_UP,
}


def to_decimal(value: Number) -> Decimal:
     """Convert a numeric value to Decimal without binary float noise."""
     if isinstance(value, Decimal):
          return value
     if isinstance(value, float):
          return Decimal(str(value))
     try:
          return Decimal(value)
     except (InvalidOperation, TypeError, ValueError):
          raise ValidationError(f"Invalid numeric value: {value!r}")


def validate_tax_rate(tax_rate: Number) -> Decimal:
     """Return the tax rate as Decimal; it must lie within [0, 1]."""
     rate = to_decimal(tax_rate)
     if rate < 0 or rate > 1:
          raise ValidationError(
               f"Tax rate must be between 0 and 1, got {tax_rate}",
               context={"tax_rate": str(tax_rate)}
          )
     return rate


def calculate_tax(
     amount: Number,
     tax_rate: Number,
     rounding_mode: TaxRoundingMode = TaxRoundingMode.FLOOR,
     unit: Optional[Decimal] = None
) -> Decimal:
     """
     Calculate the tax on a pre-tax amount.

     Args:
          amount: Pre-tax amount
          tax_rate: Rate as a fraction (0.10 = 10%)
          rounding_mode: FLOOR (truncate toward zero), CEIL or ROUND (half up)
          unit: Smallest currency unit (default: settings.CURRENCY_UNIT)

     Returns:
          Tax amount quantized to the currency unit
     """
     rate = validate_tax_rate(tax_rate)
     raw = to_decimal(amount) * rate
     return raw.quantize(unit or settings.CURRENCY_UNIT, rounding=_ROUNDING[TaxRoundingMode(rounding_mode)])


def tax_rate_percent(tax_rate: Number) -> Decimal:
     """Express a fractional rate as the percentage stored on invoice lines (0.10 -> 10.00)."""
     return (validate_tax_rate(tax_rate) * 100).quantize(Decimal("0.01"))
