from datetime import date, datetime
from decimal import Decimal

import pytest

from models import TaxRoundingMode
from services.exceptions import ValidationError
from services.tax_calculator import (
     calculate_tax,
     tax_rate_percent,
     to_decimal,
     validate_tax_rate,
)
from utils.billing_month import format_month_code, parse_billing_month


def test_tax_is_truncated_by_default() -> None:
     assert calculate_tax(Decimal("100000"), Decimal("0.10")) == Decimal("10000")
     assert calculate_tax(Decimal("10009"), Decimal("0.10")) == Decimal("1000")


def test_tax_rounding_modes() -> None:
     assert calculate_tax(Decimal("10003"), "0.10", TaxRoundingMode.CEIL) == Decimal("1001")
     assert calculate_tax(Decimal("10005"), "0.10", TaxRoundingMode.ROUND) == Decimal("1001")
     assert calculate_tax(Decimal("10004"), "0.10", TaxRoundingMode.ROUND) == Decimal("1000")


def test_tax_on_zero_amount_is_zero() -> None:
     assert calculate_tax(0, "0.10") == Decimal("0")


@pytest.mark.parametrize("rate", ["-0.01", "1.01", 2])
def test_out_of_range_tax_rate_is_rejected(rate) -> None:
     with pytest.raises(ValidationError):
          validate_tax_rate(rate)


def test_float_inputs_do_not_carry_binary_noise() -> None:
     assert to_decimal(0.1) == Decimal("0.1")
     assert calculate_tax(100000, 0.08) == Decimal("8000")


def test_non_numeric_value_is_rejected() -> None:
     with pytest.raises(ValidationError):
          to_decimal("ten")


def test_tax_rate_percent() -> None:
     assert tax_rate_percent(Decimal("0.10")) == Decimal("10.00")
     assert tax_rate_percent("0.08") == Decimal("8.00")


@pytest.mark.parametrize(
     "value",
     ["2025-09", "2025-09-01", " 2025-09 ", date(2025, 9, 1), datetime(2025, 9, 1, 12, 30)],
)
def test_billing_month_accepted_forms(value) -> None:
     assert parse_billing_month(value) == date(2025, 9, 1)


@pytest.mark.parametrize("value", ["2025-09-15", "2025-13", "September", "", 202509])
def test_billing_month_rejected_forms(value) -> None:
     with pytest.raises(ValidationError):
          parse_billing_month(value)


def test_month_code() -> None:
     assert format_month_code(date(2025, 9, 1)) == "202509"
