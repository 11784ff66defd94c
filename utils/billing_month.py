# utils/billing_month.py
from datetime import date, datetime
from typing import Union

from services.exceptions import ValidationError

_FORMATS = ("%Y-%m-%d", "%Y-%m")


def parse_billing_month(value: Union[str, date, datetime]) -> date:
     """
     Parse a billing month into the first day of that month.

     Accepts a date, or a string formatted YYYY-MM or YYYY-MM-DD. A full
     date must fall on the first of the month.
     """
     if isinstance(value, datetime):
          parsed = value.date()
     elif isinstance(value, date):
          parsed = value
     elif isinstance(value, str):
          text = value.strip()
          for fmt in _FORMATS:
               try:
                    parsed = datetime.strptime(text, fmt).date()
                    break
               except ValueError:
                    continue
          else:
               raise ValidationError(
                    f"Invalid billing month '{value}' (expected YYYY-MM or YYYY-MM-01)",
                    context={"billing_month": value}
               )
     else:
          raise ValidationError(
               f"Invalid billing month type: {type(value).__name__}",
               context={"billing_month": repr(value)}
          )

     if parsed.day != 1:
          raise ValidationError(
               f"Billing month must be the first day of a month, got {parsed.isoformat()}",
               context={"billing_month": parsed.isoformat()}
          )
     return parsed


def format_month_code(billing_month: date) -> str:
     """YYYYMM code used in invoice numbers."""
     return billing_month.strftime("%Y%m")
