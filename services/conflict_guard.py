"""
Idempotency / conflict guard for billing summaries and tenant invoices.

Summary key: (org_id, collector_id, billing_month)
Invoice key: (org_id, billing_month)

The unique constraints on the tables are authoritative. The lookups here
are a fast path only; a concurrent writer can still slip in between the
check and the insert, in which case the storage layer raises
IntegrityError and `unique_key_guard` turns it into a ConflictError.
"""
import logging
from contextlib import contextmanager
from datetime import date
from typing import Any, Generator, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from models import BillingSummary, TenantInvoice
from services.exceptions import ConflictError

logger = logging.getLogger(__name__)


def find_existing_summary(
     db: Session,
     org_id: int,
     collector_id: int,
     billing_month: date
) -> Optional[BillingSummary]:
     return (
          db.query(BillingSummary)
          .filter(
               BillingSummary.org_id == org_id,
               BillingSummary.collector_id == collector_id,
               BillingSummary.billing_month == billing_month,
          )
          .first()
     )


def find_existing_invoice(db: Session, org_id: int, billing_month: date) -> Optional[TenantInvoice]:
     return (
          db.query(TenantInvoice)
          .filter(TenantInvoice.org_id == org_id, TenantInvoice.billing_month == billing_month)
          .first()
     )


@contextmanager
def unique_key_guard(db: Session, description: str, **context: Any) -> Generator[None, None, None]:
     """
     Translate a unique-constraint violation raised inside the block into a
     ConflictError. The session is rolled back before the error propagates.

     Usage:
          with unique_key_guard(db, "tenant invoice", org_id=1, billing_month="2025-09-01"):
               db.flush()
     """
     try:
          yield
     except IntegrityError as exc:
          db.rollback()
          logger.warning("Unique key conflict on %s %s: %s", description, context, exc.orig)
          raise ConflictError(
               f"{description} already exists",
               context=dict(context),
               cause=exc
          ) from exc
