import enum
from datetime import datetime
from decimal import Decimal
from sqlalchemy import (
     Column, Integer, String, Numeric, Date, DateTime, Text, ForeignKey, Enum, UniqueConstraint
)
from sqlalchemy.orm import relationship
from .base import Base, TimestampMixin


class SummaryStatus(str, enum.Enum):
     """Lifecycle status of a collector's monthly billing summary."""
     DRAFT = "DRAFT"
     SUBMITTED = "SUBMITTED"
     APPROVED = "APPROVED"
     REJECTED = "REJECTED"
     FINALIZED = "FINALIZED"
     CANCELLED = "CANCELLED"


class BillingSummary(TimestampMixin, Base):
     """
     BillingSummary model - per-collector, per-month aggregate of approved
     billing items.

     One row per (org_id, collector_id, billing_month); the unique constraint
     is the authoritative duplicate guard.
     """
     __tablename__ = "billing_summaries"
     __table_args__ = (
          UniqueConstraint(
               "org_id", "collector_id", "billing_month",
               name="uq_billing_summaries_org_collector_month"
          ),
     )

     id = Column(Integer, primary_key=True, autoincrement=True)

     # Foreign keys
     org_id = Column(
          Integer,
          ForeignKey("organizations.id", ondelete="CASCADE"),
          nullable=False,
          index=True
     )
     collector_id = Column(
          Integer,
          ForeignKey("collectors.id", ondelete="NO ACTION"),
          nullable=False,
          index=True
     )
     billing_month = Column(Date, nullable=False, index=True)

     # Per-type totals
     total_fixed_amount = Column(Numeric(14, 2), nullable=False, default=0)
     total_metered_amount = Column(Numeric(14, 2), nullable=False, default=0)
     total_other_amount = Column(Numeric(14, 2), nullable=False, default=0)
     subtotal_amount = Column(Numeric(14, 2), nullable=False, default=0)
     tax_rate = Column(Numeric(5, 4), nullable=False, default=Decimal("0.10"))  # rate the tax_amount was computed at
     tax_amount = Column(Numeric(14, 2), nullable=False, default=0)
     total_amount = Column(Numeric(14, 2), nullable=False, default=0)

     # Item counts
     total_items_count = Column(Integer, nullable=False, default=0)
     fixed_items_count = Column(Integer, nullable=False, default=0)
     metered_items_count = Column(Integer, nullable=False, default=0)
     other_items_count = Column(Integer, nullable=False, default=0)

     status = Column(
          Enum(SummaryStatus, name="billing_summary_status", create_constraint=True),
          default=SummaryStatus.DRAFT,
          nullable=False,
          index=True
     )
     notes = Column(Text, nullable=True)
     rejected_reason = Column(String(500), nullable=True)
     submitted_at = Column(DateTime, nullable=True)
     approved_at = Column(DateTime, nullable=True)
     approved_by = Column(Integer, nullable=True)

     # Relationships
     collector = relationship("Collector", back_populates="billing_summaries")

     def __repr__(self):
          return (
               f"<BillingSummary(id={self.id}, collector_id={self.collector_id}, "
               f"month={self.billing_month}, total={self.total_amount}, status='{self.status.value}')>"
          )

     def submit(self) -> None:
          """Mark the summary as submitted for approval."""
          self.status = SummaryStatus.SUBMITTED
          self.submitted_at = datetime.utcnow()

     def approve(self, approved_by: int | None = None) -> None:
          """Mark the summary as approved; it becomes eligible for invoicing."""
          self.status = SummaryStatus.APPROVED
          self.approved_at = datetime.utcnow()
          self.approved_by = approved_by
          self.rejected_reason = None

     def reject(self, reason: str | None = None) -> None:
          """Send the summary back to the collector."""
          self.status = SummaryStatus.REJECTED
          self.rejected_reason = reason
