import enum
from sqlalchemy import Column, Integer, String, Numeric, Date, DateTime, ForeignKey, Enum, and_, func
from .base import Base


class BillingType(str, enum.Enum):
     """How a billing line is charged."""
     FIXED = "FIXED"
     METERED = "METERED"
     OTHER = "OTHER"


class BillingItemStatus(str, enum.Enum):
     """Workflow status of a billing line (owned by the operational billing workflow)."""
     DRAFT = "DRAFT"
     SUBMITTED = "SUBMITTED"
     APPROVED = "APPROVED"
     REJECTED = "REJECTED"
     CANCELLED = "CANCELLED"


class BillingItem(Base):
     """
     BillingItem model - one chargeable line for a collector/store/month.

     Only APPROVED, non-deleted items are aggregated into billing summaries.
     """
     __tablename__ = "billing_items"

     id = Column(Integer, primary_key=True, autoincrement=True)
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
     store_id = Column(Integer, nullable=False, index=True)  # stores live outside this service

     billing_month = Column(Date, nullable=False, index=True)  # first day of month
     billing_type = Column(
          Enum(BillingType, name="billing_type", create_constraint=True),
          nullable=False
     )
     item_name = Column(String(255), nullable=True)
     amount = Column(Numeric(14, 2), nullable=False, default=0)
     tax_amount = Column(Numeric(14, 2), nullable=False, default=0)
     status = Column(
          Enum(BillingItemStatus, name="billing_item_status", create_constraint=True),
          default=BillingItemStatus.DRAFT,
          nullable=False,
          index=True
     )

     deleted_at = Column(DateTime, nullable=True)
     created_at = Column(DateTime, server_default=func.now(), nullable=False)

     @classmethod
     def approved_and_visible(cls):
          """Visibility predicate: approved and not soft-deleted."""
          return and_(cls.status == BillingItemStatus.APPROVED, cls.deleted_at.is_(None))

     def __repr__(self):
          return f"<BillingItem(id={self.id}, collector_id={self.collector_id}, type='{self.billing_type.value}', amount={self.amount})>"
