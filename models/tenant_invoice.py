import enum
from datetime import datetime
from sqlalchemy import (
     Column, Integer, String, Numeric, Date, DateTime, Boolean, ForeignKey, Enum, UniqueConstraint
)
from sqlalchemy.orm import relationship
from .base import Base, TimestampMixin


class TenantInvoiceStatus(str, enum.Enum):
     """Lifecycle status of a tenant invoice."""
     DRAFT = "DRAFT"
     SUBMITTED = "SUBMITTED"
     FINALIZED = "FINALIZED"


class InvoiceItemType(str, enum.Enum):
     """Kind of line on a tenant invoice."""
     COLLECTOR_BILLING = "COLLECTOR_BILLING"
     COMMISSION = "COMMISSION"
     MANAGEMENT_FEE = "MANAGEMENT_FEE"


class TenantInvoice(TimestampMixin, Base):
     """
     TenantInvoice model - the monthly document charged to an organization.

     Aggregates approved collector billings plus commissions and the
     management fee. One row per (org_id, billing_month).
     """
     __tablename__ = "tenant_invoices"
     __table_args__ = (
          UniqueConstraint("org_id", "billing_month", name="uq_tenant_invoices_org_month"),
     )

     id = Column(Integer, primary_key=True, autoincrement=True)
     org_id = Column(
          Integer,
          ForeignKey("organizations.id", ondelete="CASCADE"),
          nullable=False,
          index=True
     )
     billing_month = Column(Date, nullable=False, index=True)
     invoice_number = Column(String(50), nullable=False, unique=True)

     # Collector billing totals
     collectors_subtotal = Column(Numeric(14, 2), nullable=False, default=0)
     collectors_tax = Column(Numeric(14, 2), nullable=False, default=0)
     collectors_total = Column(Numeric(14, 2), nullable=False, default=0)

     # Commission + management fee totals
     commission_subtotal = Column(Numeric(14, 2), nullable=False, default=0)
     commission_tax = Column(Numeric(14, 2), nullable=False, default=0)
     commission_total = Column(Numeric(14, 2), nullable=False, default=0)

     grand_subtotal = Column(Numeric(14, 2), nullable=False, default=0)
     grand_tax = Column(Numeric(14, 2), nullable=False, default=0)
     grand_total = Column(Numeric(14, 2), nullable=False, default=0)

     status = Column(
          Enum(TenantInvoiceStatus, name="tenant_invoice_status", create_constraint=True),
          default=TenantInvoiceStatus.DRAFT,
          nullable=False,
          index=True
     )
     created_by = Column(Integer, nullable=True)
     submitted_at = Column(DateTime, nullable=True)
     finalized_at = Column(DateTime, nullable=True)

     # Relationships
     items = relationship(
          "TenantInvoiceItem",
          back_populates="invoice",
          order_by="TenantInvoiceItem.display_order",
          cascade="all, delete-orphan"
     )

     def __repr__(self):
          return f"<TenantInvoice(id={self.id}, number='{self.invoice_number}', grand_total={self.grand_total}, status='{self.status.value}')>"

     def mark_as_submitted(self) -> None:
          self.status = TenantInvoiceStatus.SUBMITTED
          self.submitted_at = datetime.utcnow()

     def mark_as_finalized(self) -> None:
          self.status = TenantInvoiceStatus.FINALIZED
          self.finalized_at = datetime.utcnow()


class TenantInvoiceItem(Base):
     """
     TenantInvoiceItem model - one line of a tenant invoice.
     display_order starts at 1 and is unique within an invoice.
     """
     __tablename__ = "tenant_invoice_items"
     __table_args__ = (
          UniqueConstraint(
               "tenant_invoice_id", "display_order",
               name="uq_tenant_invoice_items_invoice_order"
          ),
     )

     id = Column(Integer, primary_key=True, autoincrement=True)
     tenant_invoice_id = Column(
          Integer,
          ForeignKey("tenant_invoices.id", ondelete="CASCADE"),
          nullable=False,
          index=True
     )
     item_type = Column(
          Enum(InvoiceItemType, name="tenant_invoice_item_type", create_constraint=True),
          nullable=False
     )
     billing_summary_id = Column(Integer, ForeignKey("billing_summaries.id"), nullable=True)
     collector_id = Column(Integer, ForeignKey("collectors.id"), nullable=True)
     item_name = Column(String(255), nullable=False)

     base_amount = Column(Numeric(14, 2), nullable=False, default=0)
     commission_amount = Column(Numeric(14, 2), nullable=False, default=0)
     subtotal = Column(Numeric(14, 2), nullable=False, default=0)
     tax_rate = Column(Numeric(5, 2), nullable=False)  # percent, e.g. 10.00
     tax_amount = Column(Numeric(14, 2), nullable=False, default=0)
     total_amount = Column(Numeric(14, 2), nullable=False, default=0)

     is_auto_calculated = Column(Boolean, default=True, nullable=False)
     display_order = Column(Integer, nullable=False)

     # Relationships
     invoice = relationship("TenantInvoice", back_populates="items")

     def __repr__(self):
          return f"<TenantInvoiceItem(id={self.id}, type='{self.item_type.value}', order={self.display_order}, total={self.total_amount})>"
