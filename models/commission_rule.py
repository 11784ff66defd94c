import enum
from sqlalchemy import (
     Column, Integer, String, Numeric, Date, DateTime, Boolean, ForeignKey, Enum, and_, func
)
from .base import Base


class RuleBillingType(str, enum.Enum):
     """Which part of a collector's billing a rule is applied to."""
     ALL = "ALL"
     FIXED = "FIXED"
     METERED = "METERED"
     OTHER = "OTHER"


class CommissionType(str, enum.Enum):
     """How the commission value is interpreted."""
     PERCENTAGE = "PERCENTAGE"
     FIXED_AMOUNT = "FIXED_AMOUNT"


class CommissionRule(Base):
     """
     CommissionRule model - intermediary commission policy for an organization.

     collector_id NULL means the rule applies to every collector. A rule with
     collector_id NULL and billing_type OTHER is the organization's
     management fee, billed once per invoice.
     """
     __tablename__ = "commission_rules"

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
          nullable=True,
          index=True
     )
     billing_type = Column(
          Enum(RuleBillingType, name="commission_billing_type", create_constraint=True),
          default=RuleBillingType.ALL,
          nullable=False
     )
     commission_type = Column(
          Enum(CommissionType, name="commission_type", create_constraint=True),
          nullable=False
     )
     commission_value = Column(Numeric(14, 2), nullable=False)
     description = Column(String(255), nullable=True)

     is_active = Column(Boolean, default=True, nullable=False)
     effective_from = Column(Date, nullable=False)
     effective_to = Column(Date, nullable=True)  # NULL = open-ended

     deleted_at = Column(DateTime, nullable=True)
     created_at = Column(DateTime, server_default=func.now(), nullable=False)

     @classmethod
     def active_and_visible(cls):
          return and_(cls.is_active.is_(True), cls.deleted_at.is_(None))

     @property
     def is_management_fee(self) -> bool:
          return self.collector_id is None and self.billing_type == RuleBillingType.OTHER

     def __repr__(self):
          return (
               f"<CommissionRule(id={self.id}, collector_id={self.collector_id}, "
               f"{self.billing_type.value}/{self.commission_type.value}={self.commission_value})>"
          )
