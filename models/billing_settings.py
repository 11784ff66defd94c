import enum
from sqlalchemy import Column, Integer, Numeric, DateTime, ForeignKey, Enum, func
from sqlalchemy.orm import relationship
from .base import Base


class TaxRoundingMode(str, enum.Enum):
     """Rounding applied when tax is reduced to the smallest currency unit."""
     FLOOR = "FLOOR"  # truncate toward zero
     CEIL = "CEIL"
     ROUND = "ROUND"  # half up


class BillingSettings(Base):
     """Per-organization tax configuration."""
     __tablename__ = "billing_settings"

     id = Column(Integer, primary_key=True, autoincrement=True)
     org_id = Column(
          Integer,
          ForeignKey("organizations.id", ondelete="CASCADE"),
          nullable=False,
          unique=True
     )
     tax_rate = Column(Numeric(5, 4), nullable=True)  # NULL = application default
     tax_rounding_mode = Column(
          Enum(TaxRoundingMode, name="tax_rounding_mode", create_constraint=True),
          default=TaxRoundingMode.FLOOR,
          nullable=False
     )
     updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

     organization = relationship("Organization", back_populates="billing_settings")

     def __repr__(self):
          return f"<BillingSettings(org_id={self.org_id}, tax_rate={self.tax_rate}, rounding='{self.tax_rounding_mode.value}')>"
