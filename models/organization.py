from sqlalchemy import Column, Integer, String, Boolean, DateTime, func
from sqlalchemy.orm import relationship, validates
from .base import Base


class Organization(Base):
     """
     Organization model - the emitter organization (tenant) that receives
     the monthly tenant invoice.
     """
     __tablename__ = "organizations"

     id = Column(Integer, primary_key=True, autoincrement=True)
     name = Column(String(255), nullable=False)
     code = Column(String(20), nullable=True, unique=True)  # used as invoice number suffix
     is_active = Column(Boolean, default=True, nullable=False)
     created_at = Column(DateTime, server_default=func.now(), nullable=False)

     # Relationships
     collectors = relationship("Collector", back_populates="organization")
     billing_settings = relationship("BillingSettings", back_populates="organization", uselist=False)

     @validates("code")
     def validate_code(self, key, code):
          # A digits-only code would collide with the zero-padded id suffix
          if code is not None and code.isdigit():
               raise ValueError(f"Organization code must contain a non-digit character, got {code!r}")
          return code

     @property
     def invoice_suffix(self) -> str:
          """Suffix used in tenant invoice numbers (org code, or zero-padded id)."""
          return self.code or f"{self.id:04d}"

     def __repr__(self):
          return f"<Organization(id={self.id}, name='{self.name}')>"
