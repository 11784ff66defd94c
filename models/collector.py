from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, and_, func
from sqlalchemy.orm import relationship
from .base import Base


class Collector(Base):
     """
     Collector model - waste collection company billing an organization.
     Soft-deleted collectors keep their row with deleted_at set.
     """
     __tablename__ = "collectors"

     id = Column(Integer, primary_key=True, autoincrement=True)
     org_id = Column(
          Integer,
          ForeignKey("organizations.id", ondelete="CASCADE"),
          nullable=False,
          index=True
     )
     company_name = Column(String(255), nullable=False)
     is_active = Column(Boolean, default=True, nullable=False)
     deleted_at = Column(DateTime, nullable=True)
     created_at = Column(DateTime, server_default=func.now(), nullable=False)

     # Relationships
     organization = relationship("Organization", back_populates="collectors")
     billing_summaries = relationship("BillingSummary", back_populates="collector")

     @classmethod
     def active_and_visible(cls):
          """Visibility predicate for collectors taking part in billing."""
          return and_(cls.is_active.is_(True), cls.deleted_at.is_(None))

     def __repr__(self):
          return f"<Collector(id={self.id}, company_name='{self.company_name}')>"
