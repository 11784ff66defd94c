# models/base.py
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy import Column, DateTime, func


class Base(DeclarativeBase):
     """
     Base class for all SQLAlchemy models.
     Table names are declared explicitly on each model so that they match
     the Alembic migrations.
     """


class TimestampMixin:
     """created_at / updated_at columns shared by mutable billing records."""

     created_at = Column(DateTime, server_default=func.now(), nullable=False)
     updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)
