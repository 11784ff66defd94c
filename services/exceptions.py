"""
Domain errors raised by the billing services.

Routers translate these into HTTP responses; the CLI prints them. Every
error carries a ``context`` dict (org, collector, rule, stage ...) so an
operator can retry only the failed slice.
"""
from typing import Any, Optional


class BillingError(Exception):
     """Base exception for billing pipeline failures."""

     def __init__(
          self,
          message: str,
          *,
          context: Optional[dict[str, Any]] = None,
          cause: Optional[Exception] = None
     ):
          super().__init__(message)
          self.message = message
          self.context = context or {}
          self.cause = cause


class ValidationError(BillingError):
     """Malformed input (billing month, tax rate ...). Raised before any side effect."""


class NotFoundError(BillingError):
     """Missing organization, summaries or invoice. Raised with zero side effects."""


class ConflictError(BillingError):
     """A record already exists for a unique key, or a state transition is not allowed."""


class PersistenceError(BillingError):
     """Storage unavailable or a write failed."""


class OperationCancelled(BillingError):
     """The caller cancelled the operation while it was running."""
