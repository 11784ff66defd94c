# routers/errors.py
"""
Translate billing service errors into HTTP responses.
"""
import logging

from fastapi import HTTPException, status

from services.exceptions import BillingError, ConflictError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR = (
     (ValidationError, status.HTTP_400_BAD_REQUEST),
     (NotFoundError, status.HTTP_404_NOT_FOUND),
     (ConflictError, status.HTTP_409_CONFLICT),
)


def to_http_exception(exc: BillingError) -> HTTPException:
     for error_class, status_code in _STATUS_BY_ERROR:
          if isinstance(exc, error_class):
               return HTTPException(status_code=status_code, detail=exc.message)
     logger.error("Billing operation failed: %s (context=%s)", exc.message, exc.context)
     return HTTPException(
          status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
          detail=exc.message
     )
