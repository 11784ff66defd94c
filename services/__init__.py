# Only the error taxonomy is re-exported; import services by module.
from .exceptions import (
     BillingError,
     ValidationError,
     NotFoundError,
     ConflictError,
     PersistenceError,
     OperationCancelled,
)

__all__ = [
     "BillingError",
     "ValidationError",
     "NotFoundError",
     "ConflictError",
     "PersistenceError",
     "OperationCancelled",
]
