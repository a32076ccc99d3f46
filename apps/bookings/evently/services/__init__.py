from evently.services.error_codes import ErrorCode
from evently.services.exceptions import (
    ConflictError,
    ConnectionError,
    NotFoundError,
    ReferenceError,
    ServiceError,
    ValidationError,
)

__all__ = [
    "ErrorCode",
    "ServiceError",
    "NotFoundError",
    "ConflictError",
    "ValidationError",
    "ReferenceError",
    "ConnectionError",
]
