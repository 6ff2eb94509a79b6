"""
Utility modules for the Property Exchange API.
"""

from .exceptions import (
    APIException,
    ValidationError,
    NotFoundError,
    UnauthorizedError,
    ForbiddenError,
    ConflictError,
    BadRequestError,
    NotAvailableError,
    TypeMismatchError,
    SelfDealingError,
    DuplicatePendingError,
    AlreadyResolvedError,
    InvalidTransitionError,
    CascadeFailedError
)

# Dependencies are imported directly where needed to avoid circular imports

__all__ = [
    "APIException",
    "ValidationError",
    "NotFoundError",
    "UnauthorizedError",
    "ForbiddenError",
    "ConflictError",
    "BadRequestError",
    "NotAvailableError",
    "TypeMismatchError",
    "SelfDealingError",
    "DuplicatePendingError",
    "AlreadyResolvedError",
    "InvalidTransitionError",
    "CascadeFailedError"
]
