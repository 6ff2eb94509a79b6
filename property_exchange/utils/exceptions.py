"""
Custom exception classes for the Property Exchange API.
Provides structured error handling with appropriate HTTP status codes and stable error codes.
"""

from typing import Any, Dict, Optional, List
from fastapi import HTTPException, status


class APIException(HTTPException):
    """Base API exception class."""

    def __init__(
        self,
        status_code: int,
        detail: str,
        error_code: Optional[str] = None,
        headers: Optional[Dict[str, Any]] = None
    ):
        super().__init__(status_code=status_code, detail=detail, headers=headers)
        self.error_code = error_code

    def __str__(self) -> str:
        return self.detail


class ValidationError(APIException):
    """Validation error exception."""

    def __init__(
        self,
        detail: str,
        field_errors: Optional[List[Dict[str, str]]] = None
    ):
        super().__init__(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=detail,
            error_code="VALIDATION_ERROR"
        )
        self.field_errors = field_errors or []


class NotFoundError(APIException):
    """Resource not found exception."""

    def __init__(self, resource: str, resource_id: Optional[str] = None):
        detail = f"{resource} not found"
        if resource_id:
            detail += f" with ID: {resource_id}"

        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=detail,
            error_code="NOT_FOUND"
        )


class UnauthorizedError(APIException):
    """Caller identity missing or unknown."""

    def __init__(self, detail: str = "Authentication required"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            error_code="UNAUTHORIZED"
        )


class ForbiddenError(APIException):
    """Access forbidden exception."""

    def __init__(self, detail: str = "Access forbidden"):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=detail,
            error_code="FORBIDDEN"
        )


class ConflictError(APIException):
    """
    The listing changed between the precondition check and the commit.

    The caller should re-fetch state before deciding to act again; retrying
    the same operation on the same stale request will not succeed.
    """

    def __init__(self, detail: str = "Listing state changed concurrently", error_code: str = "CONFLICT"):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=detail,
            error_code=error_code
        )


class BadRequestError(APIException):
    """Bad request exception."""

    def __init__(self, detail: str, error_code: str = "BAD_REQUEST"):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
            error_code=error_code
        )


# Workflow specific exceptions
class NotAvailableError(ConflictError):
    """Listing missing or no longer available."""

    def __init__(self, listing_id: str):
        super().__init__(f"Listing {listing_id} is not available", error_code="NOT_AVAILABLE")


class TypeMismatchError(BadRequestError):
    """Request type does not match the listing kind."""

    def __init__(self, request_type: str, listing_kind: str):
        super().__init__(
            f"A '{request_type}' request cannot target a '{listing_kind}' listing",
            error_code="TYPE_MISMATCH"
        )


class SelfDealingError(BadRequestError):
    """Owner requesting their own listing."""

    def __init__(self, detail: str = "You cannot request your own listing"):
        super().__init__(detail, error_code="SELF_DEALING")


class DuplicatePendingError(ConflictError):
    """Requester already has a pending request on the listing."""

    def __init__(self, listing_id: str):
        super().__init__(
            f"You already have a pending request for listing {listing_id}",
            error_code="DUPLICATE_PENDING"
        )


class AlreadyResolvedError(ConflictError):
    """Request is no longer pending."""

    def __init__(self, request_id: str, current_status: str):
        super().__init__(
            f"Request {request_id} has already been processed ({current_status})",
            error_code="ALREADY_RESOLVED"
        )


class InvalidTransitionError(ConflictError):
    """Listing availability transition not allowed."""

    def __init__(self, current: str, target: str, reason: str):
        self.current = current
        self.target = target
        self.reason = reason
        super().__init__(
            f"Invalid transition from {current} to {target}: {reason}",
            error_code="INVALID_TRANSITION"
        )


class CascadeFailedError(APIException):
    """
    A cascading deletion could not be committed.

    Nothing was deleted; the caller should retry the whole deletion.
    """

    def __init__(self, root: str, detail: str):
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Cascade deletion of {root} failed: {detail}",
            error_code="CASCADE_FAILED"
        )


# File upload exceptions
class UnsupportedFileTypeError(ValidationError):
    """Unsupported file type exception."""

    def __init__(self, file_type: str, supported_types: List[str]):
        supported = ", ".join(supported_types)
        super().__init__(f"Unsupported file type '{file_type}'. Supported types: {supported}")


class FileSizeExceededError(ValidationError):
    """File size exceeded exception."""

    def __init__(self, size: int, max_size: int):
        super().__init__(f"File size {size} bytes exceeds maximum allowed size {max_size} bytes")
