"""
Renders every error the API can raise into one JSON envelope:

    {"error": {"code", "message", "timestamp", "request_id", "details"?}}
"""

from typing import Dict, Any, Optional, List
from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError, IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException
from property_exchange.utils.exceptions import APIException
from datetime import datetime, timezone
import logging
import uuid

logger = logging.getLogger(__name__)

# Substring of the driver message -> public description
CONSTRAINT_MESSAGES = (
    ("unique", "Duplicate value for unique field"),
    ("foreign key", "Referenced record does not exist or is still referenced"),
    ("not null", "Required field cannot be empty"),
    ("check constraint", "Value does not meet validation requirements"),
)


def _path(request: Optional[Request]) -> Optional[str]:
    return request.url.path if request else None


class ErrorHandlerService:
    """Builds error envelopes and logs each error once with its request id."""

    @staticmethod
    def format_error_response(
        error_code: str,
        message: str,
        request_id: str,
        details: Optional[List[Dict[str, Any]]] = None
    ) -> Dict[str, Any]:
        error = {
            "code": error_code,
            "message": message,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "request_id": request_id,
        }
        if details:
            error["details"] = details
        return {"error": error}

    @staticmethod
    def _respond(
        status_code: int,
        error_code: str,
        message: str,
        request_id: str,
        details: Optional[List[Dict[str, Any]]] = None,
        headers: Optional[Dict[str, str]] = None
    ) -> JSONResponse:
        body = ErrorHandlerService.format_error_response(error_code, message, request_id, details)
        return JSONResponse(status_code=status_code, content=jsonable_encoder(body), headers=headers)

    @staticmethod
    def new_request_id() -> str:
        return uuid.uuid4().hex[:8]

    @staticmethod
    def handle_api_exception(exception: APIException, request: Optional[Request] = None) -> JSONResponse:
        request_id = ErrorHandlerService.new_request_id()
        code = exception.error_code or "API_ERROR"
        logger.warning(f"[{request_id}] {code} on {_path(request)}: {exception.detail}")

        return ErrorHandlerService._respond(
            exception.status_code,
            code,
            exception.detail,
            request_id,
            details=getattr(exception, "field_errors", None),
            headers=exception.headers
        )

    @staticmethod
    def handle_validation_error(exception: Exception, request: Optional[Request] = None) -> JSONResponse:
        """
        Handle request or pydantic validation errors.

        Each entry of ``exception.errors()`` becomes one ``details`` item with
        the dotted-arrow field path, the message and the pydantic error type.
        """
        request_id = ErrorHandlerService.new_request_id()
        details = [
            {
                "field": " -> ".join(str(loc) for loc in error["loc"]),
                "message": error["msg"],
                "type": error["type"],
            }
            for error in exception.errors()
        ]
        logger.warning(f"[{request_id}] {len(details)} validation error(s) on {_path(request)}")

        return ErrorHandlerService._respond(422, "VALIDATION_ERROR", "Request validation failed", request_id, details)

    @staticmethod
    def handle_database_error(exception: SQLAlchemyError, request: Optional[Request] = None) -> JSONResponse:
        """Integrity failures map to 409, anything else to 500; driver text is never returned."""
        request_id = ErrorHandlerService.new_request_id()

        if isinstance(exception, IntegrityError):
            status_code, code = 409, "INTEGRITY_ERROR"
            driver_message = str(exception.orig).lower()
            message = next(
                (f"Constraint violation: {text}" for needle, text in CONSTRAINT_MESSAGES if needle in driver_message),
                "Data integrity constraint violation"
            )
        else:
            status_code, code, message = 500, "DATABASE_ERROR", "Database operation failed"

        logger.error(f"[{request_id}] {code} on {_path(request)}: {exception}", exc_info=True)
        return ErrorHandlerService._respond(status_code, code, message, request_id)

    @staticmethod
    def handle_http_exception(exception: StarletteHTTPException, request: Optional[Request] = None) -> JSONResponse:
        """Plain HTTP errors, including routing 404s and 405s raised by Starlette."""
        request_id = ErrorHandlerService.new_request_id()
        logger.warning(f"[{request_id}] HTTP {exception.status_code} on {_path(request)}: {exception.detail}")

        return ErrorHandlerService._respond(
            exception.status_code,
            f"HTTP_{exception.status_code}",
            str(exception.detail),
            request_id,
            headers=getattr(exception, "headers", None)
        )

    @staticmethod
    def handle_unexpected_error(exception: Exception, request: Optional[Request] = None) -> JSONResponse:
        request_id = ErrorHandlerService.new_request_id()
        logger.error(
            f"[{request_id}] Unexpected {type(exception).__name__} on {_path(request)}: {exception}",
            exc_info=exception
        )

        return ErrorHandlerService._respond(
            500,
            "INTERNAL_SERVER_ERROR",
            "An unexpected error occurred. Please try again later.",
            request_id
        )


# Error response schemas for OpenAPI documentation
def _example(code: str, message: str) -> Dict[str, Any]:
    return {
        "application/json": {
            "example": {
                "error": {
                    "code": code,
                    "message": message,
                    "timestamp": "2025-01-01T00:00:00+00:00",
                    "request_id": "abc12345"
                }
            }
        }
    }


ERROR_RESPONSES = {
    400: {"description": "Bad Request", "content": _example("TYPE_MISMATCH", "A 'buy' request cannot target a 'for_rent' listing")},
    401: {"description": "Unauthorized", "content": _example("UNAUTHORIZED", "Authentication required")},
    403: {"description": "Forbidden", "content": _example("FORBIDDEN", "Only the seller can resolve this request")},
    404: {"description": "Not Found", "content": _example("NOT_FOUND", "Listing not found")},
    409: {"description": "Conflict", "content": _example("CONFLICT", "Listing state changed concurrently")},
    422: {"description": "Validation Error", "content": _example("VALIDATION_ERROR", "Request validation failed")},
    500: {"description": "Internal Server Error", "content": _example("CASCADE_FAILED", "Cascade deletion failed")},
}


def get_error_responses(*status_codes: int) -> Dict[int, Dict[str, Any]]:
    """Pick documented error responses for a route."""
    return {code: ERROR_RESPONSES[code] for code in status_codes if code in ERROR_RESPONSES}
