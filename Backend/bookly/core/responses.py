"""
Standardized Error Response Module

Success responses are the resource itself (an appointment, a list of slots,
a business profile). Every error the API produces on purpose shares one
envelope:

    {
        "error": {
            "code": "ERROR_CODE",
            "message": "Human-readable message",
            "details": {...}  # Optional extra context
        },
        "status": "error"
    }

ERROR CODES:
    - NOT_FOUND: Business, service or appointment does not exist
    - VALIDATION_ERROR: Request data failed validation
    - CONFLICT: Requested slot overlaps an active appointment
    - CLOSED_DAY: Requested time is outside working hours
    - INVALID_TRANSITION: Illegal appointment status change
    - ALREADY_EXISTS: Slug or service name already in use
    - INTERNAL_ERROR: Server-side error
"""

from typing import Any, Optional

from pydantic import BaseModel


class ErrorDetail(BaseModel):
    """Structured error information."""
    code: str
    message: str
    details: Optional[dict[str, Any]] = None


class ErrorResponse(BaseModel):
    """Error envelope, used to document error responses in OpenAPI."""
    error: ErrorDetail
    status: str = "error"


class ErrorCodes:
    """Standard error codes for API responses."""

    # Authentication errors (401)
    AUTHENTICATION_REQUIRED = "AUTHENTICATION_REQUIRED"

    # Not found errors (404)
    NOT_FOUND = "NOT_FOUND"

    # Validation errors (422)
    VALIDATION_ERROR = "VALIDATION_ERROR"

    # Conflict errors (409)
    CONFLICT = "CONFLICT"
    CLOSED_DAY = "CLOSED_DAY"
    INVALID_TRANSITION = "INVALID_TRANSITION"
    ALREADY_EXISTS = "ALREADY_EXISTS"

    # Server errors (500)
    INTERNAL_ERROR = "INTERNAL_ERROR"


def error_response(
    code: str,
    message: str,
    details: Optional[dict] = None,
) -> dict:
    """
    Create a standardized error response dict.
    """
    response = {
        "error": {
            "code": code,
            "message": message,
        },
        "status": "error",
    }
    if details:
        response["error"]["details"] = details
    return response
