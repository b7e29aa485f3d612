"""
Scheduling outcomes that are expected, user-facing rejections.

Each subclass maps to one stable error code and HTTP status; main.py renders
them in the standard error envelope. Storage failures are NOT modelled here
and propagate as internal errors.
"""

from typing import Any, Optional

from fastapi import status

from .core.responses import ErrorCodes


class SchedulingError(Exception):
    """Base class for business-rule rejections."""

    code: str = ErrorCodes.VALIDATION_ERROR
    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        self.message = message
        self.details = details
        super().__init__(message)


class NotFoundError(SchedulingError):
    """Business, service or appointment is absent (or owned by another business)."""

    code = ErrorCodes.NOT_FOUND
    status_code = status.HTTP_404_NOT_FOUND


class SlotConflictError(SchedulingError):
    """Requested slot overlaps an active appointment."""

    code = ErrorCodes.CONFLICT
    status_code = status.HTTP_409_CONFLICT


class ClosedDayError(SchedulingError):
    """Requested time is on a disabled day or outside working hours."""

    code = ErrorCodes.CLOSED_DAY
    status_code = status.HTTP_409_CONFLICT


class BookingValidationError(SchedulingError):
    """Missing or malformed required fields."""

    code = ErrorCodes.VALIDATION_ERROR
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY


class InvalidTransitionError(SchedulingError):
    """Status change not allowed by the appointment lifecycle."""

    code = ErrorCodes.INVALID_TRANSITION
    status_code = status.HTTP_409_CONFLICT


class SlugTakenError(SchedulingError):
    code = ErrorCodes.ALREADY_EXISTS
    status_code = status.HTTP_409_CONFLICT


class DuplicateServiceError(SchedulingError):
    code = ErrorCodes.ALREADY_EXISTS
    status_code = status.HTTP_409_CONFLICT
