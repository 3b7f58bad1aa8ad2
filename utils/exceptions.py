"""
Custom exception classes for the scheduling engine.
Each error carries a stable ``code`` the presentation layer maps to a message.
"""

from typing import Optional


class SchedulingError(Exception):
    """Base exception for scheduling operations."""

    code = "SchedulingError"

    def __init__(self, message: Optional[str] = None, **details):
        super().__init__(message or self.code)
        self.details = details


# ========== Validation ==========


class ValidationError(SchedulingError):
    """Raised when input validation fails. Never retried."""

    code = "ValidationError"


class InvalidRangeError(ValidationError):
    """Raised when a range ends before it starts."""

    code = "InvalidRange"


class OutOfWorkingHoursError(ValidationError):
    """Raised when a break is not contained in the working span."""

    code = "OutOfWorkingHours"


class BreakOverlapError(ValidationError):
    """Raised when a break overlaps an existing break."""

    code = "Overlap"


class InvalidTransitionError(ValidationError):
    """Raised when an appointment status change is not allowed."""

    code = "InvalidTransition"


# ========== Not found ==========


class NotFoundError(SchedulingError):
    code = "NotFound"


class DoctorNotFoundError(NotFoundError):
    pass


class BreakNotFoundError(NotFoundError):
    pass


class LeaveNotFoundError(NotFoundError):
    pass


class AppointmentNotFoundError(NotFoundError):
    pass


# ========== Contention ==========


class ContentionError(SchedulingError):
    """Expected under concurrency; caller should regenerate and retry."""

    code = "Contention"


class SlotNoLongerAvailableError(ContentionError):
    code = "SlotNoLongerAvailable"


class DailyCapacityReachedError(ContentionError):
    code = "DailyCapacityReached"


class DoctorOnLeaveError(ContentionError):
    code = "DoctorOnLeave"


class StaleDraftError(ContentionError):
    """Raised when a schedule draft is saved over a newer profile."""

    code = "StaleDraft"


# ========== Infrastructure ==========


class DatabaseError(SchedulingError):
    """Base exception for storage operations."""

    code = "StoreUnavailable"


class BookingOutcomeUnknownError(SchedulingError):
    """Raised when a booking timed out before its outcome was known.

    The caller must re-check the ledger with ``request_token`` instead of
    blindly retrying.
    """

    code = "BookingOutcomeUnknown"

    def __init__(self, request_token: str, message: Optional[str] = None):
        super().__init__(
            message or f"Booking outcome unknown for request {request_token}",
            request_token=request_token,
        )
        self.request_token = request_token
