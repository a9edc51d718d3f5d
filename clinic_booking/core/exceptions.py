"""Custom application exceptions."""

from enum import Enum


class AppException(Exception):
    """Base application exception."""

    def __init__(self, message: str, status_code: int = 500):
        """Initialize exception with message and status code."""
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class NotFoundException(AppException):
    """Resource not found exception."""

    def __init__(self, message: str = "Resource not found"):
        """Initialize with 404 status code."""
        super().__init__(message, status_code=404)


class UnauthorizedException(AppException):
    """Unauthorized access exception."""

    def __init__(self, message: str = "Unauthorized"):
        """Initialize with 401 status code."""
        super().__init__(message, status_code=401)


class ForbiddenException(AppException):
    """Forbidden access exception."""

    def __init__(self, message: str = "Forbidden"):
        """Initialize with 403 status code."""
        super().__init__(message, status_code=403)


class ConflictException(AppException):
    """Conflict exception."""

    def __init__(self, message: str = "Conflict"):
        """Initialize with 409 status code."""
        super().__init__(message, status_code=409)


class DuplicateRecordException(ConflictException):
    """Raised by the record store when a uniqueness constraint is violated."""

    def __init__(self, message: str = "Duplicate record"):
        """Initialize with 409 status code."""
        super().__init__(message)


class ValidationException(AppException):
    """Validation error exception."""

    def __init__(self, message: str = "Validation error"):
        """Initialize with 422 status code."""
        super().__init__(message, status_code=422)


class RejectionReason(str, Enum):
    """Reasons an appointment operation can be turned down."""

    NOT_FOUND = "not_found"
    INVALID_STATE = "invalid_state"
    DOCTOR_UNAVAILABLE = "doctor_unavailable"
    PROFILE_MISSING = "profile_missing"
    INVALID_DATE = "invalid_date"
    INVALID_WINDOW = "invalid_window"
    SLOT_CONFLICT = "slot_conflict"
    STORE_FAILURE = "store_failure"


REJECTION_STATUS_CODES: dict[RejectionReason, int] = {
    RejectionReason.NOT_FOUND: 404,
    RejectionReason.INVALID_STATE: 409,
    RejectionReason.DOCTOR_UNAVAILABLE: 422,
    RejectionReason.PROFILE_MISSING: 422,
    RejectionReason.INVALID_DATE: 422,
    RejectionReason.INVALID_WINDOW: 422,
    RejectionReason.SLOT_CONFLICT: 409,
    RejectionReason.STORE_FAILURE: 503,
}


class AppointmentRejection(AppException):
    """
    An appointment operation was refused.

    Callers branch on ``reason``; ``message`` is for humans only. Only
    ``store_failure`` is retryable with unchanged input.
    """

    def __init__(self, reason: RejectionReason, message: str):
        """Initialize with the status code mapped from the reason."""
        self.reason = reason
        self.retryable = reason is RejectionReason.STORE_FAILURE
        super().__init__(message, status_code=REJECTION_STATUS_CODES[reason])


class StoreFailureException(AppointmentRejection):
    """Persistence-layer fault."""

    def __init__(self, message: str = "Record store unavailable"):
        """Initialize as a retryable store failure."""
        super().__init__(RejectionReason.STORE_FAILURE, message)
