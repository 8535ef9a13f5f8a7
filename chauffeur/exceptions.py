"""Exception hierarchy for consistent error handling.

All library exceptions inherit from ChauffeurError, which carries an
error_code so callers can map failures to their own transport without
parsing messages.
"""

from enum import Enum


class ErrorCode(str, Enum):
    """Machine-readable error codes."""

    INTERNAL_ERROR = "INTERNAL_ERROR"
    INVALID_REQUEST = "INVALID_REQUEST"
    TOO_FEW_WAYPOINTS = "TOO_FEW_WAYPOINTS"
    GEOCODING_FAILED = "GEOCODING_FAILED"
    GEOCODING_AUTH = "GEOCODING_AUTH"
    GEOCODING_RATE_LIMITED = "GEOCODING_RATE_LIMITED"


class ChauffeurError(Exception):
    """Base exception for all Chauffeur errors."""

    error_code: ErrorCode = ErrorCode.INTERNAL_ERROR

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class InvalidRequestError(ChauffeurError):
    """Raised when a reconciliation request cannot be parsed."""

    error_code = ErrorCode.INVALID_REQUEST


class ReconciliationValidationError(ChauffeurError):
    """Raised when a pass would publish a structurally invalid trip.

    The only fatal outcome of a reconciliation pass: everything else
    degrades to preserving the current data.
    """

    error_code = ErrorCode.TOO_FEW_WAYPOINTS

    def __init__(self, message: str, waypoint_count: int | None = None) -> None:
        super().__init__(message)
        self.waypoint_count = waypoint_count
