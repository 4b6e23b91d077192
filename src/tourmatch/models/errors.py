"""Standard error codes for the tour matching lifecycle.

Every failure a service can report maps to one ErrorCode. Each code
belongs to an ErrorKind, which is the stable category callers branch on
(and which the API layer maps to an HTTP status).
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict


class ErrorKind(str, Enum):
    """Error taxonomy exposed to callers."""

    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    FORBIDDEN = "forbidden"
    INVALID_STATE = "invalid_state"
    POLICY_VIOLATION = "policy_violation"
    UNAUTHENTICATED = "unauthenticated"


class ErrorCode(str, Enum):
    """Standard error codes."""

    # Lifecycle error codes (ERR_001-ERR_009)
    VALIDATION_FAILED = "ERR_001"
    REQUEST_NOT_FOUND = "ERR_002"
    APPLICATION_NOT_FOUND = "ERR_003"
    BOOKING_NOT_FOUND = "ERR_004"
    FORBIDDEN = "ERR_005"
    INVALID_STATE = "ERR_006"
    CANCELLATION_WINDOW_CLOSED = "ERR_007"
    APPLICATION_LIMIT_REACHED = "ERR_008"
    CONCURRENT_MODIFICATION = "ERR_009"

    # Identity
    AUTH_REQUIRED = "ERR_AUTH_001"


ERROR_KINDS: dict[ErrorCode, ErrorKind] = {
    ErrorCode.VALIDATION_FAILED: ErrorKind.VALIDATION,
    ErrorCode.REQUEST_NOT_FOUND: ErrorKind.NOT_FOUND,
    ErrorCode.APPLICATION_NOT_FOUND: ErrorKind.NOT_FOUND,
    ErrorCode.BOOKING_NOT_FOUND: ErrorKind.NOT_FOUND,
    ErrorCode.FORBIDDEN: ErrorKind.FORBIDDEN,
    ErrorCode.INVALID_STATE: ErrorKind.INVALID_STATE,
    ErrorCode.CANCELLATION_WINDOW_CLOSED: ErrorKind.POLICY_VIOLATION,
    ErrorCode.APPLICATION_LIMIT_REACHED: ErrorKind.POLICY_VIOLATION,
    ErrorCode.CONCURRENT_MODIFICATION: ErrorKind.INVALID_STATE,
    ErrorCode.AUTH_REQUIRED: ErrorKind.UNAUTHENTICATED,
}

# Human-readable error messages
ERROR_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.VALIDATION_FAILED: "The submitted data is invalid",
    ErrorCode.REQUEST_NOT_FOUND: "Tour request not found",
    ErrorCode.APPLICATION_NOT_FOUND: "Application not found",
    ErrorCode.BOOKING_NOT_FOUND: "Booking not found",
    ErrorCode.FORBIDDEN: "You do not have permission to perform this action",
    ErrorCode.INVALID_STATE: "This action is not allowed in the current state",
    ErrorCode.CANCELLATION_WINDOW_CLOSED: (
        "Bookings can only be cancelled at least 24 hours before the start date"
    ),
    ErrorCode.APPLICATION_LIMIT_REACHED: (
        "This tour request is no longer accepting applications"
    ),
    ErrorCode.CONCURRENT_MODIFICATION: (
        "The tour request changed while the action was in progress"
    ),
    ErrorCode.AUTH_REQUIRED: "Authentication required to perform this action",
}

# Recovery suggestions for clients
ERROR_RECOVERY: dict[ErrorCode, str] = {
    ErrorCode.VALIDATION_FAILED: "Correct the highlighted field and try again",
    ErrorCode.REQUEST_NOT_FOUND: "Check the tour request ID",
    ErrorCode.APPLICATION_NOT_FOUND: "Check the request and application IDs",
    ErrorCode.BOOKING_NOT_FOUND: "Check the booking ID",
    ErrorCode.FORBIDDEN: "Only the owner can perform this action",
    ErrorCode.INVALID_STATE: "Refresh to see the current status",
    ErrorCode.CANCELLATION_WINDOW_CLOSED: "Contact your guide directly",
    ErrorCode.APPLICATION_LIMIT_REACHED: "Browse other open tour requests",
    ErrorCode.CONCURRENT_MODIFICATION: "Refresh and try again",
    ErrorCode.AUTH_REQUIRED: "Sign in and retry",
}


class ErrorResponse(BaseModel):
    """Standard error response body.

    `kind` is the stable category; `error_code` narrows it down.
    """

    model_config = ConfigDict(strict=True)

    success: bool = False
    error_code: ErrorCode
    kind: ErrorKind
    message: str
    recovery: str
    details: Optional[dict[str, str]] = None

    @classmethod
    def from_code(
        cls,
        code: ErrorCode,
        details: Optional[dict[str, str]] = None,
        message: Optional[str] = None,
    ) -> "ErrorResponse":
        """Create an ErrorResponse from an error code.

        Args:
            code: The error code
            details: Optional additional context about the error
            message: Optional message overriding the default for the code

        Returns:
            An ErrorResponse with the kind, message and recovery hint.
        """
        return cls(
            error_code=code,
            kind=ERROR_KINDS[code],
            message=message or ERROR_MESSAGES[code],
            recovery=ERROR_RECOVERY[code],
            details=details,
        )


class MarketplaceError(Exception):
    """Exception raised by lifecycle operations.

    Raised before any write happens, so a caught MarketplaceError always
    means the store was left untouched by the failed operation.
    """

    def __init__(
        self,
        code: ErrorCode,
        details: Optional[dict[str, Any]] = None,
        message: Optional[str] = None,
    ):
        self.code = code
        self.kind = ERROR_KINDS[code]
        self.message = message or ERROR_MESSAGES[code]
        self.recovery = ERROR_RECOVERY[code]
        self.details = (
            {k: str(v) for k, v in details.items()} if details is not None else None
        )
        super().__init__(self.message)

    @classmethod
    def validation(cls, field: str, message: str) -> "MarketplaceError":
        """Build a validation error naming the violating field."""
        return cls(ErrorCode.VALIDATION_FAILED, details={"field": field}, message=message)

    def to_error_response(self) -> ErrorResponse:
        """Convert this exception to an ErrorResponse."""
        return ErrorResponse.from_code(self.code, self.details, self.message)
