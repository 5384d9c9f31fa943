"""Error Hierarchy — typed, categorized exceptions for all RelayPay failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Domain errors (400-level) are detected before any state mutation
    - to_response() produces REST envelope; to_event() produces socket envelope
    - No internal details leaked in user-facing messages

Design Decisions:
    - Single hierarchy with RelayPayError base: FastAPI global handler catches all
    - ErrorContext as dataclass: rich observability without coupling to logging framework
    - UnknownRecipientError never reaches a sender: chat delivery degrades to best-effort
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from datetime import datetime, timezone


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    BUSINESS_RULE = "business_rule"
    RESOURCE_NOT_FOUND = "resource_not_found"
    TRANSPORT = "transport"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    user_id: str | None = None
    related_user_id: str | None = None
    event_type: str | None = None
    debug_info: dict[str, Any] | None = None


class RelayPayError(Exception):
    """Base exception for all RelayPay errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
        http_status: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.http_status = http_status

    def to_response(self) -> dict:
        """Convert to standardized REST error response."""
        return {
            "success": False,
            "error": {
                "code": self.code,
                "message": self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "user_id": self.context.user_id,
                    "related_user_id": self.context.related_user_id,
                    "event_type": self.context.event_type,
                },
            },
        }

    def to_event(self) -> dict:
        """Convert to socket error event."""
        return {
            "type": "error",
            "payload": {"message": self.message, "code": self.code},
        }


# ─── Domain Errors (400-level) ──────────────────────────────────

class InputValidationError(RelayPayError):
    """Missing, malformed or out-of-range input."""
    def __init__(self, message: str, field: str, context: ErrorContext | None = None):
        super().__init__(
            message, "VALIDATION_ERROR", ErrorCategory.VALIDATION,
            ErrorSeverity.WARNING, context, 400,
        )
        self.field = field


class InvalidAmountError(RelayPayError):
    """Amount outside the accepted range for the operation."""
    def __init__(
        self, amount: int, minimum: int | None = None, maximum: int | None = None,
        context: ErrorContext | None = None,
    ):
        if maximum is None:
            message = "Amount must be positive"
        else:
            message = f"Amount must be between {minimum} and {maximum}"
        super().__init__(
            message, "INVALID_AMOUNT", ErrorCategory.VALIDATION,
            ErrorSeverity.WARNING, context, 400,
        )
        self.amount = amount
        self.minimum = minimum
        self.maximum = maximum


class SameAccountError(RelayPayError):
    """Transfer source and destination are the same account."""
    def __init__(self, user_id: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.user_id = user_id
        super().__init__(
            "Cannot transfer to the same account",
            "SAME_ACCOUNT", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.WARNING, ctx, 400,
        )


class InsufficientFundsError(RelayPayError):
    """Debit would take the balance below zero."""
    def __init__(
        self, user_id: str, balance: int, amount: int,
        context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.user_id = user_id
        super().__init__(
            "Insufficient funds",
            "INSUFFICIENT_FUNDS", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.WARNING, ctx, 400,
        )
        self.balance = balance
        self.amount = amount


class UnknownRecipientError(RelayPayError):
    """Addressed user has never been seen by the presence directory."""
    def __init__(self, user_id: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.related_user_id = user_id
        super().__init__(
            f"User '{user_id}' not found",
            "UNKNOWN_RECIPIENT", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.INFO, ctx, 404,
        )


class NotAuthenticatedError(RelayPayError):
    """Chat event received before a successful auth on the socket."""
    def __init__(self, event_type: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.event_type = event_type
        super().__init__(
            "Not authenticated",
            "NOT_AUTHENTICATED", ErrorCategory.VALIDATION,
            ErrorSeverity.WARNING, ctx, 401,
        )


# ─── Infrastructure Errors ──────────────────────────────────────

class TransportFaultError(RelayPayError):
    """Inbound socket frame could not be parsed — frame dropped, socket kept."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            f"Malformed event: {message}",
            "TRANSPORT_FAULT", ErrorCategory.TRANSPORT,
            ErrorSeverity.WARNING, context, 400,
        )


class InternalFaultError(RelayPayError):
    """Unexpected failure — detail stays server-side."""
    def __init__(self, message: str = "An unexpected error occurred",
                 context: ErrorContext | None = None):
        super().__init__(
            message, "INTERNAL_ERROR", ErrorCategory.INTERNAL,
            ErrorSeverity.CRITICAL, context, 500,
        )
