"""Error Hierarchy — typed, categorized exceptions for membership failures.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Argument and snapshot errors are raised before anything is submitted or applied
    - Unresolved role/channel identifiers are never errors (silently absent)
    - to_response() produces a JSON-safe envelope for hosts that surface errors

Design Decisions:
    - Single hierarchy with GuildMemberError base: hosts catch one type
    - ErrorContext as dataclass: rich observability without coupling to logging
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from datetime import datetime, timezone


class ErrorSeverity(str, Enum):
    """Error severity for observability and caller handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    BUSINESS_RULE = "business_rule"
    EXTERNAL_API = "external_api"
    TIMEOUT = "timeout"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    guild_id: str | None = None
    member_id: str | None = None
    mutation: str | None = None
    debug_info: dict[str, Any] | None = None
    retry_after_ms: int | None = None


class GuildMemberError(Exception):
    """Base exception for all guildmember errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()

    def to_response(self) -> dict:
        """Convert to a standardized error envelope."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "guild_id": self.context.guild_id,
                    "member_id": self.context.member_id,
                    "mutation": self.context.mutation,
                    "retry_after_ms": self.context.retry_after_ms,
                },
            }
        }


# ─── Caller Errors ──────────────────────────────────────────────

class MalformedSnapshotError(GuildMemberError):
    """Snapshot failed structural validation; nothing was applied."""
    def __init__(
        self, details: list[dict], context: ErrorContext | None = None,
    ):
        fields = sorted({d["field"] for d in details if d.get("field")})
        super().__init__(
            f"Malformed member snapshot: invalid {', '.join(fields) or 'payload'}",
            "MALFORMED_SNAPSHOT", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context,
        )
        self.details = details


class InvalidMemberArgumentError(GuildMemberError):
    """Mutation argument rejected before submission."""
    def __init__(self, message: str, field: str, context: ErrorContext | None = None):
        super().__init__(
            message, "INVALID_ARGUMENT", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context,
        )
        self.field = field


class UnsupportedMemberOperationError(GuildMemberError):
    """Operation exists on the surface but is not available for members."""
    def __init__(self, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"'{operation}' is not supported on a guild member",
            "UNSUPPORTED_OPERATION", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.WARNING, context,
        )
        self.operation = operation


# ─── Executor Errors ────────────────────────────────────────────

class MutationFailedError(GuildMemberError):
    """Command Executor reported failure for a submitted mutation."""
    def __init__(
        self,
        message: str,
        api_error_type: str,
        status_code: int | None = None,
        retry_after_ms: int | None = None,
        context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.retry_after_ms = retry_after_ms
        category = (
            ErrorCategory.TIMEOUT if api_error_type == "timeout"
            else ErrorCategory.EXTERNAL_API
        )
        super().__init__(
            f"Member mutation failed ({api_error_type}): {message}",
            "MUTATION_FAILED", category, ErrorSeverity.ERROR, ctx,
        )
        self.api_error_type = api_error_type
        self.status_code = status_code
