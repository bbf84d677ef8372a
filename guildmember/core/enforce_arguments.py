"""Argument Enforcement — validates mutation arguments before submission.

Invariants:
    - Out-of-range delete_message_days is REJECTED, never clamped
    - bool arguments must be real bools (1/0 and "true" are rejected)
    - All checks are pure and raise InvalidMemberArgumentError
"""

from typing import Any

from guildmember.core.domain_types import (
    MAX_DELETE_MESSAGE_DAYS,
    MIN_DELETE_MESSAGE_DAYS,
    ChannelId,
)
from guildmember.core.errors import ErrorContext, InvalidMemberArgumentError


def validate_delete_message_days(
    days: Any, context: ErrorContext | None = None,
) -> int:
    """Ban history deletion window: integer in [0, 7]."""
    if isinstance(days, bool) or not isinstance(days, int):
        raise InvalidMemberArgumentError(
            f"delete_message_days must be an integer, got {type(days).__name__}",
            "delete_message_days", context,
        )
    if not MIN_DELETE_MESSAGE_DAYS <= days <= MAX_DELETE_MESSAGE_DAYS:
        raise InvalidMemberArgumentError(
            f"delete_message_days must be between {MIN_DELETE_MESSAGE_DAYS} "
            f"and {MAX_DELETE_MESSAGE_DAYS}, got {days}",
            "delete_message_days", context,
        )
    return days


def validate_flag(
    value: Any, field: str, context: ErrorContext | None = None,
) -> bool:
    if not isinstance(value, bool):
        raise InvalidMemberArgumentError(
            f"{field} must be a bool, got {type(value).__name__}", field, context,
        )
    return value


def channel_id_of(
    channel: Any, context: ErrorContext | None = None,
) -> ChannelId:
    """Normalize a channel object or bare identifier to its ChannelId."""
    if isinstance(channel, str) and channel:
        return ChannelId(channel)
    channel_id = getattr(channel, "id", None)
    if isinstance(channel_id, str) and channel_id:
        return ChannelId(channel_id)
    raise InvalidMemberArgumentError(
        f"Expected a channel or channel ID, got {type(channel).__name__}",
        "channel", context,
    )
