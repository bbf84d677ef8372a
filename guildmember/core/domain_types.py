"""Domain Types — identifier wrappers and enums shared across the package.

Invariants:
    - GuildId, RoleId, ChannelId, UserId wrap snowflake strings
    - The default role's RoleId equals its guild's GuildId
    - MAX_DELETE_MESSAGE_DAYS (7) bounds ban history deletion

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON without custom encoders
"""

from enum import Enum
from typing import NewType


# ─── Identity Types ──────────────────────────────────────────────

GuildId = NewType("GuildId", str)
RoleId = NewType("RoleId", str)
ChannelId = NewType("ChannelId", str)
UserId = NewType("UserId", str)


# ─── Bounds ──────────────────────────────────────────────────────

MIN_DELETE_MESSAGE_DAYS: int = 0
MAX_DELETE_MESSAGE_DAYS: int = 7
MAX_NICKNAME_LENGTH: int = 32


# ─── Enums ───────────────────────────────────────────────────────

class MutationKind(str, Enum):
    """Member-scoped mutation requests accepted by a Command Executor."""
    SET_VOICE_STATE = "set_voice_state"
    SET_NICKNAME = "set_nickname"
    SET_ROLES = "set_roles"
    EDIT_MEMBER = "edit_member"
    REMOVE_MEMBER = "remove_member"
    DELETE_DM_CHANNEL = "delete_dm_channel"


def default_role_id(guild_id: GuildId) -> RoleId:
    """The implicit role every member holds shares the guild's identifier."""
    return RoleId(guild_id)
