"""Member Schemas — Pydantic models for wire-deserialized member payloads.

Invariants:
    - MemberSnapshot requires roles and joined_at; every other field has a fixed default
    - joined_at is always timezone-aware (naive input is read as UTC)
    - Snapshots are frozen: an entity never mutates the payload it was built from

Design Decisions:
    - extra="ignore": hosts may forward platform fields this package does not model
"""

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, field_validator

from guildmember.core.domain_types import ChannelId, GuildId, RoleId, UserId


class UserSnapshot(BaseModel):
    """Identity described by a membership."""
    model_config = ConfigDict(frozen=True, extra="ignore")

    id: UserId
    username: str | None = None
    discriminator: str | None = None
    avatar: str | None = None
    bot: bool = False


class MemberSnapshot(BaseModel):
    """Point-in-time member attributes used to construct or refresh an entity."""
    model_config = ConfigDict(frozen=True, extra="ignore")

    user: UserSnapshot | None = None
    roles: list[RoleId]
    nick: str | None = None
    joined_at: datetime
    deaf: bool = False
    mute: bool = False
    self_mute: bool = False
    self_deaf: bool = False
    session_id: str | None = None
    channel_id: ChannelId | None = None

    @field_validator("joined_at")
    @classmethod
    def assume_utc(cls, v: datetime) -> datetime:
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v


class VoiceStateSnapshot(BaseModel):
    """Voice state change for one user; channel_id None means disconnected."""
    model_config = ConfigDict(frozen=True, extra="ignore")

    user_id: UserId
    guild_id: GuildId | None = None
    channel_id: ChannelId | None = None
    session_id: str | None = None
    deaf: bool = False
    mute: bool = False
    self_mute: bool = False
    self_deaf: bool = False
