"""Guild Schemas — role and channel payloads held in a guild's registries.

Invariants:
    - The default role's id equals the guild id
    - Role and channel snapshots are frozen; registry updates replace whole entries
"""

from pydantic import BaseModel, ConfigDict

from guildmember.core.domain_types import ChannelId, RoleId


class RoleSnapshot(BaseModel):
    """A named permission grouping owned by a guild."""
    model_config = ConfigDict(frozen=True, extra="ignore")

    id: RoleId
    name: str
    position: int = 0
    permissions: int = 0
    color: int = 0
    hoist: bool = False
    mentionable: bool = False


class ChannelSnapshot(BaseModel):
    """A guild channel; only voice channels are looked up by members."""
    model_config = ConfigDict(frozen=True, extra="ignore")

    id: ChannelId
    name: str | None = None
    type: int = 0
    position: int = 0
