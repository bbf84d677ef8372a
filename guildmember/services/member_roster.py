"""Member Roster — in-memory guild host owning registries and member entities.

Invariants:
    - One GuildMember per user ID; a later snapshot refreshes the existing entity
    - Role and channel registries are written only here, never by members
    - Voice state and speaking updates for unknown users are ignored
    - remove_member evicts the entity; nothing else references it afterwards

Design Decisions:
    - Roster satisfies GuildLike (id, roles, channels, executor) so members
      bind to it directly
    - Voice updates rebuild a full snapshot (member_to_snapshot + merge_voice_state)
      so refresh stays total
"""

import logging
from collections.abc import Mapping
from typing import Any

from guildmember.core.collaborator_protocols import CommandExecutor
from guildmember.core.domain_types import ChannelId, GuildId, RoleId, UserId
from guildmember.core.errors import ErrorContext, MalformedSnapshotError
from guildmember.core.guild_member import GuildMember
from guildmember.core.member_snapshot import (
    member_to_snapshot,
    merge_voice_state,
    parse_member_snapshot,
    validate_payload,
)
from guildmember.schemas.guild import ChannelSnapshot, RoleSnapshot
from guildmember.schemas.member import MemberSnapshot, VoiceStateSnapshot

logger = logging.getLogger(__name__)


class MemberRoster:
    """Owning collaborator for one guild's members."""

    def __init__(self, guild_id: GuildId, executor: CommandExecutor):
        self.id = guild_id
        self.executor = executor
        self.roles: dict[RoleId, RoleSnapshot] = {}
        self.channels: dict[ChannelId, ChannelSnapshot] = {}
        self._members: dict[UserId, GuildMember] = {}

    def __len__(self) -> int:
        return len(self._members)

    def __contains__(self, user_id: object) -> bool:
        return user_id in self._members

    def get_member(self, user_id: UserId) -> GuildMember | None:
        return self._members.get(user_id)

    @property
    def members(self) -> dict[UserId, GuildMember]:
        return dict(self._members)

    # ─── Registries ──────────────────────────────────────────────

    def upsert_role(self, role: RoleSnapshot | Mapping[str, Any]) -> RoleSnapshot:
        parsed = validate_payload(RoleSnapshot, role, self._context())
        self.roles[parsed.id] = parsed
        return parsed

    def remove_role(self, role_id: RoleId) -> RoleSnapshot | None:
        return self.roles.pop(role_id, None)

    def upsert_channel(
        self, channel: ChannelSnapshot | Mapping[str, Any],
    ) -> ChannelSnapshot:
        parsed = validate_payload(ChannelSnapshot, channel, self._context())
        self.channels[parsed.id] = parsed
        return parsed

    def remove_channel(self, channel_id: ChannelId) -> ChannelSnapshot | None:
        return self.channels.pop(channel_id, None)

    # ─── Member Events ───────────────────────────────────────────

    def apply_member_snapshot(
        self, snapshot: MemberSnapshot | Mapping[str, Any],
    ) -> GuildMember:
        """Add a member or refresh the existing one. Snapshot must carry a user."""
        data = parse_member_snapshot(snapshot, self._context())
        if data.user is None:
            raise MalformedSnapshotError(
                [{"field": "user", "message": "Field required", "type": "missing"}],
                self._context(),
            )
        member = self._members.get(data.user.id)
        if member is None:
            member = GuildMember(self, data)
            self._members[data.user.id] = member
            logger.debug(
                "Member added", extra={"guild_id": self.id, "member_id": member.id},
            )
        else:
            member.refresh(data)
        return member

    def accept_mutation_result(
        self, member: GuildMember, snapshot: MemberSnapshot,
    ) -> GuildMember:
        """Snapshot sink for an executor: responses flow through the event path."""
        return self.apply_member_snapshot(snapshot)

    def apply_voice_state(
        self, voice: VoiceStateSnapshot | Mapping[str, Any],
    ) -> GuildMember | None:
        state = validate_payload(VoiceStateSnapshot, voice, self._context())
        if state.guild_id is not None and state.guild_id != self.id:
            return None
        member = self._members.get(state.user_id)
        current = member_to_snapshot(member) if member is not None else None
        if member is None or current is None:
            logger.debug(
                "Voice state for unknown member ignored",
                extra={"guild_id": self.id, "member_id": state.user_id},
            )
            return None
        member.refresh(merge_voice_state(current, state))
        return member

    def apply_speaking(self, user_id: UserId, speaking: bool) -> GuildMember | None:
        member = self._members.get(user_id)
        if member is not None:
            member.mark_speaking(speaking)
        return member

    def remove_member(self, user_id: UserId) -> GuildMember | None:
        """Evict a member that left the guild."""
        member = self._members.pop(user_id, None)
        if member is not None:
            logger.debug(
                "Member removed", extra={"guild_id": self.id, "member_id": user_id},
            )
        return member

    def _context(self) -> ErrorContext:
        return ErrorContext(guild_id=self.id)
