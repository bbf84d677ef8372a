"""Guild Member — one user's participation in one guild.

Invariants:
    - refresh() overwrites every owned field from a validated snapshot, or
      raises MalformedSnapshotError having touched nothing
    - refresh() never writes `speaking`; only mark_speaking() does
    - joined_at is set by the first refresh and never changes afterwards
    - Stored role IDs are unique and never include the guild ID
    - `roles` is recomputed against the guild's registry on every access
    - Mutation methods never change local state; the refreshed state arrives
      through the host's snapshot path

Design Decisions:
    - Executor resolved at submit time (explicit override, else guild.executor)
    - Messaging methods exist on the surface but raise UnsupportedMemberOperationError
"""

import logging
from collections.abc import Mapping
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ValidationError

from guildmember.core.collaborator_protocols import (
    ChannelLike,
    CommandExecutor,
    GuildLike,
    RoleLike,
)
from guildmember.core.domain_types import ChannelId, RoleId, UserId
from guildmember.core.enforce_arguments import (
    channel_id_of,
    validate_delete_message_days,
    validate_flag,
)
from guildmember.core.errors import (
    ErrorContext,
    InvalidMemberArgumentError,
    UnsupportedMemberOperationError,
)
from guildmember.core.member_snapshot import parse_member_snapshot
from guildmember.core.role_resolution import (
    normalize_role_ids,
    resolve_effective_roles,
    subtract_role_ids,
    union_role_ids,
)
from guildmember.schemas.member import MemberSnapshot, UserSnapshot
from guildmember.schemas.mutation import (
    DeleteDirectMessageRequest,
    MemberEditRequest,
    MutationRequest,
    RemoveMemberRequest,
)

logger = logging.getLogger(__name__)

_EDIT_FIELDS = frozenset({"nick", "roles", "mute", "deaf", "channel"})


class GuildMember:
    """Membership entity: raw attributes plus live views over guild registries."""

    def __init__(
        self,
        guild: GuildLike,
        snapshot: MemberSnapshot | Mapping[str, Any] | None = None,
        *,
        executor: CommandExecutor | None = None,
    ):
        self.guild = guild
        self._executor = executor

        self.user: UserSnapshot | None = None
        self._role_ids: tuple[RoleId, ...] = ()
        self.server_deaf: bool = False
        self.server_mute: bool = False
        self.self_mute: bool = False
        self.self_deaf: bool = False
        self.voice_session_id: str | None = None
        self.voice_channel_id: ChannelId | None = None
        self.nickname: str | None = None
        self._joined_at: datetime | None = None
        self._speaking: bool | None = None

        if snapshot is not None:
            self.refresh(snapshot)

    def __repr__(self) -> str:
        return f"<GuildMember id={self.id!r} guild={self.guild.id!r}>"

    # ─── Refresh ─────────────────────────────────────────────────

    def refresh(self, snapshot: MemberSnapshot | Mapping[str, Any]) -> None:
        """Apply a full snapshot. Validation happens before any field is written."""
        data = parse_member_snapshot(snapshot, self._error_context())
        role_ids = tuple(normalize_role_ids(data.roles, self.guild.id))

        self.user = data.user
        self._role_ids = role_ids
        self.server_deaf = data.deaf
        self.server_mute = data.mute
        self.self_mute = data.self_mute
        self.self_deaf = data.self_deaf
        self.voice_session_id = data.session_id
        self.voice_channel_id = data.channel_id
        self.nickname = data.nick
        self._set_joined_at(data.joined_at)

    def mark_speaking(self, speaking: bool) -> None:
        """Voice-activity signal; the only writer of `speaking`."""
        self._speaking = speaking

    def _set_joined_at(self, joined_at: datetime) -> None:
        if self._joined_at is None:
            self._joined_at = joined_at
        elif joined_at != self._joined_at:
            logger.warning(
                "Ignoring joined_at change on refresh",
                extra={"guild_id": self.guild.id, "member_id": self.id},
            )

    # ─── Derived Views ───────────────────────────────────────────

    @property
    def id(self) -> UserId | None:
        return self.user.id if self.user is not None else None

    @property
    def role_ids(self) -> tuple[RoleId, ...]:
        """Explicitly assigned role IDs, without the implicit default role."""
        return self._role_ids

    @property
    def roles(self) -> dict[RoleId, RoleLike]:
        """Effective roles keyed by ID: default role first, then stored order."""
        return resolve_effective_roles(
            self.guild.id, self._role_ids, self.guild.roles,
        )

    @property
    def join_date(self) -> datetime | None:
        return self._joined_at

    @property
    def speaking(self) -> bool | None:
        return self._speaking

    @property
    def mute(self) -> bool:
        return self.self_mute or self.server_mute

    @property
    def deaf(self) -> bool:
        return self.self_deaf or self.server_deaf

    @property
    def voice_channel(self) -> ChannelLike | None:
        if self.voice_channel_id is None:
            return None
        return self.guild.channels.get(self.voice_channel_id)

    @property
    def display_name(self) -> str | None:
        if self.nickname:
            return self.nickname
        return self.user.username if self.user is not None else None

    # ─── Mutations (delegated) ───────────────────────────────────

    async def set_mute(self, mute: bool) -> "GuildMember":
        return await self.edit(mute=mute)

    async def set_deaf(self, deaf: bool) -> "GuildMember":
        return await self.edit(deaf=deaf)

    async def set_voice_channel(self, channel: ChannelLike | str) -> "GuildMember":
        """Move the member to another voice channel."""
        return await self.edit(channel=channel)

    async def set_nickname(self, nick: str | None) -> "GuildMember":
        """Set the per-guild nickname; None resets it."""
        return await self.edit(nick=nick)

    async def set_roles(self, roles: Any) -> "GuildMember":
        """Replace the stored role list. Accepts roles, IDs, or an ID→role mapping."""
        return await self.edit(roles=roles)

    async def add_role(self, role: RoleLike | str) -> "GuildMember":
        return await self.add_roles([role])

    async def add_roles(self, roles: Any) -> "GuildMember":
        additions = normalize_role_ids(roles, self.guild.id)
        return await self.edit(roles=union_role_ids(self._role_ids, additions))

    async def remove_role(self, role: RoleLike | str) -> "GuildMember":
        return await self.remove_roles([role])

    async def remove_roles(self, roles: Any) -> "GuildMember":
        removals = normalize_role_ids(roles, self.guild.id)
        return await self.edit(roles=subtract_role_ids(self._role_ids, removals))

    async def edit(self, **fields: Any) -> "GuildMember":
        """Submit one edit covering any of nick, roles, mute, deaf, channel."""
        return await self._submit(self._edit_request(fields))

    async def kick(self) -> "GuildMember":
        return await self._submit(RemoveMemberRequest(ban=False))

    async def ban(self, delete_message_days: int = 0) -> "GuildMember":
        """Ban the member, deleting 0-7 days of their message history.

        Out-of-range values raise InvalidMemberArgumentError; they are not clamped.
        """
        days = validate_delete_message_days(
            delete_message_days, self._error_context("remove_member"),
        )
        return await self._submit(
            RemoveMemberRequest(ban=True, delete_message_days=days),
        )

    async def delete_dm(self) -> "GuildMember":
        """Close any direct-message channel with this member's user."""
        if self.id is None:
            raise InvalidMemberArgumentError(
                "Member has no user to close a DM channel with", "user",
                self._error_context("delete_dm_channel"),
            )
        return await self._submit(DeleteDirectMessageRequest(recipient_id=self.id))

    def send_message(self, *args: Any, **kwargs: Any) -> None:
        raise UnsupportedMemberOperationError("send_message", self._error_context())

    def send_tts_message(self, *args: Any, **kwargs: Any) -> None:
        raise UnsupportedMemberOperationError("send_tts_message", self._error_context())

    def send_file(self, *args: Any, **kwargs: Any) -> None:
        raise UnsupportedMemberOperationError("send_file", self._error_context())

    # ─── Helpers ─────────────────────────────────────────────────

    def _edit_request(self, fields: dict[str, Any]) -> MemberEditRequest:
        ctx = self._error_context("edit_member")
        unknown = sorted(set(fields) - _EDIT_FIELDS)
        if unknown:
            raise InvalidMemberArgumentError(
                f"Unknown member field(s): {', '.join(unknown)}", unknown[0], ctx,
            )
        data: dict[str, Any] = {}
        if "nick" in fields:
            data["nick"] = fields["nick"]
        if "roles" in fields:
            data["roles"] = normalize_role_ids(fields["roles"], self.guild.id)
        if "mute" in fields:
            data["mute"] = validate_flag(fields["mute"], "mute", ctx)
        if "deaf" in fields:
            data["deaf"] = validate_flag(fields["deaf"], "deaf", ctx)
        if "channel" in fields:
            data["channel_id"] = channel_id_of(fields["channel"], ctx)
        return _build_request(MemberEditRequest, data, ctx)

    async def _submit(self, request: MutationRequest) -> "GuildMember":
        executor = self._executor or self.guild.executor
        logger.info(
            "Submitting member mutation",
            extra={
                "guild_id": self.guild.id,
                "member_id": self.id,
                "mutation": request.kind.value,
            },
        )
        return await executor.submit(self, request)

    def _error_context(self, mutation: str | None = None) -> ErrorContext:
        return ErrorContext(
            guild_id=self.guild.id, member_id=self.id, mutation=mutation,
        )


def _build_request(
    model: type[BaseModel], data: dict[str, Any], context: ErrorContext,
) -> Any:
    """Construct a request model, mapping pydantic failures to argument errors."""
    try:
        return model(**data)
    except ValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(loc) for loc in first["loc"]) or "member"
        raise InvalidMemberArgumentError(
            f"{field}: {first['msg']}", field, context,
        ) from e
