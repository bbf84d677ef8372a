"""Boundary Protocols — contracts between the membership core and its hosts.

Invariants:
    - Core NEVER imports from services/ or infrastructure/; dependency arrows point inward only
    - Registries are read-only from the core's point of view
    - The Command Executor is the only path by which a mutation leaves the core

Design Decisions:
    - Protocol over ABC: structural subtyping, a plain dict is a valid registry
    - Registry lookup is `get(key)`, matching Mapping.get
    - Async in CommandExecutor only: it does IO; entity reads stay synchronous
"""

from typing import TYPE_CHECKING, Protocol, TypeVar

from guildmember.core.domain_types import ChannelId, GuildId, RoleId
from guildmember.schemas.mutation import MutationRequest

if TYPE_CHECKING:
    from guildmember.core.guild_member import GuildMember

_V_co = TypeVar("_V_co", covariant=True)


class RoleLike(Protocol):
    """Anything with a role identifier; role objects are owned by the guild."""
    id: RoleId


class ChannelLike(Protocol):
    """Anything with a channel identifier."""
    id: ChannelId


class Registry(Protocol[_V_co]):
    """Identifier-keyed lookup owned and mutated by the guild."""
    def get(self, key: str, /) -> _V_co | None: ...


class CommandExecutor(Protocol):
    """Turns a member-scoped mutation request into an operation on the platform.

    Resolves to the (eventually refreshed) member or raises
    MutationFailedError. Timeouts, retries and cancellation live here.
    """
    async def submit(
        self, member: "GuildMember", request: MutationRequest,
    ) -> "GuildMember": ...


class GuildLike(Protocol):
    """Owning guild as seen by a member: identity, registries, executor."""
    id: GuildId
    roles: Registry[RoleLike]
    channels: Registry[ChannelLike]
    executor: CommandExecutor
