"""Role Resolution — pure functions over stored role IDs and the guild's role registry.

Invariants:
    - resolve_effective_roles builds a NEW dict on every call (view, never cache)
    - Default role (ID == guild ID) is first whenever the registry holds it
    - Stored IDs missing from the registry are dropped silently
    - Normalized ID lists never contain duplicates or the guild ID
    - union keeps existing order and appends new IDs in argument order

Design Decisions:
    - Registry passed in, not captured: the result always reflects the
      registry's state at call time
"""

from collections.abc import Iterable, Mapping
from typing import Any

from guildmember.core.collaborator_protocols import Registry, RoleLike
from guildmember.core.domain_types import GuildId, RoleId, default_role_id
from guildmember.core.errors import InvalidMemberArgumentError


def resolve_effective_roles(
    guild_id: GuildId,
    stored_ids: Iterable[RoleId],
    registry: Registry[RoleLike],
) -> dict[RoleId, RoleLike]:
    """Default role first, then every resolvable stored ID in stored order."""
    resolved: dict[RoleId, RoleLike] = {}
    everyone = registry.get(default_role_id(guild_id))
    if everyone is not None:
        resolved[default_role_id(guild_id)] = everyone
    for role_id in stored_ids:
        role = registry.get(role_id)
        if role is not None and role_id not in resolved:
            resolved[role_id] = role
    return resolved


def role_id_of(role: Any) -> RoleId:
    """Normalize a role object or bare identifier to its RoleId."""
    if isinstance(role, str):
        return RoleId(role)
    role_id = getattr(role, "id", None)
    if isinstance(role_id, str):
        return RoleId(role_id)
    raise InvalidMemberArgumentError(
        f"Expected a role or role ID, got {type(role).__name__}", "roles",
    )


def normalize_role_ids(roles: Any, guild_id: GuildId) -> list[RoleId]:
    """Roles, IDs, or an ID→role mapping → ordered unique IDs without the guild ID.

    A bare string or role object is treated as a single role. A mapping must
    be keyed by each value's role ID, so a raw role payload is rejected.
    """
    if isinstance(roles, Mapping):
        items: Iterable[Any] = _registry_values(roles)
    elif isinstance(roles, str) or hasattr(roles, "id"):
        items = [roles]
    elif isinstance(roles, Iterable):
        items = roles
    else:
        raise InvalidMemberArgumentError(
            f"Expected roles or role IDs, got {type(roles).__name__}", "roles",
        )
    return _dedupe(
        (role_id_of(r) for r in items), exclude=default_role_id(guild_id),
    )


def union_role_ids(
    stored: Iterable[RoleId], additions: Iterable[RoleId],
) -> list[RoleId]:
    """Stored IDs in order, then additions not already present."""
    return _dedupe([*stored, *additions])


def subtract_role_ids(
    stored: Iterable[RoleId], removals: Iterable[RoleId],
) -> list[RoleId]:
    """Stored IDs minus removals; removing an absent ID is a no-op."""
    drop = set(removals)
    return [role_id for role_id in stored if role_id not in drop]


def _dedupe(ids: Iterable[RoleId], exclude: RoleId | None = None) -> list[RoleId]:
    seen: set[RoleId] = set()
    result: list[RoleId] = []
    for role_id in ids:
        if role_id == exclude or role_id in seen:
            continue
        seen.add(role_id)
        result.append(role_id)
    return result


def _registry_values(roles: Mapping[Any, Any]) -> list[Any]:
    for key, value in roles.items():
        if _role_id_or_none(value) != key:
            raise InvalidMemberArgumentError(
                f"Role mapping key {key!r} does not match its role's ID", "roles",
            )
    return list(roles.values())


def _role_id_or_none(role: Any) -> RoleId | None:
    try:
        return role_id_of(role)
    except InvalidMemberArgumentError:
        return None
