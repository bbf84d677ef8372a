"""Domain Types — verifies identifier wrappers, bounds and enum values.

Tests:
    - NewType wrappers exist and are callable
    - MutationKind covers every request the executor routes
    - default_role_id mirrors the guild id
"""

from guildmember.core.domain_types import (
    GuildId, RoleId, ChannelId, UserId,
    MutationKind, MIN_DELETE_MESSAGE_DAYS, MAX_DELETE_MESSAGE_DAYS,
    default_role_id,
)


def test_identity_types_wrap_str():
    assert GuildId("1") == "1"
    assert RoleId("2") == "2"
    assert ChannelId("3") == "3"
    assert UserId("4") == "4"


def test_default_role_id_equals_guild_id():
    assert default_role_id(GuildId("G")) == RoleId("G")


def test_delete_message_days_bounds():
    assert MIN_DELETE_MESSAGE_DAYS == 0
    assert MAX_DELETE_MESSAGE_DAYS == 7


def test_mutation_kind_has_six_kinds():
    assert {k.value for k in MutationKind} == {
        "set_voice_state", "set_nickname", "set_roles",
        "edit_member", "remove_member", "delete_dm_channel",
    }


def test_enums_serialize_to_string():
    assert MutationKind.SET_ROLES.value == "set_roles"
    assert MutationKind("remove_member") is MutationKind.REMOVE_MEMBER
