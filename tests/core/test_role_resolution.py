"""Role Resolution — tests for the effective-role view and ID list arithmetic.

Tests cover:
    - Default role first, stored order after, unresolved IDs dropped
    - Fresh dict per call; registry changes visible without refresh
    - Normalization of roles, IDs and mappings (dedupe, guild ID dropped)
    - union keeps order and skips duplicates; subtract ignores absent IDs
"""

import pytest

from guildmember.core.errors import InvalidMemberArgumentError
from guildmember.core.role_resolution import (
    normalize_role_ids,
    resolve_effective_roles,
    role_id_of,
    subtract_role_ids,
    union_role_ids,
)
from tests.fakes import FakeRole


def _registry(*ids):
    return {i: FakeRole(i) for i in ids}


# ─── resolve_effective_roles ─────────────────────────────────────

def test_default_role_first_then_stored_order():
    registry = _registry("R2", "R1", "G")
    roles = resolve_effective_roles("G", ["R1", "R2"], registry)
    assert list(roles) == ["G", "R1", "R2"]


def test_default_role_present_with_empty_stored_list():
    roles = resolve_effective_roles("G", [], _registry("G"))
    assert list(roles) == ["G"]


@pytest.mark.parametrize("order", [("G", "R1"), ("R1", "G")])
def test_default_role_independent_of_registry_order(order):
    roles = resolve_effective_roles("G", ["R1"], _registry(*order))
    assert next(iter(roles)) == "G"


def test_unresolved_ids_silently_dropped():
    roles = resolve_effective_roles("G", ["R1", "R2"], _registry("G", "R1"))
    assert list(roles) == ["G", "R1"]


def test_missing_default_role_is_absent_not_error():
    roles = resolve_effective_roles("G", ["R1"], _registry("R1"))
    assert list(roles) == ["R1"]


def test_returns_new_dict_each_call():
    registry = _registry("G", "R1")
    first = resolve_effective_roles("G", ["R1"], registry)
    first.clear()
    second = resolve_effective_roles("G", ["R1"], registry)
    assert list(second) == ["G", "R1"]


def test_registry_deletion_visible_on_next_call():
    registry = _registry("G", "R1", "R2")
    assert "R2" in resolve_effective_roles("G", ["R1", "R2"], registry)
    del registry["R2"]
    assert "R2" not in resolve_effective_roles("G", ["R1", "R2"], registry)


def test_values_are_registry_objects():
    registry = _registry("G", "R1")
    roles = resolve_effective_roles("G", ["R1"], registry)
    assert roles["R1"] is registry["R1"]


# ─── normalization ───────────────────────────────────────────────

def test_role_id_of_accepts_objects_and_strings():
    assert role_id_of("R1") == "R1"
    assert role_id_of(FakeRole("R2")) == "R2"


def test_role_id_of_rejects_other_types():
    with pytest.raises(InvalidMemberArgumentError) as exc:
        role_id_of(42)
    assert exc.value.field == "roles"


def test_normalize_mixed_list():
    assert normalize_role_ids(["R1", FakeRole("R2")], "G") == ["R1", "R2"]


def test_normalize_mapping_uses_values():
    roles = {"R1": FakeRole("R1"), "R2": FakeRole("R2")}
    assert normalize_role_ids(roles, "G") == ["R1", "R2"]


def test_normalize_mapping_keys_must_match_role_ids():
    with pytest.raises(InvalidMemberArgumentError):
        normalize_role_ids({"id": "R3", "name": "mods"}, "G")


def test_normalize_drops_duplicates_and_guild_id():
    assert normalize_role_ids(["R1", "G", "R1", "R2"], "G") == ["R1", "R2"]


def test_normalize_single_role_or_id():
    assert normalize_role_ids("R1", "G") == ["R1"]
    assert normalize_role_ids(FakeRole("R1"), "G") == ["R1"]


def test_normalize_rejects_non_iterable():
    with pytest.raises(InvalidMemberArgumentError):
        normalize_role_ids(3, "G")


# ─── union / subtract ────────────────────────────────────────────

def test_union_appends_new_in_argument_order():
    assert union_role_ids(["R1", "R2"], ["R4", "R3"]) == ["R1", "R2", "R4", "R3"]


def test_union_skips_existing():
    assert union_role_ids(["R1", "R2"], ["R2", "R1"]) == ["R1", "R2"]


def test_subtract_preserves_order():
    assert subtract_role_ids(["R1", "R2", "R3"], ["R2"]) == ["R1", "R3"]


def test_subtract_absent_is_noop():
    assert subtract_role_ids(["R1"], ["R9"]) == ["R1"]
