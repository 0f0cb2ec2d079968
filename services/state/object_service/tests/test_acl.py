"""Unit tests for ACL delta composition helpers."""

from __future__ import annotations

from services.state.object_service.acl import (
    acl_delta,
    apply_delta,
    delta_between,
    grants,
    is_empty,
    merge_deltas,
    normalize_delta,
)
from services.state.object_service.domain import Ace, Acl, AclDelta


def _ace(principal: str, *permissions: str, direct: bool = True) -> Ace:
    return Ace(
        principal_id=principal, permissions=frozenset(permissions), direct=direct
    )


def test_normalize_delta_coalesces_principals_and_drops_readded_removals() -> None:
    """Entries per principal merge; re-added grants are not removed."""
    delta = normalize_delta(
        AclDelta(
            to_add=(_ace("bob", "read"), _ace("alice", "read"), _ace("bob", "write")),
            to_remove=(_ace("bob", "read", "all"),),
        )
    )

    assert delta.to_add == (_ace("alice", "read"), _ace("bob", "read", "write"))
    assert delta.to_remove == (_ace("bob", "all"),)


def test_apply_delta_removes_then_adds_and_keeps_inherited_entries() -> None:
    """Only direct entries are edited by a delta."""
    acl = Acl(
        aces=(_ace("alice", "read", "write"), _ace("group", "read", direct=False)),
        is_exact=True,
    )

    result = apply_delta(
        acl,
        acl_delta(add=[_ace("bob", "read")], remove=[_ace("alice", "write")]),
    )

    assert result.aces == (
        _ace("alice", "read"),
        _ace("bob", "read"),
        _ace("group", "read", direct=False),
    )
    assert result.is_exact is True


def test_merge_deltas_matches_sequential_application() -> None:
    """Applying a merged delta equals applying both deltas in order."""
    acl = Acl(aces=(_ace("alice", "read"), _ace("bob", "write")))
    first = acl_delta(add=[_ace("carol", "read")], remove=[_ace("alice", "read")])
    second = acl_delta(add=[_ace("alice", "read")], remove=[_ace("carol", "read")])

    merged = merge_deltas(first, second)

    assert apply_delta(acl, merged) == apply_delta(apply_delta(acl, first), second)
    assert grants(merged.to_add) == {("alice", "read")}
    assert grants(merged.to_remove) == {("carol", "read")}


def test_delta_between_round_trips_direct_entries() -> None:
    """The computed delta turns one ACL's direct entries into the other's."""
    before = Acl(aces=(_ace("alice", "read", "write"), _ace("bob", "read")))
    after = Acl(aces=(_ace("alice", "read"), _ace("carol", "read")))

    delta = delta_between(before, after)

    assert apply_delta(before, delta).aces == after.aces
    assert is_empty(delta_between(after, after)) is True
