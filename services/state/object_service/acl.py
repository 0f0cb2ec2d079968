"""ACL delta helpers.

A delta is applied as "remove, then add" over (principal, permission)
grants. Inherited (non-direct) entries are never touched by a delta.
"""

from __future__ import annotations

from itertools import groupby
from typing import Iterable

from services.state.object_service.domain import Ace, Acl, AclDelta

Grant = tuple[str, str]


def acl_delta(*, add: Iterable[Ace] = (), remove: Iterable[Ace] = ()) -> AclDelta:
    """Build a normalized delta from separate add and remove lists."""
    return normalize_delta(AclDelta(to_add=tuple(add), to_remove=tuple(remove)))


def grants(aces: Iterable[Ace]) -> frozenset[Grant]:
    """Flatten ACEs into (principal, permission) grants."""
    return frozenset(
        (ace.principal_id, permission) for ace in aces for permission in ace.permissions
    )


def aces_from_grants(items: Iterable[Grant]) -> tuple[Ace, ...]:
    """Group grants back into one direct ACE per principal, sorted by principal."""
    ordered = sorted(items)
    return tuple(
        Ace(
            principal_id=principal_id,
            permissions=frozenset(permission for _, permission in group),
        )
        for principal_id, group in groupby(ordered, key=lambda item: item[0])
    )


def is_empty(delta: AclDelta) -> bool:
    return len(delta.to_add) == 0 and len(delta.to_remove) == 0


def normalize_delta(delta: AclDelta) -> AclDelta:
    """Coalesce entries per principal and drop removals the delta re-adds."""
    added = grants(delta.to_add)
    removed = grants(delta.to_remove) - added
    return AclDelta(to_add=aces_from_grants(added), to_remove=aces_from_grants(removed))


def apply_delta(acl: Acl, delta: AclDelta) -> Acl:
    """Return ``acl`` with ``delta`` applied to its direct entries."""
    inherited = tuple(ace for ace in acl.aces if not ace.direct)
    direct = grants(ace for ace in acl.aces if ace.direct)
    result = (direct - grants(delta.to_remove)) | grants(delta.to_add)
    return Acl(aces=(*aces_from_grants(result), *inherited), is_exact=acl.is_exact)


def merge_deltas(first: AclDelta, second: AclDelta) -> AclDelta:
    """Compose two deltas so applying the result equals applying both in order."""
    removed_second = grants(second.to_remove)
    added = (grants(first.to_add) - removed_second) | grants(second.to_add)
    removed = (grants(first.to_remove) | removed_second) - added
    return AclDelta(to_add=aces_from_grants(added), to_remove=aces_from_grants(removed))


def delta_between(before: Acl, after: Acl) -> AclDelta:
    """Return the delta turning the direct entries of ``before`` into ``after``."""
    old = grants(ace for ace in before.aces if ace.direct)
    new = grants(ace for ace in after.aces if ace.direct)
    return AclDelta(
        to_add=aces_from_grants(new - old), to_remove=aces_from_grants(old - new)
    )
