"""Group tree traversal, path resolution and membership.

Membership propagates up the tree: a direct member of a group is also a
member of every ancestor of that group, but not of its descendants or of
unrelated branches.
"""

from collections.abc import Iterator

from fastapi_idm.model import Caller, Group
from fastapi_idm.store import IdentityStore

PATH_SEPARATOR = "/"


def ancestors_inclusive(store: IdentityStore, group: Group) -> Iterator[Group]:
    """Yield ``group``, its parent, grandparent and so on up to the root."""
    current: Group | None = group
    while current is not None:
        yield current
        current = store.parent_of(current)


def group_path(store: IdentityStore, group: Group) -> str:
    """Render the name chain from the root, e.g. ``/manager/user``."""
    names = [g.name for g in ancestors_inclusive(store, group)]
    return PATH_SEPARATOR + PATH_SEPARATOR.join(reversed(names))


def find_group(store: IdentityStore, name: str, parent: Group | None) -> Group | None:
    """Find a group by simple name under an explicit parent.

    ``parent=None`` only matches root groups.
    """
    return store.find_group(name, parent)


def resolve_group(store: IdentityStore, path: str) -> Group | None:
    """Resolve a group path such as ``/manager/user``.

    Paths without a leading separator are resolved from the root, so a bare
    ``manager`` only finds a root group. Every segment must name a group:
    ``/manager/`` has an empty trailing segment and is not found.
    """
    if not path:
        return None
    if path.startswith(PATH_SEPARATOR):
        path = path[len(PATH_SEPARATOR) :]

    group: Group | None = None
    for segment in path.split(PATH_SEPARATOR):
        if not segment:
            return None
        group = store.find_group(segment, group)
        if group is None:
            return None
    return group


def effective_membership_ancestry(store: IdentityStore, caller: Caller) -> set[Group]:
    """All groups the caller belongs to, directly or through a descendant group."""
    groups: set[Group] = set()
    for direct in store.direct_groups(caller):
        groups.update(ancestors_inclusive(store, direct))
    return groups


def is_member(store: IdentityStore, caller: Caller | None, group: Group | None) -> bool:
    if caller is None or group is None:
        return False
    return group in effective_membership_ancestry(store, caller)
