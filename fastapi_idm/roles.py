"""Role grants and lookups by name.

Grants propagate down the group tree: a role granted to a group is held by
every descendant group and by every caller whose membership reaches that
group. A grant never flows up to a parent. Nothing is materialized; every
query reads the store as it is now.
"""

from fastapi_idm.groups import ancestors_inclusive, effective_membership_ancestry, resolve_group
from fastapi_idm.model import Caller, Group, Role, Subject
from fastapi_idm.store import IdentityStore


def get_caller(store: IdentityStore, name: str) -> Caller | None:
    return store.find_caller(name)


def get_role(store: IdentityStore, name: str) -> Role | None:
    return store.find_role(name)


def get_group(store: IdentityStore, path: str) -> Group | None:
    return resolve_group(store, path)


def group_has_role(store: IdentityStore, group: Group, role: Role) -> bool:
    return any(role in store.direct_roles(g) for g in ancestors_inclusive(store, group))


def caller_has_role(store: IdentityStore, caller: Caller, role: Role) -> bool:
    if role in store.direct_roles(caller):
        return True
    return any(group_has_role(store, group, role) for group in effective_membership_ancestry(store, caller))


def has_role(store: IdentityStore, subject: Subject | None, role: Role | None) -> bool:
    """Check whether a caller or group holds ``role``. Unknown entities hold nothing."""
    if subject is None or role is None:
        return False
    if isinstance(subject, Group):
        return group_has_role(store, subject, role)
    return caller_has_role(store, subject, role)


def roles_of(store: IdentityStore, subject: Subject) -> set[Role]:
    """Every role ``subject`` holds, directly or through the group tree."""
    if isinstance(subject, Group):
        groups = set(ancestors_inclusive(store, subject))
        roles: set[Role] = set()
    else:
        groups = effective_membership_ancestry(store, subject)
        roles = set(store.direct_roles(subject))
    for group in groups:
        roles.update(store.direct_roles(group))
    return roles


def grant_role(store: IdentityStore, subject: Subject, role: Role) -> None:
    store.add_grant(subject, role)


def revoke_role(store: IdentityStore, subject: Subject, role: Role) -> None:
    store.remove_grant(subject, role)


def add_to_group(store: IdentityStore, caller: Caller, group: Group) -> None:
    store.add_membership(caller, group)


def remove_from_group(store: IdentityStore, caller: Caller, group: Group) -> None:
    store.remove_membership(caller, group)
