"""Identity store contract and an in-memory implementation."""

import logging
from collections.abc import Iterator
from typing import Any, Final, Protocol

from fastapi_idm.exceptions import EntityExists, GroupNotEmpty, UnknownEntity
from fastapi_idm.model import Caller, Group, GroupMembership, Role, RoleGrant, Subject, subject_key

logger = logging.getLogger(__name__)


class _AnyParent:
    def __repr__(self) -> str:
        return "ANY_PARENT"


ANY_PARENT: Final[Any] = _AnyParent()
"""Sentinel for ``find_group``: match a group by name at any depth."""


class IdentityStore(Protocol):
    """Lookup and mutation capabilities the resolvers need from a store."""

    def find_caller(self, name: str) -> Caller | None: ...

    def find_role(self, name: str) -> Role | None: ...

    def find_group(self, name: str, parent: Group | None = ANY_PARENT) -> Group | None: ...

    def direct_groups(self, caller: Caller) -> set[Group]: ...

    def direct_roles(self, subject: Subject) -> set[Role]: ...

    def parent_of(self, group: Group) -> Group | None: ...

    def add_membership(self, caller: Caller, group: Group) -> None: ...

    def remove_membership(self, caller: Caller, group: Group) -> None: ...

    def add_grant(self, subject: Subject, role: Role) -> None: ...

    def remove_grant(self, subject: Subject, role: Role) -> None: ...


class InMemoryIdentityStore:
    """Identity store keeping everything in process memory.

    Groups live in an arena keyed by id with a parent-id index; a parent has
    to be stored before its children and never changes afterwards, so the
    tree cannot contain cycles.
    """

    def __init__(self) -> None:
        self._callers: dict[str, Caller] = {}
        self._roles: dict[str, Role] = {}
        self._groups: dict[str, Group] = {}
        self._children: dict[str | None, list[str]] = {None: []}
        self._memberships: set[GroupMembership] = set()
        self._grants: set[RoleGrant] = set()

    # Entities

    def add(self, entity: Caller | Role | Group) -> None:
        if isinstance(entity, Group):
            self._add_group(entity)
        elif isinstance(entity, Role):
            if entity.name in self._roles:
                raise EntityExists("role", entity.name)
            self._roles[entity.name] = entity
        else:
            if entity.name in self._callers:
                raise EntityExists("caller", entity.name)
            self._callers[entity.name] = entity
        logger.debug("Added %s", entity)

    def _add_group(self, group: Group) -> None:
        if group.id in self._groups:
            raise EntityExists("group", group.name)
        if group.parent_id is not None and group.parent_id not in self._groups:
            raise UnknownEntity("group", group.parent_id)
        siblings = self._children[group.parent_id]
        if any(self._groups[sibling].name == group.name for sibling in siblings):
            raise EntityExists("group", group.name)

        self._groups[group.id] = group
        self._children[group.id] = []
        siblings.append(group.id)

    def add_caller(self, name: str) -> Caller:
        caller = Caller(name=name)
        self.add(caller)
        return caller

    def add_role(self, name: str) -> Role:
        role = Role(name=name)
        self.add(role)
        return role

    def add_group(self, name: str, parent: Group | None = None) -> Group:
        group = Group(name=name, parent_id=parent.id if parent is not None else None)
        self.add(group)
        return group

    def remove(self, entity: Caller | Role | Group) -> None:
        """Remove an entity together with every relationship that references it."""
        if isinstance(entity, Group):
            if entity.id not in self._groups:
                raise UnknownEntity("group", entity.name)
            if self._children[entity.id]:
                raise GroupNotEmpty(entity.name)
            del self._groups[entity.id]
            del self._children[entity.id]
            self._children[entity.parent_id].remove(entity.id)
            self._memberships = {m for m in self._memberships if m.group_id != entity.id}
            self._grants = {g for g in self._grants if (g.subject_kind, g.subject_id) != subject_key(entity)}
        elif isinstance(entity, Role):
            if self._roles.pop(entity.name, None) is None:
                raise UnknownEntity("role", entity.name)
            self._grants = {g for g in self._grants if g.role != entity.name}
        else:
            if self._callers.pop(entity.name, None) is None:
                raise UnknownEntity("caller", entity.name)
            self._memberships = {m for m in self._memberships if m.caller != entity.name}
            self._grants = {g for g in self._grants if (g.subject_kind, g.subject_id) != subject_key(entity)}
        logger.debug("Removed %s", entity)

    def callers(self) -> Iterator[Caller]:
        return iter(list(self._callers.values()))

    def roles(self) -> Iterator[Role]:
        return iter(list(self._roles.values()))

    def groups(self) -> Iterator[Group]:
        return iter(list(self._groups.values()))

    def children_of(self, group: Group | None) -> list[Group]:
        """Direct child groups; ``None`` lists the root groups."""
        key = group.id if group is not None else None
        return [self._groups[child] for child in self._children.get(key, [])]

    # Lookups

    def find_caller(self, name: str) -> Caller | None:
        return self._callers.get(name)

    def find_role(self, name: str) -> Role | None:
        return self._roles.get(name)

    def find_group(self, name: str, parent: Group | None = ANY_PARENT) -> Group | None:
        if parent is ANY_PARENT:
            candidates = self._groups.keys()
        elif parent is None:
            candidates = self._children[None]
        else:
            candidates = self._children.get(parent.id, [])

        for group_id in candidates:
            group = self._groups[group_id]
            if group.name == name:
                return group
        return None

    def direct_groups(self, caller: Caller) -> set[Group]:
        return {self._groups[m.group_id] for m in self._memberships if m.caller == caller.name}

    def direct_roles(self, subject: Subject) -> set[Role]:
        kind, subject_id = subject_key(subject)
        return {
            self._roles[g.role]
            for g in self._grants
            if g.subject_kind == kind and g.subject_id == subject_id
        }

    def parent_of(self, group: Group) -> Group | None:
        if group.parent_id is None:
            return None
        return self._groups.get(group.parent_id)

    # Relationships

    def add_membership(self, caller: Caller, group: Group) -> None:
        self._require_caller(caller)
        self._require_group(group)
        self._memberships.add(GroupMembership(caller=caller.name, group_id=group.id))
        logger.debug("Added caller %r to group %r", caller.name, group.name)

    def remove_membership(self, caller: Caller, group: Group) -> None:
        self._memberships.discard(GroupMembership(caller=caller.name, group_id=group.id))
        logger.debug("Removed caller %r from group %r", caller.name, group.name)

    def add_grant(self, subject: Subject, role: Role) -> None:
        if isinstance(subject, Group):
            self._require_group(subject)
        else:
            self._require_caller(subject)
        if role.name not in self._roles:
            raise UnknownEntity("role", role.name)
        kind, subject_id = subject_key(subject)
        self._grants.add(RoleGrant(subject_kind=kind, subject_id=subject_id, role=role.name))
        logger.debug("Granted role %r to %s %r", role.name, kind, subject.name)

    def remove_grant(self, subject: Subject, role: Role) -> None:
        kind, subject_id = subject_key(subject)
        self._grants.discard(RoleGrant(subject_kind=kind, subject_id=subject_id, role=role.name))
        logger.debug("Revoked role %r from %s %r", role.name, kind, subject.name)

    def _require_caller(self, caller: Caller) -> None:
        if caller.name not in self._callers:
            raise UnknownEntity("caller", caller.name)

    def _require_group(self, group: Group) -> None:
        if group.id not in self._groups:
            raise UnknownEntity("group", group.name)
