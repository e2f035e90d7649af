from collections.abc import Awaitable, Callable, Iterable
from typing import Generic, TypeVar

from fastapi import FastAPI

from fastapi_idm import groups, roles
from fastapi_idm.dependencies import _user_dependency_placeholder
from fastapi_idm.model import Caller
from fastapi_idm.permissions import NamedPermission, PermissionLike, as_permission, has_permission, resolve_permissions
from fastapi_idm.store import IdentityStore

UserT = TypeVar("UserT")


class IdentityAuthz(Generic[UserT]):
    """Main authorization configuration.

    Attaches to a FastAPI application and answers permission, role and group
    questions about the application's users against an identity store.

    Args:
        app: The FastAPI application instance.
        store: Identity store holding callers, roles, groups and their relationships.
        get_caller_name: Callable that extracts the caller name from a user object.
        permissions: Mapping of role names to the permissions the role carries.
            Strings are parsed as wildcard permissions.
        user_dependency: Optional FastAPI dependency that returns the authenticated user.
            When provided, protected endpoints run this dependency before
            authorization checks.
    """

    def __init__(
        self,
        app: FastAPI,
        store: IdentityStore,
        get_caller_name: Callable[[UserT], str],
        permissions: dict[str, Iterable[PermissionLike]] | None = None,
        user_dependency: Callable[..., UserT] | Callable[..., Awaitable[UserT]] | None = None,
    ) -> None:
        self.app = app
        self.store = store
        self.get_caller_name = get_caller_name
        # Parse up front so malformed literals fail at startup
        self.permissions: dict[str, set[NamedPermission]] = {
            role: {as_permission(permission) for permission in granted}
            for role, granted in (permissions or {}).items()
        }
        self.user_dependency = user_dependency

        app.state.authz = self

        # Swap the placeholder for the real user dependency in every protected endpoint
        if user_dependency is not None:
            app.dependency_overrides[_user_dependency_placeholder] = user_dependency

    def caller_for(self, user: UserT) -> Caller | None:
        return self.store.find_caller(self.get_caller_name(user))

    def roles_for(self, user: UserT) -> set[str]:
        """Names of every role the user's caller holds, including inherited ones."""
        caller = self.caller_for(user)
        if caller is None:
            return set()
        return {role.name for role in roles.roles_of(self.store, caller)}

    def permissions_for(self, user: UserT) -> set[NamedPermission]:
        return resolve_permissions(self.roles_for(user), self.permissions)

    def is_permitted(self, user: UserT, permission: PermissionLike) -> bool:
        return has_permission(self.permissions_for(user), permission)

    def has_role(self, user: UserT, role: str) -> bool:
        return roles.has_role(self.store, self.caller_for(user), self.store.find_role(role))

    def is_member(self, user: UserT, group_path: str) -> bool:
        return groups.is_member(self.store, self.caller_for(user), groups.resolve_group(self.store, group_path))

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(roles={sorted(self.permissions)!r})"
