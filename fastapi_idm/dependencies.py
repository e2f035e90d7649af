import logging
from collections.abc import Awaitable, Callable, Coroutine, Iterable
from typing import TYPE_CHECKING, Annotated, Any, TypeVar

from fastapi import Depends, Request

from fastapi_idm.exceptions import Forbidden
from fastapi_idm.permissions import PermissionLike, as_permission, has_permission

if TYPE_CHECKING:
    from fastapi_idm.core import IdentityAuthz

UserT = TypeVar("UserT")

logger = logging.getLogger(__name__)


def IdentityUser(request: Request) -> Any:
    """Return the user an auth dependency left on request.state.user.

    Use it in handlers that run after create_auth_dependency() or after the
    application's own authentication middleware.

    Raises:
        Forbidden: If no user is found in request state.
    """
    user = getattr(request.state, "user", None)
    if user is None:
        raise Forbidden("User not authenticated")
    return user


def create_auth_dependency(
    authz: "IdentityAuthz[UserT]",
    user_dependency: Callable[..., UserT] | Callable[..., Awaitable[UserT]],
) -> Callable[..., Coroutine[Any, Any, UserT]]:
    """Create an auth dependency bound to the identity store of ``authz``.

    The returned dependency runs ``user_dependency``, rejects users whose
    caller name is not in the store, and records both the user and the
    resolved caller on ``request.state`` (``user`` and ``caller``).

    Args:
        authz: The IdentityAuthz whose store knows the application's callers.
        user_dependency: A FastAPI dependency that returns the authenticated user.

    Returns:
        A dependency that can be used with Depends() in endpoint signatures.

    Raises:
        Forbidden: If the user has no caller in the identity store.
    """

    async def auth_dependency(
        request: Request,
        user: Annotated[UserT, Depends(user_dependency)],
    ) -> UserT:
        caller = authz.caller_for(user)
        if caller is None:
            logger.debug("Rejected user without caller %r", authz.get_caller_name(user))
            raise Forbidden("Unknown caller")
        request.state.user = user
        request.state.caller = caller
        return user

    return auth_dependency


async def _user_dependency_placeholder(request: Request) -> Any:
    """Stand-in for the user dependency given to IdentityAuthz.

    IdentityAuthz registers its ``user_dependency`` as an override of this
    function. Apps that authenticate elsewhere leave it in place, and it then
    returns request.state.user, or None so require() answers 403.
    """
    return getattr(request.state, "user", None)


def evaluate_access(
    user: Any,
    authz: "IdentityAuthz[Any]",
    permissions: Iterable[PermissionLike] = (),
    roles: Iterable[str] = (),
    groups: Iterable[str] = (),
) -> None:
    """Raise Forbidden unless the user meets every requirement.

    Args:
        user: The authenticated user object.
        authz: The IdentityAuthz configuration instance.
        permissions: Permissions the user's roles must imply.
        roles: Role names the user's caller must hold.
        groups: Group paths the user's caller must be a member of.

    Raises:
        Forbidden: If the user is unknown to the store or misses a requirement.
    """
    caller = authz.caller_for(user)
    if caller is None:
        logger.debug("Denied unknown caller %r", authz.get_caller_name(user))
        raise Forbidden()

    for role in roles:
        if not authz.has_role(user, role):
            logger.debug("Denied %r: missing role %r", caller.name, role)
            raise Forbidden()

    for group in groups:
        if not authz.is_member(user, group):
            logger.debug("Denied %r: not a member of %r", caller.name, group)
            raise Forbidden()

    permissions = list(permissions)
    if not permissions:
        return

    held = authz.permissions_for(user)
    for required in permissions:
        if not has_permission(held, required):
            logger.debug("Denied %r: missing permission %s", caller.name, required)
            raise Forbidden()


def require(
    permissions: Iterable[PermissionLike] | None = None,
    roles: Iterable[str] | None = None,
    groups: Iterable[str] | None = None,
) -> Callable[..., Coroutine[Any, Any, None]]:
    """Create an authorization dependency.

    Usage:
        @app.get("/reports", dependencies=[Depends(require(permissions={"report:read"}))])
        async def list_reports() -> list[Report]: ...

    Args:
        permissions: Permissions the user's roles must imply.
        roles: Role names the user must hold, directly or through a group.
        groups: Group paths the user must belong to.

    Returns:
        An async dependency function for use with FastAPI's Depends().

    Raises:
        RuntimeError: If nothing is required.
        InvalidPermission: If a permission literal is malformed.
    """
    required_permissions = [as_permission(permission) for permission in permissions or ()]
    required_roles = list(roles or ())
    required_groups = list(groups or ())

    if not required_permissions and not required_roles and not required_groups:
        raise RuntimeError("Endpoint must be protected with permissions, roles or groups")

    async def authz_dependency(
        request: Request,
        user: Annotated[Any, Depends(_user_dependency_placeholder)],
    ) -> None:
        authz = getattr(request.app.state, "authz", None)
        if authz is None:
            raise RuntimeError("IdentityAuthz not configured. Make sure to create an IdentityAuthz instance with your app.")

        if user is None:
            raise Forbidden("User not authenticated")

        evaluate_access(user, authz, required_permissions, required_roles, required_groups)

    return authz_dependency
