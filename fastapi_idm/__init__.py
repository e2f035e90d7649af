"""FastAPI identity authorization - wildcard permissions, group trees and role grants."""

__version__ = "0.1.0"

from fastapi_idm.core import IdentityAuthz
from fastapi_idm.dependencies import (
    IdentityUser,
    create_auth_dependency,
    evaluate_access,
    require,
)
from fastapi_idm.events import Authentication, PasswordAuthentication
from fastapi_idm.exceptions import (
    EntityExists,
    Forbidden,
    GroupNotEmpty,
    IdentityStoreError,
    InvalidCredentials,
    InvalidPermission,
    UnknownEntity,
)
from fastapi_idm.groups import (
    ancestors_inclusive,
    effective_membership_ancestry,
    find_group,
    group_path,
    is_member,
    resolve_group,
)
from fastapi_idm.model import Caller, Group, GroupMembership, Role, RoleGrant
from fastapi_idm.permissions import (
    NamedPermission,
    PermissionKind,
    has_permission,
    implies,
    register_kind,
    resolve_permissions,
)
from fastapi_idm.roles import (
    add_to_group,
    caller_has_role,
    get_caller,
    get_group,
    get_role,
    grant_role,
    group_has_role,
    has_role,
    remove_from_group,
    revoke_role,
    roles_of,
)
from fastapi_idm.store import ANY_PARENT, IdentityStore, InMemoryIdentityStore

__all__ = [
    "IdentityAuthz",
    "IdentityUser",
    "create_auth_dependency",
    "evaluate_access",
    "require",
    "Authentication",
    "PasswordAuthentication",
    "Forbidden",
    "InvalidPermission",
    "InvalidCredentials",
    "IdentityStoreError",
    "UnknownEntity",
    "EntityExists",
    "GroupNotEmpty",
    "NamedPermission",
    "PermissionKind",
    "register_kind",
    "implies",
    "has_permission",
    "resolve_permissions",
    "Caller",
    "Role",
    "Group",
    "GroupMembership",
    "RoleGrant",
    "IdentityStore",
    "InMemoryIdentityStore",
    "ANY_PARENT",
    "ancestors_inclusive",
    "effective_membership_ancestry",
    "find_group",
    "group_path",
    "is_member",
    "resolve_group",
    "get_caller",
    "get_role",
    "get_group",
    "has_role",
    "caller_has_role",
    "group_has_role",
    "roles_of",
    "grant_role",
    "revoke_role",
    "add_to_group",
    "remove_from_group",
]
