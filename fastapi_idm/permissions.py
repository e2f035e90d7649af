"""Wildcard permissions.

A permission is encoded as ``domain[:actions][:targets]``. Each colon-delimited
part is a set of comma-delimited tokens, and ``*`` in a part matches any token
in that position. A held permission with fewer parts than a requested one is
implicitly wildcarded for the remaining parts.
"""

from collections.abc import Iterable, Mapping
from enum import StrEnum
from typing import ClassVar

from fastapi_idm.exceptions import InvalidPermission

WILDCARD = "*"
PART_DIVIDER = ":"
SUBPART_DIVIDER = ","
DEFAULT_CASE_SENSITIVE = False


class PermissionKind(StrEnum):
    NAMED = "NamedPermission"


def domain_from_kind(kind: str) -> str:
    """Derive a domain from a kind tag: ``"FilePermission"`` becomes ``"file"``."""
    domain = kind.lower()
    index = domain.rfind("permission")
    if index != -1:
        domain = domain[:index]
    return domain


DOMAINS: dict[str, str] = {
    PermissionKind.NAMED: "named",
}


def register_kind(kind: str, domain: str | None = None) -> str:
    """Register the domain used by permission classes tagged with ``kind``."""
    resolved = domain if domain is not None else domain_from_kind(kind)
    if not resolved.strip():
        raise InvalidPermission(f"Permission kind {kind!r} does not yield a domain.")
    DOMAINS[kind] = resolved
    return resolved


def _to_csv(value: str | Iterable[str] | None) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        value = SUBPART_DIVIDER.join(value)
    return value if value.strip() else None


def _part_label(part: frozenset[str]) -> str:
    return SUBPART_DIVIDER.join(sorted(part))


def encode_parts(domain: str, actions: str | None = None, targets: str | None = None) -> str:
    """Build the wildcard string for a domain and optional actions/targets.

    Targets without actions get a wildcard actions part so targets always
    stay in position 2.
    """
    if domain is None or not domain.strip():
        raise InvalidPermission("domain argument cannot be null or empty.")

    segments = [domain]
    if actions:
        segments.append(actions)
    elif targets:
        segments.append(WILDCARD)
    if targets:
        segments.append(targets)
    return PART_DIVIDER.join(segments)


def parse_parts(wildcard: str, case_sensitive: bool = DEFAULT_CASE_SENSITIVE) -> tuple[frozenset[str], ...]:
    """Split a wildcard string into its ordered token sets.

    Raises:
        InvalidPermission: If the string is blank, holds only dividers, or
            any part holds no tokens.
    """
    if wildcard is None or not wildcard.strip():
        raise InvalidPermission(
            "Wildcard string cannot be null or empty. Make sure permission strings are properly formatted."
        )

    wildcard = wildcard.strip()
    if not wildcard.replace(PART_DIVIDER, "").replace(SUBPART_DIVIDER, "").strip():
        raise InvalidPermission(
            "Wildcard string cannot contain only dividers. Make sure permission strings are properly formatted."
        )

    parts: list[frozenset[str]] = []
    for part in wildcard.split(PART_DIVIDER):
        tokens = [token.strip() for token in part.split(SUBPART_DIVIDER) if token.strip()]
        if not tokens:
            raise InvalidPermission(
                "Wildcard string cannot contain parts with only dividers. "
                "Make sure permission strings are properly formatted."
            )
        if not case_sensitive:
            tokens = [token.lower() for token in tokens]
        parts.append(frozenset(tokens))
    return tuple(parts)


class NamedPermission:
    """A named wildcard permission.

    Args:
        name: Opaque label, not part of the permission's identity.
        actions: Comma-separated string or iterable of actions. Absent means all.
        targets: Comma-separated string or iterable of targets. Absent means all.
        domain: Explicit domain. Defaults to the domain registered for ``kind``.
            Case-folded like every other token, so ``domain`` always reads
            back as part 0.
        case_sensitive: Keep token case instead of lower-casing.

    Example:
        >>> NamedPermission("reports", "read,write").implies(NamedPermission("reports", "read"))
        True
    """

    __slots__ = ("name", "domain", "actions", "targets", "_parts")

    kind: ClassVar[str] = PermissionKind.NAMED

    def __init__(
        self,
        name: str,
        actions: str | Iterable[str] | None = None,
        targets: str | Iterable[str] | None = None,
        *,
        domain: str | None = None,
        case_sensitive: bool = DEFAULT_CASE_SENSITIVE,
    ) -> None:
        actions_csv = _to_csv(actions)
        targets_csv = _to_csv(targets)

        self.name = name
        raw_domain = domain if domain is not None else self.default_domain()
        self._parts = parse_parts(encode_parts(raw_domain, actions_csv, targets_csv), case_sensitive)
        # Attributes mirror the folded parts; targets always sit in part 2
        self.domain = _part_label(self._parts[0])
        self.actions = self._parts[1] if actions_csv else None
        self.targets = self._parts[2] if targets_csv else None

    @classmethod
    def default_domain(cls) -> str:
        return DOMAINS.get(cls.kind) or domain_from_kind(cls.kind)

    @classmethod
    def from_wildcard(
        cls,
        name: str,
        wildcard: str,
        *,
        case_sensitive: bool = DEFAULT_CASE_SENSITIVE,
    ) -> "NamedPermission":
        """Build a permission from a raw ``domain:actions:targets`` string."""
        parts = parse_parts(wildcard, case_sensitive)

        permission = cls.__new__(cls)
        permission.name = name
        permission.domain = _part_label(parts[0])
        permission.actions = parts[1] if len(parts) > 1 else None
        permission.targets = parts[2] if len(parts) > 2 else None
        permission._parts = parts
        return permission

    @property
    def parts(self) -> tuple[frozenset[str], ...]:
        return self._parts

    def implies(self, other: "NamedPermission") -> bool:
        """Check whether this (held) permission covers ``other`` (requested)."""
        parts = self._parts
        other_parts = other.parts

        for i, other_part in enumerate(other_parts):
            # Everything past our last part is implied
            if i >= len(parts):
                return True
            part = parts[i]
            if WILDCARD not in part and not part >= other_part:
                return False

        # Extra parts only imply the request when they are wildcards
        return all(WILDCARD in part for part in parts[len(other_parts) :])

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, NamedPermission):
            return NotImplemented
        return self._parts == other._parts

    def __hash__(self) -> int:
        return hash(self._parts)

    def __str__(self) -> str:
        return PART_DIVIDER.join(_part_label(part) for part in self._parts)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.name!r}, {str(self)!r})"


PermissionLike = NamedPermission | str


def as_permission(value: PermissionLike) -> NamedPermission:
    """Return ``value`` as a permission, parsing wildcard strings."""
    if isinstance(value, NamedPermission):
        return value
    return NamedPermission.from_wildcard(value, value)


def implies(held: PermissionLike, required: PermissionLike) -> bool:
    """Check if a held permission implies (grants) a required permission.

    Supports wildcards: 'report:*' implies 'report:read', 'report:delete', etc.
    A bare domain 'report' implies everything under it.
    """
    return as_permission(held).implies(as_permission(required))


def resolve_permissions(
    roles: Iterable[str],
    permissions_map: Mapping[str, Iterable[PermissionLike]],
) -> set[NamedPermission]:
    """Resolve all permissions mapped to a set of role names."""
    permissions: set[NamedPermission] = set()
    for role in roles:
        for permission in permissions_map.get(role, ()):
            permissions.add(as_permission(permission))
    return permissions


def has_permission(held: Iterable[PermissionLike], required: PermissionLike) -> bool:
    """Check if any held permission satisfies the required permission."""
    wanted = as_permission(required)
    return any(as_permission(permission).implies(wanted) for permission in held)
