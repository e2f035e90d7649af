from fastapi import HTTPException


class InvalidPermission(ValueError):
    """Malformed permission literal."""


class InvalidCredentials(ValueError):
    """Malformed authentication header."""


class IdentityStoreError(Exception):
    """Base class for mutations rejected by an identity store."""


class UnknownEntity(IdentityStoreError):
    def __init__(self, kind: str, name: str) -> None:
        super().__init__(f"Unknown {kind}: {name!r}")
        self.kind = kind
        self.name = name


class EntityExists(IdentityStoreError):
    def __init__(self, kind: str, name: str) -> None:
        super().__init__(f"{kind.capitalize()} already exists: {name!r}")
        self.kind = kind
        self.name = name


class GroupNotEmpty(IdentityStoreError):
    def __init__(self, path: str) -> None:
        super().__init__(f"Group still has child groups: {path!r}")
        self.path = path


class Forbidden(HTTPException):
    """403 Forbidden - caller lacks required permissions, roles or groups."""

    def __init__(self, detail: str = "Forbidden") -> None:
        super().__init__(status_code=403, detail=detail)
