"""Identity entities and the relationships between them."""

from typing import Literal
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

SubjectKind = Literal["caller", "group"]


class Caller(BaseModel):
    """An authenticated principal, identified by name."""

    model_config = ConfigDict(frozen=True)

    name: str


class Role(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str


class Group(BaseModel):
    """A node of the group tree.

    The parent is referenced by id only; resolve it through the identity store.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    parent_id: str | None = None
    id: str = Field(default_factory=lambda: uuid4().hex)

    @property
    def is_root(self) -> bool:
        return self.parent_id is None


Subject = Caller | Group


class GroupMembership(BaseModel):
    """A caller is a direct member of a group."""

    model_config = ConfigDict(frozen=True)

    caller: str
    group_id: str


class RoleGrant(BaseModel):
    """A role is directly granted to a caller or a group."""

    model_config = ConfigDict(frozen=True)

    subject_kind: SubjectKind
    subject_id: str
    role: str


def subject_key(subject: Subject) -> tuple[SubjectKind, str]:
    """Return the ``(kind, id)`` pair a grant uses to reference its subject."""
    if isinstance(subject, Group):
        return "group", subject.id
    return "caller", subject.name
