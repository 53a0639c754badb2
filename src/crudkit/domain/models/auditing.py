"""Audit capability traits.

Three independent capabilities, each a pair of fields written only by the
repository:

  Creatable  : created_by_id / created_at    (set once, at add)
  Modifiable : modified_by_id / modified_at  (set on every update)
  Deletable  : deleted_by_id / deleted_at    (set on soft delete, cleared on restore)

Auditable composes all three.  Within each pair both fields are present or
both absent; a half-populated pair fails validation.  All timestamps are
timezone-aware (UTC by convention; naive datetimes are rejected).

Entity types opt in by listing the capabilities they need next to Entity:

    class AuditLogLine(Entity[int], Creatable[int]): ...
    class Product(AuditableNamedEntity[UUID, UUID]): ...

Repository code branches on has_capability(), never on hierarchy position.
"""

from __future__ import annotations

from typing import Any, Generic, TypeVar
from uuid import UUID

from pydantic import AwareDatetime, BaseModel, ConfigDict, model_validator

from .identity import Entity, KeyT, Named

UserKeyT = TypeVar("UserKeyT")


def _check_pair(model: BaseModel, by_field: str, at_field: str) -> None:
    by_set = getattr(model, by_field) is not None
    at_set = getattr(model, at_field) is not None
    if by_set != at_set:
        raise ValueError(
            f"{by_field} and {at_field} must be set together or not at all"
        )


class Creatable(BaseModel, Generic[UserKeyT]):
    """Creation record.

    Both fields are unset while the entity is transient and are stamped by
    the repository on add.  Nothing in this layer rewrites them afterwards.
    """

    model_config = ConfigDict(frozen=True)

    created_by_id: UserKeyT | None = None
    created_at: AwareDatetime | None = None

    @model_validator(mode="after")
    def _creation_pair(self) -> Creatable[UserKeyT]:
        _check_pair(self, "created_by_id", "created_at")
        return self


class Modifiable(BaseModel, Generic[UserKeyT]):
    """Modification record.

    Absent until the first update; modified_at doubles as the optimistic
    concurrency token.
    """

    model_config = ConfigDict(frozen=True)

    modified_by_id: UserKeyT | None = None
    modified_at: AwareDatetime | None = None

    @model_validator(mode="after")
    def _modification_pair(self) -> Modifiable[UserKeyT]:
        _check_pair(self, "modified_by_id", "modified_at")
        return self


class Deletable(BaseModel, Generic[UserKeyT]):
    """Deletion record.  deleted_at being set is the sole soft-delete signal."""

    model_config = ConfigDict(frozen=True)

    deleted_by_id: UserKeyT | None = None
    deleted_at: AwareDatetime | None = None

    @model_validator(mode="after")
    def _deletion_pair(self) -> Deletable[UserKeyT]:
        _check_pair(self, "deleted_by_id", "deleted_at")
        return self

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None


class Auditable(
    Creatable[UserKeyT], Modifiable[UserKeyT], Deletable[UserKeyT], Generic[UserKeyT]
):
    """Full audit trail: Creatable + Modifiable + Deletable."""


class AuditableEntity(Entity[KeyT], Auditable[UserKeyT], Generic[KeyT, UserKeyT]):
    """An entity with a full audit trail."""


class AuditableNamedEntity(
    Entity[KeyT], Named, Auditable[UserKeyT], Generic[KeyT, UserKeyT]
):
    """A named entity with a full audit trail."""


# Guid-keyed shorthands: the recommended default for new entity types.
SimpleAuditableEntity = AuditableEntity[UUID, UUID]
SimpleAuditableNamedEntity = AuditableNamedEntity[UUID, UUID]


def has_capability(subject: Any, capability: type) -> bool:
    """Whether an entity (instance or class) declares the given capability."""
    if isinstance(subject, type):
        return issubclass(subject, capability)
    return isinstance(subject, capability)


def is_deleted(entity: Any) -> bool:
    """True only for Deletable entities whose deletion record is present."""
    return isinstance(entity, Deletable) and entity.deleted_at is not None
