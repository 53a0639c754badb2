"""Generic repository base interface.

Repository[E, K] is the uniform CRUD contract every backend implements and
every controller programs against.  Concrete implementations live in
crudkit.infrastructure (in-memory reference, SQLAlchemy).

Design notes:
  - All methods are async to accommodate async database drivers.
  - E is a domain Entity[K] (never an ORM row or DTO); it may additionally
    declare Creatable / Modifiable / Deletable.  Capability-specific
    behaviour is gated on what E declares, not on per-type subclasses.
  - Soft-deleted rows are invisible to every read unless include_deleted is
    passed explicitly (admin / bypass reads only).
  - Audit fields are written only here; callers' values for them are ignored.
  - No method retries.  Failures surface as crudkit.domain.errors kinds.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Generic, TypeVar

from crudkit.domain.models.identity import Entity
from crudkit.domain.models.query import PagedResult, QueryConfig

EntityT = TypeVar("EntityT", bound=Entity)
KeyT = TypeVar("KeyT")


class Repository(ABC, Generic[EntityT, KeyT]):
    """Abstract CRUD interface with audit stamping and soft delete."""

    @abstractmethod
    async def get_by_id(self, key: KeyT, *, include_deleted: bool = False) -> EntityT | None:
        """Return the active entity with this key, or None if absent or soft-deleted."""

    @abstractmethod
    async def get_all(
        self,
        config: QueryConfig | None = None,
        *,
        include_deleted: bool = False,
    ) -> PagedResult[EntityT]:
        """Return active entities, sorted and paged per config.

        The active-only filter is applied before counting and paging, so
        total_count reflects visible rows only.
        """

    @abstractmethod
    async def add(self, entity: EntityT) -> EntityT:
        """Persist a new entity and return it with key and creation record set.

        Raises InvalidArgumentError if the key is already assigned (unless the
        entity type assigns its own keys).
        """

    @abstractmethod
    async def update(
        self,
        entity: EntityT,
        *,
        expected_modified_at: datetime | None = None,
    ) -> EntityT:
        """Persist business-field changes and stamp the modification record.

        Raises NotFoundError if the key has no active row, ConflictError if
        expected_modified_at is given and differs from the stored value.
        """

    @abstractmethod
    async def delete(self, key: KeyT) -> bool:
        """Soft-delete (Deletable) or remove (otherwise).  False if no active row."""

    @abstractmethod
    async def restore(self, key: KeyT) -> bool:
        """Clear the deletion record.  False if the key is not soft-deleted."""

    async def exists(self, key: KeyT) -> bool:
        return await self.get_by_id(key) is not None

    async def count(self) -> int:
        return (await self.get_all()).total_count
