"""In-memory implementation of Repository.

The reference backend: enforces every contract invariant without a
database.  Rows are stored as immutable entity snapshots in insertion order;
a write replaces a snapshot wholesale, so readers never observe a
half-stamped audit pair.  Writes are serialised by a single asyncio.Lock.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
from datetime import datetime
from typing import Any, TypeVar
from uuid import UUID, uuid4

from crudkit.domain.errors import ConflictError, InvalidArgumentError, NotFoundError
from crudkit.domain.models.auditing import Deletable, has_capability, is_deleted
from crudkit.domain.models.identity import Entity
from crudkit.domain.models.query import PagedResult, QueryConfig
from crudkit.domain.repositories.base import Repository
from crudkit.domain.repositories.user_context import UserContext
from crudkit.domain.services.auditing import AuditTrail, Clock, check_concurrency_token, utc_now
from crudkit.domain.services.paging import check_sort_field, paginate

logger = logging.getLogger(__name__)

EntityT = TypeVar("EntityT", bound=Entity)
KeyT = TypeVar("KeyT")


class InMemoryRepository(Repository[EntityT, KeyT]):
    def __init__(
        self,
        entity_type: type[EntityT],
        user_context: UserContext[Any] | None = None,
        *,
        clock: Clock = utc_now,
    ) -> None:
        self._entity_type = entity_type
        self._audit: AuditTrail[Any] = AuditTrail(user_context, clock)
        self._rows: dict[KeyT, EntityT] = {}
        self._sequence = itertools.count(1)
        self._lock = asyncio.Lock()

    @property
    def entity_type(self) -> type[EntityT]:
        return self._entity_type

    def _new_key(self) -> Any:
        key_type = self._entity_type.key_type()
        if issubclass(key_type, UUID):
            return uuid4()
        if issubclass(key_type, int):
            key = next(self._sequence)
            while key in self._rows:
                key = next(self._sequence)
            return key
        raise InvalidArgumentError(
            f"{self._entity_type.__name__} keys of type {key_type.__name__} "
            "cannot be generated; mark the entity type caller_assigned_key"
        )

    def _with_key(self, entity: EntityT) -> EntityT:
        name = type(entity).__name__
        if type(entity).assigns_own_key():
            if entity.is_new:
                raise InvalidArgumentError(f"{name} requires a caller-assigned key on add")
            if entity.id in self._rows:
                raise ConflictError(f"{name} {entity.id} already exists", {"key": entity.id})
            return entity
        if not entity.is_new:
            raise InvalidArgumentError(
                f"{name} key must be unassigned on add, got {entity.id!r}",
                {"key": entity.id},
            )
        return entity.evolve(id=self._new_key())  # type: ignore[return-value]

    async def get_by_id(self, key: KeyT, *, include_deleted: bool = False) -> EntityT | None:
        row = self._rows.get(key)
        if row is None or (is_deleted(row) and not include_deleted):
            return None
        return row

    async def get_all(
        self,
        config: QueryConfig | None = None,
        *,
        include_deleted: bool = False,
    ) -> PagedResult[EntityT]:
        config = config or QueryConfig()
        check_sort_field(self._entity_type, config)
        rows = [row for row in self._rows.values() if include_deleted or not is_deleted(row)]
        return paginate(rows, config)

    async def add(self, entity: EntityT) -> EntityT:
        async with self._lock:
            stamped = await self._audit.created(self._with_key(entity))
            self._rows[stamped.id] = stamped
        logger.debug("Added %s %s", type(stamped).__name__, stamped.id)
        return stamped

    async def update(
        self,
        entity: EntityT,
        *,
        expected_modified_at: datetime | None = None,
    ) -> EntityT:
        async with self._lock:
            stored = self._rows.get(entity.id)
            if stored is None or is_deleted(stored):
                logger.debug("Update rejected: %s %s not found", type(entity).__name__, entity.id)
                raise NotFoundError(
                    f"{type(entity).__name__} {entity.id} not found", {"key": entity.id}
                )
            check_concurrency_token(stored, expected_modified_at)
            updated = await self._audit.modified(entity, stored)
            self._rows[updated.id] = updated
        logger.debug("Updated %s %s", type(updated).__name__, updated.id)
        return updated

    async def delete(self, key: KeyT) -> bool:
        async with self._lock:
            stored = self._rows.get(key)
            if stored is None or is_deleted(stored):
                return False
            if isinstance(stored, Deletable):
                self._rows[key] = await self._audit.deleted(stored)
                logger.debug("Soft-deleted %s %s", type(stored).__name__, key)
            else:
                del self._rows[key]
                logger.debug("Removed %s %s", type(stored).__name__, key)
        return True

    async def restore(self, key: KeyT) -> bool:
        if not has_capability(self._entity_type, Deletable):
            raise InvalidArgumentError(f"{self._entity_type.__name__} is not Deletable")
        async with self._lock:
            stored = self._rows.get(key)
            if stored is None or not is_deleted(stored):
                return False
            self._rows[key] = self._audit.restored(stored)
        logger.debug("Restored %s %s", self._entity_type.__name__, key)
        return True
