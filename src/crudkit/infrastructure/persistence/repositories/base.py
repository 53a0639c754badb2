"""Generic SQLAlchemy implementation of Repository.

SqlRepository maps one domain entity type onto one ORM class by field name:
every entity field is a same-named column, except a CompositeKey id, which
spreads over one column per key part.  Audit columns come from the mixins in
crudkit.infrastructure.persistence.models.auditing.

Concrete repositories either subclass with entity_type / orm_type set:

    class SqlProductRepository(SqlRepository[Product, UUID]):
        entity_type = Product
        orm_type = ProductRow

or pass both to the constructor.  Every write stamps audit fields and flushes
within the caller's transaction; committing is the caller's business.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, TypeVar
from uuid import UUID, uuid4

from sqlalchemy import and_, func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import Select

from crudkit.domain.errors import (
    ConflictError,
    DependencyFailureError,
    InvalidArgumentError,
    NotFoundError,
)
from crudkit.domain.models.auditing import Deletable, has_capability, is_deleted
from crudkit.domain.models.identity import CompositeKey, Entity
from crudkit.domain.models.query import PagedResult, QueryConfig
from crudkit.domain.repositories.base import Repository
from crudkit.domain.repositories.user_context import UserContext
from crudkit.domain.services.auditing import AuditTrail, Clock, check_concurrency_token, utc_now
from crudkit.domain.services.paging import check_sort_field

logger = logging.getLogger(__name__)

EntityT = TypeVar("EntityT", bound=Entity)
KeyT = TypeVar("KeyT")


def _as_utc(value: Any) -> Any:
    # SQLite drops tzinfo on DateTime(timezone=True) columns.
    if isinstance(value, datetime) and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class SqlRepository(Repository[EntityT, KeyT]):
    entity_type: type[EntityT]
    orm_type: type[Any]

    def __init__(
        self,
        session: AsyncSession,
        user_context: UserContext[Any] | None = None,
        *,
        entity_type: type[EntityT] | None = None,
        orm_type: type[Any] | None = None,
        clock: Clock = utc_now,
    ) -> None:
        self._session = session
        if entity_type is not None:
            self.entity_type = entity_type
        if orm_type is not None:
            self.orm_type = orm_type
        self._audit: AuditTrail[Any] = AuditTrail(user_context, clock)

    # ------------------------------------------------------------------ #
    # Mapping                                                              #
    # ------------------------------------------------------------------ #

    @property
    def _composite_key(self) -> type[CompositeKey] | None:
        key_type = self.entity_type.key_type()
        if isinstance(key_type, type) and issubclass(key_type, CompositeKey):
            return key_type
        return None

    def _key_columns(self) -> list[str]:
        composite = self._composite_key
        return list(composite.model_fields) if composite else ["id"]

    def _key_values(self, key: Any) -> dict[str, Any]:
        if self._composite_key is not None:
            return {part: getattr(key, part) for part in self._key_columns()}
        return {"id": key}

    def _to_domain(self, row: Any) -> EntityT:
        data: dict[str, Any] = {}
        for name in self.entity_type.model_fields:
            if name == "id" and self._composite_key is not None:
                data["id"] = {part: getattr(row, part) for part in self._key_columns()}
            else:
                data[name] = _as_utc(getattr(row, name))
        return self.entity_type.model_validate(data)

    def _column_values(self, entity: EntityT, include_key: bool) -> dict[str, Any]:
        values: dict[str, Any] = {}
        for name in self.entity_type.model_fields:
            if name == "id":
                if include_key:
                    values.update(self._key_values(entity.id))
                continue
            values[name] = getattr(entity, name)
        return values

    def _to_row(self, entity: EntityT) -> Any:
        # A sentinel integer key is left out so the database assigns one.
        return self.orm_type(**self._column_values(entity, include_key=not entity.is_new))

    def _apply(self, row: Any, entity: EntityT) -> None:
        for name, value in self._column_values(entity, include_key=False).items():
            setattr(row, name, value)

    # ------------------------------------------------------------------ #
    # Statements                                                           #
    # ------------------------------------------------------------------ #

    def _select(self, include_deleted: bool) -> Select[Any]:
        stmt = select(self.orm_type)
        if not include_deleted and has_capability(self.entity_type, Deletable):
            stmt = stmt.where(self.orm_type.deleted_at.is_(None))
        return stmt

    def _order_by(self, config: QueryConfig) -> list[Any]:
        key_columns = [getattr(self.orm_type, name) for name in self._key_columns()]
        if config.sort_by is None:
            return key_columns
        if config.sort_by == "id":
            columns = key_columns
        else:
            columns = [getattr(self.orm_type, config.sort_by)]
        if config.sort_descending:
            ordered = [column.desc().nulls_first() for column in columns]
        else:
            ordered = [column.asc().nulls_last() for column in columns]
        # Primary key breaks ties so equal sort values keep a stable order.
        return ordered + key_columns

    async def _fetch_row(
        self,
        key: Any,
        include_deleted: bool = False,
        for_update: bool = False,
    ) -> Any | None:
        clauses = [getattr(self.orm_type, name) == value for name, value in self._key_values(key).items()]
        stmt = self._select(include_deleted).where(and_(*clauses))
        if for_update:
            stmt = stmt.with_for_update()
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    @contextmanager
    def _store_errors(self, operation: str) -> Iterator[None]:
        try:
            yield
        except IntegrityError as exc:
            logger.debug("%s %s violated a constraint", operation, self.entity_type.__name__)
            raise ConflictError(
                f"{operation} {self.entity_type.__name__} violated a storage constraint",
                {"operation": operation},
            ) from exc
        except SQLAlchemyError as exc:
            logger.debug("%s %s failed in the store", operation, self.entity_type.__name__)
            raise DependencyFailureError(
                f"{operation} {self.entity_type.__name__} failed: {exc}",
                {"operation": operation},
            ) from exc

    async def _with_key(self, entity: EntityT) -> EntityT:
        name = type(entity).__name__
        if type(entity).assigns_own_key():
            if entity.is_new:
                raise InvalidArgumentError(f"{name} requires a caller-assigned key on add")
            if await self._fetch_row(entity.id, include_deleted=True) is not None:
                raise ConflictError(f"{name} {entity.id} already exists", {"key": entity.id})
            return entity
        if not entity.is_new:
            raise InvalidArgumentError(
                f"{name} key must be unassigned on add, got {entity.id!r}",
                {"key": entity.id},
            )
        if issubclass(self.entity_type.key_type(), UUID):
            return entity.evolve(id=uuid4())  # type: ignore[return-value]
        return entity

    # ------------------------------------------------------------------ #
    # Repository contract                                                  #
    # ------------------------------------------------------------------ #

    async def get_by_id(self, key: KeyT, *, include_deleted: bool = False) -> EntityT | None:
        with self._store_errors("get"):
            row = await self._fetch_row(key, include_deleted=include_deleted)
        return self._to_domain(row) if row else None

    async def get_all(
        self,
        config: QueryConfig | None = None,
        *,
        include_deleted: bool = False,
    ) -> PagedResult[EntityT]:
        config = config or QueryConfig()
        check_sort_field(self.entity_type, config)
        stmt = self._select(include_deleted)
        with self._store_errors("list"):
            total = await self._session.scalar(
                select(func.count()).select_from(stmt.subquery())
            )
            stmt = stmt.order_by(*self._order_by(config))
            if config.is_paged:
                stmt = stmt.offset(config.offset).limit(config.limit)
            result = await self._session.execute(stmt)
            rows = result.scalars().all()
        return PagedResult.for_query([self._to_domain(row) for row in rows], total or 0, config)

    async def add(self, entity: EntityT) -> EntityT:
        with self._store_errors("add"):
            stamped = await self._audit.created(await self._with_key(entity))
            row = self._to_row(stamped)
            self._session.add(row)
            await self._session.flush()
            added = self._to_domain(row)
        logger.debug("Added %s %s", type(added).__name__, added.id)
        return added

    async def update(
        self,
        entity: EntityT,
        *,
        expected_modified_at: datetime | None = None,
    ) -> EntityT:
        with self._store_errors("update"):
            row = await self._fetch_row(entity.id, for_update=True)
            if row is None:
                logger.debug("Update rejected: %s %s not found", type(entity).__name__, entity.id)
                raise NotFoundError(
                    f"{type(entity).__name__} {entity.id} not found", {"key": entity.id}
                )
            stored = self._to_domain(row)
            check_concurrency_token(stored, expected_modified_at)
            updated = await self._audit.modified(entity, stored)
            self._apply(row, updated)
            await self._session.flush()
        logger.debug("Updated %s %s", type(updated).__name__, updated.id)
        return updated

    async def delete(self, key: KeyT) -> bool:
        with self._store_errors("delete"):
            row = await self._fetch_row(key, for_update=True)
            if row is None:
                return False
            stored = self._to_domain(row)
            if isinstance(stored, Deletable):
                self._apply(row, await self._audit.deleted(stored))
                logger.debug("Soft-deleted %s %s", type(stored).__name__, key)
            else:
                await self._session.delete(row)
                logger.debug("Removed %s %s", type(stored).__name__, key)
            await self._session.flush()
        return True

    async def restore(self, key: KeyT) -> bool:
        if not has_capability(self.entity_type, Deletable):
            raise InvalidArgumentError(f"{self.entity_type.__name__} is not Deletable")
        with self._store_errors("restore"):
            row = await self._fetch_row(key, include_deleted=True, for_update=True)
            if row is None:
                return False
            stored = self._to_domain(row)
            if not is_deleted(stored):
                return False
            self._apply(row, self._audit.restored(stored))
            await self._session.flush()
        logger.debug("Restored %s %s", self.entity_type.__name__, key)
        return True
