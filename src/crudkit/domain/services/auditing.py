"""Audit-trail stamping.

AuditTrail computes the stamped copy of an entity for each repository write.
It never touches storage: backends fetch/persist, AuditTrail decides which
audit fields change.  Every result is produced with Entity.evolve(), so the
pairing invariant is re-validated on every write.

Per operation:
  created  : stamp created_*, force modified_* / deleted_* absent
  modified : carry created_* / deleted_* over from the stored row, stamp modified_*
  deleted  : stamp deleted_*, leave everything else untouched
  restored : clear deleted_*
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any, Generic, TypeVar

from crudkit.domain.errors import ConflictError, InvalidArgumentError, PrincipalUnavailableError
from crudkit.domain.models.auditing import Creatable, Deletable, Modifiable
from crudkit.domain.models.identity import Entity
from crudkit.domain.repositories.user_context import UserContext

EntityT = TypeVar("EntityT", bound=Entity)
UserKeyT = TypeVar("UserKeyT")

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def check_concurrency_token(stored: Entity, expected_modified_at: datetime | None) -> None:
    """Raise ConflictError if the stored modification stamp is not the expected one.

    expected_modified_at=None skips the check.  A never-modified row has
    modified_at=None, so any concrete expectation conflicts with it.
    """
    if expected_modified_at is None:
        return
    if not isinstance(stored, Modifiable):
        raise InvalidArgumentError(
            f"{type(stored).__name__} is not Modifiable; it has no concurrency token"
        )
    if stored.modified_at != expected_modified_at:
        raise ConflictError(
            f"{type(stored).__name__} {stored.id} was modified concurrently",
            {"expected_modified_at": expected_modified_at, "stored_modified_at": stored.modified_at},
        )


class AuditTrail(Generic[UserKeyT]):
    """Stamps audit records using the acting principal and a UTC clock."""

    def __init__(
        self,
        user_context: UserContext[UserKeyT] | None = None,
        clock: Clock = utc_now,
    ) -> None:
        self._user_context = user_context
        self._clock = clock

    async def _principal(self, entity: Entity, operation: str) -> UserKeyT:
        user_id = None
        if self._user_context is not None:
            user_id = await self._user_context.get_current_user_id()
        if user_id is None:
            raise PrincipalUnavailableError(
                f"No acting principal available to {operation} {type(entity).__name__}",
                {"operation": operation},
            )
        return user_id

    async def created(self, entity: EntityT) -> EntityT:
        changes: dict[str, Any] = {}
        if isinstance(entity, Creatable):
            changes["created_by_id"] = await self._principal(entity, "create")
            changes["created_at"] = self._clock()
        if isinstance(entity, Modifiable):
            changes["modified_by_id"] = None
            changes["modified_at"] = None
        if isinstance(entity, Deletable):
            changes["deleted_by_id"] = None
            changes["deleted_at"] = None
        return entity.evolve(**changes)  # type: ignore[return-value]

    async def modified(self, entity: EntityT, stored: EntityT) -> EntityT:
        changes: dict[str, Any] = {}
        if isinstance(entity, Creatable):
            changes["created_by_id"] = stored.created_by_id  # type: ignore[attr-defined]
            changes["created_at"] = stored.created_at  # type: ignore[attr-defined]
        if isinstance(entity, Deletable):
            changes["deleted_by_id"] = stored.deleted_by_id  # type: ignore[attr-defined]
            changes["deleted_at"] = stored.deleted_at  # type: ignore[attr-defined]
        if isinstance(entity, Modifiable):
            changes["modified_by_id"] = await self._principal(entity, "update")
            changes["modified_at"] = self._clock()
        return entity.evolve(**changes)  # type: ignore[return-value]

    async def deleted(self, stored: EntityT) -> EntityT:
        return stored.evolve(  # type: ignore[return-value]
            deleted_by_id=await self._principal(stored, "delete"),
            deleted_at=self._clock(),
        )

    def restored(self, stored: EntityT) -> EntityT:
        return stored.evolve(deleted_by_id=None, deleted_at=None)  # type: ignore[return-value]
