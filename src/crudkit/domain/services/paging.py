"""In-process sorting and paging.

Used by backends that hold rows in memory.  SQL backends push the same
semantics down to the database (ORDER BY / OFFSET / LIMIT) but share
check_sort_field() and PagedResult.for_query().
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any, TypeVar

from pydantic import BaseModel

from crudkit.domain.errors import InvalidArgumentError
from crudkit.domain.models.query import PagedResult, QueryConfig

T = TypeVar("T", bound=BaseModel)


def check_sort_field(entity_type: type[BaseModel], config: QueryConfig) -> None:
    if config.sort_by is not None and config.sort_by not in entity_type.model_fields:
        raise InvalidArgumentError(
            f"{entity_type.__name__} has no field {config.sort_by!r} to sort by",
            {"sort_by": config.sort_by},
        )


def _ordering(value: Any) -> tuple[bool, Any]:
    # None sorts after every value when ascending.
    return (value is None, value)


def paginate(rows: Iterable[T], config: QueryConfig) -> PagedResult[T]:
    """Sort (stable), count, then slice rows according to config."""
    items = list(rows)
    if config.sort_by is not None:
        field = config.sort_by
        items.sort(key=lambda row: _ordering(getattr(row, field)), reverse=config.sort_descending)
    total_count = len(items)
    if config.is_paged:
        items = items[config.offset : config.offset + config.limit]  # type: ignore[operator]
    return PagedResult.for_query(items, total_count, config)
