"""Query configuration and paged result envelope.

QueryConfig : sort field, sort direction, optional page number/size
PagedResult : items for the requested page plus the pre-paging total

Paging applies only when both page_number and page_size are given.  Invalid
values (< 1) are rejected, never clamped.
"""

from __future__ import annotations

import math
from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from crudkit.domain.errors import InvalidArgumentError

T = TypeVar("T")


class QueryConfig(BaseModel):
    """How to sort and slice a getAll query.

    sort_by names an entity field; None leaves backend-defined (but
    deterministic) ordering.  page_number is 1-based.
    """

    model_config = ConfigDict(frozen=True)

    sort_by: str | None = None
    sort_descending: bool = False
    page_number: int | None = Field(default=None, ge=1)
    page_size: int | None = Field(default=None, ge=1)

    @property
    def is_paged(self) -> bool:
        return self.page_number is not None and self.page_size is not None

    @property
    def offset(self) -> int:
        if not self.is_paged:
            return 0
        return (self.page_number - 1) * self.page_size  # type: ignore[operator]

    @property
    def limit(self) -> int | None:
        return self.page_size if self.is_paged else None


def build_query(
    sort_by: str | None = None,
    sort_descending: bool = False,
    page_number: int | None = None,
    page_size: int | None = None,
) -> QueryConfig:
    """Build a QueryConfig, rejecting page_number/page_size below 1."""
    if page_number is not None and page_number < 1:
        raise InvalidArgumentError(
            f"page_number must be >= 1, got {page_number}",
            {"page_number": page_number},
        )
    if page_size is not None and page_size < 1:
        raise InvalidArgumentError(
            f"page_size must be >= 1, got {page_size}",
            {"page_size": page_size},
        )
    return QueryConfig(
        sort_by=sort_by,
        sort_descending=sort_descending,
        page_number=page_number,
        page_size=page_size,
    )


class PagedResult(BaseModel, Generic[T]):
    """One page of results.

    total_count is the number of matching rows before paging.  Without paging
    the echo is page_number=1, page_size=total_count.
    """

    model_config = ConfigDict(frozen=True)

    items: list[T] = Field(default_factory=list)
    total_count: int = Field(ge=0)
    page_number: int = Field(ge=1)
    page_size: int = Field(ge=0)

    @classmethod
    def for_query(cls, items: list[T], total_count: int, config: QueryConfig) -> PagedResult[T]:
        """Assemble a result, echoing the paging that config applied."""
        if config.is_paged:
            return cls(
                items=items,
                total_count=total_count,
                page_number=config.page_number,
                page_size=config.page_size,
            )
        return cls(items=items, total_count=total_count, page_number=1, page_size=total_count)

    @property
    def total_pages(self) -> int:
        if self.page_size == 0:
            return 0
        return math.ceil(self.total_count / self.page_size)

    @property
    def has_previous_page(self) -> bool:
        return self.page_number > 1

    @property
    def has_next_page(self) -> bool:
        return self.page_number < self.total_pages
