"""Acting-principal context.

The repository asks a UserContext for the current acting identifier whenever
it stamps an audit record.  Implementations typically read it from the
request's authenticated user; StaticUserContext serves scripts and tests.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Generic, TypeVar

UserKeyT = TypeVar("UserKeyT")


class UserContext(ABC, Generic[UserKeyT]):
    """Source of the acting principal's identifier."""

    @abstractmethod
    async def get_current_user_id(self) -> UserKeyT | None:
        """Return the current principal's id, or None when nobody is acting."""


class StaticUserContext(UserContext[UserKeyT]):
    """Always reports the same principal."""

    def __init__(self, user_id: UserKeyT | None) -> None:
        self._user_id = user_id

    async def get_current_user_id(self) -> UserKeyT | None:
        return self._user_id
