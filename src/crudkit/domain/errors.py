"""Repository error taxonomy.

Every failure surfaced by a repository is one of these kinds:

  NotFoundError         : no active (or, for restore, no soft-deleted) row
  InvalidArgumentError  : caller misuse: pre-assigned key on add, bad paging
  ConflictError         : optimistic-concurrency mismatch or duplicate key
  DependencyFailureError: backing store or acting-principal context failed

Nothing here is retried.  Mapping to user-visible messages or status codes is
the caller's business.
"""

from __future__ import annotations

from typing import Any


class RepositoryError(Exception):
    """Base class for all repository errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)


class NotFoundError(RepositoryError, LookupError):
    """The targeted key does not reference a visible row."""


class InvalidArgumentError(RepositoryError, ValueError):
    """The caller supplied an argument the contract forbids."""


class ConflictError(RepositoryError):
    """The stored state no longer matches what the caller last observed."""


class DependencyFailureError(RepositoryError):
    """A collaborator (store, principal context) errored or is unreachable."""


class PrincipalUnavailableError(DependencyFailureError):
    """No acting principal is available to stamp an audit record."""
