"""crudkit: audit-aware generic repositories.

Import the building blocks from here rather than from individual modules:

    from crudkit import AuditableNamedEntity, InMemoryRepository, build_query
"""

from crudkit.domain.errors import (
    ConflictError,
    DependencyFailureError,
    InvalidArgumentError,
    NotFoundError,
    PrincipalUnavailableError,
    RepositoryError,
)
from crudkit.domain.models import (
    NIL_UUID,
    Auditable,
    AuditableEntity,
    AuditableNamedEntity,
    BigIntKey,
    CompositeKey,
    Creatable,
    Deletable,
    Entity,
    Modifiable,
    Named,
    NamedEntity,
    PagedResult,
    QueryConfig,
    SimpleAuditableEntity,
    SimpleAuditableNamedEntity,
    SimpleEntity,
    SimpleNamedEntity,
    SmallIntKey,
    build_query,
    has_capability,
    is_deleted,
    key_sentinel,
)
from crudkit.domain.repositories import Repository, StaticUserContext, UserContext
from crudkit.infrastructure.memory import InMemoryRepository

__all__ = [
    # errors
    "ConflictError",
    "DependencyFailureError",
    "InvalidArgumentError",
    "NotFoundError",
    "PrincipalUnavailableError",
    "RepositoryError",
    # identity
    "NIL_UUID",
    "BigIntKey",
    "CompositeKey",
    "Entity",
    "Named",
    "NamedEntity",
    "SimpleEntity",
    "SimpleNamedEntity",
    "SmallIntKey",
    "key_sentinel",
    # auditing
    "Auditable",
    "AuditableEntity",
    "AuditableNamedEntity",
    "Creatable",
    "Deletable",
    "Modifiable",
    "SimpleAuditableEntity",
    "SimpleAuditableNamedEntity",
    "has_capability",
    "is_deleted",
    # query
    "PagedResult",
    "QueryConfig",
    "build_query",
    # repositories
    "InMemoryRepository",
    "Repository",
    "StaticUserContext",
    "UserContext",
]
