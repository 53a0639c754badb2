"""Domain model package.

Identity, audit capabilities and the query contract.  All objects are pure
Pydantic models with no ORM or infrastructure dependencies.
"""

from .auditing import (
    Auditable,
    AuditableEntity,
    AuditableNamedEntity,
    Creatable,
    Deletable,
    Modifiable,
    SimpleAuditableEntity,
    SimpleAuditableNamedEntity,
    has_capability,
    is_deleted,
)
from .identity import (
    NIL_UUID,
    BigIntKey,
    CompositeKey,
    Entity,
    Named,
    NamedEntity,
    SimpleEntity,
    SimpleNamedEntity,
    SmallIntKey,
    key_sentinel,
)
from .query import PagedResult, QueryConfig, build_query

__all__ = [
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
]
