"""ORM building blocks.

Applications declare their own mapped classes on crudkit's Base and mix in
the audit column sets matching their domain entity's capabilities.
"""

from crudkit.infrastructure.database import Base
from crudkit.infrastructure.persistence.models.auditing import (
    AuditColumns,
    CreatableColumns,
    DeletableColumns,
    ModifiableColumns,
)

__all__ = [
    "Base",
    "AuditColumns",
    "CreatableColumns",
    "DeletableColumns",
    "ModifiableColumns",
]
