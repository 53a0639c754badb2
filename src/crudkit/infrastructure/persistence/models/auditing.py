"""ORM column mixins mirroring the audit capability traits.

Mix these into a mapped class alongside Base to persist the matching domain
capability:

    class ProductRow(AuditColumns, Base):
        __tablename__ = "products"
        __user_id_type__ = Uuid

        id: Mapped[uuid.UUID] = mapped_column(Uuid(), primary_key=True)
        name: Mapped[str] = mapped_column(Text, nullable=False)

Principal columns use the class's __user_id_type__ (BigInteger by default)
so any key family can be stored.  Timestamps are timezone-aware.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import BigInteger, DateTime
from sqlalchemy.orm import Mapped, declared_attr, mapped_column


class _PrincipalType:
    __user_id_type__ = BigInteger


class CreatableColumns(_PrincipalType):
    """created_by_id / created_at: written once on insert, never null after."""

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    @declared_attr
    def created_by_id(cls) -> Mapped[Any]:
        return mapped_column(cls.__user_id_type__, nullable=False)


class ModifiableColumns(_PrincipalType):
    modified_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    @declared_attr
    def modified_by_id(cls) -> Mapped[Optional[Any]]:
        return mapped_column(cls.__user_id_type__, nullable=True)


class DeletableColumns(_PrincipalType):
    """Soft-delete record.  deleted_at IS NULL selects active rows."""

    deleted_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True, index=True
    )

    @declared_attr
    def deleted_by_id(cls) -> Mapped[Optional[Any]]:
        return mapped_column(cls.__user_id_type__, nullable=True)


class AuditColumns(CreatableColumns, ModifiableColumns, DeletableColumns):
    """All six audit columns."""
