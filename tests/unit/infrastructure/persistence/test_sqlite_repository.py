"""SqlRepository against a real database (SQLite via aiosqlite).

Exercises the same contract as the in-memory reference backend, plus what
only a real store can show: database-assigned keys, constraint violations,
and timestamps surviving a round trip through storage.
"""

import itertools
import uuid
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import BigInteger, Float, Integer, String, Text, UniqueConstraint, Uuid
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.pool import StaticPool

from crudkit.domain.errors import ConflictError, InvalidArgumentError, NotFoundError
from crudkit.domain.models.auditing import AuditableEntity, SimpleAuditableNamedEntity
from crudkit.domain.models.identity import NIL_UUID, CompositeKey, Entity, NamedEntity
from crudkit.domain.models.query import build_query
from crudkit.domain.repositories.user_context import StaticUserContext
from crudkit.infrastructure.database import Base
from crudkit.infrastructure.persistence.models.auditing import AuditColumns
from crudkit.infrastructure.persistence.repositories import SqlRepository

T0 = datetime(2026, 5, 1, 8, 0, tzinfo=timezone.utc)
ALICE = uuid.UUID(int=1)

# SQLite only auto-increments INTEGER PRIMARY KEY, not BIGINT.
BigIntPk = BigInteger().with_variant(Integer, "sqlite")


# --- domain entities ---

class Product(SimpleAuditableNamedEntity):
    price: float = 0.0


class Invoice(AuditableEntity[int, int]):
    total: float = 0.0


class Tag(NamedEntity[int]):
    pass


class SkuKey(CompositeKey):
    vendor: int
    code: str


class Sku(Entity[SkuKey]):
    description: str = ""


# --- ORM rows ---

class ProductRow(AuditColumns, Base):
    __tablename__ = "it_products"
    __user_id_type__ = Uuid

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    price: Mapped[float] = mapped_column(Float, nullable=False)


class InvoiceRow(AuditColumns, Base):
    __tablename__ = "it_invoices"

    id: Mapped[int] = mapped_column(BigIntPk, primary_key=True, autoincrement=True)
    total: Mapped[float] = mapped_column(Float, nullable=False)


class TagRow(Base):
    __tablename__ = "it_tags"
    __table_args__ = (UniqueConstraint("name", name="uq_it_tags_name"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)


class SkuRow(Base):
    __tablename__ = "it_skus"

    vendor: Mapped[int] = mapped_column(Integer, primary_key=True)
    code: Mapped[str] = mapped_column(String(32), primary_key=True)
    description: Mapped[str] = mapped_column(Text, nullable=False)


# --- fixtures ---

@pytest.fixture
async def session():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    factory = async_sessionmaker(bind=engine, expire_on_commit=False)
    async with factory() as session:
        yield session
    await engine.dispose()


def _ticking_clock():
    ticks = itertools.count()
    return lambda: T0 + timedelta(seconds=next(ticks))


def _products(session):
    return SqlRepository(
        session,
        StaticUserContext(ALICE),
        entity_type=Product,
        orm_type=ProductRow,
        clock=_ticking_clock(),
    )


def _invoices(session):
    return SqlRepository(session, StaticUserContext(3), entity_type=Invoice, orm_type=InvoiceRow)


def _tags(session):
    return SqlRepository(session, entity_type=Tag, orm_type=TagRow)


# --- lifecycle ---

async def test_add_assigns_uuid_and_creation_record(session):
    widget = await _products(session).add(Product(name="Widget"))
    assert widget.id != NIL_UUID
    assert (widget.created_by_id, widget.created_at) == (ALICE, T0)
    assert widget.modified_at is None and widget.deleted_at is None


async def test_database_assigns_integer_keys(session):
    repo = _invoices(session)
    first = await repo.add(Invoice(total=1.0))
    second = await repo.add(Invoice(total=2.0))
    assert first.id > 0 and second.id == first.id + 1


async def test_round_trip_through_storage(session):
    repo = _products(session)
    added = await repo.add(Product(name="Widget", price=3.25))
    session.expire_all()
    assert await repo.get_by_id(added.id) == added


async def test_update_stamps_modification(session):
    repo = _products(session)
    widget = await repo.add(Product(name="Widget"))
    updated = await repo.update(widget.model_copy(update={"name": "Widget v2"}))
    assert (updated.modified_by_id, updated.modified_at) == (ALICE, T0 + timedelta(seconds=1))
    session.expire_all()
    stored = await repo.get_by_id(widget.id)
    assert stored.name == "Widget v2"
    assert (stored.created_by_id, stored.created_at) == (ALICE, T0)


async def test_update_missing_key_is_not_found(session):
    with pytest.raises(NotFoundError):
        await _products(session).update(Product(id=uuid.uuid4(), name="Ghost"))


async def test_soft_delete_hides_row_and_keeps_fields(session):
    repo = _products(session)
    widget = await repo.add(Product(name="Widget"))
    assert await repo.delete(widget.id) is True
    assert await repo.delete(widget.id) is False
    assert await repo.get_by_id(widget.id) is None
    assert (await repo.get_all()).total_count == 0
    session.expire_all()
    hidden = await repo.get_by_id(widget.id, include_deleted=True)
    assert hidden.name == "Widget"
    assert hidden.deleted_by_id == ALICE and hidden.deleted_at is not None


async def test_update_of_soft_deleted_row_is_not_found(session):
    repo = _products(session)
    widget = await repo.add(Product(name="Widget"))
    await repo.delete(widget.id)
    with pytest.raises(NotFoundError):
        await repo.update(widget)


async def test_restore_clears_deletion_record(session):
    repo = _products(session)
    widget = await repo.add(Product(name="Widget"))
    await repo.delete(widget.id)
    assert await repo.restore(widget.id) is True
    assert await repo.restore(widget.id) is False
    restored = await repo.get_by_id(widget.id)
    assert restored.deleted_at is None and restored.deleted_by_id is None


async def test_non_deletable_rows_are_removed(session):
    repo = _tags(session)
    tag = await repo.add(Tag(name="t"))
    assert await repo.delete(tag.id) is True
    assert await repo.get_by_id(tag.id, include_deleted=True) is None


# --- querying ---

async def test_paging_over_twenty_five_rows(session):
    repo = _tags(session)
    for i in range(25):
        await repo.add(Tag(name=f"tag-{i:02d}"))
    sizes = []
    for number in (1, 2, 3):
        page = await repo.get_all(build_query(page_number=number, page_size=10))
        assert page.total_count == 25
        sizes.append(len(page.items))
    assert sizes == [10, 10, 5]


async def test_total_count_excludes_soft_deleted_rows(session):
    repo = _invoices(session)
    rows = [await repo.add(Invoice(total=float(i))) for i in range(4)]
    await repo.delete(rows[0].id)
    page = await repo.get_all(build_query(page_number=1, page_size=2))
    assert page.total_count == 3
    assert [i.id for i in page.items] == [rows[1].id, rows[2].id]


async def test_sort_descending(session):
    repo = _tags(session)
    for name in ("b", "c", "a"):
        await repo.add(Tag(name=name))
    result = await repo.get_all(build_query(sort_by="name", sort_descending=True))
    assert [t.name for t in result.items] == ["c", "b", "a"]


async def test_unknown_sort_field_is_invalid(session):
    with pytest.raises(InvalidArgumentError):
        await _tags(session).get_all(build_query(sort_by="colour"))


# --- keys and constraints ---

async def test_composite_keys_are_caller_assigned(session):
    repo = SqlRepository(session, entity_type=Sku, orm_type=SkuRow)
    key = SkuKey(vendor=3, code="AB-1")
    await repo.add(Sku(id=key, description="bolt"))
    session.expire_all()
    assert (await repo.get_by_id(SkuKey(vendor=3, code="AB-1"))).description == "bolt"
    with pytest.raises(ConflictError):
        await repo.add(Sku(id=key, description="again"))


async def test_unique_violation_becomes_conflict(session):
    repo = _tags(session)
    await repo.add(Tag(name="dup"))
    with pytest.raises(ConflictError):
        await repo.add(Tag(name="dup"))


# --- optimistic concurrency ---

async def test_stale_token_conflicts(session):
    repo = _products(session)
    widget = await repo.add(Product(name="Widget"))
    first = await repo.update(widget)
    await repo.update(first)
    with pytest.raises(ConflictError):
        await repo.update(first, expected_modified_at=first.modified_at)


async def test_current_token_after_reload_succeeds(session):
    repo = _products(session)
    widget = await repo.add(Product(name="Widget"))
    first = await repo.update(widget)
    session.expire_all()
    reloaded = await repo.get_by_id(widget.id)
    await repo.update(reloaded, expected_modified_at=reloaded.modified_at)
