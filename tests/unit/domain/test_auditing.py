"""Tests for crudkit/domain/models/auditing.py."""

from datetime import datetime, timezone
from uuid import UUID, uuid4

import pytest
from pydantic import ValidationError

from crudkit.domain.models.auditing import (
    Auditable,
    AuditableEntity,
    Creatable,
    Deletable,
    Modifiable,
    SimpleAuditableNamedEntity,
    has_capability,
    is_deleted,
)
from crudkit.domain.models.identity import Entity, Named

NOW = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)


class LogLine(Entity[int], Creatable[int]):
    message: str


class Note(Entity[int], Creatable[int], Modifiable[int]):
    body: str = ""


class Invoice(AuditableEntity[int, int]):
    total: float = 0.0


class Product(SimpleAuditableNamedEntity):
    price: float = 0.0


# --- capability composition ---

def test_creatable_only_entity_lacks_other_capabilities():
    assert has_capability(LogLine, Creatable)
    assert not has_capability(LogLine, Modifiable)
    assert not has_capability(LogLine, Deletable)


def test_creatable_modifiable_entity_is_not_deletable():
    assert has_capability(Note, Modifiable)
    assert not has_capability(Note, Deletable)


def test_auditable_entity_declares_all_three():
    for capability in (Creatable, Modifiable, Deletable, Auditable):
        assert has_capability(Invoice, capability)


def test_has_capability_accepts_instances():
    assert has_capability(Invoice(), Deletable)


def test_simple_auditable_named_entity_is_named_and_uuid_keyed():
    p = Product(name="Widget")
    assert isinstance(p, Named)
    assert Product.key_type() is UUID


# --- defaults ---

def test_audit_fields_start_absent():
    inv = Invoice()
    assert inv.created_by_id is None and inv.created_at is None
    assert inv.modified_by_id is None and inv.modified_at is None
    assert inv.deleted_by_id is None and inv.deleted_at is None


def test_new_entity_is_not_deleted():
    assert not Invoice().is_deleted


# --- pairing invariant ---

def test_creation_pair_must_be_complete():
    with pytest.raises(ValidationError):
        LogLine(message="x", created_by_id=1)


def test_modification_pair_must_be_complete():
    with pytest.raises(ValidationError):
        Note(modified_at=NOW)


def test_deletion_pair_must_be_complete():
    with pytest.raises(ValidationError):
        Invoice(deleted_by_id=3)


def test_complete_pairs_are_accepted():
    inv = Invoice(
        created_by_id=1,
        created_at=NOW,
        modified_by_id=2,
        modified_at=NOW,
        deleted_by_id=3,
        deleted_at=NOW,
    )
    assert inv.is_deleted


def test_evolve_into_half_pair_is_rejected():
    with pytest.raises(ValidationError):
        Invoice().evolve(deleted_at=NOW)


def test_naive_timestamps_are_rejected():
    with pytest.raises(ValidationError):
        LogLine(message="x", created_by_id=1, created_at=datetime(2026, 1, 1))


def test_principal_type_follows_parameter():
    p = Product(name="Widget", created_by_id=str(uuid4()), created_at=NOW)
    assert isinstance(p.created_by_id, UUID)


# --- is_deleted helper ---

def test_is_deleted_false_for_non_deletable():
    assert not is_deleted(LogLine(message="x"))


def test_is_deleted_true_when_deletion_record_present():
    assert is_deleted(Invoice(deleted_by_id=1, deleted_at=NOW))
