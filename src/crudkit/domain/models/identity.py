"""Entity identity model.

Every entity carries exactly one key, `id`, of a caller-chosen key type.
Supported key types form a closed set:

  - int        : plain, SmallIntKey (16-bit) or BigIntKey (64-bit)
  - uuid.UUID  : 128-bit globally-unique identifier
  - CompositeKey subclasses: fixed-shape, comparable value objects

The zero value of the key type is the sentinel meaning "not yet assigned".
A freshly constructed entity with no explicit id receives the sentinel.
Entities are frozen; use evolve() or model_copy(update=...) to derive changed
copies.
"""

from __future__ import annotations

from functools import total_ordering
from typing import Annotated, Any, ClassVar, Generic, TypeVar, get_args, get_origin
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

NIL_UUID = UUID(int=0)

SmallIntKey = Annotated[int, Field(ge=-(2**15), le=2**15 - 1)]
BigIntKey = Annotated[int, Field(ge=-(2**63), le=2**63 - 1)]

KeyT = TypeVar("KeyT")

# Zero values for the scalar types allowed inside a CompositeKey.
_SCALAR_ZEROS: dict[type, Any] = {int: 0, str: "", UUID: NIL_UUID}


def _unwrap(annotation: Any) -> Any:
    while get_origin(annotation) is Annotated:
        annotation = get_args(annotation)[0]
    return annotation


@total_ordering
class CompositeKey(BaseModel):
    """Base for custom fixed-size keys.

    Subclasses declare their parts as int, str or UUID fields.  Equality and
    ordering are structural, by field declaration order.  Entities keyed by a
    CompositeKey always assign their own keys; the repository never generates
    one.
    """

    model_config = ConfigDict(frozen=True)

    @classmethod
    def zero(cls) -> CompositeKey:
        """Return the key whose every part is at its zero value."""
        parts = {}
        for name, field in cls.model_fields.items():
            part_type = _unwrap(field.annotation)
            if part_type not in _SCALAR_ZEROS:
                raise TypeError(
                    f"{cls.__name__}.{name}: composite key parts must be int, str or UUID"
                )
            parts[name] = _SCALAR_ZEROS[part_type]
        return cls.model_construct(**parts)

    def parts(self) -> tuple[Any, ...]:
        return tuple(getattr(self, name) for name in type(self).model_fields)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, type(self)):
            return NotImplemented
        return self.parts() < other.parts()


def key_sentinel(key_type: Any) -> Any:
    """Return the 'not yet assigned' value for a key type.

    Raises TypeError for anything outside the supported key family.
    """
    key_type = _unwrap(key_type)
    if isinstance(key_type, type):
        if issubclass(key_type, CompositeKey):
            return key_type.zero()
        if issubclass(key_type, bool):
            raise TypeError("bool is not a valid key type")
        if issubclass(key_type, int):
            return 0
        if issubclass(key_type, UUID):
            return NIL_UUID
    raise TypeError(f"Unsupported key type: {key_type!r}")


class Entity(BaseModel, Generic[KeyT]):
    """An object with exactly one key of type KeyT.

    caller_assigned_key: set True on entity types whose keys are chosen by
    the caller (natural keys).  The repository then expects a non-sentinel key
    on add instead of generating one.
    """

    model_config = ConfigDict(frozen=True)

    caller_assigned_key: ClassVar[bool] = False

    id: KeyT

    @model_validator(mode="before")
    @classmethod
    def _default_key(cls, data: Any) -> Any:
        if isinstance(data, dict) and "id" not in data:
            data = {**data, "id": key_sentinel(cls.key_type())}
        return data

    @classmethod
    def key_type(cls) -> type:
        """The concrete key type of this entity class (Annotated unwrapped)."""
        return _unwrap(cls.model_fields["id"].annotation)

    @classmethod
    def assigns_own_key(cls) -> bool:
        key_type = cls.key_type()
        return cls.caller_assigned_key or (
            isinstance(key_type, type) and issubclass(key_type, CompositeKey)
        )

    @property
    def is_new(self) -> bool:
        return self.id == key_sentinel(self.key_type())

    def evolve(self, **changes: Any) -> Entity[KeyT]:
        """Return a re-validated copy with the given fields replaced.

        Unlike model_copy(update=...), every field and model validator runs
        again, so invariants hold on the result.
        """
        return type(self).model_validate({**self.model_dump(), **changes})


class Named(BaseModel):
    """Naming capability: a single human-readable name.

    No defaulting or uniqueness rules apply at this layer.
    """

    model_config = ConfigDict(frozen=True)

    name: str


class NamedEntity(Entity[KeyT], Named, Generic[KeyT]):
    """An entity with a name."""


# Guid-keyed shorthands: the recommended default for new entity types.
SimpleEntity = Entity[UUID]
SimpleNamedEntity = NamedEntity[UUID]
