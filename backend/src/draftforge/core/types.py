"""Core types shared across draftforge.

- Operation: the mutation a pipeline run performs (create, update, destroy)
- HookPhase: the ordered phases of a pipeline run
- FIELD_TYPES: field type registry with storage defaults
"""

from dataclasses import dataclass
from enum import Enum, IntEnum

import sqlalchemy as sa


class Operation(Enum):
    """The type of operation being drafted."""

    CREATE = "create"
    UPDATE = "update"
    DESTROY = "destroy"


ALL_OPERATIONS = frozenset(Operation)


class HookPhase(IntEnum):
    """Pipeline phases, in execution order.

    PERSIST is the persistence boundary: nothing a hook does after it is
    written or captured by the same run.
    """

    BEFORE = 1
    AROUND_PRE = 2
    PERSIST = 3
    AROUND_POST = 4
    AFTER = 5

    @property
    def is_post_persist(self) -> bool:
        return self > HookPhase.PERSIST


class EntityState(Enum):
    """Lifecycle state of an entity, derived from storage and its drafts."""

    NEW = "new"
    PERSISTED = "persisted"
    DESTROY_STAGED = "destroy_staged"


@dataclass
class FieldType:
    name: str
    storage_type: type[sa.types.TypeEngine]


# Built-in field types
FIELD_TYPES: dict[str, FieldType] = {
    "id": FieldType(name="id", storage_type=sa.Text),  # Sequence-based IDs like "TLK-00001"
    "uuid": FieldType(name="uuid", storage_type=sa.Text),
    "string": FieldType(name="string", storage_type=sa.Text),
    "text": FieldType(name="text", storage_type=sa.Text),
    "integer": FieldType(name="integer", storage_type=sa.Integer),
    "number": FieldType(name="number", storage_type=sa.Float),
    "decimal": FieldType(name="decimal", storage_type=sa.Numeric),
    "boolean": FieldType(name="boolean", storage_type=sa.Boolean),
    "date": FieldType(name="date", storage_type=sa.Date),
    "datetime": FieldType(name="datetime", storage_type=sa.DateTime),
    "json": FieldType(name="json", storage_type=sa.JSON),
}


def get_field_type(type_name: str) -> FieldType:
    """Get field type definition by name."""
    if type_name not in FIELD_TYPES:
        raise ValueError(f"Unknown field type: {type_name}")
    return FIELD_TYPES[type_name]


def get_storage_type(type_name: str) -> sa.types.TypeEngine:
    """Get a SQLAlchemy column type instance for a field type."""
    return get_field_type(type_name).storage_type()
