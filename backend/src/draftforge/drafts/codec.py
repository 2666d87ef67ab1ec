"""Attribute snapshot codec.

A Snapshot is the immutable, versioned capture of an entity's declared
attributes at the persistence boundary. It is serialized to stable JSON
for storage; values JSON cannot represent natively (datetime, date,
Decimal, tuple, dicts with non-string keys) are written as tagged objects
so that a stored snapshot decodes to exactly the values that were encoded.

Decoding is tolerant of schema drift: unknown envelope keys are ignored,
missing or unreadable keys fall back to defaults, and attributes a model
no longer declares are dropped rather than rejected.
"""

from __future__ import annotations

import copy
import json
import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Mapping

if TYPE_CHECKING:
    from draftforge.entity import Entity
    from draftforge.metadata.loader import EntityModel

logger = logging.getLogger(__name__)

SNAPSHOT_FORMAT_VERSION = 1

TYPE_TAG = "$type"


@dataclass(frozen=True)
class Snapshot:
    """Point-in-time capture of an entity's attributes.

    Attributes:
        entity: Entity type name the snapshot was taken from
        attributes: Read-only mapping of attribute name to captured value
        version: Snapshot format version
    """

    entity: str
    attributes: Mapping[str, Any] = field(default_factory=dict)
    version: int = SNAPSHOT_FORMAT_VERSION

    def __post_init__(self) -> None:
        if not isinstance(self.attributes, MappingProxyType):
            object.__setattr__(
                self, "attributes", MappingProxyType(copy.deepcopy(dict(self.attributes)))
            )

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "entity": self.entity,
            "attributes": {k: _encode_value(v) for k, v in self.attributes.items()},
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Snapshot:
        version = _read_version(data.get("version", SNAPSHOT_FORMAT_VERSION))
        if version > SNAPSHOT_FORMAT_VERSION:
            logger.warning(
                "Decoding snapshot format version %s with reader version %s",
                version,
                SNAPSHOT_FORMAT_VERSION,
            )
        attributes = data.get("attributes") or {}
        return cls(
            entity=data.get("entity", ""),
            attributes={k: _decode_value(v) for k, v in attributes.items()},
            version=version,
        )

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), sort_keys=True, separators=(",", ":"))

    @classmethod
    def from_json(cls, payload: str) -> Snapshot:
        return cls.from_dict(json.loads(payload))


def encode(entity: Entity) -> Snapshot:
    """Capture every declared attribute of an entity.

    Values are deep-copied; later mutation of the entity never reaches
    the returned snapshot.
    """
    return encode_attributes(entity.model, entity.attributes)


def encode_attributes(model: EntityModel, attributes: Mapping[str, Any]) -> Snapshot:
    """Capture a model's declared attributes from any mapping, such as a persisted row.

    Declared fields missing from the mapping are captured as None.
    """
    # Snapshot.__post_init__ deep-copies the mapping
    return Snapshot(
        entity=model.name,
        attributes={name: attributes.get(name) for name in model.field_names},
    )


def decode(snapshot: Snapshot, model: EntityModel | None = None) -> dict[str, Any]:
    """Reconstruct an attribute map from a snapshot.

    Returns a fresh deep copy; the snapshot is never mutated. When a model
    is given, attributes it no longer declares are dropped and attributes it
    declares but the snapshot lacks stay absent.
    """
    attributes = copy.deepcopy(dict(snapshot.attributes))
    if model is None:
        return attributes

    declared = set(model.field_names)
    dropped = [name for name in attributes if name not in declared]
    if dropped:
        logger.debug(
            "Dropping undeclared attributes %s from %s snapshot", dropped, model.name
        )
    return {name: value for name, value in attributes.items() if name in declared}


def _encode_value(value: Any) -> Any:
    # datetime is a subclass of date, so it must be checked first
    if isinstance(value, datetime):
        return {TYPE_TAG: "datetime", "value": value.isoformat()}
    if isinstance(value, date):
        return {TYPE_TAG: "date", "value": value.isoformat()}
    if isinstance(value, Decimal):
        return {TYPE_TAG: "decimal", "value": str(value)}
    if isinstance(value, tuple):
        return {TYPE_TAG: "tuple", "value": [_encode_value(v) for v in value]}
    if isinstance(value, list):
        return [_encode_value(v) for v in value]
    if isinstance(value, dict):
        if not all(isinstance(k, str) for k in value):
            # JSON object keys are strings; keep the originals as pairs
            return {
                TYPE_TAG: "mapping",
                "value": [[_encode_value(k), _encode_value(v)] for k, v in value.items()],
            }
        encoded = {k: _encode_value(v) for k, v in value.items()}
        if TYPE_TAG in value:
            return {TYPE_TAG: "dict", "value": encoded}
        return encoded
    return value


def _decode_value(value: Any) -> Any:
    if isinstance(value, list):
        return [_decode_value(v) for v in value]
    if not isinstance(value, dict):
        return value

    tag = value.get(TYPE_TAG)
    if tag is None:
        return {k: _decode_value(v) for k, v in value.items()}

    raw = value.get("value")
    if tag == "datetime":
        return datetime.fromisoformat(raw)
    if tag == "date":
        return date.fromisoformat(raw)
    if tag == "decimal":
        return Decimal(raw)
    if tag == "tuple":
        return tuple(_decode_value(v) for v in raw)
    if tag == "dict":
        return {k: _decode_value(v) for k, v in raw.items()}
    if tag == "mapping":
        return {_decode_value(k): _decode_value(v) for k, v in raw}

    # Written by a newer codec; keep the raw structure rather than fail
    logger.warning("Unknown snapshot value tag '%s', keeping raw value", tag)
    return {k: _decode_value(v) for k, v in value.items()}


def _read_version(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        logger.warning(
            "Unreadable snapshot format version %r, reading as version %s",
            value,
            SNAPSHOT_FORMAT_VERSION,
        )
        return SNAPSHOT_FORMAT_VERSION
