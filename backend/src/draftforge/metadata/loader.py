"""Load draftable entity metadata from YAML files."""

from pathlib import Path
from dataclasses import dataclass, field
from typing import Any
import yaml

from draftforge.core.types import ALL_OPERATIONS, Operation, get_field_type


@dataclass
class FieldDefinition:
    name: str
    type: str
    primary_key: bool = False
    default: Any = None


@dataclass
class DraftOptions:
    """Drafting configuration from the entity's `drafts:` section."""

    enabled: bool = False
    operations: frozenset[Operation] = ALL_OPERATIONS


@dataclass
class EntityModel:
    name: str
    primary_key: str
    fields: list[FieldDefinition]
    abbreviation: str = ""  # 2-5 chars, uppercase, globally unique
    drafts: DraftOptions = field(default_factory=DraftOptions)

    @property
    def field_names(self) -> list[str]:
        return [f.name for f in self.fields]

    def get_field(self, name: str) -> FieldDefinition | None:
        for f in self.fields:
            if f.name == name:
                return f
        return None

    @property
    def table_name(self) -> str:
        """Convert CamelCase entity name to snake_case table name."""
        result = []
        for i, char in enumerate(self.name):
            if char.isupper() and i > 0:
                result.append("_")
            result.append(char.lower())
        return "".join(result)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "EntityModel":
        """Create an EntityModel from a YAML/JSON dict."""
        name = data["entity"]
        fields = [_resolve_field(f) for f in data.get("fields", [])]

        # Find primary key
        primary_key = "id"
        for f in fields:
            if f.primary_key:
                primary_key = f.name
                break
        if primary_key not in [f.name for f in fields]:
            fields.insert(0, FieldDefinition(name="id", type="id", primary_key=True))

        # Parse or generate abbreviation
        abbreviation = data.get("abbreviation")
        if not abbreviation:
            # Auto-generate from name (first 3 chars, uppercase)
            abbreviation = name[:3].upper()
        else:
            abbreviation = abbreviation.upper()

        return cls(
            name=name,
            primary_key=primary_key,
            fields=fields,
            abbreviation=abbreviation,
            drafts=_resolve_drafts(data.get("drafts")),
        )


def _resolve_field(data: dict[str, Any]) -> FieldDefinition:
    field_type = data.get("type", "string")
    # Raises for unknown types so typos surface at load time
    get_field_type(field_type)
    return FieldDefinition(
        name=data["name"],
        type=field_type,
        primary_key=data.get("primaryKey", False),
        default=data.get("default"),
    )


def _resolve_drafts(data: Any) -> DraftOptions:
    """Parse the `drafts:` section.

    Accepts `drafts: true` as shorthand for all operations.
    """
    if not data:
        return DraftOptions()
    if data is True:
        return DraftOptions(enabled=True)

    operations = data.get("operations", [op.value for op in Operation])
    if isinstance(operations, str):
        operations = [operations]

    return DraftOptions(
        enabled=data.get("enabled", True),
        operations=frozenset(Operation(op) for op in operations),
    )


class MetadataLoader:
    """Loads entity definitions from YAML files."""

    def __init__(self, metadata_path: Path):
        self.metadata_path = metadata_path
        self.entities: dict[str, EntityModel] = {}

    def load_all(self) -> None:
        """Load all entities."""
        self._load_entities()
        self._validate_abbreviations()

    def _validate_abbreviations(self) -> None:
        """Validate entity abbreviations are unique and properly formatted."""
        seen: dict[str, str] = {}  # abbreviation -> entity name

        for entity_name, entity in self.entities.items():
            abbrev = entity.abbreviation

            # Validate format: 2-5 uppercase alphanumeric characters
            if len(abbrev) < 2 or len(abbrev) > 5:
                raise ValueError(
                    f"Entity '{entity_name}' abbreviation '{abbrev}' must be 2-5 characters"
                )
            if not abbrev.isalnum():
                raise ValueError(
                    f"Entity '{entity_name}' abbreviation '{abbrev}' must be alphanumeric"
                )

            # Check uniqueness
            if abbrev in seen:
                raise ValueError(
                    f"Duplicate abbreviation '{abbrev}' used by both "
                    f"'{seen[abbrev]}' and '{entity_name}'"
                )
            seen[abbrev] = entity_name

    def _load_entities(self) -> None:
        """Load entity definitions."""
        entities_path = self.metadata_path / "entities"
        if not entities_path.exists():
            return

        for yaml_file in sorted(entities_path.glob("*.yaml")):
            with open(yaml_file) as f:
                data = yaml.safe_load(f)
                if data and "entity" in data:
                    entity = EntityModel.from_dict(data)
                    self.entities[entity.name] = entity

    def get_entity(self, name: str) -> EntityModel | None:
        return self.entities.get(name)

    def list_entities(self) -> list[str]:
        return sorted(self.entities.keys())
