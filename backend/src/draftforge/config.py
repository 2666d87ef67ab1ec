"""Drafting configuration.

DraftConfig is the explicit registry of draftable entity types handed to
a DraftManager at construction. DraftSettings carries the environment
driven knobs.
"""

from __future__ import annotations

import os
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path

from draftforge.core.errors import NotDraftableError
from draftforge.core.types import ALL_OPERATIONS, Operation
from draftforge.hooks.registry import HookRegistry
from draftforge.metadata.loader import EntityModel, MetadataLoader


@dataclass
class DraftSettings:
    """Runtime settings.

    Attributes:
        list_batch_size: Rows fetched per page when iterating a draft log
        metadata_path: Directory holding entities/*.yaml, if any
    """

    list_batch_size: int = 100
    metadata_path: Path | None = None

    @classmethod
    def from_env(cls) -> DraftSettings:
        """Create settings from DRAFTFORGE_* environment variables."""
        batch_size = int(os.environ.get("DRAFTFORGE_LIST_BATCH_SIZE", "100"))
        if batch_size < 1:
            raise ValueError("DRAFTFORGE_LIST_BATCH_SIZE must be at least 1")

        metadata_path = os.environ.get("DRAFTFORGE_METADATA_PATH")
        return cls(
            list_batch_size=batch_size,
            metadata_path=Path(metadata_path) if metadata_path else None,
        )


@dataclass
class EntityRegistration:
    """A registered entity type: its model, hooks, and drafted operations."""

    model: EntityModel
    hooks: HookRegistry = field(default_factory=HookRegistry)
    operations: frozenset[Operation] = ALL_OPERATIONS

    @property
    def draftable(self) -> bool:
        return self.operations >= ALL_OPERATIONS


class DraftConfig:
    """Registry of entity types the draft manager may operate on."""

    def __init__(self, settings: DraftSettings | None = None):
        self.settings = settings or DraftSettings()
        self._entities: dict[str, EntityRegistration] = {}

    def register(
        self,
        model: EntityModel,
        hooks: HookRegistry | None = None,
        operations: Iterable[Operation] | None = None,
    ) -> EntityRegistration:
        """Register an entity type for drafting.

        Raises:
            ValueError: If the entity type is already registered
        """
        if model.name in self._entities:
            raise ValueError(f"Entity '{model.name}' is already registered")

        registration = EntityRegistration(
            model=model,
            hooks=hooks or HookRegistry(),
            operations=frozenset(operations) if operations is not None else ALL_OPERATIONS,
        )
        self._entities[model.name] = registration
        return registration

    def get(self, entity_name: str) -> EntityRegistration:
        """Get a registration by entity type name.

        Raises:
            NotDraftableError: If the entity type is not registered
        """
        if entity_name not in self._entities:
            raise NotDraftableError(f"Entity '{entity_name}' is not registered for drafts")
        return self._entities[entity_name]

    def is_registered(self, entity_name: str) -> bool:
        return entity_name in self._entities

    def is_draftable(self, entity_name: str) -> bool:
        """True if registered and handling create, update and destroy."""
        registration = self._entities.get(entity_name)
        return registration is not None and registration.draftable

    def list_registered(self) -> list[str]:
        return sorted(self._entities.keys())

    def models(self) -> list[EntityModel]:
        return [self._entities[name].model for name in self.list_registered()]

    @classmethod
    def from_metadata(
        cls,
        loader: MetadataLoader,
        hooks: Mapping[str, HookRegistry] | None = None,
        settings: DraftSettings | None = None,
    ) -> DraftConfig:
        """Register every loaded entity whose `drafts:` section is enabled.

        Args:
            loader: MetadataLoader with entities loaded
            hooks: Hook registries keyed by entity name
            settings: Runtime settings
        """
        hooks = hooks or {}
        unknown = set(hooks) - set(loader.entities)
        if unknown:
            raise ValueError(f"Hooks given for unknown entities: {sorted(unknown)}")

        config = cls(settings)
        for name in loader.list_entities():
            model = loader.entities[name]
            if not model.drafts.enabled:
                continue
            config.register(model, hooks.get(name), model.drafts.operations)
        return config

    @classmethod
    def from_env(cls, hooks: Mapping[str, HookRegistry] | None = None) -> DraftConfig:
        """Build a config from DraftSettings.from_env().

        Entities are loaded from DRAFTFORGE_METADATA_PATH when it is set;
        otherwise the config starts empty and types are registered by hand.
        """
        settings = DraftSettings.from_env()
        if settings.metadata_path is None:
            if hooks:
                raise ValueError("Hooks given but DRAFTFORGE_METADATA_PATH is not set")
            return cls(settings)

        loader = MetadataLoader(settings.metadata_path)
        loader.load_all()
        return cls.from_metadata(loader, hooks, settings)
