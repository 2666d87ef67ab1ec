"""Draft manager: runs drafted operations through the hook pipeline.

save_draft() persists the entity and records a draft in one transaction.
draft_destruction() only records a DESTROY draft; removing the entity is
a separate commit step this module never performs. CREATE and UPDATE
therefore take effect immediately while DESTROY is staged.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from draftforge.config import DraftConfig, EntityRegistration
from draftforge.core.errors import NotDraftableError, PersistenceFailure, PostPersistHookFailure
from draftforge.core.types import EntityState, Operation
from draftforge.drafts.codec import encode, encode_attributes
from draftforge.drafts.reify import ReifiedDraft, reify_snapshot
from draftforge.drafts.store import DraftStore
from draftforge.drafts.types import Draft, DraftLog
from draftforge.entity import Entity
from draftforge.hooks.pipeline import HookPipeline
from draftforge.hooks.types import HookContext
from draftforge.metadata.loader import EntityModel

if TYPE_CHECKING:
    from draftforge.persistence.adapter import PersistenceAdapter
    from draftforge.persistence.database import Database

logger = logging.getLogger(__name__)


class DraftManager:
    """Entry point for drafted operations on registered entity types.

    The adapter and store must share a transaction (see
    PersistenceAdapter), so an entity write is never committed without
    its draft. Callers serialize operations per entity instance.
    """

    def __init__(
        self,
        config: DraftConfig,
        adapter: PersistenceAdapter,
        store: DraftStore,
    ):
        self.config = config
        self.adapter = adapter
        self.store = store
        self._pipelines: dict[str, HookPipeline] = {}

    @classmethod
    def for_database(
        cls, config: DraftConfig, database: Database, initialize: bool = True
    ) -> DraftManager:
        """Build a manager on the SQLAlchemy adapter and draft store.

        Args:
            config: Registered entity types
            database: Database shared by adapter and store
            initialize: Create entity, draft and sequence tables if missing
        """
        from draftforge.drafts.store import SQLDraftStore
        from draftforge.persistence.sql import SQLAlchemyAdapter

        adapter = SQLAlchemyAdapter(database)
        store = SQLDraftStore(database, batch_size=config.settings.list_batch_size)
        if initialize:
            database.create_all()
            for model in config.models():
                adapter.initialize_entity(model)
        return cls(config, adapter, store)

    def draftable(self, entity_type: str | EntityModel | Entity) -> bool:
        """Whether an entity type is registered and drafts every operation."""
        return self.config.is_draftable(_type_name(entity_type))

    def save_draft(self, entity: Entity) -> Draft:
        """Persist the entity's full current state and record a draft.

        The operation is CREATE if the entity has no persisted row yet,
        UPDATE otherwise.

        Raises:
            NotDraftableError: If the entity type is not registered
            ValidationFailure: A BEFORE/AROUND_PRE hook aborted; nothing written
            PersistenceFailure: The entity write was rejected; nothing written
            StorageUnavailable: The draft append failed; entity write rolled back
            PostPersistHookFailure: A post-persist hook failed; draft committed
        """
        self.config.get(entity.model.name)
        if self.adapter.has_prior_identity(entity):
            operation = Operation.UPDATE
        else:
            operation = Operation.CREATE
        return self._run(entity, operation, write_entity=True)

    def draft_destruction(self, entity: Entity) -> Draft:
        """Record a DESTROY draft without removing the entity.

        The draft captures the persisted row as it stands before removal.
        Hooks still run and may mutate the live entity, but those changes
        are neither written nor captured.

        Raises:
            PersistenceFailure: If the entity has never been persisted
            (and everything save_draft() raises)
        """
        self.config.get(entity.model.name)
        if not self.adapter.has_prior_identity(entity):
            raise PersistenceFailure(
                f"{entity.model.name} {entity.id!r} has no persisted row to destroy"
            )
        return self._run(entity, Operation.DESTROY, write_entity=False)

    def _run(self, entity: Entity, operation: Operation, write_entity: bool) -> Draft:
        registration = self._registration(entity, operation)
        model = registration.model
        original = None
        if operation is not Operation.CREATE:
            original = self.adapter.load(model, entity.id)

        def persist(ctx: HookContext) -> Draft:
            if write_entity:
                self.adapter.persist(entity)
                snapshot = encode(entity)
            else:
                snapshot = encode_attributes(model, self._persisted_row(entity))
            return self.store.append(model.name, entity.id, operation, snapshot)

        id_before = entity.id
        try:
            draft = self._pipeline(registration).execute(
                entity,
                operation,
                persist,
                atomic=self.adapter.transaction,
                original=original,
            )
        except PostPersistHookFailure:
            raise
        except Exception:
            # Rolled back: an ID assigned during this run no longer exists
            entity.attributes[model.primary_key] = id_before
            raise

        logger.debug(
            "Drafted %s of %s %r as #%d",
            operation.value,
            model.name,
            draft.entity_id,
            draft.sequence,
        )
        return draft

    def reload(self, entity: Entity) -> Entity:
        """Discard in-memory state and reload the persisted row.

        Raises:
            LookupError: If the entity has no persisted row
        """
        row = None
        if entity.id is not None:
            row = self.adapter.load(entity.model, entity.id)
        if row is None:
            raise LookupError(f"{entity.model.name} {entity.id!r} is not persisted")
        entity.replace_attributes(row)
        return entity

    def latest_draft(self, entity: Entity) -> Draft | None:
        if entity.id is None:
            return None
        return self.store.get_latest(entity.model.name, entity.id)

    def drafts(self, entity: Entity) -> DraftLog:
        if entity.id is None:
            raise LookupError(f"{entity.model.name} has no identity yet")
        return self.store.list(entity.model.name, entity.id)

    def reify_latest(self, entity: Entity) -> ReifiedDraft | None:
        """Reify the latest snapshot the persistence collaborator knows of."""
        if entity.id is None:
            return None
        snapshot = self.adapter.load_latest_snapshot(entity.model.name, entity.id)
        if snapshot is None:
            return None
        return reify_snapshot(snapshot, entity.model)

    def state(self, entity: Entity) -> EntityState:
        if not self.adapter.has_prior_identity(entity):
            return EntityState.NEW
        latest = self.latest_draft(entity)
        if latest is not None and latest.operation is Operation.DESTROY:
            return EntityState.DESTROY_STAGED
        return EntityState.PERSISTED

    def _persisted_row(self, entity: Entity) -> dict:
        row = self.adapter.load(entity.model, entity.id)
        if row is None:
            raise PersistenceFailure(
                f"{entity.model.name} {entity.id!r} has no persisted row to destroy"
            )
        return row

    def _registration(self, entity: Entity, operation: Operation) -> EntityRegistration:
        registration = self.config.get(entity.model.name)
        if operation not in registration.operations:
            raise NotDraftableError(
                f"Entity '{entity.model.name}' does not draft {operation.value}"
            )
        return registration

    def _pipeline(self, registration: EntityRegistration) -> HookPipeline:
        name = registration.model.name
        if name not in self._pipelines:
            self._pipelines[name] = HookPipeline(registration.hooks)
        return self._pipelines[name]


def _type_name(entity_type: str | EntityModel | Entity) -> str:
    if isinstance(entity_type, str):
        return entity_type
    if isinstance(entity_type, Entity):
        return entity_type.model.name
    return entity_type.name
