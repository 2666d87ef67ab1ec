"""PersistenceAdapter Protocol: the interface the draft manager persists through."""

from contextlib import AbstractContextManager
from typing import Any, Protocol, runtime_checkable

from draftforge.drafts.codec import Snapshot
from draftforge.entity import Entity
from draftforge.metadata.loader import EntityModel


@runtime_checkable
class PersistenceAdapter(Protocol):
    """Interface all persistence adapters must implement.

    transaction() must be re-entrant on the calling thread, and the draft
    store in use must write inside the same transaction, so an entity write
    and its draft append commit together.
    """

    def transaction(self) -> AbstractContextManager[Any]: ...

    def initialize_entity(self, entity: EntityModel) -> None: ...

    def persist(self, entity: Entity) -> dict[str, Any]: ...

    def has_prior_identity(self, entity: Entity) -> bool: ...

    def load(self, entity: EntityModel, id: str) -> dict[str, Any] | None: ...

    def load_latest_snapshot(self, entity_name: str, id: str) -> Snapshot | None: ...
