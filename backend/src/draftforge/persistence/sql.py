"""SQLAlchemy persistence adapter.

Works against any SQLAlchemy-supported database; SQLite and PostgreSQL
(psycopg v3) are the configured targets. Entity rows live in one table
per entity model; the latest snapshot is read from the shared draft log.
"""

from __future__ import annotations

from typing import Any

import sqlalchemy as sa
from sqlalchemy.exc import SQLAlchemyError

from draftforge.core.errors import PersistenceFailure, StorageUnavailable
from draftforge.drafts.codec import Snapshot
from draftforge.entity import Entity
from draftforge.metadata.loader import EntityModel
from draftforge.persistence.database import Database
from draftforge.persistence.sequences import SequenceService


class SQLAlchemyAdapter:
    """Persistence adapter over a Database."""

    def __init__(self, database: Database):
        self.database = database
        self._sequence_service = SequenceService(database.sequences)

    def transaction(self):
        return self.database.transaction()

    def initialize_entity(self, entity: EntityModel) -> None:
        """Create table for entity if it doesn't exist."""
        self.database.initialize_entity(entity)

    def persist(self, entity: Entity) -> dict[str, Any]:
        """Write the entity's entire current attribute state.

        Inserts when no row exists for the entity's ID (assigning a
        sequence-based ID if it has none), otherwise updates every declared
        non-key column, whether or not this caller changed it.

        Returns:
            The persisted row

        Raises:
            PersistenceFailure: If the database rejects the write
        """
        model = entity.model
        table = self.database.table_for(model)
        pk = model.primary_key

        try:
            with self.database.transaction() as conn:
                if entity.id is not None and self._fetch(conn, table, model, entity.id):
                    values = {
                        name: value
                        for name, value in entity.attributes.items()
                        if name != pk
                    }
                    conn.execute(
                        sa.update(table).where(table.c[pk] == entity.id).values(values)
                    )
                else:
                    if entity.id is None:
                        entity[pk] = self._sequence_service.next_id(
                            conn, model.name, model.abbreviation
                        )
                    conn.execute(sa.insert(table).values(dict(entity.attributes)))

                return self._fetch(conn, table, model, entity.id)
        except SQLAlchemyError as e:
            raise PersistenceFailure(
                f"Failed to persist {model.name} {entity.id!r}: {e}"
            ) from e

    def has_prior_identity(self, entity: Entity) -> bool:
        """True if the entity already has a persisted row."""
        if entity.id is None:
            return False
        return self.load(entity.model, entity.id) is not None

    def load(self, entity: EntityModel, id: str) -> dict[str, Any] | None:
        """Fetch a single row by ID."""
        table = self.database.table_for(entity)
        try:
            with self.database.transaction() as conn:
                return self._fetch(conn, table, entity, id)
        except SQLAlchemyError as e:
            raise StorageUnavailable(f"Failed to load {entity.name} {id!r}: {e}") from e

    def load_latest_snapshot(self, entity_name: str, id: str) -> Snapshot | None:
        """Snapshot of the entity's highest-sequence draft, if any."""
        drafts = self.database.drafts
        try:
            with self.database.transaction() as conn:
                payload = conn.execute(
                    sa.select(drafts.c.snapshot)
                    .where(drafts.c.entity == entity_name, drafts.c.entity_id == str(id))
                    .order_by(drafts.c.sequence.desc())
                    .limit(1)
                ).scalar_one_or_none()
        except SQLAlchemyError as e:
            raise StorageUnavailable(
                f"Failed to load latest snapshot for {entity_name} {id!r}: {e}"
            ) from e

        if payload is None:
            return None
        return Snapshot.from_json(payload)

    def _fetch(
        self, conn: sa.Connection, table: sa.Table, entity: EntityModel, id: Any
    ) -> dict[str, Any] | None:
        row = conn.execute(
            sa.select(table).where(table.c[entity.primary_key] == id)
        ).mappings().first()
        if row:
            return dict(row)
        return None
