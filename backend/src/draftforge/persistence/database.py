"""SQLAlchemy engine, tables and the shared transaction.

The entity adapter and the draft store both write through
Database.transaction(). It is re-entrant per thread: a nested call joins
the outer transaction, so an entity write and its draft append commit or
roll back together.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager

import sqlalchemy as sa
from sqlalchemy.exc import SQLAlchemyError

from draftforge.core.errors import StorageUnavailable
from draftforge.metadata.loader import EntityModel
from draftforge.persistence.config import DatabaseConfig
from draftforge.persistence.schema import drafts_table, entity_table, sequences_table

logger = logging.getLogger(__name__)


class Database:
    """Owns the engine, table metadata and per-thread active connection."""

    def __init__(self, config: DatabaseConfig):
        self.config = config
        self.engine = sa.create_engine(config.sqlalchemy_url, **config.engine_options())
        self.metadata = sa.MetaData()
        self.drafts = drafts_table(self.metadata)
        self.sequences = sequences_table(self.metadata)
        self._local = threading.local()

    def create_all(self) -> None:
        """Create all known tables if they don't exist."""
        self.metadata.create_all(self.engine)

    def table_for(self, entity: EntityModel) -> sa.Table:
        """Get (defining on first use) the table for an entity model."""
        table = self.metadata.tables.get(entity.table_name)
        if table is None:
            table = entity_table(self.metadata, entity)
        return table

    def initialize_entity(self, entity: EntityModel) -> sa.Table:
        """Create the entity's table if it doesn't exist."""
        table = self.table_for(entity)
        table.create(self.engine, checkfirst=True)
        return table

    @property
    def in_transaction(self) -> bool:
        return getattr(self._local, "connection", None) is not None

    @contextmanager
    def transaction(self) -> Iterator[sa.Connection]:
        """Begin a transaction, or join the one already active on this thread.

        Commits when the outermost block exits cleanly, rolls back otherwise.
        Exceptions raised inside the block propagate unchanged.

        Raises:
            StorageUnavailable: If connecting or committing fails
        """
        active = getattr(self._local, "connection", None)
        if active is not None:
            yield active
            return

        try:
            conn = self.engine.connect()
            trans = conn.begin()
        except SQLAlchemyError as e:
            logger.error("Could not open transaction: %s", e)
            raise StorageUnavailable(f"Could not open transaction: {e}") from e

        self._local.connection = conn
        try:
            try:
                yield conn
            except BaseException:
                trans.rollback()
                raise
            try:
                trans.commit()
            except SQLAlchemyError as e:
                logger.error("Commit failed: %s", e)
                raise StorageUnavailable(f"Commit failed: {e}") from e
        finally:
            self._local.connection = None
            conn.close()

    def dispose(self) -> None:
        self.engine.dispose()
