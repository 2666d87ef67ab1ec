"""Draft store: the append-only, per-entity draft log."""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

import sqlalchemy as sa
from sqlalchemy.exc import SQLAlchemyError

from draftforge.core.errors import StorageUnavailable
from draftforge.core.types import Operation
from draftforge.drafts.codec import Snapshot
from draftforge.drafts.types import Draft, DraftLog
from draftforge.persistence.sequences import SequenceService

if TYPE_CHECKING:
    from draftforge.persistence.database import Database

logger = logging.getLogger(__name__)

LOCK_STRIPES = 64


@runtime_checkable
class DraftStore(Protocol):
    """Interface for append-only draft logs: no update or delete."""

    def append(
        self,
        entity: str,
        entity_id: str,
        operation: Operation,
        snapshot: Snapshot,
    ) -> Draft: ...

    def get(self, entity: str, entity_id: str, sequence: int) -> Draft | None: ...

    def get_latest(self, entity: str, entity_id: str) -> Draft | None: ...

    def list(self, entity: str, entity_id: str) -> DraftLog: ...


class SQLDraftStore:
    """Draft store backed by the _drafts table.

    append() joins the caller's transaction when one is active on this
    thread, so a failed append also rolls back the entity write that
    preceded it.
    """

    def __init__(self, database: Database, batch_size: int = 100):
        self.database = database
        self.table = database.drafts
        self.batch_size = batch_size
        self._sequence_service = SequenceService(database.sequences)
        self._locks = tuple(threading.Lock() for _ in range(LOCK_STRIPES))

    def append(
        self,
        entity: str,
        entity_id: str,
        operation: Operation,
        snapshot: Snapshot,
    ) -> Draft:
        """Append a snapshot as the entity's next draft.

        Raises:
            StorageUnavailable: If the snapshot cannot be serialized or the
                database rejects the write
        """
        entity_id = str(entity_id)
        try:
            payload = snapshot.to_json()
        except (TypeError, ValueError) as e:
            raise StorageUnavailable(
                f"Snapshot for {entity} {entity_id!r} cannot be serialized: {e}"
            ) from e

        with self._lock_for(entity, entity_id):
            try:
                with self.database.transaction() as conn:
                    sequence = self._sequence_service.next_value(
                        conn, f"draft:{entity}", entity_id
                    )
                    draft = Draft(
                        entity=entity,
                        entity_id=entity_id,
                        operation=operation,
                        sequence=sequence,
                        snapshot=snapshot,
                        created_at=datetime.now(timezone.utc),
                    )
                    conn.execute(
                        sa.insert(self.table).values(
                            entity=entity,
                            entity_id=entity_id,
                            sequence=sequence,
                            operation=operation.value,
                            snapshot=payload,
                            created_at=draft.created_at,
                        )
                    )
            except SQLAlchemyError as e:
                raise StorageUnavailable(
                    f"Failed to append draft for {entity} {entity_id!r}: {e}"
                ) from e

        logger.debug(
            "Appended %s draft #%d for %s %r", operation.value, sequence, entity, entity_id
        )
        return draft

    def get(self, entity: str, entity_id: str, sequence: int) -> Draft | None:
        t = self.table
        rows = self._select(
            sa.select(t).where(
                t.c.entity == entity,
                t.c.entity_id == str(entity_id),
                t.c.sequence == sequence,
            )
        )
        return rows[0] if rows else None

    def get_latest(self, entity: str, entity_id: str) -> Draft | None:
        t = self.table
        rows = self._select(
            sa.select(t)
            .where(t.c.entity == entity, t.c.entity_id == str(entity_id))
            .order_by(t.c.sequence.desc())
            .limit(1)
        )
        return rows[0] if rows else None

    def list(self, entity: str, entity_id: str) -> DraftLog:
        """Drafts for one entity in ascending sequence order, fetched lazily."""
        t = self.table
        entity_id = str(entity_id)

        def fetch_page(after: int, limit: int) -> list[Draft]:
            return self._select(
                sa.select(t)
                .where(
                    t.c.entity == entity,
                    t.c.entity_id == entity_id,
                    t.c.sequence > after,
                )
                .order_by(t.c.sequence)
                .limit(limit)
            )

        return DraftLog(fetch_page, batch_size=self.batch_size)

    def _select(self, stmt: sa.Select) -> list[Draft]:
        try:
            with self.database.transaction() as conn:
                rows = conn.execute(stmt).mappings().all()
        except SQLAlchemyError as e:
            raise StorageUnavailable(f"Failed to read drafts: {e}") from e
        return [_row_to_draft(row) for row in rows]

    def _lock_for(self, entity: str, entity_id: str) -> threading.Lock:
        # Striped: distinct entities may share a lock, one entity always maps to one
        return self._locks[hash((entity, entity_id)) % LOCK_STRIPES]


def _row_to_draft(row: Any) -> Draft:
    created_at = row["created_at"]
    # SQLite drops the offset; values are always written in UTC
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=timezone.utc)
    return Draft(
        entity=row["entity"],
        entity_id=row["entity_id"],
        operation=Operation(row["operation"]),
        sequence=row["sequence"],
        snapshot=Snapshot.from_json(row["snapshot"]),
        created_at=created_at,
    )
