"""Sequence management for entity IDs and draft numbering.

Counters live in the _sequences table, keyed by (scope, key):
- entity IDs: scope "entity:{EntityName}", key "" -> "TLK-00001"
- draft sequences: scope "draft:{EntityName}", key entity_id -> 1, 2, 3...

Increments run on the caller's connection, inside its transaction: the
UPDATE takes the row's write lock until commit, and a rollback rewinds
the counter, so committed values are gapless.
"""

import sqlalchemy as sa


class SequenceService:
    """Manages counters in the _sequences table."""

    def __init__(self, table: sa.Table):
        self.table = table

    def next_id(self, conn: sa.Connection, entity_name: str, abbreviation: str) -> str:
        """Generate the next ID for an entity.

        Returns:
            Formatted ID like "TLK-00001"
        """
        sequence_value = self.next_value(conn, f"entity:{entity_name}")

        # Format: ABBREV-NNNNN (5 digits, zero-padded)
        return f"{abbreviation}-{sequence_value:05d}"

    def next_value(self, conn: sa.Connection, scope: str, key: str = "") -> int:
        """Get the next counter value and increment it.

        UPDATE first so an existing row is locked before it is read; only a
        missing row falls through to INSERT.
        """
        t = self.table
        where = sa.and_(t.c.scope == scope, t.c.key == key)

        updated = conn.execute(
            sa.update(t).where(where).values(next_value=t.c.next_value + 1)
        )
        if updated.rowcount == 0:
            # New counter starting at 1; next caller gets 2
            conn.execute(sa.insert(t).values(scope=scope, key=key, next_value=2))
            return 1

        next_value = conn.execute(sa.select(t.c.next_value).where(where)).scalar_one()
        return next_value - 1

    def current_value(self, conn: sa.Connection, scope: str, key: str = "") -> int:
        """Get the last issued value without incrementing.

        Returns 0 if no counter exists yet.
        """
        t = self.table
        next_value = conn.execute(
            sa.select(t.c.next_value).where(t.c.scope == scope, t.c.key == key)
        ).scalar_one_or_none()
        if next_value is None:
            return 0
        return next_value - 1
