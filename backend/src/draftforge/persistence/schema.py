"""Table definitions for entities, drafts and sequences."""

import sqlalchemy as sa

from draftforge.core.types import get_storage_type
from draftforge.metadata.loader import EntityModel

DRAFTS_TABLE = "_drafts"
SEQUENCES_TABLE = "_sequences"


def drafts_table(metadata: sa.MetaData) -> sa.Table:
    """Append-only draft log. (entity, entity_id, sequence) is unique."""
    return sa.Table(
        DRAFTS_TABLE,
        metadata,
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("entity", sa.Text, nullable=False),
        sa.Column("entity_id", sa.Text, nullable=False),
        sa.Column("sequence", sa.Integer, nullable=False),
        sa.Column("operation", sa.Text, nullable=False),
        sa.Column("snapshot", sa.Text, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("entity", "entity_id", "sequence", name="uq_drafts_sequence"),
    )


def sequences_table(metadata: sa.MetaData) -> sa.Table:
    """Counters for entity IDs and per-entity draft sequences."""
    return sa.Table(
        SEQUENCES_TABLE,
        metadata,
        sa.Column("scope", sa.Text, primary_key=True),
        sa.Column("key", sa.Text, primary_key=True),
        sa.Column("next_value", sa.Integer, nullable=False, server_default="1"),
    )


def entity_table(metadata: sa.MetaData, entity: EntityModel) -> sa.Table:
    """Table for an entity model, one column per declared field."""
    columns = []
    for field in entity.fields:
        columns.append(
            sa.Column(
                field.name,
                get_storage_type(field.type),
                primary_key=field.primary_key,
                nullable=not field.primary_key,
            )
        )
    return sa.Table(entity.table_name, metadata, *columns)
