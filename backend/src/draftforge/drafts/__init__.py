"""draftforge drafts: snapshots, the draft log, and the draft manager.

Usage:
    from draftforge.config import DraftConfig
    from draftforge.drafts import DraftManager
    from draftforge.persistence import Database, DatabaseConfig

    config = DraftConfig()
    config.register(talkative_model, hooks=talkative_hooks)
    manager = DraftManager.for_database(config, Database(DatabaseConfig.from_env()))

    draft = manager.save_draft(talkative)
    draft.reify()["before_comment"]
"""

from draftforge.drafts.codec import (
    SNAPSHOT_FORMAT_VERSION,
    Snapshot,
    decode,
    encode,
    encode_attributes,
)
from draftforge.drafts.manager import DraftManager
from draftforge.drafts.reify import ReifiedDraft, reify, reify_snapshot
from draftforge.drafts.store import DraftStore, SQLDraftStore
from draftforge.drafts.types import Draft, DraftLog

__all__ = [
    "Draft",
    "DraftLog",
    "DraftManager",
    "DraftStore",
    "ReifiedDraft",
    "SNAPSHOT_FORMAT_VERSION",
    "SQLDraftStore",
    "Snapshot",
    "decode",
    "encode",
    "encode_attributes",
    "reify",
    "reify_snapshot",
]
