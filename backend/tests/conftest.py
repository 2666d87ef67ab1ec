"""Shared fixtures: metadata, an in-memory database, and the Talkative hooks."""

from pathlib import Path

import pytest

from draftforge.config import DraftConfig
from draftforge.core.types import HookPhase, Operation
from draftforge.drafts import DraftManager
from draftforge.entity import Entity
from draftforge.hooks import HookRegistry
from draftforge.metadata.loader import MetadataLoader
from draftforge.persistence import Database, DatabaseConfig

METADATA_PATH = Path(__file__).resolve().parents[2] / "metadata"

VERBS = {
    Operation.CREATE: "creation",
    Operation.UPDATE: "update",
    Operation.DESTROY: "destroy",
}


def talkative_hooks() -> HookRegistry:
    """Before, around and after hooks for every operation.

    Each one writes a comment naming the phase and operation it ran in.
    """
    hooks = HookRegistry()
    for operation, verb in VERBS.items():

        def before(ctx, verb=verb):
            ctx.entity["before_comment"] = f"I changed before {verb}"

        def around_pre(ctx, verb=verb):
            ctx.entity["around_early_comment"] = f"I changed around {verb} (before yield)"

        def around_post(ctx, verb=verb):
            ctx.entity["around_late_comment"] = f"I changed around {verb} (after yield)"

        def after(ctx, verb=verb):
            ctx.entity["after_comment"] = f"I changed after {verb}"

        hooks.register_hook(operation, HookPhase.BEFORE, before, name=f"before_{verb}")
        hooks.register_around(
            operation, pre=around_pre, post=around_post, name=f"around_{verb}"
        )
        hooks.register_hook(operation, HookPhase.AFTER, after, name=f"after_{verb}")
    return hooks


@pytest.fixture
def metadata_loader():
    """Load the project's entity metadata."""
    loader = MetadataLoader(METADATA_PATH)
    loader.load_all()
    return loader


@pytest.fixture
def talkative_model(metadata_loader):
    return metadata_loader.get_entity("Talkative")


@pytest.fixture
def database():
    db = Database(DatabaseConfig.in_memory())
    yield db
    db.dispose()


@pytest.fixture
def config(metadata_loader):
    return DraftConfig.from_metadata(metadata_loader, {"Talkative": talkative_hooks()})


@pytest.fixture
def manager(config, database):
    return DraftManager.for_database(config, database)


@pytest.fixture
def talkative(talkative_model):
    return Entity(talkative_model)
