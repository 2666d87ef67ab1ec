"""draftforge drafting hook system.

Provides extension points that run at specific points of a drafted
operation (create, update, destroy):
- BEFORE: before persist (can modify the entity, can abort)
- AROUND_PRE: pre segment of an around hook (can modify, can abort)
- AROUND_POST: post segment of an around hook (in-memory only, after commit)
- AFTER: after commit (in-memory only)

Usage:
    from draftforge.core.types import HookPhase, Operation
    from draftforge.hooks import HookRegistry, HookResult

    hooks = HookRegistry()

    @hooks.hook(Operation.CREATE, HookPhase.BEFORE)
    def default_title(ctx):
        return HookResult(update={"title": ctx.entity["title"] or "Untitled"})
"""

from draftforge.hooks.pipeline import HookPipeline
from draftforge.hooks.registry import HookRegistry
from draftforge.hooks.types import (
    AroundHook,
    HookContext,
    HookEntry,
    HookHandler,
    HookResult,
    compute_changes,
)

__all__ = [
    "AroundHook",
    "HookContext",
    "HookEntry",
    "HookHandler",
    "HookPipeline",
    "HookRegistry",
    "HookResult",
    "compute_changes",
]
