"""Hook pipeline for draftforge.

Runs the five drafting phases around a persist step:

    BEFORE -> AROUND_PRE -> PERSIST -> AROUND_POST -> AFTER

BEFORE, AROUND_PRE and PERSIST run inside one atomic() context; a failure
anywhere in them aborts the run with nothing committed. AROUND_POST and
AFTER run after commit. Their mutations stay on the live entity only, and
their failures are reported without undoing the commit.
"""

import logging
from contextlib import AbstractContextManager, nullcontext
from typing import Any, Callable, TypeVar

from draftforge.core.errors import DraftError, PostPersistHookFailure, ValidationFailure
from draftforge.core.types import HookPhase, Operation
from draftforge.entity import Entity
from draftforge.hooks.registry import HookRegistry
from draftforge.hooks.types import HookContext, HookEntry

logger = logging.getLogger(__name__)

T = TypeVar("T")

AtomicFn = Callable[[], AbstractContextManager[Any]]


class HookPipeline:
    """Executes one entity type's hooks around a persist step.

    Hooks within a phase execute sequentially. A hook mutates the entity
    directly through ctx.entity or returns a HookResult whose update is
    merged into it before the next hook runs.
    """

    def __init__(self, registry: HookRegistry):
        self.registry = registry

    def execute(
        self,
        entity: Entity,
        operation: Operation,
        persist: Callable[[HookContext], T],
        atomic: AtomicFn = nullcontext,
        original: dict[str, Any] | None = None,
    ) -> T:
        """Run all phases and return whatever persist returned.

        Args:
            entity: The live entity
            operation: The operation being performed
            persist: The PERSIST step; its return value becomes ctx.draft
            atomic: Context manager factory wrapping BEFORE through PERSIST
            original: Persisted state before this run, exposed to hooks

        Raises:
            ValidationFailure: A BEFORE or AROUND_PRE hook failed
            PostPersistHookFailure: An AROUND_POST or AFTER hook failed
            DraftError: Whatever persist raised, unchanged
        """
        ctx = HookContext(entity=entity, operation=operation, original=original)

        with atomic():
            self._run_phase(HookPhase.BEFORE, ctx)
            self._run_phase(HookPhase.AROUND_PRE, ctx)

            ctx.phase = HookPhase.PERSIST
            logger.debug("%s %r: %s", operation.value, entity, ctx.phase.name)
            result = persist(ctx)
            ctx.draft = result

        self._run_phase(HookPhase.AROUND_POST, ctx)
        self._run_phase(HookPhase.AFTER, ctx)
        return result

    def _run_phase(self, phase: HookPhase, ctx: HookContext) -> None:
        ctx.phase = phase
        entries = self.registry.handlers(ctx.operation, phase)
        if entries:
            logger.debug(
                "%s %r: %s (%d hooks)",
                ctx.operation.value,
                ctx.entity,
                phase.name,
                len(entries),
            )

        for entry in entries:
            try:
                result = entry.handler(ctx)
                if result is not None and result.update:
                    ctx.entity.update(result.update)
            except PostPersistHookFailure:
                raise
            except ValidationFailure as e:
                if phase.is_post_persist:
                    raise self._post_persist_failure(ctx, entry, str(e)) from e
                if e.hook is None:
                    e.hook, e.phase = entry.name, phase
                raise
            except DraftError as e:
                if phase.is_post_persist:
                    raise self._post_persist_failure(ctx, entry, str(e)) from e
                raise
            except Exception as e:
                message = f"Hook '{entry.name}' failed: {e}"
                if phase.is_post_persist:
                    raise self._post_persist_failure(ctx, entry, message) from e
                raise ValidationFailure(message, hook=entry.name, phase=phase) from e

            if result is not None and result.abort:
                message = f"Hook '{entry.name}' aborted: {result.abort}"
                if phase.is_post_persist:
                    raise self._post_persist_failure(ctx, entry, message)
                raise ValidationFailure(message, hook=entry.name, phase=phase)

    def _post_persist_failure(
        self, ctx: HookContext, entry: HookEntry, message: str
    ) -> PostPersistHookFailure:
        logger.error(
            "%s hook '%s' failed after commit: %s",
            ctx.phase.name,
            entry.name,
            message,
        )
        return PostPersistHookFailure(
            message, draft=ctx.draft, hook=entry.name, phase=ctx.phase
        )
