"""Hook registry for draftforge.

Maps (operation, phase) to an ordered list of hooks. One registry is built
per entity type at setup time and handed to the DraftConfig; there is no
process-wide registry.
"""

from collections.abc import Callable

from draftforge.core.types import HookPhase, Operation
from draftforge.hooks.types import AroundHook, HookEntry, HookHandler

REGISTRABLE_PHASES = (
    HookPhase.BEFORE,
    HookPhase.AROUND_PRE,
    HookPhase.AROUND_POST,
    HookPhase.AFTER,
)


class HookRegistry:
    """Registry for one entity type's drafting hooks.

    BEFORE and AFTER hooks run in registration order. AROUND hooks nest:
    the first registered is outermost, so pre segments run in registration
    order and post segments in reverse.

    Example:
        hooks = HookRegistry()

        @hooks.hook(Operation.CREATE, HookPhase.BEFORE)
        def stamp_comment(ctx):
            ctx.entity["before_comment"] = "set before create"
    """

    def __init__(self) -> None:
        self._sequential: dict[tuple[Operation, HookPhase], list[HookEntry]] = {}
        self._around: dict[Operation, list[AroundHook]] = {}

    def register_hook(
        self,
        operation: Operation,
        phase: HookPhase,
        handler: HookHandler,
        name: str | None = None,
    ) -> None:
        """Register a hook for an operation and phase.

        A bare AROUND_PRE or AROUND_POST handler occupies its own AROUND
        slot; use register_around() to pair the two segments.

        Raises:
            ValueError: If phase is PERSIST
        """
        if phase not in REGISTRABLE_PHASES:
            raise ValueError(f"Hooks cannot be registered for phase {phase.name}")

        hook_name = name or _handler_name(handler)
        if phase is HookPhase.AROUND_PRE:
            self._around.setdefault(operation, []).append(
                AroundHook(name=hook_name, pre=handler)
            )
        elif phase is HookPhase.AROUND_POST:
            self._around.setdefault(operation, []).append(
                AroundHook(name=hook_name, post=handler)
            )
        else:
            self._sequential.setdefault((operation, phase), []).append(
                HookEntry(name=hook_name, handler=handler)
            )

    def register_around(
        self,
        operation: Operation,
        pre: HookHandler | None = None,
        post: HookHandler | None = None,
        name: str | None = None,
    ) -> None:
        """Register both segments of an AROUND hook in one nesting slot."""
        if pre is None and post is None:
            raise ValueError("An around hook needs a pre or post segment")
        hook_name = name or _handler_name(pre or post)
        self._around.setdefault(operation, []).append(
            AroundHook(name=hook_name, pre=pre, post=post)
        )

    def hook(
        self, operation: Operation, phase: HookPhase, name: str | None = None
    ) -> Callable[[HookHandler], HookHandler]:
        """Decorator form of register_hook()."""

        def decorator(fn: HookHandler) -> HookHandler:
            self.register_hook(operation, phase, fn, name=name)
            return fn

        return decorator

    def handlers(self, operation: Operation, phase: HookPhase) -> list[HookEntry]:
        """Hooks for a phase, in the order the pipeline must run them."""
        if phase is HookPhase.AROUND_PRE:
            return [
                HookEntry(name=a.name, handler=a.pre)
                for a in self._around.get(operation, [])
                if a.pre is not None
            ]
        if phase is HookPhase.AROUND_POST:
            return [
                HookEntry(name=a.name, handler=a.post)
                for a in reversed(self._around.get(operation, []))
                if a.post is not None
            ]
        return list(self._sequential.get((operation, phase), []))

    def handles(self, operation: Operation) -> bool:
        """Whether any hook is registered for the operation."""
        if self._around.get(operation):
            return True
        return any(
            entries for (op, _), entries in self._sequential.items() if op is operation
        )

    def list_registered(self) -> list[str]:
        """List all registered hook names."""
        names = {e.name for entries in self._sequential.values() for e in entries}
        names.update(a.name for slots in self._around.values() for a in slots)
        return sorted(names)

    def clear(self) -> None:
        """Clear all registrations."""
        self._sequential.clear()
        self._around.clear()


def _handler_name(handler: HookHandler) -> str:
    return getattr(handler, "__name__", type(handler).__name__)
