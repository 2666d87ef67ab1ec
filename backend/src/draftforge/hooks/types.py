"""Hook system types for draftforge.

Defines the core data structures for the drafting hook pipeline:
- HookHandler: the single-call interface every hook implements
- HookEntry / AroundHook: registered hooks, as stored by HookRegistry
- HookContext: runtime state passed to hook functions
- HookResult: optional return value from hook functions
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol

from draftforge.core.types import HookPhase, Operation

if TYPE_CHECKING:
    from draftforge.drafts.types import Draft
    from draftforge.entity import Entity


@dataclass
class HookResult:
    """Return value from hook functions.

    Attributes:
        update: Fields to merge into the live entity
        abort: Error message to abort the operation (pre-persist phases) or
            to report a failure (post-persist phases)
    """

    update: dict[str, Any] | None = None
    abort: str | None = None


class HookHandler(Protocol):
    """Anything callable with a HookContext."""

    def __call__(self, ctx: HookContext) -> HookResult | None: ...


@dataclass
class HookEntry:
    """A registered hook segment."""

    name: str
    handler: HookHandler


@dataclass
class AroundHook:
    """An AROUND hook: a pre segment and a post segment sharing one nesting slot.

    Either segment may be missing when registered on its own.
    """

    name: str
    pre: HookHandler | None = None
    post: HookHandler | None = None


@dataclass
class HookContext:
    """Runtime context passed to every hook function.

    Attributes:
        entity: The live entity being drafted (mutations go straight to it)
        operation: The current operation (create, update, destroy)
        phase: The phase currently executing
        original: Persisted state before this run (None for create)
        draft: The draft produced by PERSIST (None before it)
    """

    entity: Entity
    operation: Operation
    phase: HookPhase = HookPhase.BEFORE
    original: dict[str, Any] | None = None
    draft: Draft | None = field(default=None, repr=False)

    @property
    def attributes(self) -> dict[str, Any]:
        return self.entity.attributes

    @property
    def changes(self) -> dict[str, Any] | None:
        return compute_changes(self.entity.attributes, self.original)


def compute_changes(
    record: dict[str, Any], original: dict[str, Any] | None
) -> dict[str, Any] | None:
    """Compute a diff of changed fields between record and original.

    Returns None if original is None (create operations).
    Returns a dict of {field: new_value} for fields that differ.
    """
    if original is None:
        return None

    changes: dict[str, Any] = {}
    for key, value in record.items():
        if key in original and original[key] != value:
            changes[key] = value
        elif key not in original:
            changes[key] = value

    return changes
