"""Reify: detached attribute views over stored snapshots."""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Iterator

from draftforge.core.types import Operation
from draftforge.drafts.codec import Snapshot, decode

if TYPE_CHECKING:
    from draftforge.drafts.types import Draft
    from draftforge.metadata.loader import EntityModel


class ReifiedDraft(Mapping):
    """Read-only attribute view reconstructed from a snapshot.

    Not attached to any live entity; changing the entity later never
    changes the view, and the view cannot be written back.
    """

    def __init__(
        self,
        attributes: dict[str, Any],
        entity: str,
        entity_id: str | None = None,
        operation: Operation | None = None,
        sequence: int | None = None,
    ):
        self._attributes = attributes
        self.entity = entity
        self.entity_id = entity_id
        self.operation = operation
        self.sequence = sequence

    def __getitem__(self, name: str) -> Any:
        return self._attributes[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._attributes)

    def __len__(self) -> int:
        return len(self._attributes)

    def __repr__(self) -> str:
        return f"<ReifiedDraft {self.entity} {self.entity_id!r} #{self.sequence}>"


def reify(draft: Draft, model: EntityModel | None = None) -> ReifiedDraft:
    """Reconstruct the attributes captured by a draft."""
    return ReifiedDraft(
        decode(draft.snapshot, model),
        entity=draft.entity,
        entity_id=draft.entity_id,
        operation=draft.operation,
        sequence=draft.sequence,
    )


def reify_snapshot(
    snapshot: Snapshot, model: EntityModel | None = None
) -> ReifiedDraft:
    """Reconstruct attributes from a bare snapshot with no draft metadata."""
    return ReifiedDraft(decode(snapshot, model), entity=snapshot.entity)
