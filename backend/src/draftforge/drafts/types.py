"""Draft record types."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Callable, Iterator

from draftforge.core.types import Operation
from draftforge.drafts.codec import Snapshot

if TYPE_CHECKING:
    from draftforge.drafts.reify import ReifiedDraft
    from draftforge.metadata.loader import EntityModel


@dataclass(frozen=True)
class Draft:
    """An immutable entry in an entity's draft log.

    Attributes:
        entity: Entity type name
        entity_id: Primary key of the drafted entity
        operation: The operation that produced this draft
        sequence: Position in the entity's log (1-based, gapless)
        snapshot: Attributes captured at the persistence boundary
        created_at: When the draft was appended (UTC)
    """

    entity: str
    entity_id: str
    operation: Operation
    sequence: int
    snapshot: Snapshot
    created_at: datetime

    def reify(self, model: EntityModel | None = None) -> ReifiedDraft:
        from draftforge.drafts.reify import reify

        return reify(self, model)


# fetch_page(after_sequence, limit) -> drafts with sequence > after_sequence
PageFetcher = Callable[[int, int], list[Draft]]


class DraftLog:
    """Lazy, restartable view over one entity's drafts in sequence order.

    Each iteration issues fresh keyset-paginated queries, so drafts appended
    between iterations are picked up and no cursor outlives a batch.
    """

    def __init__(self, fetch_page: PageFetcher, batch_size: int = 100):
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self._fetch_page = fetch_page
        self.batch_size = batch_size

    def __iter__(self) -> Iterator[Draft]:
        after = 0
        while True:
            page = self._fetch_page(after, self.batch_size)
            yield from page
            if len(page) < self.batch_size:
                return
            after = page[-1].sequence
