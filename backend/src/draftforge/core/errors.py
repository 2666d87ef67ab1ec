"""Exceptions raised by the drafting pipeline.

Pre-commit failures (ValidationFailure, PersistenceFailure, StorageUnavailable)
mean nothing was written and no Draft exists. PostPersistHookFailure means the
operation DID commit; the Draft it carries is durable.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from draftforge.core.types import HookPhase
    from draftforge.drafts.types import Draft


class DraftError(Exception):
    """Base class for drafting errors."""

    committed = False


class ValidationFailure(DraftError):
    """A BEFORE or AROUND_PRE hook aborted the operation."""

    def __init__(
        self,
        message: str,
        hook: str | None = None,
        phase: HookPhase | None = None,
    ):
        super().__init__(message)
        self.hook = hook
        self.phase = phase


class PersistenceFailure(DraftError):
    """The persistence collaborator rejected the entity write."""


class StorageUnavailable(DraftError):
    """The draft store (or the surrounding transaction) rejected the write."""


class PostPersistHookFailure(DraftError):
    """An AROUND_POST or AFTER hook failed after PERSIST committed.

    Callers must not compensate: the draft is already stored.
    """

    committed = True

    def __init__(
        self,
        message: str,
        draft: Draft,
        hook: str | None = None,
        phase: HookPhase | None = None,
    ):
        super().__init__(message)
        self.draft = draft
        self.hook = hook
        self.phase = phase


class NotDraftableError(DraftError):
    """The entity type is not registered for drafting."""
