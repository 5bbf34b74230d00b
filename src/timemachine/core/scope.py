"""Context-local registry of the active change set."""

import contextlib
from contextvars import ContextVar
from typing import Iterator, Optional

from timemachine.models.change_set import ChangeSet


class ChangeScopeRegistry:
    """Associates the current unit of work with its change set.

    Each thread (and each asyncio task) sees its own slot, so code deep
    inside request handling can find the active batch without it being
    passed down explicitly.
    """

    def __init__(self, name: str = "timemachine_change_set"):
        self._current: ContextVar[Optional[ChangeSet]] = ContextVar(name, default=None)

    def start_scope(self) -> ChangeSet:
        """Start a new, empty change set, replacing any previous one."""
        change_set = ChangeSet()
        self._current.set(change_set)
        return change_set

    def current_change_set(self) -> Optional[ChangeSet]:
        """Get the active change set, or None outside a scope."""
        return self._current.get()

    def end_scope(self) -> None:
        self._current.set(None)

    @contextlib.contextmanager
    def scope(self) -> Iterator[ChangeSet]:
        """Run a block inside a fresh scope that is always ended."""
        change_set = self.start_scope()
        try:
            yield change_set
        finally:
            self.end_scope()
