"""Undo/redo stacks of invertible operations with grouped transactions."""

import time
import uuid
from collections.abc import Iterator
from contextlib import contextmanager

from loguru import logger

from heartbeat.config import DEFAULT_HISTORY_SIZE
from heartbeat.models.history import HistoryEntry, HistoryState, HistoryStep, Operation


class HistoryManager:
    """Bounded undo and redo stacks.

    The manager stores operations, not tree snapshots, and never touches a
    tree: applying the inverse of a returned step is the caller's job (see
    ``heartbeat.core.history.replay``).

    Entries pushed between ``start_group()`` and ``end_group()`` share a group
    id and are undone and redone together.
    """

    def __init__(self, max_size: int = DEFAULT_HISTORY_SIZE) -> None:
        if max_size < 1:
            msg = f"History size must be positive, got {max_size}"
            raise ValueError(msg)
        self.max_size = max_size
        self._undo: list[HistoryEntry] = []
        self._redo: list[HistoryEntry] = []
        self._group_id: str | None = None
        self._group_depth = 0

    def start_group(self) -> None:
        """Open a group. Nested calls join the group already open."""
        if self._group_depth == 0:
            self._group_id = uuid.uuid4().hex
        self._group_depth += 1

    def end_group(self) -> None:
        """Close the innermost group; the group ends with the outermost call."""
        if self._group_depth == 0:
            logger.warning("end_group() without a matching start_group()")
            return
        self._group_depth -= 1
        if self._group_depth == 0:
            self._group_id = None

    @contextmanager
    def group(self) -> Iterator[None]:
        """Context manager form of start_group()/end_group()."""
        self.start_group()
        try:
            yield
        finally:
            self.end_group()

    def push(self, operation: Operation) -> None:
        """Record an operation. Any redo history is discarded."""
        self._undo.append(
            HistoryEntry(operation=operation, timestamp=time.time(), group_id=self._group_id)
        )
        self._redo.clear()
        if len(self._undo) > self.max_size:
            evicted = self._undo.pop(0)
            logger.debug("History full, evicted {}", type(evicted.operation).__name__)

    @staticmethod
    def _pop_step(source: list[HistoryEntry], target: list[HistoryEntry]) -> HistoryStep | None:
        if not source:
            return None
        entry = source.pop()
        popped = [entry]
        if entry.group_id is not None:
            while source and source[-1].group_id == entry.group_id:
                popped.append(source.pop())
        target.extend(popped)
        return HistoryStep(entries=tuple(popped))

    def undo(self) -> HistoryStep | None:
        """Move the newest entry (and the rest of its group) to the redo stack.

        Returns:
            The entries newest first, the order in which their inverses must
            be applied, or None when there is nothing to undo.
        """
        return self._pop_step(self._undo, self._redo)

    def redo(self) -> HistoryStep | None:
        """Move the most recently undone entry (and its group) back.

        Returns:
            The entries oldest first, the order in which they must be
            re-applied, or None when there is nothing to redo.
        """
        return self._pop_step(self._redo, self._undo)

    def can_undo(self) -> bool:
        return bool(self._undo)

    def can_redo(self) -> bool:
        return bool(self._redo)

    def state(self) -> HistoryState:
        return HistoryState(
            undo_depth=len(self._undo),
            redo_depth=len(self._redo),
            can_undo=self.can_undo(),
            can_redo=self.can_redo(),
        )

    def clear(self) -> None:
        """Drop all history, including an open group."""
        self._undo.clear()
        self._redo.clear()
        self._group_id = None
        self._group_depth = 0
