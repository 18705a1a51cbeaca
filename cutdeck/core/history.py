"""
Linear undo/redo over whole-state snapshots.

Snapshots are full copies, not diffs. Entry 0 is the initial state and is
never discarded; pushing after an undo drops the stale redo branch.
"""
from __future__ import annotations
import copy
from typing import Generic, Optional, TypeVar

from .config import HISTORY_CONFIG
from ..utils.logger import logger

T = TypeVar("T")


class HistoryEntry(Generic[T]):
    __slots__ = ("snapshot", "description")

    def __init__(self, snapshot: T, description: str = ""):
        self.snapshot = snapshot
        self.description = description


class HistoryManager(Generic[T]):
    """
    Ordered snapshots plus a cursor.

    Args:
        initial: Snapshot stored at index 0
        max_depth: Maximum number of entries kept, counting the initial
            snapshot (0 disables trimming; anything else is at least 2)
    """

    def __init__(self, initial: T, max_depth: int = HISTORY_CONFIG.max_depth):
        # Below 2 a push would trim away the entry it just recorded
        self.max_depth = max(max_depth, HISTORY_CONFIG.min_depth) if max_depth else 0
        self._entries: list[HistoryEntry[T]] = [HistoryEntry(copy.deepcopy(initial), "Initial state")]
        self._index = 0

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def index(self) -> int:
        return self._index

    @property
    def current(self) -> T:
        return copy.deepcopy(self._entries[self._index].snapshot)

    @property
    def entries(self) -> list[T]:
        return [copy.deepcopy(e.snapshot) for e in self._entries]

    @property
    def can_undo(self) -> bool:
        return self._index > 0

    @property
    def can_redo(self) -> bool:
        return self._index < len(self._entries) - 1

    @property
    def undo_description(self) -> Optional[str]:
        if not self.can_undo:
            return None
        return self._entries[self._index].description

    @property
    def redo_description(self) -> Optional[str]:
        if not self.can_redo:
            return None
        return self._entries[self._index + 1].description

    def push(self, snapshot: T, description: str = "") -> None:
        """Record a new state, discarding anything that could be redone."""
        del self._entries[self._index + 1:]
        self._entries.append(HistoryEntry(copy.deepcopy(snapshot), description))
        self._index = len(self._entries) - 1

        # Trim the oldest edits but keep the initial snapshot
        if self.max_depth and len(self._entries) > self.max_depth:
            excess = len(self._entries) - self.max_depth
            del self._entries[1:1 + excess]
            self._index -= excess
        logger.debug(f"History pushed: {description or 'snapshot'} (index {self._index})")

    def undo(self) -> T:
        """Step back one entry and return the snapshot now current."""
        if not self.can_undo:
            logger.debug("Nothing to undo")
            return self.current
        description = self._entries[self._index].description
        self._index -= 1
        logger.info(f"Undo: {description or 'snapshot'} (index {self._index})")
        return self.current

    def redo(self) -> T:
        """Step forward one entry and return that snapshot."""
        if not self.can_redo:
            logger.debug("Nothing to redo")
            return self.current
        self._index += 1
        logger.info(f"Redo: {self._entries[self._index].description or 'snapshot'} (index {self._index})")
        return self.current

    def reset(self, initial: T) -> None:
        """Drop every entry and start over from a new initial snapshot."""
        self._entries = [HistoryEntry(copy.deepcopy(initial), "Initial state")]
        self._index = 0
        logger.debug("History cleared")

    def restore(self, snapshots: list[T], index: Optional[int] = None) -> None:
        """Replace the whole history, e.g. after loading a project file."""
        if not snapshots:
            raise ValueError("History needs at least the initial snapshot")
        self._entries = [HistoryEntry(copy.deepcopy(s)) for s in snapshots]
        if index is None:
            index = len(self._entries) - 1
        self._index = max(0, min(index, len(self._entries) - 1))

    def checkpoint(self) -> tuple[list[HistoryEntry[T]], int]:
        """Capture the entry list and cursor; entries are never mutated in place."""
        return list(self._entries), self._index

    def rollback(self, checkpoint: tuple[list[HistoryEntry[T]], int]) -> None:
        """Return to a state captured by checkpoint()."""
        entries, index = checkpoint
        self._entries = list(entries)
        self._index = index
