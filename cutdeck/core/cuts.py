"""
Preview and accepted cut lists.

Preview cuts are proposals (from commands, manual marks or the agent).
Accepting folds them into the accepted list, which is merge-normalised and
recorded in its own undo history.
"""
from __future__ import annotations
import threading
from typing import Any, Callable, Iterable, Optional

from .config import HISTORY_CONFIG
from .history import HistoryManager
from .ranges import Range, merge_ranges
from ..utils.logger import logger

CutSnapshot = tuple[Range, ...]


class CutList:
    """
    Proposed and committed cut ranges with linear undo/redo.

    Args:
        on_change: Called with no arguments after every committed change
        max_depth: History depth for accepted-cut snapshots
        lock: Lock held by every mutator; the owning store passes its own
            so cut edits and project edits are serialised together
    """

    def __init__(
        self,
        on_change: Optional[Callable[[], None]] = None,
        max_depth: int = HISTORY_CONFIG.max_depth,
        lock: Optional[threading.RLock] = None,
    ):
        self._lock = lock if lock is not None else threading.RLock()
        self._preview: list[Range] = []
        self._accepted: list[Range] = []
        self._mark_in: Optional[float] = None
        self._on_change = on_change
        self.history: HistoryManager[CutSnapshot] = HistoryManager((), max_depth=max_depth)

    @property
    def preview(self) -> list[Range]:
        with self._lock:
            return list(self._preview)

    @property
    def accepted(self) -> list[Range]:
        with self._lock:
            return list(self._accepted)

    @property
    def pending_mark_in(self) -> Optional[float]:
        return self._mark_in

    def _changed(self) -> None:
        if self._on_change is not None:
            self._on_change()

    # --- Preview ---

    def propose(self, ranges: Iterable[Range]) -> list[Range]:
        """Replace the preview list; invalid ranges are dropped."""
        proposed = []
        for rng in ranges:
            if rng.is_valid:
                proposed.append(rng)
            else:
                logger.warning(f"Ignoring empty or inverted cut {rng}")
        with self._lock:
            self._preview = proposed
            logger.debug(f"Preview: {len(proposed)} cut(s)")
            self._changed()
            return list(proposed)

    def add_preview_cut(self, rng: Range) -> bool:
        if not rng.is_valid:
            logger.warning(f"Ignoring empty or inverted cut {rng}")
            return False
        with self._lock:
            self._preview.append(rng)
            logger.debug(f"Manual cut added: {rng.start:.2f}s - {rng.end:.2f}s")
            self._changed()
        return True

    def mark_in(self, time: float) -> None:
        with self._lock:
            self._mark_in = time
        logger.debug(f"Mark In: {time:.2f}s")

    def mark_out(self, time: float) -> Optional[Range]:
        """Close a marked region; proposes a cut when out lies after in."""
        logger.debug(f"Mark Out: {time:.2f}s")
        with self._lock:
            if self._mark_in is None or time <= self._mark_in:
                return None
            rng = Range(self._mark_in, time)
            self._mark_in = None
            self.add_preview_cut(rng)
            return rng

    def reject(self) -> None:
        """Discard every proposal."""
        with self._lock:
            if not self._preview:
                return
            self._preview = []
            self._changed()

    # --- Accepted ---

    def _commit(self, accepted: list[Range], description: str) -> None:
        self._accepted = accepted
        self.history.push(tuple(accepted), description)
        self._changed()

    def accept(self) -> list[Range]:
        """Fold the preview into the accepted list and record it."""
        with self._lock:
            merged = merge_ranges(self._accepted + self._preview)
            count = len(self._preview)
            self._preview = []
            self._commit(merged, f"Accept {count} cut(s)")
            logger.info(f"Accepted. Total accepted cuts: {len(merged)}")
            return list(merged)

    def remove_accepted(self, index: int) -> Optional[Range]:
        with self._lock:
            if not 0 <= index < len(self._accepted):
                logger.warning(f"No accepted cut at index {index}")
                return None
            removed = self._accepted[index]
            remaining = self._accepted[:index] + self._accepted[index + 1:]
            self._commit(remaining, f"Remove cut {removed}")
        logger.info(f"Removed cut {index + 1}: {removed.start:.2f}s - {removed.end:.2f}s")
        return removed

    def clear_accepted(self) -> None:
        with self._lock:
            if not self._accepted:
                return
            self._commit([], "Clear cuts")

    # --- History ---

    def undo(self) -> list[Range]:
        with self._lock:
            self._accepted = list(self.history.undo())
            logger.info(f"Undo: Restored {len(self._accepted)} cuts")
            self._changed()
            return list(self._accepted)

    def redo(self) -> list[Range]:
        with self._lock:
            self._accepted = list(self.history.redo())
            logger.info(f"Redo: Restored {len(self._accepted)} cuts")
            self._changed()
            return list(self._accepted)

    def restore(self, entries: list[list[Range]], index: Optional[int] = None) -> None:
        """
        Load a saved history; the accepted list follows the cursor.
        Entry 0 is always the empty list, so a history that starts with cuts
        gets one prepended and the cursor moves along with it.
        """
        entries = [tuple(e) for e in entries]
        if not entries or entries[0]:
            entries.insert(0, ())
            if index is not None:
                index += 1
        with self._lock:
            self.history.restore(entries, index)
            self._accepted = list(self.history.current)
            self._preview = []
            self._mark_in = None
            self._changed()

    def reset(self) -> None:
        with self._lock:
            self._preview = []
            self._accepted = []
            self._mark_in = None
            self.history.reset(())
            self._changed()

    # --- Transactions ---

    def checkpoint(self) -> Any:
        """Capture the whole cut state for a later rollback()."""
        with self._lock:
            return (
                list(self._preview),
                list(self._accepted),
                self._mark_in,
                self.history.checkpoint(),
            )

    def rollback(self, checkpoint: Any) -> None:
        """Silently return to a checkpoint; the caller owns notification."""
        preview, accepted, mark_in, history = checkpoint
        with self._lock:
            self._preview = list(preview)
            self._accepted = list(accepted)
            self._mark_in = mark_in
            self.history.rollback(history)
