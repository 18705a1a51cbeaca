"""
Type definitions for the CutDeck core module.
Provides type aliases and change-notification types shared by the store
and its subscribers.
"""
from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Sequence, Union
import numpy as np
from numpy.typing import NDArray

if TYPE_CHECKING:
    from .project import Project

# Amplitude samples, one scalar per bin, uniformly spread over the media
PeaksArray = NDArray[np.float64]
Peaks = Union[Sequence[float], PeaksArray]

# Serialized entity payloads
EntityDict = dict[str, Any]


class ChangeKind(str, Enum):
    """Part of the project touched by a committed mutation."""
    MEDIA = "media"
    TRACKS = "tracks"
    CLIPS = "clips"
    TIMELINE = "timeline"
    CUTS = "cuts"
    PROJECT = "project"  # Whole aggregate replaced (import, load, undo)


@dataclass(frozen=True)
class ProjectChange:
    """Notification delivered to subscribers after every committed mutation."""
    kinds: frozenset[ChangeKind]
    ids: tuple[str, ...]
    project: "Project"

    def touches(self, kind: ChangeKind) -> bool:
        return kind in self.kinds or ChangeKind.PROJECT in self.kinds


# Callback types
Subscriber = Callable[[ProjectChange], None]
Unsubscribe = Callable[[], None]
