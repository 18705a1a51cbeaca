from __future__ import annotations
from dataclasses import dataclass, replace
from typing import Iterable, Optional
import uuid

from .types import EntityDict


def new_clip_id() -> str:
    return f"clip-{uuid.uuid4().hex[:12]}"


@dataclass
class Clip:
    """
    A trimmed window of a media file placed on a track.
    start_time/end_time are source seconds, offset is the timeline position.
    """
    id: str
    media_file_id: str
    track_id: str
    start_time: float
    end_time: float
    offset: float = 0.0
    name: str = ""
    description: str = ""
    tags: tuple[str, ...] = ()

    def __post_init__(self):
        if isinstance(self.tags, str):
            raise TypeError("Clip tags must be a sequence of strings, not a string")
        self.tags = tuple(self.tags)

    @property
    def span(self) -> float:
        """Length of the clip on the timeline."""
        return self.end_time - self.start_time

    @property
    def timeline_end(self) -> float:
        return self.offset + self.span

    def contains_time(self, time: float) -> bool:
        """Check if a timeline time falls within this clip."""
        return self.offset <= time < self.timeline_end

    def source_time_at(self, time: float) -> float:
        """Map a timeline time to the matching source time."""
        return self.start_time + (time - self.offset)

    def copy(self, **changes) -> "Clip":
        return replace(self, **changes)

    @classmethod
    def create_new(
        cls,
        media_file_id: str,
        track_id: str,
        start_time: float,
        end_time: float,
        offset: float = 0.0,
        name: Optional[str] = None,
        description: str = "",
        tags: Iterable[str] = (),
    ) -> "Clip":
        """Factory method to create a new clip with a generated ID."""
        return cls(
            id=new_clip_id(),
            media_file_id=media_file_id,
            track_id=track_id,
            start_time=start_time,
            end_time=end_time,
            offset=offset,
            name=name or "",
            description=description,
            tags=tuple(tags),
        )

    def to_dict(self) -> EntityDict:
        return {
            "id": self.id,
            "media_file_id": self.media_file_id,
            "track_id": self.track_id,
            "name": self.name,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "offset": self.offset,
            "description": self.description,
            "tags": list(self.tags),
        }

    @classmethod
    def from_dict(cls, data: EntityDict) -> "Clip":
        return cls(
            id=data["id"],
            media_file_id=data["media_file_id"],
            track_id=data["track_id"],
            start_time=float(data["start_time"]),
            end_time=float(data["end_time"]),
            offset=float(data.get("offset", 0.0)),
            name=data.get("name", ""),
            description=data.get("description", ""),
            tags=tuple(data.get("tags") or ()),
        )
