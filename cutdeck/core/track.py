from __future__ import annotations
from dataclasses import dataclass, replace
from enum import Enum

from .config import TRACK_CONFIG
from .types import EntityDict


class TrackType(str, Enum):
    VIDEO = "video"
    AUDIO = "audio"


def clamp_volume(volume) -> int:
    return int(max(TRACK_CONFIG.min_volume, min(TRACK_CONFIG.max_volume, volume)))


@dataclass
class Track:
    """
    A timeline lane hosting clips of one type.
    `order` stacks lanes vertically: video lanes take the lower values,
    audio lanes the higher ones.
    """
    id: str
    name: str = "Track"
    type: TrackType = TrackType.VIDEO
    enabled: bool = True
    muted: bool = False
    volume: int = TRACK_CONFIG.default_volume
    order: int = 0

    def __post_init__(self):
        self.type = TrackType(self.type)
        self.volume = clamp_volume(self.volume)

    @property
    def is_video(self) -> bool:
        return self.type is TrackType.VIDEO

    @property
    def is_audio(self) -> bool:
        return self.type is TrackType.AUDIO

    def copy(self) -> "Track":
        return replace(self)

    def to_dict(self) -> EntityDict:
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type.value,
            "enabled": self.enabled,
            "muted": self.muted,
            "volume": self.volume,
            "order": self.order,
        }

    @classmethod
    def from_dict(cls, data: EntityDict) -> "Track":
        return cls(
            id=data["id"],
            name=data.get("name", "Track"),
            type=TrackType(str(data.get("type", "video")).lower()),
            enabled=data.get("enabled", True),
            muted=data.get("muted", False),
            volume=data.get("volume", TRACK_CONFIG.default_volume),
            order=int(data.get("order", 0)),
        )

    def __repr__(self) -> str:
        return f"Track(id='{self.id}', name='{self.name}', type={self.type.value}, order={self.order})"
