"""
Media descriptors for CutDeck.

A Probe is the metadata the external decode service reports for an asset;
a MediaFile is the library entry the project keeps for it.
"""
from __future__ import annotations
from dataclasses import asdict, dataclass, field
from enum import Enum
from pathlib import PurePath
from typing import Optional
import uuid

from .config import MEDIA_CONFIG
from .errors import ValidationError
from .types import EntityDict


class MediaKind(str, Enum):
    VIDEO = "video"
    AUDIO = "audio"
    IMAGE = "image"


def identify_media_kind(path: str) -> MediaKind:
    """Classify a media path by its extension."""
    ext = PurePath(path).suffix.lstrip(".").lower()
    if not ext:
        raise ValidationError(f"File has no extension: {path}")
    if ext in MEDIA_CONFIG.video_extensions:
        return MediaKind.VIDEO
    if ext in MEDIA_CONFIG.audio_extensions:
        return MediaKind.AUDIO
    if ext in MEDIA_CONFIG.image_extensions:
        return MediaKind.IMAGE
    raise ValidationError(f"Unknown file type for extension: {ext}")


@dataclass(frozen=True)
class Probe:
    """Metadata reported by the external probe service."""
    duration: float
    fps: float = 0.0
    width: int = 0
    height: int = 0
    audio_channels: int = 0
    audio_rate: int = 0
    v_codec: str = ""
    a_codec: str = ""
    container: str = ""

    @classmethod
    def from_dict(cls, data: EntityDict) -> "Probe":
        return cls(
            duration=float(data.get("duration", 0.0)),
            fps=float(data.get("fps", 0.0)),
            width=int(data.get("width", 0)),
            height=int(data.get("height", 0)),
            audio_channels=int(data.get("audio_channels", 0)),
            audio_rate=int(data.get("audio_rate", 0)),
            v_codec=data.get("v_codec", ""),
            a_codec=data.get("a_codec", ""),
            container=data.get("container", ""),
        )

    def to_dict(self) -> EntityDict:
        return asdict(self)


@dataclass
class MediaFile:
    """
    An imported asset in the project library.
    Clips reference it by id; the library owns it.
    """
    id: str
    path: str
    duration: float
    name: str = ""
    width: int = 0
    height: int = 0
    fps: float = 0.0
    audio_channels: int = 0
    thumbnail: Optional[str] = None
    preview_url: Optional[str] = None
    kind: Optional[MediaKind] = None
    metadata: dict = field(default_factory=dict)

    def __post_init__(self):
        if not self.name:
            self.name = PurePath(self.path).name
        if self.kind is not None and not isinstance(self.kind, MediaKind):
            self.kind = MediaKind(self.kind)

    @classmethod
    def from_probe(
        cls,
        path: str,
        probe: Probe,
        media_id: Optional[str] = None,
        thumbnail: Optional[str] = None,
        preview_url: Optional[str] = None,
    ) -> "MediaFile":
        """Create a library entry for a freshly probed asset."""
        try:
            kind = identify_media_kind(path)
        except ValidationError:
            kind = None
        return cls(
            id=media_id or f"media-{uuid.uuid4().hex[:12]}",
            path=path,
            duration=probe.duration,
            width=probe.width,
            height=probe.height,
            fps=probe.fps,
            audio_channels=probe.audio_channels,
            thumbnail=thumbnail,
            preview_url=preview_url or path,
            kind=kind,
        )

    def to_dict(self) -> EntityDict:
        data = asdict(self)
        data["kind"] = self.kind.value if self.kind else None
        return data

    @classmethod
    def from_dict(cls, data: EntityDict) -> "MediaFile":
        return cls(
            id=data["id"],
            path=data["path"],
            duration=float(data["duration"]),
            name=data.get("name", ""),
            width=int(data.get("width", 0)),
            height=int(data.get("height", 0)),
            fps=float(data.get("fps", 0.0)),
            audio_channels=int(data.get("audio_channels", 0)),
            thumbnail=data.get("thumbnail"),
            preview_url=data.get("preview_url"),
            kind=data.get("kind"),
            metadata=dict(data.get("metadata", {})),
        )

    def __repr__(self) -> str:
        return f"MediaFile(id='{self.id}', name='{self.name}', duration={self.duration:.2f}s)"
