"""
Centralized configuration for CutDeck.
All magic numbers and default settings in one place.
"""
from dataclasses import dataclass
from enum import Enum


class RemovalPolicy(Enum):
    """What to do with clips that reference a removed track or media file."""
    REJECT = "reject"    # Refuse the removal while clips reference the entity
    CASCADE = "cascade"  # Remove the dependent clips as well
    ORPHAN = "orphan"    # Keep the clips; they become dangling references


class ResizeAnchor(Enum):
    """Which timeline edge of a clip stays fixed while resizing."""
    START = "start"
    END = "end"


@dataclass(frozen=True, slots=True)
class SilenceConfig:
    """Silence detection settings."""
    threshold_ratio: float = 0.15  # Fraction of the loudest peak
    amplitude_floor: float = 1.0   # Loudest peak is never taken below this
    default_leave_ms: int = 150
    min_tightened_seconds: float = 0.001


@dataclass(frozen=True, slots=True)
class HistoryConfig:
    """Undo/Redo configuration."""
    max_depth: int = 200
    min_depth: int = 2  # Initial snapshot plus one edit


@dataclass(frozen=True, slots=True)
class TrackConfig:
    """Track defaults and stacking rules."""
    default_volume: int = 100
    min_volume: int = 0
    max_volume: int = 100
    default_video_id: str = "video-1"
    default_audio_id: str = "audio-1"
    first_added_video_order: int = -1  # Video tracks stack upwards
    first_added_audio_order: int = 2   # Audio tracks stack downwards


@dataclass(frozen=True, slots=True)
class TimelineConfig:
    """Timeline view settings."""
    default_zoom: float = 1.0
    min_zoom: float = 0.1
    max_zoom: float = 10.0
    min_duration: float = 60.0
    tail_padding: float = 10.0


@dataclass(frozen=True, slots=True)
class ProjectConfig:
    """Project file settings."""
    default_title: str = "Untitled Project"
    file_extension: str = ".cdproj"
    json_indent: int = 2
    encoding: str = "utf-8"


@dataclass(frozen=True, slots=True)
class MediaConfig:
    """Recognized media file extensions."""
    video_extensions: tuple[str, ...] = ("mp4", "mov", "mkv", "avi", "webm")
    audio_extensions: tuple[str, ...] = ("mp3", "wav", "aac", "m4a", "flac")
    image_extensions: tuple[str, ...] = ("png", "jpg", "jpeg", "gif", "bmp", "webp")


# Global config instances (immutable singletons)
SILENCE_CONFIG = SilenceConfig()
HISTORY_CONFIG = HistoryConfig()
TRACK_CONFIG = TrackConfig()
TIMELINE_CONFIG = TimelineConfig()
PROJECT_CONFIG = ProjectConfig()
MEDIA_CONFIG = MediaConfig()
