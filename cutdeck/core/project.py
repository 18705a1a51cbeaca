"""
Project abstraction for CutDeck.
Encapsulates the editable aggregate: tracks, clips, media files and
timeline settings, all keyed by id.
"""
from __future__ import annotations
from dataclasses import asdict, dataclass, field, fields
import copy
from typing import Optional

from .clip import Clip
from .config import PROJECT_CONFIG, TIMELINE_CONFIG, TRACK_CONFIG
from .errors import NotFoundError, ValidationError
from .media import MediaFile
from .track import Track, TrackType
from .types import EntityDict


@dataclass
class TimelineSettings:
    """View-level settings; not covered by the temporal invariants."""
    zoom: float = TIMELINE_CONFIG.default_zoom
    pan: float = 0.0
    playhead: float = 0.0
    duration: float = 0.0  # 0 means derive from content

    def to_dict(self) -> EntityDict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: EntityDict) -> "TimelineSettings":
        known = {f.name for f in fields(cls)}
        return cls(**{k: float(v) for k, v in data.items() if k in known})


def default_tracks() -> dict[str, Track]:
    """The video and audio lanes every new project starts with."""
    video = Track(
        id=TRACK_CONFIG.default_video_id,
        name="Video Track",
        type=TrackType.VIDEO,
        order=0,
    )
    audio = Track(
        id=TRACK_CONFIG.default_audio_id,
        name="Audio Track",
        type=TrackType.AUDIO,
        order=1,
    )
    return {video.id: video, audio.id: audio}


@dataclass
class Project:
    """
    Represents a video editing project.
    Media files are owned here; clips refer to them and to tracks by id.
    """
    title: str = PROJECT_CONFIG.default_title
    tracks: dict[str, Track] = field(default_factory=default_tracks)
    clips: dict[str, Clip] = field(default_factory=dict)
    media_files: dict[str, MediaFile] = field(default_factory=dict)
    timeline: TimelineSettings = field(default_factory=TimelineSettings)
    path: Optional[str] = None

    @property
    def content_end(self) -> float:
        """Timeline time where the last clip ends."""
        if not self.clips:
            return 0.0
        return max(c.timeline_end for c in self.clips.values())

    @property
    def effective_duration(self) -> float:
        """Duration the timeline should show, with room to drop past the end."""
        if self.timeline.duration > 0:
            return self.timeline.duration
        return max(TIMELINE_CONFIG.min_duration, self.content_end + TIMELINE_CONFIG.tail_padding)

    def get_track(self, track_id: str) -> Optional[Track]:
        return self.tracks.get(track_id)

    def get_clip(self, clip_id: str) -> Optional[Clip]:
        return self.clips.get(clip_id)

    def get_media_file(self, media_file_id: str) -> Optional[MediaFile]:
        return self.media_files.get(media_file_id)

    def require_track(self, track_id: str) -> Track:
        track = self.tracks.get(track_id)
        if track is None:
            raise NotFoundError("Track", track_id)
        return track

    def require_clip(self, clip_id: str) -> Clip:
        clip = self.clips.get(clip_id)
        if clip is None:
            raise NotFoundError("Clip", clip_id)
        return clip

    def require_media_file(self, media_file_id: str) -> MediaFile:
        media = self.media_files.get(media_file_id)
        if media is None:
            raise NotFoundError("Media file", media_file_id)
        return media

    def tracks_in_order(self, track_type: Optional[TrackType] = None) -> list[Track]:
        """Tracks sorted top to bottom, optionally of one type."""
        tracks = [
            t for t in self.tracks.values()
            if track_type is None or t.type is TrackType(track_type)
        ]
        return sorted(tracks, key=lambda t: (t.order, t.id))

    def clips_on_track(self, track_id: str) -> list[Clip]:
        """Clips on a track sorted by timeline offset."""
        clips = [c for c in self.clips.values() if c.track_id == track_id]
        return sorted(clips, key=lambda c: (c.offset, c.id))

    def clips_using_media(self, media_file_id: str) -> list[Clip]:
        return [c for c in self.clips.values() if c.media_file_id == media_file_id]

    def track_end(self, track_id: str) -> float:
        """First free offset after every clip on a track (0 when empty)."""
        clips = self.clips_on_track(track_id)
        if not clips:
            return 0.0
        return max(c.timeline_end for c in clips)

    def next_track_order(self, track_type: TrackType) -> int:
        """
        Order for a newly added track.
        Video lanes stack above existing video lanes, audio lanes below
        existing audio lanes.
        """
        same_type = self.tracks_in_order(track_type)
        if TrackType(track_type) is TrackType.VIDEO:
            if not same_type:
                return TRACK_CONFIG.first_added_video_order
            return min(t.order for t in same_type) - 1
        if not same_type:
            return TRACK_CONFIG.first_added_audio_order
        return max(t.order for t in same_type) + 1

    def validate_clip(self, clip: Clip) -> None:
        """
        Check a clip against the temporal and reference invariants.

        Raises:
            NotFoundError: Track or media file does not exist
            ValidationError: Source window or offset out of bounds
        """
        self.require_track(clip.track_id)
        media = self.require_media_file(clip.media_file_id)
        if clip.start_time < 0:
            raise ValidationError(f"Clip {clip.id} starts before the media ({clip.start_time})")
        if clip.start_time >= clip.end_time:
            raise ValidationError(
                f"Clip {clip.id} has an empty window ({clip.start_time} >= {clip.end_time})"
            )
        if clip.end_time > media.duration:
            raise ValidationError(
                f"Clip {clip.id} ends after the media ({clip.end_time} > {media.duration})"
            )
        if clip.offset < 0:
            raise ValidationError(f"Clip {clip.id} has a negative offset ({clip.offset})")

    def copy(self) -> "Project":
        """Deep copy, safe to hand to readers."""
        return copy.deepcopy(self)

    def clear(self) -> None:
        """Reset project to its initial state."""
        self.title = PROJECT_CONFIG.default_title
        self.tracks = default_tracks()
        self.clips.clear()
        self.media_files.clear()
        self.timeline = TimelineSettings()
        self.path = None

    def __repr__(self) -> str:
        return (
            f"Project(title='{self.title}', tracks={len(self.tracks)}, "
            f"clips={len(self.clips)}, media={len(self.media_files)})"
        )
