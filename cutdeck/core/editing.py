"""
Clip editing operations for CutDeck.

ClipEditor builds split/resize/trim/move/drop on top of the ProjectStore.
Each operation reads and writes inside one store batch, so it is either
applied completely or not at all. Invalid requests are logged and ignored.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Iterable, Literal, Optional, Union

from .clip import Clip
from .config import RemovalPolicy, ResizeAnchor
from .errors import ValidationError, rejects_invalid
from .media import MediaFile
from .store import ProjectStore
from .track import Track, TrackType
from ..utils.logger import logger


# --- Drop payloads ---

@dataclass(frozen=True)
class MediaFileDrop:
    """A library asset dragged onto a track."""
    media_file: MediaFile
    kind: Literal["media-file"] = "media-file"


# Future payload kinds join this union
DropPayload = Union[MediaFileDrop]


def parse_drop_payload(raw: Any) -> DropPayload:
    """
    Validate an untyped drag payload at the UI boundary.

    Raises:
        ValidationError: Unknown kind or malformed media description
    """
    if isinstance(raw, MediaFileDrop):
        return raw
    if not isinstance(raw, dict):
        raise ValidationError(f"Drop payload must be a mapping, got {type(raw).__name__}")

    kind = raw.get("kind")
    if kind == "media-file":
        media = raw.get("media_file")
        if isinstance(media, MediaFile):
            return MediaFileDrop(media_file=media)
        if isinstance(media, dict):
            try:
                return MediaFileDrop(media_file=MediaFile.from_dict(media))
            except (KeyError, TypeError, ValueError) as e:
                raise ValidationError(f"Malformed media file in drop payload: {e}") from e
        raise ValidationError("Drop payload of kind 'media-file' has no media_file")
    raise ValidationError(f"Unsupported drop payload kind: {kind!r}")


class ClipEditor:
    """
    Higher-level clip operations with the clip invariants enforced:
    0 <= start_time < end_time <= media duration, offset >= 0.
    """

    def __init__(self, store: ProjectStore):
        self.store = store

    # --- Split ---

    @rejects_invalid()
    def split_clip(self, clip_id: str, split_time: float) -> Optional[tuple[str, str]]:
        """
        Split a clip at a timeline time strictly inside it.

        The first part keeps the clip id, source start and offset; the second
        begins exactly where the first ends, in source and timeline terms.

        Returns:
            (first_id, second_id), or None when the split was not applied
        """
        with self.store.batch("Split clip") as project:
            clip = project.require_clip(clip_id)
            if not clip.offset < split_time < clip.timeline_end:
                raise ValidationError(
                    f"Split time {split_time:.3f}s is outside clip {clip_id} "
                    f"[{clip.offset:.3f}s, {clip.timeline_end:.3f}s)"
                )

            split_source = clip.source_time_at(split_time)
            first = clip.copy(end_time=split_source)
            second = Clip.create_new(
                media_file_id=clip.media_file_id,
                track_id=clip.track_id,
                start_time=split_source,
                end_time=clip.end_time,
                offset=first.timeline_end,
                name=f"{clip.name} (2)" if clip.name else "",
                description=clip.description,
                tags=clip.tags,
            )
            if not (
                self.store.update_clip(clip_id, end_time=first.end_time)
                and self.store.add_clip(second)
            ):
                raise ValidationError(f"Split of clip {clip_id} could not be applied")

        logger.info(f"Split clip {clip_id} at {split_time:.2f}s -> {second.id}")
        return clip_id, second.id

    # --- Resize / trim ---

    @rejects_invalid(default=False)
    def resize_clip(
        self,
        clip_id: str,
        new_start_time: Optional[float] = None,
        new_end_time: Optional[float] = None,
        anchor: ResizeAnchor = ResizeAnchor.START,
    ) -> bool:
        """
        Change a clip's source window.

        Args:
            clip_id: Clip to resize
            new_start_time: New source start (None keeps the current one)
            new_end_time: New source end (None keeps the current one)
            anchor: START keeps the clip's offset; END keeps its timeline end

        Returns:
            True if the clip was updated
        """
        with self.store.batch("Resize clip") as project:
            clip = project.require_clip(clip_id)
            media = project.require_media_file(clip.media_file_id)

            start = clip.start_time if new_start_time is None else new_start_time
            end = clip.end_time if new_end_time is None else new_end_time
            start = min(max(start, 0.0), media.duration)
            end = min(max(end, 0.0), media.duration)
            if start >= end:
                raise ValidationError(f"Resize would leave clip {clip_id} empty ({start} >= {end})")

            offset = clip.offset
            if ResizeAnchor(anchor) is ResizeAnchor.END:
                offset = clip.timeline_end - (end - start)
                if offset < 0:
                    raise ValidationError(
                        f"Resize of clip {clip_id} anchored at its end needs a negative offset"
                    )

            if not self.store.update_clip(clip_id, start_time=start, end_time=end, offset=offset):
                raise ValidationError(f"Resize of clip {clip_id} could not be applied")

        logger.debug(f"Resized clip {clip_id} to {start:.2f}s - {end:.2f}s at {offset:.2f}s")
        return True

    def trim_clip(self, clip_id: str, new_start_time: float, new_end_time: float) -> bool:
        """Set both source bounds, keeping the clip's offset."""
        return self.resize_clip(clip_id, new_start_time, new_end_time, ResizeAnchor.START)

    # --- Move ---

    @rejects_invalid(default=False)
    def move_clip(self, clip_id: str, new_offset: float, track_id: Optional[str] = None) -> bool:
        """
        Place a clip at a new offset, optionally on another track.
        Overlap with other clips is allowed.
        """
        if new_offset < 0:
            raise ValidationError(f"Cannot move clip {clip_id} to negative offset {new_offset}")
        patch: dict[str, Any] = {"offset": new_offset}
        if track_id is not None:
            patch["track_id"] = track_id
        with self.store.batch("Move clip") as project:
            project.require_clip(clip_id)
            if track_id is not None:
                project.require_track(track_id)
            if not self.store.update_clip(clip_id, **patch):
                raise ValidationError(f"Move of clip {clip_id} could not be applied")
        logger.debug(f"Moved clip {clip_id} to {new_offset:.2f}s")
        return True

    # --- Adding clips ---

    @rejects_invalid()
    def add_clip_from_media(
        self,
        media_file_id: str,
        track_id: str,
        offset: float,
        start_time: float,
        end_time: float,
        name: Optional[str] = None,
        description: str = "",
        tags: Iterable[str] = (),
    ) -> Optional[str]:
        """
        Place a window of a library asset at an explicit offset.
        The description and tags annotate the clip, e.g. why the agent picked it.
        """
        with self.store.batch("Add clip") as project:
            media = project.require_media_file(media_file_id)
            project.require_track(track_id)
            clip = Clip.create_new(
                media_file_id=media_file_id,
                track_id=track_id,
                start_time=start_time,
                end_time=end_time,
                offset=offset,
                name=name or media.name,
                description=description,
                tags=tags,
            )
            project.validate_clip(clip)
            if not self.store.add_clip(clip):
                raise ValidationError(f"Clip for {media_file_id} could not be added")
        return clip.id

    @rejects_invalid()
    def handle_drop_media(
        self,
        payload: DropPayload,
        track_id: str,
        offset: float,
        explicit_placement: bool = False,
    ) -> Optional[str]:
        """
        Create a clip for a dropped asset.

        Without explicit placement the clip is appended after the last clip
        on the track; with it, the drop offset is used as is.

        Returns:
            The new clip id, or None when the drop was rejected
        """
        payload = parse_drop_payload(payload)
        media = payload.media_file
        with self.store.batch(f"Drop {media.name}") as project:
            project.require_track(track_id)
            if media.id not in project.media_files:
                logger.debug(f"Registering dropped media {media.id}")
                if not self.store.add_media_file(media):
                    raise ValidationError(f"Dropped media {media.id} could not be registered")
            media = project.media_files[media.id]

            if explicit_placement:
                final_offset = max(0.0, offset)
                logger.debug(f"Manual placement at {final_offset:.2f}s")
            else:
                final_offset = project.track_end(track_id)
                logger.debug(f"Auto-placing clip at {final_offset:.2f}s (next available position)")

            clip = Clip.create_new(
                media_file_id=media.id,
                track_id=track_id,
                start_time=0.0,
                end_time=media.duration,
                offset=final_offset,
                name=media.name,
            )
            if not self.store.add_clip(clip):
                raise ValidationError(f"Dropped clip for {media.id} could not be added")

        logger.info(f"Dropped {media.name} onto track {track_id} at {final_offset:.2f}s")
        return clip.id

    # --- Deleting ---

    def delete_clip(self, clip_id: str) -> bool:
        return self.store.remove_clip(clip_id)

    # --- Tracks ---

    @rejects_invalid()
    def add_track(self, track_type: TrackType, name: Optional[str] = None) -> Optional[str]:
        """
        Add a lane stacked after the existing lanes of its type.

        Returns:
            The new track id
        """
        track_type = TrackType(track_type)
        with self.store.batch(f"Add {track_type.value} track") as project:
            count = len(project.tracks_in_order(track_type)) + 1
            track_id = f"{track_type.value}-{count}"
            while track_id in project.tracks:
                count += 1
                track_id = f"{track_type.value}-{count}"
            track = Track(
                id=track_id,
                name=name or f"{track_type.value.capitalize()} Track {len(project.tracks_in_order(track_type)) + 1}",
                type=track_type,
                order=project.next_track_order(track_type),
            )
            if not self.store.add_track(track):
                raise ValidationError(f"Track {track_id} could not be added")
        logger.info(f"Added new {track_type.value} track: {track.name}")
        return track.id

    def remove_track(self, track_id: str, policy: RemovalPolicy = RemovalPolicy.REJECT) -> bool:
        return self.store.remove_track(track_id, policy)
