"""
Project store for CutDeck.

The store is the single owner of the Project aggregate. Every mutation runs
under one re-entrant lock, is validated before it touches state, and is
followed by exactly one synchronous notification to subscribers. Readers
get deep copies, so nothing outside the store can observe a half-applied
change.
"""
from __future__ import annotations
from contextlib import contextmanager
from dataclasses import fields as dataclass_fields, replace
import threading
from typing import Iterator, Optional

from .clip import Clip
from .config import HISTORY_CONFIG, TIMELINE_CONFIG, RemovalPolicy
from .cuts import CutList
from .errors import NotFoundError, ValidationError, rejects_invalid
from .history import HistoryManager
from .media import MediaFile
from .persistence import (
    MissingReference,
    PathLike,
    dumps,
    loads,
    project_from_document,
    project_to_document,
    validate_references,
    read_text,
    write_text_atomic,
)
from .project import Project, TimelineSettings
from .track import Track, TrackType
from .types import ChangeKind, ProjectChange, Subscriber, Unsubscribe
from ..utils.logger import logger

TRACK_FIELDS = frozenset({"name", "type", "enabled", "muted", "volume", "order"})
CLIP_FIELDS = frozenset({
    "name", "media_file_id", "track_id", "start_time", "end_time", "offset", "description", "tags",
})
TIMELINE_FIELDS = frozenset(f.name for f in dataclass_fields(TimelineSettings))

# Patch fields that must hold a real number
NUMERIC_FIELDS = frozenset({
    "volume", "order", "start_time", "end_time", "offset", "zoom", "pan", "playhead", "duration",
})


def _check_patch(entity: str, patch: dict, allowed: frozenset) -> None:
    unknown = set(patch) - allowed
    if unknown:
        raise ValidationError(f"Unknown {entity} field(s): {', '.join(sorted(unknown))}")
    for key in NUMERIC_FIELDS.intersection(patch):
        value = patch[key]
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValidationError(f"{entity.capitalize()} field '{key}' must be a number, got {value!r}")


def _patched(entity: str, current, patch: dict):
    """Apply a patch through the dataclass constructor so field coercion runs."""
    try:
        return replace(current, **patch)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Invalid {entity} patch: {e}") from e


class ProjectStore:
    """
    Observable container for the project being edited.

    Args:
        project: Initial project (a fresh one with default tracks if None)
        max_history: Depth of the project-level undo history
    """

    def __init__(self, project: Optional[Project] = None, max_history: int = HISTORY_CONFIG.max_depth):
        self._lock = threading.RLock()
        self._project = project if project is not None else Project()
        self._subscribers: list[Subscriber] = []

        # Pending change set of the outermost open batch
        self._batch_depth = 0
        self._pending_kinds: set[ChangeKind] = set()
        self._pending_ids: list[str] = []

        self.history: HistoryManager[Project] = HistoryManager(self._project, max_depth=max_history)
        self.cuts = CutList(on_change=self._on_cuts_changed, max_depth=max_history, lock=self._lock)
        logger.info(f"ProjectStore initialized: {self._project!r}")

    # --- Reading ---

    @property
    def project(self) -> Project:
        """A deep copy of the current project."""
        with self._lock:
            return self._project.copy()

    def get_track(self, track_id: str) -> Optional[Track]:
        with self._lock:
            track = self._project.get_track(track_id)
            return track.copy() if track else None

    def get_clip(self, clip_id: str) -> Optional[Clip]:
        with self._lock:
            clip = self._project.get_clip(clip_id)
            return clip.copy() if clip else None

    def get_media_file(self, media_file_id: str) -> Optional[MediaFile]:
        with self._lock:
            media = self._project.get_media_file(media_file_id)
            return replace(media, metadata=dict(media.metadata)) if media else None

    def clips_on_track(self, track_id: str) -> list[Clip]:
        with self._lock:
            return [c.copy() for c in self._project.clips_on_track(track_id)]

    def tracks_in_order(self, track_type: Optional[TrackType] = None) -> list[Track]:
        with self._lock:
            return [t.copy() for t in self._project.tracks_in_order(track_type)]

    def track_end(self, track_id: str) -> float:
        with self._lock:
            return self._project.track_end(track_id)

    def next_track_order(self, track_type: TrackType) -> int:
        with self._lock:
            return self._project.next_track_order(track_type)

    def validate_clip(self, clip: Clip) -> None:
        with self._lock:
            self._project.validate_clip(clip)

    def missing_references(self) -> list[MissingReference]:
        with self._lock:
            return validate_references(self._project)

    # --- Subscription ---

    def subscribe(self, callback: Subscriber) -> Unsubscribe:
        """Register a change listener; returns a function that removes it."""
        with self._lock:
            self._subscribers.append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)
        return unsubscribe

    def _notify(self, kinds: set[ChangeKind], ids: list[str]) -> None:
        if not self._subscribers:
            return
        change = ProjectChange(
            kinds=frozenset(kinds),
            ids=tuple(dict.fromkeys(ids)),
            project=self._project.copy(),
        )
        for callback in list(self._subscribers):
            try:
                callback(change)
            except Exception as e:
                logger.error(f"Subscriber {callback!r} failed: {e}", exc_info=True)

    # --- Transactions ---

    @contextmanager
    def batch(self, description: str = "", record: bool = True) -> Iterator[Project]:
        """
        Group mutations into one atomic change.

        Subscribers are notified once when the outermost batch closes. If an
        exception escapes, the project, its undo history and the cut list
        are rolled back to their state before the outermost batch opened.

        Args:
            description: Label for the undo history
            record: Push a project snapshot into the undo history on commit
        """
        with self._lock:
            outermost = self._batch_depth == 0
            if outermost:
                backup = (
                    self._project.copy(),
                    self.history.checkpoint(),
                    self.cuts.checkpoint(),
                )
                self._pending_kinds = set()
                self._pending_ids = []
            self._batch_depth += 1
            try:
                yield self._project
            except BaseException:
                if outermost:
                    project, history, cuts = backup
                    self._project = project
                    self.history.rollback(history)
                    self.cuts.rollback(cuts)
                    self._pending_kinds = set()
                    self._pending_ids = []
                    logger.debug(f"Rolled back: {description or 'batch'}")
                raise
            finally:
                self._batch_depth -= 1

            if outermost and self._pending_kinds:
                kinds, ids = self._pending_kinds, self._pending_ids
                self._pending_kinds, self._pending_ids = set(), []
                if record and kinds - {ChangeKind.CUTS}:
                    self.history.push(self._project, description)
                self._notify(kinds, ids)

    def _touch(self, kind: ChangeKind, *ids: str) -> None:
        self._pending_kinds.add(kind)
        self._pending_ids.extend(ids)

    def _on_cuts_changed(self) -> None:
        with self._lock:
            if self._batch_depth:
                self._touch(ChangeKind.CUTS)
            else:
                self._notify({ChangeKind.CUTS}, [])

    # --- Media ---

    @rejects_invalid(default=False)
    def add_media_file(self, media_file: MediaFile) -> bool:
        if media_file.duration <= 0:
            raise ValidationError(f"Media {media_file.id} has no duration")
        with self.batch(f"Add media {media_file.name}"):
            if media_file.id in self._project.media_files:
                raise ValidationError(f"Media id already exists: {media_file.id}")
            self._project.media_files[media_file.id] = replace(media_file, metadata=dict(media_file.metadata))
            self._touch(ChangeKind.MEDIA, media_file.id)
        logger.debug(f"Added media file {media_file!r}")
        return True

    @rejects_invalid(default=False)
    def remove_media_file(self, media_file_id: str, policy: RemovalPolicy = RemovalPolicy.REJECT) -> bool:
        with self.batch("Remove media"):
            media = self._project.require_media_file(media_file_id)
            dependents = self._project.clips_using_media(media_file_id)
            self._remove_dependents(f"Media {media.name}", dependents, policy)
            del self._project.media_files[media_file_id]
            self._touch(ChangeKind.MEDIA, media_file_id)
        logger.debug(f"Removed media file {media_file_id} ({RemovalPolicy(policy).value})")
        return True

    def _remove_dependents(self, owner: str, dependents: list[Clip], policy: RemovalPolicy) -> None:
        if not dependents:
            return
        policy = RemovalPolicy(policy)
        if policy is RemovalPolicy.REJECT:
            raise ValidationError(f"{owner} is still used by {len(dependents)} clip(s)")
        if policy is RemovalPolicy.CASCADE:
            for clip in dependents:
                del self._project.clips[clip.id]
            self._touch(ChangeKind.CLIPS, *(c.id for c in dependents))
        else:
            logger.warning(f"{owner} removed; {len(dependents)} clip(s) left orphaned")

    # --- Tracks ---

    @rejects_invalid(default=False)
    def add_track(self, track: Track) -> bool:
        with self.batch(f"Add track {track.name}"):
            if track.id in self._project.tracks:
                raise ValidationError(f"Track id already exists: {track.id}")
            self._project.tracks[track.id] = track.copy()
            self._touch(ChangeKind.TRACKS, track.id)
        logger.debug(f"Added track {track!r}")
        return True

    @rejects_invalid(default=False)
    def update_track(self, track_id: str, **fields) -> bool:
        """Merge a partial patch over a track."""
        _check_patch("track", fields, TRACK_FIELDS)
        with self.batch("Update track"):
            track = self._project.require_track(track_id)
            self._project.tracks[track_id] = _patched("track", track, fields)
            self._touch(ChangeKind.TRACKS, track_id)
        return True

    @rejects_invalid(default=False)
    def remove_track(self, track_id: str, policy: RemovalPolicy = RemovalPolicy.REJECT) -> bool:
        with self.batch("Remove track"):
            track = self._project.require_track(track_id)
            self._remove_dependents(f"Track {track.name}", self._project.clips_on_track(track_id), policy)
            del self._project.tracks[track_id]
            self._touch(ChangeKind.TRACKS, track_id)
        logger.debug(f"Removed track {track_id} ({RemovalPolicy(policy).value})")
        return True

    # --- Clips ---

    @rejects_invalid(default=False)
    def add_clip(self, clip: Clip) -> bool:
        with self.batch(f"Add clip {clip.name}"):
            if clip.id in self._project.clips:
                raise ValidationError(f"Clip id already exists: {clip.id}")
            self._project.validate_clip(clip)
            self._project.clips[clip.id] = clip.copy()
            self._touch(ChangeKind.CLIPS, clip.id)
        logger.debug(
            f"Added clip {clip.name} ({clip.start_time:.2f}s - {clip.end_time:.2f}s) "
            f"at offset {clip.offset:.2f}s"
        )
        return True

    @rejects_invalid(default=False)
    def update_clip(self, clip_id: str, **fields) -> bool:
        """Merge a partial patch over a clip; the result must stay valid."""
        _check_patch("clip", fields, CLIP_FIELDS)
        with self.batch("Update clip"):
            candidate = _patched("clip", self._project.require_clip(clip_id), fields)
            self._project.validate_clip(candidate)
            self._project.clips[clip_id] = candidate
            self._touch(ChangeKind.CLIPS, clip_id)
        return True

    @rejects_invalid(default=False)
    def remove_clip(self, clip_id: str) -> bool:
        with self.batch("Remove clip"):
            clip = self._project.require_clip(clip_id)
            del self._project.clips[clip_id]
            self._touch(ChangeKind.CLIPS, clip_id)
        logger.debug(f"Deleted clip: {clip.name}")
        return True

    # --- Timeline ---

    @rejects_invalid(default=False)
    def update_timeline(self, **fields) -> bool:
        _check_patch("timeline", fields, TIMELINE_FIELDS)
        if "zoom" in fields:
            fields["zoom"] = max(TIMELINE_CONFIG.min_zoom, min(TIMELINE_CONFIG.max_zoom, fields["zoom"]))
        for key in ("pan", "playhead", "duration"):
            if key in fields:
                fields[key] = max(0.0, fields[key])
        with self.batch("Update timeline", record=False):
            self._project.timeline = _patched("timeline", self._project.timeline, fields)
            self._touch(ChangeKind.TIMELINE)
        return True

    # --- Project history ---

    @property
    def can_undo(self) -> bool:
        return self.history.can_undo

    @property
    def can_redo(self) -> bool:
        return self.history.can_redo

    def _restore(self, snapshot: Project) -> None:
        with self.batch(record=False):
            # The file location is not part of the edit history
            snapshot.path = self._project.path
            self._project = snapshot
            self._touch(ChangeKind.PROJECT)

    def undo(self) -> bool:
        """Restore the project state before the last recorded edit."""
        with self._lock:
            if not self.history.can_undo:
                logger.debug("Nothing to undo")
                return False
            self._restore(self.history.undo())
            return True

    def redo(self) -> bool:
        with self._lock:
            if not self.history.can_redo:
                logger.debug("Nothing to redo")
                return False
            self._restore(self.history.redo())
            return True

    # --- Persistence ---

    def new_project(self, title: Optional[str] = None) -> None:
        """Replace the current project with an empty one."""
        project = Project(title=title) if title else Project()
        with self.batch(record=False):
            self._project = project
            self.history.reset(project)
            self.cuts.reset()
            self._touch(ChangeKind.PROJECT)
        logger.info(f"New project: {project.title}")

    def export_to_json(self) -> str:
        with self._lock:
            document = project_to_document(
                self._project,
                history=[list(entry) for entry in self.cuts.history.entries],
                history_index=self.cuts.history.index,
            )
        return dumps(document)

    def import_from_json(self, text: str) -> list[MissingReference]:
        """
        Replace the whole project with a serialized one.

        Returns:
            Clip references that did not resolve (the host may offer relinking)

        Raises:
            PersistenceError: The text is not a valid project document; the
                current project is left untouched
        """
        loaded = project_from_document(loads(text))
        with self.batch("Import project", record=False):
            loaded.project.path = self._project.path
            self._project = loaded.project
            self.history.reset(self._project)
            self.cuts.restore(loaded.history, loaded.history_index)
            self._touch(ChangeKind.PROJECT)
        logger.info(f"Imported project: {self._project!r}")
        return loaded.warnings

    def save_to_file(self, path: PathLike) -> None:
        """
        Raises:
            PersistenceError: The file could not be written
        """
        text = self.export_to_json()
        try:
            write_text_atomic(path, text)
        except Exception as e:
            logger.error(f"Failed to save project: {e}", exc_info=True)
            raise
        with self._lock:
            self._project.path = str(path)
        logger.info(f"Project saved to {path}")

    def load_from_file(self, path: PathLike) -> list[MissingReference]:
        """
        Raises:
            PersistenceError: The file could not be read or parsed
        """
        try:
            warnings = self.import_from_json(read_text(path))
        except Exception as e:
            logger.error(f"Failed to load project {path}: {e}", exc_info=True)
            raise
        with self._lock:
            self._project.path = str(path)
        logger.info(f"Project loaded from {path} ({len(warnings)} missing reference(s))")
        return warnings
