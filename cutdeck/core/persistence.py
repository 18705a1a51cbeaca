"""
Project persistence for CutDeck.

Projects are stored as one flat JSON document with every entity keyed by
id:

    {
      "title": ...,
      "tracks_map": {id: Track},
      "clips_map": {id: Clip},
      "media_map": {id: MediaFile},
      "timeline": {...},
      "history": [[Range, ...], ...],
      "history_index": int
    }

Dangling references inside a loaded document are reported, never fatal, so
the host can prompt the user to relink missing media.
"""
from __future__ import annotations
from dataclasses import dataclass
import json
import os
from pathlib import Path
import tempfile
from typing import Any, Optional, Union

from .clip import Clip
from .config import PROJECT_CONFIG
from .errors import PersistenceError
from .media import MediaFile
from .project import Project, TimelineSettings
from .ranges import Range
from .track import Track
from ..utils.logger import logger

PathLike = Union[str, Path]


@dataclass(frozen=True)
class MissingReference:
    """A clip pointing at a track or media file that is not in the project."""
    clip_id: str
    field: str  # "media_file_id" or "track_id"
    missing_id: str

    def __str__(self) -> str:
        return f"Clip {self.clip_id} references missing {self.field} '{self.missing_id}'"


@dataclass
class LoadedProject:
    project: Project
    history: list[list[Range]]
    history_index: int
    warnings: list[MissingReference]


def validate_references(project: Project) -> list[MissingReference]:
    """List every clip reference that does not resolve."""
    missing = []
    for clip in project.clips.values():
        if clip.media_file_id not in project.media_files:
            missing.append(MissingReference(clip.id, "media_file_id", clip.media_file_id))
        if clip.track_id not in project.tracks:
            missing.append(MissingReference(clip.id, "track_id", clip.track_id))
    return missing


def project_to_document(
    project: Project,
    history: Optional[list[list[Range]]] = None,
    history_index: Optional[int] = None,
) -> dict[str, Any]:
    document: dict[str, Any] = {
        "title": project.title,
        "tracks_map": {tid: t.to_dict() for tid, t in project.tracks.items()},
        "clips_map": {cid: c.to_dict() for cid, c in project.clips.items()},
        "media_map": {mid: m.to_dict() for mid, m in project.media_files.items()},
        "timeline": project.timeline.to_dict(),
    }
    if history is not None:
        document["history"] = [[r.to_dict() for r in entry] for entry in history]
        document["history_index"] = len(history) - 1 if history_index is None else history_index
    return document


def _optional_object(document: dict[str, Any], key: str) -> dict[str, Any]:
    """A nested JSON object; a missing or null value reads as empty."""
    raw = document.get(key)
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise PersistenceError(f"'{key}' must be a JSON object, got {type(raw).__name__}")
    return raw


def _entity_map(document: dict[str, Any], key: str, factory) -> dict:
    entities = {}
    for entity_id, data in _optional_object(document, key).items():
        if not isinstance(data, dict):
            raise PersistenceError(f"Entry '{entity_id}' in '{key}' must be a JSON object")
        # The map key is authoritative
        entities[entity_id] = factory({**data, "id": entity_id})
    return entities


def _history(document: dict[str, Any]) -> list[list[Range]]:
    raw = document.get("history")
    if raw is None:
        return [[]]
    if not isinstance(raw, list):
        raise PersistenceError("'history' must be a list of range lists")
    history = []
    for entry in raw:
        if not isinstance(entry, list) or not all(isinstance(r, dict) for r in entry):
            raise PersistenceError("Every 'history' entry must be a list of ranges")
        history.append([Range.from_dict(r) for r in entry])
    return history or [[]]


def project_from_document(document: dict[str, Any]) -> LoadedProject:
    """
    Rebuild a project from a parsed document.

    Raises:
        PersistenceError: The document is structurally invalid
    """
    if not isinstance(document, dict):
        raise PersistenceError("Project document must be a JSON object")
    if "tracks_map" not in document or "clips_map" not in document:
        raise PersistenceError("Project document needs 'tracks_map' and 'clips_map'")

    try:
        project = Project(
            title=document.get("title", PROJECT_CONFIG.default_title),
            tracks=_entity_map(document, "tracks_map", Track.from_dict),
            clips=_entity_map(document, "clips_map", Clip.from_dict),
            media_files=_entity_map(document, "media_map", MediaFile.from_dict),
            timeline=TimelineSettings.from_dict(_optional_object(document, "timeline")),
        )
        history = _history(document)
    except (KeyError, TypeError, ValueError) as e:
        raise PersistenceError(f"Invalid project document: {e}") from e

    history_index = document.get("history_index", len(history) - 1)
    if not isinstance(history_index, int) or not 0 <= history_index < len(history):
        history_index = len(history) - 1

    warnings = validate_references(project)
    for warning in warnings:
        logger.warning(str(warning))
    return LoadedProject(project, history, history_index, warnings)


def dumps(document: dict[str, Any]) -> str:
    return json.dumps(document, indent=PROJECT_CONFIG.json_indent, ensure_ascii=False)


def loads(text: str) -> dict[str, Any]:
    try:
        return json.loads(text)
    except (json.JSONDecodeError, TypeError) as e:
        raise PersistenceError(f"Invalid project file format: {e}") from e


def write_text_atomic(path: PathLike, text: str) -> None:
    """
    Write a file through a temporary sibling so a failure never leaves a
    truncated project behind.

    Raises:
        PersistenceError: The file could not be written
    """
    target = Path(path)
    tmp_name = None
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            "w",
            encoding=PROJECT_CONFIG.encoding,
            dir=target.parent,
            prefix=f".{target.name}.",
            delete=False,
        ) as tmp:
            tmp_name = tmp.name
            tmp.write(text)
        os.replace(tmp_name, target)
    except OSError as e:
        if tmp_name and os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise PersistenceError(f"Failed to save project to {target}: {e}") from e


def read_text(path: PathLike) -> str:
    target = Path(path)
    try:
        return target.read_text(encoding=PROJECT_CONFIG.encoding)
    except FileNotFoundError as e:
        raise PersistenceError(f"Project file not found: {target}") from e
    except (OSError, UnicodeDecodeError) as e:
        raise PersistenceError(f"Failed to read project file {target}: {e}") from e
