"""
CutDeck Core Module

This module contains the non-destructive editing core:
- ProjectStore: Observable owner of the project state
- ClipEditor: Split, resize, trim, move and drop placement
- HistoryManager: Linear snapshot undo/redo
- CutList: Preview and accepted cut ranges
- ranges: Range merging and silence detection
- commands: Text command interpreter
"""
from .clip import Clip
from .commands import parse_command, require_command, run_command
from .config import (
    HISTORY_CONFIG,
    MEDIA_CONFIG,
    PROJECT_CONFIG,
    SILENCE_CONFIG,
    TIMELINE_CONFIG,
    TRACK_CONFIG,
    RemovalPolicy,
    ResizeAnchor,
)
from .cuts import CutList
from .editing import ClipEditor, DropPayload, MediaFileDrop, parse_drop_payload
from .errors import CutDeckError, NotFoundError, ParseError, PersistenceError, ValidationError
from .history import HistoryManager
from .media import MediaFile, MediaKind, Probe, identify_media_kind
from .persistence import MissingReference, validate_references
from .project import Project, TimelineSettings
from .ranges import Range, detect_silences, merge_ranges, tighten_silences
from .store import ProjectStore
from .track import Track, TrackType
from .types import ChangeKind, ProjectChange

__all__ = [
    # Main classes
    'ProjectStore',
    'ClipEditor',
    'HistoryManager',
    'CutList',
    # Entities
    'Project',
    'TimelineSettings',
    'Track',
    'TrackType',
    'Clip',
    'MediaFile',
    'MediaKind',
    'Probe',
    'Range',
    'MediaFileDrop',
    'DropPayload',
    'MissingReference',
    'ChangeKind',
    'ProjectChange',
    # Functions
    'merge_ranges',
    'detect_silences',
    'tighten_silences',
    'parse_command',
    'require_command',
    'run_command',
    'parse_drop_payload',
    'identify_media_kind',
    'validate_references',
    # Errors
    'CutDeckError',
    'ValidationError',
    'NotFoundError',
    'PersistenceError',
    'ParseError',
    # Config
    'SILENCE_CONFIG',
    'HISTORY_CONFIG',
    'TRACK_CONFIG',
    'TIMELINE_CONFIG',
    'PROJECT_CONFIG',
    'MEDIA_CONFIG',
    'RemovalPolicy',
    'ResizeAnchor',
]
