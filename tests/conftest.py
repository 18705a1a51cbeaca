"""
Pytest configuration and fixtures for CutDeck tests.
"""
import pytest
import numpy as np

from cutdeck.core.clip import Clip
from cutdeck.core.editing import ClipEditor
from cutdeck.core.history import HistoryManager
from cutdeck.core.media import MediaFile, Probe
from cutdeck.core.project import Project
from cutdeck.core.store import ProjectStore


@pytest.fixture
def probe() -> Probe:
    """Metadata for an 8 second asset."""
    return Probe(duration=8.0, fps=30.0, width=1920, height=1080, audio_channels=2, audio_rate=48000)


@pytest.fixture
def silence_peaks() -> np.ndarray:
    """One peak per second: 3s quiet, 2s loud, 3s quiet."""
    return np.array([0, 0, 0, 1, 1, 0, 0, 0], dtype=np.float64)


@pytest.fixture
def media_file() -> MediaFile:
    """A 30 second interview recording."""
    return MediaFile(id="media-1", path="/footage/interview.mp4", duration=30.0, fps=30.0)


@pytest.fixture
def empty_project() -> Project:
    """Create a project with only the default tracks."""
    return Project(title="Test Project")


@pytest.fixture
def store() -> ProjectStore:
    """Create a fresh store."""
    return ProjectStore()


@pytest.fixture
def store_with_media(store, media_file) -> ProjectStore:
    store.add_media_file(media_file)
    return store


@pytest.fixture
def clip(store_with_media) -> Clip:
    """A 10 second clip at the start of the video track."""
    clip = Clip(
        id="clip-a",
        media_file_id="media-1",
        track_id="video-1",
        start_time=0.0,
        end_time=10.0,
        offset=0.0,
        name="interview.mp4",
    )
    store_with_media.add_clip(clip)
    return clip


@pytest.fixture
def editor(store_with_media) -> ClipEditor:
    return ClipEditor(store_with_media)


@pytest.fixture
def history() -> HistoryManager:
    """Create a history over plain integers."""
    return HistoryManager(0, max_depth=10)


@pytest.fixture
def changes(store) -> list:
    """Collect every notification the store delivers."""
    received = []
    store.subscribe(received.append)
    return received
