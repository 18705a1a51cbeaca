"""
Tests for Track, Clip and MediaFile.
"""
import pytest

from cutdeck.core.clip import Clip
from cutdeck.core.config import TRACK_CONFIG
from cutdeck.core.errors import ValidationError
from cutdeck.core.media import MediaFile, MediaKind, Probe, identify_media_kind
from cutdeck.core.track import Track, TrackType


class TestTrack:
    """Tests for Track functionality."""

    def test_default_initialization(self):
        track = Track(id="video-1")
        assert track.name == "Track"
        assert track.is_video
        assert track.enabled
        assert not track.muted
        assert track.volume == TRACK_CONFIG.default_volume

    def test_type_from_string(self):
        track = Track(id="a", type="audio")
        assert track.type is TrackType.AUDIO
        assert track.is_audio

    def test_volume_clamping(self):
        assert Track(id="a", volume=150).volume == TRACK_CONFIG.max_volume
        assert Track(id="a", volume=-5).volume == TRACK_CONFIG.min_volume

    def test_dict_conversion(self):
        track = Track(id="audio-2", name="Music", type=TrackType.AUDIO, muted=True, volume=40, order=3)
        data = track.to_dict()
        assert data["type"] == "audio"
        assert Track.from_dict(data) == track

    def test_from_dict_defaults(self):
        track = Track.from_dict({"id": "t", "type": "VIDEO"})
        assert track.type is TrackType.VIDEO
        assert track.order == 0

    def test_copy_is_independent(self):
        track = Track(id="t")
        copy = track.copy()
        copy.name = "Other"
        assert track.name == "Track"


class TestClip:

    @pytest.fixture
    def sample_clip(self) -> Clip:
        return Clip(id="c", media_file_id="m", track_id="t", start_time=2.0, end_time=6.0, offset=10.0)

    def test_timeline_extent(self, sample_clip):
        assert sample_clip.span == pytest.approx(4.0)
        assert sample_clip.timeline_end == pytest.approx(14.0)

    def test_contains_time(self, sample_clip):
        assert sample_clip.contains_time(10.0)
        assert sample_clip.contains_time(13.9)
        assert not sample_clip.contains_time(14.0)
        assert not sample_clip.contains_time(9.9)

    def test_source_time_at(self, sample_clip):
        assert sample_clip.source_time_at(11.5) == pytest.approx(3.5)

    def test_create_new_generates_unique_ids(self):
        first = Clip.create_new("m", "t", 0.0, 1.0)
        second = Clip.create_new("m", "t", 0.0, 1.0)
        assert first.id.startswith("clip-")
        assert first.id != second.id

    def test_dict_conversion(self, sample_clip):
        assert Clip.from_dict(sample_clip.to_dict()) == sample_clip

    def test_tags_become_a_tuple(self):
        clip = Clip(id="c", media_file_id="m", track_id="t", start_time=0, end_time=1, tags=["intro", "wide"])
        assert clip.tags == ("intro", "wide")
        assert Clip.from_dict(clip.to_dict()) == clip

    def test_string_tags_are_rejected(self):
        with pytest.raises(TypeError):
            Clip(id="c", media_file_id="m", track_id="t", start_time=0, end_time=1, tags="intro")

    def test_from_dict_annotation_defaults(self, sample_clip):
        data = sample_clip.to_dict()
        del data["description"], data["tags"]
        restored = Clip.from_dict(data)
        assert restored.description == ""
        assert restored.tags == ()


class TestMediaFile:

    def test_name_defaults_to_basename(self):
        media = MediaFile(id="m", path="/videos/beach.MOV", duration=3.0)
        assert media.name == "beach.MOV"

    def test_from_probe(self):
        probe = Probe(duration=12.5, fps=25.0, width=1280, height=720, audio_channels=2)
        media = MediaFile.from_probe("/clips/take1.mp4", probe)
        assert media.id.startswith("media-")
        assert media.duration == 12.5
        assert media.width == 1280
        assert media.kind is MediaKind.VIDEO
        assert media.preview_url == "/clips/take1.mp4"

    def test_dict_conversion(self):
        media = MediaFile(id="m", path="/a/voice.wav", duration=4.0, kind="audio", metadata={"k": 1})
        restored = MediaFile.from_dict(media.to_dict())
        assert restored == media
        assert restored.kind is MediaKind.AUDIO

    def test_probe_from_dict(self):
        probe = Probe.from_dict({"duration": "5", "width": 640, "v_codec": "h264"})
        assert probe.duration == 5.0
        assert probe.width == 640
        assert probe.height == 0
        assert probe.v_codec == "h264"


class TestIdentifyMediaKind:

    @pytest.mark.parametrize("path,kind", [
        ("clip.mp4", MediaKind.VIDEO),
        ("clip.WEBM", MediaKind.VIDEO),
        ("song.flac", MediaKind.AUDIO),
        ("still.jpeg", MediaKind.IMAGE),
    ])
    def test_known_extensions(self, path, kind):
        assert identify_media_kind(path) is kind

    def test_unknown_extension(self):
        with pytest.raises(ValidationError):
            identify_media_kind("notes.txt")

    def test_no_extension(self):
        with pytest.raises(ValidationError):
            identify_media_kind("README")
