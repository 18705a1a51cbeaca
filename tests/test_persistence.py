"""
Tests for project save/load.
"""
import json

import pytest

from cutdeck.core.errors import PersistenceError
from cutdeck.core.persistence import (
    dumps,
    loads,
    project_from_document,
    project_to_document,
    read_text,
    write_text_atomic,
)
from cutdeck.core.ranges import Range
from cutdeck.core.store import ProjectStore
from cutdeck.core.types import ChangeKind


@pytest.fixture
def edited_store(store_with_media, clip) -> ProjectStore:
    """A store with one clip, a muted audio lane and two accepted cut batches."""
    store_with_media.update_track("audio-1", muted=True)
    store_with_media.update_timeline(zoom=2.0, playhead=3.5)
    store_with_media.cuts.propose([Range(1, 2)])
    store_with_media.cuts.accept()
    store_with_media.cuts.propose([Range(4, 5)])
    store_with_media.cuts.accept()
    return store_with_media


class TestDocument:

    def test_document_layout(self, edited_store):
        document = json.loads(edited_store.export_to_json())
        assert set(document) == {
            "title", "tracks_map", "clips_map", "media_map", "timeline", "history", "history_index",
        }
        assert document["clips_map"]["clip-a"]["end_time"] == 10.0
        assert document["tracks_map"]["audio-1"]["muted"] is True
        assert document["history"][-1] == [{"start": 1.0, "end": 2.0}, {"start": 4.0, "end": 5.0}]
        assert document["history_index"] == 2

    def test_round_trip_preserves_project(self, edited_store):
        original = edited_store.project
        restored = ProjectStore()
        assert restored.import_from_json(edited_store.export_to_json()) == []

        project = restored.project
        assert project.title == original.title
        assert project.tracks == original.tracks
        assert project.clips == original.clips
        assert project.media_files == original.media_files
        assert project.timeline == original.timeline

    def test_round_trip_preserves_cut_history(self, edited_store):
        restored = ProjectStore()
        restored.import_from_json(edited_store.export_to_json())
        assert restored.cuts.accepted == [Range(1, 2), Range(4, 5)]
        assert restored.cuts.undo() == [Range(1, 2)]

    def test_map_keys_are_authoritative(self, edited_store):
        document = json.loads(edited_store.export_to_json())
        document["clips_map"]["clip-a"]["id"] = "something-else"
        loaded = project_from_document(document)
        assert list(loaded.project.clips) == ["clip-a"]
        assert loaded.project.clips["clip-a"].id == "clip-a"

    def test_dangling_references_are_reported(self, edited_store):
        document = json.loads(edited_store.export_to_json())
        document["media_map"] = {}
        loaded = project_from_document(document)
        assert "clip-a" in loaded.project.clips
        assert [(w.clip_id, w.field, w.missing_id) for w in loaded.warnings] == [
            ("clip-a", "media_file_id", "media-1"),
        ]

    def test_missing_history_defaults_to_empty(self, empty_project):
        document = project_to_document(empty_project)
        assert "history" not in document
        loaded = project_from_document(document)
        assert loaded.history == [[]]
        assert loaded.history_index == 0

    def test_out_of_range_history_index(self, empty_project):
        document = project_to_document(empty_project, history=[[], [Range(0, 1)]])
        document["history_index"] = 9
        assert project_from_document(document).history_index == 1

    @pytest.mark.parametrize("document", [
        [],
        {"title": "No maps"},
        {"tracks_map": {}, "clips_map": []},
        {"tracks_map": {}, "clips_map": ""},
        {"tracks_map": 0, "clips_map": {}},
        {"tracks_map": {"t": []}, "clips_map": {}},
        {"tracks_map": {}, "clips_map": {"c": {"media_file_id": "m"}}},
        {"tracks_map": {}, "clips_map": {}, "timeline": [1, 2]},
        {"tracks_map": {}, "clips_map": {}, "history": "none"},
        {"tracks_map": {}, "clips_map": {}, "history": [[1, 2]]},
        {"tracks_map": {}, "clips_map": {}, "history": [{"start": 1, "end": 2}]},
    ])
    def test_invalid_documents(self, document):
        with pytest.raises(PersistenceError):
            project_from_document(document)

    def test_loads_invalid_json(self):
        with pytest.raises(PersistenceError):
            loads("{not json")

    def test_dumps_is_indented(self, empty_project):
        assert "\n  " in dumps(project_to_document(empty_project))


class TestImport:

    def test_import_replaces_everything(self, edited_store):
        text = edited_store.export_to_json()
        other = ProjectStore()
        other.new_project("Scratch")
        other.import_from_json(text)
        assert "clip-a" in other.project.clips
        assert not other.can_undo

    def test_import_failure_keeps_project(self, store_with_media, clip):
        received = []
        store_with_media.subscribe(received.append)
        with pytest.raises(PersistenceError):
            store_with_media.import_from_json('{"title": "broken"}')
        assert "clip-a" in store_with_media.project.clips
        assert received == []

    def test_import_notifies_project_change(self, edited_store):
        other = ProjectStore()
        received = []
        other.subscribe(received.append)
        other.import_from_json(edited_store.export_to_json())
        assert len(received) == 1
        assert ChangeKind.PROJECT in received[0].kinds


class TestFiles:

    def test_save_and_load(self, edited_store, tmp_path):
        path = tmp_path / "demo.cdproj"
        edited_store.save_to_file(path)
        assert edited_store.project.path == str(path)

        restored = ProjectStore()
        assert restored.load_from_file(path) == []
        assert restored.project.path == str(path)
        assert restored.project.clips == edited_store.project.clips

    def test_save_creates_parent_directories(self, store, tmp_path):
        path = tmp_path / "nested" / "dir" / "project.cdproj"
        store.save_to_file(path)
        assert path.exists()

    def test_save_leaves_no_temporary_files(self, store, tmp_path):
        store.save_to_file(tmp_path / "p.cdproj")
        assert [p.name for p in tmp_path.iterdir()] == ["p.cdproj"]

    def test_load_missing_file(self, store, tmp_path):
        with pytest.raises(PersistenceError):
            store.load_from_file(tmp_path / "missing.cdproj")

    def test_load_corrupt_file(self, store, tmp_path):
        path = tmp_path / "bad.cdproj"
        path.write_text("not a project", encoding="utf-8")
        with pytest.raises(PersistenceError):
            store.load_from_file(path)

    def test_write_into_directory_path_fails(self, tmp_path):
        with pytest.raises(PersistenceError):
            write_text_atomic(tmp_path, "{}")

    def test_read_text(self, tmp_path):
        path = tmp_path / "x.cdproj"
        write_text_atomic(path, "{}")
        assert read_text(path) == "{}"


class TestHistoryNormalisation:

    def test_history_starting_with_cuts_gets_empty_initial_entry(self, store):
        document = {
            "tracks_map": {},
            "clips_map": {},
            "history": [[{"start": 1, "end": 2}]],
            "history_index": 0,
        }
        store.import_from_json(json.dumps(document))

        entries = store.cuts.history.entries
        assert entries[0] == ()
        assert entries[1] == (Range(1, 2),)
        assert store.cuts.history.index == 1
        assert store.cuts.accepted == [Range(1, 2)]
        assert store.cuts.undo() == []

    def test_null_sections_read_as_empty(self):
        loaded = project_from_document(
            {"tracks_map": {}, "clips_map": {}, "media_map": None, "timeline": None, "history": None}
        )
        assert loaded.project.media_files == {}
        assert loaded.history == [[]]

    def test_non_object_timeline_import_keeps_project(self, store_with_media, clip):
        with pytest.raises(PersistenceError):
            store_with_media.import_from_json('{"tracks_map": {}, "clips_map": {}, "timeline": [1, 2]}')
        assert "clip-a" in store_with_media.project.clips


class TestClipAnnotations:

    def test_description_and_tags_round_trip(self, editor, store_with_media):
        clip_id = editor.add_clip_from_media(
            "media-1", "video-1", 0.0, 2.0, 6.0,
            description="Guest laughs", tags=["highlight", "reaction"],
        )
        restored = ProjectStore()
        restored.import_from_json(store_with_media.export_to_json())

        clip = restored.get_clip(clip_id)
        assert clip.description == "Guest laughs"
        assert clip.tags == ("highlight", "reaction")
