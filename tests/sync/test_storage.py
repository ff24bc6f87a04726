"""Tests for scheduler persistence and atomic file writes."""

import json
from pathlib import Path
from unittest.mock import patch

import pytest

from flowsync.graph import WorkflowGraph
from flowsync.sync.storage import FileStore, SyncStore
from flowsync.utilities.fs import atomic_write_text, read_json, write_json


@pytest.fixture
def store(tmp_path):
    return FileStore(
        graph_path=tmp_path / "workflow-defs.json",
        cursor_path=tmp_path / "sync" / ".last-commit",
        baseline_dir=tmp_path / "baselines",
        annotations_path=tmp_path / "annotations.json",
    )


class TestAtomicWrite:
    def test_creates_parents(self, tmp_path):
        target = tmp_path / "a" / "b" / "file.txt"

        atomic_write_text(target, "hello")

        assert target.read_text() == "hello"

    def test_replaces_existing_content(self, tmp_path):
        target = tmp_path / "file.txt"
        target.write_text("old")

        atomic_write_text(target, "new")

        assert target.read_text() == "new"
        assert [p.name for p in tmp_path.iterdir()] == ["file.txt"]

    def test_failed_replace_keeps_old_file(self, tmp_path):
        target = tmp_path / "file.txt"
        target.write_text("old")

        with patch.object(Path, "replace", side_effect=OSError("rename failed")):
            with pytest.raises(OSError):
                atomic_write_text(target, "new")

        assert target.read_text() == "old"
        assert [p.name for p in tmp_path.iterdir()] == ["file.txt"]

    def test_json_round_trip(self, tmp_path):
        target = tmp_path / "doc.json"

        write_json(target, {"name": "Café"})

        assert target.read_text(encoding="utf-8").endswith("}\n")
        assert read_json(target) == {"name": "Café"}

    def test_read_missing_returns_default(self, tmp_path):
        assert read_json(tmp_path / "missing.json", default={"x": 1}) == {"x": 1}


class TestFileStore:
    def test_is_a_sync_store(self, store):
        assert isinstance(store, SyncStore)

    def test_cursor_missing(self, store):
        assert store.load_cursor() is None

    def test_cursor_round_trip(self, store):
        store.save_cursor("abc123")

        assert store.load_cursor() == "abc123"
        assert store.cursor_path.read_text() == "abc123"

    def test_blank_cursor_is_none(self, store):
        store.cursor_path.parent.mkdir(parents=True)
        store.cursor_path.write_text("\n")

        assert store.load_cursor() is None

    def test_missing_graph_is_empty(self, store):
        assert store.load_graph().journeys == []
        assert store.load_document()["containers"] == []

    def test_graph_round_trip(self, store, onboarding_graph):
        store.save_graph(onboarding_graph)

        assert store.load_graph().to_dict() == onboarding_graph.to_dict()
        assert json.loads(store.graph_path.read_text())["containers"][0]["id"] == "onboarding"

    def test_annotations_default(self, store):
        assert store.load_annotations() == {"annotations": []}

    def test_annotations_round_trip(self, store):
        doc = {"annotations": [{"journeyId": "onboarding", "stepId": "home", "type": "bug"}]}

        store.save_annotations(doc)

        assert store.load_annotations() == doc

    def test_save_annotations_without_path(self, tmp_path):
        store = FileStore(tmp_path / "g.json", tmp_path / "c", tmp_path / "b")

        with pytest.raises(ValueError):
            store.save_annotations({"annotations": []})

    def test_snapshot_writes_baseline(self, store, onboarding_graph):
        location = store.snapshot(onboarding_graph)

        snapshot = json.loads(Path(location).read_text())
        assert Path(location).parent == store.baseline_dir
        assert snapshot["workflows"] == onboarding_graph.to_dict()
        assert snapshot["annotations"] == {"annotations": []}
        assert (store.baseline_dir / "latest.json").exists()

    def test_empty_graph_snapshot(self, store):
        location = store.snapshot(WorkflowGraph.empty())

        assert Path(location).name.startswith("baseline-")
