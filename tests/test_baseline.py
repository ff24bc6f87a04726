"""Tests for workflow/annotation baselines."""

import json
from datetime import datetime, timezone

import pytest

from flowsync.baseline import (
    diff_baseline,
    find_baseline,
    format_diff_text,
    list_baselines,
    load_baseline,
    save_baseline,
)

T1 = datetime(2026, 2, 1, 9, 30, 0, tzinfo=timezone.utc)
T2 = datetime(2026, 2, 2, 9, 30, 0, tzinfo=timezone.utc)


def workflows(*journeys):
    return {"formatVersion": "1.0.0", "generatedAt": "", "containers": list(journeys)}


def journey(journey_id, **labels):
    return {
        "id": journey_id,
        "name": journey_id,
        "description": "",
        "nodes": [{"id": k, "label": v} for k, v in labels.items()],
    }


def annotation(step_id, created, type_="bug"):
    return {
        "journeyId": "onboarding",
        "stepId": step_id,
        "createdAt": created,
        "type": type_,
        "priority": "high",
        "text": f"Problem on {step_id}",
    }


class TestSaveAndFind:
    def test_save_writes_snapshot_and_latest(self, tmp_path):
        path = save_baseline(tmp_path, workflows(), {"annotations": []}, now=T1)

        assert path.name == "baseline-2026-02-01T09-30-00-000000.json"
        snapshot = json.loads(path.read_text())
        assert snapshot["savedAt"] == T1.isoformat()
        assert json.loads((tmp_path / "latest.json").read_text()) == snapshot

    def test_default_annotations(self, tmp_path):
        path = save_baseline(tmp_path, workflows(), now=T1)

        assert load_baseline(path)["annotations"] == {"annotations": []}

    def test_list_oldest_first(self, tmp_path):
        save_baseline(tmp_path, workflows(), now=T2)
        save_baseline(tmp_path, workflows(), now=T1)

        names = [p.name for p in list_baselines(tmp_path)]

        assert names == [
            "baseline-2026-02-01T09-30-00-000000.json",
            "baseline-2026-02-02T09-30-00-000000.json",
        ]

    def test_list_missing_dir(self, tmp_path):
        assert list_baselines(tmp_path / "none") == []

    def test_find_latest(self, tmp_path):
        save_baseline(tmp_path, workflows(), now=T1)

        assert find_baseline(tmp_path) == tmp_path / "latest.json"

    def test_find_by_timestamp_prefix(self, tmp_path):
        save_baseline(tmp_path, workflows(), now=T1)
        save_baseline(tmp_path, workflows(), now=T2)

        found = find_baseline(tmp_path, "2026-02-02")

        assert found.name.startswith("baseline-2026-02-02")
        assert find_baseline(tmp_path, "2025") is None

    def test_find_without_baselines(self, tmp_path):
        assert find_baseline(tmp_path) is None

    def test_load_rejects_invalid_snapshot(self, tmp_path):
        path = tmp_path / "latest.json"
        path.write_text('{"workflows": {}}')

        with pytest.raises(ValueError, match="Invalid snapshot format"):
            load_baseline(path)


class TestDiff:
    @pytest.fixture
    def baseline(self):
        return {
            "savedAt": T1.isoformat(),
            "workflows": workflows(
                journey("onboarding", welcome="Welcome", home="Home"),
                journey("legacy", old="Old"),
            ),
            "annotations": {"annotations": [annotation("home", "t1"), annotation("welcome", "t2")]},
        }

    def test_no_changes(self, baseline):
        diff = diff_baseline(baseline, baseline["workflows"], baseline["annotations"])

        assert not diff.has_changes
        assert "No changes detected." in format_diff_text(diff)

    def test_changes_reported(self, baseline):
        current_workflows = workflows(
            journey("onboarding", welcome="Welcome!", home="Home"),
            journey("settings", prefs="Preferences"),
        )
        current_annotations = {
            "annotations": [annotation("home", "t1"), annotation("home", "t3", "change-request")]
        }

        diff = diff_baseline(baseline, current_workflows, current_annotations)

        assert diff.has_changes
        assert diff.journeys_added == ["settings"]
        assert diff.journeys_removed == ["legacy"]
        assert [(c.step_id, c.old, c.new) for c in diff.steps_changed] == [
            ("welcome", "Welcome", "Welcome!")
        ]
        assert [a["createdAt"] for a in diff.annotations_added] == ["t3"]
        assert [a["createdAt"] for a in diff.annotations_removed] == ["t2"]

        as_dict = diff.to_dict()
        assert as_dict["annotations"]["total"] == {"baseline": 2, "current": 2}
        assert as_dict["workflows"]["stepsChanged"][0]["field"] == "label"

        text = format_diff_text(diff)
        assert "Journeys added: settings" in text
        assert "Journeys removed: legacy" in text
        assert 'onboarding/welcome: "Welcome" -> "Welcome!"' in text
        assert "+ [change-request/high] onboarding/home" in text
        assert "- [bug/high] onboarding/welcome" in text
