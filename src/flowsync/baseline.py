"""Baselines - timestamped snapshots of the workflow and annotation documents.

A baseline is ``{savedAt, workflows, annotations}`` written to
``baseline-<timestamp>.json`` and mirrored to ``latest.json``. The
scheduler saves one before each committed change; the CLI can list them,
diff the current documents against one, or restore one by hand.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from flowsync.utilities.fs import read_json, write_json

LATEST_NAME = "latest.json"
SNAPSHOT_PREFIX = "baseline-"


def _timestamp(now: datetime) -> str:
    # Filename-safe ISO form: 2026-01-05T10-22-41-123456
    return now.strftime("%Y-%m-%dT%H-%M-%S-%f")


def save_baseline(
    baseline_dir: Path,
    workflows: dict[str, Any],
    annotations: dict[str, Any] | None = None,
    now: datetime | None = None,
) -> Path:
    """Write a snapshot and update ``latest.json``.

    Args:
        baseline_dir: Directory holding snapshots (created if needed).
        workflows: Workflow graph document.
        annotations: Annotations document; defaults to no annotations.
        now: Snapshot time (default: current UTC time).

    Returns:
        Path of the timestamped snapshot.
    """
    now = now or datetime.now(timezone.utc)
    snapshot = {
        "savedAt": now.isoformat(),
        "workflows": workflows,
        "annotations": annotations if annotations is not None else {"annotations": []},
    }
    path = baseline_dir / f"{SNAPSHOT_PREFIX}{_timestamp(now)}.json"
    write_json(path, snapshot)
    write_json(baseline_dir / LATEST_NAME, snapshot)
    return path


def list_baselines(baseline_dir: Path) -> list[Path]:
    """Timestamped snapshots, oldest first."""
    if not baseline_dir.is_dir():
        return []
    return sorted(baseline_dir.glob(f"{SNAPSHOT_PREFIX}*.json"))


def find_baseline(baseline_dir: Path, timestamp: str | None = None) -> Path | None:
    """Locate ``latest.json`` or the first snapshot whose timestamp starts with ``timestamp``."""
    if timestamp is None:
        latest = baseline_dir / LATEST_NAME
        return latest if latest.exists() else None
    for path in list_baselines(baseline_dir):
        if path.name.startswith(f"{SNAPSHOT_PREFIX}{timestamp}"):
            return path
    return None


def load_baseline(path: Path) -> dict[str, Any]:
    """Read a snapshot file.

    Raises:
        ValueError: If the snapshot lacks workflows or annotations.
    """
    snapshot = read_json(path)
    if not isinstance(snapshot, dict) or not {"workflows", "annotations"} <= snapshot.keys():
        raise ValueError(f"Invalid snapshot format in {path}: missing workflows or annotations")
    return snapshot


@dataclass
class StepChange:
    journey_id: str
    step_id: str
    field: str
    old: str
    new: str


@dataclass
class BaselineDiff:
    """Differences between a baseline and the current documents."""

    baseline_date: str
    annotations_added: list[dict[str, Any]] = field(default_factory=list)
    annotations_removed: list[dict[str, Any]] = field(default_factory=list)
    annotations_baseline_total: int = 0
    annotations_current_total: int = 0
    journeys_added: list[str] = field(default_factory=list)
    journeys_removed: list[str] = field(default_factory=list)
    steps_changed: list[StepChange] = field(default_factory=list)

    @property
    def has_changes(self) -> bool:
        return bool(
            self.annotations_added
            or self.annotations_removed
            or self.journeys_added
            or self.journeys_removed
            or self.steps_changed
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "baselineDate": self.baseline_date,
            "annotations": {
                "added": self.annotations_added,
                "removed": self.annotations_removed,
                "total": {
                    "baseline": self.annotations_baseline_total,
                    "current": self.annotations_current_total,
                },
            },
            "workflows": {
                "journeysAdded": self.journeys_added,
                "journeysRemoved": self.journeys_removed,
                "stepsChanged": [asdict(c) for c in self.steps_changed],
            },
        }


def _annotation_key(a: dict[str, Any]) -> tuple[str, str, str]:
    return (a.get("journeyId", ""), a.get("stepId", ""), a.get("createdAt", ""))


def _journeys(document: dict[str, Any]) -> list[dict[str, Any]]:
    containers = document.get("containers")
    return containers if isinstance(containers, list) else []


def diff_baseline(
    baseline: dict[str, Any],
    workflows: dict[str, Any],
    annotations: dict[str, Any],
) -> BaselineDiff:
    """Compare a loaded baseline with the current documents."""
    base_annotations = baseline["annotations"].get("annotations") or []
    curr_annotations = annotations.get("annotations") or []
    base_keys = {_annotation_key(a) for a in base_annotations}
    curr_keys = {_annotation_key(a) for a in curr_annotations}

    diff = BaselineDiff(
        baseline_date=baseline.get("savedAt", ""),
        annotations_added=[a for a in curr_annotations if _annotation_key(a) not in base_keys],
        annotations_removed=[a for a in base_annotations if _annotation_key(a) not in curr_keys],
        annotations_baseline_total=len(base_annotations),
        annotations_current_total=len(curr_annotations),
    )

    base_journeys = {j.get("id"): j for j in _journeys(baseline["workflows"])}
    curr_journeys = {j.get("id"): j for j in _journeys(workflows)}
    diff.journeys_added = [jid for jid in curr_journeys if jid not in base_journeys]
    diff.journeys_removed = [jid for jid in base_journeys if jid not in curr_journeys]

    for journey_id, journey in curr_journeys.items():
        base_journey = base_journeys.get(journey_id)
        if base_journey is None:
            continue
        base_steps = {s.get("id"): s for s in base_journey.get("nodes") or []}
        for step in journey.get("nodes") or []:
            base_step = base_steps.get(step.get("id"))
            if base_step is not None and base_step.get("label") != step.get("label"):
                diff.steps_changed.append(
                    StepChange(
                        journey_id=journey_id,
                        step_id=step.get("id"),
                        field="label",
                        old=base_step.get("label", ""),
                        new=step.get("label", ""),
                    )
                )
    return diff


def format_diff_text(diff: BaselineDiff) -> str:
    """Render a BaselineDiff as a plain-text report."""
    lines = [
        "Baseline Diff Report",
        "====================",
        f"Baseline from: {diff.baseline_date}",
        "",
        "Annotations:",
        f"  Baseline: {diff.annotations_baseline_total}",
        f"  Current:  {diff.annotations_current_total}",
        f"  Added:    {len(diff.annotations_added)}",
        f"  Removed:  {len(diff.annotations_removed)}",
    ]
    for title, sign, items in (
        ("New annotations", "+", diff.annotations_added),
        ("Resolved annotations", "-", diff.annotations_removed),
    ):
        if items:
            lines.append("")
            lines.append(f"  {title}:")
            for a in items:
                lines.append(
                    f"    {sign} [{a.get('type')}/{a.get('priority')}] "
                    f"{a.get('journeyId')}/{a.get('stepId')}: \"{a.get('text')}\""
                )

    if diff.journeys_added or diff.journeys_removed or diff.steps_changed:
        lines.append("")
        lines.append("Workflows:")
        if diff.journeys_added:
            lines.append(f"  Journeys added: {', '.join(diff.journeys_added)}")
        if diff.journeys_removed:
            lines.append(f"  Journeys removed: {', '.join(diff.journeys_removed)}")
        if diff.steps_changed:
            lines.append("")
            lines.append("  Step label changes:")
            for c in diff.steps_changed:
                lines.append(f'    {c.journey_id}/{c.step_id}: "{c.old}" -> "{c.new}"')

    if not diff.has_changes:
        lines.append("")
        lines.append("No changes detected.")
    return "\n".join(lines)


__all__ = [
    "BaselineDiff",
    "StepChange",
    "diff_baseline",
    "find_baseline",
    "format_diff_text",
    "list_baselines",
    "load_baseline",
    "save_baseline",
]
