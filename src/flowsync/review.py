"""Annotation review report.

Traces each annotation through its journey and step to the source file
behind it, then groups the annotations by priority (blocker, required,
suggestion) and orders each group by type severity and creation time.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable

from flowsync.graph import Step, WorkflowGraph

PRIORITY_GROUPS = ("blocker", "required", "suggestion")

# Lower rank sorts first; unknown types go last
TYPE_RANK = {
    "bug": 0,
    "change-request": 1,
    "question": 2,
    "note": 3,
}
_UNKNOWN_RANK = 99


@dataclass
class ResolvedAnnotation:
    """An annotation joined with the step it refers to.

    Attributes:
        annotation: The stored annotation document.
        journey_name: Journey name, or the annotation's journey id if unknown.
        step_label: Step label, or the annotation's step id if unknown.
        source_file: Repository-relative file behind the step, if any.
        branches: ``"<label> -> <next id>"`` pairs when the step has edge labels.
        file_exists: Set only when files were checked.
        index: 1-based position in the report.
    """

    annotation: dict[str, Any]
    journey_name: str
    step_label: str
    source_file: str | None = None
    branches: list[str] | None = None
    file_exists: bool | None = None
    index: int = 0

    @property
    def type(self) -> str:
        return self.annotation.get("type", "")

    @property
    def priority(self) -> str:
        return self.annotation.get("priority", "suggestion")

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "index": self.index,
            "annotation": self.annotation,
            "journeyName": self.journey_name,
            "stepLabel": self.step_label,
            "sourceFile": self.source_file,
        }
        if self.branches is not None:
            data["branches"] = self.branches
        if self.file_exists is not None:
            data["fileExists"] = self.file_exists
        return data


@dataclass
class ReviewReport:
    """Annotations grouped by priority, in display order."""

    generated: str
    blockers: list[ResolvedAnnotation] = field(default_factory=list)
    required: list[ResolvedAnnotation] = field(default_factory=list)
    suggestions: list[ResolvedAnnotation] = field(default_factory=list)
    source_root: Path | None = None

    @property
    def items(self) -> list[ResolvedAnnotation]:
        return [*self.blockers, *self.required, *self.suggestions]

    @property
    def total(self) -> int:
        return len(self.items)

    @property
    def type_counts(self) -> dict[str, int]:
        counts: dict[str, int] = {}
        for item in self.items:
            counts[item.type] = counts.get(item.type, 0) + 1
        return dict(sorted(counts.items(), key=lambda kv: _type_rank(kv[0])))

    @property
    def missing_files(self) -> list[ResolvedAnnotation]:
        return [item for item in self.items if item.file_exists is False]

    def to_dict(self) -> dict[str, Any]:
        return {
            "generated": self.generated,
            "total": self.total,
            "typeCounts": self.type_counts,
            "blockers": [item.to_dict() for item in self.blockers],
            "required": [item.to_dict() for item in self.required],
            "suggestions": [item.to_dict() for item in self.suggestions],
        }


def _type_rank(annotation_type: str) -> int:
    return TYPE_RANK.get(annotation_type, _UNKNOWN_RANK)


def _branches(step: Step) -> list[str] | None:
    if step.edge_labels is None:
        return None
    return [f"{label} -> {target}" for label, target in zip(step.edge_labels, step.next_ids)]


def resolve_annotations(
    annotations: Iterable[dict[str, Any]], graph: WorkflowGraph
) -> list[ResolvedAnnotation]:
    """Join annotations with their steps.

    Annotations whose journey or step no longer exists are kept, labelled
    with their raw ids and no source file.
    """
    index = {(journey.id, step.id): (journey, step) for journey, step in graph.iter_steps()}
    resolved = []
    for annotation in annotations:
        journey_id = annotation.get("journeyId", "")
        step_id = annotation.get("stepId", "")
        match = index.get((journey_id, step_id))
        if match is None:
            resolved.append(ResolvedAnnotation(annotation, journey_id, step_id))
            continue
        journey, step = match
        resolved.append(
            ResolvedAnnotation(
                annotation=annotation,
                journey_name=journey.name or journey_id,
                step_label=step.label or step_id,
                source_file=step.source_file,
                branches=_branches(step),
            )
        )
    return resolved


def check_files(items: Iterable[ResolvedAnnotation], source_root: Path) -> None:
    """Record whether each mapped source file exists under ``source_root``."""
    for item in items:
        if item.source_file:
            item.file_exists = (source_root / item.source_file).is_file()


def _sort_group(items: list[ResolvedAnnotation]) -> list[ResolvedAnnotation]:
    return sorted(items, key=lambda i: (_type_rank(i.type), i.annotation.get("createdAt", "")))


def build_report(
    annotations: Iterable[dict[str, Any]],
    graph: WorkflowGraph,
    source_root: Path | None = None,
    now: datetime | None = None,
) -> ReviewReport:
    """Resolve, group and number annotations.

    Args:
        annotations: Stored annotations.
        graph: Workflow graph the annotations refer to.
        source_root: If given, check that each mapped source file exists.
        now: Report time (default: current UTC time).
    """
    resolved = resolve_annotations(annotations, graph)
    if source_root is not None:
        check_files(resolved, source_root)

    groups: dict[str, list[ResolvedAnnotation]] = {p: [] for p in PRIORITY_GROUPS}
    for item in resolved:
        # Unknown priorities count as suggestions
        groups.get(item.priority, groups["suggestion"]).append(item)

    report = ReviewReport(
        generated=(now or datetime.now(timezone.utc)).isoformat(),
        blockers=_sort_group(groups["blocker"]),
        required=_sort_group(groups["required"]),
        suggestions=_sort_group(groups["suggestion"]),
        source_root=source_root,
    )
    for position, item in enumerate(report.items, start=1):
        item.index = position
    return report


def _format_type_summary(report: ReviewReport) -> str:
    parts = [
        f"{count} {kind if count == 1 else kind + 's'}"
        for kind, count in report.type_counts.items()
    ]
    return f"{report.total} annotations ({', '.join(parts)})"


def _format_entry(item: ResolvedAnnotation, source_root: Path | None) -> list[str]:
    a = item.annotation
    lines = [
        f"[{item.index}] {item.type.upper()}: {a.get('journeyId')} / {a.get('stepId')}",
        f"    Priority: {item.priority}",
        f"    File: {item.source_file or '(no file mapped)'}",
    ]
    if item.file_exists is False and source_root is not None:
        lines.append(f"    WARNING: File not found at {source_root / item.source_file}")
    if item.branches:
        lines.append(f"    Branches: {', '.join(item.branches)}")
    lines.append(f"    Note: \"{a.get('text', '')}\"")
    lines.append(f"    Created: {a.get('createdAt', '')}")
    return lines


def format_review_text(report: ReviewReport) -> str:
    """Render a ReviewReport as plain text."""
    lines = [
        "=== Annotation Review Report ===",
        f"Generated: {report.generated}",
        f"Total: {_format_type_summary(report)}",
    ]
    for title, items in (
        ("BLOCKERS", report.blockers),
        ("REQUIRED", report.required),
        ("SUGGESTIONS", report.suggestions),
    ):
        if not items:
            continue
        lines.append("")
        lines.append(f"--- {title} ({len(items)}) ---")
        for item in items:
            lines.append("")
            lines.extend(_format_entry(item, report.source_root))
    return "\n".join(lines)


__all__ = [
    "PRIORITY_GROUPS",
    "TYPE_RANK",
    "ResolvedAnnotation",
    "ReviewReport",
    "build_report",
    "check_files",
    "format_review_text",
    "resolve_annotations",
]
