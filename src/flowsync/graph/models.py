"""Workflow graph data model.

This module provides the structures persisted in the workflow document:
- StepCategory: Enum of step categories
- Step: One screen in a journey
- Journey: Named, ordered group of steps
- WorkflowGraph: The whole document

The document uses camelCase keys (``outgoingIds``, ``sourceFile``...).
Keys this module does not know about are carried in ``extra`` so that
fields owned by the editor survive a synchronization round trip.
"""

from __future__ import annotations

import copy
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Iterator

FORMAT_VERSION = "1.0.0"


class StepCategory(str, Enum):
    """Kinds of steps in a journey."""

    ACTION = "action"
    DISPLAY = "display"
    DECISION = "decision"
    INPUT = "input"
    SYSTEM = "system"

    @classmethod
    def values(cls) -> frozenset[str]:
        return frozenset(member.value for member in cls)


_STEP_KEYS = {
    "id",
    "label",
    "sourceField",
    "category",
    "outgoingIds",
    "edgeLabels",
    "sourceFile",
    "tombstoned",
    "needsReview",
}
_JOURNEY_KEYS = {"id", "name", "description", "nodes"}


def utc_now_iso() -> str:
    """Return the current UTC time as an ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat()


def slugify(name: str) -> str:
    """Turn a CamelCase entity name into a kebab-case step id.

    >>> slugify("WelcomeView")
    'welcome-view'
    """
    slug = re.sub(r"([A-Z])", r"-\1", name).lower()
    slug = re.sub(r"[^a-z0-9-]", "-", slug)
    slug = re.sub(r"-+", "-", slug)
    return slug.strip("-")


@dataclass
class Step:
    """A single screen in a journey.

    Attributes:
        id: Identifier, unique within the owning journey.
        label: Human-readable label.
        screen: Name of the defining entity (the SwiftUI view struct).
        category: One of the StepCategory values.
        source_file: Repository-relative path of the defining file, or None.
        next_ids: Ordered outgoing step ids within the same journey.
        edge_labels: Optional labels, positionally paired with next_ids.
        tombstoned: Soft-delete marker. Once set it is never cleared.
        needs_review: Set on steps produced by heuristic extraction.
        extra: Unrecognized document keys, preserved verbatim.
    """

    id: str
    label: str = ""
    screen: str = ""
    category: str = StepCategory.DISPLAY.value
    source_file: str | None = None
    next_ids: list[str] = field(default_factory=list)
    edge_labels: list[str] | None = None
    tombstoned: bool = False
    needs_review: bool = False
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Step:
        edge_labels = data.get("edgeLabels")
        return cls(
            id=data.get("id", ""),
            label=data.get("label", ""),
            screen=data.get("sourceField", ""),
            category=data.get("category", StepCategory.DISPLAY.value),
            source_file=data.get("sourceFile"),
            next_ids=list(data.get("outgoingIds") or []),
            edge_labels=list(edge_labels) if edge_labels is not None else None,
            tombstoned=bool(data.get("tombstoned", False)),
            needs_review=bool(data.get("needsReview", False)),
            extra={k: copy.deepcopy(v) for k, v in data.items() if k not in _STEP_KEYS},
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "label": self.label,
            "sourceField": self.screen,
            "category": self.category,
            "outgoingIds": list(self.next_ids),
        }
        if self.edge_labels is not None:
            data["edgeLabels"] = list(self.edge_labels)
        data["sourceFile"] = self.source_file
        if self.tombstoned:
            data["tombstoned"] = True
        if self.needs_review:
            data["needsReview"] = True
        data.update(copy.deepcopy(self.extra))
        return data


@dataclass
class Journey:
    """An end-to-end user scenario: a named, ordered list of steps."""

    id: str
    name: str = ""
    description: str = ""
    steps: list[Step] = field(default_factory=list)
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Journey:
        return cls(
            id=data.get("id", ""),
            name=data.get("name", ""),
            description=data.get("description", ""),
            steps=[Step.from_dict(s) for s in data.get("nodes") or []],
            extra={k: copy.deepcopy(v) for k, v in data.items() if k not in _JOURNEY_KEYS},
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "nodes": [s.to_dict() for s in self.steps],
        }
        data.update(copy.deepcopy(self.extra))
        return data

    def find_step(self, step_id: str) -> Step | None:
        for step in self.steps:
            if step.id == step_id:
                return step
        return None

    def step_ids(self) -> set[str]:
        return {s.id for s in self.steps}


@dataclass
class WorkflowGraph:
    """The persisted workflow document."""

    format_version: str = FORMAT_VERSION
    generated_at: str = ""
    journeys: list[Journey] = field(default_factory=list)

    @classmethod
    def empty(cls) -> WorkflowGraph:
        return cls(format_version=FORMAT_VERSION, generated_at=utc_now_iso(), journeys=[])

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> WorkflowGraph:
        """Build a graph from a parsed document.

        Raises:
            ValueError: If ``containers`` is present but not a list.
        """
        containers = data.get("containers", [])
        if not isinstance(containers, list):
            raise ValueError("Workflow document 'containers' must be a list")
        return cls(
            format_version=data.get("formatVersion", FORMAT_VERSION),
            generated_at=data.get("generatedAt", ""),
            journeys=[Journey.from_dict(j) for j in containers],
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "formatVersion": self.format_version,
            "generatedAt": self.generated_at,
            "containers": [j.to_dict() for j in self.journeys],
        }

    def clone(self) -> WorkflowGraph:
        return copy.deepcopy(self)

    def find_journey(self, journey_id: str) -> Journey | None:
        for journey in self.journeys:
            if journey.id == journey_id:
                return journey
        return None

    def iter_steps(self) -> Iterator[tuple[Journey, Step]]:
        """Iterate over (journey, step) pairs in document order."""
        for journey in self.journeys:
            for step in journey.steps:
                yield journey, step

    def find_by_source_file(self, path: str) -> tuple[Journey, Step] | None:
        """Find the step that tracks a source file."""
        for journey, step in self.iter_steps():
            if step.source_file == path:
                return journey, step
        return None


__all__ = [
    "FORMAT_VERSION",
    "StepCategory",
    "Step",
    "Journey",
    "WorkflowGraph",
    "slugify",
    "utc_now_iso",
]
