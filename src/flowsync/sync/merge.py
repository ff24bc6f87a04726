"""Graph merger - fold a scan diff and its descriptors into the graph.

Rules:
- Added files: new step with needs_review set, placed by path prefix,
  by who references it, or in the "unassigned" journey
- Removed files: tombstone the step (never delete it)
- Modified files: recompute outgoing ids, trimming edge labels that no
  longer have an edge

The input graph is never mutated; a deep copy is returned.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Mapping

from flowsync.graph import ChangeAction, ChangeRecord, Journey, Step, WorkflowGraph, slugify
from flowsync.sync.parse import StructuralDescriptor
from flowsync.sync.scan import ScanResult

logger = logging.getLogger(__name__)

DEFAULT_UNASSIGNED = "unassigned"
AUTO_DESCRIPTION = "Auto-generated journey"


@dataclass(frozen=True)
class PlacementRules:
    """Where new steps go.

    Attributes:
        prefixes: Ordered mapping of path prefix to journey id. The first
            prefix that matches a new file's path wins.
        unassigned: Journey id for steps nothing else claims.
    """

    prefixes: tuple[tuple[str, str], ...] = ()
    unassigned: str = DEFAULT_UNASSIGNED

    @classmethod
    def from_mapping(
        cls, prefixes: Mapping[str, str] | None = None, unassigned: str = DEFAULT_UNASSIGNED
    ) -> PlacementRules:
        return cls(prefixes=tuple((prefixes or {}).items()), unassigned=unassigned)

    def journey_for_path(self, path: str) -> str | None:
        for prefix, journey_id in self.prefixes:
            if path.startswith(prefix):
                return journey_id
        return None


@dataclass
class MergeResult:
    """Candidate graph plus what changed."""

    graph: WorkflowGraph
    changes: list[ChangeRecord] = field(default_factory=list)
    review_count: int = 0


def _title_from_id(journey_id: str) -> str:
    return " ".join(w[:1].upper() + w[1:] for w in journey_id.split("-"))


def ensure_journey(graph: WorkflowGraph, journey_id: str) -> Journey:
    """Look up a journey, creating an empty one if absent."""
    journey = graph.find_journey(journey_id)
    if journey is None:
        journey = Journey(
            id=journey_id,
            name=_title_from_id(journey_id),
            description=AUTO_DESCRIPTION,
        )
        graph.journeys.append(journey)
    return journey


def resolve_next_ids(
    graph: WorkflowGraph,
    journey: Journey,
    step_id: str,
    descriptor: StructuralDescriptor,
) -> list[str]:
    """Resolve a descriptor's edge targets to step ids.

    Targets are matched against the ``screen`` of live (non-tombstoned)
    steps, the owning journey first, then the rest of the graph in
    document order. The first match per target wins. A target whose first
    match lies in another journey cannot be expressed as an edge and is
    dropped, as are unmatched targets. A step may link to itself
    (recursive screens such as nested folders).
    """
    search_order = [journey, *(j for j in graph.journeys if j is not journey)]
    next_ids: list[str] = []
    for target in descriptor.targets:
        owner: Journey | None = None
        match: Step | None = None
        for candidate in search_order:
            for step in candidate.steps:
                if not step.tombstoned and step.screen == target:
                    owner, match = candidate, step
                    break
            if match is not None:
                break
        if match is None:
            continue
        if owner is not journey:
            logger.debug(
                "Dropping cross-journey edge %s -> %s/%s", step_id, owner.id, match.id
            )
            continue
        if match.id not in next_ids:
            next_ids.append(match.id)
    return next_ids


def _choose_journey(
    graph: WorkflowGraph,
    path: str,
    entity_name: str,
    descriptors_by_path: Mapping[str, StructuralDescriptor],
    rules: PlacementRules,
) -> str:
    by_prefix = rules.journey_for_path(path)
    if by_prefix is not None:
        return by_prefix

    # An existing step that already points at this entity
    for journey, step in graph.iter_steps():
        if step.tombstoned:
            continue
        for next_id in step.next_ids:
            target = journey.find_step(next_id)
            if target is not None and target.screen == entity_name:
                return journey.id

    # An existing step whose file was re-parsed this cycle and now links here
    for journey, step in graph.iter_steps():
        if step.tombstoned or step.source_file is None:
            continue
        descriptor = descriptors_by_path.get(step.source_file)
        if descriptor is not None and entity_name in descriptor.targets:
            return journey.id

    return rules.unassigned


def _unique_step_id(journey: Journey, base: str) -> str:
    taken = journey.step_ids()
    if base not in taken:
        return base
    n = 2
    while f"{base}-{n}" in taken:
        n += 1
    return f"{base}-{n}"


def merge(
    current: WorkflowGraph,
    scan_result: ScanResult,
    descriptors: Iterable[StructuralDescriptor],
    rules: PlacementRules | None = None,
) -> MergeResult:
    """Merge a scan diff and its descriptors into a copy of ``current``.

    Args:
        current: Last accepted graph. Not modified.
        scan_result: Files added, removed and modified since the cursor.
        descriptors: Descriptors for added/modified files that define a view.
        rules: Journey placement rules for new steps.

    Returns:
        MergeResult with the candidate graph, change records and the number
        of steps newly flagged for review.
    """
    rules = rules or PlacementRules()
    graph = current.clone()
    result = MergeResult(graph=graph)
    descriptors_by_path = {d.path: d for d in descriptors}

    # 1. Added files
    for tracked in scan_result.added:
        descriptor = descriptors_by_path.get(tracked.path)
        if descriptor is None:
            continue
        if graph.find_by_source_file(tracked.path) is not None:
            continue

        journey_id = _choose_journey(
            graph, tracked.path, descriptor.entity_name, descriptors_by_path, rules
        )
        journey = ensure_journey(graph, journey_id)
        step = Step(
            id=_unique_step_id(journey, slugify(descriptor.entity_name)),
            label=f"TODO: {descriptor.entity_name}",
            screen=descriptor.entity_name,
            category=descriptor.category.value,
            source_file=tracked.path,
            needs_review=True,
        )
        step.next_ids = resolve_next_ids(graph, journey, step.id, descriptor)
        journey.steps.append(step)
        result.review_count += 1
        result.changes.append(
            ChangeRecord(
                action=ChangeAction.ADD.value,
                journey_id=journey.id,
                step_id=step.id,
                detail=f"Added {descriptor.entity_name} from {tracked.path}",
            )
        )

    # 2. Removed files
    for tracked in scan_result.removed:
        found = graph.find_by_source_file(tracked.path)
        if found is None:
            continue
        journey, step = found
        if not step.tombstoned:
            step.tombstoned = True
            result.changes.append(
                ChangeRecord(
                    action=ChangeAction.DEPRECATE.value,
                    journey_id=journey.id,
                    step_id=step.id,
                    detail=f"Tombstoned (file removed: {tracked.path})",
                )
            )

    # 3. Modified files
    for tracked in scan_result.modified:
        descriptor = descriptors_by_path.get(tracked.path)
        if descriptor is None:
            continue
        found = graph.find_by_source_file(tracked.path)
        if found is None:
            continue
        journey, step = found
        new_next = resolve_next_ids(graph, journey, step.id, descriptor)
        if new_next == step.next_ids:
            continue
        old_next = step.next_ids
        step.next_ids = new_next
        if step.edge_labels is not None and len(step.edge_labels) > len(new_next):
            step.edge_labels = step.edge_labels[: len(new_next)]
        result.changes.append(
            ChangeRecord(
                action=ChangeAction.UPDATE_EDGES.value,
                journey_id=journey.id,
                step_id=step.id,
                detail=f"Updated outgoing ids from {old_next} to {new_next}",
            )
        )

    return result


__all__ = [
    "AUTO_DESCRIPTION",
    "DEFAULT_UNASSIGNED",
    "MergeResult",
    "PlacementRules",
    "ensure_journey",
    "merge",
    "resolve_next_ids",
]
