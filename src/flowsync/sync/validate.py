"""Invariant validator - accept or reject a candidate workflow graph.

Checks a candidate document against the previously accepted one:
- containers is a list (otherwise nothing else is checked)
- container count moved by at most +max_added / -max_removed
- required container and node fields are present
- categories are valid, node ids unique per container
- outgoing ids resolve inside their own container
- edge labels never outnumber outgoing ids
- no previously live node disappeared (tombstoning is the only way out)

Every check runs and every violation is reported.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Union

from flowsync.graph import StepCategory, WorkflowGraph

GraphLike = Union[WorkflowGraph, dict]

VALID_CATEGORIES = StepCategory.values()


@dataclass(frozen=True)
class ContainerBounds:
    """How far the container count may move in one cycle."""

    max_added: int = 3
    max_removed: int = 1

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ContainerBounds:
        return cls(
            max_added=int(data.get("max_added", 3)),
            max_removed=int(data.get("max_removed", 1)),
        )


@dataclass
class ValidationResult:
    """Outcome of a validation run."""

    errors: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


def _as_document(graph: GraphLike) -> dict[str, Any]:
    if isinstance(graph, WorkflowGraph):
        return graph.to_dict()
    return graph


def _live_node_keys(previous: dict[str, Any]) -> set[tuple[str, str]]:
    keys: set[tuple[str, str]] = set()
    containers = previous.get("containers")
    if not isinstance(containers, list):
        return keys
    for container in containers:
        if not isinstance(container, dict):
            continue
        for node in container.get("nodes") or []:
            if isinstance(node, dict) and not node.get("tombstoned"):
                keys.add((container.get("id"), node.get("id")))
    return keys


def _check_node(container_label: str, node: Any, errors: list[str]) -> str | None:
    """Check one node's fields. Returns its id, or None if it has none."""
    if not isinstance(node, dict):
        errors.append(f"{container_label}: node is not an object")
        return None
    node_id = node.get("id")
    if not node_id:
        errors.append(f"{container_label}: node missing id")
        return None

    prefix = f'{container_label} node "{node_id}"'
    if not node.get("label"):
        errors.append(f"{prefix}: missing label")
    if not node.get("sourceField"):
        errors.append(f"{prefix}: missing sourceField")
    if "sourceFile" not in node:
        errors.append(f"{prefix}: missing sourceFile")
    category = node.get("category")
    if not category:
        errors.append(f"{prefix}: missing category")
    elif category not in VALID_CATEGORIES:
        errors.append(f'{prefix}: invalid category "{category}"')
    if not isinstance(node.get("outgoingIds"), list):
        errors.append(f"{prefix}: missing outgoingIds list")
    return node_id


def validate(
    previous: GraphLike,
    candidate: GraphLike,
    bounds: ContainerBounds | None = None,
) -> ValidationResult:
    """Validate ``candidate`` against the previously accepted ``previous``.

    Args:
        previous: Last accepted graph (model or document).
        candidate: Proposed graph (model or document).
        bounds: Allowed container-count movement per cycle.

    Returns:
        ValidationResult; ``ok`` is True only when no check failed.
    """
    bounds = bounds or ContainerBounds()
    previous_doc = _as_document(previous)
    candidate_doc = _as_document(candidate)
    result = ValidationResult()
    errors = result.errors

    containers = candidate_doc.get("containers") if isinstance(candidate_doc, dict) else None
    if not isinstance(containers, list):
        errors.append("Missing or invalid containers list")
        return result

    previous_containers = previous_doc.get("containers")
    previous_count = len(previous_containers) if isinstance(previous_containers, list) else 0
    delta = len(containers) - previous_count
    if delta > bounds.max_added:
        errors.append(
            f"Too many containers added in one cycle: +{delta} (max +{bounds.max_added})"
        )
    if delta < -bounds.max_removed:
        errors.append(
            f"Too many containers removed in one cycle: {delta} (max -{bounds.max_removed})"
        )

    present: set[tuple[str, str]] = set()

    for container in containers:
        if not isinstance(container, dict):
            errors.append("Container is not an object")
            continue
        container_id = container.get("id")
        label = f'Container "{container_id}"'
        if not container_id:
            errors.append("Container missing id")
        if not container.get("name"):
            errors.append(f"{label}: missing name")
        if not isinstance(container.get("description"), str):
            errors.append(f"{label}: missing description")
        nodes = container.get("nodes")
        if not isinstance(nodes, list):
            errors.append(f"{label}: missing nodes list")
            continue

        node_ids = {n.get("id") for n in nodes if isinstance(n, dict) and n.get("id")}
        seen: set[str] = set()
        for node in nodes:
            node_id = _check_node(label, node, errors)
            if node_id is None:
                continue
            prefix = f'{label} node "{node_id}"'
            if node_id in seen:
                errors.append(f'{prefix}: duplicate node id in container "{container_id}"')
            seen.add(node_id)
            present.add((container_id, node_id))

            outgoing = node.get("outgoingIds")
            if isinstance(outgoing, list):
                for target in outgoing:
                    if target not in node_ids:
                        errors.append(f'{prefix}: outgoing ref "{target}" not found in container')
                edge_labels = node.get("edgeLabels")
                if edge_labels is not None:
                    if not isinstance(edge_labels, list):
                        errors.append(f"{prefix}: edgeLabels is not a list")
                    elif len(edge_labels) > len(outgoing):
                        errors.append(
                            f"{prefix}: {len(edge_labels)} edgeLabels for "
                            f"{len(outgoing)} outgoing ids"
                        )

    for container_id, node_id in sorted(_live_node_keys(previous_doc) - present, key=str):
        errors.append(
            f'Container "{container_id}": node "{node_id}" was removed '
            "(tombstone it instead)"
        )

    return result


__all__ = ["ContainerBounds", "ValidationResult", "VALID_CATEGORIES", "validate"]
