"""Mermaid flowchart export of the workflow graph.

One ``flowchart LR`` per journey. Node shape and style class follow the
step category; steps with open ``bug`` or ``change-request`` annotations
get the ``flaggedNode`` class.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Iterable

from flowsync.graph import Journey, WorkflowGraph
from flowsync.utilities.fs import write_json

# category -> (opening, closing) bracket pair
SHAPES = {
    "action": ('["', '"]'),
    "display": ('("', '")'),
    "decision": ('{"', '"}'),
    "input": ('[/"', '"/]'),
    "system": ('[["', '"]]'),
}

CLASS_DEFS = (
    "classDef actionNode fill:#34c759,color:#fff,stroke:#2da44e",
    "classDef displayNode fill:#007aff,color:#fff,stroke:#0056cc",
    "classDef decisionNode fill:#ff9500,color:#fff,stroke:#cc7a00",
    "classDef inputNode fill:#af52de,color:#fff,stroke:#8b3db5",
    "classDef systemNode fill:#8e8e93,color:#fff,stroke:#6d6d72",
    "classDef annotatedNode stroke:#ff9500,stroke-width:3px,stroke-dasharray:5",
    "classDef flaggedNode stroke:#ff3b30,stroke-width:3px",
)

FLAGGING_TYPES = ("bug", "change-request")


def _escape(text: str) -> str:
    return text.replace('"', "'")


def node_shape(step_id: str, label: str, category: str) -> str:
    """Mermaid node declaration for a step."""
    opening, closing = SHAPES.get(category, SHAPES["action"])
    return f"{step_id}{opening}{_escape(label)}{closing}"


def journey_to_mermaid(journey: Journey, annotations: Iterable[dict[str, Any]] = ()) -> str:
    """Render one journey as a Mermaid flowchart."""
    flagged: list[str] = []
    for annotation in annotations:
        if (
            annotation.get("journeyId") == journey.id
            and annotation.get("type") in FLAGGING_TYPES
            and annotation.get("stepId") not in flagged
        ):
            flagged.append(annotation.get("stepId"))

    lines = ["flowchart LR"]
    for step in journey.steps:
        lines.append(f"    {node_shape(step.id, step.label, step.category)}")
    lines.append("")

    for step in journey.steps:
        for i, next_id in enumerate(step.next_ids):
            label = step.edge_labels[i] if step.edge_labels and i < len(step.edge_labels) else ""
            if label:
                lines.append(f'    {step.id} -->|"{_escape(label)}"| {next_id}')
            else:
                lines.append(f"    {step.id} --> {next_id}")
    lines.append("")

    lines.extend(f"    {d}" for d in CLASS_DEFS)
    for step in journey.steps:
        if step.category in SHAPES:
            lines.append(f"    class {step.id} {step.category}Node")
    for step_id in flagged:
        lines.append(f"    class {step_id} flaggedNode")

    return "\n".join(lines)


def export_all(
    graph: WorkflowGraph, annotations: Iterable[dict[str, Any]] = ()
) -> dict[str, str]:
    """Render every journey; keys are journey ids."""
    annotations = list(annotations)
    return {j.id: journey_to_mermaid(j, annotations) for j in graph.journeys}


def write_mermaid_export(
    path: Path, graph: WorkflowGraph, annotations: Iterable[dict[str, Any]] = ()
) -> Path:
    """Write ``{journeyId: mermaid}`` JSON to ``path``."""
    write_json(path, export_all(graph, annotations))
    return path


__all__ = ["SHAPES", "export_all", "journey_to_mermaid", "node_shape", "write_mermaid_export"]
