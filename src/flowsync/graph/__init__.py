"""Graph module - Workflow graph data structures.

Exports:
- StepCategory: Enum of step categories
- Step: One screen in a journey
- Journey: Named group of steps
- WorkflowGraph: The persisted document
- ChangeAction / ChangeRecord: What a merge changed
"""

from flowsync.graph.models import (
    FORMAT_VERSION,
    Journey,
    Step,
    StepCategory,
    WorkflowGraph,
    slugify,
    utc_now_iso,
)
from flowsync.graph.mutations import ChangeAction, ChangeRecord

__all__ = [
    "FORMAT_VERSION",
    "StepCategory",
    "Step",
    "Journey",
    "WorkflowGraph",
    "ChangeAction",
    "ChangeRecord",
    "slugify",
    "utc_now_iso",
]
