"""Persistence for the scheduler: cursor, graph document and snapshots.

The scheduler only talks to the SyncStore protocol. FileStore is the
on-disk implementation (every write is an atomic replace); MemoryStore
keeps everything in memory for tests.
"""

from __future__ import annotations

import copy
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from flowsync.baseline import save_baseline
from flowsync.graph import WorkflowGraph
from flowsync.utilities.fs import atomic_write_text, read_json, write_json


@runtime_checkable
class SyncStore(Protocol):
    """What the scheduler needs from durable storage."""

    def load_cursor(self) -> str | None: ...

    def save_cursor(self, revision: str) -> None: ...

    def load_graph(self) -> WorkflowGraph: ...

    def save_graph(self, graph: WorkflowGraph) -> None: ...

    def snapshot(self, graph: WorkflowGraph) -> str: ...


class FileStore:
    """File-backed store.

    Args:
        graph_path: Workflow graph JSON document.
        cursor_path: Plain-text file holding the last processed revision.
        baseline_dir: Directory for snapshots.
        annotations_path: Annotations document, snapshotted with the graph.
    """

    def __init__(
        self,
        graph_path: Path,
        cursor_path: Path,
        baseline_dir: Path,
        annotations_path: Path | None = None,
    ) -> None:
        self.graph_path = graph_path
        self.cursor_path = cursor_path
        self.baseline_dir = baseline_dir
        self.annotations_path = annotations_path

    def load_cursor(self) -> str | None:
        if not self.cursor_path.exists():
            return None
        return self.cursor_path.read_text(encoding="utf-8").strip() or None

    def save_cursor(self, revision: str) -> None:
        atomic_write_text(self.cursor_path, revision)

    def load_graph(self) -> WorkflowGraph:
        document = read_json(self.graph_path)
        if document is None:
            return WorkflowGraph.empty()
        return WorkflowGraph.from_dict(document)

    def load_document(self) -> dict[str, Any]:
        """The raw graph document, or an empty graph's document."""
        document = read_json(self.graph_path)
        return document if document is not None else WorkflowGraph.empty().to_dict()

    def save_graph(self, graph: WorkflowGraph) -> None:
        write_json(self.graph_path, graph.to_dict())

    def load_annotations(self) -> dict[str, Any]:
        if self.annotations_path is None:
            return {"annotations": []}
        return read_json(self.annotations_path, default={"annotations": []})

    def save_annotations(self, document: dict[str, Any]) -> None:
        if self.annotations_path is None:
            raise ValueError("No annotations file configured")
        write_json(self.annotations_path, document)

    def snapshot(self, graph: WorkflowGraph) -> str:
        path = save_baseline(self.baseline_dir, graph.to_dict(), self.load_annotations())
        return str(path)


class MemoryStore:
    """In-memory store. Documents are deep-copied in and out."""

    def __init__(self, graph: WorkflowGraph | None = None, cursor: str | None = None) -> None:
        self.cursor = cursor
        self.document: dict[str, Any] | None = graph.to_dict() if graph is not None else None
        self.snapshots: list[dict[str, Any]] = []
        self.cursor_writes = 0
        self.graph_writes = 0

    def load_cursor(self) -> str | None:
        return self.cursor

    def save_cursor(self, revision: str) -> None:
        self.cursor = revision
        self.cursor_writes += 1

    def load_graph(self) -> WorkflowGraph:
        if self.document is None:
            return WorkflowGraph.empty()
        return WorkflowGraph.from_dict(copy.deepcopy(self.document))

    def save_graph(self, graph: WorkflowGraph) -> None:
        self.document = graph.to_dict()
        self.graph_writes += 1

    def snapshot(self, graph: WorkflowGraph) -> str:
        self.snapshots.append(graph.to_dict())
        return f"memory:{len(self.snapshots)}"


__all__ = ["SyncStore", "FileStore", "MemoryStore"]
