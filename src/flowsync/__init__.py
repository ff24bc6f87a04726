"""
flowsync - Workflow graph synchronization

Keeps a journey/step workflow graph in step with the SwiftUI screens of a
git repository: changed files are detected by revision, heuristically
parsed, merged into the graph without losing history, and validated before
anything is written.
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("flowsync")
except PackageNotFoundError:
    __version__ = "0.0.0+unknown"  # Not installed
__author__ = "Anspar"
__license__ = "MIT"

from flowsync.graph import ChangeRecord, Journey, Step, StepCategory, WorkflowGraph
from flowsync.sync.merge import merge
from flowsync.sync.parse import parse_source_file
from flowsync.sync.validate import validate

__all__ = [
    "__version__",
    "ChangeRecord",
    "Journey",
    "Step",
    "StepCategory",
    "WorkflowGraph",
    "merge",
    "parse_source_file",
    "validate",
]
