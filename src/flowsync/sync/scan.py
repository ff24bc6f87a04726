"""Repository scanner - which tracked files changed since a revision.

Given the source repository and the last processed revision, returns the
tracked files that were added, modified or removed since, together with
the revision the diff was taken against. Added and modified files carry
their full content at that revision.

Scanning is a pure read. Any git failure surfaces as ScanError and aborts
the cycle; nothing is retried here.
"""

from __future__ import annotations

import logging
import re
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Iterable, Sequence

from flowsync.utilities.git import PathChange, diff_name_status, resolve_revision, show_file

logger = logging.getLogger(__name__)

# git --name-status letters, collapsed to what the merger understands
_STATUS_MAP = {
    "A": "added",
    "M": "modified",
    "T": "modified",
    "D": "removed",
}


class FileStatus(str, Enum):
    ADDED = "added"
    MODIFIED = "modified"
    REMOVED = "removed"


@dataclass(frozen=True)
class TrackedFile:
    """A tracked source file that changed.

    Attributes:
        path: Repository-relative path, unique within one scan.
        status: added, modified or removed.
        content: File text at the scanned revision; None when removed.
    """

    path: str
    status: FileStatus
    content: str | None = None


@dataclass
class ScanResult:
    """Path-level diff between the cursor and the current revision."""

    current_revision: str
    added: list[TrackedFile] = field(default_factory=list)
    removed: list[TrackedFile] = field(default_factory=list)
    modified: list[TrackedFile] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.added or self.removed or self.modified)

    @property
    def total_changed(self) -> int:
        return len(self.added) + len(self.removed) + len(self.modified)

    @property
    def changed_paths(self) -> list[str]:
        """All changed paths: added, then removed, then modified."""
        return [f.path for f in (*self.added, *self.removed, *self.modified)]

    def files_with_content(self) -> list[TrackedFile]:
        return [*self.added, *self.modified]


def _glob_to_regex(pattern: str) -> re.Pattern[str]:
    """Compile a path glob.

    ``*`` and ``?`` stay within one path segment, ``**/`` matches zero or
    more directories and a trailing ``**`` matches anything below.
    """
    out: list[str] = []
    i = 0
    while i < len(pattern):
        if pattern.startswith("**/", i):
            out.append("(?:[^/]+/)*")
            i += 3
        elif pattern.startswith("**", i):
            out.append(".*")
            i += 2
        elif pattern[i] == "*":
            out.append("[^/]*")
            i += 1
        elif pattern[i] == "?":
            out.append("[^/]")
            i += 1
        else:
            out.append(re.escape(pattern[i]))
            i += 1
    return re.compile("".join(out) + r"\Z")


class PathFilter:
    """Allow-list of tracked path globs."""

    def __init__(self, patterns: Iterable[str]) -> None:
        self.patterns = list(patterns)
        self._compiled = [_glob_to_regex(p) for p in self.patterns]

    def __call__(self, path: str) -> bool:
        return any(rx.match(path) for rx in self._compiled)


def _fetch_contents(
    repo_root: Path,
    revision: str,
    changes: Sequence[PathChange],
    workers: int,
) -> list[str]:
    if workers <= 1 or len(changes) <= 1:
        return [show_file(repo_root, revision, c.path) for c in changes]
    with ThreadPoolExecutor(max_workers=workers) as pool:
        return list(pool.map(lambda c: show_file(repo_root, revision, c.path), changes))


def scan(
    source_path: Path,
    last_revision: str | None,
    patterns: Iterable[str],
    workers: int = 1,
) -> ScanResult:
    """Compute the tracked-file diff since ``last_revision``.

    Args:
        source_path: Root of the source git repository.
        last_revision: Last fully processed revision, or None on first run.
        patterns: Allow-list of tracked path globs.
        workers: Thread count for content fetches.

    Returns:
        ScanResult; empty when there is no cursor yet or nothing moved.

    Raises:
        ScanError: If any git command fails.
    """
    current = resolve_revision(source_path, "HEAD")
    if not last_revision or last_revision == current:
        return ScanResult(current_revision=current)

    is_tracked = PathFilter(patterns)
    result = ScanResult(current_revision=current)
    with_content: list[PathChange] = []

    for change in diff_name_status(source_path, last_revision, current):
        if not is_tracked(change.path):
            continue
        status = _STATUS_MAP.get(change.status)
        if status is None:
            logger.debug("Ignoring %s with git status %s", change.path, change.status)
            continue
        if status == "removed":
            result.removed.append(TrackedFile(path=change.path, status=FileStatus.REMOVED))
        else:
            with_content.append(change)

    contents = _fetch_contents(source_path, current, with_content, workers)
    for change, content in zip(with_content, contents):
        status = FileStatus(_STATUS_MAP[change.status])
        tracked = TrackedFile(path=change.path, status=status, content=content)
        if status is FileStatus.ADDED:
            result.added.append(tracked)
        else:
            result.modified.append(tracked)

    return result


__all__ = ["FileStatus", "TrackedFile", "ScanResult", "PathFilter", "scan"]
