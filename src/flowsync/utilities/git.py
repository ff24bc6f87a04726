"""Git plumbing for flowsync.

Thin wrappers over the git CLI used by the repository scanner:
- Resolve a ref to a concrete revision
- List path-level changes between two revisions
- Read a file's content at a revision

All commands run with an explicit ``cwd`` and a cleaned environment.
Failures are raised as ScanError so that the caller can abort the cycle.
"""

from __future__ import annotations

import os
import subprocess
from dataclasses import dataclass
from pathlib import Path

from flowsync.exceptions import ScanError


def _clean_git_env() -> dict[str, str]:
    """Return environment with GIT_DIR/GIT_WORK_TREE removed.

    Use when running git commands with explicit cwd to prevent
    inherited git context from overriding the provided path.
    """
    env = os.environ.copy()
    env.pop("GIT_DIR", None)
    env.pop("GIT_WORK_TREE", None)
    return env


def _run_git(repo_root: Path, args: list[str]) -> str:
    """Run a git command and return its stdout.

    Raises:
        ScanError: If git is missing or the command exits non-zero.
    """
    command = ["git", *args]
    try:
        result = subprocess.run(
            command,
            cwd=repo_root,
            env=_clean_git_env(),
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            check=True,
        )
    except FileNotFoundError as e:
        raise ScanError(f"git not available for {repo_root}", command=command) from e
    except subprocess.CalledProcessError as e:
        raise ScanError(
            f"git {args[0]} failed in {repo_root}", command=command, stderr=e.stderr or ""
        ) from e
    return result.stdout


@dataclass(frozen=True)
class PathChange:
    """A single line of ``git diff --name-status`` output.

    Attributes:
        status: Single-letter git status (A, M, D, T, ...).
        path: Repository-relative path.
    """

    status: str
    path: str


def get_repo_root(start_path: Path | None = None) -> Path | None:
    """Find the git repository root.

    Args:
        start_path: Path to start searching from (default: current directory)

    Returns:
        Path to repository root, or None if not in a git repository
    """
    try:
        result = subprocess.run(
            ["git", "rev-parse", "--show-toplevel"],
            cwd=start_path or Path.cwd(),
            env=_clean_git_env() if start_path else None,
            capture_output=True,
            text=True,
            check=True,
        )
        return Path(result.stdout.strip())
    except (subprocess.CalledProcessError, FileNotFoundError, NotADirectoryError):
        return None


def resolve_revision(repo_root: Path, ref: str = "HEAD") -> str:
    """Resolve a ref to a full revision id.

    Args:
        repo_root: Path to repository root
        ref: Ref to resolve (default: HEAD)

    Returns:
        The full commit id.
    """
    return _run_git(repo_root, ["rev-parse", ref]).strip()


def diff_name_status(repo_root: Path, old_rev: str, new_rev: str) -> list[PathChange]:
    """List files changed between two revisions.

    Rename detection is disabled so a move shows up as a delete plus an add.
    Output is NUL-delimited so paths come back verbatim instead of
    C-quoted (non-ASCII bytes, tabs and quotes).

    Args:
        repo_root: Path to repository root
        old_rev: Base revision
        new_rev: Target revision

    Returns:
        Changes in git's output order.
    """
    output = _run_git(
        repo_root,
        ["diff", "--name-status", "-z", "--no-renames", f"{old_rev}..{new_rev}"],
    )
    # Format: "M\0path/to/file\0" per change
    fields = output.split("\0")
    changes: list[PathChange] = []
    for status_code, file_path in zip(fields[0::2], fields[1::2]):
        if status_code and file_path:
            changes.append(PathChange(status=status_code[:1], path=file_path))
    return changes


def show_file(repo_root: Path, revision: str, path: str) -> str:
    """Return the content of ``path`` at ``revision``."""
    return _run_git(repo_root, ["show", f"{revision}:{path}"])


__all__ = [
    "PathChange",
    "get_repo_root",
    "resolve_revision",
    "diff_name_status",
    "show_file",
]
