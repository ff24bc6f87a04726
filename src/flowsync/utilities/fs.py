"""File helpers: atomic text writes and JSON documents."""

from __future__ import annotations

import json
import tempfile
from pathlib import Path
from typing import Any


def atomic_write_text(path: Path, data: str) -> None:
    """Write text so readers see either the old file or the complete new one.

    The content goes to a temporary file in the target directory, which is
    then renamed over ``path``. The temporary file is removed on failure.

    Args:
        path: Final file path. Parent directories are created if needed.
        data: Text to write (UTF-8).
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path: Path | None = None
    try:
        with tempfile.NamedTemporaryFile(
            mode="w",
            dir=str(path.parent),
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        ) as temp_file:
            tmp_path = Path(temp_file.name)
            temp_file.write(data)
            temp_file.flush()
        tmp_path.replace(path)
    except BaseException:
        if tmp_path is not None:
            tmp_path.unlink(missing_ok=True)
        raise


def write_json(path: Path, document: Any) -> None:
    """Atomically write a JSON document with two-space indentation."""
    atomic_write_text(path, json.dumps(document, indent=2, ensure_ascii=False) + "\n")


def read_json(path: Path, default: Any = None) -> Any:
    """Read a JSON document, returning ``default`` when the file is absent."""
    if not path.exists():
        return default
    return json.loads(path.read_text(encoding="utf-8"))


__all__ = ["atomic_write_text", "write_json", "read_json"]
