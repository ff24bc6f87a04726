"""
flowsync.commands.review_cmd - Prioritized report of review annotations.
"""

from __future__ import annotations

import argparse
import json
import sys

from flowsync.commands.common import build_store, load_settings
from flowsync.review import build_report, format_review_text


def run(args: argparse.Namespace) -> int:
    """Print every annotation traced to its step and source file.

    ``--check-files`` verifies that each mapped file exists in the source
    repository and warns about the ones that do not.

    Returns:
        Exit code (0 on success, 1 if the documents cannot be read)
    """
    settings = load_settings(args, require_source=False)
    if settings is None:
        return 1

    check_files = getattr(args, "check_files", False)
    if check_files and settings.source_path is None:
        print("Error: --check-files needs source.path (or --source)", file=sys.stderr)
        return 1

    store = build_store(settings)
    try:
        graph = store.load_graph()
        annotations = store.load_annotations().get("annotations") or []
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    report = build_report(
        annotations, graph, source_root=settings.source_path if check_files else None
    )

    if getattr(args, "json", False):
        print(json.dumps(report.to_dict(), indent=2))
    elif report.total == 0:
        print("No annotations found.")
    else:
        print(format_review_text(report))
    return 0
