"""
flowsync.commands.validate - Validate the stored workflow graph.

Runs the same structural checks the scheduler applies before a commit.
By default the document is checked against itself; ``--baseline`` checks
it against the workflows in the latest baseline, which also catches
steps deleted outright since that snapshot.
"""

from __future__ import annotations

import argparse
import json
import sys

from flowsync.baseline import find_baseline, load_baseline
from flowsync.commands.common import build_store, load_settings
from flowsync.sync.validate import validate


def run(args: argparse.Namespace) -> int:
    """
    Run the validate command.

    Args:
        args: Parsed command line arguments

    Returns:
        Exit code (0 when valid, 1 on errors)
    """
    settings = load_settings(args, require_source=False)
    if settings is None:
        return 1

    store = build_store(settings)
    try:
        document = store.load_document()
    except (OSError, json.JSONDecodeError) as e:
        print(f"Error reading {settings.graph_path}: {e}", file=sys.stderr)
        return 1

    previous = document
    if getattr(args, "baseline", False):
        path = find_baseline(settings.baseline_dir)
        if path is None:
            print(f"Error: no baseline found in {settings.baseline_dir}", file=sys.stderr)
            return 1
        try:
            previous = load_baseline(path)["workflows"]
        except ValueError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1

    result = validate(previous, document, settings.bounds)

    if getattr(args, "json", False):
        print(json.dumps({"ok": result.ok, "errors": result.errors}, indent=2))
        return 0 if result.ok else 1

    containers = document.get("containers") if isinstance(document, dict) else None
    container_count = len(containers) if isinstance(containers, list) else 0
    print(f"Validating {settings.graph_path} ({container_count} journeys)")

    if result.ok:
        print("✓ Workflow graph valid")
        return 0

    print()
    for error in result.errors:
        print(f"  ✗ {error}")
    print()
    print(f"❌ {len(result.errors)} errors")
    return 1
