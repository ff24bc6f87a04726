"""
flowsync.commands.baseline_cmd - Save, list, diff and restore baselines.
"""

from __future__ import annotations

import argparse
import json
import sys

from flowsync.baseline import (
    diff_baseline,
    find_baseline,
    format_diff_text,
    list_baselines,
    load_baseline,
    save_baseline,
)
from flowsync.commands.common import build_store, load_settings
from flowsync.sync.storage import FileStore
from flowsync.utilities.fs import write_json


def run(args: argparse.Namespace) -> int:
    """Run the baseline command.

    Subcommands:
    - save: Snapshot the current workflows and annotations
    - list: Show saved snapshots
    - diff: Compare current documents with a snapshot
    - restore: Overwrite current documents from a snapshot
    """
    settings = load_settings(args, require_source=False)
    if settings is None:
        return 1
    store = build_store(settings)

    action = getattr(args, "baseline_action", None)
    try:
        if action == "save":
            return _save(store)
        elif action == "list":
            return _list(store)
        elif action == "diff":
            return _diff(store, args)
        elif action == "restore":
            return _restore(store, args)
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print("Usage: flowsync baseline <save|list|diff|restore>", file=sys.stderr)
    return 1


def _save(store: FileStore) -> int:
    workflows = store.load_document()
    path = save_baseline(store.baseline_dir, workflows, store.load_annotations())
    containers = workflows.get("containers") or []
    nodes = sum(len(c.get("nodes") or []) for c in containers)
    annotations = store.load_annotations().get("annotations") or []
    print(f"Baseline saved: {path}")
    print(f"  Workflows: {len(containers)} journeys, {nodes} steps")
    print(f"  Annotations: {len(annotations)}")
    return 0


def _list(store: FileStore) -> int:
    paths = list_baselines(store.baseline_dir)
    if not paths:
        print(f"No baselines in {store.baseline_dir}")
        return 0
    for path in paths:
        print(path.name)
    return 0


def _diff(store: FileStore, args: argparse.Namespace) -> int:
    path = find_baseline(store.baseline_dir, getattr(args, "timestamp", None))
    if path is None:
        print("No baseline found. Run: flowsync baseline save", file=sys.stderr)
        return 1
    diff = diff_baseline(load_baseline(path), store.load_document(), store.load_annotations())
    if getattr(args, "json", False):
        print(json.dumps(diff.to_dict(), indent=2))
    else:
        print(format_diff_text(diff))
    return 0


def _restore(store: FileStore, args: argparse.Namespace) -> int:
    path = find_baseline(store.baseline_dir, getattr(args, "timestamp", None))
    if path is None:
        print("No matching baseline found.", file=sys.stderr)
        return 1
    snapshot = load_baseline(path)
    write_json(store.graph_path, snapshot["workflows"])
    if store.annotations_path is not None:
        store.save_annotations(snapshot["annotations"])
    print(f"Restored from {path.name} (saved {snapshot.get('savedAt', 'unknown')})")
    return 0
