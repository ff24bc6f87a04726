"""
flowsync.commands.common - Wiring shared by the CLI commands.

Turns parsed arguments into a SyncConfig, and a SyncConfig into the store,
exporter and scheduler the commands drive.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from flowsync.config import SyncConfig, find_config_file, load_config
from flowsync.exceptions import ConfigError
from flowsync.export.mermaid import write_mermaid_export
from flowsync.graph import WorkflowGraph
from flowsync.sync.scheduler import Exporter, SyncScheduler, git_scanner
from flowsync.sync.storage import FileStore
from flowsync.utilities.git import get_repo_root


def load_settings(args: argparse.Namespace, require_source: bool = True) -> SyncConfig | None:
    """Load configuration from ``--config`` or the nearest ``.flowsync.toml``.

    ``--source`` overrides ``source.path``. Errors are printed to stderr.

    Args:
        args: Parsed command line arguments.
        require_source: Whether the command needs the source repository.

    Returns:
        The typed configuration, or None if it could not be loaded.
    """
    config_path = getattr(args, "config", None) or find_config_file(Path.cwd())
    base_dir = config_path.resolve().parent if config_path else Path.cwd()

    try:
        config = load_config(config_path)
        source = getattr(args, "source", None)
        if source:
            config["source"]["path"] = str(Path(source).resolve())
        return SyncConfig.from_dict(config, base_dir, require_source=require_source)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return None


def build_store(settings: SyncConfig) -> FileStore:
    return FileStore(
        graph_path=settings.graph_path,
        cursor_path=settings.cursor_path,
        baseline_dir=settings.baseline_dir,
        annotations_path=settings.annotations_path,
    )


def build_exporter(settings: SyncConfig, store: FileStore) -> Exporter | None:
    """Side export hook, or None when export is disabled."""
    export_path = settings.export_path
    if export_path is None:
        return None

    def _export(graph: WorkflowGraph) -> Path:
        annotations = store.load_annotations().get("annotations", [])
        return write_mermaid_export(export_path, graph, annotations)

    return _export


def build_scheduler(settings: SyncConfig, store: FileStore) -> SyncScheduler:
    """Scheduler bound to the configured git repository."""
    if settings.source_path is None:
        raise ConfigError("source.path is required to run a sync cycle")
    if get_repo_root(settings.source_path) is None:
        raise ConfigError(f"source.path is not a git repository: {settings.source_path}")
    return SyncScheduler(
        store=store,
        scanner=git_scanner(
            settings.source_path, settings.tracked_patterns, workers=settings.fetch_workers
        ),
        poll_interval=settings.poll_interval,
        bounds=settings.bounds,
        placement=settings.placement,
        exporter=build_exporter(settings, store),
        max_consecutive_errors=settings.max_consecutive_errors,
        cooldown_seconds=settings.cooldown_seconds,
        workers=settings.fetch_workers,
    )
