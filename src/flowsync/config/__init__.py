"""
flowsync.config - Configuration loading and defaults
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from flowsync.config.defaults import CONFIG_FILE_NAME, DEFAULT_CONFIG
from flowsync.config.loader import (
    _apply_env_overrides,
    _try_parse_env_value,
    find_config_file,
    load_config,
    merge_configs,
)
from flowsync.exceptions import ConfigError
from flowsync.sync.merge import PlacementRules
from flowsync.sync.validate import ContainerBounds


def _resolve(base: Path, value: str) -> Path:
    path = Path(value).expanduser()
    return path if path.is_absolute() else base / path


@dataclass
class SyncConfig:
    """Typed view of the configuration the daemon runs with."""

    source_path: Path | None
    tracked_patterns: list[str] = field(default_factory=list)
    poll_interval: float = 60.0
    max_consecutive_errors: int = 5
    cooldown_seconds: float = 600.0
    fetch_workers: int = 4
    bounds: ContainerBounds = field(default_factory=ContainerBounds)
    placement: PlacementRules = field(default_factory=PlacementRules)
    graph_path: Path = Path("workflow-defs.json")
    cursor_path: Path = Path("sync/.last-commit")
    annotations_path: Path = Path("annotations.json")
    baseline_dir: Path = Path("baselines")
    export_path: Path | None = Path("exports/mermaid.json")
    log_dir: Path | None = Path("logs")
    log_level: str = "INFO"
    log_max_bytes: int = 5_242_880
    log_backup_count: int = 2
    server_enabled: bool = True
    server_host: str = "127.0.0.1"
    server_port: int = 8091

    @classmethod
    def from_dict(
        cls, config: dict[str, Any], base_dir: Path, require_source: bool = True
    ) -> SyncConfig:
        """Build a SyncConfig, resolving relative paths against ``base_dir``.

        Args:
            config: Merged configuration dictionary.
            base_dir: Directory relative paths are resolved against.
            require_source: Fail when ``source.path`` is unset. Commands that
                only read the stored documents pass False.

        Raises:
            ConfigError: If ``source.path`` is required but missing, is not a
                directory, or a numeric setting does not parse.
        """
        source = config.get("source", {})
        raw_source = source.get("path")
        source_path: Path | None = None
        if raw_source:
            source_path = _resolve(base_dir, str(raw_source))
            if require_source and not source_path.is_dir():
                raise ConfigError(f"source.path is not a directory: {source_path}")
        elif require_source:
            raise ConfigError(
                "source.path is required: set it in "
                f"{CONFIG_FILE_NAME} or via FLOWSYNC_SOURCE_PATH"
            )

        sync = config.get("sync", {})
        containers = config.get("containers", {})
        storage = config.get("storage", {})
        logging_cfg = config.get("logging", {})
        server = config.get("server", {})
        export = config.get("export", {})
        data_dir = _resolve(base_dir, storage.get("data_dir", "."))

        try:
            return cls(
                source_path=source_path,
                tracked_patterns=list(source.get("tracked_patterns", [])),
                poll_interval=float(sync.get("poll_interval_seconds", 60)),
                max_consecutive_errors=int(sync.get("max_consecutive_errors", 5)),
                cooldown_seconds=float(sync.get("cooldown_seconds", 600)),
                fetch_workers=int(sync.get("fetch_workers", 4)),
                bounds=ContainerBounds.from_dict(containers),
                placement=PlacementRules.from_mapping(
                    containers.get("rules", {}),
                    unassigned=containers.get("unassigned", "unassigned"),
                ),
                graph_path=_resolve(data_dir, storage.get("graph_file", "workflow-defs.json")),
                cursor_path=_resolve(data_dir, storage.get("cursor_file", "sync/.last-commit")),
                annotations_path=_resolve(
                    data_dir, storage.get("annotations_file", "annotations.json")
                ),
                baseline_dir=_resolve(data_dir, storage.get("baseline_dir", "baselines")),
                export_path=(
                    _resolve(data_dir, storage.get("export_file", "exports/mermaid.json"))
                    if export.get("enabled", True)
                    else None
                ),
                log_dir=_resolve(data_dir, logging_cfg["dir"]) if logging_cfg.get("dir") else None,
                log_level=str(logging_cfg.get("level", "INFO")),
                log_max_bytes=int(logging_cfg.get("max_bytes", 5_242_880)),
                log_backup_count=int(logging_cfg.get("backup_count", 2)),
                server_enabled=bool(server.get("enabled", True)),
                server_host=str(server.get("host", "127.0.0.1")),
                server_port=int(server.get("port", 8091)),
            )
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid configuration value: {e}") from e


__all__ = [
    "CONFIG_FILE_NAME",
    "DEFAULT_CONFIG",
    "SyncConfig",
    "find_config_file",
    "load_config",
    "merge_configs",
]
