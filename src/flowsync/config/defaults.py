"""Default configuration values for flowsync.

Example ``.flowsync.toml``::

    [source]
    path = "../ExampleApp"
    tracked_patterns = ["ExampleApp/Sources/UI/Views/*.swift"]

    [containers.rules]
    "ExampleApp/Sources/UI/Onboarding/" = "first-launch"
    "ExampleAppShare/" = "capture-via-share"
"""

CONFIG_FILE_NAME = ".flowsync.toml"

ENV_PREFIX = "FLOWSYNC_"

DEFAULT_CONFIG = {
    "source": {
        # Required: the git repository holding the SwiftUI sources
        "path": "",
        "tracked_patterns": ["**/*.swift"],
    },
    "sync": {
        "poll_interval_seconds": 60,
        "max_consecutive_errors": 5,
        "cooldown_seconds": 600,
        "fetch_workers": 4,
    },
    "containers": {
        "max_added": 3,
        "max_removed": 1,
        "unassigned": "unassigned",
        # path prefix -> journey id, first match wins
        "rules": {},
    },
    "storage": {
        "data_dir": ".",
        "graph_file": "workflow-defs.json",
        "cursor_file": "sync/.last-commit",
        "annotations_file": "annotations.json",
        "baseline_dir": "baselines",
        "export_file": "exports/mermaid.json",
    },
    "export": {
        "enabled": True,
    },
    "logging": {
        "dir": "logs",
        "level": "INFO",
        "max_bytes": 5_242_880,
        "backup_count": 2,
    },
    "server": {
        "enabled": True,
        "host": "127.0.0.1",
        "port": 8091,
    },
}
