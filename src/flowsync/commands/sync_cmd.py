"""
flowsync.commands.sync_cmd - Run one synchronization cycle now.
"""

from __future__ import annotations

import argparse
import sys

from flowsync.commands.common import build_scheduler, build_store, load_settings
from flowsync.exceptions import ConfigError
from flowsync.logs import configure_logging


def run(args: argparse.Namespace) -> int:
    """Run a single cycle against the configured repository.

    Returns:
        Exit code (0 if the cycle committed or had nothing to do, 1 otherwise)
    """
    settings = load_settings(args)
    if settings is None:
        return 1

    configure_logging(
        None, level="DEBUG" if getattr(args, "verbose", False) else settings.log_level
    )

    store = build_store(settings)
    try:
        scheduler = build_scheduler(settings, store)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    before = scheduler.initial_state()
    after = scheduler.run_cycle(before)

    if after.consecutive_errors > before.consecutive_errors:
        print("Sync failed; graph and cursor left unchanged.", file=sys.stderr)
        return 1

    if after.updates_applied > before.updates_applied:
        print(
            f"Graph updated at {after.last_revision} "
            f"({after.pending_review_total} step(s) need review)"
        )
    else:
        print(f"No tracked changes; cursor at {after.last_revision}")
    return 0
