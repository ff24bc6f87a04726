"""
flowsync.commands.daemon - Run the sync daemon.

The scheduler polls on a background thread; the HTTP surface (when
enabled) serves on the main thread. Ctrl+C or SIGTERM sets the stop
event, lets the running cycle finish, and joins the scheduler thread.
"""

from __future__ import annotations

import argparse
import logging
import signal
import sys
import threading

from flowsync.commands.common import build_scheduler, build_store, load_settings
from flowsync.exceptions import ConfigError
from flowsync.logs import configure_logging
from flowsync.sync.scheduler import StatusBoard

logger = logging.getLogger(__name__)


def _raise_interrupt(signum, frame):
    raise KeyboardInterrupt


def run(args: argparse.Namespace) -> int:
    """Run the daemon until interrupted.

    Returns:
        Exit code (0 on clean shutdown, 1 on configuration error)
    """
    settings = load_settings(args)
    if settings is None:
        return 1

    configure_logging(
        settings.log_dir,
        level="DEBUG" if getattr(args, "verbose", False) else settings.log_level,
        max_bytes=settings.log_max_bytes,
        backup_count=settings.log_backup_count,
    )

    store = build_store(settings)
    try:
        scheduler = build_scheduler(settings, store)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    state = scheduler.initial_state()
    board = StatusBoard(state)
    stop_event = threading.Event()

    logger.info(
        "Daemon started",
        extra={
            "event": "DAEMON_START",
            "source": str(settings.source_path),
            "pollInterval": settings.poll_interval,
            "commit": state.last_revision,
        },
    )

    worker = threading.Thread(
        target=scheduler.run_forever,
        args=(stop_event, board, state),
        name="flowsync-scheduler",
        daemon=True,
    )
    signal.signal(signal.SIGTERM, _raise_interrupt)
    worker.start()

    try:
        if settings.server_enabled:
            from flowsync.server import create_app

            app = create_app(store, board)
            app.run(host=settings.server_host, port=settings.server_port, debug=False)
        else:
            while worker.is_alive():
                worker.join(timeout=1.0)
    except KeyboardInterrupt:
        pass
    finally:
        stop_event.set()
        worker.join()
        logger.info(
            "Daemon stopped",
            extra={"event": "DAEMON_STOP", "updatesApplied": board.state.updates_applied},
        )

    return 0
