"""Sync scheduler - drives scan, parse, merge, validate and commit.

State is an explicit SchedulerState value threaded through each call
(``run_cycle(state) -> state``); the scheduler object itself only holds
collaborators and settings. Cycles never overlap. A failed cycle leaves
the stored graph and cursor untouched; enough consecutive failures pause
the scheduler for a cooldown window.
"""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Iterable

from flowsync.graph import WorkflowGraph, utc_now_iso
from flowsync.sync.merge import PlacementRules, merge
from flowsync.sync.parse import StructuralDescriptor, parse_source_file
from flowsync.sync.scan import ScanResult, TrackedFile, scan
from flowsync.sync.storage import SyncStore
from flowsync.sync.validate import ContainerBounds, validate

logger = logging.getLogger(__name__)

Scanner = Callable[[str | None], ScanResult]
Exporter = Callable[[WorkflowGraph], Any]
Clock = Callable[[], datetime]


class SchedulerStatus(str, Enum):
    RUNNING = "running"
    PAUSED = "paused"


@dataclass(frozen=True)
class SchedulerState:
    """Everything the scheduler knows between cycles."""

    status: SchedulerStatus = SchedulerStatus.RUNNING
    last_revision: str | None = None
    last_check_time: str | None = None
    last_update_time: str | None = None
    poll_interval: float = 60.0
    updates_applied: int = 0
    pending_review_total: int = 0
    consecutive_errors: int = 0
    paused_until: datetime | None = None

    def to_status(self) -> dict[str, Any]:
        """The status surface polled by external tools."""
        return {
            "status": self.status.value,
            "lastRevision": self.last_revision,
            "lastCheckTime": self.last_check_time,
            "lastUpdateTime": self.last_update_time,
            "pollInterval": self.poll_interval,
            "updatesApplied": self.updates_applied,
            "pendingReviewTotal": self.pending_review_total,
            "consecutiveErrors": self.consecutive_errors,
        }


class StatusBoard:
    """Thread-safe holder for the latest published state."""

    def __init__(self, state: SchedulerState | None = None) -> None:
        self._lock = threading.Lock()
        self._state = state or SchedulerState()

    def publish(self, state: SchedulerState) -> None:
        with self._lock:
            self._state = state

    @property
    def state(self) -> SchedulerState:
        with self._lock:
            return self._state

    def snapshot(self) -> dict[str, Any]:
        return self.state.to_status()


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def extract_descriptors(
    files: Iterable[TrackedFile], workers: int = 1
) -> list[StructuralDescriptor]:
    """Parse changed files, dropping those that define no view."""
    files = [f for f in files if f.content is not None]
    if workers > 1 and len(files) > 1:
        with ThreadPoolExecutor(max_workers=workers) as pool:
            parsed = list(pool.map(lambda f: parse_source_file(f.path, f.content), files))
    else:
        parsed = [parse_source_file(f.path, f.content) for f in files]
    return [d for d in parsed if d is not None]


def git_scanner(source_path: Path, patterns: Iterable[str], workers: int = 1) -> Scanner:
    """Bind the git scanner to a repository and allow-list."""
    patterns = list(patterns)

    def _scan(last_revision: str | None) -> ScanResult:
        return scan(source_path, last_revision, patterns, workers=workers)

    return _scan


class SyncScheduler:
    """Runs synchronization cycles against a store.

    Args:
        store: Cursor, graph and snapshot persistence.
        scanner: Callable mapping the cursor to a ScanResult.
        poll_interval: Seconds between ticks.
        bounds: Container-count limits for validation.
        placement: Journey placement rules for new steps.
        exporter: Best-effort side export run after each commit.
        max_consecutive_errors: Failures that trigger a pause.
        cooldown_seconds: Length of the pause.
        workers: Thread count for descriptor extraction.
        clock: Source of the current time.
    """

    def __init__(
        self,
        store: SyncStore,
        scanner: Scanner,
        poll_interval: float = 60.0,
        bounds: ContainerBounds | None = None,
        placement: PlacementRules | None = None,
        exporter: Exporter | None = None,
        max_consecutive_errors: int = 5,
        cooldown_seconds: float = 600.0,
        workers: int = 1,
        clock: Clock = _utc_now,
    ) -> None:
        self.store = store
        self.scanner = scanner
        self.poll_interval = poll_interval
        self.bounds = bounds or ContainerBounds()
        self.placement = placement or PlacementRules()
        self.exporter = exporter
        self.max_consecutive_errors = max_consecutive_errors
        self.cooldown = timedelta(seconds=cooldown_seconds)
        self.workers = workers
        self.clock = clock

    def initial_state(self) -> SchedulerState:
        """State at startup: the persisted cursor, nothing else."""
        return SchedulerState(
            last_revision=self.store.load_cursor(),
            poll_interval=self.poll_interval,
        )

    # ─────────────────────────────────────────────────────────────────
    # Cycle
    # ─────────────────────────────────────────────────────────────────

    def tick(self, state: SchedulerState, now: datetime | None = None) -> SchedulerState:
        """Resume from a finished cooldown, then run a cycle if running."""
        now = now or self.clock()
        if state.status is SchedulerStatus.PAUSED:
            if state.paused_until is not None and now < state.paused_until:
                return state
            state = replace(
                state, status=SchedulerStatus.RUNNING, consecutive_errors=0, paused_until=None
            )
            logger.info("Cooldown over, resuming", extra={"event": "RESUMED"})
        return self.run_cycle(state)

    def run_cycle(self, state: SchedulerState) -> SchedulerState:
        """Run one synchronization cycle.

        Never raises: any exception is logged and counted as a failure.
        """
        if state.status is not SchedulerStatus.RUNNING:
            return state

        started = time.monotonic()
        state = replace(state, last_check_time=utc_now_iso())
        logger.info("Poll tick", extra={"event": "POLL_TICK", "commit": state.last_revision})

        try:
            return self._cycle(state, started)
        except Exception as e:
            logger.error(
                "Cycle failed: %s",
                e,
                exc_info=True,
                extra={"event": "ERROR", "durationMs": _elapsed_ms(started)},
            )
            return self._record_failure(state)

    def _cycle(self, state: SchedulerState, started: float) -> SchedulerState:
        scan_result = self.scanner(state.last_revision)

        if scan_result.is_empty:
            logger.info(
                "No tracked changes",
                extra={
                    "event": "UPDATE_SKIPPED",
                    "commit": scan_result.current_revision,
                    "durationMs": _elapsed_ms(started),
                },
            )
            self.store.save_cursor(scan_result.current_revision)
            return replace(state, last_revision=scan_result.current_revision, consecutive_errors=0)

        logger.info(
            "Tracked changes detected",
            extra={
                "event": "COMMIT_DETECTED",
                "commit": scan_result.current_revision,
                "files": scan_result.changed_paths,
                "changes": scan_result.total_changed,
            },
        )

        descriptors = extract_descriptors(scan_result.files_with_content(), self.workers)
        current = self.store.load_graph()
        merged = merge(current, scan_result, descriptors, self.placement)

        logger.info(
            "Merge computed",
            extra={
                "event": "SCAN_COMPLETE",
                "commit": scan_result.current_revision,
                "changes": len(merged.changes),
                "pendingReview": merged.review_count,
            },
        )
        for change in merged.changes:
            logger.debug("%s", change, extra={"event": "SCAN_COMPLETE"})

        validation = validate(current, merged.graph, self.bounds)
        if not validation.ok:
            logger.warning(
                "Candidate graph rejected",
                extra={
                    "event": "VALIDATION_FAILED",
                    "commit": scan_result.current_revision,
                    "error": "; ".join(validation.errors),
                    "errors": validation.errors,
                },
            )
            return self._record_failure(state)

        try:
            location = self.store.snapshot(current)
            logger.debug("Snapshot saved to %s", location, extra={"event": "MERGE_APPLIED"})
        except Exception as e:
            logger.warning("Snapshot failed (non-fatal): %s", e, extra={"event": "ERROR"})

        candidate = merged.graph
        candidate.generated_at = utc_now_iso()
        self.store.save_graph(candidate)
        self.store.save_cursor(scan_result.current_revision)

        if self.exporter is not None:
            try:
                self.exporter(candidate)
            except Exception as e:
                logger.warning("Export failed (non-fatal): %s", e, extra={"event": "ERROR"})

        state = replace(
            state,
            last_revision=scan_result.current_revision,
            last_update_time=utc_now_iso(),
            updates_applied=state.updates_applied + 1,
            pending_review_total=state.pending_review_total + merged.review_count,
            consecutive_errors=0,
        )
        logger.info(
            "Merge applied",
            extra={
                "event": "MERGE_APPLIED",
                "commit": scan_result.current_revision,
                "changes": len(merged.changes),
                "pendingReview": state.pending_review_total,
                "durationMs": _elapsed_ms(started),
            },
        )
        return state

    def _record_failure(self, state: SchedulerState) -> SchedulerState:
        errors = state.consecutive_errors + 1
        state = replace(state, consecutive_errors=errors)
        if errors >= self.max_consecutive_errors:
            until = self.clock() + self.cooldown
            logger.warning(
                "Pausing until %s after %d consecutive errors",
                until.isoformat(),
                errors,
                extra={"event": "PAUSED"},
            )
            state = replace(state, status=SchedulerStatus.PAUSED, paused_until=until)
        return state

    # ─────────────────────────────────────────────────────────────────
    # Loop
    # ─────────────────────────────────────────────────────────────────

    def run_forever(
        self,
        stop_event: threading.Event,
        board: StatusBoard | None = None,
        state: SchedulerState | None = None,
    ) -> SchedulerState:
        """Tick every ``poll_interval`` seconds until ``stop_event`` is set.

        The first cycle runs one interval after start. The stop event is
        only checked between cycles; a running cycle always completes.
        """
        state = state or self.initial_state()
        if board is not None:
            board.publish(state)
        while not stop_event.wait(self.poll_interval):
            state = self.tick(state)
            if board is not None:
                board.publish(state)
        return state


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)


__all__ = [
    "SchedulerState",
    "SchedulerStatus",
    "StatusBoard",
    "SyncScheduler",
    "extract_descriptors",
    "git_scanner",
]
