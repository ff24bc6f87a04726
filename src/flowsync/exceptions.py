"""Exception types raised by flowsync."""

from __future__ import annotations


class FlowsyncError(Exception):
    """Base class for all flowsync errors."""


class ConfigError(FlowsyncError):
    """Configuration is missing or invalid; the process must not start."""


class ScanError(FlowsyncError):
    """Inspecting the source repository failed for this cycle.

    Attributes:
        command: The git command line that failed, if any.
        stderr: Captured standard error of the failing command.
    """

    def __init__(self, message: str, command: list[str] | None = None, stderr: str = "") -> None:
        super().__init__(message)
        self.command = command
        self.stderr = stderr

    def __str__(self) -> str:
        base = super().__str__()
        if self.stderr:
            return f"{base}: {self.stderr.strip()}"
        return base


__all__ = ["FlowsyncError", "ConfigError", "ScanError"]
