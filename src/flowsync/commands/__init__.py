"""
flowsync.commands - CLI command implementations
"""

__all__ = [
    "baseline_cmd",
    "daemon",
    "export_cmd",
    "review_cmd",
    "sync_cmd",
    "validate",
]
