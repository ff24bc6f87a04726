"""flowsync.server - Flask REST API for the daemon status and documents.

Serves the scheduler's status surface and read/write access to the
workflow and annotations documents for the editor.
"""

from flowsync.server.app import create_app

__all__ = ["create_app"]
