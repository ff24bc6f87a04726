"""flowsync.server.app - Flask app factory and REST API routes.

A thin wrapper over the store and the scheduler's status board:

    GET  /api/daemon/status   scheduler status surface
    GET  /api/workflows       workflow graph document
    PUT  /api/workflows       replace the workflow graph document
    GET  /api/annotations     annotations document
    POST /api/annotations     replace the annotations document
"""

from __future__ import annotations

from flask import Flask, jsonify, request
from flask_cors import CORS

from flowsync.sync.scheduler import StatusBoard
from flowsync.sync.storage import FileStore
from flowsync.utilities.fs import write_json


def create_app(store: FileStore, board: StatusBoard) -> Flask:
    """Create the Flask application with REST API routes.

    Args:
        store: File store holding the graph and annotations documents.
        board: Status board the scheduler publishes to.

    Returns:
        Configured Flask application.
    """
    app = Flask(__name__)
    CORS(app)

    @app.after_request
    def _no_cache(response):
        response.headers["Cache-Control"] = "no-store, no-cache, must-revalidate, max-age=0"
        return response

    @app.route("/api/daemon/status")
    def api_daemon_status():
        """GET /api/daemon/status - Scheduler status."""
        return jsonify(board.snapshot())

    @app.route("/api/workflows", methods=["GET"])
    def api_workflows_get():
        """GET /api/workflows - The graph document (an empty graph if none)."""
        return jsonify(store.load_document())

    @app.route("/api/workflows", methods=["PUT"])
    def api_workflows_put():
        """PUT /api/workflows - Replace the graph document."""
        data = request.get_json(force=True, silent=True)
        if not isinstance(data, dict):
            return jsonify({"ok": False, "error": "JSON object body required"}), 400
        write_json(store.graph_path, data)
        return jsonify({"ok": True})

    @app.route("/api/annotations", methods=["GET"])
    def api_annotations_get():
        """GET /api/annotations - The annotations document."""
        return jsonify(store.load_annotations())

    @app.route("/api/annotations", methods=["POST"])
    def api_annotations_post():
        """POST /api/annotations - Replace the annotations document."""
        data = request.get_json(force=True, silent=True)
        if not isinstance(data, dict):
            return jsonify({"ok": False, "error": "JSON object body required"}), 400
        store.save_annotations(data)
        return jsonify({"ok": True})

    return app
