"""
flowsync.commands.export_cmd - Print the graph as Mermaid flowcharts.
"""

from __future__ import annotations

import argparse
import json
import sys

from flowsync.commands.common import build_store, load_settings
from flowsync.export.mermaid import export_all, journey_to_mermaid
from flowsync.utilities.fs import write_json


def run(args: argparse.Namespace) -> int:
    """Export one journey, or all of them.

    Without ``--json`` each journey is printed as a Mermaid block headed by
    its id; with ``--json`` the ``{journeyId: mermaid}`` mapping is printed.
    ``--output`` writes that mapping to a file instead.
    """
    settings = load_settings(args, require_source=False)
    if settings is None:
        return 1

    store = build_store(settings)
    try:
        graph = store.load_graph()
    except (OSError, ValueError) as e:
        print(f"Error reading {settings.graph_path}: {e}", file=sys.stderr)
        return 1
    annotations = store.load_annotations().get("annotations", [])

    journey_id = getattr(args, "journey", None)
    if journey_id:
        journey = graph.find_journey(journey_id)
        if journey is None:
            print(f"Error: journey not found: {journey_id}", file=sys.stderr)
            return 1
        rendered = {journey.id: journey_to_mermaid(journey, annotations)}
    else:
        rendered = export_all(graph, annotations)

    output = getattr(args, "output", None)
    if output:
        write_json(output, rendered)
        print(f"Exported {len(rendered)} journeys to {output}")
    elif getattr(args, "json", False):
        print(json.dumps(rendered, indent=2))
    else:
        for jid, mermaid in rendered.items():
            print(f"%% {jid}")
            print(mermaid)
            print()
    return 0
