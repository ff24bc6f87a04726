"""Exports of the workflow graph to other text formats."""

from flowsync.export.mermaid import export_all, journey_to_mermaid, write_mermaid_export

__all__ = ["export_all", "journey_to_mermaid", "write_mermaid_export"]
