"""Change records emitted by the graph merger.

Records are observational: they are logged and counted, never read back
by later merge logic.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum


class ChangeAction(str, Enum):
    """What the merger did to a step."""

    ADD = "add"
    DEPRECATE = "deprecate"
    UPDATE_EDGES = "update-edges"


@dataclass(frozen=True)
class ChangeRecord:
    """Single change applied by a merge.

    Attributes:
        action: One of the ChangeAction values.
        journey_id: Journey holding the affected step.
        step_id: The affected step.
        detail: Human-readable description.
    """

    action: str
    journey_id: str
    step_id: str
    detail: str

    def __str__(self) -> str:
        """Human-readable representation."""
        return f"{self.action} {self.journey_id}/{self.step_id}: {self.detail}"

    def to_dict(self) -> dict[str, str]:
        return asdict(self)


__all__ = ["ChangeAction", "ChangeRecord"]
