from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class ContainmentEdge:
    aggregation_id: str
    member_id: str
    seq: int
    linked_at: str
