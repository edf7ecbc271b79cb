"""Layout types shared by the merge finder, the measures, and the engine."""

from __future__ import annotations

from dataclasses import dataclass, field

from flowviz.ir.model import FlowEdge, FlowNode
from flowviz.types import EdgeType


@dataclass
class Position:
    """Center x and top y of a placed node, in pixels."""

    x: float
    y: float


@dataclass
class FaultLane:
    """Lateral slot reserved for one fault connector."""

    edge_id: str
    source_id: str
    target_id: str
    lane: int
    lane_x: float
    source_y: float = 0.0
    target_y: float = 0.0


@dataclass
class LayoutResult:
    """Positioned nodes plus the fault lanes the edge router needs."""

    nodes: list[FlowNode]
    fault_lanes: dict[str, FaultLane] = field(default_factory=dict)


def is_walkable(edge: FlowEdge) -> bool:
    """True for connectors that forward placement may follow.

    Fault connectors are laid out in lanes, and GoTo jumps only ever point at
    coordinates placed elsewhere.
    """
    return not edge.is_fault and not edge.is_goto and edge.type != EdgeType.GOTO
