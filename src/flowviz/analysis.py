"""Cyclomatic complexity of a flow graph.

Score = 1 + decision outcomes + (wait outcomes - 1) + loops + fault paths.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from enum import Enum

from flowviz.ir.graph import FlowGraph
from flowviz.ir.model import START_NODE_ID, FlowEdge, FlowNode
from flowviz.types import NodeType


class ComplexityRating(Enum):
    SIMPLE = "simple"
    MODERATE = "moderate"
    COMPLEX = "complex"
    HIGH_RISK = "high-risk"
    VERY_COMPLEX = "very-complex"


@dataclass(frozen=True)
class ComplexityRange:
    low: int
    high: float
    label: str
    rating: ComplexityRating
    description: str


COMPLEXITY_RANGES: tuple[ComplexityRange, ...] = (
    ComplexityRange(1, 5, "Simple", ComplexityRating.SIMPLE, "Easy to understand and maintain"),
    ComplexityRange(6, 10, "Moderate", ComplexityRating.MODERATE, "Reasonable complexity, still maintainable"),
    ComplexityRange(11, 20, "Complex", ComplexityRating.COMPLEX, "Consider breaking into smaller flows"),
    ComplexityRange(21, 50, "High Risk", ComplexityRating.HIGH_RISK, "Difficult to test and maintain"),
    ComplexityRange(51, float("inf"), "Very High", ComplexityRating.VERY_COMPLEX, "Should be refactored immediately"),
)


def complexity_range(score: int) -> ComplexityRange:
    for entry in COMPLEXITY_RANGES:
        if entry.low <= score <= entry.high:
            return entry
    return COMPLEXITY_RANGES[-1]


@dataclass
class ComplexityBreakdown:
    base: int = 1
    decisions: int = 0
    loops: int = 0
    waits: int = 0
    faults: int = 0

    @property
    def total(self) -> int:
        return self.base + self.decisions + self.loops + self.waits + self.faults


@dataclass
class ComplexityMetrics:
    score: int
    breakdown: ComplexityBreakdown
    nodes_by_type: dict[str, int] = field(default_factory=dict)
    total_nodes: int = 0
    total_edges: int = 0
    connected_components: int = 0
    unreachable: list[str] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)

    @property
    def rating(self) -> ComplexityRating:
        return complexity_range(self.score).rating

    @property
    def label(self) -> str:
        return complexity_range(self.score).label

    def to_dict(self) -> dict:
        return {
            "score": self.score,
            "rating": self.rating.value,
            "label": self.label,
            "breakdown": {
                "base": self.breakdown.base,
                "decisions": self.breakdown.decisions,
                "loops": self.breakdown.loops,
                "waits": self.breakdown.waits,
                "faults": self.breakdown.faults,
            },
            "nodesByType": dict(self.nodes_by_type),
            "totalNodes": self.total_nodes,
            "totalEdges": self.total_edges,
            "connectedComponents": self.connected_components,
            "unreachable": list(self.unreachable),
            "recommendations": list(self.recommendations),
        }


def _recommendations(breakdown: ComplexityBreakdown, nodes_by_type: dict[str, int], total_nodes: int) -> list[str]:
    out: list[str] = []
    if breakdown.decisions > 5:
        out.append("Consider consolidating decision logic or using formulas")
    if breakdown.loops > 3:
        out.append("Multiple loops detected - check for optimization opportunities")
    if breakdown.faults > 5:
        out.append("Many fault handlers - consider a centralized error handling pattern")
    if total_nodes > 30:
        out.append("Large flow - consider breaking into smaller subflows")
    if nodes_by_type.get(NodeType.RECORD_LOOKUP.value, 0) > 5:
        out.append("Many record lookups - check for SOQL optimization opportunities")
    if breakdown.total > 15 and not out:
        out.append("Consider adding inline documentation for clarity")
    return out


def calculate_complexity(nodes: list[FlowNode], edges: list[FlowEdge]) -> ComplexityMetrics:
    """Score a flow; fault paths count once per fault connector."""
    graph = FlowGraph(nodes, edges)
    nodes_by_type = dict(Counter(node.type.value for node in nodes))

    breakdown = ComplexityBreakdown()
    for node in nodes:
        outcomes = len(graph.primary_outgoing(node.id))
        if node.type == NodeType.DECISION:
            breakdown.decisions += outcomes
        elif node.type == NodeType.WAIT and outcomes > 1:
            breakdown.waits += outcomes - 1
        elif node.type == NodeType.LOOP:
            breakdown.loops += 1
        breakdown.faults += len(graph.fault_outgoing(node.id))

    # Without a Start node there is no entry point to measure reachability from.
    unreachable: list[str] = []
    if START_NODE_ID in graph.nodes:
        reached = graph.reachable_from(START_NODE_ID)
        unreachable = [node.id for node in nodes if node.id not in reached]

    return ComplexityMetrics(
        score=breakdown.total,
        breakdown=breakdown,
        nodes_by_type=nodes_by_type,
        total_nodes=len(nodes),
        total_edges=graph.edge_count(),
        connected_components=graph.component_count(),
        unreachable=unreachable,
        recommendations=_recommendations(breakdown, nodes_by_type, len(nodes)),
    )
