"""Tests for cyclomatic complexity metrics."""

from __future__ import annotations

import pytest

from flowviz.analysis import ComplexityRating, calculate_complexity, complexity_range
from flowviz.ir.model import START_NODE_ID, FlowEdge, FlowNode
from flowviz.types import EdgeType, NodeType


def make_node(node_id: str, node_type: NodeType = NodeType.ASSIGNMENT) -> FlowNode:
    return FlowNode(id=node_id, type=node_type, label=node_id, width=240, height=56)


def make_edge(src: str, tgt: str, edge_type: EdgeType = EdgeType.NORMAL, suffix: str = "") -> FlowEdge:
    return FlowEdge(id=f"{src}-{tgt}{suffix}", source=src, target=tgt, type=edge_type)


class TestScore:
    def test_linear_flow_is_one(self):
        nodes = [make_node("A"), make_node("B")]
        metrics = calculate_complexity(nodes, [make_edge("A", "B")])
        assert metrics.score == 1
        assert metrics.rating == ComplexityRating.SIMPLE
        assert metrics.recommendations == []

    def test_decision_adds_every_outcome(self):
        nodes = [make_node("D", NodeType.DECISION), make_node("A"), make_node("B"), make_node("C")]
        edges = [make_edge("D", "A", suffix="-rule-0"), make_edge("D", "B", suffix="-rule-1"), make_edge("D", "C", suffix="-def")]
        metrics = calculate_complexity(nodes, edges)
        assert metrics.breakdown.decisions == 3
        assert metrics.score == 4

    def test_wait_adds_outcomes_minus_one(self):
        nodes = [make_node("W", NodeType.WAIT), make_node("A"), make_node("B")]
        edges = [make_edge("W", "A", suffix="-wait-0"), make_edge("W", "B", suffix="-def")]
        assert calculate_complexity(nodes, edges).breakdown.waits == 1

    def test_single_path_wait_adds_nothing(self):
        nodes = [make_node("W", NodeType.WAIT), make_node("A")]
        assert calculate_complexity(nodes, [make_edge("W", "A")]).breakdown.waits == 0

    def test_loop_and_faults(self):
        nodes = [make_node("L", NodeType.LOOP), make_node("A"), make_node("E", NodeType.CUSTOM_ERROR)]
        edges = [
            make_edge("L", "A", EdgeType.LOOP_NEXT, "-next"),
            make_edge("A", "L"),
            make_edge("A", "E", EdgeType.FAULT, "-fault"),
            make_edge("E", "END_NODE_0", EdgeType.FAULT_END),
        ]
        metrics = calculate_complexity(nodes, edges)
        assert metrics.breakdown.loops == 1
        assert metrics.breakdown.faults == 2
        assert metrics.score == 4

    def test_counts(self):
        nodes = [make_node("A"), make_node("B"), make_node("D", NodeType.DECISION)]
        metrics = calculate_complexity(nodes, [make_edge("A", "B")])
        assert metrics.nodes_by_type == {"ASSIGNMENT": 2, "DECISION": 1}
        assert metrics.total_nodes == 3
        assert metrics.total_edges == 1


class TestRatings:
    @pytest.mark.parametrize(
        "score,label",
        [(1, "Simple"), (5, "Simple"), (6, "Moderate"), (10, "Moderate"), (11, "Complex"), (21, "High Risk"), (51, "Very High"), (500, "Very High")],
    )
    def test_bands(self, score, label):
        assert complexity_range(score).label == label

    def test_recommendations(self):
        nodes = [make_node(f"L{i}", NodeType.RECORD_LOOKUP) for i in range(6)]
        metrics = calculate_complexity(nodes, [])
        assert any("record lookups" in r for r in metrics.recommendations)

    def test_large_flow_recommendation(self):
        nodes = [make_node(f"N{i}") for i in range(31)]
        metrics = calculate_complexity(nodes, [])
        assert "Large flow - consider breaking into smaller subflows" in metrics.recommendations

    def test_to_dict(self):
        record = calculate_complexity([make_node("A")], []).to_dict()
        assert record["score"] == 1
        assert record["rating"] == "simple"
        assert record["label"] == "Simple"
        assert record["breakdown"]["base"] == 1


class TestConnectivity:
    def test_single_component(self):
        nodes = [make_node(START_NODE_ID, NodeType.START), make_node("A")]
        metrics = calculate_complexity(nodes, [make_edge(START_NODE_ID, "A")])
        assert metrics.connected_components == 1
        assert metrics.unreachable == []

    def test_orphan_is_unreachable(self):
        """Start → A, B on its own → B unreachable, two components."""
        nodes = [make_node(START_NODE_ID, NodeType.START), make_node("A"), make_node("B")]
        metrics = calculate_complexity(nodes, [make_edge(START_NODE_ID, "A")])
        assert metrics.connected_components == 2
        assert metrics.unreachable == ["B"]
        assert metrics.to_dict()["unreachable"] == ["B"]

    def test_no_start_reports_nothing_unreachable(self):
        metrics = calculate_complexity([make_node("A"), make_node("B")], [])
        assert metrics.unreachable == []
        assert metrics.to_dict()["connectedComponents"] == 2
