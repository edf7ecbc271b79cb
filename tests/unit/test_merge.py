"""Tests for merge-point discovery and the width/depth measures."""

from __future__ import annotations

from flowviz.ir.graph import FlowGraph
from flowviz.ir.model import FlowEdge, FlowNode
from flowviz.layout.measure import branch_depth, subtree_width
from flowviz.layout.merge import bfs_depths, find_all_merge_points, find_merge
from flowviz.types import EdgeType, NodeType

# ─── Helpers ──────────────────────────────────────────────────────────────────


def make_graph(edges: list[tuple], types: dict[str, NodeType] | None = None) -> FlowGraph:
    """Build a FlowGraph from (src, tgt[, EdgeType[, label]]) tuples.

    Every id mentioned becomes a node; ``types`` overrides the default
    ASSIGNMENT type per id.
    """
    types = types or {}
    ids: list[str] = []
    flow_edges: list[FlowEdge] = []
    for i, item in enumerate(edges):
        src, tgt = item[0], item[1]
        edge_type = item[2] if len(item) > 2 else EdgeType.NORMAL
        label = item[3] if len(item) > 3 else None
        flow_edges.append(FlowEdge(id=f"{src}-{tgt}-{i}", source=src, target=tgt, type=edge_type, label=label))
        for node_id in (src, tgt):
            if node_id not in ids:
                ids.append(node_id)
    for node_id in types:
        if node_id not in ids:
            ids.append(node_id)
    nodes = [
        FlowNode(id=node_id, type=types.get(node_id, NodeType.ASSIGNMENT), label=node_id, width=240, height=56)
        for node_id in ids
    ]
    return FlowGraph(nodes, flow_edges)


# ─── BFS ──────────────────────────────────────────────────────────────────────


class TestBfsDepths:
    def test_chain(self):
        """A → B → C."""
        g = make_graph([("A", "B"), ("B", "C")])
        assert bfs_depths("A", g) == {"A": 0, "B": 1, "C": 2}

    def test_cycle_terminates(self):
        """A → B → A."""
        g = make_graph([("A", "B"), ("B", "A")])
        assert bfs_depths("A", g) == {"A": 0, "B": 1}

    def test_skips_fault_edges(self):
        g = make_graph([("A", "B"), ("A", "E", EdgeType.FAULT)])
        assert "E" not in bfs_depths("A", g)

    def test_discovery_order(self):
        g = make_graph([("A", "C"), ("A", "B")])
        assert list(bfs_depths("A", g)) == ["A", "C", "B"]


# ─── find_merge ───────────────────────────────────────────────────────────────


class TestFindMerge:
    def test_diamond(self):
        """B1 → M, B2 → M → merge is M."""
        g = make_graph([("B1", "M"), ("B2", "M"), ("M", "N")])
        assert find_merge(["B1", "B2"], g) == "M"

    def test_no_common_descendant(self):
        g = make_graph([("B1", "E1"), ("B2", "E2")])
        assert find_merge(["B1", "B2"], g) is None

    def test_single_branch(self):
        g = make_graph([("B1", "M")])
        assert find_merge(["B1"], g) is None
        assert find_merge([], g) is None

    def test_minimum_total_depth(self):
        """B1 → C → M → N, B2 → M → M (3) beats N (5)."""
        g = make_graph([("B1", "C"), ("C", "M"), ("B2", "M"), ("M", "N")])
        assert find_merge(["B1", "B2"], g) == "M"

    def test_tie_goes_to_first_discovered_in_branch_zero(self):
        """B1 → M1, M2 and B2 → M2, M1 tie at total 2 → M1 (first in B1's BFS)."""
        g = make_graph([("B1", "M1"), ("B1", "M2"), ("B2", "M2"), ("B2", "M1")])
        assert find_merge(["B1", "B2"], g) == "M1"

    def test_branch_target_is_merge(self):
        """B1 → B2: B2 is itself the merge point."""
        g = make_graph([("B1", "B2"), ("B2", "X")])
        assert find_merge(["B1", "B2"], g) == "B2"

    def test_three_branches(self):
        g = make_graph([("B1", "M"), ("B2", "M"), ("B3", "X"), ("X", "M")])
        assert find_merge(["B1", "B2", "B3"], g) == "M"

    def test_cycle_safe(self):
        g = make_graph([("B1", "B2"), ("B2", "B1")])
        assert find_merge(["B1", "B2"], g) in {"B1", "B2"}

    def test_fault_paths_do_not_merge(self):
        g = make_graph([("B1", "E", EdgeType.FAULT), ("B2", "E", EdgeType.FAULT)])
        assert find_merge(["B1", "B2"], g) is None

    def test_find_all_merge_points(self):
        g = make_graph(
            [("D", "A", EdgeType.NORMAL, "Rule"), ("D", "B", EdgeType.NORMAL, "Default Outcome"), ("A", "M"), ("B", "M")],
            types={"D": NodeType.DECISION},
        )
        assert find_all_merge_points(list(g.nodes.values()), g.edges) == {"D": "M"}


# ─── Subtree width ────────────────────────────────────────────────────────────


class TestSubtreeWidth:
    def test_linear_chain(self):
        g = make_graph([("A", "B"), ("B", "C")])
        assert subtree_width("A", g) == 1

    def test_stop_at(self):
        g = make_graph([("A", "B")])
        assert subtree_width("B", g, stop_at="B") == 0

    def test_unknown_node(self):
        g = make_graph([("A", "B")])
        assert subtree_width("Nope", g) == 1

    def test_decision_sums_branches(self):
        """D → A, B, C (no merge) → 3 columns."""
        g = make_graph([("D", "A"), ("D", "B"), ("D", "C")], types={"D": NodeType.DECISION})
        assert subtree_width("D", g) == 3

    def test_nested_decision(self):
        """D1 → D2 → (X, Y); D1 → B → 3 columns."""
        g = make_graph(
            [("D1", "D2"), ("D1", "B"), ("D2", "X"), ("D2", "Y")],
            types={"D1": NodeType.DECISION, "D2": NodeType.DECISION},
        )
        assert subtree_width("D1", g) == 3

    def test_loop_reserves_two_columns(self):
        """L --next--> A → L with no After Last → at least 2 columns."""
        g = make_graph([("L", "A", EdgeType.LOOP_NEXT), ("A", "L")], types={"L": NodeType.LOOP})
        assert subtree_width("L", g) >= 2

    def test_empty_loop(self):
        g = make_graph([], types={"L": NodeType.LOOP})
        assert subtree_width("L", g) == 1

    def test_loop_with_wide_body(self):
        """Body holding a 2-way decision → 3 columns."""
        g = make_graph(
            [
                ("L", "D", EdgeType.LOOP_NEXT),
                ("L", "After", EdgeType.LOOP_END),
                ("D", "X"),
                ("D", "Y"),
                ("X", "L"),
                ("Y", "L"),
            ],
            types={"L": NodeType.LOOP, "D": NodeType.DECISION},
        )
        assert subtree_width("L", g) == 3

    def test_goto_branch_counts_one_column(self):
        g = make_graph([("D", "A"), ("D", "Far", EdgeType.GOTO)], types={"D": NodeType.DECISION})
        assert subtree_width("D", g) == 2

    def test_cycle_terminates(self):
        g = make_graph([("A", "B"), ("B", "A")])
        assert subtree_width("A", g) == 1


# ─── Branch depth ─────────────────────────────────────────────────────────────


class TestBranchDepth:
    def test_linear_chain(self):
        g = make_graph([("A", "B"), ("B", "C")])
        assert branch_depth("A", g) == 3

    def test_stop_at_excluded(self):
        g = make_graph([("A", "B"), ("B", "M")])
        assert branch_depth("A", g, stop_at="M") == 2

    def test_decision_with_merge(self):
        """D → A1 → A2 → M, D → B → M, M → E → 1 + 2 + 2."""
        g = make_graph(
            [("D", "A1"), ("A1", "A2"), ("A2", "M"), ("D", "B"), ("B", "M"), ("M", "E")],
            types={"D": NodeType.DECISION},
        )
        assert branch_depth("D", g) == 5

    def test_loop(self):
        """L --next--> A → L, L --end--> B → 1 + 1 + 1."""
        g = make_graph(
            [("L", "A", EdgeType.LOOP_NEXT), ("A", "L"), ("L", "B", EdgeType.LOOP_END)],
            types={"L": NodeType.LOOP},
        )
        assert branch_depth("L", g) == 3

    def test_cycle_terminates(self):
        g = make_graph([("A", "B"), ("B", "A")])
        assert branch_depth("A", g) == 2
