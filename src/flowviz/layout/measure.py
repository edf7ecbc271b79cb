"""Subtree width (grid columns) and branch depth (grid rows).

Both walk linear chains iteratively and recurse only at Decision/Wait/Loop
nodes. A ``stop_at`` id (the enclosing merge point, or the Loop itself for a
loop body) bounds every walk, and ``visited`` is copied on entry so sibling
branches never see each other's nodes.
"""

from __future__ import annotations

from collections.abc import Iterable

from flowviz.ir.branches import ordered_branches
from flowviz.ir.graph import FlowGraph
from flowviz.ir.model import FlowEdge
from flowviz.layout.merge import find_merge
from flowviz.layout.types import is_walkable
from flowviz.types import BranchKind, EdgeType, branch_kind


def _first_walkable(edges: list[FlowEdge], edge_type: EdgeType | None = None) -> FlowEdge | None:
    for edge in edges:
        if is_walkable(edge) and (edge_type is None or edge.type == edge_type):
            return edge
    return None


def subtree_width(
    node_id: str,
    graph: FlowGraph,
    stop_at: str | None = None,
    visited: Iterable[str] = (),
) -> int:
    """Number of grid columns the subtree rooted at ``node_id`` occupies."""
    seen = set(visited)
    current = node_id
    while True:
        if current in seen:
            return 1
        if stop_at is not None and current == stop_at:
            return 0
        node = graph.node(current)
        if node is None:
            return 1
        seen.add(current)

        outs = graph.primary_outgoing(current)
        if not outs:
            return 1

        kind = branch_kind(node.type, len(outs))
        if kind == BranchKind.BRANCHING:
            branches = ordered_branches(node, outs)
            merge = find_merge([e.target for e in branches], graph)
            total = 0
            for edge in branches:
                width = subtree_width(edge.target, graph, merge, seen) if is_walkable(edge) else 1
                total += max(width, 1)
            after_merge = subtree_width(merge, graph, stop_at, seen) if merge is not None else 0
            return max(total, after_merge, 1)

        if kind == BranchKind.LOOP:
            for_each = _first_walkable(outs, EdgeType.LOOP_NEXT)
            after_last = _first_walkable(outs, EdgeType.LOOP_END)
            body = subtree_width(for_each.target, graph, current, seen) if for_each else 1
            after = subtree_width(after_last.target, graph, stop_at, seen) if after_last else 1
            # the loop body always gets a column of its own
            return max(body + 1, after, 2)

        forward = _first_walkable(outs)
        if forward is None:
            return 1
        current = forward.target


def branch_depth(
    node_id: str,
    graph: FlowGraph,
    stop_at: str | None = None,
    visited: Iterable[str] = (),
) -> int:
    """Number of grid rows the branch starting at ``node_id`` occupies."""
    seen = set(visited)
    rows = 0
    current = node_id
    while True:
        if current in seen or (stop_at is not None and current == stop_at):
            return rows
        node = graph.node(current)
        if node is None:
            return rows
        seen.add(current)

        outs = graph.primary_outgoing(current)
        if not outs:
            return rows + 1

        kind = branch_kind(node.type, len(outs))
        if kind == BranchKind.BRANCHING:
            branches = ordered_branches(node, outs)
            merge = find_merge([e.target for e in branches], graph)
            deepest = 0
            for edge in branches:
                if is_walkable(edge):
                    deepest = max(deepest, branch_depth(edge.target, graph, merge, seen))
            after_merge = branch_depth(merge, graph, stop_at, seen) if merge is not None else 0
            return rows + 1 + deepest + after_merge

        if kind == BranchKind.LOOP:
            for_each = _first_walkable(outs, EdgeType.LOOP_NEXT)
            after_last = _first_walkable(outs, EdgeType.LOOP_END)
            body = branch_depth(for_each.target, graph, current, seen) if for_each else 0
            after = branch_depth(after_last.target, graph, stop_at, seen) if after_last else 0
            return rows + 1 + max(body, 1) + after

        rows += 1
        forward = _first_walkable(outs)
        if forward is None:
            return rows
        current = forward.target
