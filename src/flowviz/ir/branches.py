"""Branch-edge selection and the left-to-right branch ordering policy.

Shared by the relation pass and the layout engine so that rendering order
and layout column order always agree.
"""

from __future__ import annotations

from flowviz.ir.model import FlowEdge, FlowNode
from flowviz.types import EdgeType, NodeType

DEFAULT_BRANCH_LABELS: tuple[str, ...] = ("default", "other", "default outcome")
ASYNC_START_LABELS: tuple[str, ...] = ("async", "scheduled")


def is_default_branch_edge(edge: FlowEdge) -> bool:
    """True for a Decision/Wait default ("else") connector."""
    label = (edge.label or "").lower()
    return any(token in label for token in DEFAULT_BRANCH_LABELS) or "-def" in edge.id


def is_async_start_edge(edge: FlowEdge) -> bool:
    """True for a scheduled or asynchronous path leaving Start."""
    label = (edge.label or "").lower()
    return any(token in label for token in ASYNC_START_LABELS) or "-sched" in edge.id


def branch_edges_for_node(node: FlowNode, outgoing: list[FlowEdge]) -> list[FlowEdge]:
    """Connectors that spread horizontally below ``node``."""
    if node.type == NodeType.LOOP:
        return [e for e in outgoing if e.type in (EdgeType.LOOP_NEXT, EdgeType.LOOP_END)]
    if node.type in (NodeType.DECISION, NodeType.WAIT, NodeType.START):
        return [e for e in outgoing if not e.is_fault]
    return []


def sort_branch_edges(node: FlowNode, edges: list[FlowEdge]) -> list[FlowEdge]:
    """Order branches left to right; ties keep document order.

    Default connectors go last on Decision/Wait, After Last goes after
    For Each on Loop, and scheduled/async paths go last on Start.
    """
    if len(edges) <= 1:
        return list(edges)
    if node.type == NodeType.LOOP:
        return sorted(edges, key=lambda e: e.type == EdgeType.LOOP_END)
    if node.type == NodeType.START:
        return sorted(edges, key=is_async_start_edge)
    return sorted(edges, key=is_default_branch_edge)


def ordered_branches(node: FlowNode, outgoing: list[FlowEdge]) -> list[FlowEdge]:
    return sort_branch_edges(node, branch_edges_for_node(node, outgoing))
