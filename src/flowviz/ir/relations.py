"""Relationship normalization: derives next/prev/children/parent/fault links.

Every node learns its single forward link (linear nodes), its ordered branch
children (Decision, Wait, Loop, multi-path Start), its unique predecessor,
its fault target, and which connectors jump to it as GoTos. Merge points
are not stored here; the layout engine discovers them on demand.
"""

from __future__ import annotations

import dataclasses
import logging

from flowviz.ir.branches import ordered_branches
from flowviz.ir.graph import FlowGraph
from flowviz.ir.model import FlowEdge, FlowNode
from flowviz.types import BranchKind, EdgeType, NodeType, branch_kind

logger = logging.getLogger(__name__)


def normalize(nodes: list[FlowNode], edges: list[FlowEdge]) -> list[FlowNode]:
    """Return copies of ``nodes`` annotated with derived relations.

    Edges are left untouched. Dangling connectors are ignored wherever they
    would point at a node that does not exist.
    """
    graph = FlowGraph(nodes, edges)
    result: dict[str, FlowNode] = {
        n.id: dataclasses.replace(n, parent=None, child_index=None) for n in nodes
    }

    for node in result.values():
        outs = graph.outgoing(node.id)
        primary = [e for e in outs if not e.is_fault]
        fault_edge = next((e for e in outs if e.is_fault), None)
        node.fault = fault_edge.target if fault_edge else None

        kind = branch_kind(node.type, len(primary))
        if kind == BranchKind.LOOP:
            branches = ordered_branches(node, outs)
            node.children = [e.target for e in branches if e.type == EdgeType.LOOP_NEXT]
            loop_exit = next((e for e in outs if e.type == EdgeType.LOOP_END), None)
            node.next = loop_exit.target if loop_exit else None
        elif kind == BranchKind.BRANCHING:
            branches = ordered_branches(node, outs)
            node.children = [e.target for e in branches] or None
            node.next = None
        else:
            node.children = None
            node.next = primary[0].target if primary else None

        node.is_terminal = node.type != NodeType.START and not primary

    for node in result.values():
        incoming = graph.incoming(node.id)
        linear_incoming = [e for e in incoming if not e.is_fault]
        node.prev = linear_incoming[0].source if len(linear_incoming) == 1 else None
        goto_sources = [e.source for e in incoming if e.is_goto]
        node.incoming_goto = goto_sources or None

    for node in result.values():
        for index, child_id in enumerate(node.children or []):
            child = result.get(child_id)
            if child is not None:
                child.parent = node.id
                child.child_index = index

    logger.debug("normalized %d nodes over %d edges", len(result), len(edges))
    return list(result.values())


# ─── Traversal helpers ───────────────────────────────────────────────────────


def _walk(node_id: str, node_map: dict[str, FlowNode], attr: str) -> FlowNode | None:
    current = node_map.get(node_id)
    seen: set[str] = set()
    while current is not None and current.id not in seen:
        seen.add(current.id)
        link = getattr(current, attr)
        if link is None or link not in node_map:
            return current
        current = node_map[link]
    return current


def find_first_element(node_id: str, node_map: dict[str, FlowNode]) -> FlowNode | None:
    """Follow ``prev`` links back to the head of a linear segment."""
    return _walk(node_id, node_map, "prev")


def find_last_element(node_id: str, node_map: dict[str, FlowNode]) -> FlowNode | None:
    """Follow ``next`` links to the tail of a linear segment."""
    return _walk(node_id, node_map, "next")


def find_parent_element(node: FlowNode, node_map: dict[str, FlowNode]) -> FlowNode | None:
    if node.parent is not None:
        return node_map.get(node.parent)
    if node.prev is not None:
        return node_map.get(node.prev)
    return None


def are_all_branches_terminals(node: FlowNode, node_map: dict[str, FlowNode]) -> bool:
    """True when following ``next`` from every branch of ``node`` ends at a terminal."""
    if not node.children:
        return False
    for child_id in node.children:
        last = find_last_element(child_id, node_map)
        if last is None or not (last.is_terminal or last.type == NodeType.END):
            return False
    return True


def is_going_back_to_ancestor_loop(target_id: str, source: FlowNode, node_map: dict[str, FlowNode]) -> bool:
    """True when ``target_id`` is a Loop that encloses ``source``."""
    current: FlowNode | None = source
    seen: set[str] = set()
    while current is not None and current.id not in seen:
        if current.type == NodeType.LOOP and current.id == target_id:
            return True
        seen.add(current.id)
        current = find_parent_element(current, node_map)
    return False
