"""Terminal synthesis: closes every open path with a synthetic End node.

After :func:`close` runs, every node other than Start (and the End nodes
themselves) has at least one non-fault outgoing connector.
"""

from __future__ import annotations

import logging

from flowviz.config import END_NODE_HEIGHT, NODE_WIDTH
from flowviz.ir.model import END_NODE_PREFIX, START_IMMEDIATE_END_ID, FlowEdge, FlowNode
from flowviz.types import EdgeType, NodeType

logger = logging.getLogger(__name__)

DEFAULT_OUTCOME_LABEL = "Default Outcome"


def make_end_node(node_id: str, is_fault_path: bool = False) -> FlowNode:
    return FlowNode(
        id=node_id,
        type=NodeType.END,
        label="End",
        width=NODE_WIDTH,
        height=END_NODE_HEIGHT,
        data={"is_fault_path": is_fault_path},
    )


def fault_reached_nodes(edges: list[FlowEdge]) -> set[str]:
    """Ids whose every incoming connector is a fault path.

    A node with at least one normal incoming connector belongs to the main
    flow even when fault connectors also reach it.
    """
    incoming: dict[str, list[FlowEdge]] = {}
    for edge in edges:
        incoming.setdefault(edge.target, []).append(edge)
    return {
        node_id
        for node_id, edges_in in incoming.items()
        if edges_in and all(e.is_fault for e in edges_in)
    }


class _EndIds:
    """Hands out END_NODE_<n> ids that are not already taken."""

    def __init__(self, taken: set[str]) -> None:
        self.taken = taken
        self.count = 0

    def next(self) -> str:
        while True:
            candidate = f"{END_NODE_PREFIX}{self.count}"
            self.count += 1
            if candidate not in self.taken:
                self.taken.add(candidate)
                return candidate


def close(nodes: list[FlowNode], edges: list[FlowEdge]) -> tuple[list[FlowNode], list[FlowEdge]]:
    """Append synthetic End nodes and connectors for every open path.

    Returns new (nodes, edges) lists; the inputs are not modified.
    """
    result_nodes = list(nodes)
    result_edges = list(edges)
    node_ids = {n.id for n in nodes}
    end_ids = _EndIds(set(node_ids))
    fault_reached = fault_reached_nodes(edges)

    if START_IMMEDIATE_END_ID not in node_ids and any(e.target == START_IMMEDIATE_END_ID for e in edges):
        result_nodes.append(make_end_node(START_IMMEDIATE_END_ID))
        end_ids.taken.add(START_IMMEDIATE_END_ID)

    for node in nodes:
        if node.type != NodeType.DECISION or not node.data.get("has_implicit_default_end"):
            continue
        # without a <defaultConnector>, any -def edge is an End closed earlier
        if any(e.source == node.id and e.id.endswith("-def") for e in result_edges):
            continue
        end_id = end_ids.next()
        result_nodes.append(make_end_node(end_id))
        result_edges.append(
            FlowEdge(
                id=f"{node.id}-{end_id}-def",
                source=node.id,
                target=end_id,
                type=EdgeType.NORMAL,
                label=node.data.get("default_connector_label") or DEFAULT_OUTCOME_LABEL,
            )
        )

    # fault-end connectors only ever lead to a synthesized End
    closed_sources = {e.source for e in result_edges if e.type != EdgeType.FAULT}
    closed = 0
    for node in nodes:
        if node.type in (NodeType.START, NodeType.END) or node.id in closed_sources:
            continue
        is_fault_path = node.id in fault_reached
        end_id = end_ids.next()
        result_nodes.append(make_end_node(end_id, is_fault_path))
        result_edges.append(
            FlowEdge(
                id=f"{node.id}-{end_id}",
                source=node.id,
                target=end_id,
                type=EdgeType.FAULT_END if is_fault_path else EdgeType.NORMAL,
            )
        )
        closed += 1

    logger.debug("closed %d terminal paths, %d End nodes total", closed, len(result_nodes) - len(nodes))
    return result_nodes, result_edges
