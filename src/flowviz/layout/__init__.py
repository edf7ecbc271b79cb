"""Layout engine: assigns x/y to every node of a closed flow graph."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import replace

from flowviz.config import DEFAULT_LAYOUT_CONFIG, LayoutConfig
from flowviz.ir.graph import FlowGraph
from flowviz.ir.model import START_NODE_ID, FlowEdge, FlowNode
from flowviz.layout.measure import branch_depth, subtree_width
from flowviz.layout.merge import bfs_depths, find_all_merge_points, find_merge
from flowviz.layout.tree import TreeLayout, assign_fault_lanes, traversal_order
from flowviz.layout.types import FaultLane, LayoutResult, Position, is_walkable
from flowviz.types import NodeType


def _start_id(graph: FlowGraph) -> str | None:
    if START_NODE_ID in graph.nodes:
        return START_NODE_ID
    for node in graph.nodes.values():
        if node.type == NodeType.START:
            return node.id
    return None


def layout_with_fault_lanes(
    nodes: Iterable[FlowNode],
    edges: Iterable[FlowEdge],
    config: LayoutConfig = DEFAULT_LAYOUT_CONFIG,
) -> LayoutResult:
    """Position ``nodes`` and report the fault lanes used for fault connectors.

    Returned nodes are copies with top-left ``x``/``y`` set; the inputs are
    left untouched. Lane ``source_y``/``target_y`` are the vertical centers of
    the placed endpoints.
    """
    nodes = list(nodes)
    if not nodes:
        return LayoutResult(nodes=[])

    graph = FlowGraph(nodes, edges)
    engine = TreeLayout(graph, config, start_id=_start_id(graph))
    positions = engine.layout()

    placed: list[FlowNode] = []
    for node in nodes:
        pos = positions.get(node.id, Position(config.start_x, config.start_y))
        placed.append(replace(node, x=pos.x - node.width / 2, y=pos.y))

    by_id = {node.id: node for node in placed}
    for lane in engine.fault_lanes.values():
        source = by_id.get(lane.source_id)
        target = by_id.get(lane.target_id)
        if source is not None:
            lane.source_y = source.y + source.height / 2
        if target is not None:
            lane.target_y = target.y + target.height / 2

    return LayoutResult(nodes=placed, fault_lanes=engine.fault_lanes)


def layout(
    nodes: Iterable[FlowNode],
    edges: Iterable[FlowEdge],
    config: LayoutConfig = DEFAULT_LAYOUT_CONFIG,
) -> list[FlowNode]:
    """Return copies of ``nodes`` with ``x``/``y`` assigned."""
    return layout_with_fault_lanes(nodes, edges, config).nodes


__all__ = [
    "FaultLane",
    "LayoutResult",
    "Position",
    "TreeLayout",
    "assign_fault_lanes",
    "bfs_depths",
    "branch_depth",
    "find_all_merge_points",
    "find_merge",
    "is_walkable",
    "layout",
    "layout_with_fault_lanes",
    "subtree_width",
    "traversal_order",
]
