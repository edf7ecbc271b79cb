"""Merge-point discovery for branching nodes.

The merge point of a set of branches is the node reachable from every branch
with the smallest sum of per-branch BFS depths; ties go to the node found
first by the BFS of branch 0.
"""

from __future__ import annotations

from collections import deque

from flowviz.ir.branches import ordered_branches
from flowviz.ir.graph import FlowGraph
from flowviz.ir.model import FlowEdge, FlowNode
from flowviz.types import BranchKind, branch_kind


def bfs_depths(start_id: str, graph: FlowGraph) -> dict[str, int]:
    """Depth of every id reachable from ``start_id`` over non-fault connectors.

    Insertion order of the result is discovery order.
    """
    reached: dict[str, int] = {}
    queue: deque[tuple[str, int]] = deque([(start_id, 0)])
    while queue:
        node_id, depth = queue.popleft()
        if node_id in reached:
            continue
        reached[node_id] = depth
        for edge in graph.primary_outgoing(node_id):
            if edge.target not in reached:
                queue.append((edge.target, depth + 1))
    return reached


def find_merge(branch_targets: list[str], graph: FlowGraph) -> str | None:
    """Closest node where all ``branch_targets`` reconverge, or None."""
    if len(branch_targets) < 2:
        return None

    reachable = [bfs_depths(target, graph) for target in branch_targets]

    best: str | None = None
    best_total = float("inf")
    for node_id, depth0 in reachable[0].items():
        total = depth0
        for reach in reachable[1:]:
            depth = reach.get(node_id)
            if depth is None:
                break
            total += depth
        else:
            if total < best_total:
                best_total = total
                best = node_id
    return best


def find_all_merge_points(nodes: list[FlowNode], edges: list[FlowEdge]) -> dict[str, str]:
    """Map each branching node id to its merge point, where one exists."""
    graph = FlowGraph(nodes, edges)
    merges: dict[str, str] = {}
    for node in graph.nodes.values():
        primary = graph.primary_outgoing(node.id)
        if branch_kind(node.type, len(primary)) != BranchKind.BRANCHING or len(primary) < 2:
            continue
        targets = [e.target for e in ordered_branches(node, primary)]
        merge = find_merge(targets, graph)
        if merge is not None:
            merges[node.id] = merge
    return merges
