"""Tree layout engine for flow graphs.

Places nodes depth-first from Start on a column/row grid:
  1. Fault lanes are pre-assigned in traversal order (interval scheduling)
  2. Linear nodes inherit their parent's x, one row down
  3. Decision/Wait/multi-path Start spread branches left to right under the
     parent and resume at the merge point below the deepest branch
  4. Loop bodies get a side column; After Last resumes below the body
  5. Fault targets sit to the right of the main content in their lane
  6. Anything unreached is stacked below the layout at a fallback column
"""

from __future__ import annotations

import logging

from flowviz.config import DEFAULT_LAYOUT_CONFIG, END_NODE_HEIGHT, LayoutConfig
from flowviz.ir.branches import ordered_branches, sort_branch_edges
from flowviz.ir.graph import FlowGraph
from flowviz.ir.model import FlowEdge, FlowNode
from flowviz.layout.measure import branch_depth, subtree_width
from flowviz.layout.merge import find_merge
from flowviz.layout.types import FaultLane, Position, is_walkable
from flowviz.types import BranchKind, EdgeType, NodeType, branch_kind

logger = logging.getLogger(__name__)

# (node id, center x, top y) where placement resumes after a branch point
Continuation = tuple[str, float, float]


# ─── Fault lane pre-assignment ───────────────────────────────────────────────


def traversal_order(start_id: str | None, graph: FlowGraph) -> list[str]:
    """Pre-order walk from Start over non-fault connectors.

    Branches are visited left to right, loop bodies before After Last.
    """
    if start_id is None or graph.node(start_id) is None:
        return []

    order: list[str] = []
    seen: set[str] = set()
    stack = [start_id]
    while stack:
        node_id = stack.pop()
        if node_id in seen:
            continue
        seen.add(node_id)
        order.append(node_id)

        node = graph.node(node_id)
        if node is None:
            continue
        outs = graph.primary_outgoing(node_id)
        if branch_kind(node.type, len(outs)) == BranchKind.BRANCHING:
            successors = [e.target for e in sort_branch_edges(node, outs)]
        elif node.type == NodeType.LOOP:
            body = next((e for e in outs if e.type == EdgeType.LOOP_NEXT), None)
            after = next((e for e in outs if e.type != EdgeType.LOOP_NEXT), None)
            successors = [e.target for e in (body, after) if e is not None]
        else:
            successors = [e.target for e in outs]
        stack.extend(reversed(successors))
    return order


def assign_fault_lanes(start_id: str | None, graph: FlowGraph, config: LayoutConfig) -> dict[str, FaultLane]:
    """Give every fault connector reachable from Start a lane index.

    Each connector spans the traversal positions of its source and target. A
    connector reuses the first lane whose last span ended before its own span
    starts, so lanes that overlap vertically never cross.
    """
    order = traversal_order(start_id, graph)
    index = {node_id: i for i, node_id in enumerate(order)}

    spans: list[tuple[int, float, FlowEdge]] = []
    for node_id in order:
        for edge in graph.fault_outgoing(node_id):
            src = index.get(edge.source, 0)
            tgt = index.get(edge.target, float("inf"))
            spans.append((src, tgt, edge))
    spans.sort(key=lambda span: span[0])

    base_x = config.start_x + config.node_width / 2 + config.fault_lane_clearance
    lane_ends: list[float] = []
    lanes: dict[str, FaultLane] = {}
    for src, tgt, edge in spans:
        low, high = min(src, tgt), max(src, tgt)
        for lane, end in enumerate(lane_ends):
            if low > end:
                lane_ends[lane] = high
                break
        else:
            lane = len(lane_ends)
            lane_ends.append(high)
        lanes[edge.id] = FaultLane(
            edge_id=edge.id,
            source_id=edge.source,
            target_id=edge.target,
            lane=lane,
            lane_x=base_x + lane * config.fault_lane_spacing,
        )
    return lanes


# ─── TreeLayout Engine ───────────────────────────────────────────────────────


class TreeLayout:
    """One-shot placement of a flow graph; build a new instance per layout."""

    def __init__(
        self,
        graph: FlowGraph,
        config: LayoutConfig = DEFAULT_LAYOUT_CONFIG,
        start_id: str | None = None,
    ) -> None:
        self.graph = graph
        self.config = config
        self.start_id = start_id
        self.positions: dict[str, Position] = {}
        self.fault_lanes = assign_fault_lanes(start_id, graph, config)
        self._fault_only = self._fault_only_nodes()
        self._fault_positioned: set[str] = set()
        self._content_max_right = config.start_x + config.node_width / 2
        self._max_fault_x = config.start_x + config.col_width

    def layout(self) -> dict[str, Position]:
        if self.start_id is not None:
            self._place(self.start_id, self.config.start_x, self.config.start_y, None, set())
        self._place_orphans()
        return self.positions

    # ─── Helpers ─────────────────────────────────────────────────────────

    def _fault_only_nodes(self) -> set[str]:
        result: set[str] = set()
        for node in self.graph.nodes.values():
            if node.type == NodeType.START:
                continue
            incoming = self.graph.incoming(node.id)
            if incoming and all(e.is_fault for e in incoming):
                result.add(node.id)
            elif not incoming and node.data.get("is_fault_path"):
                result.add(node.id)
        return result

    def _width_of(self, node: FlowNode | None) -> float:
        return (node.width if node is not None else 0) or self.config.node_width

    def _height_of(self, node: FlowNode | None) -> float:
        return (node.height if node is not None else 0) or self.config.node_height

    def _track_content(self, node: FlowNode, center_x: float) -> None:
        if node.id in self._fault_only:
            return
        self._content_max_right = max(self._content_max_right, center_x + self._width_of(node) / 2)

    # ─── Placement ───────────────────────────────────────────────────────

    def _place(
        self,
        node_id: str,
        center_x: float,
        y: float,
        stop_at: str | None,
        visited: set[str],
    ) -> None:
        """Place ``node_id`` and everything below it up to ``stop_at``.

        Linear runs and merge/After Last continuations are followed in this
        loop; only branch bodies recurse, each with its own copy of ``visited``.
        """
        cont: Continuation | None = (node_id, center_x, y)
        while cont is not None:
            node_id, center_x, y = cont
            if node_id in visited or node_id == stop_at:
                return
            node = self.graph.node(node_id)
            if node is None:
                return
            visited.add(node_id)

            self.positions[node_id] = Position(center_x, y)
            self._track_content(node, center_x)

            height = self._height_of(node)
            primary = self.graph.primary_outgoing(node_id)
            kind = branch_kind(node.type, len(primary))
            extra = self.config.branching_start_extra_gap if node.type == NodeType.START and len(primary) > 1 else 0
            next_y = y + height + self.config.v_gap + extra

            self._place_fault_paths(node, center_x, y, height, visited)

            if not primary:
                return
            if kind == BranchKind.BRANCHING:
                cont = self._place_branches(node, primary, center_x, next_y, stop_at, visited)
            elif kind == BranchKind.LOOP:
                cont = self._place_loop(node, primary, center_x, next_y, visited)
            else:
                forward = next((e for e in primary if is_walkable(e)), None)
                cont = (forward.target, center_x, next_y) if forward is not None else None

    def _place_branches(
        self,
        node: FlowNode,
        primary: list[FlowEdge],
        center_x: float,
        next_y: float,
        stop_at: str | None,
        visited: set[str],
    ) -> Continuation | None:
        branches = ordered_branches(node, primary)
        merge = find_merge([e.target for e in branches], self.graph)

        widths = [
            max(subtree_width(e.target, self.graph, merge, visited), 1) if is_walkable(e) else 1 for e in branches
        ]
        col = self.config.col_width
        x = center_x - sum(widths) * col / 2 + col / 2

        deepest = 0
        for edge, width in zip(branches, widths):
            branch_x = x + (width - 1) * col / 2
            if is_walkable(edge):
                if edge.target != merge and edge.target not in visited:
                    self._place(edge.target, branch_x, next_y, merge, set(visited))
                deepest = max(deepest, branch_depth(edge.target, self.graph, merge, visited))
            x += width * col

        if merge is None or merge in visited:
            return None
        # merge resumes on the parent's column, below the deepest branch
        return merge, center_x, next_y + deepest * self.config.row_height

    def _place_loop(
        self,
        node: FlowNode,
        primary: list[FlowEdge],
        center_x: float,
        next_y: float,
        visited: set[str],
    ) -> Continuation | None:
        for_each = next((e for e in primary if e.type == EdgeType.LOOP_NEXT and is_walkable(e)), None)
        after_last = next((e for e in primary if e.type == EdgeType.LOOP_END and is_walkable(e)), None)
        col = self.config.col_width

        body_depth = 1
        if for_each is not None:
            body_width = subtree_width(for_each.target, self.graph, node.id, visited)
            if for_each.target not in visited:
                body_x = center_x - col * (body_width / 2 + 0.5)
                self._place(for_each.target, body_x, next_y, node.id, set(visited))
            body_depth = branch_depth(for_each.target, self.graph, node.id, visited)

        if after_last is None or after_last.target in visited:
            return None
        return after_last.target, center_x, next_y + body_depth * self.config.row_height

    def _place_fault_paths(
        self,
        node: FlowNode,
        center_x: float,
        y: float,
        height: float,
        visited: set[str],
    ) -> None:
        source_right = center_x + self._width_of(node) / 2
        clearance = self.config.fault_lane_clearance

        for edge in self.graph.fault_outgoing(node.id):
            target = self.graph.node(edge.target)
            if target is None:
                continue
            target_width = self._width_of(target)
            is_fault_end = edge.type == EdgeType.FAULT_END or target.type == NodeType.END

            if edge.is_goto and self.graph.primary_incoming(edge.target):
                continue
            if edge.target in self._fault_positioned and not is_fault_end:
                continue
            if edge.target in visited:
                continue

            lane = self.fault_lanes.get(edge.id)
            if lane is not None:
                min_lane_x = max(source_right, self._content_max_right) + clearance + target_width / 2
                lane_center = max(lane.lane_x + target_width / 2, min_lane_x)
                lane.lane_x = lane_center - target_width / 2
            else:
                gap = max(clearance, self.config.h_gap * 2)
                lane_center = max(
                    source_right + gap + target_width / 2,
                    self._content_max_right + gap + target_width / 2,
                    self._max_fault_x,
                )

            self._fault_positioned.add(edge.target)
            if is_fault_end:
                # vertically centered on the source for a straight connector
                end_height = target.height or END_NODE_HEIGHT
                self.positions[edge.target] = Position(lane_center, y + height / 2 - end_height / 2)
                visited.add(edge.target)
            else:
                drop = height + self.config.v_gap if edge.target in self._fault_only else 0
                self._place(edge.target, lane_center, y + drop, None, set(visited))

            self._max_fault_x = max(self._max_fault_x, lane_center + target_width / 2)

    def _place_orphans(self) -> None:
        max_y = float(self.config.start_y)
        for pos in self.positions.values():
            max_y = max(max_y, pos.y)

        orphans = [node_id for node_id in self.graph.nodes if node_id not in self.positions]
        for node_id in orphans:
            max_y += self.config.row_height
            self.positions[node_id] = Position(self.config.start_x + self.config.orphan_offset_x, max_y)
        if orphans:
            logger.warning("placed %d unreachable node(s) below the layout: %s", len(orphans), ", ".join(orphans))
