"""FlowGraph: indexes flow nodes and edges for the IR passes and layout.

Wraps a networkx MultiDiGraph (one keyed edge per connector) and keeps the
document-ordered outgoing/incoming connector lists that branch ordering
depends on. Connectors whose endpoints are unknown stay in the ordered
lists but are kept out of the digraph.
"""

from __future__ import annotations

from collections.abc import Iterable

import networkx as nx

from flowviz.ir.model import FlowEdge, FlowNode


class FlowGraph:
    """Read-only index over one flow's nodes and edges."""

    def __init__(self, nodes: Iterable[FlowNode], edges: Iterable[FlowEdge]) -> None:
        self.nodes: dict[str, FlowNode] = {}
        self.edges: list[FlowEdge] = list(edges)
        self.digraph: nx.MultiDiGraph = nx.MultiDiGraph()
        self._outgoing: dict[str, list[FlowEdge]] = {}
        self._incoming: dict[str, list[FlowEdge]] = {}
        self.dangling: list[FlowEdge] = []

        for node in nodes:
            self.nodes[node.id] = node
            self.digraph.add_node(node.id, data=node)

        for edge in self.edges:
            self._outgoing.setdefault(edge.source, []).append(edge)
            self._incoming.setdefault(edge.target, []).append(edge)
            if edge.source in self.nodes and edge.target in self.nodes:
                self.digraph.add_edge(edge.source, edge.target, key=edge.id, data=edge)
            else:
                self.dangling.append(edge)

    def node(self, node_id: str) -> FlowNode | None:
        return self.nodes.get(node_id)

    def outgoing(self, node_id: str) -> list[FlowEdge]:
        return self._outgoing.get(node_id, [])

    def incoming(self, node_id: str) -> list[FlowEdge]:
        return self._incoming.get(node_id, [])

    def primary_outgoing(self, node_id: str) -> list[FlowEdge]:
        """Outgoing connectors that are not fault paths."""
        return [e for e in self.outgoing(node_id) if not e.is_fault]

    def fault_outgoing(self, node_id: str) -> list[FlowEdge]:
        return [e for e in self.outgoing(node_id) if e.is_fault]

    def primary_incoming(self, node_id: str) -> list[FlowEdge]:
        return [e for e in self.incoming(node_id) if not e.is_fault]

    def node_count(self) -> int:
        return self.digraph.number_of_nodes()

    def edge_count(self) -> int:
        return len(self.edges)

    def component_count(self) -> int:
        if self.digraph.number_of_nodes() == 0:
            return 0
        return nx.number_weakly_connected_components(self.digraph)

    def reachable_from(self, node_id: str) -> set[str]:
        """Ids reachable from ``node_id`` over any resolved connector, itself included."""
        if node_id not in self.digraph:
            return set()
        return nx.descendants(self.digraph, node_id) | {node_id}
