"""Intermediate representation: flow records, graph index, and IR passes."""

from flowviz.ir.graph import FlowGraph
from flowviz.ir.model import (
    END_NODE_PREFIX,
    START_IMMEDIATE_END_ID,
    START_NODE_ID,
    FlowEdge,
    FlowMetadata,
    FlowNode,
    ParsedFlow,
)
from flowviz.ir.relations import normalize
from flowviz.ir.terminals import close

__all__ = [
    "END_NODE_PREFIX",
    "START_IMMEDIATE_END_ID",
    "START_NODE_ID",
    "FlowEdge",
    "FlowGraph",
    "FlowMetadata",
    "FlowNode",
    "ParsedFlow",
    "close",
    "normalize",
]
