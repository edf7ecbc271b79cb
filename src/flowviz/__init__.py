"""flowviz: Salesforce Flow XML to a positioned node/edge graph."""

from flowviz.analysis import ComplexityMetrics, calculate_complexity
from flowviz.config import CARD_LAYOUT_CONFIG, DEFAULT_LAYOUT_CONFIG, LayoutConfig
from flowviz.errors import FlowError, ParseError, ValidationError
from flowviz.ir import FlowEdge, FlowMetadata, FlowNode, ParsedFlow, close, normalize
from flowviz.layout import find_merge, layout, layout_with_fault_lanes
from flowviz.parsers import build, get_flow_label, is_valid_flow_xml
from flowviz.types import EdgeType, NodeType


def parse_flow(src: str, auto_layout: bool = True, config: LayoutConfig = DEFAULT_LAYOUT_CONFIG) -> ParsedFlow:
    """Run the full pipeline on a flow document.

    Args:
        src: Flow metadata XML.
        auto_layout: Assign x/y to every node; False leaves them as None.
        config: Layout geometry (DEFAULT_LAYOUT_CONFIG or CARD_LAYOUT_CONFIG).

    Returns:
        The closed, normalized (and optionally positioned) flow.

    Raises:
        ParseError: If the input is not well-formed XML.
        ValidationError: If the Flow root or its <start> element is missing.
    """
    raw = build(src)
    nodes, edges = close(raw.nodes, raw.edges)
    nodes = normalize(nodes, edges)
    if auto_layout:
        nodes = layout(nodes, edges, config)
    return ParsedFlow(nodes=nodes, edges=edges, metadata=raw.metadata)


__all__ = [
    "CARD_LAYOUT_CONFIG",
    "DEFAULT_LAYOUT_CONFIG",
    "ComplexityMetrics",
    "EdgeType",
    "FlowEdge",
    "FlowError",
    "FlowMetadata",
    "FlowNode",
    "LayoutConfig",
    "NodeType",
    "ParseError",
    "ParsedFlow",
    "ValidationError",
    "build",
    "calculate_complexity",
    "close",
    "find_merge",
    "get_flow_label",
    "is_valid_flow_xml",
    "layout",
    "layout_with_fault_lanes",
    "normalize",
    "parse_flow",
]
