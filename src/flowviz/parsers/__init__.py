"""Parser registry and the Graph Builder entry points."""

from __future__ import annotations

from flowviz.errors import FlowError
from flowviz.ir.model import ParsedFlow
from flowviz.parsers.base import Parser
from flowviz.parsers.flow_xml import FlowXmlParser

_PARSERS: dict[str, type[Parser]] = {
    "xml": FlowXmlParser,
}


def build(src: str, fmt: str = "xml") -> ParsedFlow:
    """Parse a flow document into raw nodes, edges, and metadata.

    Raises:
        ParseError: If the document is not well-formed.
        ValidationError: If the Flow root or its <start> element is missing.
        ValueError: If ``fmt`` names no registered parser.
    """
    parser_cls = _PARSERS.get(fmt)
    if parser_cls is None:
        raise ValueError(f"Unsupported flow format: {fmt}")
    return parser_cls().parse(src)


def is_valid_flow_xml(src: str) -> bool:
    """True when ``src`` would build without error."""
    try:
        build(src)
    except FlowError:
        return False
    return True


def get_flow_label(src: str) -> str | None:
    """Flow label from the document, or None when unavailable."""
    try:
        return build(src).metadata.label or None
    except FlowError:
        return None


__all__ = ["FlowXmlParser", "Parser", "build", "get_flow_label", "is_valid_flow_xml"]
