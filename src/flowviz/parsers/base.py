"""Base parser protocol."""

from __future__ import annotations

from typing import Protocol

from flowviz.ir.model import ParsedFlow


class Parser(Protocol):
    """Protocol that all flow document parsers must implement."""

    def parse(self, src: str) -> ParsedFlow:
        """Parse source text into a raw ParsedFlow."""
        ...
