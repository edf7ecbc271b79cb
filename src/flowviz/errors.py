"""Errors raised by the Graph Builder.

Only the builder fails; the terminal, relation, and layout passes are total.
"""

from __future__ import annotations


class FlowError(ValueError):
    """Base class for flow input errors."""


class ParseError(FlowError):
    """Raised when the input is not well-formed XML."""

    def __init__(self, message: str, line: int | None = None, column: int | None = None) -> None:
        super().__init__(message)
        self.line = line
        self.column = column


class ValidationError(FlowError):
    """Raised when well-formed XML lacks the Flow root or its <start> element."""
