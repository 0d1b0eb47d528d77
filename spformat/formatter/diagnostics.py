"""
Syntax diagnostics.

Walks a syntax tree and extracts structured error records for error and
missing nodes, in document order.
"""

from typing import List

from spformat.models.syntax_error import SyntaxErrorRecord
from spformat.models.syntax_node import Point, SyntaxNode

CONTEXT_MARKER = ">>> "
CONTEXT_PADDING = "    "


def error_context(source: str, start: Point, end: Point) -> str:
    """
    Render the source lines around an error.

    One line before and one line after the affected range are included; the
    first affected line carries the marker.

    Args:
        source: Original source text
        start: Start of the affected range (0-based)
        end: End of the affected range (0-based)

    Returns:
        Context lines formatted as ``NNN| <marker><text>``
    """
    lines = source.split("\n")
    context_start = max(0, start.row - 1)
    context_end = min(len(lines) - 1, end.row + 1)

    context = []
    for index in range(context_start, context_end + 1):
        prefix = CONTEXT_MARKER if index == start.row else CONTEXT_PADDING
        line = lines[index].rstrip("\r")
        context.append(f"{index + 1:03d}| {prefix}{line}")

    return "\n".join(context)


class DiagnosticsCollector:
    """Collects syntax errors from a parsed tree."""

    def collect(self, root: SyntaxNode, source: str) -> List[SyntaxErrorRecord]:
        """
        Collect error and missing nodes depth-first.

        Args:
            root: Root node of the parsed tree
            source: Source text the tree was parsed from

        Returns:
            Error records in document order
        """
        errors: List[SyntaxErrorRecord] = []

        for node in root.walk():
            if node.is_error:
                errors.append(self._error_record(node, source))
            if node.is_missing:
                errors.append(self._missing_record(node, source))

        return errors

    def _error_record(self, node: SyntaxNode, source: str) -> SyntaxErrorRecord:
        return SyntaxErrorRecord(
            message=f"Syntax error at '{node.text}'",
            node_kind=node.kind,
            start_line=node.start_point.row + 1,
            start_column=node.start_point.column + 1,
            end_line=node.end_point.row + 1,
            end_column=node.end_point.column + 1,
            start_byte=node.start_byte,
            end_byte=node.end_byte,
            context=error_context(source, node.start_point, node.end_point),
        )

    def _missing_record(self, node: SyntaxNode, source: str) -> SyntaxErrorRecord:
        # Missing nodes are reported with a zero-width span at their start
        return SyntaxErrorRecord(
            message=f"Missing syntax element: expected '{node.kind}'",
            node_kind=node.kind,
            start_line=node.start_point.row + 1,
            start_column=node.start_point.column + 1,
            end_line=node.start_point.row + 1,
            end_column=node.start_point.column + 1,
            start_byte=node.start_byte,
            end_byte=node.end_byte,
            is_missing=True,
            context=error_context(source, node.start_point, node.start_point),
        )


def collect_errors(root: SyntaxNode, source: str) -> List[SyntaxErrorRecord]:
    """Collect syntax errors from ``root`` in document order."""
    return DiagnosticsCollector().collect(root, source)
