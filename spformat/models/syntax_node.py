"""Concrete syntax tree data models."""

from typing import Iterator, Optional, Tuple

from pydantic import BaseModel, ConfigDict


class Point(BaseModel):
    """Zero-based (row, column) position in the source text."""

    model_config = ConfigDict(frozen=True)

    row: int
    column: int


class SyntaxNode(BaseModel):
    """Immutable concrete syntax tree node."""

    model_config = ConfigDict(frozen=True)

    kind: str
    text: str
    children: Tuple['SyntaxNode', ...] = ()
    is_named: bool = True
    is_error: bool = False
    is_missing: bool = False
    has_error: bool = False
    start_point: Point
    end_point: Point
    start_byte: int
    end_byte: int

    def child_by_kind(self, *kinds: str) -> Optional['SyntaxNode']:
        """Return the first direct child whose kind is one of ``kinds``."""
        for child in self.children:
            if child.kind in kinds:
                return child
        return None

    @property
    def is_single_line(self) -> bool:
        return '\n' not in self.text and '\r' not in self.text

    def walk(self) -> Iterator['SyntaxNode']:
        """Yield this node and all descendants in document order."""
        yield self
        for child in self.children:
            yield from child.walk()


class SyntaxTree(BaseModel):
    """A parsed source file: the root node plus the text it was parsed from."""

    model_config = ConfigDict(frozen=True)

    root: SyntaxNode
    source: str


# Enable forward references for recursive model
SyntaxNode.model_rebuild()
