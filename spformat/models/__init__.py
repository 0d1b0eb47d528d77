"""Data models for the SourcePawn formatter."""

from .batch import BatchReport, FileResult, FileStatus
from .options import FormattingOptions
from .preview import PreviewResult
from .syntax_error import SyntaxErrorRecord
from .syntax_node import Point, SyntaxNode, SyntaxTree

__all__ = [
    # Syntax tree models
    "Point",
    "SyntaxNode",
    "SyntaxTree",
    # Diagnostics
    "SyntaxErrorRecord",
    # Options
    "FormattingOptions",
    # Batch results
    "BatchReport",
    "FileResult",
    "FileStatus",
    # Live preview
    "PreviewResult",
]
