"""
SourcePawn source code formatter.

A tree-sitter based formatter for SourcePawn, with recovery for malformed
input, fragment formatting for live preview and batch file processing.
"""

from spformat.errors import FormatterError, FormattingError, GrammarError, ResourceDisposedError
from spformat.formatter import SourcePawnFormatter
from spformat.models import FormattingOptions, SyntaxErrorRecord

__version__ = "1.0.0"

__all__ = [
    "SourcePawnFormatter",
    "FormattingOptions",
    "SyntaxErrorRecord",
    "FormatterError",
    "FormattingError",
    "GrammarError",
    "ResourceDisposedError",
]
