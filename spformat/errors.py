"""
Error taxonomy for the formatter.

- GrammarError: the grammar could not produce any tree (fatal for the call)
- FormattingError: every formatting strategy was exhausted
- ResourceDisposedError: an operation was attempted after close()
"""

from typing import List, Optional

from spformat.models.syntax_error import SyntaxErrorRecord


class FormatterError(Exception):
    """Base class for formatter errors."""
    pass


class GrammarError(FormatterError):
    """Raised when the grammar cannot be loaded or fails to produce a tree."""
    pass


class FormattingError(FormatterError):
    """Raised when no formatting strategy could reconstruct the input."""

    def __init__(
        self,
        errors: Optional[List[SyntaxErrorRecord]] = None,
        message: Optional[str] = None,
        line_ending: str = "\n",
    ):
        self.errors: List[SyntaxErrorRecord] = list(errors or [])
        if message is None:
            message = self.build_report(self.errors, line_ending)
        super().__init__(message)

    @staticmethod
    def build_report(errors: List[SyntaxErrorRecord], line_ending: str = "\n") -> str:
        """Join the detailed description of every error into one report."""
        if not errors:
            return "Unable to format source code"
        separator = line_ending * 2
        details = separator.join(error.detailed_description() for error in errors)
        return f"Source code contains syntax errors:{separator}{details}"


class ResourceDisposedError(FormatterError, RuntimeError):
    """Raised when a closed formatter or parser is used."""

    def __init__(self, resource_name: str):
        self.resource_name = resource_name
        super().__init__(f"{resource_name} has been closed and cannot be used")
