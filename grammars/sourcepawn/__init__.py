"""
SourcePawn grammar adapter.

This package wraps tree-sitter-sourcepawn behind the SyntaxTreeAdapter interface.
"""

from grammars.sourcepawn.parser import SourcePawnParser, load_language

__all__ = ['SourcePawnParser', 'load_language']
