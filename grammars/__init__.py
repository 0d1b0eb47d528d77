"""
Grammar adapters for the formatter.

This package provides the syntax tree adapter interface, the grammar
registry, and the tree-sitter backed SourcePawn adapter.
"""

from grammars.base import SyntaxTreeAdapter
from grammars.manager import GrammarManager

__all__ = ['SyntaxTreeAdapter', 'GrammarManager']
