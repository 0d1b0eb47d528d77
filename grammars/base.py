"""
Base interface for syntax tree adapters.

This module defines the abstract base class that wraps a grammar-based parser
and exposes the immutable SyntaxTree model consumed by the formatter.
"""

import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Iterator, List, Optional

from spformat.errors import ResourceDisposedError
from spformat.models.syntax_node import SyntaxTree


class SyntaxTreeAdapter(ABC):
    """Base interface for grammar-backed parsers."""

    def __init__(self):
        self._lock = threading.Lock()
        self._closed = False

    @property
    @abstractmethod
    def language_name(self) -> str:
        """Return the language name (e.g., 'sourcepawn')."""
        pass

    @property
    @abstractmethod
    def file_extensions(self) -> List[str]:
        """Return supported file extensions (e.g., ['.sp', '.inc'])."""
        pass

    @abstractmethod
    def _parse(self, source: str) -> SyntaxTree:
        """
        Parse non-empty source text.

        Called with the parser lock held.

        Raises:
            GrammarError: If the grammar fails to produce a tree
        """
        pass

    def _release(self) -> None:
        """Free grammar resources. Called once, from close()."""

    def parse(self, source: Optional[str]) -> Optional[SyntaxTree]:
        """
        Parse source text into a syntax tree.

        A tree is returned even when the grammar had to recover from bad
        input; such trees carry error or missing nodes.

        Args:
            source: Source text

        Returns:
            SyntaxTree, or None for empty input

        Raises:
            GrammarError: If the grammar fails to produce a tree
            ResourceDisposedError: If the adapter has been closed
        """
        with self._acquire():
            if not source:
                return None
            return self._parse(source)

    @contextmanager
    def _acquire(self) -> Iterator[None]:
        """Hold the parser exclusively; a parser must not run on two threads at once."""
        with self._lock:
            if self._closed:
                raise ResourceDisposedError(type(self).__name__)
            yield

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Release grammar resources. Safe to call more than once."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._release()

    def __enter__(self) -> "SyntaxTreeAdapter":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
