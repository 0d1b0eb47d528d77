"""
SourcePawn syntax tree adapter.

Wraps tree-sitter with the tree-sitter-sourcepawn grammar and converts the
native tree into the immutable SyntaxNode model, so no tree-sitter object
outlives the parse call.
"""

import ctypes
import importlib
import logging
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

import tree_sitter
import yaml

from grammars.base import SyntaxTreeAdapter
from spformat.config import settings
from spformat.errors import GrammarError
from spformat.models.syntax_node import Point, SyntaxNode, SyntaxTree

logger = logging.getLogger(__name__)

DEFAULT_SYMBOL = "tree_sitter_sourcepawn"
BINDING_MODULE = "tree_sitter_sourcepawn"


@lru_cache(maxsize=None)
def _load_shared_library(path: str, symbol: str) -> tree_sitter.Language:
    """Load a grammar compiled by build_grammars.py through its C entry point."""
    try:
        library = ctypes.cdll.LoadLibrary(path)
        language_fn = getattr(library, symbol)
    except (OSError, AttributeError) as e:
        raise GrammarError(f"Failed to load grammar symbol '{symbol}' from {path}: {e}") from e

    language_fn.restype = ctypes.c_void_p
    pointer = language_fn()

    capsule_new = ctypes.pythonapi.PyCapsule_New
    capsule_new.restype = ctypes.py_object
    capsule_new.argtypes = (ctypes.c_void_p, ctypes.c_char_p, ctypes.c_void_p)
    capsule = capsule_new(pointer, b"tree_sitter.Language", None)

    return tree_sitter.Language(capsule)


def load_language(
    library_path: Optional[Path] = None,
    symbol: str = DEFAULT_SYMBOL,
) -> tree_sitter.Language:
    """
    Load the SourcePawn tree-sitter language.

    The shared library written by build_grammars.py is preferred; an
    installed ``tree_sitter_sourcepawn`` binding is used when no library
    has been built.

    Args:
        library_path: Compiled grammar library. Defaults to the configured path.
        symbol: Exported language function name

    Returns:
        tree_sitter.Language

    Raises:
        GrammarError: If neither source of the grammar is available
    """
    lib_path = Path(library_path) if library_path else settings.grammar_library_path

    if lib_path.exists():
        return _load_shared_library(str(lib_path.resolve()), symbol)

    try:
        binding = importlib.import_module(BINDING_MODULE)
    except ImportError:
        raise GrammarError(
            f"Tree-sitter SourcePawn grammar not found at {lib_path}. "
            "Please run build_grammars.py first."
        ) from None

    return tree_sitter.Language(binding.language())


class _PositionMap:
    """Maps tree-sitter byte columns to character columns."""

    def __init__(self, source: str, source_bytes: bytes):
        self._source_bytes = source_bytes
        self._ascii = len(source_bytes) == len(source)
        self._line_starts: List[int] = [0]
        if not self._ascii:
            for index, byte in enumerate(source_bytes):
                if byte == 0x0A:
                    self._line_starts.append(index + 1)

    def point(self, ts_point) -> Point:
        row, column = ts_point
        if self._ascii:
            return Point(row=row, column=column)
        line_start = self._line_starts[row] if row < len(self._line_starts) else self._line_starts[-1]
        prefix = self._source_bytes[line_start:line_start + column]
        return Point(row=row, column=len(prefix.decode("utf-8", errors="replace")))


class SourcePawnParser(SyntaxTreeAdapter):
    """SourcePawn parser backed by tree-sitter-sourcepawn."""

    def __init__(
        self,
        library_path: Optional[Path] = None,
        config_path: Optional[Path] = None,
    ):
        """
        Initialize the SourcePawn parser.

        Args:
            library_path: Compiled grammar library. If None, uses settings.
            config_path: Path to config.yaml file. If None, uses default location.

        Raises:
            GrammarError: If the grammar cannot be loaded
        """
        super().__init__()

        if config_path is None:
            config_path = Path(__file__).parent / "config.yaml"

        with open(config_path, 'r', encoding="utf-8") as f:
            self._config = yaml.safe_load(f) or {}

        symbol = self._config.get("grammar", {}).get("symbol", DEFAULT_SYMBOL)

        try:
            language = load_language(library_path, symbol)
            self._parser: Optional[tree_sitter.Parser] = tree_sitter.Parser(language)
        except GrammarError:
            raise
        except Exception as e:
            raise GrammarError(
                f"Failed to initialize SourcePawn parser: {e}"
            ) from e

        logger.debug("SourcePawn parser initialized")

    @property
    def language_name(self) -> str:
        """Return the language name."""
        return "sourcepawn"

    @property
    def file_extensions(self) -> List[str]:
        """Return supported file extensions."""
        return self._config.get('file_extensions', ['.sp', '.inc'])

    def _parse(self, source: str) -> SyntaxTree:
        source_bytes = source.encode("utf-8")
        try:
            tree = self._parser.parse(source_bytes)
        except Exception as e:
            raise GrammarError(f"Failed to parse SourcePawn code: {e}") from e

        if tree is None or tree.root_node is None:
            raise GrammarError("Unable to parse source code")

        positions = _PositionMap(source, source_bytes)
        root = self._convert_node(tree.root_node, source_bytes, positions)
        del tree
        return SyntaxTree(root=root, source=source)

    def _convert_node(
        self,
        ts_node: tree_sitter.Node,
        source_bytes: bytes,
        positions: _PositionMap,
    ) -> SyntaxNode:
        """
        Convert a tree-sitter Node to a SyntaxNode.

        Args:
            ts_node: tree-sitter Node
            source_bytes: UTF-8 encoded source the tree was parsed from
            positions: Byte to character column mapping

        Returns:
            SyntaxNode model instance
        """
        children = tuple(
            self._convert_node(child, source_bytes, positions)
            for child in ts_node.children
        )

        return SyntaxNode(
            kind=ts_node.type,
            text=source_bytes[ts_node.start_byte:ts_node.end_byte].decode("utf-8", errors="replace"),
            children=children,
            is_named=ts_node.is_named,
            is_error=ts_node.type == "ERROR",
            is_missing=ts_node.is_missing,
            has_error=ts_node.has_error,
            start_point=positions.point(ts_node.start_point),
            end_point=positions.point(ts_node.end_point),
            start_byte=ts_node.start_byte,
            end_byte=ts_node.end_byte,
        )

    def _release(self) -> None:
        self._parser = None
        logger.debug("SourcePawn parser released")
