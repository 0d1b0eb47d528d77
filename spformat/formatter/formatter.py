"""
SourcePawn formatter.

Parses source text, renders well-formed trees directly and runs an ordered
chain of recovery strategies on malformed ones. When every strategy fails
the syntax errors are reported through FormattingError.
"""

import logging
from typing import Callable, List, Optional, Tuple

from grammars.base import SyntaxTreeAdapter
from spformat.errors import FormattingError, GrammarError, ResourceDisposedError
from spformat.formatter.diagnostics import DiagnosticsCollector
from spformat.formatter.fragments import FragmentFormatter
from spformat.formatter.node_kinds import (
    NodeKind,
    is_comment,
    is_expression_like,
    is_statement_like,
)
from spformat.formatter.renderer import Renderer
from spformat.formatter.spacing import OperatorSpacingNormalizer
from spformat.models.options import FormattingOptions
from spformat.models.syntax_error import SyntaxErrorRecord
from spformat.models.syntax_node import SyntaxTree
from spformat.utils.logging import get_logger, log_strategy_attempt

Strategy = Callable[[str, SyntaxTree], Optional[str]]


class SourcePawnFormatter:
    """
    Formats SourcePawn source code.

    One instance owns one parser and is not reentrant; use one instance per
    thread. Call close() (or use it as a context manager) to release the
    parser.

    Example:
        with SourcePawnFormatter() as formatter:
            print(formatter.format("public void OnPluginStart(){PrintToServer(\\"hi\\");}"))
    """

    def __init__(
        self,
        options: Optional[FormattingOptions] = None,
        adapter: Optional[SyntaxTreeAdapter] = None,
        logger: Optional[logging.LoggerAdapter] = None,
    ):
        """
        Initialize the formatter.

        Args:
            options: Formatting options. Defaults are used if omitted.
            adapter: Syntax tree adapter. A SourcePawnParser is created if omitted.
            logger: Logger for strategy tracing

        Raises:
            GrammarError: If the default parser cannot load the grammar
        """
        if adapter is None:
            from grammars.sourcepawn import SourcePawnParser
            adapter = SourcePawnParser()

        self.options = options or FormattingOptions.default()
        self.adapter = adapter
        self.logger = logger or get_logger(__name__)
        self.normalizer = OperatorSpacingNormalizer(self.options)
        self.renderer = Renderer(self.options, self.normalizer, self.logger)
        self.fragments = FragmentFormatter(self.adapter, self.renderer, self.logger)
        self.diagnostics = DiagnosticsCollector()
        self._closed = False

        self._strategies: List[Tuple[str, Strategy]] = [
            ("misclassification_recovery", self._recover_malformed),
            ("fragment", self._format_fragment),
        ]

    def format(self, source: Optional[str]) -> str:
        """
        Format source code.

        Args:
            source: Source text

        Returns:
            Formatted source text ("" for empty or whitespace-only input)

        Raises:
            FormattingError: If the source cannot be formatted
            GrammarError: If the grammar fails to produce a tree
            ResourceDisposedError: If the formatter has been closed
        """
        self._ensure_open()
        if source is None or not source.strip():
            return ""

        tree = self.adapter.parse(source)
        if tree is None:
            return ""

        if not tree.root.has_error:
            return self._apply_tail_policy(source, tree, self.renderer.render_document(tree))

        self.logger.debug("Source has syntax errors, trying recovery strategies")

        for name, strategy in self._strategies:
            try:
                result = strategy(source, tree)
            except (GrammarError, ResourceDisposedError):
                raise
            except Exception as e:
                log_strategy_attempt(self.logger, name, False, e)
                continue

            if result and result.strip():
                log_strategy_attempt(self.logger, name, True)
                return result
            log_strategy_attempt(self.logger, name, False)

        errors = self.diagnostics.collect(tree.root, source)
        raise FormattingError(errors, line_ending=self.options.line_ending)

    def _recover_malformed(self, source: str, tree: SyntaxTree) -> Optional[str]:
        text = self.renderer.render_document(tree)
        if not text.strip():
            return None
        return self._apply_tail_policy(source, tree, text)

    def _format_fragment(self, source: str, tree: SyntaxTree) -> Optional[str]:
        return self.fragments.format(source)

    def _apply_tail_policy(self, source: str, tree: SyntaxTree, formatted: str) -> str:
        """Drop the terminator added to an expression typed without one."""
        if source.strip().endswith(";") or not formatted.endswith(";"):
            return formatted
        if not self._is_expression_only(tree):
            return formatted
        return formatted[:-1]

    def _is_expression_only(self, tree: SyntaxTree) -> bool:
        found_expression = False

        for child in tree.root.children:
            kind = child.kind
            if is_comment(kind) or not child.text.strip():
                continue
            if kind == NodeKind.FUNCTION_DEFINITION:
                # A call misread as a function counts as an expression
                if self.renderer.recovery.classify(child) is None:
                    return False
                found_expression = True
                continue
            if is_statement_like(kind):
                return False
            if child.is_error:
                continue
            if not is_expression_like(kind):
                return False
            found_expression = True

        return found_expression

    def get_syntax_errors(self, source: Optional[str]) -> List[SyntaxErrorRecord]:
        """
        Collect syntax errors without formatting.

        Args:
            source: Source text

        Returns:
            Syntax errors in document order (empty for valid or empty input)
        """
        self._ensure_open()
        if source is None or not source.strip():
            return []

        tree = self.adapter.parse(source)
        if tree is None or not tree.root.has_error:
            return []
        return self.diagnostics.collect(tree.root, source)

    def is_valid_syntax(self, source: Optional[str]) -> bool:
        return not self.get_syntax_errors(source)

    def _ensure_open(self) -> None:
        if self._closed:
            raise ResourceDisposedError(type(self).__name__)

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Release the parser. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        self.adapter.close()

    def __enter__(self) -> "SourcePawnFormatter":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
