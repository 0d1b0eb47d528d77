"""
Fragment formatting.

A fragment that does not parse on its own (a bare expression, a statement
list, a call argument) is wrapped into a synthetic context that makes it
parseable. The wrapper is formatted as a document and the fragment's part
is cut back out, preferably by locating the fragment's byte span in the
wrapper's tree and falling back to a line heuristic.
"""

import logging
import re
from typing import List, Optional, Tuple

from grammars.base import SyntaxTreeAdapter
from spformat.errors import FormatterError
from spformat.formatter.node_kinds import NodeKind
from spformat.formatter.renderer import Renderer
from spformat.models.syntax_node import SyntaxNode
from spformat.utils.logging import log_strategy_attempt

# (name, prefix, suffix); the fragment goes between prefix and suffix
TEMPLATES: Tuple[Tuple[str, str, str], ...] = (
    ("variable_initializer", "int dummy = ", ";"),
    ("function_statement", "void dummy() { ", "; }"),
    ("call_argument", "void dummy() { func(", "); }"),
)

# Lines of the wrapper itself, skipped by the line heuristic
WRAPPER_LINE_PREFIXES = ("void ", "{", "}", "int ", "if ")

_CONTROL_STRUCTURE = re.compile(r"^(if|for|while|switch)[\s(]")

_SEQUENCE_KINDS = (NodeKind.BLOCK, NodeKind.SOURCE_FILE, NodeKind.CALL_ARGUMENTS)


class FragmentFormatter:
    """Formats code fragments by wrapping them in a parseable context."""

    def __init__(
        self,
        adapter: SyntaxTreeAdapter,
        renderer: Renderer,
        logger: Optional[logging.LoggerAdapter] = None,
    ):
        self.adapter = adapter
        self.renderer = renderer
        self.logger = logger

    @property
    def options(self):
        return self.renderer.options

    def format(self, source: str) -> Optional[str]:
        """
        Format a fragment.

        Args:
            source: Fragment text

        Returns:
            Formatted fragment, or None when no wrapper produced a usable result

        Raises:
            GrammarError: If the grammar fails to produce a tree
            ResourceDisposedError: If the adapter has been closed
        """
        fragment = source.strip()
        if not fragment or _CONTROL_STRUCTURE.match(fragment):
            return None

        had_terminator = fragment.endswith(";")
        if had_terminator:
            fragment = fragment[:-1].rstrip()
            if not fragment:
                return None

        for name, prefix, suffix in TEMPLATES:
            strategy = f"fragment:{name}"
            try:
                result = self._format_wrapped(fragment, prefix, suffix)
            except FormatterError:
                raise
            except Exception as e:
                if self.logger is not None:
                    log_strategy_attempt(self.logger, strategy, False, e)
                continue

            if result:
                if self.logger is not None:
                    log_strategy_attempt(self.logger, strategy, True)
                if had_terminator:
                    return self.renderer.terminate(result, True)
                return result

            if self.logger is not None:
                log_strategy_attempt(self.logger, strategy, False)

        return None

    def _format_wrapped(self, fragment: str, prefix: str, suffix: str) -> Optional[str]:
        wrapped = prefix + fragment + suffix
        tree = self.adapter.parse(wrapped)
        if tree is None or tree.root.has_error:
            return None

        start = len(prefix.encode("utf-8"))
        end = start + len(fragment.encode("utf-8"))

        extracted = self._extract_span(tree.root, start, end)
        if extracted is not None:
            return extracted

        formatted = self.renderer.render_document(tree)
        return self.extract_from_lines(formatted)

    def _extract_span(self, root: SyntaxNode, start: int, end: int) -> Optional[str]:
        """Render the node (or run of sibling nodes) covering exactly [start, end)."""
        exact = self._find_exact(root, start, end)
        if exact is not None:
            return self._finish(self.renderer.render(exact, 0))

        found = self._find_sibling_run(root, start, end)
        if found is None:
            return None

        parent, run = found
        if parent.kind == NodeKind.CALL_ARGUMENTS:
            separator = ", " if self.options.space_after_comma else ","
            arguments = [self.renderer.render_inline(node) for node in run if node.kind != ","]
            return self._finish(separator.join(argument for argument in arguments if argument))

        text = self.renderer.eol.join(self.renderer.render_statements(run, 0))
        text = self._finish(text)
        if run[-1].end_byte > end and text.endswith(";"):
            # The last statement swallowed the wrapper's own terminator
            text = text[:-1].rstrip()
        return text

    def _finish(self, text: str) -> str:
        return self.renderer.normalizer.normalize(text).strip()

    @staticmethod
    def _find_exact(root: SyntaxNode, start: int, end: int) -> Optional[SyntaxNode]:
        # Pre-order walk: the first match is the outermost
        for node in root.walk():
            if node.start_byte == start and node.end_byte == end and node.is_named:
                return node
        return None

    @staticmethod
    def _find_sibling_run(
        root: SyntaxNode, start: int, end: int
    ) -> Optional[Tuple[SyntaxNode, List[SyntaxNode]]]:
        for node in root.walk():
            if node.kind not in _SEQUENCE_KINDS:
                continue

            children = list(node.children)
            first = next((i for i, child in enumerate(children) if child.start_byte == start), None)
            if first is None:
                continue

            for last in range(first, len(children)):
                # Allow the run to end on the wrapper's own ";"
                if children[last].end_byte in (end, end + 1):
                    return node, children[first:last + 1]
                if children[last].end_byte > end + 1:
                    break
        return None

    @staticmethod
    def extract_from_lines(formatted: str) -> Optional[str]:
        """
        Pull the fragment out of a formatted wrapper by inspecting its lines.

        Wrapper lines are skipped; the right-hand side of an assignment or
        the first remaining line is taken, without a trailing ``;``.
        """
        for line in re.split(r"\r\n|\r|\n", formatted):
            trimmed = line.strip()
            if not trimmed or trimmed.startswith(WRAPPER_LINE_PREFIXES):
                continue

            if " = " in trimmed:
                value = trimmed.split(" = ", 1)[1].strip()
                return value[:-1].rstrip() if value.endswith(";") else value

            return trimmed[:-1].rstrip() if trimmed.endswith(";") else trimmed

        return None
