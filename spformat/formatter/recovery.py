"""
Recovery for misparsed constructs.

Statement fragments pasted without an enclosing function are often parsed
as function definitions: ``if(x){...}`` becomes a function named ``if`` and
``foo(a, b);`` becomes a function whose body is an expression statement.
These are detected structurally and rendered as what they actually are.
"""

import re
from enum import Enum
from typing import TYPE_CHECKING, Optional

from spformat.formatter.node_kinds import (
    CONTROL_KEYWORDS,
    NodeKind,
    is_comment,
)
from spformat.models.syntax_node import SyntaxNode

if TYPE_CHECKING:
    from spformat.formatter.renderer import Renderer

PREFIX_ERROR_TOKENS = ("++", "--", "!")

_SINGLE_IDENTIFIER = re.compile(r"^\w+\s*;?$")


class Misclassification(str, Enum):
    """Ways a statement can be misread as a function definition."""
    CONTROL_AS_FUNCTION = "control_as_function"
    CALL_AS_FUNCTION = "call_as_function"


class MisclassificationRecovery:
    """Detects and re-renders misclassified nodes."""

    def __init__(self, renderer: "Renderer"):
        self.renderer = renderer

    @property
    def normalizer(self):
        return self.renderer.normalizer

    def classify(self, node: SyntaxNode) -> Optional[Misclassification]:
        """
        Decide whether a function definition node is really something else.

        Args:
            node: Node to inspect

        Returns:
            The misclassification, or None for genuine function definitions
        """
        if node.kind != NodeKind.FUNCTION_DEFINITION:
            return None

        name = node.child_by_kind(NodeKind.IDENTIFIER)
        if name is not None and name.text.strip() in CONTROL_KEYWORDS:
            return Misclassification.CONTROL_AS_FUNCTION

        has_params = node.child_by_kind(NodeKind.PARAMETER_DECLARATIONS) is not None
        has_expression = node.child_by_kind(NodeKind.EXPRESSION_STATEMENT) is not None
        has_body = node.child_by_kind(NodeKind.BLOCK) is not None
        if has_params and has_expression and not has_body:
            return Misclassification.CALL_AS_FUNCTION

        return None

    def render_function_definition(self, node: SyntaxNode, indent_level: int) -> Optional[str]:
        """
        Render a misclassified function definition.

        Returns:
            Rendered text, or None when the node is a genuine function
        """
        misclassification = self.classify(node)
        if misclassification is None:
            return None

        if self.renderer.logger is not None:
            self.renderer.logger.debug(
                f"Recovering {misclassification.value} at line {node.start_point.row + 1}",
                extra={"misclassification": misclassification.value},
            )

        if misclassification is Misclassification.CONTROL_AS_FUNCTION:
            return self._render_control(node, indent_level)
        return self._render_call(node, indent_level)

    def _render_control(self, node: SyntaxNode, indent_level: int) -> str:
        keyword = node.child_by_kind(NodeKind.IDENTIFIER).text.strip()
        params = node.child_by_kind(NodeKind.PARAMETER_DECLARATIONS)
        expression = node.child_by_kind(NodeKind.EXPRESSION_STATEMENT)
        body = node.child_by_kind(NodeKind.BLOCK)

        condition = ""
        if params is not None and expression is not None:
            # The condition was split between the parameter list and the expression
            condition = params.text.strip() + expression.text.strip().rstrip(";")
        elif params is not None:
            separator = ", " if self.renderer.options.space_after_comma else ","
            parts = [
                self.renderer.render_inline(child)
                for child in params.children
                if child.kind not in ("(", ")", ",") and not is_comment(child.kind)
            ]
            condition = "(" + separator.join(part for part in parts if part) + ")"

        condition = self.normalizer.normalize_commas(condition)
        condition = self.normalizer.normalize(condition, comparisons=True)

        space = " " if self.renderer.options.space_before_open_paren else ""
        head = self.renderer.indent(indent_level) + keyword + (space + condition if condition else "")

        if body is None:
            return head
        return self.renderer.render_body(head, body, indent_level)

    def _render_call(self, node: SyntaxNode, indent_level: int) -> str:
        name = node.child_by_kind(NodeKind.IDENTIFIER)
        params = node.child_by_kind(NodeKind.PARAMETER_DECLARATIONS)
        expression = node.child_by_kind(NodeKind.EXPRESSION_STATEMENT)

        tail = expression.text.strip()
        had_terminator = tail.endswith(";")
        text = (name.text.strip() if name is not None else "") + params.text.strip() + tail.rstrip(";")

        text = self.normalizer.normalize(self.normalizer.normalize_commas(text))
        return self.renderer.indent(indent_level) + self.renderer.terminate(text, had_terminator)

    def render_source_file(self, node: SyntaxNode, indent_level: int) -> Optional[str]:
        """
        Rejoin a prefix operator or parenthesis split off by the parser.

        ``++i`` parses as an ERROR holding ``++`` followed by a declaration of
        ``i``; ``(a + b)`` can parse as an ERROR holding ``(`` followed by a
        global variable declaration.

        Returns:
            Rendered text, or None when the file has another shape
        """
        if len(node.children) != 2:
            return None

        error, declaration = node.children
        if not error.is_error:
            return None

        token = error.text.strip()
        if token in PREFIX_ERROR_TOKENS:
            if declaration.kind not in (
                NodeKind.GLOBAL_VARIABLE_DECLARATION,
                NodeKind.OLD_GLOBAL_VARIABLE_DECLARATION,
            ) or not _SINGLE_IDENTIFIER.match(declaration.text.strip()):
                return None
        elif token != "(" or declaration.kind != NodeKind.GLOBAL_VARIABLE_DECLARATION:
            return None

        rendered = token + self.renderer.render(declaration, 0).strip()
        return self.renderer.indent(indent_level) + self.normalizer.normalize(rendered)
