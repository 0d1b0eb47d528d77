"""
CST renderer.

Converts a SyntaxNode tree into formatted SourcePawn text. Rendering
dispatches on ``node.kind`` through a table built from NodeKind; kinds
without a rule fall back to a generic token-joining rule.

Every rule takes ``(node, indent_level)`` and returns text whose first line
is indented at ``indent_level``. Expressions are rendered at level 0 and
placed by the statement that owns them.
"""

import logging
import re
from enum import Enum
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from pydantic import BaseModel, ConfigDict

from spformat.formatter.node_kinds import (
    BARE_STATEMENT_KINDS,
    BINARY_OPERATOR_TOKENS,
    COMMENT_KINDS,
    CONDITIONAL_DIRECTIVE_KINDS,
    DECLARATION_STATEMENT_KINDS,
    INCLUDE_KINDS,
    TOP_LEVEL_DECLARATION_KINDS,
    NodeKind,
    is_comment,
    is_preprocessor,
)
from spformat.formatter.recovery import MisclassificationRecovery
from spformat.formatter.spacing import OperatorSpacingNormalizer
from spformat.models.options import FormattingOptions
from spformat.models.syntax_node import SyntaxNode, SyntaxTree

RenderRule = Callable[[SyntaxNode, int], str]
InlineRule = Callable[[SyntaxNode], str]

# Split operator tokens that are fused back together when joining
FUSED_PAIRS = frozenset({
    ("=", "="), ("!", "="), ("<", "="), (">", "="),
    ("+", "="), ("-", "="), ("*", "="), ("/", "="), ("%", "="),
    ("&", "&"), ("|", "|"), ("&", "="), ("|", "="), ("^", "="),
    ("<", "<"), (">", ">"), ("+", "+"), ("-", "-"),
})

UNARY_PREFIX_TOKENS = frozenset({"!", "-", "+", "~", "++", "--"})
PAREN_KEYWORDS = frozenset({"if", "for", "while", "switch"})
SPACED_KEYWORDS = frozenset({"return", "case", "else", "do", "new", "delete"})

_LINE_BREAK = re.compile(r"\r\n|\r|\n")
_WHITESPACE = re.compile(r"\s+")
_INCLUDE_DIRECTIVE = re.compile(r"^#\s*(include|tryinclude)\s*([<\"])")
_CONDITIONAL_DIRECTIVE = re.compile(r"^#\s*(if|ifdef|ifndef|elseif|else|endif)\b")

# Kinds whose children are rendered as a sequence of lines rather than flattened
SEQUENCE_KINDS = frozenset({
    NodeKind.SOURCE_FILE.value,
    NodeKind.BLOCK.value,
    NodeKind.SWITCH_CASE.value,
    NodeKind.SWITCH_DEFAULT_CASE.value,
})

# Control structures whose parenthesized head is flattened onto one line
HEADED_KINDS = frozenset({
    NodeKind.CONDITION_STATEMENT.value,
    NodeKind.FOR_STATEMENT.value,
    NodeKind.WHILE_STATEMENT.value,
    NodeKind.SWITCH_STATEMENT.value,
})


class Section(str, Enum):
    """Top-level output sections, in emission order."""
    PREPROCESSOR = "preprocessor"
    DECLARATIONS = "declarations"
    OTHER = "other"
    FUNCTIONS = "functions"


SECTION_ORDER = (Section.PREPROCESSOR, Section.DECLARATIONS, Section.OTHER, Section.FUNCTIONS)


class TopLevelEntry(BaseModel):
    """One rendered top-level item with the comments that travel with it."""

    model_config = ConfigDict(frozen=True)

    section: Section
    text: str
    blank_lines_before: int = 0
    is_include: bool = False
    sort_key: str = ""


def _has_terminator(children: Sequence[SyntaxNode]) -> bool:
    return any(child.kind == ";" and not child.is_missing for child in children)


def _ends_operand(token: Optional[str]) -> bool:
    if not token:
        return False
    last = token[-1]
    return last.isalnum() or last in "_)]\"'"


class Renderer:
    """Renders syntax trees according to a set of formatting options."""

    def __init__(
        self,
        options: FormattingOptions,
        normalizer: Optional[OperatorSpacingNormalizer] = None,
        logger: Optional[logging.LoggerAdapter] = None,
    ):
        """
        Initialize the renderer.

        Args:
            options: Formatting options for this session
            normalizer: Operator spacing pass. Built from options if omitted.
            logger: Optional logger for tracing rule selection and recovery
        """
        self.options = options
        self.normalizer = normalizer or OperatorSpacingNormalizer(options)
        self.logger = logger
        self.recovery = MisclassificationRecovery(self)
        self._rules: Dict[str, RenderRule] = self._build_rules()
        self._flattened_kinds = frozenset(
            kind for kind in self._rules
            if kind not in SEQUENCE_KINDS and not is_comment(kind) and not is_preprocessor(kind)
        )

    @property
    def eol(self) -> str:
        return self.options.line_ending

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def _build_rules(self) -> Dict[str, RenderRule]:
        rules: Dict[str, RenderRule] = {
            NodeKind.SOURCE_FILE: self._render_source_file,
            NodeKind.FUNCTION_DEFINITION: self._render_function_definition,
            NodeKind.FUNCTION_DECLARATION: self._render_function_declaration,
            NodeKind.NATIVE_DECLARATION: self._render_function_declaration,
            NodeKind.BLOCK: self._render_block,
            NodeKind.EXPRESSION_STATEMENT: self._render_expression_statement,
            NodeKind.ASSIGNMENT_STATEMENT: self._render_expression_statement,
            NodeKind.CONDITION_STATEMENT: self._render_condition,
            NodeKind.FOR_STATEMENT: self._render_for,
            NodeKind.WHILE_STATEMENT: self._render_while,
            NodeKind.DO_WHILE_STATEMENT: self._render_do_while,
            NodeKind.SWITCH_STATEMENT: self._render_switch,
            NodeKind.SWITCH_CASE: self._render_switch_case,
            NodeKind.SWITCH_DEFAULT_CASE: self._render_switch_case,
            NodeKind.RETURN_STATEMENT: self._render_return,
            NodeKind.BREAK_STATEMENT: self._render_jump,
            NodeKind.CONTINUE_STATEMENT: self._render_jump,
        }

        for kind in DECLARATION_STATEMENT_KINDS:
            rules[kind] = self._render_declaration
        for kind in COMMENT_KINDS:
            rules[kind] = self._render_comment
        for kind in NodeKind:
            if is_preprocessor(kind.value):
                rules[kind] = self._render_preprocessor

        inline_rules: Dict[str, InlineRule] = {
            NodeKind.PARAMETER_DECLARATIONS: self._inline_parameters,
            NodeKind.PARAMETER_DECLARATION: self._inline_parameter,
            NodeKind.CALL_EXPRESSION: self._inline_concatenated,
            NodeKind.CALL_ARGUMENTS: self._inline_arguments,
            NodeKind.VARIABLE_DECLARATION: self._inline_declarator,
            NodeKind.OLD_VARIABLE_DECLARATION: self._inline_declarator,
            NodeKind.ASSIGNMENT_EXPRESSION: self._inline_binary,
            NodeKind.BINARY_EXPRESSION: self._inline_binary,
            NodeKind.UNARY_EXPRESSION: self._inline_concatenated,
            NodeKind.UPDATE_EXPRESSION: self._inline_concatenated,
            NodeKind.FIELD_ACCESS: self._inline_concatenated,
            NodeKind.PARENTHESIZED_EXPRESSION: self._inline_concatenated,
            NodeKind.TERNARY_EXPRESSION: self._inline_ternary,
            NodeKind.CONDITIONAL_EXPRESSION: self._inline_ternary,
            NodeKind.ARRAY_INDEXED_ACCESS: self._inline_brackets,
            NodeKind.ARRAY_ACCESS: self._inline_brackets,
            NodeKind.FIXED_DIMENSION: self._inline_brackets,
            NodeKind.DIMENSION: self._inline_brackets,
            NodeKind.TYPE: self._inline_joined,
        }
        for kind in (
            NodeKind.IDENTIFIER, NodeKind.BUILTIN_TYPE, NodeKind.VISIBILITY,
            NodeKind.FUNCTION_VISIBILITY, NodeKind.STRING_LITERAL,
            NodeKind.CHARACTER_LITERAL, NodeKind.CHAR_LITERAL, NodeKind.NUMBER_LITERAL,
            NodeKind.INT_LITERAL, NodeKind.FLOAT_LITERAL, NodeKind.BOOL_LITERAL,
        ):
            inline_rules[kind] = self._inline_leaf

        for kind, rule in inline_rules.items():
            rules[kind] = self._line_rule(rule)

        return {NodeKind(kind).value: rule for kind, rule in rules.items()}

    def _line_rule(self, rule: InlineRule) -> RenderRule:
        def render_line(node: SyntaxNode, indent_level: int) -> str:
            text = rule(node)
            return self.indent(indent_level) + text if text else text
        return render_line

    def render(self, node: SyntaxNode, indent_level: int = 0) -> str:
        """
        Render a node.

        Args:
            node: Node to render
            indent_level: Nesting level of the node's first line

        Returns:
            Formatted text (may span several lines)
        """
        if "//" in node.text and self._code_after_line_comment(self._flattened_children(node)):
            # Joining would pull the following code into the comment
            return self._render_verbatim(node, indent_level)

        rule = self._rules.get(node.kind)
        if rule is None:
            return self._render_generic(node, indent_level)
        return rule(node, indent_level)

    def _flattened_children(self, node: SyntaxNode) -> Sequence[SyntaxNode]:
        """Children the node's rule joins into a single line."""
        kind = node.kind
        children = node.children

        if kind == NodeKind.FUNCTION_DEFINITION:
            return [child for child in children if child.kind != NodeKind.BLOCK]
        if kind == NodeKind.DO_WHILE_STATEMENT:
            index = next((i for i, child in enumerate(children) if child.kind == "while"), len(children))
            return children[index:]
        if kind in HEADED_KINDS:
            close_index = next((i for i, child in enumerate(children) if child.kind == ")"), None)
            return children[:close_index + 1] if close_index is not None else ()
        if kind in self._flattened_kinds:
            return children
        return ()

    @staticmethod
    def _code_after_line_comment(nodes: Sequence[SyntaxNode]) -> bool:
        """True when a ``//`` comment among ``nodes`` is followed by more code."""
        after_comment = False
        for top in nodes:
            for node in top.walk():
                if is_comment(node.kind):
                    after_comment = after_comment or node.text.lstrip().startswith("//")
                elif after_comment and not node.children and node.text.strip():
                    return True
        return False

    def _render_verbatim(self, node: SyntaxNode, indent_level: int) -> str:
        """Original text with only the first line re-indented."""
        lines = _LINE_BREAK.split(node.text.strip())
        lines[0] = self.indent(indent_level) + lines[0].strip()
        return self.eol.join(line.rstrip() for line in lines)

    def render_inline(self, node: SyntaxNode) -> str:
        return self.render(node, 0)

    def render_document(self, tree: SyntaxTree) -> str:
        """
        Render a whole parsed file.

        Applies the operator spacing post-pass, trims trailing whitespace and
        caps runs of blank lines.

        Args:
            tree: Parsed source file

        Returns:
            Formatted source text without a trailing line break
        """
        text = self.render(tree.root, 0)
        text = self.normalizer.normalize(text)

        lines = [line.rstrip() for line in _LINE_BREAK.split(text)]
        while lines and not lines[0]:
            lines.pop(0)
        while lines and not lines[-1]:
            lines.pop()

        return self.collapse_blank_lines(self.eol.join(lines))

    # ------------------------------------------------------------------
    # Shared helpers
    # ------------------------------------------------------------------

    def indent(self, level: int) -> str:
        return self.options.indent_string * level

    def terminate(self, text: str, had_terminator: bool) -> str:
        """
        Apply the semicolon policy to a statement.

        A statement that had ``;`` keeps it unless semicolons are optional
        and optional ones are removed; a statement without one gets it when
        semicolons are required.
        """
        text = text.rstrip()
        if text.endswith(";"):
            text = text[:-1].rstrip()
            had_terminator = True

        if had_terminator:
            keep = self.options.require_semicolons or not self.options.remove_optional_semicolons
        else:
            keep = self.options.require_semicolons

        return text + ";" if keep else text

    def collapse_blank_lines(self, text: str) -> str:
        """Cap runs of blank lines at max_consecutive_empty_lines."""
        limit = self.options.max_consecutive_empty_lines
        result: List[str] = []
        consecutive_empty = 0

        for line in _LINE_BREAK.split(text):
            if not line.strip():
                consecutive_empty += 1
                if consecutive_empty <= limit:
                    result.append("")
            else:
                consecutive_empty = 0
                result.append(line)

        return self.eol.join(result)

    def join_tokens(self, parts: Sequence[str]) -> str:
        """
        Join rendered tokens with heuristic spacing.

        No space inside brackets and parentheses, around ``.``, before ``;``
        and ``,``, or between a unary operator and its operand; split
        multi-character operators are fused; ternary ``?`` and ``:`` get a
        space on both sides.
        """
        parts = [part for part in parts if part]
        if not parts:
            return ""

        out = [parts[0]]
        open_ternaries = 1 if parts[0] == "?" else 0
        previous_was_ternary = open_ternaries > 0

        for index in range(1, len(parts)):
            previous, current = parts[index - 1], parts[index]
            before = parts[index - 2] if index >= 2 else None

            ternary = False
            if current == "?":
                open_ternaries += 1
                ternary = True
            elif current == ":" and open_ternaries:
                open_ternaries -= 1
                ternary = True

            if ternary or previous_was_ternary:
                out.append(" " + current)
            else:
                out.append(self._token_separator(before, previous, current) + current)
            previous_was_ternary = ternary

        return "".join(out)

    def _token_separator(self, before: Optional[str], previous: str, current: str) -> str:
        if current == ",":
            return ""
        if previous == ",":
            return " " if self.options.space_after_comma else ""
        if (previous, current) in FUSED_PAIRS:
            return ""
        if current in (")", "]", ";", ".", ":") or current.startswith("["):
            return ""
        if previous in ("(", "[", ".", ":"):
            return ""
        if current in ("<", ">") or previous in ("<", ">"):
            return ""
        if current.startswith("("):
            if previous in PAREN_KEYWORDS:
                return " " if self.options.space_before_open_paren else ""
            if previous in SPACED_KEYWORDS:
                return " "
            return "" if _ends_operand(previous) else " "
        if previous in UNARY_PREFIX_TOKENS and not _ends_operand(before):
            return ""
        if current in ("++", "--") and _ends_operand(previous):
            return ""
        return " "

    def _keyword_head(self, indent_level: int, keyword: str, condition: str) -> str:
        space = " " if self.options.space_before_open_paren else ""
        return f"{self.indent(indent_level)}{keyword}{space}({condition})"

    @staticmethod
    def last_row(node: SyntaxNode) -> int:
        """Row of the node's last character (directives include their line break)."""
        row = node.end_point.row
        if node.end_point.column == 0 and row > node.start_point.row:
            row -= 1
        return row

    def blank_lines_between(self, previous: SyntaxNode, current: SyntaxNode) -> int:
        """Blank lines to keep between two nodes, per the empty-line options."""
        if not self.options.preserve_empty_lines:
            return 0
        gap = current.start_point.row - self.last_row(previous) - 1
        return max(0, min(gap, self.options.max_consecutive_empty_lines))

    # ------------------------------------------------------------------
    # Statement sequences
    # ------------------------------------------------------------------

    def render_statements(
        self,
        nodes: Sequence[SyntaxNode],
        indent_level: int,
        inject_terminators: bool = True,
    ) -> List[str]:
        """
        Render a sequence of sibling statements, one item per statement.

        Blank lines between statements are kept (capped) when
        preserve_empty_lines is on; a comment on the same line as the
        previous statement stays on that line.

        Args:
            nodes: Sibling nodes in source order
            indent_level: Nesting level of the statements
            inject_terminators: Append ``;`` to bare expressions when required

        Returns:
            Rendered items, with empty strings for kept blank lines
        """
        items: List[str] = []
        previous: Optional[SyntaxNode] = None

        for node in nodes:
            text = self.render(node, indent_level)
            if not text.strip():
                continue

            if previous is not None:
                if (
                    is_comment(node.kind)
                    and items
                    and node.start_point.row == self.last_row(previous)
                ):
                    items[-1] = items[-1] + " " + text.strip()
                    previous = node
                    continue
                items.extend([""] * self.blank_lines_between(previous, node))

            if inject_terminators:
                text = self._inject_terminator(node, text)
            items.append(text)
            previous = node

        return items

    def _inject_terminator(self, node: SyntaxNode, text: str) -> str:
        if not self.options.require_semicolons:
            return text

        stripped = text.rstrip()
        if stripped.endswith(";") or "{" in stripped:
            return text

        if node.kind in BARE_STATEMENT_KINDS:
            return stripped + ";"
        if self._accepts_terminator(node.kind) and self._looks_like_statement(stripped):
            return stripped + ";"
        return text

    @staticmethod
    def _accepts_terminator(kind: str) -> bool:
        if is_comment(kind) or is_preprocessor(kind) or kind == NodeKind.BLOCK:
            return False
        return not kind.endswith(("_statement", "_declaration", "_definition", "_case"))

    @staticmethod
    def _looks_like_statement(text: str) -> bool:
        trimmed = text.strip()
        if "(" in trimmed and trimmed.endswith(")"):
            return True
        if " = " in trimmed:
            return True
        return trimmed.startswith(("++", "--")) or trimmed.endswith(("++", "--"))

    # ------------------------------------------------------------------
    # Top level
    # ------------------------------------------------------------------

    def classify_top_level(self, node: SyntaxNode) -> Section:
        if is_preprocessor(node.kind):
            return Section.PREPROCESSOR
        if node.kind in TOP_LEVEL_DECLARATION_KINDS:
            return Section.DECLARATIONS
        if node.kind == NodeKind.FUNCTION_DEFINITION and self.recovery.classify(node) is None:
            return Section.FUNCTIONS
        return Section.OTHER

    def _group_top_level(self, children: Sequence[SyntaxNode]) -> List[Tuple[Section, List[SyntaxNode]]]:
        """Attach comments to the item they belong to."""
        groups: List[Tuple[Section, List[SyntaxNode]]] = []
        pending: List[SyntaxNode] = []

        for child in children:
            if not child.text.strip():
                continue

            if is_comment(child.kind):
                if groups and not pending and child.start_point.row == self.last_row(groups[-1][1][-1]):
                    groups[-1][1].append(child)
                else:
                    pending.append(child)
                continue

            groups.append((self.classify_top_level(child), pending + [child]))
            pending = []

        if pending:
            if groups:
                groups[-1][1].extend(pending)
            else:
                groups.append((Section.OTHER, pending))

        return groups

    def _is_region_barrier(self, nodes: Sequence[SyntaxNode]) -> bool:
        main = next((n for n in nodes if not is_comment(n.kind)), nodes[0])
        if main.kind in CONDITIONAL_DIRECTIVE_KINDS:
            return True
        return is_preprocessor(main.kind) and _CONDITIONAL_DIRECTIVE.match(main.text.strip()) is not None

    def _render_source_file(self, node: SyntaxNode, indent_level: int) -> str:
        recovered = self.recovery.render_source_file(node, indent_level)
        if recovered is not None:
            return recovered

        # Conditional directives split the file into regions that are
        # sectioned separately; nothing moves across a directive.
        pieces: List[Tuple[str, SyntaxNode, SyntaxNode]] = []
        region: List[Tuple[Section, List[SyntaxNode]]] = []

        def flush() -> None:
            if region:
                text = self._render_sections(region, indent_level)
                if text.strip():
                    pieces.append((text, region[0][1][0], region[-1][1][-1]))
                region.clear()

        for group in self._group_top_level(node.children):
            nodes = group[1]
            if not self._is_region_barrier(nodes):
                region.append(group)
                continue
            flush()
            text = self.eol.join(self.render_statements(nodes, indent_level, inject_terminators=False))
            if text.strip():
                pieces.append((text, nodes[0], nodes[-1]))
        flush()

        lines: List[str] = []
        previous: Optional[SyntaxNode] = None
        for text, first, last in pieces:
            if previous is not None:
                lines.extend([""] * self.blank_lines_between(previous, first))
            lines.append(text)
            previous = last

        return self.collapse_blank_lines(self.eol.join(lines))

    def _render_sections(self, groups: Sequence[Tuple[Section, List[SyntaxNode]]], indent_level: int) -> str:
        """Emit one region's items grouped by section, in section order."""
        sections: Dict[Section, List[TopLevelEntry]] = {section: [] for section in SECTION_ORDER}
        previous: Optional[Tuple[Section, List[SyntaxNode]]] = None

        for group in groups:
            section, nodes = group
            text = self.eol.join(self.render_statements(nodes, indent_level, inject_terminators=False))
            if not text.strip():
                continue

            blank_lines = 0
            if previous is not None and previous[0] == section and sections[section]:
                blank_lines = self.blank_lines_between(previous[1][-1], nodes[0])

            main = next((n for n in nodes if not is_comment(n.kind)), nodes[0])
            is_include = main.kind in INCLUDE_KINDS and nodes[0] is main
            sections[section].append(TopLevelEntry(
                section=section,
                text=text,
                blank_lines_before=blank_lines,
                is_include=is_include,
                sort_key=self.render(main, indent_level).strip() if is_include else "",
            ))
            previous = group

        if self.options.sort_includes:
            sections[Section.PREPROCESSOR] = self._sort_include_runs(sections[Section.PREPROCESSOR])

        lines: List[str] = []
        present = [section for section in SECTION_ORDER if sections[section]]

        for position, section in enumerate(present):
            for index, entry in enumerate(sections[section]):
                if index > 0:
                    blank_lines = entry.blank_lines_before
                    if section is Section.FUNCTIONS:
                        blank_lines = max(1, blank_lines)
                    lines.extend([""] * blank_lines)
                lines.append(entry.text)

            followed = position < len(present) - 1
            if followed and (section is not Section.PREPROCESSOR or self.options.new_line_after_include):
                lines.append("")

        return self.eol.join(lines)

    @staticmethod
    def _sort_include_runs(entries: List[TopLevelEntry]) -> List[TopLevelEntry]:
        """Sort each run of adjacent include directives alphabetically."""
        result: List[TopLevelEntry] = []
        run: List[TopLevelEntry] = []

        def flush() -> None:
            if run:
                ordered = sorted(run, key=lambda entry: entry.sort_key)
                # Each slot keeps its own spacing
                result.extend(
                    entry.model_copy(update={"blank_lines_before": slot.blank_lines_before})
                    for slot, entry in zip(run, ordered)
                )
                run.clear()

        for entry in entries:
            if entry.is_include and (not run or entry.blank_lines_before == 0):
                run.append(entry)
                continue
            flush()
            if entry.is_include:
                run.append(entry)
            else:
                result.append(entry)
        flush()

        return result

    # ------------------------------------------------------------------
    # Functions
    # ------------------------------------------------------------------

    def _render_function_definition(self, node: SyntaxNode, indent_level: int) -> str:
        recovered = self.recovery.render_function_definition(node, indent_level)
        if recovered is not None:
            return recovered

        body = node.child_by_kind(NodeKind.BLOCK)
        head_nodes = [child for child in node.children if child is not body]
        signature = self.indent(indent_level) + self.join_tokens(
            [self.render_inline(child) for child in head_nodes]
        )

        if body is None:
            return signature

        if not any(child.text.startswith("//") for child in head_nodes if is_comment(child.kind)):
            compact = self._compact_function(node, signature, body)
            if compact is not None:
                return compact
        else:
            return signature + self.eol + self._render_block(body, indent_level)

        return self.render_body(signature, body, indent_level)

    def _compact_function(self, node: SyntaxNode, signature: str, body: SyntaxNode) -> Optional[str]:
        """Keep a short single-line function on one line."""
        max_length = self.options.max_line_length
        if not node.is_single_line or len(node.text.strip()) > max_length:
            return None

        block = self._render_compact_block(body)
        if block is None:
            return None

        text = f"{signature} {block}"
        if "\n" in text or "\r" in text or len(text) > max_length:
            return None
        return text

    def _render_compact_block(self, node: SyntaxNode) -> Optional[str]:
        parts = []
        for child in node.children:
            if child.kind in ("{", "}"):
                continue
            if is_comment(child.kind) and child.text.startswith("//"):
                return None
            text = self.render(child, 0)
            if text.strip():
                parts.append(self._inject_terminator(child, text).strip())

        if not parts:
            return "{ }"
        return "{ " + " ".join(parts) + " }"

    def _render_function_declaration(self, node: SyntaxNode, indent_level: int) -> str:
        parts = [self.render_inline(child) for child in node.children if child.kind != ";"]
        return self.indent(indent_level) + self.join_tokens(parts) + ";"

    def _inline_parameters(self, node: SyntaxNode) -> str:
        separator = ", " if self.options.space_after_comma else ","
        params = [
            self.render_inline(child)
            for child in node.children
            if child.kind not in ("(", ")", ",")
        ]
        return "(" + separator.join(param for param in params if param) + ")"

    def _inline_parameter(self, node: SyntaxNode) -> str:
        parts: List[str] = []
        for child in node.children:
            text = self.render_inline(child)
            if parts and parts[-1] == "&":
                parts[-1] = "&" + text
            elif text:
                parts.append(text)
        return self.join_tokens(parts)

    # ------------------------------------------------------------------
    # Blocks and control flow
    # ------------------------------------------------------------------

    def _render_block(self, node: SyntaxNode, indent_level: int) -> str:
        indent = self.indent(indent_level)
        inner = [child for child in node.children if child.kind not in ("{", "}")]

        lines = [indent + "{"]
        lines.extend(self.render_statements(inner, indent_level + 1))
        lines.append(indent + "}")
        return self.eol.join(lines)

    def render_body(self, head: str, body: SyntaxNode, indent_level: int) -> str:
        """
        Attach a statement body to a control-structure head.

        Blocks go on the next line or after the head depending on
        new_line_after_open_brace; a single statement is wrapped into a block.

        Args:
            head: Rendered head (already indented), e.g. ``if(x)``
            body: Body node
            indent_level: Nesting level of the head

        Returns:
            Head and body text
        """
        indent = self.indent(indent_level)
        brace_on_new_line = self.options.new_line_after_open_brace

        if body.kind == NodeKind.BLOCK:
            block = self._render_block(body, indent_level)
            if brace_on_new_line:
                return head + self.eol + block
            return head + " " + block.lstrip()

        lines = [head, indent + "{"] if brace_on_new_line else [head + " {"]
        lines.extend(self.render_statements([body], indent_level + 1))
        lines.append(indent + "}")
        return self.eol.join(lines)

    def _split_header(self, children: Sequence[SyntaxNode]) -> Tuple[str, List[SyntaxNode]]:
        """
        Split ``keyword ( condition ) rest`` into the rendered condition and rest.

        The condition may also arrive as a parenthesized expression node.
        """
        children = list(children)
        open_index = next((i for i, child in enumerate(children) if child.kind == "("), None)

        if open_index is None:
            for index, child in enumerate(children[1:], start=1):
                if child.is_named and not is_comment(child.kind):
                    text = self.render_inline(child)
                    if child.kind == NodeKind.PARENTHESIZED_EXPRESSION and text.startswith("(") and text.endswith(")"):
                        text = text[1:-1]
                    return text, children[index + 1:]
            return "", children[1:]

        close_index = next(
            (i for i in range(open_index + 1, len(children)) if children[i].kind == ")"),
            len(children),
        )
        condition = self.join_tokens(
            [self.render_inline(child) for child in children[open_index + 1:close_index]]
        )
        return condition, children[close_index + 1:]

    @staticmethod
    def _statement_nodes(nodes: Sequence[SyntaxNode]) -> List[SyntaxNode]:
        return [node for node in nodes if node.is_named and not is_comment(node.kind)]

    def _render_condition(self, node: SyntaxNode, indent_level: int) -> str:
        condition, rest = self._split_header(node.children)

        consequent: Optional[SyntaxNode] = None
        alternative: Optional[SyntaxNode] = None
        seen_else = False
        for child in rest:
            if child.kind == "else":
                seen_else = True
            elif child.is_named and not is_comment(child.kind):
                if seen_else and alternative is None:
                    alternative = child
                elif not seen_else and consequent is None:
                    consequent = child

        head = self._keyword_head(indent_level, "if", condition)
        text = self.render_body(head, consequent, indent_level) if consequent is not None else head

        if alternative is None:
            return text

        if self.options.new_line_after_open_brace:
            else_head = text + self.eol + self.indent(indent_level) + "else"
        else:
            else_head = text + " else"

        if alternative.kind == NodeKind.CONDITION_STATEMENT:
            return else_head + " " + self.render(alternative, indent_level).lstrip()
        return self.render_body(else_head, alternative, indent_level)

    def _render_for(self, node: SyntaxNode, indent_level: int) -> str:
        children = list(node.children)
        open_index = next((i for i, child in enumerate(children) if child.kind == "("), None)
        if open_index is None:
            return self._render_generic(node, indent_level)
        close_index = next(
            (i for i in range(open_index + 1, len(children)) if children[i].kind == ")"),
            len(children),
        )

        clauses: List[List[str]] = [[]]
        for child in children[open_index + 1:close_index]:
            if child.kind == ";":
                clauses.append([])
                continue
            text = self.render_inline(child)
            if child.kind in DECLARATION_STATEMENT_KINDS and (
                _has_terminator(child.children) or child.text.rstrip().endswith(";")
            ):
                clauses[-1].append(text.rstrip().rstrip(";").rstrip())
                clauses.append([])
            elif text:
                clauses[-1].append(text)

        gap = " " if self.options.space_after_semicolon else ""
        rendered = [self.join_tokens(parts) for parts in clauses]
        header = rendered[0]
        for clause in rendered[1:]:
            header += ";" + (gap + clause if clause else "")

        head = self._keyword_head(indent_level, "for", header)
        body = self._statement_nodes(children[close_index + 1:])
        if not body:
            return head + ";"
        return self.render_body(head, body[0], indent_level)

    def _render_while(self, node: SyntaxNode, indent_level: int) -> str:
        condition, rest = self._split_header(node.children)
        head = self._keyword_head(indent_level, "while", condition)
        body = self._statement_nodes(rest)
        if not body:
            return head + ";"
        return self.render_body(head, body[0], indent_level)

    def _render_do_while(self, node: SyntaxNode, indent_level: int) -> str:
        children = list(node.children)
        while_index = next((i for i, child in enumerate(children) if child.kind == "while"), len(children))

        body = self._statement_nodes(children[1:while_index])
        head = self.indent(indent_level) + "do"
        text = self.render_body(head, body[0], indent_level) if body else head

        condition, rest = self._split_header(children[while_index:])
        had_terminator = _has_terminator(rest)
        space = " " if self.options.space_before_open_paren else ""
        tail = self.terminate(f"while{space}({condition})", had_terminator)

        if self.options.new_line_after_open_brace:
            return text + self.eol + self.indent(indent_level) + tail
        return text + " " + tail

    def _render_switch(self, node: SyntaxNode, indent_level: int) -> str:
        indent = self.indent(indent_level)
        condition, rest = self._split_header(node.children)
        head = self._keyword_head(indent_level, "switch", condition)

        if self.options.new_line_after_open_brace:
            lines = [head, indent + "{"]
        else:
            lines = [head + " {"]

        cases = [child for child in rest if child.kind not in ("{", "}")]
        lines.extend(self.render_statements(cases, indent_level + 1, inject_terminators=False))
        lines.append(indent + "}")
        return self.eol.join(lines)

    def _render_switch_case(self, node: SyntaxNode, indent_level: int) -> str:
        children = list(node.children)
        colon_index = next((i for i, child in enumerate(children) if child.kind == ":"), None)
        if colon_index is None or not children:
            return self._render_generic(node, indent_level)

        keyword = children[0].text.strip()
        separator = ", " if self.options.space_after_comma else ","
        values = [
            self.render_inline(child)
            for child in children[1:colon_index]
            if child.kind != ","
        ]
        label = keyword + (" " + separator.join(values) if values else "") + ":"
        head = self.indent(indent_level) + label

        body = [child for child in children[colon_index + 1:] if child.text.strip()]
        if not body:
            return head
        if len(body) == 1 and body[0].kind == NodeKind.BLOCK:
            return self.render_body(head, body[0], indent_level)

        lines = [head]
        lines.extend(self.render_statements(body, indent_level + 1))
        return self.eol.join(lines)

    def _render_return(self, node: SyntaxNode, indent_level: int) -> str:
        had_terminator = _has_terminator(node.children)
        value = self.join_tokens([
            self.render_inline(child)
            for child in node.children
            if child.kind not in ("return", ";")
        ])
        text = "return " + value if value else "return"
        return self.indent(indent_level) + self.terminate(text, had_terminator)

    def _render_jump(self, node: SyntaxNode, indent_level: int) -> str:
        had_terminator = _has_terminator(node.children)
        keyword = node.children[0].text.strip() if node.children else node.text.strip().rstrip(";")
        return self.indent(indent_level) + self.terminate(keyword, had_terminator)

    # ------------------------------------------------------------------
    # Statements and declarations
    # ------------------------------------------------------------------

    def _render_expression_statement(self, node: SyntaxNode, indent_level: int) -> str:
        had_terminator = _has_terminator(node.children)
        text = self.join_tokens([
            self.render_inline(child)
            for child in node.children
            if child.kind != ";"
        ])
        if not text:
            return ""
        return self.indent(indent_level) + self.terminate(text, had_terminator)

    def _render_declaration(self, node: SyntaxNode, indent_level: int) -> str:
        had_terminator = _has_terminator(node.children)
        text = self.join_tokens([
            self.render_inline(child)
            for child in node.children
            if child.kind != ";"
        ])
        return self.indent(indent_level) + self.terminate(text, had_terminator)

    def _inline_declarator(self, node: SyntaxNode) -> str:
        children = list(node.children)
        assign_index = next((i for i, child in enumerate(children) if child.kind == "="), None)
        if assign_index is None:
            return self.join_tokens([self.render_inline(child) for child in children])

        target = self.join_tokens([self.render_inline(child) for child in children[:assign_index]])
        value = self.join_tokens([self.render_inline(child) for child in children[assign_index + 1:]])
        operator = " = " if self.options.space_around_operators else "="
        return f"{target}{operator}{value}"

    # ------------------------------------------------------------------
    # Expressions
    # ------------------------------------------------------------------

    def _inline_leaf(self, node: SyntaxNode) -> str:
        return node.text.strip()

    def _inline_concatenated(self, node: SyntaxNode) -> str:
        """Children joined without spaces (calls, unary and update expressions)."""
        return "".join(self.render_inline(child) for child in node.children)

    def _inline_joined(self, node: SyntaxNode) -> str:
        if not node.children:
            return node.text.strip()
        return self.join_tokens([self.render_inline(child) for child in node.children])

    def _inline_arguments(self, node: SyntaxNode) -> str:
        separator = ", " if self.options.space_after_comma else ","
        arguments = [
            self.render_inline(child)
            for child in node.children
            if child.kind not in ("(", ")", ",")
        ]
        arguments = [argument for argument in arguments if argument]
        if not arguments:
            return "()"
        return "(" + separator.join(arguments) + ")"

    def _inline_binary(self, node: SyntaxNode) -> str:
        parts = []
        for child in node.children:
            text = self.render_inline(child)
            if not text:
                continue
            if not child.is_named and child.kind in BINARY_OPERATOR_TOKENS:
                parts.append(f" {text} " if self.options.space_around_operators else text)
            else:
                parts.append(text)
        return "".join(parts)

    def _inline_ternary(self, node: SyntaxNode) -> str:
        parts = []
        for child in node.children:
            if child.kind == "?":
                parts.append(" ? ")
            elif child.kind == ":":
                parts.append(" : ")
            else:
                parts.append(self.render_inline(child))
        return "".join(parts)

    def _inline_brackets(self, node: SyntaxNode) -> str:
        spaced = self.options.space_in_array_brackets
        parts = []
        for child in node.children:
            if child.kind == "[":
                parts.append("[ " if spaced else "[")
            elif child.kind == "]":
                parts.append(" ]" if spaced else "]")
            else:
                parts.append(self.render_inline(child))
        return "".join(parts).replace("[  ]", "[]")

    # ------------------------------------------------------------------
    # Comments, directives and everything else
    # ------------------------------------------------------------------

    def _render_comment(self, node: SyntaxNode, indent_level: int) -> str:
        indent = self.indent(indent_level)
        text = node.text.rstrip()
        if not text.startswith("/*"):
            return indent + text.strip()

        lines = _LINE_BREAK.split(text)
        result = [indent + lines[0].strip()]
        for line in lines[1:]:
            stripped = line.strip()
            result.append(indent + " " + stripped if stripped else "")
        return self.eol.join(result)

    def _render_preprocessor(self, node: SyntaxNode, indent_level: int) -> str:
        # Directives always start at column 0
        lines = [line.rstrip() for line in _LINE_BREAK.split(node.text.strip())]
        lines[0] = _INCLUDE_DIRECTIVE.sub(r"#\1 \2", lines[0])
        return self.eol.join(lines)

    def _is_block_level(self, node: SyntaxNode) -> bool:
        kind = node.kind
        return (
            kind in self._rules
            and not kind.endswith(("_expression", "_access", "_dimension", "_literal"))
            and kind not in (NodeKind.IDENTIFIER, NodeKind.TYPE, NodeKind.BUILTIN_TYPE)
            and kind.endswith(("_statement", "_declaration", "_definition", "block", "comment"))
        ) or is_preprocessor(kind)

    def _render_generic(self, node: SyntaxNode, indent_level: int) -> str:
        """
        Fallback for kinds without a rule.

        Single-line nodes are rebuilt from their children; multi-line nodes
        keep their statements on separate lines, and anything else spanning
        several lines is kept verbatim with its first line re-indented.
        """
        indent = self.indent(indent_level)

        if self.logger is not None and node.is_named:
            self.logger.debug(
                f"No render rule for node kind '{node.kind}', using generic rule",
                extra={"node_kind": node.kind},
            )

        if not node.children:
            text = node.text.strip()
            return indent + text if text else ""

        covered = "".join(child.text for child in node.children)
        if _WHITESPACE.sub("", covered) != _WHITESPACE.sub("", node.text):
            # Some source text is not owned by any child
            return self._render_verbatim(node, indent_level)

        if node.is_single_line:
            parts = [self.render_inline(child) for child in node.children]
            return indent + self.normalizer.normalize(self.join_tokens(parts))

        if any(self._is_block_level(child) for child in node.children):
            return self.eol.join(self._render_mixed(node.children, indent_level))

        return self._render_verbatim(node, indent_level)

    def _render_mixed(self, children: Sequence[SyntaxNode], indent_level: int) -> List[str]:
        """Statements on their own lines, loose tokens joined into lines between them."""
        items: List[str] = []
        tokens: List[str] = []

        def flush() -> None:
            if tokens:
                text = self.normalizer.normalize(self.join_tokens(tokens))
                if text:
                    items.append(self.indent(indent_level) + text)
                tokens.clear()

        for child in children:
            if self._is_block_level(child):
                flush()
                text = self.render(child, indent_level)
                if text.strip():
                    items.append(text)
            else:
                tokens.append(self.render_inline(child))
        flush()

        return items
