"""
Operator spacing normalization.

A text-level pass run after structural rendering. It has two stages:

- insertion: exactly one space on each side of binary and assignment
  operators that sit between two operands
- removal: no whitespace between prefix/postfix ``++``/``--`` or unary
  ``!`` and the operand they bind to

Bitwise ``&``, ``|``, ``^`` and the angle brackets ``<``, ``>`` are never
spaced by this pass: ``flags&MASK`` and ``view_as<int>(x)`` are left alone.
String and character literals, comments and preprocessor lines are
protected from rewriting.
"""

import re
from typing import List, Pattern, Tuple

from spformat.models.options import FormattingOptions

# Longest operators first; single-character operators last.
BINARY_OPERATORS: Tuple[str, ...] = (
    "<<", ">>", "==", "!=", "<=", ">=", "&&", "||",
    "+=", "-=", "*=", "/=", "%=", "&=", "|=", "^=",
    "+", "-", "*", "/", "%", "=",
)

# Only spaced inside recovered conditions, where no angle-bracket syntax is expected
COMPARISON_OPERATORS: Tuple[str, ...] = ("<", ">")

# Words after which + and - are unary
UNARY_CONTEXT_KEYWORDS = frozenset({"return", "case", "else", "do", "new", "delete"})

_PROTECTED = re.compile(
    r'"(?:\\.|[^"\\\n])*"'
    r"|'(?:\\.|[^'\\\n])*'"
    r"|//[^\r\n]*"
    r"|/\*.*?\*/"
    r"|^[ \t]*#[^\r\n]*",
    re.DOTALL | re.MULTILINE,
)
PLACEHOLDER_OPEN = "\ue000"
PLACEHOLDER_CLOSE = "\ue001"
_PLACEHOLDER = re.compile(PLACEHOLDER_OPEN + r"(\d+)" + PLACEHOLDER_CLOSE)

_OPERAND_END = r"(?P<left>\w+|[)\]\ue001])"
_OPERAND_START = r"(?=[\w(\[\ue000!~.+\-])"

_PREFIX_UPDATE = re.compile(r"(?<![\w)\]\ue001])(\+\+|--)\s+(?=[\w(\ue000])")
_PREFIX_NOT = re.compile(r"(?<![\w)\]\ue001])!\s+(?=[\w(\ue000!])")
_POSTFIX_UPDATE = re.compile(r"(?<=[\w)\]\ue001])[ \t]+(\+\+|--)(?![\w(\ue000])")

_VIEW_AS_OPEN = re.compile(r"view_as\s*<\s*\w*$")


def _operator_pattern(op: str) -> Pattern[str]:
    # A character that would extend the operator must not follow it
    extenders = "="
    if op[-1] in "+-&|<>" and op[-1] not in extenders:
        extenders += op[-1]
    return re.compile(
        _OPERAND_END
        + r"[ \t]*(?P<op>" + re.escape(op) + r")(?![" + re.escape(extenders) + r"])[ \t]*"
        + _OPERAND_START
    )


_OPERATOR_RULES: List[Tuple[str, Pattern[str]]] = [
    (op, _operator_pattern(op)) for op in BINARY_OPERATORS
]
_COMPARISON_RULES: List[Tuple[str, Pattern[str]]] = [
    (op, _operator_pattern(op)) for op in COMPARISON_OPERATORS
]


def protect(text: str) -> Tuple[str, List[str]]:
    """Replace literals, comments and directive lines with placeholders."""
    saved: List[str] = []

    def _save(match: re.Match) -> str:
        saved.append(match.group(0))
        return f"{PLACEHOLDER_OPEN}{len(saved) - 1}{PLACEHOLDER_CLOSE}"

    return _PROTECTED.sub(_save, text), saved


def restore(text: str, saved: List[str]) -> str:
    """Undo protect()."""
    if not saved:
        return text
    return _PLACEHOLDER.sub(lambda m: saved[int(m.group(1))], text)


def _is_exponent(word: str) -> bool:
    return (
        word[0].isdigit()
        and word[-1] in "eE"
        and not word.lower().startswith("0x")
    )


class OperatorSpacingNormalizer:
    """Ordered, rule-based operator spacing pass."""

    def __init__(self, options: FormattingOptions):
        self.options = options

    def normalize(self, text: str, comparisons: bool = False) -> str:
        """
        Normalize operator spacing in rendered text.

        Args:
            text: Rendered source text
            comparisons: Also space ``<`` and ``>`` (recovered conditions only)

        Returns:
            Text with normalized operator spacing
        """
        if not text:
            return text

        protected, saved = protect(text)
        if self.options.space_around_operators:
            protected = self._insert_spacing(protected, comparisons)
        protected = self._remove_unary_spacing(protected)
        return restore(protected, saved)

    def normalize_commas(self, text: str) -> str:
        """Apply comma spacing to text that was reassembled from raw source."""
        protected, saved = protect(text)
        if self.options.space_after_comma:
            protected = re.sub(r"[ \t]*,[ \t]*(?=[^\s)])", ", ", protected)
        else:
            protected = re.sub(r"[ \t]*,[ \t]+", ",", protected)
        return restore(protected, saved)

    def _insert_spacing(self, text: str, comparisons: bool) -> str:
        rules = list(_OPERATOR_RULES)
        if comparisons:
            rules.extend(_COMPARISON_RULES)

        for op, pattern in rules:
            text = pattern.sub(self._spaced, text)
        return text

    @staticmethod
    def _spaced(match: re.Match) -> str:
        left = match.group("left")
        op = match.group("op")

        if left in UNARY_CONTEXT_KEYWORDS:
            return match.group(0)
        if op in ("+", "-") and _is_exponent(left):
            return match.group(0)
        if op == "<" and left == "view_as":
            return match.group(0)
        if op == ">" and _VIEW_AS_OPEN.search(match.string, 0, match.start("op")):
            return match.group(0)

        return f"{left} {op} "

    @staticmethod
    def _remove_unary_spacing(text: str) -> str:
        text = _PREFIX_UPDATE.sub(r"\1", text)
        text = _PREFIX_NOT.sub("!", text)
        text = _POSTFIX_UPDATE.sub(r"\1", text)
        return text
