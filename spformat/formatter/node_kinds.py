"""
Node kinds produced by the tree-sitter SourcePawn grammar.

Anonymous tokens (punctuation, keywords, operators) use their literal text
as kind and are not listed here.
"""

from enum import Enum
from typing import FrozenSet


class NodeKind(str, Enum):
    """Named productions the renderer knows how to format."""

    SOURCE_FILE = "source_file"
    ERROR = "ERROR"

    # Functions
    FUNCTION_DEFINITION = "function_definition"
    FUNCTION_DECLARATION = "function_declaration"
    NATIVE_DECLARATION = "native_declaration"
    PARAMETER_DECLARATIONS = "parameter_declarations"
    PARAMETER_DECLARATION = "parameter_declaration"

    # Statements
    BLOCK = "block"
    EXPRESSION_STATEMENT = "expression_statement"
    CONDITION_STATEMENT = "condition_statement"
    FOR_STATEMENT = "for_statement"
    WHILE_STATEMENT = "while_statement"
    DO_WHILE_STATEMENT = "do_while_statement"
    SWITCH_STATEMENT = "switch_statement"
    SWITCH_CASE = "switch_case"
    SWITCH_DEFAULT_CASE = "switch_default_case"
    RETURN_STATEMENT = "return_statement"
    BREAK_STATEMENT = "break_statement"
    CONTINUE_STATEMENT = "continue_statement"
    ASSIGNMENT_STATEMENT = "assignment_statement"

    # Declarations
    VARIABLE_DECLARATION_STATEMENT = "variable_declaration_statement"
    VARIABLE_DECLARATION = "variable_declaration"
    GLOBAL_VARIABLE_DECLARATION = "global_variable_declaration"
    OLD_GLOBAL_VARIABLE_DECLARATION = "old_global_variable_declaration"
    OLD_VARIABLE_DECLARATION_STATEMENT = "old_variable_declaration_statement"
    OLD_VARIABLE_DECLARATION = "old_variable_declaration"
    DECLARATION_STATEMENT = "declaration_statement"

    # Expressions
    CALL_EXPRESSION = "call_expression"
    CALL_ARGUMENTS = "call_arguments"
    ASSIGNMENT_EXPRESSION = "assignment_expression"
    BINARY_EXPRESSION = "binary_expression"
    UNARY_EXPRESSION = "unary_expression"
    UPDATE_EXPRESSION = "update_expression"
    TERNARY_EXPRESSION = "ternary_expression"
    CONDITIONAL_EXPRESSION = "conditional_expression"
    PARENTHESIZED_EXPRESSION = "parenthesized_expression"
    FIELD_ACCESS = "field_access"
    ARRAY_INDEXED_ACCESS = "array_indexed_access"
    ARRAY_ACCESS = "array_access"
    FIXED_DIMENSION = "fixed_dimension"
    DIMENSION = "dimension"

    # Leaves and types
    TYPE = "type"
    BUILTIN_TYPE = "builtin_type"
    VISIBILITY = "visibility"
    FUNCTION_VISIBILITY = "function_visibility"
    IDENTIFIER = "identifier"
    STRING_LITERAL = "string_literal"
    CHARACTER_LITERAL = "character_literal"
    CHAR_LITERAL = "char_literal"
    NUMBER_LITERAL = "number_literal"
    INT_LITERAL = "int_literal"
    FLOAT_LITERAL = "float_literal"
    BOOL_LITERAL = "bool_literal"

    # Comments and preprocessor
    COMMENT = "comment"
    LINE_COMMENT = "line_comment"
    BLOCK_COMMENT = "block_comment"
    PREPROC_INCLUDE = "preproc_include"
    PREPROC_TRYINCLUDE = "preproc_tryinclude"
    PREPROC_DEFINE = "preproc_define"
    PREPROC_UNDEFINE = "preproc_undefine"
    PREPROC_PRAGMA = "preproc_pragma"
    PREPROC_IF = "preproc_if"
    PREPROC_IFDEF = "preproc_ifdef"
    PREPROC_IFNDEF = "preproc_ifndef"
    PREPROC_ELSEIF = "preproc_elseif"
    PREPROC_ELSE = "preproc_else"
    PREPROC_ENDIF = "preproc_endif"


def _values(*kinds: NodeKind) -> FrozenSet[str]:
    return frozenset(kind.value for kind in kinds)


COMMENT_KINDS = _values(NodeKind.COMMENT, NodeKind.LINE_COMMENT, NodeKind.BLOCK_COMMENT)

INCLUDE_KINDS = _values(NodeKind.PREPROC_INCLUDE, NodeKind.PREPROC_TRYINCLUDE)

# Directives that open, switch or close a conditional region
CONDITIONAL_DIRECTIVE_KINDS = _values(
    NodeKind.PREPROC_IF,
    NodeKind.PREPROC_IFDEF,
    NodeKind.PREPROC_IFNDEF,
    NodeKind.PREPROC_ELSEIF,
    NodeKind.PREPROC_ELSE,
    NodeKind.PREPROC_ENDIF,
)

DECLARATION_STATEMENT_KINDS = _values(
    NodeKind.VARIABLE_DECLARATION_STATEMENT,
    NodeKind.GLOBAL_VARIABLE_DECLARATION,
    NodeKind.OLD_GLOBAL_VARIABLE_DECLARATION,
    NodeKind.OLD_VARIABLE_DECLARATION_STATEMENT,
    NodeKind.DECLARATION_STATEMENT,
)

# Top-level kinds emitted in the declarations section
TOP_LEVEL_DECLARATION_KINDS = DECLARATION_STATEMENT_KINDS | _values(
    NodeKind.FUNCTION_DECLARATION,
    NodeKind.NATIVE_DECLARATION,
)

# Kinds the tail policy treats as a bare expression typed at top level
EXPRESSION_LIKE_KINDS = _values(
    NodeKind.ASSIGNMENT_EXPRESSION,
    NodeKind.BINARY_EXPRESSION,
    NodeKind.CALL_EXPRESSION,
    NodeKind.ARRAY_INDEXED_ACCESS,
    NodeKind.UPDATE_EXPRESSION,
    NodeKind.GLOBAL_VARIABLE_DECLARATION,
    NodeKind.OLD_GLOBAL_VARIABLE_DECLARATION,
    NodeKind.OLD_VARIABLE_DECLARATION,
)

# Expression kinds a block child may be reported as when its statement wrapper is lost
BARE_STATEMENT_KINDS = _values(
    NodeKind.CALL_EXPRESSION,
    NodeKind.ASSIGNMENT_EXPRESSION,
    NodeKind.UPDATE_EXPRESSION,
)

CONTROL_KEYWORDS = ("if", "else", "for", "while", "switch", "do")

# Operator tokens that are padded with spaces inside binary and assignment expressions
BINARY_OPERATOR_TOKENS = frozenset({
    "+", "-", "*", "/", "%",
    "==", "!=", "<", ">", "<=", ">=",
    "&&", "||", "&", "|", "^", "<<", ">>", ">>>",
    "=", "+=", "-=", "*=", "/=", "%=", "&=", "|=", "^=", "<<=", ">>=",
})


def is_comment(kind: str) -> bool:
    return kind in COMMENT_KINDS


def is_preprocessor(kind: str) -> bool:
    return kind.startswith("preproc_")


def is_statement_like(kind: str) -> bool:
    """True for kinds that rule out expression-only input."""
    return "statement" in kind or "function_definition" in kind or is_preprocessor(kind)


def is_expression_like(kind: str) -> bool:
    return kind in EXPRESSION_LIKE_KINDS or "expression" in kind
