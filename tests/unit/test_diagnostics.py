"""Unit tests for syntax diagnostics."""

from spformat.errors import FormattingError
from spformat.formatter.diagnostics import DiagnosticsCollector, collect_errors, error_context
from spformat.models.syntax_node import Point
from tests.support.cst import builtin, call, error, ident, missing, node, num, statement, tree


def test_error_context_marks_first_line():
    """Test context shows one line around the error with a marker."""
    source = "a\nb\nc\nd"
    context = error_context(source, Point(row=2, column=0), Point(row=2, column=1))

    assert context == "002|     b\n003| >>> c\n004|     d"


def test_error_context_at_file_start():
    """Test context is clamped at the first line."""
    context = error_context("x\ny", Point(row=0, column=0), Point(row=0, column=1))

    assert context.splitlines() == ["001| >>> x", "002|     y"]


def test_collects_error_nodes():
    """Test ERROR nodes become error records with 1-based positions."""
    syntax_tree = tree(node("source_file", error("@"), "\n", statement(call("foo"))))

    errors = DiagnosticsCollector().collect(syntax_tree.root, syntax_tree.source)

    assert len(errors) == 1
    record = errors[0]
    assert record.message == "Syntax error at '@'"
    assert record.node_kind == "ERROR"
    assert (record.start_line, record.start_column) == (1, 1)
    assert (record.end_line, record.end_column) == (1, 2)
    assert not record.is_missing
    assert ">>> @" in record.context


def test_collects_missing_terminator():
    """Test a missing ';' produces exactly one zero-width record."""
    syntax_tree = tree(node("source_file", node("expression_statement", call("foo"), missing(";"))))

    errors = DiagnosticsCollector().collect(syntax_tree.root, syntax_tree.source)

    assert len(errors) == 1
    record = errors[0]
    assert record.is_missing
    assert record.message == "Missing syntax element: expected ';'"
    assert (record.start_line, record.start_column) == (1, 6)
    assert (record.end_line, record.end_column) == (1, 6)
    assert str(record) == "[Missing] Line 1:6 - Missing syntax element: expected ';'"


def test_records_in_document_order():
    """Test records follow source order."""
    syntax_tree = tree(node(
        "source_file",
        error("@"), "\n",
        node("expression_statement", call("foo"), missing(";")), "\n",
        error("$"),
    ))

    errors = DiagnosticsCollector().collect(syntax_tree.root, syntax_tree.source)

    assert [e.start_line for e in errors] == [1, 2, 3]
    assert [e.is_missing for e in errors] == [False, True, False]


def test_valid_tree_has_no_errors():
    """Test a clean tree yields no records."""
    syntax_tree = tree(node("source_file", statement(call("foo"))))

    assert collect_errors(syntax_tree.root, syntax_tree.source) == []


def test_missing_terminator_between_declarations():
    """Test a declaration without ';' followed by another one gives a single error on line 1."""
    syntax_tree = tree(node(
        "source_file",
        node(
            "global_variable_declaration", builtin("int"), " ",
            node("variable_declaration", ident("x"), " ", "=", " ", num("5")),
            missing(";"),
        ), "\n",
        node(
            "global_variable_declaration", builtin("int"), " ",
            node("variable_declaration", ident("y"), " ", "=", " ", num("10")),
            ";",
        ),
    ))
    assert syntax_tree.source == "int x = 5\nint y = 10;"

    errors = collect_errors(syntax_tree.root, syntax_tree.source)

    assert len(errors) == 1
    record = errors[0]
    assert record.is_missing
    assert record.start_line == 1
    assert record.context
    assert "001| >>> int x = 5" in record.context.splitlines()


def test_formatting_error_report():
    """Test FormattingError joins detailed descriptions with blank lines."""
    syntax_tree = tree(node("source_file", error("@"), "\n", error("$")))
    errors = DiagnosticsCollector().collect(syntax_tree.root, syntax_tree.source)

    exc = FormattingError(errors)

    message = str(exc)
    assert message.startswith("Source code contains syntax errors:\n\n")
    assert "Syntax error at '@'" in message
    assert "Syntax error at '$'" in message
    assert "Node Type: ERROR" in message
    assert exc.errors == errors


def test_formatting_error_without_records():
    """Test the generic message when no records are available."""
    assert str(FormattingError([])) == "Unable to format source code"
