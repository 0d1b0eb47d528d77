"""Unit tests for SourcePawnFormatter."""

import logging
import re

import pytest

from spformat.errors import FormattingError, GrammarError, ResourceDisposedError
from spformat.formatter import SourcePawnFormatter
from spformat.models.options import FormattingOptions
from tests.support.adapter import StubAdapter
from tests.support.cst import (
    binary,
    block,
    builtin,
    call,
    error,
    ident,
    leaf,
    missing,
    node,
    num,
    statement,
    string,
    token,
    tree,
)

PLUGIN_SOURCE = 'public void OnPluginStart(){PrintToServer("hi");}'

_WORDS = re.compile(r"[A-Za-z_]\w*|\d+")


def plugin_tree():
    return tree(node(
        "source_file",
        node(
            "function_definition",
            leaf("visibility", "public"), " ", builtin("void"), " ", ident("OnPluginStart"),
            node("parameter_declarations", "(", ")"),
            block(statement(call("PrintToServer", string("hi")))),
        ),
    ))


def misread_call_tree(terminator):
    """``foo(a,b)`` / ``foo(a,b);`` parsed as a function definition."""
    tail = node("expression_statement", ";") if terminator else node("expression_statement", missing(";"))
    return tree(node(
        "source_file",
        node(
            "function_definition",
            ident("foo"),
            node("parameter_declarations", "(", ident("a"), ",", ident("b"), ")"),
            tail,
        ),
    ))


def misread_if_tree():
    """``if(x>0){y();}`` parsed as a function named ``if``."""
    return tree(node(
        "source_file",
        node(
            "function_definition",
            ident("if"),
            node("parameter_declarations", "(", ident("x")),
            node("expression_statement", error(token(">0)"))),
            block(statement(call("y"))),
        ),
    ))


def prefix_update_tree():
    """``++i`` parsed as an ERROR followed by a declaration."""
    return tree(node(
        "source_file",
        error(token("++")),
        node("global_variable_declaration", ident("i"), missing(";")),
    ))


def initializer_tree():
    """Wrapper tree for the fragment ``a+b``."""
    return tree(node(
        "source_file",
        node(
            "global_variable_declaration",
            builtin("int"), " ",
            node("variable_declaration", ident("dummy"), " ", "=", " ",
                 binary(ident("a"), "+", ident("b"), gap="")),
            ";",
        ),
    ))


MESSY_SOURCE = "int g_Count;\npublic void A(){Foo(1);}\nvoid B(){\nBar(g_Count);\n}"
FORMATTED_SOURCE = "int g_Count;\n\npublic void A() { Foo(1); }\n\nvoid B()\n{\n    Bar(g_Count);\n}"


def counter_declaration():
    return node("global_variable_declaration", builtin("int"), " ", node("variable_declaration", ident("g_Count")), ";")


def messy_plugin_tree():
    """Tree for MESSY_SOURCE: a global and two functions, unformatted."""
    return tree(node(
        "source_file",
        counter_declaration(), "\n",
        node(
            "function_definition",
            leaf("visibility", "public"), " ", builtin("void"), " ", ident("A"),
            node("parameter_declarations", "(", ")"),
            block(statement(call("Foo", num("1")))),
        ), "\n",
        node(
            "function_definition",
            builtin("void"), " ", ident("B"), node("parameter_declarations", "(", ")"),
            block("\n", statement(call("Bar", ident("g_Count"))), "\n"),
        ),
    ))


def formatted_plugin_tree():
    """Tree for FORMATTED_SOURCE."""
    return tree(node(
        "source_file",
        counter_declaration(), "\n\n",
        node(
            "function_definition",
            leaf("visibility", "public"), " ", builtin("void"), " ", ident("A"),
            node("parameter_declarations", "(", ")"), " ",
            block(" ", statement(call("Foo", num("1"))), " "),
        ), "\n\n",
        node(
            "function_definition",
            builtin("void"), " ", ident("B"), node("parameter_declarations", "(", ")"), "\n",
            block("\n    ", statement(call("Bar", ident("g_Count"))), "\n"),
        ),
    ))


class TestFormat:
    """Tests for SourcePawnFormatter.format."""

    @pytest.mark.parametrize("source", [None, "", "   ", "\n\t\n"])
    def test_empty_input(self, make_formatter, adapter, source):
        """Test empty and whitespace-only input returns "" without parsing."""
        assert make_formatter().format(source) == ""
        assert adapter.parsed == []

    def test_valid_source(self, make_formatter, adapter):
        """Test a well-formed tree is rendered directly."""
        adapter.add(plugin_tree())

        result = make_formatter().format(PLUGIN_SOURCE)

        assert result == 'public void OnPluginStart() { PrintToServer("hi"); }'

    def test_valid_source_multiline_option(self, make_formatter, adapter):
        """Test options flow into the renderer."""
        adapter.add(plugin_tree())

        result = make_formatter(FormattingOptions(max_line_length=20)).format(PLUGIN_SOURCE)

        assert result == 'public void OnPluginStart()\n{\n    PrintToServer("hi");\n}'

    def test_misread_call_without_terminator(self, make_formatter, adapter):
        """Test an expression typed without ';' is returned without one."""
        adapter.add(misread_call_tree(terminator=False))

        assert make_formatter().format("foo(a,b)") == "foo(a, b)"

    def test_misread_call_with_terminator(self, make_formatter, adapter):
        """Test an expression typed with ';' keeps it."""
        adapter.add(misread_call_tree(terminator=True))

        assert make_formatter().format("foo(a,b);") == "foo(a, b);"

    def test_misread_control_structure(self, make_formatter, adapter):
        """Test a control structure misread as a function is recovered."""
        adapter.add(misread_if_tree())

        assert make_formatter().format("if(x>0){y();}") == "if(x > 0)\n{\n    y();\n}"

    def test_multiple_functions(self, make_formatter, adapter):
        """Test a file with a global and several functions is laid out by section."""
        adapter.add(messy_plugin_tree())

        assert make_formatter().format(MESSY_SOURCE) == FORMATTED_SOURCE

    def test_tokens_preserved(self, make_formatter, adapter):
        """Test formatting changes only whitespace between identifiers and literals."""
        adapter.add(messy_plugin_tree())

        result = make_formatter().format(MESSY_SOURCE)

        assert _WORDS.findall(result) == _WORDS.findall(MESSY_SOURCE)
        assert "".join(result.split()) == "".join(MESSY_SOURCE.split())

    def test_idempotent(self, make_formatter, adapter):
        """Test formatting already formatted output changes nothing."""
        adapter.add(messy_plugin_tree())
        adapter.add(formatted_plugin_tree())
        formatter = make_formatter()

        once = formatter.format(MESSY_SOURCE)
        twice = formatter.format(once)

        assert twice == once
        assert adapter.parsed == [MESSY_SOURCE, FORMATTED_SOURCE]

    def test_prefix_update(self, make_formatter, adapter):
        """Test a split prefix operator is rejoined without a terminator."""
        adapter.add(prefix_update_tree())

        assert make_formatter().format("++i") == "++i"

    def test_fragment_fallback(self, make_formatter, adapter, monkeypatch, caplog):
        """Test the fragment strategy runs when recovery yields nothing."""
        adapter.add(initializer_tree())
        formatter = make_formatter()
        monkeypatch.setattr(formatter.renderer, "render_document", lambda syntax_tree: "")
        caplog.set_level(logging.DEBUG, logger="spformat.formatter.formatter")

        assert formatter.format("a+b") == "a + b"

        outcomes = [
            (record.strategy, record.succeeded)
            for record in caplog.records
            if hasattr(record, "succeeded")
        ]
        assert ("misclassification_recovery", False) in outcomes
        assert ("fragment", True) in outcomes

    def test_all_strategies_fail(self, make_formatter, monkeypatch):
        """Test FormattingError carries the collected syntax errors."""
        formatter = make_formatter()

        def broken(syntax_tree):
            raise ValueError("render failed")

        monkeypatch.setattr(formatter.renderer, "render_document", broken)

        with pytest.raises(FormattingError) as exc_info:
            formatter.format("@")

        assert [e.message for e in exc_info.value.errors] == ["Syntax error at '@'"]
        assert str(exc_info.value).startswith("Source code contains syntax errors:")

    def test_grammar_error_propagates(self):
        """Test grammar failures are raised, not reported as syntax errors."""

        class BrokenAdapter(StubAdapter):
            def _parse(self, source):
                raise GrammarError("grammar failed to produce a tree")

        with SourcePawnFormatter(adapter=BrokenAdapter()) as formatter:
            with pytest.raises(GrammarError):
                formatter.format("int x;")


class TestDiagnostics:
    """Tests for get_syntax_errors and is_valid_syntax."""

    def test_valid_source(self, make_formatter, adapter):
        """Test a valid tree has no errors."""
        adapter.add(plugin_tree())
        formatter = make_formatter()

        assert formatter.get_syntax_errors(PLUGIN_SOURCE) == []
        assert formatter.is_valid_syntax(PLUGIN_SOURCE)

    def test_invalid_source(self, make_formatter):
        """Test an ERROR tree yields records."""
        formatter = make_formatter()

        errors = formatter.get_syntax_errors("@")

        assert len(errors) == 1
        assert errors[0].start_line == 1
        assert not formatter.is_valid_syntax("@")

    def test_missing_node_reported(self, make_formatter, adapter):
        """Test missing terminators are reported."""
        adapter.add(misread_call_tree(terminator=False))

        errors = make_formatter().get_syntax_errors("foo(a,b)")

        assert [e.is_missing for e in errors] == [True]

    @pytest.mark.parametrize("source", [None, "", "  "])
    def test_empty_input_is_valid(self, make_formatter, source):
        """Test empty input has no errors."""
        formatter = make_formatter()
        assert formatter.get_syntax_errors(source) == []
        assert formatter.is_valid_syntax(source)


class TestLifecycle:
    """Tests for close and the context manager protocol."""

    def test_close_releases_adapter(self):
        """Test closing the formatter closes its adapter."""
        adapter = StubAdapter()
        formatter = SourcePawnFormatter(adapter=adapter)

        formatter.close()
        formatter.close()

        assert formatter.closed
        assert adapter.closed

    def test_use_after_close(self):
        """Test every operation raises after close."""
        with SourcePawnFormatter(adapter=StubAdapter()) as formatter:
            pass

        with pytest.raises(ResourceDisposedError):
            formatter.format("int x;")
        with pytest.raises(ResourceDisposedError):
            formatter.get_syntax_errors("int x;")
        with pytest.raises(ResourceDisposedError):
            formatter.is_valid_syntax("int x;")
