"""Unit tests for misclassification recovery."""

import pytest

from spformat.formatter.recovery import Misclassification
from spformat.formatter.renderer import Renderer
from spformat.models.options import FormattingOptions
from tests.support.cst import block, build_node, call, error, ident, missing, node, statement, token


def control_as_function():
    """``if(x>0){y();}`` as the grammar misreads it."""
    return node(
        "function_definition",
        ident("if"),
        node("parameter_declarations", "(", ident("x")),
        node("expression_statement", error(token(">0)"))),
        block(statement(call("y"))),
    )


def call_as_function(terminator=True):
    """``foo(a,b);`` misread as a function whose body is an expression."""
    tail = node("expression_statement", ";") if terminator else node("expression_statement", missing(";"))
    return node(
        "function_definition",
        ident("foo"),
        node("parameter_declarations", "(", ident("a"), ",", ident("b"), ")"),
        tail,
    )


@pytest.fixture
def renderer():
    return Renderer(FormattingOptions())


class TestClassify:
    """Tests for MisclassificationRecovery.classify."""

    def test_control_keyword_name(self, renderer):
        """Test a function named after a control keyword is a control structure."""
        assert renderer.recovery.classify(build_node(control_as_function())) is Misclassification.CONTROL_AS_FUNCTION

    def test_call_without_body(self, renderer):
        """Test parameters plus expression and no block is a call."""
        assert renderer.recovery.classify(build_node(call_as_function())) is Misclassification.CALL_AS_FUNCTION

    def test_genuine_function(self, renderer):
        """Test a real function definition is left alone."""
        func = node(
            "function_definition",
            node("type", "void"), " ", ident("Foo"), node("parameter_declarations", "(", ")"), block(),
        )
        assert renderer.recovery.classify(build_node(func)) is None

    def test_other_kinds(self, renderer):
        """Test non-function nodes are never misclassified."""
        assert renderer.recovery.classify(build_node(statement(call("foo")))) is None


class TestFunctionRecovery:
    """Tests for re-rendering misclassified function definitions."""

    def test_control_structure(self, renderer):
        """Test the split condition is rejoined and the body is formatted."""
        assert renderer.render(build_node(control_as_function())) == "if(x > 0)\n{\n    y();\n}"

    def test_control_structure_with_paren_space(self):
        """Test the keyword/paren option applies to recovered heads."""
        renderer = Renderer(FormattingOptions(space_before_open_paren=True))
        assert renderer.render(build_node(control_as_function())).startswith("if (x > 0)\n")

    def test_control_structure_is_indented(self, renderer):
        """Test a recovered structure nested in a block keeps its level."""
        assert renderer.render(build_node(control_as_function()), 1) == "    if(x > 0)\n    {\n        y();\n    }"

    def test_call_with_terminator(self, renderer):
        """Test a misread call keeps its ';' and gets comma spacing."""
        assert renderer.render(build_node(call_as_function())) == "foo(a, b);"

    def test_call_without_terminator(self):
        """Test no ';' is added when semicolons are optional."""
        renderer = Renderer(FormattingOptions(require_semicolons=False))
        assert renderer.render(build_node(call_as_function(terminator=False))) == "foo(a, b)"

    def test_call_gets_required_terminator(self, renderer):
        """Test a missing ';' is added when semicolons are required."""
        assert renderer.render(build_node(call_as_function(terminator=False))) == "foo(a, b);"

    def test_recovered_call_is_not_a_function_section(self, renderer):
        """Test misread calls are not sorted into the functions section."""
        assert renderer.classify_top_level(build_node(call_as_function())).value == "other"


class TestSourceFileRecovery:
    """Tests for prefix operators split off by the parser."""

    @pytest.mark.parametrize("prefix", ["++", "--", "!"])
    def test_prefix_rejoined(self, prefix):
        """Test the operator is rejoined with the following identifier."""
        renderer = Renderer(FormattingOptions(require_semicolons=False))
        source = node(
            "source_file",
            error(token(prefix)),
            node("global_variable_declaration", ident("i"), missing(";")),
        )

        assert renderer.render(build_node(source)) == f"{prefix}i"

    def test_prefix_rejoined_with_terminator(self, renderer):
        """Test the rejoined statement follows the semicolon policy."""
        source = node(
            "source_file",
            error(token("++")),
            node("global_variable_declaration", ident("count"), missing(";")),
        )

        assert renderer.render(build_node(source)) == "++count;"

    def test_other_error_token_not_rejoined(self, renderer):
        """Test unrelated ERROR tokens fall through to normal rendering."""
        source = build_node(node(
            "source_file",
            error(token("@")),
            node("global_variable_declaration", ident("i"), missing(";")),
        ))

        assert renderer.recovery.render_source_file(source, 0) is None

    def test_complex_declaration_not_rejoined(self, renderer):
        """Test a declaration that is more than one identifier is left alone."""
        source = build_node(node(
            "source_file",
            error(token("!")),
            node("global_variable_declaration", node("type", "int"), " ",
                 node("variable_declaration", ident("x")), ";"),
        ))

        assert renderer.recovery.render_source_file(source, 0) is None
