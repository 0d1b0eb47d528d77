"""Unit tests for FormattingOptions."""

import pytest
import yaml
from pydantic import ValidationError

from spformat.models.options import FormattingOptions


def test_defaults():
    """Test the documented default values."""
    options = FormattingOptions.default()

    assert options.indent_size == 4
    assert options.use_spaces
    assert options.space_after_comma
    assert options.space_around_operators
    assert not options.space_before_open_paren
    assert options.new_line_after_open_brace
    assert options.max_line_length == 120
    assert options.max_consecutive_empty_lines == 2
    assert not options.sort_includes
    assert options.require_semicolons
    assert not options.remove_optional_semicolons
    assert options.line_ending == "\n"


def test_indent_string():
    """Test the indentation unit for spaces and tabs."""
    assert FormattingOptions(indent_size=2).indent_string == "  "
    assert FormattingOptions(use_spaces=False, indent_size=2).indent_string == "\t"


def test_options_are_immutable():
    """Test options cannot be changed after construction."""
    options = FormattingOptions()

    with pytest.raises(ValidationError):
        options.indent_size = 8

    derived = options.model_copy(update={"indent_size": 8})
    assert derived.indent_size == 8
    assert options.indent_size == 4


@pytest.mark.parametrize("field,value", [
    ("indent_size", -1),
    ("max_line_length", 0),
    ("max_consecutive_empty_lines", -1),
    ("line_ending", "\n\n"),
])
def test_invalid_values_rejected(field, value):
    """Test out-of-range values fail validation."""
    with pytest.raises(ValidationError):
        FormattingOptions(**{field: value})


def test_unknown_option_rejected():
    """Test misspelled option names are not silently ignored."""
    with pytest.raises(ValidationError):
        FormattingOptions(indent_sise=2)


def test_from_yaml(tmp_path):
    """Test loading options from a YAML file."""
    path = tmp_path / "spformat.yaml"
    path.write_text(yaml.safe_dump({"indent_size": 2, "use_spaces": False, "line_ending": "\r\n"}))

    options = FormattingOptions.from_yaml(path)

    assert options.indent_size == 2
    assert not options.use_spaces
    assert options.line_ending == "\r\n"


def test_from_empty_yaml(tmp_path):
    """Test an empty file yields defaults."""
    path = tmp_path / "empty.yaml"
    path.write_text("")

    assert FormattingOptions.from_yaml(path) == FormattingOptions()


def test_from_yaml_missing_file(tmp_path):
    """Test a missing file raises FileNotFoundError."""
    with pytest.raises(FileNotFoundError):
        FormattingOptions.from_yaml(tmp_path / "missing.yaml")


def test_from_yaml_not_a_mapping(tmp_path):
    """Test a YAML list is rejected."""
    path = tmp_path / "list.yaml"
    path.write_text("- indent_size\n- 2\n")

    with pytest.raises(ValueError):
        FormattingOptions.from_yaml(path)
