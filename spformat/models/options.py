"""Formatting options model."""

from pathlib import Path
from typing import Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

LINE_ENDINGS = ("\n", "\r\n", "\r")


class FormattingOptions(BaseModel):
    """
    Immutable set of formatting rules for one formatting session.

    Options are validated on construction; use ``model_copy(update=...)``
    to derive a variant.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    # Indentation
    indent_size: int = Field(default=4, ge=0, le=16)
    use_spaces: bool = True

    # Spacing
    space_after_comma: bool = True
    space_around_operators: bool = True
    space_before_open_paren: bool = False
    space_after_semicolon: bool = True
    space_in_array_brackets: bool = False

    # Line breaks
    new_line_after_open_brace: bool = True
    new_line_after_include: bool = True
    max_line_length: int = Field(default=120, ge=1)

    # Blank lines and ordering
    preserve_empty_lines: bool = True
    max_consecutive_empty_lines: int = Field(default=2, ge=0)
    sort_includes: bool = False

    # Semicolons (require_semicolons=False mirrors `#pragma semicolon 0`)
    require_semicolons: bool = True
    remove_optional_semicolons: bool = False

    line_ending: str = "\n"

    @field_validator("line_ending")
    @classmethod
    def _validate_line_ending(cls, value: str) -> str:
        if value not in LINE_ENDINGS:
            raise ValueError(f"line_ending must be one of {LINE_ENDINGS!r}, got {value!r}")
        return value

    @property
    def indent_string(self) -> str:
        """Indentation unit used for one nesting level."""
        return " " * self.indent_size if self.use_spaces else "\t"

    @classmethod
    def default(cls) -> "FormattingOptions":
        return cls()

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "FormattingOptions":
        """
        Load options from a YAML file.

        Args:
            path: Path to a YAML mapping of option names to values

        Returns:
            Validated FormattingOptions

        Raises:
            FileNotFoundError: If the file does not exist
            yaml.YAMLError: If the file is not valid YAML
            ValueError: If the document is not a mapping or an option is invalid
        """
        config_path = Path(path)
        if not config_path.exists():
            raise FileNotFoundError(f"Options file not found: {config_path}")

        with open(config_path, 'r', encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        if not isinstance(data, dict):
            raise ValueError(f"Options file must contain a mapping: {config_path}")

        return cls(**data)
