"""Syntax error data models."""

from pydantic import BaseModel, ConfigDict


class SyntaxErrorRecord(BaseModel):
    """A syntax error located in the source text (1-based lines and columns)."""

    model_config = ConfigDict(frozen=True)

    message: str
    node_kind: str
    start_line: int
    start_column: int
    end_line: int
    end_column: int
    start_byte: int = 0
    end_byte: int = 0
    is_missing: bool = False
    context: str = ""

    def __str__(self) -> str:
        error_type = "Missing" if self.is_missing else "Error"
        return f"[{error_type}] Line {self.start_line}:{self.start_column} - {self.message}"

    def detailed_description(self) -> str:
        """
        Render the error with its node kind, position and source context.

        Returns:
            Multi-line human readable description
        """
        lines = [
            str(self),
            f"Node Type: {self.node_kind}",
            f"Position: Line {self.start_line}, Column {self.start_column} "
            f"to Line {self.end_line}, Column {self.end_column}",
            f"Byte Range: {self.start_byte} to {self.end_byte}",
        ]
        if self.context:
            lines.append(f"Context:\n{self.context}")
        return "\n".join(lines)
