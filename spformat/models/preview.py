"""Live preview result model."""

from typing import List, Optional

from pydantic import BaseModel

from .syntax_error import SyntaxErrorRecord


class PreviewResult(BaseModel):
    """Outcome of one preview request."""

    request_id: int
    formatted: Optional[str] = None
    error: Optional[str] = None
    syntax_errors: List[SyntaxErrorRecord] = []

    @property
    def succeeded(self) -> bool:
        return self.formatted is not None
