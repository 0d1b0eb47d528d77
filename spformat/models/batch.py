"""Batch formatting result models."""

from enum import Enum
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel

from .syntax_error import SyntaxErrorRecord


class FileStatus(str, Enum):
    """Outcome of formatting one file."""

    UNCHANGED = "unchanged"
    CHANGED = "changed"
    WRITTEN = "written"
    FAILED = "failed"


class FileResult(BaseModel):
    """Result of formatting one file."""

    path: Path
    status: FileStatus
    formatted: Optional[str] = None
    output_path: Optional[Path] = None
    backup_path: Optional[Path] = None
    error: Optional[str] = None
    syntax_errors: List[SyntaxErrorRecord] = []

    @property
    def failed(self) -> bool:
        return self.status == FileStatus.FAILED


class BatchReport(BaseModel):
    """Summary of a batch run."""

    results: List[FileResult] = []

    @property
    def changed(self) -> List[FileResult]:
        return [r for r in self.results if r.status in (FileStatus.CHANGED, FileStatus.WRITTEN)]

    @property
    def failed(self) -> List[FileResult]:
        return [r for r in self.results if r.failed]

    @property
    def succeeded(self) -> bool:
        return not self.failed
