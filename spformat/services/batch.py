"""
Batch formatting service.

Formats many files concurrently. A parser is not reentrant, so every worker
takes its own formatter from a pool handed out through an asyncio.Queue;
the formatting itself runs in worker threads.
"""

import asyncio
import logging
import shutil
from enum import Enum
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Tuple

from grammars.manager import GrammarManager
from spformat.config import settings
from spformat.errors import FormatterError, FormattingError
from spformat.formatter import SourcePawnFormatter
from spformat.models.batch import BatchReport, FileResult, FileStatus
from spformat.models.options import FormattingOptions
from spformat.utils.logging import LogContext, get_logger

logger = get_logger(__name__)

FormatterFactory = Callable[[], SourcePawnFormatter]

BACKUP_SUFFIX = ".bak"
OUTPUT_SUFFIX = "_formatted"


class BatchMode(str, Enum):
    """What to do with each formatted file."""

    PRINT = "print"
    OUTPUT = "output"
    IN_PLACE = "in_place"
    DRY_RUN = "dry_run"
    CHECK = "check"
    ERRORS = "errors"


def output_path_for(path: Path) -> Path:
    """``plugin.sp`` -> ``plugin_formatted.sp``."""
    return path.with_name(f"{path.stem}{OUTPUT_SUFFIX}{path.suffix}")


def backup_path_for(path: Path) -> Path:
    """``plugin.sp`` -> ``plugin.sp.bak``."""
    return path.with_name(path.name + BACKUP_SUFFIX)


class BatchFormatter:
    """Formats files and directories with a pool of formatters."""

    def __init__(
        self,
        options: Optional[FormattingOptions] = None,
        max_workers: Optional[int] = None,
        formatter_factory: Optional[FormatterFactory] = None,
        grammar_manager: Optional[GrammarManager] = None,
    ):
        """
        Initialize the batch formatter.

        Args:
            options: Formatting options for every file
            max_workers: Number of concurrent formatters. Defaults to settings.
            formatter_factory: Creates one formatter per worker
            grammar_manager: Decides which files inside directories are formatted
        """
        self.options = options or FormattingOptions.default()
        self.max_workers = max_workers or settings.max_workers
        self.formatter_factory = formatter_factory or self._default_factory

        if grammar_manager is None:
            grammar_manager = GrammarManager()
            grammar_manager.discover()
        self.grammar_manager = grammar_manager

    def _default_factory(self) -> SourcePawnFormatter:
        return SourcePawnFormatter(self.options)

    def collect_files(
        self,
        paths: Iterable[Path],
        directories_only: bool = False,
    ) -> Tuple[List[Path], List[Path]]:
        """
        Expand paths into the files to format.

        Directories are searched recursively. Files given explicitly are
        always included; files inside directories are included when their
        extension belongs to a known grammar.

        Args:
            paths: Files and directories
            directories_only: Treat every path as a directory; files count as missing

        Returns:
            Tuple of (files to format, paths that do not exist)
        """
        files: List[Path] = []
        missing: List[Path] = []

        for path in paths:
            path = Path(path)
            if path.is_dir():
                found = sorted(
                    candidate for candidate in path.rglob("*")
                    if candidate.is_file()
                    and self.grammar_manager.is_supported(str(candidate))
                    and not candidate.stem.endswith(OUTPUT_SUFFIX)
                )
                logger.debug(f"Found {len(found)} files in {path}")
                files.extend(found)
            elif path.is_file() and not directories_only:
                files.append(path)
            else:
                missing.append(path)

        return files, missing

    async def run(
        self,
        paths: Iterable[Path],
        mode: BatchMode = BatchMode.PRINT,
        backup: bool = False,
        directories_only: bool = False,
    ) -> BatchReport:
        """
        Format every file under the given paths.

        Args:
            paths: Files and directories
            mode: What to do with each result
            backup: Write ``<file>.bak`` before rewriting a file in place
            directories_only: Treat every path as a directory

        Returns:
            Batch report with one result per file, in input order

        Raises:
            GrammarError: If no formatter can be created
        """
        files, missing = self.collect_files(paths, directories_only)
        kind = "Directory" if directories_only else "File"
        report = BatchReport(results=[
            FileResult(path=path, status=FileStatus.FAILED, error=f"{kind} not found: {path}")
            for path in missing
        ])
        if not files:
            return report

        worker_count = min(self.max_workers, len(files))
        pool: asyncio.Queue = asyncio.Queue()
        formatters: List[SourcePawnFormatter] = []

        try:
            for _ in range(worker_count):
                formatter = await asyncio.to_thread(self.formatter_factory)
                formatters.append(formatter)
                pool.put_nowait(formatter)

            logger.info(f"Formatting {len(files)} files with {worker_count} workers")
            results = await asyncio.gather(
                *(self._process(pool, path, mode, backup) for path in files)
            )
        finally:
            for formatter in formatters:
                formatter.close()

        report.results.extend(results)
        return report

    async def _process(
        self,
        pool: asyncio.Queue,
        path: Path,
        mode: BatchMode,
        backup: bool,
    ) -> FileResult:
        formatter = await pool.get()
        try:
            return await asyncio.to_thread(self.format_file, formatter, path, mode, backup)
        finally:
            pool.put_nowait(formatter)

    def format_file(
        self,
        formatter: SourcePawnFormatter,
        path: Path,
        mode: BatchMode = BatchMode.PRINT,
        backup: bool = False,
    ) -> FileResult:
        """
        Format a single file.

        Args:
            formatter: Formatter to use (not shared with other threads)
            path: File to format
            mode: What to do with the result
            backup: Write ``<file>.bak`` before rewriting in place

        Returns:
            Result for the file; failures are reported, not raised
        """
        file_logger = logger.with_context(file_path=str(path))
        with LogContext(formatter.logger, file_path=str(path)):
            return self._format_file(formatter, path, mode, backup, file_logger)

    def _format_file(
        self,
        formatter: SourcePawnFormatter,
        path: Path,
        mode: BatchMode,
        backup: bool,
        file_logger: logging.LoggerAdapter,
    ) -> FileResult:
        try:
            with open(path, 'r', encoding="utf-8", newline="") as f:
                original = f.read()
        except (OSError, UnicodeDecodeError) as e:
            file_logger.error(f"Failed to read {path}: {e}")
            return FileResult(path=path, status=FileStatus.FAILED, error=str(e))

        if mode is BatchMode.ERRORS:
            try:
                errors = formatter.get_syntax_errors(original)
            except FormatterError as e:
                return FileResult(path=path, status=FileStatus.FAILED, error=str(e))
            status = FileStatus.FAILED if errors else FileStatus.UNCHANGED
            return FileResult(path=path, status=status, syntax_errors=errors)

        try:
            formatted = formatter.format(original)
        except FormattingError as e:
            file_logger.warning(f"Could not format {path}: {len(e.errors)} syntax errors")
            return FileResult(path=path, status=FileStatus.FAILED, error=str(e), syntax_errors=e.errors)
        except FormatterError as e:
            file_logger.error(f"Failed to format {path}: {e}")
            return FileResult(path=path, status=FileStatus.FAILED, error=str(e))

        content = formatted + self.options.line_ending if formatted else formatted
        changed = content != original
        result = FileResult(
            path=path,
            status=FileStatus.CHANGED if changed else FileStatus.UNCHANGED,
            formatted=formatted,
        )

        try:
            if mode is BatchMode.OUTPUT:
                output_path = output_path_for(path)
                self._write(output_path, content)
                result = result.model_copy(update={"status": FileStatus.WRITTEN, "output_path": output_path})
            elif mode is BatchMode.IN_PLACE and changed:
                backup_path = None
                if backup:
                    backup_path = backup_path_for(path)
                    shutil.copy2(path, backup_path)
                self._write(path, content)
                result = result.model_copy(update={
                    "status": FileStatus.WRITTEN,
                    "output_path": path,
                    "backup_path": backup_path,
                })
        except OSError as e:
            file_logger.error(f"Failed to write {path}: {e}")
            return FileResult(path=path, status=FileStatus.FAILED, error=str(e))

        return result

    @staticmethod
    def _write(path: Path, content: str) -> None:
        with open(path, 'w', encoding="utf-8", newline="") as f:
            f.write(content)
        logger.debug(f"Wrote {path}")
