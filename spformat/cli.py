"""
Command line interface.

    spformat plugin.sp                 print formatted code
    spformat -o plugin.sp              write plugin_formatted.sp
    spformat --in-place -b scripting/  rewrite files, keeping .bak copies
    spformat --check scripting/        exit 1 if anything would change
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

import yaml

from spformat import __version__
from spformat.config import settings
from spformat.errors import FormatterError, FormattingError
from spformat.formatter import SourcePawnFormatter
from spformat.models.batch import BatchReport, FileStatus
from spformat.models.options import FormattingOptions
from spformat.services.batch import BatchFormatter, BatchMode
from spformat.utils.logging import setup_logging

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="spformat",
        description="Format SourcePawn source files.",
    )
    parser.add_argument("paths", nargs="*", type=Path,
                        help="Files or directories to format (reads stdin when omitted)")
    parser.add_argument("-o", "--output", action="store_true",
                        help="Write <name>_formatted<ext> next to each file")
    parser.add_argument("-d", "--dry-run", action="store_true",
                        help="Report files that would change without writing")
    parser.add_argument("-b", "--backup", action="store_true",
                        help="Write <file>.bak before rewriting in place")
    parser.add_argument("--in-place", action="store_true",
                        help="Rewrite files in place")
    parser.add_argument("--dir", action="store_true",
                        help="Treat every path as a directory")
    parser.add_argument("--check", action="store_true",
                        help="Exit with status 1 if any file would change")
    parser.add_argument("--errors", action="store_true",
                        help="Only print syntax errors")
    parser.add_argument("-c", "--config", type=Path,
                        help="YAML file with formatting options")
    parser.add_argument("-q", "--quiet", action="store_true",
                        help="Only print errors")
    parser.add_argument("--log-level", default=None,
                        help="Log level (DEBUG, INFO, WARNING, ERROR)")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def _select_mode(args: argparse.Namespace) -> BatchMode:
    if args.errors:
        return BatchMode.ERRORS
    if args.check:
        return BatchMode.CHECK
    if args.dry_run:
        return BatchMode.DRY_RUN
    if args.in_place or args.backup:
        return BatchMode.IN_PLACE
    if args.output:
        return BatchMode.OUTPUT
    return BatchMode.PRINT


def load_options(config_path: Optional[Path]) -> FormattingOptions:
    path = config_path or settings.options_file
    if path is None:
        return FormattingOptions.default()
    return FormattingOptions.from_yaml(path)


def _format_stdin(options: FormattingOptions, errors_only: bool) -> int:
    source = sys.stdin.read()
    with SourcePawnFormatter(options) as formatter:
        if errors_only:
            errors = formatter.get_syntax_errors(source)
            for error in errors:
                print(error.detailed_description())
                print()
            return 1 if errors else 0

        try:
            formatted = formatter.format(source)
        except FormattingError as e:
            print(str(e), file=sys.stderr)
            return 1

    sys.stdout.write(formatted + options.line_ending if formatted else formatted)
    return 0


def print_report(report: BatchReport, mode: BatchMode, quiet: bool) -> None:
    for result in report.results:
        if result.failed:
            if result.syntax_errors and mode is BatchMode.ERRORS:
                print(f"{result.path}:")
                for error in result.syntax_errors:
                    print(error.detailed_description())
                    print()
            else:
                print(f"error: {result.path}: {result.error}", file=sys.stderr)
            continue

        if mode is BatchMode.PRINT:
            if len(report.results) > 1 and not quiet:
                print(f"// {result.path}")
            sys.stdout.write((result.formatted or "") + "\n")
        elif quiet:
            continue
        elif mode in (BatchMode.DRY_RUN, BatchMode.CHECK) and result.status is FileStatus.CHANGED:
            print(f"would reformat {result.path}")
        elif result.status is FileStatus.WRITTEN:
            suffix = f" (backup: {result.backup_path})" if result.backup_path else ""
            print(f"formatted {result.path} -> {result.output_path}{suffix}")

    if not quiet and mode is not BatchMode.PRINT:
        print(
            f"{len(report.results)} files, {len(report.changed)} changed, {len(report.failed)} failed",
            file=sys.stderr,
        )


def main(argv: Optional[List[str]] = None) -> int:
    """
    Run the formatter from the command line.

    Args:
        argv: Arguments (defaults to sys.argv[1:])

    Returns:
        Exit status: 0 on success, 1 on any failure or, with --check, any change
    """
    args = build_parser().parse_args(argv)

    log_level = args.log_level or ("ERROR" if args.quiet else settings.log_level)
    setup_logging(log_level)

    try:
        options = load_options(args.config)
    except (OSError, ValueError, yaml.YAMLError) as e:
        print(f"error: invalid options file: {e}", file=sys.stderr)
        return 1

    try:
        if not args.paths:
            return _format_stdin(options, args.errors)

        mode = _select_mode(args)
        logger.debug(f"Running in {mode.value} mode")
        batch = BatchFormatter(options)
        report = asyncio.run(batch.run(args.paths, mode=mode, backup=args.backup, directories_only=args.dir))
    except FormatterError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    print_report(report, mode, args.quiet)

    if not report.succeeded:
        return 1
    if mode is BatchMode.CHECK and report.changed:
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
