"""
Utility modules for the SourcePawn formatter.
"""

from spformat.utils.logging import (
    get_logger,
    setup_logging,
    LogContext,
    log_strategy_attempt,
    log_error_with_context,
)

__all__ = [
    "get_logger",
    "setup_logging",
    "LogContext",
    "log_strategy_attempt",
    "log_error_with_context",
]
