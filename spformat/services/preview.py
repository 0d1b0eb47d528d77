"""
Live preview service.

Formats source text as the user types. Requests are debounced, formatting
runs in a worker thread, and only the result of the most recent request is
delivered (last request wins).
"""

import asyncio
import logging
from typing import Callable, Optional, Set

from spformat.config import settings
from spformat.errors import FormatterError, FormattingError, ResourceDisposedError
from spformat.formatter import SourcePawnFormatter
from spformat.models.preview import PreviewResult
from spformat.utils.logging import log_error_with_context

logger = logging.getLogger(__name__)

ResultCallback = Callable[[PreviewResult], None]


class LivePreview:
    """Debounced, last-request-wins formatting for an editor preview."""

    def __init__(
        self,
        formatter: SourcePawnFormatter,
        debounce_ms: Optional[int] = None,
        on_result: Optional[ResultCallback] = None,
    ):
        """
        Initialize the preview service.

        Args:
            formatter: Formatter used for every request (not closed by this service)
            debounce_ms: Delay before a request is formatted. Defaults to settings.
            on_result: Called with each delivered result
        """
        self.formatter = formatter
        if debounce_ms is None:
            debounce_ms = settings.preview_debounce_ms
        self.debounce_seconds = debounce_ms / 1000
        self.on_result = on_result
        self.latest: Optional[PreviewResult] = None

        self._request_id = 0
        self._pending: Optional[asyncio.Task] = None
        self._pending_id = 0
        self._in_flight: Optional[int] = None
        self._tasks: Set[asyncio.Task] = set()
        self._format_lock = asyncio.Lock()
        self._closed = False

    async def submit(self, source: str) -> int:
        """
        Queue source text for formatting.

        A request still waiting out its debounce delay is cancelled; one that
        is already formatting finishes but its result is discarded.

        Args:
            source: Current editor text

        Returns:
            Request identifier

        Raises:
            ResourceDisposedError: If the service has been closed
        """
        if self._closed:
            raise ResourceDisposedError(type(self).__name__)

        self._request_id += 1
        request_id = self._request_id

        if self._pending is not None and not self._pending.done() and self._in_flight != self._pending_id:
            self._pending.cancel()

        task = asyncio.create_task(self._run(request_id, source))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        self._pending = task
        self._pending_id = request_id

        logger.debug(f"Preview request {request_id} submitted")
        return request_id

    async def _run(self, request_id: int, source: str) -> None:
        if self.debounce_seconds:
            await asyncio.sleep(self.debounce_seconds)

        async with self._format_lock:
            if request_id != self._request_id:
                logger.debug(f"Preview request {request_id} superseded before formatting")
                return

            self._in_flight = request_id
            try:
                result = await asyncio.to_thread(self._format, request_id, source)
            finally:
                self._in_flight = None

        if request_id != self._request_id:
            logger.debug(f"Discarding stale preview result {request_id}")
            return

        self.latest = result
        if self.on_result is not None:
            self.on_result(result)

    def _format(self, request_id: int, source: str) -> PreviewResult:
        try:
            formatted = self.formatter.format(source)
        except FormattingError as e:
            return PreviewResult(request_id=request_id, error=str(e), syntax_errors=e.errors)
        except FormatterError as e:
            log_error_with_context(logger, "Preview formatting failed", e, request_id=request_id)
            return PreviewResult(request_id=request_id, error=str(e))

        return PreviewResult(request_id=request_id, formatted=formatted)

    async def wait_idle(self) -> Optional[PreviewResult]:
        """
        Wait until every outstanding request has finished or been cancelled.

        Returns:
            The latest delivered result
        """
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
        return self.latest

    async def close(self) -> None:
        """Cancel outstanding requests and reject new ones."""
        if self._closed:
            return
        self._closed = True

        for task in list(self._tasks):
            task.cancel()
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

        logger.debug("Live preview closed")
