"""Unit tests for the live preview service."""

import asyncio
import threading

import pytest

from spformat.config import settings
from spformat.errors import FormattingError, GrammarError, ResourceDisposedError
from spformat.formatter import SourcePawnFormatter
from spformat.services.preview import LivePreview
from tests.support.adapter import StubAdapter
from tests.support.cst import error, node, tree


class RecordingFormatter:
    """Formatter double that upper-cases its input and records every call."""

    def __init__(self):
        self.calls = []
        self.started = threading.Event()
        self.release = threading.Event()
        self.release.set()

    def format(self, source):
        self.calls.append(source)
        if source == "bad":
            raise FormattingError([])
        if source == "broken":
            raise GrammarError("grammar failed to produce a tree")
        self.started.set()
        self.release.wait(timeout=5)
        return source.upper()


@pytest.fixture
def formatter():
    return RecordingFormatter()


@pytest.fixture
def delivered():
    return []


@pytest.mark.asyncio
async def test_single_request(formatter, delivered):
    """Test a request is formatted and delivered."""
    preview = LivePreview(formatter, debounce_ms=0, on_result=delivered.append)

    request_id = await preview.submit("int x;")
    latest = await preview.wait_idle()

    assert request_id == 1
    assert latest.formatted == "INT X;"
    assert latest.succeeded
    assert [result.request_id for result in delivered] == [1]


@pytest.mark.asyncio
async def test_debounce_keeps_last_request(formatter, delivered):
    """Test rapid submissions collapse into the last one."""
    preview = LivePreview(formatter, debounce_ms=50, on_result=delivered.append)

    for source in ("a", "ab", "abc"):
        await preview.submit(source)
    latest = await preview.wait_idle()

    assert formatter.calls == ["abc"]
    assert latest.request_id == 3
    assert latest.formatted == "ABC"
    assert len(delivered) == 1


@pytest.mark.asyncio
async def test_in_flight_result_discarded(formatter, delivered):
    """Test a request that is already formatting finishes but is not delivered."""
    preview = LivePreview(formatter, debounce_ms=0, on_result=delivered.append)
    formatter.release.clear()

    await preview.submit("slow")
    assert await asyncio.to_thread(formatter.started.wait, 5)

    await preview.submit("fast")
    formatter.release.set()
    latest = await preview.wait_idle()

    assert formatter.calls == ["slow", "fast"]
    assert [result.request_id for result in delivered] == [2]
    assert latest.formatted == "FAST"


@pytest.mark.asyncio
async def test_formatting_error_is_delivered(formatter, delivered):
    """Test failures are delivered as results rather than raised."""
    preview = LivePreview(formatter, debounce_ms=0, on_result=delivered.append)

    await preview.submit("bad")
    latest = await preview.wait_idle()

    assert not latest.succeeded
    assert latest.error == "Unable to format source code"
    assert latest.syntax_errors == []


@pytest.mark.asyncio
async def test_grammar_error_is_delivered(formatter):
    """Test grammar failures are reported on the result."""
    preview = LivePreview(formatter, debounce_ms=0)

    await preview.submit("broken")
    latest = await preview.wait_idle()

    assert latest.error == "grammar failed to produce a tree"


@pytest.mark.asyncio
async def test_close_cancels_pending(formatter, delivered):
    """Test closing cancels waiting requests and rejects new ones."""
    preview = LivePreview(formatter, debounce_ms=10_000, on_result=delivered.append)

    await preview.submit("never")
    await preview.close()

    assert await preview.wait_idle() is None
    assert delivered == []
    assert formatter.calls == []
    with pytest.raises(ResourceDisposedError):
        await preview.submit("late")


@pytest.mark.asyncio
async def test_with_real_formatter():
    """Test syntax errors from a real formatter reach the result."""
    adapter = StubAdapter(tree(node("source_file", error("@"))))
    with SourcePawnFormatter(adapter=adapter) as real_formatter:
        real_formatter.renderer.render_document = lambda syntax_tree: ""
        preview = LivePreview(real_formatter, debounce_ms=0)

        await preview.submit("@")
        latest = await preview.wait_idle()

    assert not latest.succeeded
    assert [e.message for e in latest.syntax_errors] == ["Syntax error at '@'"]


def test_default_debounce_from_settings(formatter):
    """Test the debounce delay defaults to the configured value."""
    preview = LivePreview(formatter)

    assert preview.debounce_seconds == settings.preview_debounce_ms / 1000
