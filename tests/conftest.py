"""Shared fixtures."""

import pytest

from spformat.formatter import SourcePawnFormatter
from spformat.models.options import FormattingOptions
from tests.support.adapter import StubAdapter


@pytest.fixture
def options():
    return FormattingOptions()


@pytest.fixture
def adapter():
    return StubAdapter()


@pytest.fixture
def make_formatter(adapter):
    """Build a formatter over the stub adapter, optionally with custom options."""
    created = []

    def _make(options=None):
        formatter = SourcePawnFormatter(options or FormattingOptions(), adapter=adapter)
        created.append(formatter)
        return formatter

    yield _make

    for formatter in created:
        formatter.close()
