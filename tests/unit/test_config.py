"""
Unit tests for configuration management.
"""

import os
import sys
from pathlib import Path
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from spformat.config import Settings, default_grammar_library


def test_settings_loads_from_environment():
    """Test that settings can be loaded from environment variables."""
    with patch.dict(os.environ, {
        'SPFORMAT_LOG_LEVEL': 'DEBUG',
        'SPFORMAT_GRAMMAR_LIBRARY': '/opt/grammars/sourcepawn.so',
        'SPFORMAT_OPTIONS_FILE': 'spformat.yaml',
        'SPFORMAT_MAX_WORKERS': '8',
        'SPFORMAT_PREVIEW_DEBOUNCE_MS': '250',
    }):
        settings = Settings()

        assert settings.log_level == 'DEBUG'
        assert settings.grammar_library == Path('/opt/grammars/sourcepawn.so')
        assert settings.grammar_library_path == Path('/opt/grammars/sourcepawn.so')
        assert settings.options_file == Path('spformat.yaml')
        assert settings.max_workers == 8
        assert settings.preview_debounce_ms == 250


def test_settings_has_default_values():
    """Test that settings have appropriate default values."""
    with patch.dict(os.environ, {}, clear=True):
        settings = Settings(_env_file=None)

        assert settings.log_level == 'INFO'
        assert settings.grammar_library is None
        assert settings.grammar_library_path == default_grammar_library()
        assert settings.options_file is None
        assert settings.max_workers == 4
        assert settings.preview_debounce_ms == 500


def test_settings_rejects_invalid_workers():
    """Test that a non-positive worker count is rejected."""
    with patch.dict(os.environ, {'SPFORMAT_MAX_WORKERS': '0'}):
        with pytest.raises(ValidationError):
            Settings()


def test_default_grammar_library_extension():
    """Test the shared library name follows the platform."""
    expected = {'darwin': 'sourcepawn.dylib', 'win32': 'sourcepawn.dll'}.get(sys.platform, 'sourcepawn.so')

    path = default_grammar_library()

    assert path.parent == Path('build')
    assert path.name == expected
