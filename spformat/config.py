"""
Application configuration management.
"""

import sys
from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def default_grammar_library() -> Path:
    """Location of the shared library written by build_grammars.py."""
    if sys.platform == "darwin":
        lib_extension = "dylib"
    elif sys.platform == "win32":
        lib_extension = "dll"
    else:
        lib_extension = "so"
    return Path("build") / f"sourcepawn.{lib_extension}"


class Settings(BaseSettings):
    """Application settings loaded from environment variables (SPFORMAT_*)."""

    model_config = SettingsConfigDict(
        env_prefix="SPFORMAT_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # Logging
    log_level: str = "INFO"

    # Grammar
    grammar_library: Optional[Path] = None

    # Formatting
    options_file: Optional[Path] = None

    # Batch and preview
    max_workers: int = Field(default=4, ge=1)
    preview_debounce_ms: int = Field(default=500, ge=0)

    @property
    def grammar_library_path(self) -> Path:
        return self.grammar_library or default_grammar_library()


# Global settings instance
settings = Settings()
