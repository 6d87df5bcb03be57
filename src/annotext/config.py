"""Centralised configuration using pydantic-settings.

All environment variables are read through the Settings class.
Consumers call ``get_settings()`` to obtain a cached, validated instance.
Tests construct ``Settings(_env_file=None, ...)`` directly for isolation.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

# src/annotext/config.py  ->  parent x3  ->  project root
_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent

HighlighterMethod = Literal["css-classes", "inline-styles"]
HighlighterStyle = Literal["lowlight", "floating", "rounded", "realistic"]
CursorStrategy = Literal["coordinate", "anchored"]

DEFAULT_HIGHLIGHTERS: dict[str, str] = {
    "Pink": "#FFB8EBA6",
    "Red": "#FF5582A6",
    "Orange": "#FFB86CA6",
    "Yellow": "#FFF3A3A6",
    "Green": "#BBFABBA6",
    "Cyan": "#ABF7F7A6",
    "Blue": "#ADCCFFA6",
    "Purple": "#D2B3FFA6",
    "Grey": "#CACFD9A6",
}


# ---------------------------------------------------------------------------
# Sub-models (one per configuration domain)
# ---------------------------------------------------------------------------
class HighlighterConfig(BaseModel):
    """Highlighter palette and how colours are written into markup.

    ``method`` picks between a ``class="hltr-<name>"`` attribute and an
    inline ``style="background: <colour>;"`` attribute.
    """

    method: HighlighterMethod = "inline-styles"
    highlighters: dict[str, str] = dict(DEFAULT_HIGHLIGHTERS)
    order: list[str] = list(DEFAULT_HIGHLIGHTERS)
    style: HighlighterStyle = "lowlight"

    @model_validator(mode="after")
    def order_names_known_highlighters(self) -> HighlighterConfig:
        unknown = [key for key in self.order if key not in self.highlighters]
        if unknown:
            msg = f"HIGHLIGHTER__ORDER names unknown highlighters: {', '.join(unknown)}"
            raise ValueError(msg)
        return self


class SyncConfig(BaseModel):
    """Buffer synchronisation behaviour."""

    # "coordinate" restores the raw line/ch after a rewrite; "anchored"
    # shifts it by the length of edits made before it.
    cursor_strategy: CursorStrategy = "coordinate"


class AppConfig(BaseModel):
    """Application runtime configuration."""

    log_dir: Path = Path("logs")


# ---------------------------------------------------------------------------
# Root settings
# ---------------------------------------------------------------------------
class Settings(BaseSettings):
    """Settings with automatic .env loading and type validation.

    Environment variables use double-underscore delimiter for nesting:
    ``HIGHLIGHTER__METHOD``, ``SYNC__CURSOR_STRATEGY``, ``APP__LOG_DIR``.
    Dict and list fields take JSON, e.g.
    ``HIGHLIGHTER__ORDER='["Yellow", "Pink"]'``.
    """

    model_config = SettingsConfigDict(
        env_file=_PROJECT_ROOT / ".env",
        env_nested_delimiter="__",
        extra="ignore",
    )

    highlighter: HighlighterConfig = HighlighterConfig()
    sync: SyncConfig = SyncConfig()
    app: AppConfig = AppConfig()


# ---------------------------------------------------------------------------
# Singleton access
# ---------------------------------------------------------------------------
@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached Settings instance.

    Call ``get_settings.cache_clear()`` in tests to reset.
    """
    settings = Settings()

    env_file = settings.model_config.get("env_file")
    if env_file is not None and Path(str(env_file)).is_file():
        logger.info("Settings loaded .env from: %s", env_file)
    else:
        logger.info("Settings: no .env file found, using env vars and defaults")

    return settings
