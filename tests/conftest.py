"""Shared pytest fixtures for annotext tests."""

from __future__ import annotations

import os
from collections.abc import Generator

import pytest

from annotext.config import get_settings
from annotext.markup.grammar import INDICATOR


@pytest.fixture
def indicator() -> str:
    """The canonical note indicator element."""
    return INDICATOR


@pytest.fixture
def clean_settings(monkeypatch: pytest.MonkeyPatch) -> Generator[None]:
    """Reset cached settings and drop annotext env vars for the test."""
    for key in list(os.environ):
        if key.startswith(("HIGHLIGHTER__", "SYNC__", "APP__")):
            monkeypatch.delenv(key, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
