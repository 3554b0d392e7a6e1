"""Shared test fixtures for gridshot.

No real browser is launched anywhere in the suite: the session is either a
BrowserSession with a fake page attached (``session`` / ``fake_page``) or one
whose Playwright entry point is patched (``mock_playwright``).
"""
from __future__ import annotations

from pathlib import Path
from typing import Generator
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from gridshot.browser import BrowserSession
from gridshot.config import Config
from tests.helpers import make_fake_page, ready_session


@pytest.fixture
def test_config(tmp_path: Path) -> Config:
    """Isolated Config: artifact directories under tmp_path."""
    return Config(project_root=tmp_path, viewport_width=800, viewport_height=600)


@pytest.fixture
def fake_page() -> MagicMock:
    return make_fake_page((800, 600))


@pytest.fixture
def session(fake_page: MagicMock) -> BrowserSession:
    return ready_session(fake_page)


@pytest.fixture
def mock_playwright() -> Generator[dict, None, None]:
    """Patch async_playwright to return mock objects."""
    with patch("gridshot.browser.async_playwright") as mock_ap:
        mock_pw = MagicMock()
        mock_pw.stop = AsyncMock()
        mock_ap.return_value.start = AsyncMock(return_value=mock_pw)

        mock_browser = MagicMock()
        mock_browser.close = AsyncMock()
        mock_pw.chromium.launch = AsyncMock(return_value=mock_browser)

        mock_context = MagicMock()
        mock_context.add_init_script = AsyncMock()
        mock_browser.new_context = AsyncMock(return_value=mock_context)

        mock_page = make_fake_page((1280, 720))
        mock_context.new_page = AsyncMock(return_value=mock_page)

        yield {
            "async_playwright": mock_ap,
            "pw": mock_pw,
            "browser": mock_browser,
            "context": mock_context,
            "page": mock_page,
        }
