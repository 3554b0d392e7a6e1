"""Test helpers for gridshot: a fake Playwright page and a Ready session."""
from __future__ import annotations

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

from PIL import Image

from gridshot.browser import BrowserSession, SessionState

RAW_FILL = (30, 120, 200)


def make_fake_page(viewport: tuple[int, int] | None = (800, 600)) -> MagicMock:
    """MagicMock page whose async methods are AsyncMocks.

    ``screenshot(path=...)`` writes a solid RAW_FILL PNG of the viewport size.
    """
    page = MagicMock()
    page.viewport_size = (
        {"width": viewport[0], "height": viewport[1]} if viewport else None
    )
    page.url = "https://example.com/"
    page.content = AsyncMock(return_value="<html><body>Example</body></html>")
    page.goto = AsyncMock()
    page.mouse.move = AsyncMock()
    page.mouse.click = AsyncMock()
    page.keyboard.type = AsyncMock()
    page.keyboard.insert_text = AsyncMock()
    page.keyboard.press = AsyncMock()

    size = viewport or (640, 480)

    async def _screenshot(path: str, **_kw) -> bytes:
        Image.new("RGB", size, RAW_FILL).save(path, "PNG")
        return Path(path).read_bytes()

    page.screenshot = AsyncMock(side_effect=_screenshot)
    return page


def ready_session(page: MagicMock | None = None) -> BrowserSession:
    """BrowserSession in the Ready state backed by a fake page (no browser)."""
    session = BrowserSession(start_url=None, mouse_helper=False)
    session._page = page if page is not None else make_fake_page()
    session._state = SessionState.READY
    return session
