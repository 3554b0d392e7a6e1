"""The single shared headless-browser session.

Usage:

    from gridshot.browser import BrowserSession

    async with BrowserSession(viewport=(1280, 720)) as session:
        async with session.command():
            await session.navigate("https://example.com")
            await session.screenshot(Path(".cache/shot.png"))

Lifecycle is Uninitialized -> Ready -> Terminated; only a Ready session
accepts commands. Every command runs under ``command()``, which holds the
session lock so overlapping HTTP requests are ordered instead of racing on
the one page.
"""
from __future__ import annotations

import asyncio
import enum
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator

from playwright.async_api import (
    Browser,
    BrowserContext,
    Page,
    Playwright,
    TimeoutError as PlaywrightTimeout,
    async_playwright,
)

from gridshot.errors import SessionNotReady
from gridshot.mouse_helper import MOUSE_HELPER_JS

log = logging.getLogger(__name__)

MOUSE_BUTTONS = ("left", "right", "middle")


class SessionState(enum.Enum):
    UNINITIALIZED = "uninitialized"
    READY = "ready"
    TERMINATED = "terminated"


class BrowserSession:
    """One Chromium browser, one context, one page."""

    def __init__(
        self,
        viewport: tuple[int, int] = (1280, 720),
        headless: bool = True,
        start_url: str | None = "https://www.example.com",
        navigation_timeout_ms: int = 30_000,
        mouse_helper: bool = True,
    ) -> None:
        self.viewport = {"width": viewport[0], "height": viewport[1]}
        self.headless = headless
        self.start_url = start_url
        self.navigation_timeout_ms = navigation_timeout_ms
        self.mouse_helper = mouse_helper

        self._pw: Playwright | None = None
        self._browser: Browser | None = None
        self._context: BrowserContext | None = None
        self._page: Page | None = None
        self._state = SessionState.UNINITIALIZED
        self._lock = asyncio.Lock()

    # -- Lifecycle -------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def ready(self) -> bool:
        return self._state is SessionState.READY and self._page is not None

    async def launch(self) -> BrowserSession:
        """Launch the browser, open the page and load the start URL."""
        if self._state is not SessionState.UNINITIALIZED:
            raise SessionNotReady(f"Cannot launch a session in state {self._state.value}")

        try:
            self._pw = await async_playwright().start()
            self._browser = await self._pw.chromium.launch(
                headless=self.headless,
                args=["--disable-gpu", "--no-sandbox", "--disable-dev-shm-usage"],
            )
            self._context = await self._browser.new_context(viewport=self.viewport)
            if self.mouse_helper:
                await self._context.add_init_script(MOUSE_HELPER_JS)
            self._page = await self._context.new_page()
            self._state = SessionState.READY

            if self.start_url:
                await self.navigate(self.start_url)
        except Exception:
            await self.terminate()
            raise
        log.info(
            "Browser initialized with resolution %dx%d",
            self.viewport["width"], self.viewport["height"],
        )
        return self

    async def terminate(self) -> None:
        """Close the browser. The session cannot be relaunched."""
        self._state = SessionState.TERMINATED
        if self._browser:
            try:
                await self._browser.close()
            except Exception as exc:
                log.warning("Failed to close browser: %s", exc)
        if self._pw:
            await self._pw.stop()

        self._page = None
        self._context = None
        self._browser = None
        self._pw = None
        log.info("Browser session terminated")

    async def __aenter__(self) -> BrowserSession:
        return await self.launch()

    async def __aexit__(self, *args: object) -> None:
        await self.terminate()

    @property
    def page(self) -> Page:
        """Direct access to the Playwright page; raises unless Ready."""
        if not self.ready:
            raise SessionNotReady("Page not initialized yet")
        return self._page  # type: ignore[return-value]

    @asynccontextmanager
    async def command(self) -> AsyncIterator[BrowserSession]:
        """Hold the session lock for one logical command.

        Readiness is checked both before waiting and after acquiring, since
        the session may be terminated while a request is queued.
        """
        if not self.ready:
            raise SessionNotReady("Page not initialized yet")
        async with self._lock:
            if not self.ready:
                raise SessionNotReady("Page not initialized yet")
            yield self

    # -- Reads -----------------------------------------------------------------

    def current_viewport(self) -> dict | None:
        """The page's viewport as ``{"width", "height"}``, or None if unknown."""
        return self.page.viewport_size

    def current_url(self) -> str:
        return self.page.url

    async def current_content(self) -> str:
        return await self.page.content()

    # -- Navigation ------------------------------------------------------------

    async def navigate(self, url: str) -> str:
        """Navigate and wait for the network to settle. Returns the final URL."""
        page = self.page
        try:
            await page.goto(
                url, wait_until="networkidle", timeout=self.navigation_timeout_ms,
            )
        except PlaywrightTimeout:
            log.warning("Page load timed out for %s, continuing", url)
        return page.url

    # -- Screenshot ------------------------------------------------------------

    async def screenshot(self, path: Path) -> Path:
        """Capture the viewport as PNG at ``path``."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        await self.page.screenshot(path=str(path), type="png")
        size = path.stat().st_size if path.exists() else 0
        log.info("Screenshot: %s (%d bytes)", path, size)
        return path

    # -- Interaction -----------------------------------------------------------

    async def move_mouse(self, x: float, y: float) -> None:
        await self.page.mouse.move(x, y)

    async def click(
        self, x: float, y: float, button: str = "left", click_count: int = 1,
    ) -> None:
        """Move to (x, y) and click there."""
        if button not in MOUSE_BUTTONS:
            raise ValueError(f"Unknown mouse button: {button}")
        page = self.page
        await page.mouse.move(x, y)
        await page.mouse.click(x, y, button=button, click_count=click_count)

    async def type_text(
        self, text: str, delay: float = 0, use_clipboard: bool = False,
    ) -> str:
        """Type into the focused element. Returns the input method used.

        With ``use_clipboard`` the whole string is inserted in one step, like a
        paste, without per-key events.
        """
        keyboard = self.page.keyboard
        if use_clipboard:
            await keyboard.insert_text(text)
            return "clipboard"
        await keyboard.type(text, delay=delay)
        return "keyboard"

    async def press_key(self, key: str) -> None:
        """Press a keyboard key (e.g., 'Enter', 'Tab', 'Control+A')."""
        await self.page.keyboard.press(key)
