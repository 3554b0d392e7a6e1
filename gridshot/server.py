"""Async HTTP control surface over the browser session (aiohttp).

Run as: python -m gridshot serve
"""
from __future__ import annotations

import asyncio
import json
import logging
import math
import signal
from typing import Any

import structlog
from aiohttp import web

from gridshot.browser import MOUSE_BUTTONS, BrowserSession
from gridshot.capture import capture_plain
from gridshot.config import Config
from gridshot.errors import GridshotError, InvalidInput, SessionNotReady
from gridshot.pipeline import ScreenshotPipeline

log = structlog.get_logger(__name__)


def configure_logging(level: int = logging.INFO) -> None:
    """stdlib logging for the library modules, structlog for the server."""
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    structlog.configure(
        processors=[
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
    )


# ---------------------------------------------------------------------------
# Request validation
# ---------------------------------------------------------------------------


async def _read_body(request: web.Request) -> dict:
    """Parse the JSON body. A missing body is an empty object."""
    if not request.can_read_body:
        return {}
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise InvalidInput("Request body is not valid JSON") from None
    if body is None:
        return {}
    if not isinstance(body, dict):
        raise InvalidInput("Request body must be a JSON object")
    return body


def _is_number(value: Any) -> bool:
    # bool is an int subclass; true/false are not coordinates.
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    try:
        return math.isfinite(value)
    except OverflowError:
        # JSON integers are unbounded; anything past float range is not a position.
        return False


def _coordinates(body: dict, optional: bool = False) -> tuple[Any, Any]:
    x, y = body.get("x"), body.get("y")
    for value in (x, y):
        if value is None and optional:
            continue
        if not _is_number(value):
            raise InvalidInput("Invalid coordinates. x and y must be numbers.")
    return x, y


def _non_empty_string(body: dict, name: str, message: str) -> str:
    value = body.get(name)
    if not isinstance(value, str) or not value:
        raise InvalidInput(message)
    return value


def _click_options(body: dict) -> tuple[str, int]:
    button = body.get("button", "left")
    if button not in MOUSE_BUTTONS:
        raise InvalidInput(
            f"Invalid button type. Must be one of: {', '.join(MOUSE_BUTTONS)}"
        )
    click_count = body.get("clickCount", 1)
    if isinstance(click_count, bool) or not isinstance(click_count, int) or click_count < 1:
        raise InvalidInput("Invalid clickCount. Must be a positive integer.")
    return button, click_count


def _type_options(body: dict) -> tuple[str, float, bool]:
    text = _non_empty_string(body, "text", "Invalid text. Must be a non-empty string.")
    delay = body.get("delay", 0)
    if not _is_number(delay) or delay < 0:
        raise InvalidInput("Invalid delay. Must be a non-negative number of milliseconds.")
    use_clipboard = body.get("useClipboard", False)
    if not isinstance(use_clipboard, bool):
        raise InvalidInput("Invalid useClipboard. Must be a boolean.")
    return text, delay, use_clipboard


# ---------------------------------------------------------------------------
# Error middleware
# ---------------------------------------------------------------------------


@web.middleware
async def error_middleware(request: web.Request, handler) -> web.StreamResponse:
    try:
        return await handler(request)
    except web.HTTPException:
        raise
    except GridshotError as exc:
        log.warning(
            "request failed", path=request.path, error=exc.kind, message=exc.message,
        )
        return web.json_response(exc.to_dict(), status=exc.status)
    except Exception as exc:
        log.exception("command failed", path=request.path)
        return web.json_response(
            {"error": "CommandFailed", "message": str(exc)}, status=500,
        )


# ---------------------------------------------------------------------------
# Route handlers
# ---------------------------------------------------------------------------


def create_app(session: BrowserSession, cfg: Config) -> web.Application:
    """Build the aiohttp application with all routes.

    The session is injected; launching and terminating it is the caller's job.
    """
    pipeline = ScreenshotPipeline(
        session, cfg.cache_dir, cfg.grid_dir, cell_size=cfg.cell_size,
    )

    def require_ready() -> None:
        if not session.ready:
            raise SessionNotReady("Page not initialized yet")

    async def health(_request: web.Request) -> web.Response:
        return web.json_response({"status": "ok", "session": session.state.value})

    async def current_url(_request: web.Request) -> web.Response:
        require_ready()
        async with session.command():
            url = session.current_url()
        return web.json_response({"url": url})

    async def current_content(_request: web.Request) -> web.Response:
        require_ready()
        async with session.command():
            content = await session.current_content()
        return web.json_response({"content": content})

    async def navigate(request: web.Request) -> web.Response:
        require_ready()
        body = await _read_body(request)
        url = _non_empty_string(body, "url", "Invalid URL")
        async with session.command():
            landed = await session.navigate(url)
        log.info("navigated", url=url, current_url=landed)
        return web.json_response({"message": "Navigation complete", "currentUrl": landed})

    async def screenshot(_request: web.Request) -> web.Response:
        require_ready()
        async with session.command():
            path = await capture_plain(session, cfg.screenshot_dir)
        return web.json_response({"message": "Screenshot saved", "path": str(path)})

    async def screenshot_with_grid(request: web.Request) -> web.Response:
        require_ready()
        body = await _read_body(request)
        x, y = _coordinates(body, optional=True)
        shot = await pipeline.run_with_grid(x, y)
        return web.json_response({
            "message": "Screenshot with grid saved",
            "path": str(shot.path),
            "coordinates": shot.coordinates,
        })

    async def click(request: web.Request) -> web.Response:
        require_ready()
        body = await _read_body(request)
        x, y = _coordinates(body)
        button, click_count = _click_options(body)
        async with session.command():
            await session.click(x, y, button=button, click_count=click_count)
        return web.json_response({
            "message": f"Successfully clicked at coordinates ({x}, {y})",
            "coordinates": {"x": x, "y": y},
            "details": {"button": button, "clickCount": click_count},
        })

    async def type_text(request: web.Request) -> web.Response:
        require_ready()
        body = await _read_body(request)
        text, delay, use_clipboard = _type_options(body)
        async with session.command():
            method = await session.type_text(text, delay=delay, use_clipboard=use_clipboard)
        return web.json_response({
            "message": f"Successfully typed {len(text)} characters",
            "text": text,
            "method": method,
        })

    async def press_key(request: web.Request) -> web.Response:
        require_ready()
        body = await _read_body(request)
        key = _non_empty_string(body, "key", "Invalid key. Must be a non-empty string.")
        async with session.command():
            await session.press_key(key)
        return web.json_response({"message": f"Successfully pressed key: {key}", "key": key})

    async def move_mouse(request: web.Request) -> web.Response:
        require_ready()
        body = await _read_body(request)
        x, y = _coordinates(body)
        async with session.command():
            await session.move_mouse(x, y)
        return web.json_response({
            "message": f"Mouse moved to coordinates ({x}, {y})",
            "coordinates": {"x": x, "y": y},
        })

    app = web.Application(middlewares=[error_middleware])
    app.router.add_get("/health", health)
    app.router.add_get("/current-url", current_url)
    app.router.add_get("/current-content", current_content)
    app.router.add_post("/navigate", navigate)
    app.router.add_post("/screenshot", screenshot)
    app.router.add_post("/screenshot-with-grid", screenshot_with_grid)
    app.router.add_post("/click", click)
    app.router.add_post("/type", type_text)
    app.router.add_post("/press-key", press_key)
    app.router.add_post("/move-mouse", move_mouse)
    return app


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def build_session(cfg: Config) -> BrowserSession:
    return BrowserSession(
        viewport=(cfg.viewport_width, cfg.viewport_height),
        headless=cfg.headless,
        start_url=cfg.start_url,
        navigation_timeout_ms=cfg.navigation_timeout_ms,
        mouse_helper=cfg.mouse_helper,
    )


async def serve(cfg: Config) -> None:
    """Launch the session, serve until SIGTERM/SIGINT, then shut down.

    Raises whatever the session launch raised; the caller exits non-zero.
    """
    session = build_session(cfg)
    await session.launch()

    runner = web.AppRunner(create_app(session, cfg))
    try:
        await runner.setup()
        site = web.TCPSite(runner, cfg.host, cfg.port)
        await site.start()
        log.info("server started", host=cfg.host, port=cfg.port)

        loop = asyncio.get_running_loop()
        stop_event = asyncio.Event()
        loop.add_signal_handler(signal.SIGTERM, stop_event.set)
        loop.add_signal_handler(signal.SIGINT, stop_event.set)
        await stop_event.wait()
    finally:
        log.info("server stopping")
        await runner.cleanup()
        await session.terminate()
        log.info("server stopped")
