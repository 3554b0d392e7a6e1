"""Load and provide gridshot configuration from gridshot.toml."""
from __future__ import annotations

import os
import sys
from dataclasses import dataclass
from typing import Mapping

if sys.version_info >= (3, 11):
    import tomllib
else:
    try:
        import tomllib  # type: ignore[import]
    except ModuleNotFoundError:
        import tomli as tomllib  # type: ignore[no-redef]
from pathlib import Path

from dotenv import dotenv_values

from gridshot.paths import Resolution

DEFAULT_VIEWPORT = (1280, 720)
DEFAULT_CELL_SIZE = 100


@dataclass
class Config:
    project_root: Path
    host: str = "127.0.0.1"
    port: int = 2000
    viewport_width: int = DEFAULT_VIEWPORT[0]
    viewport_height: int = DEFAULT_VIEWPORT[1]
    headless: bool = True
    start_url: str = "https://www.example.com"
    navigation_timeout_ms: int = 30_000
    mouse_helper: bool = True  # visible pointer box injected into every page
    cache_dir_name: str = ".cache"
    grid_dir_name: str = "gridImage"
    screenshot_dir_name: str = "screenShot"
    cell_size: int = DEFAULT_CELL_SIZE

    @property
    def viewport(self) -> Resolution:
        return Resolution(self.viewport_width, self.viewport_height)

    @property
    def cache_dir(self) -> Path:
        return self.project_root / self.cache_dir_name

    @property
    def grid_dir(self) -> Path:
        return self.project_root / self.grid_dir_name

    @property
    def screenshot_dir(self) -> Path:
        return self.project_root / self.screenshot_dir_name


def _env_int(name: str, fallback: int, env: Mapping[str, str | None] | None = None) -> int:
    raw = (os.environ if env is None else env).get(name) or ""
    if not raw:
        return fallback
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


def load(project_root: Path | None = None) -> Config:
    """Load config from gridshot.toml; all fields have defaults.

    VIEWPORT_WIDTH, VIEWPORT_HEIGHT and PORT take precedence over the TOML
    values. They are read from the process environment first, then from a
    .env file in the project root. The .env file never modifies os.environ.
    """
    if project_root is None:
        project_root = Path.cwd()

    toml_path = project_root / "gridshot.toml"
    data: dict = {}
    if toml_path.exists():
        with open(toml_path, "rb") as f:
            data = tomllib.load(f)

    server = data.get("server", {})
    browser = data.get("browser", {})
    paths = data.get("paths", {})
    grid = data.get("grid", {})
    env = {**dotenv_values(project_root / ".env"), **os.environ}

    viewport_width = _env_int(
        "VIEWPORT_WIDTH", browser.get("viewport_width", DEFAULT_VIEWPORT[0]), env
    )
    viewport_height = _env_int(
        "VIEWPORT_HEIGHT", browser.get("viewport_height", DEFAULT_VIEWPORT[1]), env
    )

    return Config(
        project_root=project_root.resolve(),
        host=server.get("host", "127.0.0.1"),
        port=_env_int("PORT", server.get("port", 2000), env),
        viewport_width=viewport_width,
        viewport_height=viewport_height,
        headless=browser.get("headless", True),
        start_url=browser.get("start_url", "https://www.example.com"),
        navigation_timeout_ms=browser.get("navigation_timeout_ms", 30_000),
        mouse_helper=browser.get("mouse_helper", True),
        cache_dir_name=paths.get("cache_dir", ".cache"),
        grid_dir_name=paths.get("grid_dir", "gridImage"),
        screenshot_dir_name=paths.get("screenshot_dir", "screenShot"),
        cell_size=grid.get("cell_size", DEFAULT_CELL_SIZE),
    )


def default_viewport() -> Resolution:
    """Viewport from VIEWPORT_WIDTH / VIEWPORT_HEIGHT, else 1280x720."""
    return Resolution(
        _env_int("VIEWPORT_WIDTH", DEFAULT_VIEWPORT[0]),
        _env_int("VIEWPORT_HEIGHT", DEFAULT_VIEWPORT[1]),
    )
