"""Artifact naming: resolutions, timestamp tokens and cache filenames.

Layout under the project root (all directories configurable in gridshot.toml):

    .cache/rawImage.<WxH>.<timestamp>.png
    .cache/withGridImage.<WxH>.<timestamp>.png
    gridImage/grid<WxH>.png
    screenShot/screenshot-<timestamp>-<WxH>.png
"""
from __future__ import annotations

import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

UNKNOWN_RESOLUTION = "unknown"


@dataclass(frozen=True)
class Resolution:
    width: int
    height: int

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Resolution must be positive, got {self.width}x{self.height}")

    def __str__(self) -> str:
        return f"{self.width}x{self.height}"

    @classmethod
    def from_viewport(cls, viewport: dict | None) -> Resolution | None:
        """Build from a Playwright ``viewport_size`` dict; None if unavailable."""
        if not viewport:
            return None
        return cls(int(viewport["width"]), int(viewport["height"]))


def resolution_label(resolution: Resolution | None) -> str:
    return str(resolution) if resolution is not None else UNKNOWN_RESOLUTION


# --- Timestamp tokens --------------------------------------------------------


def _format_instant(now: datetime) -> str:
    # 2026-03-12T21:00:00.123456+00:00 -> 2026-03-12T21-00-00-123456Z
    text = now.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%f") + "Z"
    return text.replace(":", "-").replace(".", "-")


class TimestampSource:
    """Issue filesystem-safe timestamp tokens, strictly increasing per instance.

    Two tokens requested on the same clock tick get a zero-padded ``-NNN`` suffix so raw and
    combined artifacts never collide.
    """

    def __init__(self, clock=None) -> None:
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._lock = threading.Lock()
        self._last_base = ""
        self._repeat = 0

    def next(self) -> str:
        with self._lock:
            base = _format_instant(self._clock())
            if base == self._last_base:
                self._repeat += 1
                return f"{base}-{self._repeat:03d}"
            # Clock went backwards: keep ordering by pinning to the last base.
            if base < self._last_base:
                self._repeat += 1
                return f"{self._last_base}-{self._repeat:03d}"
            self._last_base = base
            self._repeat = 0
            return base


# --- Filenames ---------------------------------------------------------------


def raw_image_name(resolution: str, timestamp: str) -> str:
    return f"rawImage.{resolution}.{timestamp}.png"


def grid_image_name(resolution: str) -> str:
    return f"grid{resolution}.png"


def combined_image_name(resolution: str, timestamp: str) -> str:
    return f"withGridImage.{resolution}.{timestamp}.png"


def screenshot_name(resolution: str, timestamp: str) -> str:
    return f"screenshot-{timestamp}-{resolution}.png"


def raw_image_path(cache_dir: Path, resolution: str, timestamp: str) -> Path:
    return Path(cache_dir) / raw_image_name(resolution, timestamp)


def grid_image_path(grid_dir: Path, resolution: str) -> Path:
    return Path(grid_dir) / grid_image_name(resolution)


def combined_image_path(cache_dir: Path, resolution: str, timestamp: str) -> Path:
    return Path(cache_dir) / combined_image_name(resolution, timestamp)
