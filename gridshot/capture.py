"""Raw screenshot capture into the artifact cache."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from gridshot.browser import BrowserSession
from gridshot.paths import (
    Resolution,
    TimestampSource,
    raw_image_path,
    resolution_label,
    screenshot_name,
)

logger = logging.getLogger(__name__)

# Process-wide so every capture path shares one strictly increasing sequence.
_timestamps = TimestampSource()


@dataclass(frozen=True)
class RawCapture:
    resolution: Resolution | None
    timestamp: str
    path: Path

    @property
    def label(self) -> str:
        """Resolution as used in filenames (``"unknown"`` without a viewport)."""
        return resolution_label(self.resolution)


async def capture(
    session: BrowserSession,
    cache_dir: str | Path,
    timestamps: TimestampSource | None = None,
) -> RawCapture:
    """Screenshot the current page to ``rawImage.<WxH>.<ts>.png`` in ``cache_dir``.

    Raises SessionNotReady if the session has no page. The caller is expected
    to hold ``session.command()``.
    """
    resolution = Resolution.from_viewport(session.current_viewport())
    timestamp = (timestamps or _timestamps).next()
    cache_dir = Path(cache_dir)
    cache_dir.mkdir(parents=True, exist_ok=True)

    path = raw_image_path(cache_dir, resolution_label(resolution), timestamp)
    await session.screenshot(path)
    logger.debug("Raw capture %s at %s", path.name, resolution_label(resolution))
    return RawCapture(resolution=resolution, timestamp=timestamp, path=path)


async def capture_plain(
    session: BrowserSession,
    screenshot_dir: str | Path,
    timestamps: TimestampSource | None = None,
) -> Path:
    """Screenshot without grid: ``screenshot-<ts>-<WxH>.png`` in ``screenshot_dir``."""
    label = resolution_label(Resolution.from_viewport(session.current_viewport()))
    timestamp = (timestamps or _timestamps).next()
    screenshot_dir = Path(screenshot_dir)
    screenshot_dir.mkdir(parents=True, exist_ok=True)
    return await session.screenshot(screenshot_dir / screenshot_name(label, timestamp))
