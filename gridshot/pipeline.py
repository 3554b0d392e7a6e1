"""Screenshot-with-grid pipeline.

Sequence for one request, each step depending on the previous one:

1. session must be Ready
2. resolve target coordinates (explicit, or centre of the viewport)
3. move the pointer there
4. raw capture into the cache directory
5. grid image for the resolution (cache hit or generate), then composite
6. return the combined artifact path and the coordinates used

The whole sequence holds the session command lock. Artifacts already written
when a later step fails are left on disk; their timestamp tokens are unique,
so they are never picked up by another request.
"""
from __future__ import annotations

import asyncio
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator

import structlog

from gridshot.browser import BrowserSession
from gridshot.capture import capture
from gridshot.composite import combine
from gridshot.config import DEFAULT_CELL_SIZE
from gridshot.errors import PipelineFailure, SessionNotReady
from gridshot.grid import ensure_grid
from gridshot.paths import Resolution, TimestampSource

log = structlog.get_logger(__name__)

Number = int | float


@dataclass(frozen=True)
class GridShot:
    path: Path
    x: Number
    y: Number
    resolution: Resolution
    timestamp: str

    @property
    def coordinates(self) -> dict:
        return {"x": self.x, "y": self.y}


def viewport_center(resolution: Resolution) -> tuple[int, int]:
    return resolution.width // 2, resolution.height // 2


@contextmanager
def _stage(name: str) -> Iterator[None]:
    """Convert any failure inside a step into PipelineFailure(name)."""
    try:
        yield
    except SessionNotReady:
        raise
    except Exception as exc:
        log.error("pipeline stage failed", stage=name, error=str(exc))
        raise PipelineFailure(name, str(exc)) from exc


class ScreenshotPipeline:
    """Capture, overlay the coordinate grid, and return the combined artifact."""

    def __init__(
        self,
        session: BrowserSession,
        cache_dir: Path,
        grid_dir: Path,
        cell_size: int = DEFAULT_CELL_SIZE,
        timestamps: TimestampSource | None = None,
    ) -> None:
        self.session = session
        self.cache_dir = Path(cache_dir)
        self.grid_dir = Path(grid_dir)
        self.cell_size = cell_size
        self.timestamps = timestamps

    async def run_with_grid(
        self, x: Number | None = None, y: Number | None = None,
    ) -> GridShot:
        """Run the pipeline. A missing coordinate defaults to the viewport centre."""
        session = self.session
        if not session.ready:
            raise SessionNotReady("Page not initialized yet")

        async with session.command():
            with _stage("viewport"):
                viewport = Resolution.from_viewport(session.current_viewport())
                if viewport is None:
                    raise RuntimeError("viewport size unavailable")
            cx, cy = viewport_center(viewport)
            tx = cx if x is None else x
            ty = cy if y is None else y

            with _stage("move-mouse"):
                await session.move_mouse(tx, ty)

            with _stage("capture"):
                raw = await capture(session, self.cache_dir, self.timestamps)
                if raw.resolution is None:
                    raise RuntimeError("viewport size unavailable at capture")
            resolution = raw.resolution

            with _stage("grid"):
                await asyncio.to_thread(
                    ensure_grid, resolution, self.grid_dir, self.cell_size,
                )

            with _stage("composite"):
                path = await asyncio.to_thread(
                    combine, str(resolution), raw.timestamp, self.cache_dir, self.grid_dir,
                )

        log.info(
            "grid screenshot complete",
            path=str(path), x=tx, y=ty, resolution=str(resolution),
        )
        return GridShot(path=path, x=tx, y=ty, resolution=resolution, timestamp=raw.timestamp)
