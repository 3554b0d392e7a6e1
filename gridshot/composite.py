"""Lay a cached grid image over a raw capture and write the combined PNG.

    .cache/rawImage.<WxH>.<ts>.png  +  gridImage/grid<WxH>.png
        -> .cache/withGridImage.<WxH>.<ts>.png
"""
from __future__ import annotations

import logging
from pathlib import Path

from PIL import Image

from gridshot.errors import DimensionMismatch, MissingArtifact
from gridshot.paths import combined_image_path, grid_image_path, raw_image_path

logger = logging.getLogger(__name__)


def _open_rgba(path: Path, what: str) -> Image.Image:
    if not path.is_file():
        raise MissingArtifact(f"{what} not found: {path}")
    with Image.open(path) as img:
        return img.convert("RGBA")


def overlay(raw: Image.Image, grid: Image.Image, stretch: bool = False) -> Image.Image:
    """Return ``grid`` composited over ``raw`` at the raw image's size.

    Raises DimensionMismatch when the sizes differ, unless ``stretch`` is set,
    in which case the grid is resized to fit.
    """
    if grid.size != raw.size:
        if not stretch:
            raise DimensionMismatch(
                f"Grid image is {grid.width}x{grid.height} but raw capture is "
                f"{raw.width}x{raw.height}"
            )
        logger.warning(
            "Stretching grid %dx%d to %dx%d",
            grid.width, grid.height, raw.width, raw.height,
        )
        grid = grid.resize(raw.size, Image.LANCZOS)

    canvas = Image.new("RGBA", raw.size, (0, 0, 0, 0))
    canvas.alpha_composite(raw)
    canvas.alpha_composite(grid)
    return canvas


def combine(
    resolution: str,
    timestamp: str,
    cache_dir: str | Path = ".cache",
    grid_dir: str | Path = "gridImage",
    stretch: bool = False,
) -> Path:
    """Combine the raw capture and grid image for ``resolution``. Return the output path."""
    cache_dir = Path(cache_dir)
    raw = _open_rgba(raw_image_path(cache_dir, resolution, timestamp), "Raw capture")
    grid = _open_rgba(grid_image_path(Path(grid_dir), resolution), "Grid image")

    combined = overlay(raw, grid, stretch=stretch)

    output_path = combined_image_path(cache_dir, resolution, timestamp)
    cache_dir.mkdir(parents=True, exist_ok=True)
    combined.save(output_path, "PNG")
    logger.info("Combined image saved to: %s", output_path)
    return output_path
