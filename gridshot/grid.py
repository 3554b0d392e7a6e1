"""Coordinate grid overlay generation using Pillow.

A grid image is a transparent PNG with thin lines every ``cell_size`` pixels,
a red marker at each intersection and an ``"x,y"`` label beside it. Grid
images are cached per resolution in the grid directory and reused for every
composite at that resolution.
"""
from __future__ import annotations

import logging
from pathlib import Path

from PIL import Image, ImageDraw, ImageFont

from gridshot.config import DEFAULT_CELL_SIZE, default_viewport
from gridshot.paths import Resolution, grid_image_path

logger = logging.getLogger(__name__)

LINE_COLOR = (0, 0, 0, 77)  # rgba(0,0,0,0.3)
MARKER_COLOR = (255, 0, 0, 128)  # rgba(255,0,0,0.5)
LABEL_COLOR = (0, 0, 0, 179)  # rgba(0,0,0,0.7)
MARKER_RADIUS = 3
LABEL_OFFSET = (5, 15)  # from the intersection to the label baseline
FONT_SIZE = 12


def line_offsets(extent: int, cell_size: int) -> list[int]:
    """Positions of grid lines along one axis: 0, cell, ... up to and including extent."""
    return list(range(0, extent + 1, cell_size))


def label_points(width: int, height: int, cell_size: int) -> list[tuple[int, int]]:
    """Intersections that get a marker and label.

    The bound is strict, so the right and bottom edge lines (x == width or
    y == height) are drawn but never labelled.
    """
    return [
        (x, y)
        for x in range(0, width, cell_size)
        for y in range(0, height, cell_size)
    ]


def _load_font() -> ImageFont.ImageFont | ImageFont.FreeTypeFont:
    try:
        return ImageFont.truetype("DejaVuSans.ttf", FONT_SIZE)
    except OSError:
        return ImageFont.load_default(size=FONT_SIZE)


def render_grid(width: int, height: int, cell_size: int = DEFAULT_CELL_SIZE) -> Image.Image:
    """Draw the grid overlay in memory and return the RGBA image."""
    if width <= 0 or height <= 0:
        raise ValueError(f"Grid size must be positive, got {width}x{height}")
    if cell_size <= 0:
        raise ValueError(f"cell_size must be positive, got {cell_size}")

    img = Image.new("RGBA", (width, height), (0, 0, 0, 0))
    draw = ImageDraw.Draw(img)

    for y in line_offsets(height, cell_size):
        draw.line([(0, y), (width, y)], fill=LINE_COLOR, width=1)
    for x in line_offsets(width, cell_size):
        draw.line([(x, 0), (x, height)], fill=LINE_COLOR, width=1)

    font = _load_font()
    baseline = isinstance(font, ImageFont.FreeTypeFont)
    dx, dy = LABEL_OFFSET
    for x, y in label_points(width, height, cell_size):
        draw.ellipse(
            [x - MARKER_RADIUS, y - MARKER_RADIUS, x + MARKER_RADIUS, y + MARKER_RADIUS],
            fill=MARKER_COLOR,
        )
        label = f"{x},{y}"
        if baseline:
            draw.text((x + dx, y + dy), label, fill=LABEL_COLOR, font=font, anchor="ls")
        else:
            # Bitmap fallback font has no anchor support; place by top edge.
            draw.text((x + dx, y + dy - FONT_SIZE), label, fill=LABEL_COLOR, font=font)

    return img


def generate_grid(
    width: int | None = None,
    height: int | None = None,
    cell_size: int = DEFAULT_CELL_SIZE,
    output_path: str | Path | None = None,
    grid_dir: str | Path = "gridImage",
) -> Path:
    """Render a grid PNG and write it to disk. Return the output path.

    Width and height fall back to VIEWPORT_WIDTH / VIEWPORT_HEIGHT, then
    1280x720. Without ``output_path`` the file goes to
    ``<grid_dir>/grid<WxH>.png``. An existing file is overwritten.
    """
    if width is None or height is None:
        fallback = default_viewport()
        width = width if width is not None else fallback.width
        height = height if height is not None else fallback.height

    if output_path is None:
        output_path = grid_image_path(Path(grid_dir), str(Resolution(width, height)))
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    img = render_grid(width, height, cell_size)
    img.save(output_path, "PNG")
    logger.info("Grid image generated at: %s", output_path)
    return output_path


def ensure_grid(
    resolution: Resolution,
    grid_dir: str | Path,
    cell_size: int = DEFAULT_CELL_SIZE,
) -> Path:
    """Return the cached grid for ``resolution``, generating it on a cache miss.

    Cached files never expire; delete one to force regeneration (e.g. after
    changing the cell size).
    """
    path = grid_image_path(Path(grid_dir), str(resolution))
    if path.exists():
        logger.debug("Grid cache hit: %s", path)
        return path
    logger.info("Grid cache miss for %s, generating", resolution)
    return generate_grid(resolution.width, resolution.height, cell_size, output_path=path)
