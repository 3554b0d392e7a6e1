"""gridshot command line.

    gridshot serve                          # HTTP server on the shared session
    gridshot grid [width] [height] [cell]   # write gridImage/grid<WxH>.png
    gridshot combine width height timestamp [--stretch]
"""
from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from gridshot import config as config_module
from gridshot.composite import combine
from gridshot.errors import GridshotError
from gridshot.grid import generate_grid
from gridshot.paths import Resolution
from gridshot.server import configure_logging, serve

log = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="gridshot", description=__doc__.splitlines()[0])
    parser.add_argument(
        "--project-root", type=Path, default=None,
        help="Directory holding gridshot.toml and the artifact directories (default: cwd)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("serve", help="Launch the browser session and serve HTTP")

    grid = sub.add_parser("grid", help="Generate a coordinate grid image")
    grid.add_argument("width", type=int, nargs="?", help="Image width (default: viewport width)")
    grid.add_argument("height", type=int, nargs="?", help="Image height (default: viewport height)")
    grid.add_argument("cell", type=int, nargs="?", help="Grid cell size in pixels (default: 100)")
    grid.add_argument("-o", "--output", type=Path, help="Output file (default: grid directory)")

    comb = sub.add_parser("combine", help="Overlay the grid onto a cached raw capture")
    comb.add_argument("width", type=int)
    comb.add_argument("height", type=int)
    comb.add_argument("timestamp", help="Timestamp token of the raw capture")
    comb.add_argument(
        "--stretch", action="store_true",
        help="Resize the grid if its size differs from the capture",
    )
    return parser


def _cmd_grid(args: argparse.Namespace, cfg: config_module.Config) -> int:
    width = args.width if args.width is not None else cfg.viewport_width
    height = args.height if args.height is not None else cfg.viewport_height
    cell = args.cell if args.cell is not None else cfg.cell_size
    print(f"Generating grid image with dimensions {width}x{height} and grid size {cell}px...")
    path = generate_grid(width, height, cell, output_path=args.output, grid_dir=cfg.grid_dir)
    print(f"Grid image successfully generated at: {path}")
    return 0


def _cmd_combine(args: argparse.Namespace, cfg: config_module.Config) -> int:
    resolution = Resolution(args.width, args.height)
    path = combine(
        str(resolution), args.timestamp, cfg.cache_dir, cfg.grid_dir, stretch=args.stretch,
    )
    # Last stdout line is the output path.
    print(path)
    return 0


def _cmd_serve(cfg: config_module.Config) -> int:
    try:
        asyncio.run(serve(cfg))
    except KeyboardInterrupt:
        pass
    except Exception:
        log.exception("Failed to initialize browser")
        return 1
    return 0


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    configure_logging(logging.DEBUG if args.verbose else logging.INFO)
    cfg = config_module.load(args.project_root)

    if args.command == "serve":
        return _cmd_serve(cfg)
    try:
        if args.command == "grid":
            return _cmd_grid(args, cfg)
        return _cmd_combine(args, cfg)
    except (GridshotError, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
