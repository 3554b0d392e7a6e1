"""Unit tests for gridshot.cli."""
from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest
from PIL import Image

from gridshot.cli import main


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in ("VIEWPORT_WIDTH", "VIEWPORT_HEIGHT", "PORT"):
        monkeypatch.delenv(name, raising=False)


def _root_args(tmp_path: Path) -> list[str]:
    return ["--project-root", str(tmp_path)]


def test_grid_command_writes_to_grid_dir(tmp_path, capsys):
    assert main(_root_args(tmp_path) + ["grid", "400", "300", "50"]) == 0
    path = tmp_path.resolve() / "gridImage" / "grid400x300.png"
    with Image.open(path) as img:
        assert img.size == (400, 300)
    assert str(path) in capsys.readouterr().out


def test_grid_command_defaults_to_configured_viewport(tmp_path):
    (tmp_path / "gridshot.toml").write_text(
        "[browser]\nviewport_width = 320\nviewport_height = 240\n"
    )
    assert main(_root_args(tmp_path) + ["grid"]) == 0
    assert (tmp_path.resolve() / "gridImage" / "grid320x240.png").exists()


def test_combine_prints_output_path_last(tmp_path, capsys):
    root = tmp_path.resolve()
    cache = root / ".cache"
    cache.mkdir()
    Image.new("RGB", (200, 100), "white").save(cache / "rawImage.200x100.ts1.png")
    assert main(_root_args(tmp_path) + ["grid", "200", "100"]) == 0
    capsys.readouterr()

    assert main(_root_args(tmp_path) + ["combine", "200", "100", "ts1"]) == 0
    last_line = capsys.readouterr().out.strip().splitlines()[-1]
    assert last_line == str(cache / "withGridImage.200x100.ts1.png")


def test_combine_missing_raw_exits_non_zero(tmp_path, capsys):
    assert main(_root_args(tmp_path) + ["combine", "200", "100", "nope"]) == 1
    assert "Raw capture not found" in capsys.readouterr().err


def test_serve_exits_non_zero_when_launch_fails(tmp_path):
    with patch("gridshot.cli.serve", side_effect=RuntimeError("no chromium")):
        assert main(_root_args(tmp_path) + ["serve"]) == 1
