"""Unit tests for gridshot.config."""
import os
from pathlib import Path

import pytest

from gridshot.config import default_viewport, load
from gridshot.paths import Resolution


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in ("VIEWPORT_WIDTH", "VIEWPORT_HEIGHT", "PORT"):
        monkeypatch.delenv(name, raising=False)


def test_load_defaults(tmp_path):
    """load() with no gridshot.toml returns all defaults."""
    cfg = load(tmp_path)
    assert cfg.host == "127.0.0.1"
    assert cfg.port == 2000
    assert cfg.viewport == Resolution(1280, 720)
    assert cfg.headless is True
    assert cfg.cell_size == 100
    assert cfg.project_root == tmp_path.resolve()


def test_load_from_toml(tmp_path):
    (tmp_path / "gridshot.toml").write_text(
        "[server]\nport = 3100\n"
        "[browser]\nviewport_width = 1920\nviewport_height = 1080\nheadless = false\n"
        "[paths]\ncache_dir = \"artifacts\"\ngrid_dir = \"grids\"\n"
        "[grid]\ncell_size = 50\n"
    )
    cfg = load(tmp_path)
    assert cfg.port == 3100
    assert cfg.viewport == Resolution(1920, 1080)
    assert cfg.headless is False
    assert cfg.cell_size == 50
    assert cfg.cache_dir == tmp_path.resolve() / "artifacts"
    assert cfg.grid_dir == tmp_path.resolve() / "grids"


def test_derived_paths(tmp_path):
    cfg = load(tmp_path)
    root = tmp_path.resolve()
    assert cfg.cache_dir == root / ".cache"
    assert cfg.grid_dir == root / "gridImage"
    assert cfg.screenshot_dir == root / "screenShot"


def test_env_overrides_toml(tmp_path, monkeypatch):
    (tmp_path / "gridshot.toml").write_text(
        "[browser]\nviewport_width = 1920\nviewport_height = 1080\n"
    )
    monkeypatch.setenv("VIEWPORT_WIDTH", "1024")
    monkeypatch.setenv("VIEWPORT_HEIGHT", "768")
    monkeypatch.setenv("PORT", "8080")
    cfg = load(tmp_path)
    assert cfg.viewport == Resolution(1024, 768)
    assert cfg.port == 8080


def test_bad_env_value(tmp_path, monkeypatch):
    monkeypatch.setenv("VIEWPORT_WIDTH", "wide")
    with pytest.raises(ValueError, match="VIEWPORT_WIDTH"):
        load(tmp_path)


def test_default_viewport(monkeypatch):
    assert default_viewport() == Resolution(1280, 720)
    monkeypatch.setenv("VIEWPORT_HEIGHT", "900")
    assert default_viewport() == Resolution(1280, 900)


def test_partial_toml(tmp_path):
    """Only some sections present; others fall back to defaults."""
    (tmp_path / "gridshot.toml").write_text("[grid]\ncell_size = 20\n")
    cfg = load(tmp_path)
    assert cfg.cell_size == 20
    assert cfg.port == 2000
    assert cfg.start_url == "https://www.example.com"


def test_dotenv_overrides_toml(tmp_path):
    (tmp_path / "gridshot.toml").write_text("[server]\nport = 3100\n")
    (tmp_path / ".env").write_text("VIEWPORT_WIDTH=640\nVIEWPORT_HEIGHT=360\nPORT=4000\n")
    cfg = load(tmp_path)
    assert cfg.viewport == Resolution(640, 360)
    assert cfg.port == 4000


def test_process_env_wins_over_dotenv(tmp_path, monkeypatch):
    (tmp_path / ".env").write_text("PORT=4000\n")
    monkeypatch.setenv("PORT", "5000")
    assert load(tmp_path).port == 5000


def test_dotenv_leaves_process_env_alone(tmp_path):
    (tmp_path / ".env").write_text("VIEWPORT_WIDTH=640\n")
    load(tmp_path)
    assert "VIEWPORT_WIDTH" not in os.environ
