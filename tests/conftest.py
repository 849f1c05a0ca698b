from pathlib import Path

import pytest
from PIL import Image

RED = (255, 0, 0, 255)
GREEN = (0, 255, 0, 255)
BLUE = (0, 0, 255, 255)
CLEAR = (0, 0, 0, 0)


@pytest.fixture
def make_icon():
    """Write a solid-color RGBA PNG and return its path."""

    def _make(path: Path, size=(16, 16), color=RED) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        Image.new("RGBA", size, color).save(path)
        return path

    return _make


@pytest.fixture
def abc_icons(tmp_path, make_icon):
    folder = tmp_path / "icons"
    return [
        make_icon(folder / "a.png", color=RED),
        make_icon(folder / "b.png", color=GREEN),
        make_icon(folder / "c.png", color=BLUE),
    ]
