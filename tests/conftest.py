"""Shared pytest fixtures."""

from pathlib import Path

import pytest


def _save_image(path: Path, fmt: str) -> None:
    from PIL import Image

    img = Image.new("RGB", (1, 1), color="red")
    img.save(path, fmt)


@pytest.fixture
def temp_photo_dir(tmp_path: Path) -> Path:
    """Create a photo folder with three images, a text file and an image-named subdirectory."""
    folder = tmp_path / "photos" / "2021"
    folder.mkdir(parents=True)
    _save_image(folder / "a.png", "PNG")
    _save_image(folder / "b.jpg", "JPEG")
    _save_image(folder / "c.jpeg", "JPEG")
    (folder / "d.txt").write_text("not an image", encoding="utf-8")
    (folder / "e.jpg").mkdir()
    return folder


@pytest.fixture
def temp_config(tmp_path: Path) -> Path:
    """Create a config whose prefix is tmp_path and whose trace output stays in tmp_path."""
    config_path = tmp_path / "image-page.yaml"
    config_content = f'''prefix: "{tmp_path.as_posix()}"
stylesheet: "/css/viewer.css"
icon_dir: "/icons"
debug:
  level: verbose
  default_package_level: verbose
  default_function_level: verbose
  dump_dir: "{(tmp_path / "dumps").as_posix()}"
  log_file: "{(tmp_path / "text.log").as_posix()}"
'''
    config_path.write_text(config_content, encoding="utf-8")
    return config_path
