"""Shared fixtures: an image directory populated with generated images."""

import os

import pytest
from PIL import Image

from image_editor_mcp_server.config import load_config
from image_editor_mcp_server.image_editor import ImageEditor


def make_pattern_image(width: int = 100, height: int = 100) -> Image.Image:
    """Create an RGB image with enough detail for lossy encoders to matter."""
    img = Image.new("RGB", (width, height))
    img.putdata([
        ((x * 255) // (width - 1), (y * 255) // (height - 1), (x * y * 7) % 256)
        for y in range(height)
        for x in range(width)
    ])
    return img


def make_sixteen_bit_image(width: int = 64, height: int = 64, value=None) -> Image.Image:
    """Create a 16-bit greyscale image; saved as PNG it keeps 16 bits per sample."""
    img = Image.new("I", (width, height))
    if value is None:
        img.putdata([(x * 997 + y * 613) * 37 % 65536 for y in range(height) for x in range(width)])
    else:
        img.putdata([value] * (width * height))
    return img


def read_bytes(path) -> bytes:
    with open(path, "rb") as f:
        return f.read()


@pytest.fixture
def image_root(tmp_path):
    root = tmp_path / "img"
    root.mkdir()
    return root


@pytest.fixture
def png_file(image_root):
    path = image_root / "photo.png"
    make_pattern_image().save(path, format="PNG")
    return path


@pytest.fixture
def jpeg_file(image_root):
    path = image_root / "photo.jpg"
    make_pattern_image().save(path, format="JPEG", quality=90)
    return path


@pytest.fixture
def config(image_root):
    return load_config(str(image_root))


@pytest.fixture
def editor(config):
    return ImageEditor(config)


def list_temp_files(directory) -> list:
    return [name for name in os.listdir(directory) if name.endswith(".tmp")]
