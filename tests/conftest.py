"""Shared fixtures: small deterministic images encoded in the formats the editor supports."""

import io
import random

import pytest
from PIL import Image


def make_photo(width: int = 160, height: int = 120) -> Image.Image:
    """A noisy RGB image whose JPEG size clearly depends on the quality setting."""
    pixels = random.Random(42).randbytes(width * height * 3)
    return Image.frombytes("RGB", (width, height), pixels)


def encode(image: Image.Image, pil_format: str, **params) -> bytes:
    buffer = io.BytesIO()
    image.save(buffer, format=pil_format, **params)
    return buffer.getvalue()


@pytest.fixture
def photo():
    return make_photo()


@pytest.fixture
def png_bytes(photo):
    return encode(photo, "PNG")


@pytest.fixture
def jpeg_bytes(photo):
    return encode(photo, "JPEG", quality=90)


@pytest.fixture
def transparent_png_bytes():
    image = Image.new("RGBA", (40, 30), (0, 0, 255, 0))
    image.paste((255, 0, 0, 255), (10, 10, 20, 20))
    return encode(image, "PNG")


@pytest.fixture
def rotated_jpeg_bytes():
    """40x20 JPEG, red left half and blue right half, tagged Orientation=6 (display rotated 90° clockwise)."""
    image = Image.new("RGB", (40, 20), (0, 0, 255))
    image.paste((255, 0, 0), (0, 0, 20, 20))
    exif = Image.Exif()
    exif[0x0112] = 6
    return encode(image, "JPEG", quality=95, exif=exif.tobytes())


@pytest.fixture
def mpo_bytes(photo):
    """Two-frame MPO, the format many cameras write their JPEGs in."""
    second = photo.transpose(Image.Transpose.FLIP_LEFT_RIGHT)
    return encode(photo, "MPO", save_all=True, append_images=[second])
