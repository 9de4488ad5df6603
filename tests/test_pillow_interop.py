"""Cross-check decoded output against BMP files written and read by Pillow."""

import io

import numpy as np
import pytest
from PIL import Image

from bmpdecoder import decode_bmp


def save_bmp(pil_image):
    buffer = io.BytesIO()
    pil_image.save(buffer, format="BMP")
    return buffer.getvalue()


@pytest.fixture
def rng():
    return np.random.default_rng(365)


def test_rgb_matches_pillow(rng):
    pixels = rng.integers(0, 256, size=(3, 5, 3), dtype=np.uint8)
    pil_image = Image.fromarray(pixels)
    decoded = decode_bmp(save_bmp(pil_image))
    assert decoded.bits_per_pixel == 24
    assert (decoded.width, decoded.height) == (5, 3)
    assert np.array_equal(decoded.to_rgba()[..., :3], pixels)


def test_rgba_matches_pillow_colors(rng):
    pixels = rng.integers(0, 256, size=(4, 3, 4), dtype=np.uint8)
    decoded = decode_bmp(save_bmp(Image.fromarray(pixels)))
    assert decoded.bits_per_pixel == 32
    assert np.array_equal(decoded.to_rgba()[..., :3], pixels[..., :3])


def test_grayscale_palette_matches_pillow(rng):
    pixels = rng.integers(0, 256, size=(6, 7), dtype=np.uint8)
    decoded = decode_bmp(save_bmp(Image.fromarray(pixels)))
    assert decoded.bits_per_pixel == 8
    rgba = decoded.to_rgba()
    for channel in range(3):
        assert np.array_equal(rgba[..., channel], pixels)


def test_palette_image_matches_pillow():
    pil_image = Image.new("P", (4, 3))
    pil_image.putpalette([255, 0, 0, 0, 255, 0, 0, 0, 255, 10, 20, 30])
    pil_image.putdata([0, 1, 2, 3, 3, 2, 1, 0, 1, 1, 3, 3])
    decoded = decode_bmp(save_bmp(pil_image))
    expected = np.asarray(pil_image.convert("RGB"))
    assert np.array_equal(decoded.to_rgba()[..., :3], expected)


def test_monochrome_matches_pillow():
    pil_image = Image.new("1", (11, 3))
    for x, y in [(0, 0), (3, 0), (10, 1), (5, 2), (8, 2)]:
        pil_image.putpixel((x, y), 255)
    decoded = decode_bmp(save_bmp(pil_image))
    assert decoded.bits_per_pixel == 1
    white = decoded.to_rgba()[..., 0] == 255
    assert np.array_equal(white, np.asarray(pil_image))


def test_pillow_reads_decoded_image(rng):
    pixels = rng.integers(0, 256, size=(2, 9, 3), dtype=np.uint8)
    original = Image.fromarray(pixels)
    round_tripped = decode_bmp(save_bmp(original)).to_pil().convert("RGB")
    assert round_tripped.tobytes() == original.tobytes()
