"""Decoded image container handed back by the BMP decoder.

The container keeps the raw pixel bytes exactly as the decoder produced them
and the :class:`ColorMask` describing how to pull channels out of a packed
pixel word. The NumPy/Pillow helpers at the bottom turn that into an
``(H, W, 4)`` RGBA array or a PIL image.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from PIL import Image


@dataclass(frozen=True)
class ColorMask:
    red: int
    green: int
    blue: int
    alpha: int
    red_shift: int
    green_shift: int
    blue_shift: int
    alpha_shift: int

    def channels(self):
        """Yield ``(mask, shift)`` pairs in R, G, B, A order."""
        yield self.red, self.red_shift
        yield self.green, self.green_shift
        yield self.blue, self.blue_shift
        yield self.alpha, self.alpha_shift


# 8 bits per channel, blue in the lowest byte
RGB888_MASK = ColorMask(
    red=0x00FF0000, green=0x0000FF00, blue=0x000000FF, alpha=0x00000000,
    red_shift=16, green_shift=8, blue_shift=0, alpha_shift=0,
)

# 5 bits per color channel, 1 bit unused
RGB555_MASK = ColorMask(
    red=0x00007C00, green=0x000003E0, blue=0x0000001F, alpha=0x00000000,
    red_shift=10, green_shift=5, blue_shift=0, alpha_shift=0,
)


@dataclass(frozen=True)
class DecodedImage:
    """Pixel buffer plus the metadata needed to read it.

    Rows are stored top-down: ``row(0)`` is the top scanline.
    """

    width: int
    height: int
    bytes_per_row: int
    pixel_size: int
    bits_per_pixel: int
    color_mask: ColorMask
    data: bytes

    def __post_init__(self):
        if len(self.data) != self.bytes_per_row * self.height:
            raise ValueError(
                f"Pixel buffer holds {len(self.data)} bytes, "
                f"expected {self.bytes_per_row * self.height}"
            )

    def row(self, index: int) -> bytes:
        if not 0 <= index < self.height:
            raise IndexError(f"Row {index} out of range for height {self.height}")
        start = index * self.bytes_per_row
        return self.data[start:start + self.bytes_per_row]

    # ───────────────────────── NumPy helpers ─────────────────────── #
    def pixel_words(self) -> np.ndarray:
        """Return the packed pixel words as a ``(H, W)`` uint32 array."""
        rows = np.frombuffer(self.data, dtype=np.uint8).reshape(self.height, self.bytes_per_row)
        used = rows[:, : self.width * self.pixel_size]
        if self.pixel_size == 3:
            triples = used.reshape(self.height, self.width, 3).astype(np.uint32)
            return triples[..., 0] | (triples[..., 1] << 8) | (triples[..., 2] << 16)
        dtype = "<u2" if self.pixel_size == 2 else "<u4"
        words = np.ascontiguousarray(used).view(dtype)
        return words.astype(np.uint32)

    def to_rgba(self) -> np.ndarray:
        """Apply the color mask and return a ``(H, W, 4)`` uint8 RGBA array.

        Channels narrower than 8 bits are scaled up to the full 0-255 range.
        A zero alpha mask yields fully opaque pixels.
        """
        words = self.pixel_words()
        out = np.empty((self.height, self.width, 4), dtype=np.uint8)
        for i, (mask, shift) in enumerate(self.color_mask.channels()):
            if mask == 0:
                out[..., i] = 255
                continue
            top = mask >> shift
            values = (words & np.uint32(mask)) >> np.uint32(shift)
            if top != 255:
                values = values * 255 // top
            out[..., i] = values.astype(np.uint8)
        return out

    def to_pil(self) -> Image.Image:
        """Convert to a PIL image in RGBA mode."""
        return Image.fromarray(self.to_rgba())
