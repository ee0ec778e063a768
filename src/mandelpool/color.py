"""Packed RGBA32 colors and the escape-count gradient."""

from __future__ import annotations

from typing import Optional

import numpy as np

from .geometry import Raster

__all__ = ["BLACK", "pack_rgba", "unpack_rgba", "color_for", "to_rgba_array"]

GRADIENT_EXPONENT = 1.7


def pack_rgba(red: int, green: int, blue: int, alpha: int) -> int:
    """Pack four 8-bit channels, red in the highest byte and alpha in the lowest."""
    return ((red & 255) << 24) | ((green & 255) << 16) | ((blue & 255) << 8) | (alpha & 255)


def unpack_rgba(color: int):
    color = int(color)
    return (color >> 24) & 255, (color >> 16) & 255, (color >> 8) & 255, color & 255


BLACK = pack_rgba(0, 0, 0, 255)


def color_for(value: Optional[int]) -> int:
    """Color for an escape count; ``None`` (never escaped) is opaque black.

    Slow escapes trend from dark blue towards white-blue.
    """
    if value is None:
        return BLACK
    level = int(min(255.0, float(min(255, value - 1)) ** GRADIENT_EXPONENT))
    return pack_rgba(level, level, 255, 255)


def to_rgba_array(buffer: np.ndarray, raster: Raster) -> np.ndarray:
    """Expand a packed buffer into a ``(rows, columns, 4)`` uint8 image."""
    packed = np.asarray(buffer[: raster.pixels], dtype=np.uint32).reshape(raster.rows, raster.columns)
    shifts = np.array([24, 16, 8, 0], dtype=np.uint32)
    return ((packed[..., None] >> shifts) & 0xFF).astype(np.uint8)
