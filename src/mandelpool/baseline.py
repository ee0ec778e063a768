"""Baseline Mandelbrot implementation."""

from __future__ import annotations

from typing import Optional

import numpy as np

from .color import color_for
from .complex_number import Complex
from .geometry import Raster, Viewport, imaginary_for_row, real_for_column


def escape_time(c: Complex, max_iterations: int = 10_000, threshold: float = 2.0) -> Optional[int]:
    """Pure-Python escape count for ``c``; ``None`` when it never escapes."""
    z = Complex(0.0)
    iteration = 0
    while True:
        z = z.squared() + c
        iteration += 1
        if z.magnitude() > threshold or iteration >= max_iterations:
            break
    return None if iteration >= max_iterations else iteration


def compute_mandelbrot(
    viewport: Viewport,
    raster: Raster,
    max_iterations: int = 10_000,
    threshold: float = 2.0,
) -> np.ndarray:
    """Render ``viewport`` row by row into a new packed-color buffer."""
    image = np.zeros(raster.pixels, dtype=np.uint32)

    for row in range(raster.rows):
        imaginary = imaginary_for_row(row, raster.rows, viewport)
        for column in range(raster.columns):
            c = Complex(real_for_column(column, raster.columns, viewport), imaginary)
            image[row * raster.columns + column] = color_for(escape_time(c, max_iterations, threshold))

    return image
