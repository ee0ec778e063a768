from __future__ import annotations

import math
from typing import Optional

import numpy as np
from numba import njit

from .color import color_for
from .complex_number import Complex
from .geometry import Raster, Viewport, point_for_index
from .progress import ProgressCounter
from .scheduling import WorkRange

__all__ = [
    "MAX_ITERATIONS",
    "ESCAPE_THRESHOLD",
    "check_parameters",
    "escape_time",
    "compute_pixel",
    "compute_range",
]

MAX_ITERATIONS = 10_000
ESCAPE_THRESHOLD = 2.0


@njit(nogil=True)
def _escape_time(real: float, imaginary: float, max_iterations: int, threshold: float) -> int:
    z_real = 0.0
    z_imag = 0.0
    iteration = 0
    while True:
        # z <- z * z + c, same operand order as Complex.__mul__
        next_real = z_real * z_real - z_imag * z_imag + real
        z_imag = z_imag * z_real + z_real * z_imag + imaginary
        z_real = next_real
        iteration += 1
        if math.hypot(z_real, z_imag) > threshold or iteration >= max_iterations:
            break
    if iteration >= max_iterations:
        return -1
    return iteration


def check_parameters(max_iterations: int, threshold: float) -> None:
    if isinstance(max_iterations, bool) or not isinstance(max_iterations, (int, np.integer)):
        raise ValueError(f"max_iterations must be an integer, got {max_iterations!r}")
    if max_iterations < 1:
        raise ValueError(f"max_iterations must be >= 1, got {max_iterations}")
    if not threshold > 0:
        raise ValueError(f"threshold must be positive, got {threshold!r}")


def escape_time(
    c: Complex,
    max_iterations: int = MAX_ITERATIONS,
    threshold: float = ESCAPE_THRESHOLD,
) -> Optional[int]:
    """Number of ``z = z**2 + c`` steps until ``|z|`` exceeds ``threshold``.

    Returns ``None`` when the point has not escaped after ``max_iterations``
    steps. The loop runs without the GIL, so worker threads evaluate points
    concurrently.
    """
    check_parameters(max_iterations, threshold)
    c = Complex.of(c)
    value = _escape_time(c.real, c.imaginary, int(max_iterations), float(threshold))
    return None if value < 0 else int(value)


def compute_pixel(
    index: int,
    raster: Raster,
    viewport: Viewport,
    max_iterations: int,
    threshold: float,
) -> int:
    """Packed color of the pixel at linear ``index``."""
    point = point_for_index(index, raster, viewport)
    value = _escape_time(point.real, point.imaginary, max_iterations, threshold)
    return color_for(None if value < 0 else int(value))


def compute_range(
    view: np.ndarray,
    work_range: WorkRange,
    raster: Raster,
    viewport: Viewport,
    max_iterations: int = MAX_ITERATIONS,
    threshold: float = ESCAPE_THRESHOLD,
    progress: Optional[ProgressCounter] = None,
) -> None:
    """Fill ``view`` (the slice of the buffer owned by ``work_range``).

    Indices are visited in increasing order and each written pixel reports
    one unit of progress.
    """
    max_iterations = int(max_iterations)
    threshold = float(threshold)
    start = work_range.start
    for index in work_range:
        view[index - start] = compute_pixel(index, raster, viewport, max_iterations, threshold)
        if progress is not None:
            progress.add(1)
