"""Viewport and raster descriptions plus the pixel-to-plane mapping."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

from .complex_number import Complex
from .errors import InvalidGeometry

__all__ = [
    "Raster",
    "Viewport",
    "imaginary_for_row",
    "real_for_column",
    "point_for_index",
]


@dataclass(frozen=True)
class Raster:
    """Output grid of ``rows`` x ``columns`` device pixels."""

    rows: int
    columns: int

    def __post_init__(self) -> None:
        for name in ("rows", "columns"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                raise InvalidGeometry(f"Raster {name} must be a positive integer, got {value!r}")

    @property
    def pixels(self) -> int:
        return self.rows * self.columns

    def position(self, index: int) -> Tuple[int, int]:
        """Return ``(row, column)`` for a linear pixel index."""
        return divmod(index, self.columns)


@dataclass(frozen=True)
class Viewport:
    """Axis-aligned region of the complex plane mapped onto a raster.

    The upper-left corner carries the larger imaginary part and the smaller
    real part.
    """

    upper_left: Complex
    lower_right: Complex

    def __post_init__(self) -> None:
        if self.upper_left.imaginary < self.lower_right.imaginary:
            raise InvalidGeometry(
                f"upper_left.imaginary ({self.upper_left.imaginary}) must be >= "
                f"lower_right.imaginary ({self.lower_right.imaginary})"
            )
        if self.upper_left.real > self.lower_right.real:
            raise InvalidGeometry(
                f"upper_left.real ({self.upper_left.real}) must be <= "
                f"lower_right.real ({self.lower_right.real})"
            )

    @classmethod
    def from_limits(cls, xlim: Tuple[float, float], ylim: Tuple[float, float]) -> "Viewport":
        """Build a viewport from ``(min, max)`` real and imaginary limits."""
        return cls(
            Complex(float(xlim[0]), float(ylim[1])),
            Complex(float(xlim[1]), float(ylim[0])),
        )

    @classmethod
    def for_aspect(cls, real_min: float, real_max: float, rows: int, columns: int) -> "Viewport":
        """Viewport centred on the real axis with the raster's aspect ratio."""
        span = (real_max - real_min) * (rows / columns)
        return cls(Complex(real_min, span / 2), Complex(real_max, -span / 2))


def imaginary_for_row(row: int, rows: int, viewport: Viewport) -> float:
    upper = viewport.upper_left.imaginary
    return upper + (viewport.lower_right.imaginary - upper) * (row / rows)


def real_for_column(column: int, columns: int, viewport: Viewport) -> float:
    left = viewport.upper_left.real
    return left + (viewport.lower_right.real - left) * (column / columns)


def point_for_index(index: int, raster: Raster, viewport: Viewport) -> Complex:
    """Map a linear pixel index (``row * columns + column``) to its point."""
    row, column = raster.position(index)
    return Complex(
        real_for_column(column, raster.columns, viewport),
        imaginary_for_row(row, raster.rows, viewport),
    )
