"""Viewport/raster validation and pixel-to-plane mapping."""

import pytest

from mandelpool.complex_number import Complex
from mandelpool.errors import InvalidGeometry
from mandelpool.geometry import (
    Raster,
    Viewport,
    imaginary_for_row,
    point_for_index,
    real_for_column,
)

VIEWPORT = Viewport(Complex(-2.0, 1.0), Complex(1.0, -1.0))


def test_row_zero_maps_to_top_edge():
    assert imaginary_for_row(0, 100, VIEWPORT) == 1.0


def test_column_zero_maps_to_left_edge():
    assert real_for_column(0, 100, VIEWPORT) == -2.0


def test_midpoint_row_maps_to_real_axis():
    assert imaginary_for_row(50, 100, VIEWPORT) == 0.0
    assert real_for_column(50, 100, VIEWPORT) == -0.5


def test_sampling_is_half_open():
    assert imaginary_for_row(100, 100, VIEWPORT) == -1.0
    assert imaginary_for_row(99, 100, VIEWPORT) > -1.0
    assert real_for_column(99, 100, VIEWPORT) < 1.0


def test_point_for_index_is_row_major():
    raster = Raster(rows=100, columns=100)
    assert point_for_index(0, raster, VIEWPORT) == Complex(-2.0, 1.0)
    assert point_for_index(50 * 100, raster, VIEWPORT) == Complex(-2.0, 0.0)
    assert point_for_index(50 * 100 + 50, raster, VIEWPORT) == Complex(-0.5, 0.0)


def test_raster_position_and_pixels():
    raster = Raster(rows=3, columns=5)
    assert raster.pixels == 15
    assert raster.position(7) == (1, 2)


@pytest.mark.parametrize("rows,columns", [(0, 4), (4, 0), (-1, 3), (2.5, 3), (True, 3)])
def test_raster_rejects_bad_dimensions(rows, columns):
    with pytest.raises(InvalidGeometry):
        Raster(rows=rows, columns=columns)


def test_viewport_rejects_flipped_corners():
    with pytest.raises(InvalidGeometry):
        Viewport(Complex(-2.0, -1.0), Complex(1.0, 1.0))
    with pytest.raises(InvalidGeometry):
        Viewport(Complex(1.0, 1.0), Complex(-2.0, -1.0))


def test_viewport_from_limits():
    viewport = Viewport.from_limits((-2.1, 0.6), (-1.2, 1.2))
    assert viewport.upper_left == Complex(-2.1, 1.2)
    assert viewport.lower_right == Complex(0.6, -1.2)


def test_viewport_for_aspect_is_centred_on_real_axis():
    viewport = Viewport.for_aspect(-2.1, 0.6, rows=100, columns=200)
    assert viewport.upper_left.imaginary == pytest.approx(0.675)
    assert viewport.lower_right.imaginary == pytest.approx(-0.675)
    assert viewport.upper_left.real == -2.1
