"""Escape-time evaluator."""

import numpy as np
import pytest

from mandelpool import baseline
from mandelpool.complex_number import Complex
from mandelpool.computation import compute_range, escape_time
from mandelpool.geometry import Raster, Viewport
from mandelpool.progress import ProgressCounter
from mandelpool.scheduling import WorkRange


def test_origin_never_escapes():
    assert escape_time(Complex(0.0, 0.0)) is None


def test_point_outside_radius_escapes_on_first_iteration():
    assert escape_time(Complex(3.0, 0.0)) == 1
    assert escape_time(Complex(-2.1, 1.2)) == 1


def test_two_is_on_the_threshold():
    # z1 = 2 is not strictly beyond the threshold, z2 = 6 is
    assert escape_time(Complex(2.0, 0.0)) == 2


def test_one_escapes_on_third_iteration():
    assert escape_time(Complex(1.0, 0.0)) == 3


@pytest.mark.parametrize("c", [Complex(-2.0, 0.0), Complex(0.0, 1.0), Complex(-1.0, 0.0), Complex(0.25, 0.0)])
def test_bounded_orbits_do_not_escape(c):
    assert escape_time(c, max_iterations=500) is None


def test_iteration_limit_is_respected():
    # escaping on the last permitted step still counts as not escaped
    assert escape_time(Complex(3.0, 0.0), max_iterations=1) is None
    assert escape_time(Complex(1.0, 0.0), max_iterations=3) is None
    assert escape_time(Complex(1.0, 0.0), max_iterations=4) == 3


def test_accepts_builtin_numbers():
    assert escape_time(3) == 1
    assert escape_time(1 + 0j) == 3


@pytest.mark.parametrize("max_iterations,threshold", [(0, 2.0), (-5, 2.0), (10, 0.0), (10, -1.0), (2.5, 2.0)])
def test_rejects_bad_parameters(max_iterations, threshold):
    with pytest.raises(ValueError):
        escape_time(Complex(0.0, 0.0), max_iterations=max_iterations, threshold=threshold)


def test_matches_pure_python_baseline():
    for real in np.linspace(-2.2, 0.8, 23):
        for imaginary in np.linspace(-1.3, 1.3, 19):
            c = Complex(float(real), float(imaginary))
            assert escape_time(c, max_iterations=300) == baseline.escape_time(c, max_iterations=300)


def test_compute_range_writes_only_its_view_and_counts_progress():
    raster = Raster(rows=4, columns=5)
    viewport = Viewport(Complex(-2.1, 1.2), Complex(0.6, -1.2))
    buffer = np.zeros(raster.pixels, dtype=np.uint32)
    work_range = WorkRange(6, 13)
    counter = ProgressCounter(raster.pixels)

    compute_range(buffer[6:13], work_range, raster, viewport, 100, 2.0, counter)

    expected = baseline.compute_mandelbrot(viewport, raster, max_iterations=100)
    np.testing.assert_array_equal(buffer[6:13], expected[6:13])
    assert not buffer[:6].any()
    assert not buffer[13:].any()
    assert counter.completed == 7
