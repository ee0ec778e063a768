"""Arithmetic of the Complex value type."""

import math

import pytest

from mandelpool.complex_number import Complex


def test_addition():
    assert Complex(1.5, -2.0) + Complex(0.5, 3.0) == Complex(2.0, 1.0)


def test_multiplication_matches_builtin_complex():
    a, b = Complex(1.25, -0.5), Complex(-3.0, 2.0)
    product = a * b
    expected = complex(1.25, -0.5) * complex(-3.0, 2.0)
    assert product.real == pytest.approx(expected.real)
    assert product.imaginary == pytest.approx(expected.imag)


def test_squared_of_i_is_minus_one():
    assert Complex(0.0, 1.0).squared() == Complex(-1.0, 0.0)


def test_magnitude_uses_hypot():
    assert Complex(3.0, 4.0).magnitude() == 5.0
    # the squares overflow but the magnitude does not
    assert math.isfinite(Complex(1e200, 1e200).magnitude())


def test_of_number_and_builtin_complex():
    assert Complex.of(2) == Complex(2.0, 0.0)
    assert Complex.of(0.5) == Complex(0.5, 0.0)
    assert Complex.of(1 - 2j) == Complex(1.0, -2.0)
    c = Complex(1.0, 1.0)
    assert Complex.of(c) is c


def test_immutable():
    c = Complex(1.0, 2.0)
    with pytest.raises(AttributeError):
        c.real = 3.0  # type: ignore[misc]
