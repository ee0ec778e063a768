"""Immutable complex value used by the coordinate mapper and the baseline."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Union

__all__ = ["Complex"]


@dataclass(frozen=True)
class Complex:
    """A point in the complex plane stored as two floats."""

    real: float
    imaginary: float = 0.0

    @classmethod
    def of(cls, value: Union[int, float, complex, "Complex"]) -> "Complex":
        if isinstance(value, Complex):
            return value
        if isinstance(value, complex):
            return cls(float(value.real), float(value.imag))
        return cls(float(value), 0.0)

    def __add__(self, other: "Complex") -> "Complex":
        if not isinstance(other, Complex):
            return NotImplemented
        return Complex(self.real + other.real, self.imaginary + other.imaginary)

    def __mul__(self, other: "Complex") -> "Complex":
        if not isinstance(other, Complex):
            return NotImplemented
        return Complex(
            self.real * other.real - other.imaginary * self.imaginary,
            self.imaginary * other.real + self.real * other.imaginary,
        )

    def squared(self) -> "Complex":
        return self * self

    def magnitude(self) -> float:
        # hypot avoids overflow in the intermediate squares
        return math.hypot(self.real, self.imaginary)

    def __complex__(self) -> complex:
        return complex(self.real, self.imaginary)
