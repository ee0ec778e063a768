"""Error taxonomy for Mandelbrot rendering."""

from __future__ import annotations


class MandelbrotError(Exception):
    """Base class for all rendering errors."""


class InvalidPartition(MandelbrotError, ValueError):
    """Malformed iteration or chunk counts passed to the scheduler."""


class BufferAllocationFailure(MandelbrotError):
    """Pixel buffer is missing, undersized, read-only or already in use."""


class InvalidGeometry(MandelbrotError, ValueError):
    """Viewport corners out of order or non-positive raster dimensions."""
