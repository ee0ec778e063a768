"""Mandelbrot rendering with chunked fork-join parallelism and coalesced progress."""

__version__ = "1.0.0"

# Core computation - lightweight, no tracking dependencies
from .complex_number import Complex
from .computation import escape_time
from .config import RenderConfig, default_run_config
from .engine import JobState, MandelbrotEngine, RenderJob, allocate_buffer
from .errors import BufferAllocationFailure, InvalidGeometry, InvalidPartition, MandelbrotError
from .geometry import Raster, Viewport
from .progress import ProgressCounter, ProgressMonitor
from .report import RenderReport
from .scheduling import ChunkScheduler, WorkRange, partition


# Conditional imports - only loaded when needed
def __getattr__(name):
    """Lazy loading of heavy modules."""
    if name == "log_to_mlflow":
        from .logging import log_to_mlflow

        return log_to_mlflow
    elif name == "load_sweep_configs":
        from .config import load_sweep_configs

        return load_sweep_configs
    elif name == "run_single_experiment":
        from .execution import run_single_experiment

        return run_single_experiment
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    "Complex",
    "Raster",
    "Viewport",
    "escape_time",
    "partition",
    "WorkRange",
    "ChunkScheduler",
    "ProgressCounter",
    "ProgressMonitor",
    "MandelbrotEngine",
    "RenderJob",
    "JobState",
    "RenderReport",
    "allocate_buffer",
    "RenderConfig",
    "default_run_config",
    "MandelbrotError",
    "InvalidPartition",
    "BufferAllocationFailure",
    "InvalidGeometry",
    "log_to_mlflow",
    "load_sweep_configs",
    "run_single_experiment",
]
