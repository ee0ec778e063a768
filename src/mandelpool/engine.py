"""Mandelbrot engine: parallel and sequential renders into a caller-owned buffer."""

from __future__ import annotations

import threading
import time
from concurrent.futures import Future
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional

import numpy as np

from .computation import ESCAPE_THRESHOLD, MAX_ITERATIONS, check_parameters, compute_range
from .errors import BufferAllocationFailure, InvalidGeometry, InvalidPartition
from .geometry import Raster, Viewport
from .progress import Dispatch, ProgressCounter, ProgressMonitor, call_now
from .report import RenderReport
from .scheduling import ChunkScheduler, WorkRange

if TYPE_CHECKING:
    from .config import RenderConfig

__all__ = ["JobState", "RenderJob", "MandelbrotEngine", "allocate_buffer", "MODES"]

MODES = ("parallel", "sequential")
OVERSUBSCRIPTION = 8


def allocate_buffer(raster: Raster) -> np.ndarray:
    return np.zeros(raster.pixels, dtype=np.uint32)


def _engine_log(message: str) -> None:
    print(f"[Engine] {message}", flush=True)


def _stop_monitor(monitor: Optional[ProgressMonitor]) -> None:
    """Stop ``monitor``, reporting a failed final delivery instead of raising it."""
    if monitor is None:
        return
    try:
        monitor.stop()
    except Exception as exc:
        _engine_log(f"final progress delivery failed: {exc!r}")


def _chunk_record(chunk_id: int, work_range: WorkRange, comp_time: float, thread: str) -> Dict:
    """Create a uniform chunk metadata record."""
    return {
        "chunk_id": int(chunk_id),
        "start": int(work_range.start),
        "end": int(work_range.end),
        "pixels": len(work_range),
        "comp_time": comp_time,
        "thread": thread,
    }


class JobState(Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class RenderJob:
    """One render in flight; owns its progress counter and result future."""

    def __init__(self, mode: str, viewport: Viewport, raster: Raster, buffer: np.ndarray):
        self.mode = mode
        self.viewport = viewport
        self.raster = raster
        self.buffer = buffer
        self.progress = ProgressCounter(raster.pixels)
        self.future: "Future[RenderReport]" = Future()
        self.state = JobState.IDLE

    def done(self) -> bool:
        return self.future.done()

    def wait(self, timeout: Optional[float] = None) -> RenderReport:
        """Block until the render finishes and return its report (or raise its error)."""
        return self.future.result(timeout)


class MandelbrotEngine:
    """Renders viewports of the Mandelbrot set into packed RGBA32 buffers.

    ``compute_parallel`` partitions the pixel index space into
    ``scheduler.workers * oversubscription`` contiguous chunks; the extra
    chunks even out the cost difference between points near the set
    boundary and points that escape at once. ``compute_sequential`` walks the
    same pixels in row-major order on a single thread. Both produce the same
    buffer for the same inputs.

    Neither call blocks: each returns a :class:`RenderJob` whose work runs on
    a background thread. Progress fractions and the completion callback are
    handed to ``dispatch`` so the caller picks the thread they run on. A
    started render always runs to the end; there is no cancellation.
    """

    def __init__(
        self,
        max_iterations: int = MAX_ITERATIONS,
        threshold: float = ESCAPE_THRESHOLD,
        scheduler: Optional[ChunkScheduler] = None,
        oversubscription: int = OVERSUBSCRIPTION,
        progress_interval: float = 0.05,
        verbose: bool = False,
    ):
        check_parameters(max_iterations, threshold)
        if oversubscription < 1:
            raise InvalidPartition(f"oversubscription must be >= 1, got {oversubscription}")
        self.max_iterations = int(max_iterations)
        self.threshold = float(threshold)
        self.scheduler = scheduler or ChunkScheduler()
        self.oversubscription = oversubscription
        self.progress_interval = progress_interval
        self.verbose = verbose
        self._active: List[np.ndarray] = []
        self._lock = threading.Lock()

    @classmethod
    def from_config(cls, config: "RenderConfig", verbose: bool = False) -> "MandelbrotEngine":
        return cls(
            max_iterations=config.max_iterations,
            threshold=config.threshold,
            scheduler=ChunkScheduler(config.workers),
            oversubscription=config.oversubscription,
            verbose=verbose,
        )

    @property
    def chunk_count(self) -> int:
        return self.scheduler.workers * self.oversubscription

    def compute(
        self,
        viewport: Viewport,
        raster: Raster,
        buffer: np.ndarray,
        mode: str = "parallel",
        **kwargs: Any,
    ) -> RenderJob:
        if mode == "parallel":
            return self.compute_parallel(viewport, raster, buffer, **kwargs)
        if mode == "sequential":
            return self.compute_sequential(viewport, raster, buffer, **kwargs)
        raise ValueError(f"mode must be one of {MODES}, got {mode!r}")

    def compute_parallel(
        self,
        viewport: Viewport,
        raster: Raster,
        buffer: np.ndarray,
        *,
        progress: Optional[Callable[[float], None]] = None,
        completion: Optional[Callable[[], None]] = None,
        dispatch: Optional[Dispatch] = None,
    ) -> RenderJob:
        """Start a chunked render across the scheduler's thread pool."""
        return self._start("parallel", self._run_parallel, viewport, raster, buffer, progress, completion, dispatch)

    def compute_sequential(
        self,
        viewport: Viewport,
        raster: Raster,
        buffer: np.ndarray,
        *,
        progress: Optional[Callable[[float], None]] = None,
        completion: Optional[Callable[[], None]] = None,
        dispatch: Optional[Dispatch] = None,
    ) -> RenderJob:
        """Start a row-major render on a single background thread."""
        return self._start("sequential", self._run_sequential, viewport, raster, buffer, progress, completion, dispatch)

    def _start(
        self,
        mode: str,
        runner: Callable[[RenderJob], List[Dict]],
        viewport: Viewport,
        raster: Raster,
        buffer: np.ndarray,
        progress: Optional[Callable[[float], None]],
        completion: Optional[Callable[[], None]],
        dispatch: Optional[Dispatch],
    ) -> RenderJob:
        if not isinstance(viewport, Viewport):
            raise InvalidGeometry(f"viewport must be a Viewport, got {type(viewport).__name__}")
        if not isinstance(raster, Raster):
            raise InvalidGeometry(f"raster must be a Raster, got {type(raster).__name__}")
        _validate_buffer(buffer, raster)

        dispatch = dispatch or call_now
        job = RenderJob(mode, viewport, raster, buffer)
        monitor = None
        if progress is not None:
            monitor = ProgressMonitor(job.progress, progress, self.progress_interval, dispatch)

        self._claim(buffer)
        job.state = JobState.RUNNING
        if monitor is not None:
            monitor.start()
        thread = threading.Thread(
            target=self._execute,
            args=(job, runner, monitor, completion, dispatch),
            name=f"mandelbrot-{mode}",
            daemon=True,
        )
        thread.start()
        return job

    def _execute(
        self,
        job: RenderJob,
        runner: Callable[[RenderJob], List[Dict]],
        monitor: Optional[ProgressMonitor],
        completion: Optional[Callable[[], None]],
        dispatch: Dispatch,
    ) -> None:
        if self.verbose:
            _engine_log(
                f"Starting {job.mode} render {job.raster.columns}x{job.raster.rows} "
                f"({job.raster.pixels} pixels, max_iterations={self.max_iterations})"
            )
        start = time.perf_counter()
        try:
            records = runner(job)
        except Exception as exc:
            self._release(job.buffer)
            _stop_monitor(monitor)
            job.state = JobState.FAILED
            if self.verbose:
                _engine_log(f"{job.mode} render failed: {exc!r}")
            job.future.set_exception(exc)
            return
        wall_time = time.perf_counter() - start

        self._release(job.buffer)
        _stop_monitor(monitor)

        timing = {
            "mode": job.mode,
            "wall_time": wall_time,
            "comp_total": sum(record["comp_time"] for record in records),
            "pixels": job.raster.pixels,
            "chunks": len(records),
            "workers": self.scheduler.workers if job.mode == "parallel" else 1,
        }
        if self.verbose:
            for record in records:
                print(
                    f"[Chunk {record['chunk_id']}] pixels {record['start']}:{record['end']} "
                    f"took {record['comp_time']:.4f}s on {record['thread']}",
                    flush=True,
                )
            _engine_log(f"{job.mode} render finished in {wall_time:.4f}s")

        job.state = JobState.COMPLETED
        job.future.set_result(RenderReport(job.buffer, timing, records))
        if completion is not None:
            dispatch(completion)

    def _run_parallel(self, job: RenderJob) -> List[Dict]:
        def render_chunk(work_range: WorkRange, view: np.ndarray):
            comp_start = time.perf_counter()
            compute_range(
                view,
                work_range,
                job.raster,
                job.viewport,
                self.max_iterations,
                self.threshold,
                job.progress,
            )
            return work_range, time.perf_counter() - comp_start, threading.current_thread().name

        results = self.scheduler.perform_on(
            job.buffer,
            render_chunk,
            chunks=self.chunk_count,
            iterations=job.raster.pixels,
        )
        return [
            _chunk_record(chunk_id, work_range, comp_time, thread)
            for chunk_id, (work_range, comp_time, thread) in enumerate(results)
        ]

    def _run_sequential(self, job: RenderJob) -> List[Dict]:
        work_range = WorkRange(0, job.raster.pixels)
        comp_start = time.perf_counter()
        compute_range(
            job.buffer[work_range.as_slice()],
            work_range,
            job.raster,
            job.viewport,
            self.max_iterations,
            self.threshold,
            job.progress,
        )
        comp_time = time.perf_counter() - comp_start
        return [_chunk_record(0, work_range, comp_time, threading.current_thread().name)]

    def _claim(self, buffer: np.ndarray) -> None:
        with self._lock:
            for active in self._active:
                if np.may_share_memory(active, buffer):
                    raise BufferAllocationFailure("buffer is already in use by a running render")
            self._active.append(buffer)

    def _release(self, buffer: np.ndarray) -> None:
        with self._lock:
            self._active = [active for active in self._active if active is not buffer]


def _validate_buffer(buffer: Optional[np.ndarray], raster: Raster) -> None:
    if buffer is None:
        raise BufferAllocationFailure("no pixel buffer supplied")
    if not isinstance(buffer, np.ndarray):
        raise BufferAllocationFailure(f"pixel buffer must be a numpy array, got {type(buffer).__name__}")
    if buffer.dtype != np.uint32:
        raise BufferAllocationFailure(f"pixel buffer must have dtype uint32, got {buffer.dtype}")
    if buffer.ndim != 1:
        raise BufferAllocationFailure(f"pixel buffer must be flat, got shape {buffer.shape}")
    if not buffer.flags.writeable:
        raise BufferAllocationFailure("pixel buffer is read-only")
    if buffer.size < raster.pixels:
        raise BufferAllocationFailure(
            f"pixel buffer holds {buffer.size} cells, raster needs {raster.pixels}"
        )
