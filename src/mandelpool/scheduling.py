"""Work scheduling: contiguous chunk partitioning and fork-join execution."""

from __future__ import annotations

import os
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass
from typing import Callable, Iterator, List, Optional, TypeVar

import numpy as np

from .errors import InvalidPartition

__all__ = ["WorkRange", "partition", "ChunkScheduler"]

T = TypeVar("T")


@dataclass(frozen=True)
class WorkRange:
    """Half-open interval ``[start, end)`` of linear indices."""

    start: int
    end: int

    def __len__(self) -> int:
        return self.end - self.start

    def __iter__(self) -> Iterator[int]:
        return iter(range(self.start, self.end))

    def as_slice(self) -> slice:
        return slice(self.start, self.end)


def _check_count(name: str, value: object) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
        raise InvalidPartition(f"{name} must be an integer, got {value!r}")
    return int(value)


def partition(iterations: int, chunks: int) -> List[WorkRange]:
    """Split ``[0, iterations)`` into ``min(iterations, chunks)`` contiguous ranges.

    Range sizes differ by at most one; the first ``iterations % chunk_count``
    ranges carry the extra element. An empty iteration space yields the
    single range ``[0, 0)``.
    """
    iterations = _check_count("iterations", iterations)
    chunks = _check_count("chunks", chunks)
    if iterations < 0:
        raise InvalidPartition(f"iterations must be >= 0, got {iterations}")
    if chunks <= 0:
        raise InvalidPartition(f"chunks must be >= 1, got {chunks}")

    chunk_count = min(iterations, chunks)
    if chunk_count <= 1:
        return [WorkRange(0, iterations)]

    base, remainder = divmod(iterations, chunk_count)
    ranges = []
    for index in range(chunk_count):
        start = index * base + min(index, remainder)
        end = start + base + (1 if index < remainder else 0)
        ranges.append(WorkRange(start, end))
    return ranges


@dataclass
class ChunkScheduler:
    """Fork-join execution of per-range operations over a thread pool.

    ``workers`` sizes the pool and is the default chunk count; it falls back
    to the number of CPUs when not given.
    """

    workers: Optional[int] = None

    def __post_init__(self) -> None:
        if self.workers is None:
            self.workers = os.cpu_count() or 1
        self.workers = _check_count("workers", self.workers)
        if self.workers <= 0:
            raise InvalidPartition(f"workers must be >= 1, got {self.workers}")

    def ranges(self, iterations: int, chunks: Optional[int] = None) -> List[WorkRange]:
        return partition(iterations, self.workers if chunks is None else chunks)

    def perform(
        self,
        iterations: int,
        operation: Callable[[WorkRange], T],
        chunks: Optional[int] = None,
    ) -> List[T]:
        """Run ``operation`` once per range and return only when all have finished.

        Results come back in range order. If any operation raised, the first
        failure (by range order) is re-raised after every range completed.
        """
        ranges = self.ranges(iterations, chunks)
        if len(ranges) == 1:
            return [operation(ranges[0])]

        with ThreadPoolExecutor(
            max_workers=min(self.workers, len(ranges)), thread_name_prefix="chunk"
        ) as pool:
            futures = [
                pool.submit(operation, work_range) for work_range in ranges
            ]
            wait(futures)
        return [future.result() for future in futures]

    def perform_on(
        self,
        buffer: np.ndarray,
        operation: Callable[[WorkRange, np.ndarray], T],
        chunks: Optional[int] = None,
        iterations: Optional[int] = None,
    ) -> List[T]:
        """Like :meth:`perform`, handing each operation its own slice of ``buffer``.

        Views never overlap, so operations write without locking.
        """
        if iterations is None:
            iterations = len(buffer)
        if iterations > len(buffer):
            raise InvalidPartition(
                f"iterations ({iterations}) exceed buffer length ({len(buffer)})"
            )
        return self.perform(
            iterations,
            lambda work_range: operation(work_range, buffer[work_range.as_slice()]),
            chunks,
        )

