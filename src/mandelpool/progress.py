"""Progress aggregation: many producers add, one consumer samples."""

from __future__ import annotations

import sys
import threading
from typing import Callable, Optional

__all__ = ["ProgressCounter", "ProgressMonitor", "Dispatch", "call_now"]

Dispatch = Callable[[Callable[[], None]], None]


def call_now(fn: Callable[[], None]) -> None:
    fn()


class ProgressCounter:
    """Monotone count of completed pixels shared by all workers of one render."""

    def __init__(self, total: int):
        if total < 0:
            raise ValueError(f"total must be >= 0, got {total}")
        self.total = total
        self._completed = 0
        self._lock = threading.Lock()

    def add(self, count: int = 1) -> None:
        if count <= 0:
            raise ValueError(f"progress increments must be positive, got {count}")
        with self._lock:
            self._completed += count

    @property
    def completed(self) -> int:
        with self._lock:
            return self._completed

    @property
    def fraction(self) -> float:
        if self.total == 0:
            return 1.0
        return min(1.0, self.completed / self.total)


class ProgressMonitor:
    """Sample a counter on a fixed cadence and hand changes to one consumer.

    The consumer sees at most one update per ``interval`` seconds no matter
    how fast workers add to the counter. Updates go through ``dispatch`` so
    the caller decides which thread runs the consumer. ``stop()`` delivers a
    final sample if anything changed since the last one. A consumer that
    raises is reported on stderr and sampling carries on.
    """

    def __init__(
        self,
        counter: ProgressCounter,
        consumer: Callable[[float], None],
        interval: float = 0.05,
        dispatch: Optional[Dispatch] = None,
    ):
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        self.counter = counter
        self.consumer = consumer
        self.interval = interval
        self.dispatch = dispatch or call_now
        self._last: Optional[int] = None
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def start(self) -> "ProgressMonitor":
        if self._thread is not None:
            raise RuntimeError("ProgressMonitor already started")
        self._thread = threading.Thread(target=self._loop, name="progress-monitor", daemon=True)
        self._thread.start()
        return self

    def stop(self) -> None:
        self._stop.set()
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join()
        self.sample()

    def sample(self) -> None:
        """Deliver the current fraction if the count moved since the last delivery."""
        completed = self.counter.completed
        if completed == self._last:
            return
        self._last = completed
        fraction = completed / self.counter.total if self.counter.total else 1.0

        def deliver() -> None:
            try:
                self.consumer(fraction)
            except Exception as exc:
                print(f"[Progress] consumer raised {exc!r}; continuing", file=sys.stderr, flush=True)

        self.dispatch(deliver)

    def _loop(self) -> None:
        while not self._stop.wait(self.interval):
            self.sample()

    def __enter__(self) -> "ProgressMonitor":
        return self.start()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()
