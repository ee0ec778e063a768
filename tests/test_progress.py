"""Progress counting and coalesced delivery."""

import queue
import threading
import time

import pytest

from mandelpool.progress import ProgressCounter, ProgressMonitor


def test_counter_is_race_free():
    counter = ProgressCounter(8 * 5000)

    def produce():
        for _ in range(5000):
            counter.add(1)

    threads = [threading.Thread(target=produce) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert counter.completed == 40000
    assert counter.fraction == 1.0


def test_counter_rejects_non_increasing_signals():
    counter = ProgressCounter(10)
    with pytest.raises(ValueError):
        counter.add(0)
    with pytest.raises(ValueError):
        counter.add(-2)


def test_empty_counter_is_complete():
    assert ProgressCounter(0).fraction == 1.0


def test_monitor_coalesces_bursts():
    counter = ProgressCounter(100_000)
    seen = []

    with ProgressMonitor(counter, seen.append, interval=0.01):
        for _ in range(100_000):
            counter.add(1)

    assert seen[-1] == 1.0
    assert seen == sorted(seen)
    assert len(seen) < 1000


def test_monitor_skips_unchanged_samples():
    counter = ProgressCounter(10)
    seen = []
    counter.add(5)
    monitor = ProgressMonitor(counter, seen.append, interval=0.01).start()
    time.sleep(0.1)
    monitor.stop()

    assert seen == [0.5]


def test_monitor_delivers_through_dispatch():
    counter = ProgressCounter(4)
    inbox = queue.Queue()
    delivered = []

    monitor = ProgressMonitor(counter, delivered.append, interval=0.01, dispatch=inbox.put).start()
    counter.add(4)
    monitor.stop()

    # nothing runs until the consumer's own thread drains the queue
    assert delivered == []
    while not inbox.empty():
        inbox.get_nowait()()
    assert delivered[-1] == 1.0


def test_monitor_rejects_bad_interval():
    with pytest.raises(ValueError):
        ProgressMonitor(ProgressCounter(1), print, interval=0)


def test_monitor_survives_a_raising_consumer(capsys):
    counter = ProgressCounter(3)
    seen = []

    def flaky(fraction):
        seen.append(fraction)
        if len(seen) == 1:
            raise RuntimeError("first delivery failed")

    monitor = ProgressMonitor(counter, flaky, interval=10)
    counter.add(1)
    monitor.sample()
    counter.add(2)
    monitor.sample()

    assert seen == [pytest.approx(1 / 3), 1.0]
    assert "first delivery failed" in capsys.readouterr().err


def test_monitor_thread_keeps_sampling_after_consumer_error():
    counter = ProgressCounter(2)
    seen = []
    second = threading.Event()

    def flaky(fraction):
        seen.append(fraction)
        if len(seen) == 1:
            raise RuntimeError("first delivery failed")
        second.set()

    counter.add(1)
    monitor = ProgressMonitor(counter, flaky, interval=0.01).start()
    deadline = time.monotonic() + 5
    while not seen and time.monotonic() < deadline:
        time.sleep(0.005)
    counter.add(1)

    assert second.wait(timeout=5)
    monitor.stop()
    assert seen == [0.5, 1.0]
