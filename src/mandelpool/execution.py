"""Execution helpers for Mandelbrot CLI workflows."""

from __future__ import annotations

import os
import sys
from dataclasses import replace
from typing import List, Optional

import numpy as np
from tqdm import tqdm

from .config import RenderConfig
from .engine import MandelbrotEngine, allocate_buffer
from .report import RenderReport


def render(config: RenderConfig, show_progress: bool = True, verbose: bool = False) -> RenderReport:
    """Render ``config`` and wait for it, optionally drawing a progress bar."""
    engine = MandelbrotEngine.from_config(config, verbose=verbose)
    raster = config.raster
    buffer = allocate_buffer(raster)

    if not show_progress:
        return engine.compute(config.viewport, raster, buffer, mode=config.mode).wait()

    with tqdm(total=raster.pixels, desc=config.mode, unit="px", leave=False) as bar:
        seen = [0]

        def on_progress(fraction: float) -> None:
            done = int(round(fraction * raster.pixels))
            bar.update(done - seen[0])
            seen[0] = done

        job = engine.compute(config.viewport, raster, buffer, mode=config.mode, progress=on_progress)
        return job.wait()


def run_single_experiment(
    config: RenderConfig,
    suite_name: Optional[str],
    show_progress: bool = True,
    verbose: bool = False,
) -> RenderReport:
    """Execute a single Mandelbrot render and log it."""
    print(
        f"[Run] Starting render '{config.run_name}' "
        f"(mode={config.mode}, workers={config.workers or os.cpu_count()}, "
        f"oversubscription={config.oversubscription})",
        flush=True,
    )

    report = render(config, show_progress=show_progress, verbose=verbose)

    suite = suite_name or os.environ.get("MANDELBROT_SUITE") or "default"
    if os.environ.get("SKIP_MLFLOW"):
        print("[Run] SKIP_MLFLOW set - skipping MLflow logging.", flush=True)
    else:
        print("[Run] Render finished, logging to MLflow...", flush=True)
        from .logging import log_to_mlflow

        log_to_mlflow(config, report, suite)

    wall_time = report.timing.get("wall_time", 0.0)
    print(f"[Timing] Total: {wall_time:.4f}s ({report.timing.get('chunks', 0)} chunks)")
    return report


def compare_modes(config: RenderConfig, show_progress: bool = True) -> int:
    """Render ``config`` in both modes, report timings and check the buffers agree."""
    reports = {}
    for mode in ("parallel", "sequential"):
        cfg = replace(config, mode=mode)
        reports[mode] = run_single_experiment(cfg, "compare", show_progress=show_progress)

    parallel, sequential = reports["parallel"], reports["sequential"]
    speedup = sequential.timing["wall_time"] / max(parallel.timing["wall_time"], 1e-12)
    print(f"[Compare] Speedup: {speedup:.2f}x")

    if not np.array_equal(parallel.buffer, sequential.buffer):
        mismatches = int(np.count_nonzero(parallel.buffer != sequential.buffer))
        print(f"[Compare] ✗ Buffers differ in {mismatches} pixels", file=sys.stderr)
        return 1
    print("[Compare] ✓ Parallel and sequential buffers are identical")
    return 0


def run_sweep(
    configs: List[RenderConfig],
    descriptor: str = "sweep",
    suite_name: Optional[str] = None,
    task_id: Optional[int] = None,
) -> int:
    """Run every configuration of a sweep (or just ``task_id``) in-process."""
    if not configs:
        print("ERROR: No configurations found in sweep", file=sys.stderr)
        return 1

    if task_id is not None:
        if task_id < 0 or task_id >= len(configs):
            print(f"ERROR: task-id {task_id} out of range [0, {len(configs) - 1}]", file=sys.stderr)
            return 1
        config = configs[task_id]
        print(f"[Task {task_id}] Running: {config.run_name}")
        run_single_experiment(config, suite_name, show_progress=False)
        return 0

    print("=" * 70)
    print(f"Running {len(configs)} configurations from {descriptor}")
    print("=" * 70)

    successes = 0
    failures: list[tuple[int, str]] = []

    for idx, cfg in enumerate(configs):
        print(f"\n[{idx + 1}/{len(configs)}] {cfg.run_name}")
        try:
            run_single_experiment(cfg, suite_name)
        except Exception as exc:
            print(f"    ✗ FAILED: {exc!r}", file=sys.stderr)
            failures.append((idx, cfg.run_name))
            continue
        successes += 1
        print("    ✓ Completed")

    print("\n" + "=" * 70)
    print("Summary")
    print("=" * 70)
    print(f"Total:      {len(configs)}")
    print(f"Successful: {successes}")
    print(f"Failed:     {len(failures)}")

    if failures:
        print("\nFailed configurations:")
        for idx, name in failures:
            print(f"  [{idx}] {name}")
        return 1

    return 0
