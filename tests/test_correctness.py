"""Engine output compared with the pure-Python baseline for every test config."""

from pathlib import Path

import numpy as np
import pytest

from mandelpool.baseline import compute_mandelbrot
from mandelpool.config import load_sweep_configs
from mandelpool.engine import MandelbrotEngine, allocate_buffer

TEST_CONFIGS = load_sweep_configs(Path(__file__).parent / "test_configs.yaml")


@pytest.mark.parametrize("config", TEST_CONFIGS, ids=lambda c: c.run_name)
def test_engine_matches_baseline(config):
    buffer = allocate_buffer(config.raster)
    job = MandelbrotEngine.from_config(config).compute(config.viewport, config.raster, buffer, mode=config.mode)
    report = job.wait(timeout=60)

    expected = compute_mandelbrot(config.viewport, config.raster, config.max_iterations, config.threshold)
    np.testing.assert_array_equal(buffer, expected, err_msg=f"Mismatch: {config.run_name}")
    assert report.buffer is buffer
    assert job.progress.completed == config.raster.pixels
