"""MLflow logging for Mandelbrot render runs."""

from __future__ import annotations

import os
from typing import Any, Dict, List, Sequence

import mlflow
import pandas as pd
from matplotlib import pyplot as plt

from .color import to_rgba_array
from .config import RenderConfig
from .report import RenderReport

DEFAULT_TRACKING_URI = "file:./mlruns"
EXPERIMENT_NAME = "mandelpool"


def log_to_mlflow(
    config: RenderConfig,
    report: RenderReport,
    suite_name: str = "default",
) -> None:
    """Log a finished render to MLflow with the rendered image and chunk table.

    If MLFLOW_RUN_ID is set in the environment the run is continued,
    otherwise a new run is created.

    Args:
        config: Run configuration
        report: Combined outputs (buffer, timing stats, chunk table)
        suite_name: Name of the suite (TESTS, scaling, etc.) for tagging/filtering
    """
    if os.environ.get("SKIP_MLFLOW"):
        return

    mlflow.set_tracking_uri(_resolve_tracking_uri())
    mlflow.set_experiment(os.environ.get("MLFLOW_EXPERIMENT_NAME") or EXPERIMENT_NAME)

    existing_run_id = os.environ.get("MLFLOW_RUN_ID")
    if existing_run_id:
        run_context = mlflow.start_run(run_id=existing_run_id)
    else:
        run_context = mlflow.start_run(run_name=config.run_name)

    with run_context as run:
        mlflow.set_tags(
            {
                "node_name": os.uname().nodename,
                "suite": suite_name,
                "mode": config.mode,
            }
        )

        chunk_records = report.copy_chunks()
        if chunk_records:
            mlflow.log_table(_records_to_table(chunk_records), "chunks.json")

        mlflow.log_params(config.to_dict())

        timing = report.timing or {}
        for key in ("wall_time", "comp_total", "pixels", "chunks", "workers"):
            if key in timing:
                mlflow.log_metric(key, float(timing[key]))
        if timing.get("wall_time"):
            mlflow.log_metric("pixels_per_second", float(timing["pixels"]) / float(timing["wall_time"]))

        fig, ax = plt.subplots(figsize=(6, 6))
        ax.imshow(to_rgba_array(report.buffer, config.raster))
        ax.set_axis_off()
        mlflow.log_figure(fig, "figures/mandelbrot.png")
        plt.close(fig)

        print(f"[MLflow] Logged run: {config.run_name} (suite: {suite_name})")
        print(f"[MLflow] Run ID: {run.info.run_id}")


def _records_to_table(chunk_records: Sequence[Dict[str, Any]]) -> Dict[str, List[Any]]:
    """Convert row-wise chunk records into MLflow table format."""

    frame = pd.DataFrame.from_records(chunk_records)
    return frame.to_dict(orient="list")


def _resolve_tracking_uri() -> str:
    """Resolve tracking URI."""
    return os.environ.get("MLFLOW_TRACKING_URI") or DEFAULT_TRACKING_URI
