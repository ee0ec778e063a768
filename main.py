from __future__ import annotations

import argparse
import sys
from pathlib import Path

from mandelpool.config import default_run_config, load_named_sweep_configs, parse_image_size, parse_limits
from mandelpool.execution import compare_modes, run_single_experiment, run_sweep
from mandelpool.geometry import Viewport


def parse_args():
    parser = argparse.ArgumentParser(description="Render the Mandelbrot set with chunked parallelism.")
    parser.add_argument("--sweep", type=str, help="Path to sweep YAML file")
    parser.add_argument("--suite", type=str, help="Name of suite/experiment within sweep file")
    parser.add_argument("--list-suites", action="store_true", help="List suites in sweep file")
    parser.add_argument("--task-id", type=int, help="Run specific config index (for job arrays)")

    parser.add_argument("--mode", type=str, default="parallel", choices=["parallel", "sequential"])
    parser.add_argument("--workers", type=int, help="Worker threads (default: CPU count)")
    parser.add_argument("--oversubscription", type=int, default=8, help="Chunks per worker")
    parser.add_argument("--image-size", type=str, default="200x160", help="WIDTHxHEIGHT in pixels")
    parser.add_argument("--xlim", type=str, help="Real bounds as min:max")
    parser.add_argument("--ylim", type=str, help="Imaginary bounds as min:max")
    parser.add_argument("--max-iterations", type=int, default=10_000)
    parser.add_argument("--compare", action="store_true", help="Time both modes and check they agree")
    parser.add_argument("--no-progress", action="store_true", help="Disable the progress bar")
    parser.add_argument("--verbose", action="store_true", help="Print per-chunk timings")

    return parser.parse_args()


def main():
    args = parse_args()

    # Handle sweep runs
    if args.sweep:
        sweep_path = Path(args.sweep)

        if args.list_suites:
            for name, configs in load_named_sweep_configs(sweep_path):
                print(f"{name or sweep_path.stem}: {len(configs)} configurations")
            return 0

        if args.task_id is not None and args.suite is None:
            sys.exit("ERROR: --task-id requires --suite")

        suites = load_named_sweep_configs(sweep_path, args.suite)

        exit_code = 0
        for suite_name, configs in suites:
            descriptor = f"{sweep_path}::{suite_name}" if suite_name else str(sweep_path)
            rc = run_sweep(configs, descriptor, suite_name, args.task_id)
            exit_code = exit_code or rc
        return exit_code

    if args.suite:
        sys.exit("ERROR: --suite requires --sweep")

    overrides = {
        "mode": args.mode,
        "workers": args.workers,
        "oversubscription": args.oversubscription,
        "image_size": args.image_size,
        "max_iterations": args.max_iterations,
    }
    xlim = parse_limits(args.xlim) if args.xlim else (-2.1, 0.6)
    overrides["xlim"] = xlim
    if args.ylim:
        overrides["ylim"] = parse_limits(args.ylim)
    else:
        # keep pixels square: imaginary span follows the raster aspect ratio
        width, height = parse_image_size(args.image_size)
        viewport = Viewport.for_aspect(xlim[0], xlim[1], rows=height, columns=width)
        overrides["ylim"] = (viewport.lower_right.imaginary, viewport.upper_left.imaginary)
    config = default_run_config(**overrides)

    if args.compare:
        return compare_modes(config, show_progress=not args.no_progress)

    run_single_experiment(config, None, show_progress=not args.no_progress, verbose=args.verbose)
    return 0


if __name__ == "__main__":
    sys.exit(main())
