"""Configuration objects and YAML loading for Mandelbrot render runs."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from itertools import product
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

import yaml

from .geometry import Raster, Viewport


@dataclass(frozen=True)
class RenderConfig:
    """Runtime configuration for a single Mandelbrot render."""

    mode: str  # 'parallel' or 'sequential'
    width: int
    height: int
    workers: Optional[int] = None  # None = one per CPU
    oversubscription: int = 8
    xlim: Tuple[float, float] = (-2.1, 0.6)
    ylim: Tuple[float, float] = (-1.2, 1.2)
    max_iterations: int = 10_000
    threshold: float = 2.0

    def __post_init__(self) -> None:
        if self.mode not in ("parallel", "sequential"):
            raise ValueError(f"mode must be 'parallel' or 'sequential', got {self.mode!r}")

    @property
    def run_name(self) -> str:
        """Generate unique run name embedding all parameters."""
        workers = "auto" if self.workers is None else self.workers
        return (
            f"{self.mode}_w{workers}_o{self.oversubscription}_"
            f"i{self.max_iterations}_{self.width}x{self.height}"
        )

    @property
    def image_size(self) -> str:
        return f"{self.width}x{self.height}"

    @property
    def raster(self) -> Raster:
        return Raster(rows=self.height, columns=self.width)

    @property
    def viewport(self) -> Viewport:
        return Viewport.from_limits(self.xlim, self.ylim)

    def to_dict(self) -> dict:
        """Convert to dictionary for MLflow logging."""
        return asdict(self)

    def to_cli_args(self) -> List[str]:
        """Convert config to CLI arguments."""
        args = [
            f"--mode={self.mode}",
            f"--oversubscription={self.oversubscription}",
            f"--image-size={self.image_size}",
            f"--xlim={self.xlim[0]}:{self.xlim[1]}",
            f"--ylim={self.ylim[0]}:{self.ylim[1]}",
            f"--max-iterations={self.max_iterations}",
        ]
        if self.workers is not None:
            args.append(f"--workers={self.workers}")
        return args


DEFAULT_RUN_CONFIG = RenderConfig(
    mode="parallel",
    width=200,
    height=160,
    xlim=(-2.1, 0.6),
    ylim=(-1.08, 1.08),
)


def default_run_config(**overrides: object) -> RenderConfig:
    """Return the canonical default config optionally overridden with kwargs."""
    return _build_run_config({**asdict(DEFAULT_RUN_CONFIG), **_coerce_dimensions(overrides)})


def load_sweep_configs(yaml_path: str | Path) -> List[RenderConfig]:
    """Load YAML config and generate all parameter sweep combinations.

    Supports a top-level ``sweep`` as well as the suite format that nests
    multiple experiments under ``experiments``.
    """
    with open(yaml_path) as f:
        cfg = yaml.safe_load(f) or {}

    global_defaults: Dict[str, object] = cfg.get("defaults", {}) or {}

    if "experiments" in cfg:
        experiments = cfg.get("experiments") or []
        configs: List[RenderConfig] = []
        for exp in experiments:
            sweep = exp.get("sweep")
            if not sweep:
                continue
            exp_defaults = {**global_defaults, **(exp.get("defaults", {}) or {})}
            configs.extend(_expand_sweep(exp_defaults, sweep))
        return configs

    sweep: Dict[str, object] = cfg.get("sweep", {}) or {}
    return _expand_sweep(global_defaults, sweep)


def get_config_by_index(yaml_path: str | Path, index: int) -> RenderConfig:
    """Get a specific config by index from sweep."""
    configs = load_sweep_configs(yaml_path)
    if index < 0 or index >= len(configs):
        raise ValueError(f"Config index {index} out of range [0, {len(configs) - 1}]")
    return configs[index]


def load_named_sweep_configs(
    yaml_path: str | Path,
    suite: str | None = None,
) -> List[tuple[str, List[RenderConfig]]]:
    with open(yaml_path) as f:
        cfg = yaml.safe_load(f) or {}

    defaults: Dict[str, object] = cfg.get("defaults", {}) or {}
    experiments = cfg.get("experiments")
    results: List[tuple[str, List[RenderConfig]]] = []

    if experiments:
        for exp in experiments:
            name = exp.get("name")
            if not name:
                continue
            if suite and name != suite:
                continue
            sweep = exp.get("sweep") or {}
            exp_defaults = {**defaults, **(exp.get("defaults", {}) or {})}
            results.append((name, _expand_sweep(exp_defaults, sweep)))
        if suite and not results:
            raise ValueError(f"Suite '{suite}' not found in {yaml_path}")
        return results

    sweep: Dict[str, object] = cfg.get("sweep", {}) or {}
    label = cfg.get("name") or Path(yaml_path).stem
    return [(label, _expand_sweep(defaults, sweep))]


def parse_image_size(value: str) -> Tuple[int, int]:
    width_str, height_str = value.lower().split("x")
    return int(width_str.strip()), int(height_str.strip())


def parse_limits(value: str) -> Tuple[float, float]:
    low, high = value.split(":")
    return float(low), float(high)


def _build_run_config(raw_data: Dict[str, object]) -> RenderConfig:
    data = _coerce_dimensions(dict(raw_data))
    for key in ("xlim", "ylim"):
        if key in data:
            limits = data[key]
            data[key] = parse_limits(limits) if isinstance(limits, str) else tuple(map(float, limits))
    for key in ("oversubscription", "max_iterations"):
        if key in data:
            data[key] = int(data[key])
    if data.get("workers") is not None:
        data["workers"] = int(data["workers"])
    if "threshold" in data:
        data["threshold"] = float(data["threshold"])
    return RenderConfig(**data)  # type: ignore[arg-type]


def _expand_sweep(defaults: Dict[str, object], sweep: Dict[str, object]) -> List[RenderConfig]:
    """Expand sweep definition into RenderConfig instances."""
    configs: List[RenderConfig] = []

    domains = sweep.get("domains")
    param_grid = {k: sweep[k] for k in sweep if k not in {"domains", "image_shape"}}
    shape_options = sweep.get("image_shape")
    keys = list(param_grid.keys())

    if domains:
        for domain in domains:
            xlim, ylim = domain
            combos = product(*[param_grid[k] for k in keys]) if keys else [()]
            for combo in combos:
                data = {**defaults, **dict(zip(keys, combo))}
                data["xlim"] = tuple(map(float, xlim))
                data["ylim"] = tuple(map(float, ylim))
                configs.extend(_expand_shapes(data, shape_options))
    elif not keys:
        configs.extend(_expand_shapes(defaults, shape_options))
    else:
        for combo in product(*[param_grid[k] for k in keys]):
            data = {**defaults, **dict(zip(keys, combo))}
            configs.extend(_expand_shapes(data, shape_options))

    return configs


def _coerce_dimensions(data: Dict[str, object]) -> Dict[str, object]:
    result = dict(data)
    for key in ("image_size", "image_shape"):
        shape = result.pop(key, None)
        if shape is not None:
            width, height = _normalize_shape_entry(shape)
            result["width"] = width
            result["height"] = height
    if "width" in result:
        result["width"] = int(result["width"])
    if "height" in result:
        result["height"] = int(result["height"])
    return result


def _normalize_shape_entry(entry: object) -> Tuple[int, int]:
    if isinstance(entry, dict):
        width = entry.get("width")
        height = entry.get("height")
        if width is None or height is None:
            raise ValueError("image_shape dict must include 'width' and 'height'")
        return int(width), int(height)
    if isinstance(entry, (list, tuple)) and len(entry) == 2:
        return int(entry[0]), int(entry[1])
    if isinstance(entry, str):
        return parse_image_size(entry)
    raise ValueError(f"Unsupported image shape specification: {entry!r}")


def _expand_shapes(base: Dict[str, object], shape_options: object) -> List[RenderConfig]:
    if not shape_options:
        return [_build_run_config(base)]

    shapes: Iterable[Tuple[int, int]]
    if isinstance(shape_options, (list, tuple)):
        shapes = [_normalize_shape_entry(opt) for opt in shape_options]
    else:
        shapes = [_normalize_shape_entry(shape_options)]

    return [_build_run_config({**base, "width": width, "height": height}) for width, height in shapes]
