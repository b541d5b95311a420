from __future__ import annotations

import argparse
import csv
import json
import logging
import math
from dataclasses import replace
from pathlib import Path
from typing import Optional

from pygame.math import Vector2

from ..config import SimulationConfig, apply_preset
from ..sim.core.school import School
from ..sim.types.metrics import TickMetrics

logger = logging.getLogger(__name__)

_HEADER = [
    "tick",
    "population",
    "breaking_away",
    "pair_checks",
    "neighbors_seen",
    "neighbors_per_fish",
    "avg_speed",
    "peak_speed",
    "tick_ms",
]


def _format_row(metrics: TickMetrics, tick_ms: float) -> list[object]:
    population = metrics.population
    neighbors_per_fish = metrics.neighbors_seen / population if population > 0 else 0.0
    return [
        metrics.tick,
        population,
        metrics.breaking_away,
        metrics.pair_checks,
        metrics.neighbors_seen,
        f"{neighbors_per_fish:.4f}",
        f"{metrics.average_speed:.4f}",
        f"{metrics.peak_speed:.4f}",
        f"{tick_ms:.3f}",
    ]


def _percentile(sorted_values: list[float], percentile: float) -> float:
    if not sorted_values:
        return 0.0
    if len(sorted_values) == 1:
        return float(sorted_values[0])
    pos = (len(sorted_values) - 1) * percentile
    low = int(math.floor(pos))
    high = int(math.ceil(pos))
    if low == high:
        return float(sorted_values[low])
    weight = pos - low
    return float(sorted_values[low] + (sorted_values[high] - sorted_values[low]) * weight)


def _summary_stats(values: list[float]) -> dict[str, float]:
    if not values:
        return {"min": 0.0, "max": 0.0, "avg": 0.0, "p50": 0.0, "p90": 0.0, "p99": 0.0}
    sorted_values = sorted(values)
    return {
        "min": float(sorted_values[0]),
        "max": float(sorted_values[-1]),
        "avg": float(sum(values) / len(values)),
        "p50": _percentile(sorted_values, 0.50),
        "p90": _percentile(sorted_values, 0.90),
        "p99": _percentile(sorted_values, 0.99),
    }


def run_headless(
    steps: int,
    seed: Optional[int],
    log_path: Optional[Path],
    deterministic_log: bool = False,
    summary_path: Optional[Path] = None,
    summary_window: int = 600,
    config: Optional[SimulationConfig] = None,
    pointer: Optional[tuple[float, float]] = None,
) -> School:
    if steps < 0:
        raise ValueError(f"steps must be non-negative, got {steps}")
    config = config if config is not None else SimulationConfig()
    if seed is not None:
        config = replace(config, seed=seed)
    school = School(config, track_neighbors=True)
    pointer_vec = Vector2(pointer) if pointer is not None else None

    writer = None
    csv_file = None
    if log_path:
        csv_file = Path(log_path).open("w", newline="")
        writer = csv.writer(csv_file)
        writer.writerow(_HEADER)

    tick_ms_series: list[float] = []
    speed_series: list[float] = []
    neighbors_series: list[float] = []
    breakaway_ticks = 0

    try:
        for tick in range(steps):
            metrics = school.tick(tick, pointer_vec)
            tick_ms = 0.0 if deterministic_log else metrics.tick_duration_ms
            tick_ms_series.append(tick_ms)
            speed_series.append(metrics.average_speed)
            neighbors_series.append(
                0.0 if metrics.population <= 0 else metrics.neighbors_seen / metrics.population
            )
            if metrics.breaking_away:
                breakaway_ticks += 1
            if writer:
                writer.writerow(_format_row(metrics, tick_ms))
    finally:
        if csv_file:
            csv_file.close()

    if summary_path:
        window = max(1, int(summary_window))
        tail = slice(max(0, len(tick_ms_series) - window), len(tick_ms_series))
        summary = {
            "steps": steps,
            "seed": config.seed,
            "preset": config.preset,
            "viewport": {"width": school.width, "height": school.height},
            "population": len(school.fish),
            "deterministic_log": deterministic_log,
            "tick_ms": _summary_stats(tick_ms_series),
            "avg_speed": _summary_stats(speed_series),
            "neighbors_per_fish": _summary_stats(neighbors_series),
            "ticks_with_breakaway": breakaway_ticks,
            "tail_window": {
                "window": window,
                "tick_ms": _summary_stats(tick_ms_series[tail]),
                "avg_speed": _summary_stats(speed_series[tail]),
                "neighbors_per_fish": _summary_stats(neighbors_series[tail]),
            },
        }
        Path(summary_path).write_text(json.dumps(summary, indent=2))

    logger.info("headless run finished: %d ticks, %d fish", steps, len(school.fish))
    return school


def main() -> None:
    parser = argparse.ArgumentParser(description="Headless shoal simulation")
    parser.add_argument("--steps", type=int, default=600)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--config", type=Path, default=None, help="YAML configuration file")
    parser.add_argument("--preset", type=str, default=None, help="full, schooling or attraction")
    parser.add_argument("--width", type=float, default=None)
    parser.add_argument("--height", type=float, default=None)
    parser.add_argument(
        "--pointer",
        type=float,
        nargs=2,
        metavar=("X", "Y"),
        default=None,
        help="Hold the pointer at a fixed position for the whole run.",
    )
    parser.add_argument("--log", type=Path, default=None, help="CSV file to write metrics")
    parser.add_argument("--summary", type=Path, default=None, help="Optional JSON summary file")
    parser.add_argument("--summary-window", type=int, default=600, help="Tail window size (ticks) for summary stats.")
    parser.add_argument(
        "--deterministic-log",
        action="store_true",
        help="Write deterministic CSV (tick_ms is forced to 0.000 so identical seeds match).",
    )
    args = parser.parse_args()
    logging.basicConfig(level=logging.INFO)

    config = SimulationConfig.from_yaml(args.config) if args.config else SimulationConfig()
    if args.preset:
        config = apply_preset(config, args.preset)
    if args.width is not None:
        config.width = args.width
    if args.height is not None:
        config.height = args.height
    run_headless(
        args.steps,
        args.seed,
        args.log,
        deterministic_log=args.deterministic_log,
        summary_path=args.summary,
        summary_window=args.summary_window,
        config=config,
        pointer=tuple(args.pointer) if args.pointer else None,
    )


if __name__ == "__main__":
    main()
