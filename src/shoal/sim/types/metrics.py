from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class TickMetrics:
    tick: int
    population: int
    breaking_away: int
    pair_checks: int
    neighbors_seen: int
    average_speed: float
    peak_speed: float
    tick_duration_ms: float = 0.0
