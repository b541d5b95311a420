from __future__ import annotations

import math
from typing import Sequence

from ..core.fish import Fish
from ..types.metrics import TickMetrics


def count_neighbors(school: Sequence[Fish], radius: float) -> int:
    """Ordered pairs of fish closer than ``radius`` to each other."""
    seen = 0
    for fish in school:
        x, y = fish.position.x, fish.position.y
        for other in school:
            if other is fish:
                continue
            if math.hypot(x - other.position.x, y - other.position.y) < radius:
                seen += 1
    return seen


def create_metrics(
    tick: int,
    school: Sequence[Fish],
    neighbors_seen: int,
    duration_ms: float,
) -> TickMetrics:
    population = len(school)
    speed_sum = 0.0
    peak_speed = 0.0
    breaking_away = 0
    for fish in school:
        speed = fish.speed
        speed_sum += speed
        if speed > peak_speed:
            peak_speed = speed
        if fish.breaking_away:
            breaking_away += 1
    return TickMetrics(
        tick=tick,
        population=population,
        breaking_away=breaking_away,
        pair_checks=population * (population - 1),
        neighbors_seen=neighbors_seen,
        average_speed=speed_sum / population if population else 0.0,
        peak_speed=peak_speed,
        tick_duration_ms=duration_ms,
    )
