from __future__ import annotations

import math


def _clamp_length_xy_f(x: float, y: float, max_length: float) -> tuple[float, float]:
    if max_length <= 0.0:
        return 0.0, 0.0
    magnitude_sq = x * x + y * y
    max_sq = max_length * max_length
    if magnitude_sq <= max_sq:
        return x, y
    inv = max_length / math.sqrt(magnitude_sq)
    return x * inv, y * inv


def _rotate_xy(x: float, y: float, angle: float) -> tuple[float, float]:
    """Turn the heading of ``(x, y)`` by ``angle`` radians, keeping its length."""
    speed = math.sqrt(x * x + y * y)
    heading = math.atan2(y, x) + angle
    return math.cos(heading) * speed, math.sin(heading) * speed


def _heading_from_xy(x: float, y: float) -> float:
    return math.atan2(y, x)


def _wrap_teleport(value: float, extent: float) -> float:
    # Not a modulo: an overshoot lands exactly on the opposite edge.
    if value > extent:
        return 0.0
    if value < 0.0:
        return extent
    return value
