from __future__ import annotations

from dataclasses import dataclass

from pygame.math import Vector2

from ...config import Color, FishConfig
from ...rng import RandomSource
from ..utils.math2d import _heading_from_xy


@dataclass(slots=True)
class Fish:
    position: Vector2
    velocity: Vector2
    size: float
    color: Color
    breaking_away: bool = False
    breakaway_timer: int = 0

    @property
    def heading(self) -> float:
        return _heading_from_xy(self.velocity.x, self.velocity.y)

    @property
    def speed(self) -> float:
        return self.velocity.length()


def spawn_fish(rng: RandomSource, width: float, height: float, config: FishConfig) -> Fish:
    position = Vector2(rng.next_float() * width, rng.next_float() * height)
    velocity = Vector2(
        (rng.next_float() - 0.5) * config.base_speed,
        (rng.next_float() - 0.5) * config.base_speed,
    )
    size = rng.next_range(config.size_min, config.size_max)
    color = rng.choice(config.palette)
    return Fish(position=position, velocity=velocity, size=size, color=color)
