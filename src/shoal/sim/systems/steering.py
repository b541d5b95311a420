from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Optional, Sequence

from pygame.math import Vector2

from ...config import BehaviorConfig, FishConfig
from ...rng import RandomSource
from ..core.fish import Fish
from ..utils.math2d import _clamp_length_xy_f, _rotate_xy, _wrap_teleport

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class StepContext:
    """Everything a single fish update reads besides the school itself."""

    fish: FishConfig
    behavior: BehaviorConfig
    width: float
    height: float
    rng: RandomSource


def step_fish(
    fish: Fish,
    school: Sequence[Fish],
    pointer: Optional[Vector2],
    context: StepContext,
) -> Fish:
    """Advance one fish by a single tick and return its new record.

    ``school`` is read as-is, so entries already replaced earlier in the same
    tick are seen in their updated state.
    """
    behavior = context.behavior
    x, y = fish.position.x, fish.position.y
    vx, vy = fish.velocity.x, fish.velocity.y
    breaking_away = fish.breaking_away
    timer = fish.breakaway_timer

    if breaking_away:
        if timer % behavior.breakaway_turn_interval == 0:
            vx, vy = _breakaway_turn(vx, vy, context)
        timer -= 1
        if timer <= 0:
            breaking_away = False
    else:
        if behavior.flocking:
            vx, vy = _flock(fish, x, y, vx, vy, school, behavior)
        if pointer is not None:
            vx, vy = _pointer_attraction(x, y, vx, vy, pointer, behavior)
        if behavior.drift:
            vx, vy = _drift(vx, vy, context)
        if behavior.breakaway and context.rng.next_float() < behavior.breakaway_chance:
            breaking_away = True
            timer = behavior.breakaway_duration
            logger.debug("fish at (%.1f, %.1f) breaking away for %d ticks", x, y, timer)

    vx, vy = _clamp_length_xy_f(vx, vy, context.fish.max_speed)
    x = _wrap_teleport(x + vx, context.width)
    y = _wrap_teleport(y + vy, context.height)

    return Fish(
        position=Vector2(x, y),
        velocity=Vector2(vx, vy),
        size=fish.size,
        color=fish.color,
        breaking_away=breaking_away,
        breakaway_timer=timer,
    )


def _breakaway_turn(vx: float, vy: float, context: StepContext) -> tuple[float, float]:
    behavior = context.behavior
    rng = context.rng
    current_speed = math.sqrt(vx * vx + vy * vy)
    if current_speed < behavior.min_turn_speed:
        base_speed = context.fish.base_speed
        return (rng.next_float() - 0.5) * base_speed * 2, (rng.next_float() - 0.5) * base_speed * 2
    return _rotate_xy(vx, vy, rng.next_sign() * behavior.breakaway_turn_angle)


def _flock(
    fish: Fish,
    x: float,
    y: float,
    vx: float,
    vy: float,
    school: Sequence[Fish],
    behavior: BehaviorConfig,
) -> tuple[float, float]:
    radius = behavior.perception_radius
    cohesion_force = behavior.cohesion_force
    leader_pull = cohesion_force * behavior.breakaway_attraction_multiplier

    align_x = align_y = 0.0
    center_x = center_y = 0.0
    sep_x = sep_y = 0.0
    total = 0

    for other in school:
        if other is fish:
            continue
        ox, oy = other.position.x, other.position.y
        dist = math.sqrt((x - ox) ** 2 + (y - oy) ** 2)
        if dist >= radius:
            continue
        if other.breaking_away:
            # Leaders pull immediately and stay out of the averages.
            vx += (ox - x) * leader_pull
            vy += (oy - y) * leader_pull
            continue
        align_x += other.velocity.x
        align_y += other.velocity.y
        center_x += ox
        center_y += oy
        divisor = dist * dist or 1.0
        sep_x += (x - ox) / divisor
        sep_y += (y - oy) / divisor
        total += 1

    if total > 0:
        align_x /= total
        align_y /= total
        vx += (align_x - vx) * behavior.alignment_force
        vy += (align_y - vy) * behavior.alignment_force

        center_x /= total
        center_y /= total
        vx += (center_x - x) * cohesion_force
        vy += (center_y - y) * cohesion_force

        vx += sep_x * behavior.separation_force
        vy += sep_y * behavior.separation_force
    return vx, vy


def _pointer_attraction(
    x: float,
    y: float,
    vx: float,
    vy: float,
    pointer: Vector2,
    behavior: BehaviorConfig,
) -> tuple[float, float]:
    dx = pointer.x - x
    dy = pointer.y - y
    distance = math.sqrt(dx * dx + dy * dy)
    reach = behavior.interaction_distance
    if distance <= 0.0 or distance >= reach:
        return vx, vy
    force = ((reach - distance) / reach) ** 2
    scale = force * behavior.pointer_gain * behavior.pointer_influence / distance
    return vx + dx * scale, vy + dy * scale


def _drift(vx: float, vy: float, context: StepContext) -> tuple[float, float]:
    behavior = context.behavior
    rng = context.rng
    if rng.next_float() >= behavior.drift_chance:
        return vx, vy
    if math.sqrt(vx * vx + vy * vy) <= behavior.min_turn_speed:
        return vx, vy
    offset = (rng.next_float() * 2 - 1) * behavior.drift_angle
    return _rotate_xy(vx, vy, offset)
