from __future__ import annotations

import math
from typing import List, Sequence, Tuple

import pygame

from ..config import Color
from ..sim.core.school import School

Point = Tuple[float, float]

BACKGROUND = (10, 25, 47)
_CURVE_SEGMENTS = 8

# Silhouette in units of fish size, nose along +x.
_TOP_CURVE = ((0.8, 0.0), (0.4, 0.8), (-0.5, 0.5), (-2.0, 0.2))
_TAIL = ((-2.5, 0.4), (-2.8, 0.0), (-2.5, -0.4), (-2.0, -0.2))
_BOTTOM_CURVE = ((-2.0, -0.2), (-0.5, -0.5), (0.4, -0.8), (0.8, 0.0))


def _bezier(points: Sequence[Point], segments: int) -> List[Point]:
    (x0, y0), (x1, y1), (x2, y2), (x3, y3) = points
    samples = []
    for step in range(1, segments + 1):
        t = step / segments
        u = 1.0 - t
        a = u * u * u
        b = 3 * u * u * t
        c = 3 * u * t * t
        d = t * t * t
        samples.append((a * x0 + b * x1 + c * x2 + d * x3, a * y0 + b * y1 + c * y2 + d * y3))
    return samples


def _local_outline(segments: int) -> List[Point]:
    outline = [_TOP_CURVE[0]]
    outline.extend(_bezier(_TOP_CURVE, segments))
    outline.extend(_TAIL)
    # The bottom curve closes back on the nose, which is already the first point.
    outline.extend(_bezier(_BOTTOM_CURVE, segments)[:-1])
    return outline


_UNIT_OUTLINE = _local_outline(_CURVE_SEGMENTS)


def fish_outline(x: float, y: float, heading: float, size: float) -> List[Point]:
    cos_h = math.cos(heading)
    sin_h = math.sin(heading)
    points = []
    for lx, ly in _UNIT_OUTLINE:
        px = lx * size
        py = ly * size
        points.append((x + px * cos_h - py * sin_h, y + px * sin_h + py * cos_h))
    return points


def draw_fish(surface: pygame.Surface, x: float, y: float, heading: float, size: float, color: Color) -> None:
    points = fish_outline(x, y, heading, size)
    if color[3] >= 255:
        pygame.draw.polygon(surface, color, points)
        return
    # Alpha is only honoured when blitting from a per-pixel-alpha surface.
    xs = [point[0] for point in points]
    ys = [point[1] for point in points]
    left = math.floor(min(xs))
    top = math.floor(min(ys))
    width = math.ceil(max(xs)) - left + 1
    height = math.ceil(max(ys)) - top + 1
    layer = pygame.Surface((width, height), pygame.SRCALPHA)
    pygame.draw.polygon(layer, color, [(px - left, py - top) for px, py in points])
    surface.blit(layer, (left, top))


def draw_school(surface: pygame.Surface, school: School) -> None:
    for x, y, heading, size, color in school.frames():
        draw_fish(surface, x, y, heading, size, color)
