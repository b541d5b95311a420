from __future__ import annotations

import logging
from time import perf_counter
from typing import Any, Dict, Iterator, List, Optional, Tuple

from pygame.math import Vector2

from ...config import Color, SimulationConfig
from ...rng import RandomSource
from ..systems import metrics as metrics_system
from ..systems.steering import StepContext, step_fish
from ..types.metrics import TickMetrics
from ..types.snapshot import Snapshot, SnapshotMetadata, SnapshotViewport
from .fish import Fish, spawn_fish

logger = logging.getLogger(__name__)

Frame = Tuple[float, float, float, float, Color]


class School:
    """The live collection of fish plus the viewport they swim in.

    Fish are updated one after another in list order and replaced in place,
    so a fish later in the list sees its predecessors' new state for the
    current tick and its successors' old state. Population follows the
    viewport: ``resize`` appends fresh fish or truncates the tail.
    """

    def __init__(self, config: SimulationConfig, rng: RandomSource | None = None, track_neighbors: bool = False):
        self._config = config
        self._rng = rng if rng is not None else RandomSource(config.seed)
        self._track_neighbors = track_neighbors
        self._fish: List[Fish] = []
        self._width = float(config.width)
        self._height = float(config.height)
        self._metrics: TickMetrics | None = None
        self.resize(config.width, config.height)

    @property
    def fish(self) -> List[Fish]:
        return self._fish

    @property
    def width(self) -> float:
        return self._width

    @property
    def height(self) -> float:
        return self._height

    @property
    def metrics(self) -> TickMetrics | None:
        return self._metrics

    def target_population(self, width: float, height: float) -> int:
        return self._config.population.target(width, height)

    def resize(self, width: float, height: float) -> int:
        """Adopt a new viewport and grow or truncate the school to match it.

        Returns the change in population.
        """
        self._width = float(width)
        self._height = float(height)
        target = self.target_population(self._width, self._height)
        current = len(self._fish)
        if target > current:
            for _ in range(target - current):
                self._fish.append(spawn_fish(self._rng, self._width, self._height, self._config.fish))
        elif target < current:
            del self._fish[target:]
        if target != current:
            logger.debug("viewport %.0fx%.0f: population %d -> %d", self._width, self._height, current, target)
        return target - current

    def reset(self) -> None:
        self._fish.clear()
        self._rng.reset()
        self._metrics = None
        self.resize(self._width, self._height)

    def context(self) -> StepContext:
        return StepContext(
            fish=self._config.fish,
            behavior=self._config.behavior,
            width=self._width,
            height=self._height,
            rng=self._rng,
        )

    def tick(self, tick: int, pointer: Optional[Vector2 | Tuple[float, float]] = None) -> TickMetrics:
        start = perf_counter()
        if pointer is not None:
            pointer = Vector2(pointer)
        context = self.context()
        school = self._fish
        for index in range(len(school)):
            school[index] = step_fish(school[index], school, pointer, context)

        neighbors_seen = 0
        if self._track_neighbors:
            neighbors_seen = metrics_system.count_neighbors(school, self._config.behavior.perception_radius)
        elapsed_ms = (perf_counter() - start) * 1000.0
        metrics = metrics_system.create_metrics(tick, school, neighbors_seen, elapsed_ms)
        self._metrics = metrics
        return metrics

    def frames(self) -> Iterator[Frame]:
        for fish in self._fish:
            yield fish.position.x, fish.position.y, fish.heading, fish.size, fish.color

    def snapshot(self, tick: int) -> Snapshot:
        metrics = self._metrics
        if metrics is None:
            metrics = metrics_system.create_metrics(tick, self._fish, 0, 0.0)
        metadata = SnapshotMetadata(
            frame_rate=self._config.frame_rate,
            seed=self._config.seed,
            preset=self._config.preset,
            config_version=self._config.config_version,
        )
        return Snapshot(
            tick=tick,
            metrics=metrics,
            fish=[self._fish_snapshot(fish) for fish in self._fish],
            viewport=SnapshotViewport(width=self._width, height=self._height),
            metadata=metadata,
        )

    @staticmethod
    def _fish_snapshot(fish: Fish) -> Dict[str, Any]:
        return {
            "x": fish.position.x,
            "y": fish.position.y,
            "vx": fish.velocity.x,
            "vy": fish.velocity.y,
            "heading": fish.heading,
            "speed": fish.speed,
            "size": fish.size,
            "color": list(fish.color),
            "breaking_away": fish.breaking_away,
            "breakaway_timer": fish.breakaway_timer,
        }
