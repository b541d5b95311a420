from __future__ import annotations

import random
from typing import Optional, Sequence, TypeVar

T = TypeVar("T")


class RandomSource:
    """Uniform random values for spawning and per-tick probability rolls.

    ``seed=None`` draws from an unseeded generator, so every run differs.
    Every draw goes through ``next_float`` so a substitute only has to
    override that one method.
    """

    def __init__(self, seed: Optional[int] = None):
        self._seed = seed
        self._random = random.Random(seed)

    @property
    def seed(self) -> Optional[int]:
        return self._seed

    def reset(self) -> None:
        self._random.seed(self._seed)

    def next_float(self) -> float:
        return self._random.random()

    def next_range(self, low: float, high: float) -> float:
        return low + (high - low) * self.next_float()

    def next_int(self, max_value: int) -> int:
        return min(int(self.next_float() * max_value), max_value - 1)

    def next_sign(self) -> float:
        return -1.0 if self.next_float() < 0.5 else 1.0

    def choice(self, items: Sequence[T]) -> T:
        return items[self.next_int(len(items))]
