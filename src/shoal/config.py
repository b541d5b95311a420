from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml

Color = Tuple[int, int, int, int]

DEFAULT_PALETTE: List[Color] = [
    (244, 208, 63, 153),
    (208, 225, 212, 102),
    (100, 255, 218, 76),
]


@dataclass
class FishConfig:
    base_speed: float = 0.5
    max_speed: float = 2.5
    size_min: float = 2.0
    size_max: float = 5.0
    palette: List[Color] = field(default_factory=lambda: list(DEFAULT_PALETTE))


@dataclass
class BehaviorConfig:
    flocking: bool = True
    drift: bool = True
    breakaway: bool = True
    perception_radius: float = 40.0
    separation_force: float = 0.75
    alignment_force: float = 0.1
    cohesion_force: float = 0.02
    # Extra cohesion pull toward a neighbour that is breaking away
    breakaway_attraction_multiplier: float = 5.0
    interaction_distance: float = 600.0
    pointer_gain: float = 1.2
    pointer_influence: float = 0.1
    drift_chance: float = 0.5
    drift_angle: float = math.pi / 12
    breakaway_chance: float = 0.000001
    breakaway_duration: int = 60
    breakaway_turn_interval: int = 15
    breakaway_turn_angle: float = math.pi / 3
    min_turn_speed: float = 0.1


@dataclass
class PopulationConfig:
    density: float = 0.00025
    fixed_count: Optional[int] = None

    def target(self, width: float, height: float) -> int:
        if self.fixed_count is not None:
            return max(0, int(self.fixed_count))
        return max(0, int(math.floor(width * height * self.density)))


# Lighter variants switch off leaf behaviours on the same agent.
PRESETS: Dict[str, Dict[str, Any]] = {
    "full": {},
    "schooling": {"drift": False, "breakaway": False},
    "attraction": {"flocking": False, "drift": False, "breakaway": False, "pointer_influence": 0.05},
}


@dataclass
class SimulationConfig:
    width: float = 800.0
    height: float = 600.0
    seed: Optional[int] = None
    frame_rate: float = 60.0
    preset: str = "full"
    config_version: str = "v1"
    fish: FishConfig = field(default_factory=FishConfig)
    behavior: BehaviorConfig = field(default_factory=BehaviorConfig)
    population: PopulationConfig = field(default_factory=PopulationConfig)

    @staticmethod
    def from_yaml(path: Path) -> "SimulationConfig":
        data = yaml.safe_load(Path(path).read_text()) or {}
        return load_config(data)


def apply_preset(config: SimulationConfig, name: str) -> SimulationConfig:
    if name not in PRESETS:
        raise ValueError(f"Unknown preset: {name}")
    behavior = replace(config.behavior, **PRESETS[name])
    return replace(config, preset=name, behavior=behavior)


def load_config(raw: dict) -> SimulationConfig:
    preset = raw.get("preset", "full")
    if preset not in PRESETS:
        raise ValueError(f"Unknown preset: {preset}")

    fish_raw = dict(raw.get("fish", {}))
    if "palette" in fish_raw:
        fish_raw["palette"] = [_color(entry) for entry in fish_raw["palette"]]
        if not fish_raw["palette"]:
            raise ValueError("fish.palette must not be empty")
    fish = FishConfig(**fish_raw)

    # Explicit behaviour values override whatever the preset switches.
    behavior_values = {**PRESETS[preset], **raw.get("behavior", {})}
    behavior = BehaviorConfig(**behavior_values)
    population = PopulationConfig(**raw.get("population", {}))
    sim_values = {k: v for k, v in raw.items() if k not in {"fish", "behavior", "population"}}
    return SimulationConfig(fish=fish, behavior=behavior, population=population, **sim_values)


def _color(value: Any) -> Color:
    if not isinstance(value, (tuple, list)) or len(value) not in (3, 4):
        raise ValueError(f"Palette entries need 3 or 4 channels, got {value!r}")
    channels = [int(channel) for channel in value]
    if len(channels) == 3:
        channels.append(255)
    if any(channel < 0 or channel > 255 for channel in channels):
        raise ValueError(f"Palette channels must be within 0..255, got {value!r}")
    return (channels[0], channels[1], channels[2], channels[3])
