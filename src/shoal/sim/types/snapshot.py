from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List

from .metrics import TickMetrics


@dataclass(slots=True)
class Snapshot:
    tick: int
    metrics: TickMetrics
    fish: List[Dict[str, Any]]
    viewport: "SnapshotViewport"
    metadata: "SnapshotMetadata"


@dataclass(slots=True)
class SnapshotViewport:
    width: float
    height: float


@dataclass(slots=True)
class SnapshotMetadata:
    frame_rate: float
    seed: int | None
    preset: str
    config_version: str
