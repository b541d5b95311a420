from __future__ import annotations

import argparse
import asyncio
import json
import logging
from collections import deque
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Set

import uvicorn
from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.responses import JSONResponse
from pygame.math import Vector2

from ..config import SimulationConfig, apply_preset
from ..sim.core.school import School

logger = logging.getLogger(__name__)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


@dataclass(frozen=True)
class QueuedSnapshot:
    tick: int
    payload: str


class SimulationController:
    def __init__(self, config: SimulationConfig, broadcast_interval: int = 1):
        self.config = config
        self.school = School(config)
        self.broadcast_interval = max(1, broadcast_interval)
        self.running = False
        self.tick = 0
        self.speed_multiplier = 1.0
        self.pointer: Optional[Vector2] = None
        self.clients: Set[WebSocket] = set()
        self._client_last_sent: Dict[WebSocket, int] = {}
        self._snapshot_queue: deque[QueuedSnapshot] = deque()
        self._lock = asyncio.Lock()
        self._queue_lock = asyncio.Lock()
        self._broadcast_task: asyncio.Task | None = None

    async def start(self) -> None:
        if self._broadcast_task is None:
            self._broadcast_task = asyncio.create_task(self._loop())
        self.running = True

    async def stop(self) -> None:
        self.running = False

    async def reset(self) -> None:
        async with self._lock:
            self.school.reset()
            self.tick = 0
        async with self._queue_lock:
            self._snapshot_queue.clear()
        for client in self._client_last_sent:
            self._client_last_sent[client] = -1
        await self._broadcast_snapshot()

    async def set_pointer(self, x: Optional[float], y: Optional[float]) -> None:
        async with self._lock:
            self.pointer = None if x is None or y is None else Vector2(float(x), float(y))

    async def resize(self, width: float, height: float) -> int:
        if width <= 0 or height <= 0:
            raise ValueError(f"Viewport must be positive, got {width}x{height}")
        async with self._lock:
            return self.school.resize(width, height)

    async def step(self) -> None:
        async with self._lock:
            self.school.tick(self.tick, self.pointer)
            self.tick += 1

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(1.0 / (self.config.frame_rate * self.speed_multiplier))
            if not self.running:
                continue
            await self.step()
            if self.tick % self.broadcast_interval == 0:
                await self._broadcast_snapshot()

    async def acknowledge(self, tick: int) -> None:
        async with self._queue_lock:
            while self._snapshot_queue and self._snapshot_queue[0].tick <= tick:
                self._snapshot_queue.popleft()

    async def handle_message(self, message: str) -> None:
        try:
            payload = json.loads(message)
        except json.JSONDecodeError:
            return
        if not isinstance(payload, dict):
            return
        kind = payload.get("type")
        if kind == "ack":
            tick = payload.get("tick")
            if isinstance(tick, int):
                await self.acknowledge(tick)
        elif kind == "pointer":
            x = payload.get("x")
            y = payload.get("y")
            if x is None and y is None:
                await self.set_pointer(None, None)
            elif _is_number(x) and _is_number(y):
                await self.set_pointer(x, y)
        elif kind == "resize":
            width = payload.get("width")
            height = payload.get("height")
            if isinstance(width, (int, float)) and isinstance(height, (int, float)) and width > 0 and height > 0:
                await self.resize(width, height)

    def status(self) -> Dict[str, Any]:
        snapshot = self.school.snapshot(self.tick)
        return {
            "running": self.running,
            "tick": self.tick,
            "population": len(self.school.fish),
            "viewport": asdict(snapshot.viewport),
            "pointer": None if self.pointer is None else [self.pointer.x, self.pointer.y],
            "metrics": asdict(snapshot.metrics),
        }

    def _serialize_snapshot(self) -> QueuedSnapshot:
        snapshot = self.school.snapshot(self.tick)
        payload = {
            "type": "snapshot",
            "tick": snapshot.tick,
            "payload": {
                "tick": snapshot.tick,
                "metrics": asdict(snapshot.metrics),
                "fish": snapshot.fish,
                "viewport": asdict(snapshot.viewport),
                "metadata": asdict(snapshot.metadata),
            },
        }
        return QueuedSnapshot(tick=snapshot.tick, payload=json.dumps(payload))

    async def _send_pending_snapshots(self, client: WebSocket) -> None:
        last_sent = self._client_last_sent.get(client, -1)
        async with self._queue_lock:
            pending = [item for item in self._snapshot_queue if item.tick > last_sent]
        for item in pending:
            await client.send_text(item.payload)
            last_sent = item.tick
        self._client_last_sent[client] = last_sent

    async def _broadcast_snapshot(self) -> None:
        queued = self._serialize_snapshot()
        async with self._queue_lock:
            self._snapshot_queue.append(queued)
        stale: Set[WebSocket] = set()
        for client in self.clients:
            try:
                await self._send_pending_snapshots(client)
            except (WebSocketDisconnect, RuntimeError) as exc:
                logger.debug("dropping client after failed send: %r", exc)
                stale.add(client)
        for client in stale:
            self.clients.discard(client)
            self._client_last_sent.pop(client, None)


app = FastAPI(title="Shoal")
controller = SimulationController(SimulationConfig())


@app.on_event("startup")
async def _startup() -> None:
    await controller.start()


@app.get("/api/status")
async def status() -> JSONResponse:
    return JSONResponse(controller.status())


@app.post("/api/control/start")
async def start_simulation() -> JSONResponse:
    controller.running = True
    return JSONResponse({"running": True})


@app.post("/api/control/stop")
async def stop_simulation() -> JSONResponse:
    controller.running = False
    return JSONResponse({"running": False})


@app.post("/api/control/reset")
async def reset_simulation() -> JSONResponse:
    await controller.reset()
    return JSONResponse({"running": controller.running, "tick": controller.tick})


@app.post("/api/control/speed")
async def set_speed(payload: dict) -> JSONResponse:
    speed = float(payload.get("multiplier", 1.0))
    controller.speed_multiplier = max(0.1, min(5.0, speed))
    return JSONResponse({"multiplier": controller.speed_multiplier})


@app.post("/api/viewport")
async def set_viewport(payload: dict) -> JSONResponse:
    try:
        width = float(payload["width"])
        height = float(payload["height"])
        delta = await controller.resize(width, height)
    except (KeyError, TypeError, ValueError) as exc:
        return JSONResponse({"error": str(exc)}, status_code=400)
    return JSONResponse({"width": width, "height": height, "population": len(controller.school.fish), "delta": delta})


@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket) -> None:
    await websocket.accept()
    controller.clients.add(websocket)
    controller._client_last_sent[websocket] = -1
    logger.info("client connected (%d total)", len(controller.clients))
    try:
        await controller._send_pending_snapshots(websocket)
        while True:
            message = await websocket.receive_text()
            await controller.handle_message(message)
    except WebSocketDisconnect:
        pass
    finally:
        controller.clients.discard(websocket)
        controller._client_last_sent.pop(websocket, None)
        await controller.set_pointer(None, None)
        logger.info("client disconnected (%d left)", len(controller.clients))


__all__ = ["app", "controller", "main"]


def main() -> None:
    global controller
    parser = argparse.ArgumentParser(description="Serve the shoal simulation over HTTP and WebSocket")
    parser.add_argument("--config", type=Path, default=None, help="YAML configuration file")
    parser.add_argument("--preset", choices=["full", "schooling", "attraction"], default=None)
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8000)
    parser.add_argument("--broadcast-interval", type=int, default=1)
    args = parser.parse_args()
    logging.basicConfig(level=logging.INFO)

    config = SimulationConfig.from_yaml(args.config) if args.config else SimulationConfig()
    if args.preset:
        config = apply_preset(config, args.preset)
    controller = SimulationController(config, broadcast_interval=args.broadcast_interval)
    uvicorn.run(app, host=args.host, port=args.port)


if __name__ == "__main__":
    main()
