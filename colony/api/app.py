"""Colony HTTP API — app factory over a running simulation.

``create_app`` wires the room routes to an engine that main.py already
started. Handlers never step the simulation; they read room state and
queue transfer requests that the planner picks up on its next tick.
"""

from __future__ import annotations

import time
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from redis.asyncio import Redis

from colony import __version__
from colony.bus.event_bus import EventBus
from colony.core.engine import CoreEngine
from colony.core.reactions import ReactionGraph
from colony.core.room import Room


class AppState:
    """What the room and reaction routes read, stored on ``app.state``.

    Attributes:
        engine: Simulation whose rooms, tick counter and run flag are served.
        redis: Snapshot and state store; None when the colony runs without one.
        event_bus: Bus the engine publishes task and facility events on.
        graph: Reaction table answering ``/reactions`` lookups.
        started_at: Wall-clock time the API came up.
    """

    def __init__(
        self,
        engine: CoreEngine,
        redis: Optional[Redis],
        started_at: float,
        event_bus: Optional[EventBus] = None,
        graph: Optional[ReactionGraph] = None,
    ) -> None:
        self.engine = engine
        self.redis = redis
        self.started_at = started_at
        self.event_bus = event_bus
        self.graph = graph or ReactionGraph()

    def room(self, name: str) -> Optional[Room]:
        return self.engine.rooms.get(name)

    def uptime(self) -> float:
        return time.time() - self.started_at


def create_app(
    engine: CoreEngine,
    redis: Optional[Redis] = None,
    event_bus: Optional[EventBus] = None,
) -> FastAPI:
    """Build the API around an engine that is already ticking.

    Args:
        engine: Colony engine shared with the tick loop.
        redis: Store the engine persists rooms to, if connected.
        event_bus: Bus the engine publishes on, if connected.

    Returns:
        The app, with room routes mounted under ``/api``.
    """
    app = FastAPI(
        title="Colony",
        description="Agent logistics and compound production for a tick-based colony",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.app_state = AppState(engine=engine, redis=redis, started_at=time.time(), event_bus=event_bus)

    from colony.api.routes_rooms import router as rooms_router

    app.include_router(rooms_router, prefix="/api", tags=["rooms"])

    @app.get("/", tags=["health"])
    async def root() -> dict[str, str]:
        return {"status": "ok", "service": "Colony API", "version": __version__}

    @app.get("/health", tags=["health"])
    async def health() -> dict[str, str]:
        """Liveness of the tick loop, for container health checks."""
        state: AppState = app.state.app_state
        return {
            "status": "healthy",
            "engine_running": str(state.engine.running),
            "tick": str(state.engine.tick_counter),
            "uptime_seconds": f"{state.uptime():.1f}",
        }

    return app
