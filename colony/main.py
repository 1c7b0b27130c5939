"""Colony entry point — simulation runner with FastAPI server.

This module initializes all core components and starts both:
- The simulation loop (CoreEngine)
- The FastAPI REST API server (uvicorn)

Can be run directly via `python -m colony.main` or through Docker.
"""

from __future__ import annotations

import asyncio
import signal
from typing import Optional

import structlog
import uvicorn
from redis.asyncio import Redis

from colony import __version__
from colony.api.app import create_app
from colony.bus import close_redis, get_redis
from colony.bus.event_bus import EventBus
from colony.config import Settings
from colony.core.engine import CoreEngine
from colony.core.layout import build_colony
from colony.db.restore import restore_from_store

# Configure structured logging
structlog.configure(
    processors=[
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.dev.ConsoleRenderer(),
    ],
    wrapper_class=structlog.make_filtering_bound_logger(min_level="info"),
    context_class=dict,
    logger_factory=structlog.PrintLoggerFactory(),
    cache_logger_on_first_use=False,
)

logger = structlog.get_logger()


class SimulationRunner:
    """Manages simulation lifecycle and graceful shutdown."""

    def __init__(self) -> None:
        self.engine: Optional[CoreEngine] = None
        self.uvicorn_server: Optional[uvicorn.Server] = None
        self.shutdown_event = asyncio.Event()

    async def _connect_redis(self, settings: Settings) -> Optional[Redis]:
        try:
            redis = await get_redis(settings.redis_url)
            await redis.ping()
            logger.info("redis_connected", url=settings.redis_url)
            return redis
        except Exception as exc:
            logger.warning(
                "redis_connection_failed",
                url=settings.redis_url,
                error=str(exc),
                fallback="continuing_without_redis",
            )
            return None

    async def wait_for_stop(self, engine_task: asyncio.Task) -> None:
        """Block until a shutdown signal arrives or the engine task ends.

        An invariant violation stops the engine task, so the runner shuts
        down with it.
        """
        shutdown_task = asyncio.create_task(self.shutdown_event.wait())
        try:
            await asyncio.wait([engine_task, shutdown_task], return_when=asyncio.FIRST_COMPLETED)
        finally:
            if not shutdown_task.done():
                shutdown_task.cancel()
                await asyncio.gather(shutdown_task, return_exceptions=True)

    async def run(self) -> None:
        """Initialize and run the simulation with FastAPI server.

        Sets up settings, Redis, the event bus, the rooms and the engine,
        restores saved state, then runs the tick loop and the API server
        until a shutdown signal arrives.
        """
        logger.info("colony_starting", version=__version__)

        settings = Settings()
        logger.info("settings_loaded", tick_rate_ms=settings.tick_rate_ms, rooms=settings.room_names)

        redis = await self._connect_redis(settings)

        # Without Redis the tick loop still runs; events are only logged
        event_bus = EventBus(redis) if redis is not None else None

        rooms = build_colony(settings)
        logger.info("rooms_initialized", rooms=list(rooms))

        self.engine = CoreEngine(
            rooms=rooms,
            settings=settings,
            redis=redis,
            event_bus=event_bus,
        )
        logger.info("core_engine_initialized")

        if redis is not None:
            await restore_from_store(redis, self.engine)

        app = create_app(engine=self.engine, redis=redis, event_bus=event_bus)
        logger.info("fastapi_app_created")

        config = uvicorn.Config(
            app,
            host=settings.api_host,
            port=settings.api_port,
            log_level="info",
            access_log=False,
        )
        self.uvicorn_server = uvicorn.Server(config)
        logger.info("uvicorn_configured", host=settings.api_host, port=settings.api_port)

        def handle_shutdown(sig: int) -> None:
            logger.info("shutdown_signal_received", signal=sig)
            self.shutdown_event.set()

        loop = asyncio.get_event_loop()
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(sig, lambda s=sig: handle_shutdown(s))

        engine_task = asyncio.create_task(self.engine.run())
        server_task = asyncio.create_task(self.uvicorn_server.serve())

        logger.info(
            "services_running",
            simulation="running",
            api_server=f"http://{settings.api_host}:{settings.api_port}",
            docs=f"http://{settings.api_host}:{settings.api_port}/docs",
        )

        await self.wait_for_stop(engine_task)

        logger.info("initiating_graceful_shutdown")

        self.engine.stop()
        self.uvicorn_server.should_exit = True

        try:
            await asyncio.wait_for(
                asyncio.gather(engine_task, server_task, return_exceptions=True),
                timeout=5.0,
            )
        except asyncio.TimeoutError:
            logger.warning("shutdown_timeout")
            engine_task.cancel()
            server_task.cancel()

        if event_bus is not None:
            await event_bus.close()
        await close_redis()

        if engine_task.done() and not engine_task.cancelled() and engine_task.exception() is not None:
            raise engine_task.exception()  # type: ignore[misc]

        logger.info("all_services_stopped")


async def main() -> None:
    """Main entry point."""
    runner = SimulationRunner()
    try:
        await runner.run()
    except KeyboardInterrupt:
        logger.info("keyboard_interrupt_received")
    except Exception as exc:
        logger.error("fatal_error", error=str(exc), error_type=type(exc).__name__)
        raise


if __name__ == "__main__":
    asyncio.run(main())
