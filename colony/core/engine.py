"""Core simulation engine: the tick loop across rooms.

This module provides the CoreEngine class which steps every room once per
tick (agents, production facility, logistics planner), flushes the tick's
events to the bus and periodically persists state and telemetry.
"""

from __future__ import annotations

import asyncio
from typing import Any, Optional

import structlog
from redis.asyncio import Redis

from colony.bus.channels import Channels
from colony.bus.event_bus import EventBus
from colony.bus.events import TelemetryEvent
from colony.config import Settings
from colony.core.behavior import BehaviorEngine
from colony.core.errors import InvariantViolation
from colony.core.host import Host, LocalHost
from colony.core.logistics import LogisticsPlanner
from colony.core.reactions import ReactionGraph
from colony.core.reserve import ReserveGate
from colony.core.room import Room, TickContext
from colony.core.telemetry import collect_snapshot, save_snapshot_to_redis
from colony.db.state_store import save_state

logger = structlog.get_logger()


class CoreEngine:
    """Runs the colony tick loop.

    Rooms are stepped one after another and never share mutable state, so
    a failure inside one agent, facility or room does not leak into the
    others. ``InvariantViolation`` is the exception: it signals corrupted
    shared state and is re-raised.
    """

    def __init__(
        self,
        rooms: dict[str, Room],
        settings: Settings,
        host: Optional[Host] = None,
        redis: Optional[Redis] = None,
        event_bus: Optional[EventBus] = None,
        planner: Optional[LogisticsPlanner] = None,
        behavior: Optional[BehaviorEngine] = None,
    ) -> None:
        """Initialize the core engine.

        Args:
            rooms: Room aggregates by name.
            settings: Application settings.
            host: Host primitives; a LocalHost over ``rooms`` if omitted.
            redis: Redis connection for state and telemetry snapshots.
            event_bus: Bus the tick's events are flushed to.
            planner: Logistics planner; built from settings if omitted.
            behavior: Agent behavior engine.
        """
        self.rooms = rooms
        self.settings = settings
        self.host = host if host is not None else LocalHost(rooms)
        self.redis = redis
        self.event_bus = event_bus
        self.planner = planner or LogisticsPlanner(
            gate=ReserveGate(settings.reserve_thresholds),
            graph=ReactionGraph(),
            stale_task_ticks=settings.stale_task_ticks,
        )
        self.behavior = behavior or BehaviorEngine()

        self.tick_counter = 0
        self.running = False

    async def run(self) -> None:
        """Main loop: one ``step`` per tick until stopped.

        Each iteration steps all rooms, publishes the collected events,
        logs statistics every ``stats_interval`` ticks and persists state
        plus telemetry every ``snapshot_interval_ticks`` ticks.
        """
        self.running = True
        logger.info("engine_starting", tick_rate_ms=self.settings.tick_rate_ms, rooms=list(self.rooms))

        while self.running:
            tick_start = asyncio.get_event_loop().time()

            try:
                events = self.step()

                if self.event_bus is not None and events:
                    await self.event_bus.publish_many(events)

                if self.tick_counter % self.settings.stats_interval == 0:
                    self._log_statistics()

                if self.tick_counter % self.settings.snapshot_interval_ticks == 0:
                    await self._persist()

            except InvariantViolation:
                self.running = False
                raise
            except Exception as exc:
                # Never let the tick loop crash
                logger.error(
                    "tick_error",
                    tick=self.tick_counter,
                    error=str(exc),
                    error_type=type(exc).__name__,
                )

            tick_duration = asyncio.get_event_loop().time() - tick_start
            budget = self.settings.tick_rate_ms / 1000.0
            if tick_duration > budget:
                logger.warning(
                    "tick_overrun",
                    tick=self.tick_counter,
                    duration_ms=tick_duration * 1000,
                    budget_ms=self.settings.tick_rate_ms,
                )

            await asyncio.sleep(max(0.0, budget - tick_duration))

    def step(self) -> list[tuple[str, Any]]:
        """Advance every room by one tick.

        Returns:
            ``(channel, event)`` pairs emitted during the tick.
        """
        self.tick_counter += 1
        outbox: list[tuple[str, Any]] = []
        for room in self.rooms.values():
            ctx = TickContext(tick=self.tick_counter, room=room, host=self.host, outbox=outbox)
            self._step_room(ctx)
        return outbox

    def _step_room(self, ctx: TickContext) -> None:
        """Agents first, then the facility, then the planner.

        The planner runs last so it sees this tick's deliveries and the
        facility's refreshed requests before publishing the next task.
        """
        room = ctx.room
        self._reap_agents(room)

        for agent in list(room.agents.values()):
            try:
                self.behavior.run(agent, ctx)
            except InvariantViolation:
                raise
            except Exception as exc:
                logger.error(
                    "agent_update_error",
                    room=room.name,
                    agent=agent.name,
                    role=agent.memory.role,
                    error=str(exc),
                    error_type=type(exc).__name__,
                )

        if room.facility is not None:
            try:
                room.facility.step(ctx)
            except InvariantViolation:
                raise
            except Exception as exc:
                logger.error(
                    "facility_update_error",
                    room=room.name,
                    structure_id=room.facility.structure_id,
                    error=str(exc),
                    error_type=type(exc).__name__,
                )

        try:
            self.planner.step(ctx)
        except InvariantViolation:
            raise
        except Exception as exc:
            logger.error(
                "planner_update_error",
                room=room.name,
                error=str(exc),
                error_type=type(exc).__name__,
            )

    def _reap_agents(self, room: Room) -> None:
        """Drop agents that no longer exist, memory included."""
        gone = [name for name, agent in room.agents.items() if not agent.alive]
        for name in gone:
            del room.agents[name]
            logger.info("agent_removed", room=room.name, agent=name, tick=self.tick_counter)

    def _log_statistics(self) -> None:
        for room in self.rooms.values():
            task = room.task
            facility = room.facility
            logger.info(
                "colony_stats",
                tick=self.tick_counter,
                room=room.name,
                agents=len(room.agents),
                task=f"{task.resource_type} {task.completed_amount}/{task.amount}" if task else None,
                queued_requests=len(room.requests),
                facility_state=facility.state.value if facility else None,
                facility_target=facility.target if facility else None,
            )

    async def _persist(self) -> None:
        """Save room state and telemetry snapshots to Redis."""
        if self.redis is None:
            return

        await save_state(self.redis, self.rooms, self.tick_counter)

        keys: list[str] = []
        for room in self.rooms.values():
            snapshot = collect_snapshot(self, room)
            keys.append(
                await save_snapshot_to_redis(self.redis, snapshot, ttl_seconds=self.settings.snapshot_ttl_sec)
            )

        if self.event_bus is not None:
            await self.event_bus.publish(Channels.TELEMETRY, TelemetryEvent(tick=self.tick_counter, snapshot_keys=keys))

        logger.info("state_persisted", tick=self.tick_counter, rooms=len(self.rooms))

    def stop(self) -> None:
        """Stop the loop; it exits on the next iteration."""
        logger.info("engine_stopping", tick=self.tick_counter)
        self.running = False
