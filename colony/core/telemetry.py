"""Telemetry system for collecting and storing room state snapshots.

This module provides snapshot collection logic that captures the logistics
and production state of a room for monitoring and analysis.
"""

from __future__ import annotations

import json
import time
from dataclasses import asdict, dataclass
from typing import TYPE_CHECKING, Any, Optional

import structlog
from redis.asyncio import Redis

if TYPE_CHECKING:
    from colony.core.engine import CoreEngine
    from colony.core.room import Room

logger = structlog.get_logger()


@dataclass
class RoomSnapshot:
    """Snapshot of one room at a specific tick.

    Attributes:
        tick: Simulation tick number when snapshot was taken
        room: Room name
        agent_count: Number of agents in the room
        agents_working: Agents currently in delivering mode
        stock: Storage contents by compound
        task: Active logistics task, if any
        queued_requests: Number of transfer requests waiting for publication
        facility: Production facility status, if the room has one
        timestamp: Unix timestamp when snapshot was collected
    """

    tick: int
    room: str
    agent_count: int
    agents_working: int
    stock: dict[str, int]
    task: Optional[dict[str, Any]]
    queued_requests: int
    facility: Optional[dict[str, Any]]
    timestamp: float


def collect_snapshot(engine: CoreEngine, room: Room) -> RoomSnapshot:
    """Collect a snapshot of the room's current state.

    Args:
        engine: The CoreEngine instance, for the tick counter
        room: Room to collect data from

    Returns:
        RoomSnapshot with current room metrics
    """
    agents = list(room.agents.values())
    return RoomSnapshot(
        tick=engine.tick_counter,
        room=room.name,
        agent_count=len(agents),
        agents_working=sum(1 for a in agents if a.memory.working),
        stock=dict(room.stock),
        task=room.task.to_dict() if room.task else None,
        queued_requests=len(room.requests),
        facility=room.facility.status() if room.facility else None,
        timestamp=time.time(),
    )


async def save_snapshot_to_redis(
    redis: Redis,
    snapshot: RoomSnapshot,
    ttl_seconds: int = 300,
) -> str:
    """Save a snapshot to Redis with TTL.

    Args:
        redis: Redis connection
        snapshot: RoomSnapshot to save
        ttl_seconds: Time-to-live in seconds (default: 5 minutes)

    Returns:
        Redis key where snapshot was saved (e.g., "colony:snapshot:W1N1:900")
    """
    key = f"colony:snapshot:{snapshot.room}:{snapshot.tick}"
    payload = json.dumps(asdict(snapshot), default=str)

    await redis.setex(key, ttl_seconds, payload)

    logger.debug(
        "snapshot_saved",
        key=key,
        tick=snapshot.tick,
        room=snapshot.room,
        ttl_seconds=ttl_seconds,
    )

    return key
