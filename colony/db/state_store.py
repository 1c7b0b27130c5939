"""Redis state store — persists room aggregates between runs.

Key layout:
    colony:rooms         SET of room names that have saved state
    colony:room:{name}   STRING with the room's JSON state
    colony:tick          STRING with the last saved tick
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any, Mapping, Optional

import structlog

if TYPE_CHECKING:
    from redis.asyncio import Redis

    from colony.core.room import Room

logger = structlog.get_logger()

ROOMS_KEY = "colony:rooms"
TICK_KEY = "colony:tick"


def room_key(name: str) -> str:
    return f"colony:room:{name}"


async def save_state(redis: Redis, rooms: Mapping[str, Room], tick: int) -> None:
    """Write every room's state and the current tick.

    Args:
        redis: Async Redis connection.
        rooms: Room aggregates by name.
        tick: Current simulation tick.
    """
    for name, room in rooms.items():
        await redis.set(room_key(name), json.dumps(room.to_dict()))
        await redis.sadd(ROOMS_KEY, name)
    await redis.set(TICK_KEY, str(tick))

    logger.debug("state_saved", tick=tick, rooms=len(rooms))


async def load_room_data(redis: Redis, name: str) -> Optional[dict[str, Any]]:
    """Return the saved state of one room, or None if there is none."""
    raw = await redis.get(room_key(name))
    if raw is None:
        return None
    return json.loads(raw)


async def load_tick(redis: Redis) -> Optional[int]:
    raw = await redis.get(TICK_KEY)
    return int(raw) if raw is not None else None


async def saved_rooms(redis: Redis) -> set[str]:
    return set(await redis.smembers(ROOMS_KEY))
