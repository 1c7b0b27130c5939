"""Restore simulation state from the last Redis save.

Called during startup before the tick loop begins.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from colony.db.state_store import load_room_data, load_tick, saved_rooms

if TYPE_CHECKING:
    from redis.asyncio import Redis

    from colony.core.engine import CoreEngine

logger = structlog.get_logger()


async def restore_from_store(redis: Redis, engine: CoreEngine) -> bool:
    """Restore the engine's tick counter and room state.

    Rooms are restored into the aggregates the engine was built with, so
    role configuration and facility plans come from the current settings
    while agents, stores, tasks and requests come from the save. Saved
    rooms that are no longer configured are skipped.

    Args:
        redis: Async Redis connection.
        engine: The CoreEngine to restore into.

    Returns:
        True if any state was restored, False if starting fresh.
    """
    tick = await load_tick(redis)
    if tick is None:
        logger.info("restore_no_state_found", action="fresh_start")
        return False

    engine.tick_counter = tick

    restored = 0
    for name in sorted(await saved_rooms(redis)):
        room = engine.rooms.get(name)
        if room is None:
            logger.warning("restore_room_not_configured", room=name)
            continue

        data = await load_room_data(redis, name)
        if data is None:
            continue

        room.load_state(data)
        restored += 1
        logger.info(
            "restore_room_loaded",
            room=name,
            agents=len(room.agents),
            task=room.task.task_id if room.task else None,
        )

    logger.info("restore_complete", tick=tick, rooms=restored)
    return True
