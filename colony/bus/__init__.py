"""Event bus infrastructure — Redis Pub/Sub, connection management."""

from __future__ import annotations

from typing import Optional

from redis.asyncio import Redis

from colony.bus import events
from colony.bus.channels import Channels
from colony.bus.event_bus import EventBus

# Singleton Redis connection instance
_redis_client: Optional[Redis] = None


async def get_redis(url: str) -> Redis:
    """Get or create the async Redis connection (singleton pattern).

    Args:
        url: Redis URL, e.g. ``redis://localhost:6379/0``.

    Returns:
        Redis: Async Redis client instance; the same one on every call.
    """
    global _redis_client

    if _redis_client is None:
        _redis_client = Redis.from_url(
            url,
            encoding="utf-8",
            decode_responses=True,
        )

    return _redis_client


async def close_redis() -> None:
    """Close the Redis connection if it exists."""
    global _redis_client

    if _redis_client is not None:
        await _redis_client.aclose()
        _redis_client = None


__all__ = [
    "get_redis",
    "close_redis",
    "EventBus",
    "Channels",
    "events",
]
