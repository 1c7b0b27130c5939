"""Async event bus over Redis Pub/Sub.

The engine publishes the events collected during a tick; dashboards and
other processes subscribe per channel.
"""

from __future__ import annotations

import asyncio
import json
import threading
from dataclasses import asdict
from typing import Any, Awaitable, Callable, Iterable, Optional, Type

import redis as sync_redis
import structlog
from redis.asyncio import Redis

logger = structlog.get_logger()

Handler = Callable[[Any], Awaitable[None]]


class EventBus:
    """Event bus built on Redis Pub/Sub.

    Subscriptions are served by a synchronous PubSub in a daemon thread;
    messages are handed back to the asyncio loop for dispatch.
    """

    def __init__(self, redis_client: Redis) -> None:
        self._redis = redis_client
        self._handlers: dict[str, list[tuple[Handler, Optional[Type[Any]]]]] = {}
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._sync_redis: Optional[sync_redis.Redis] = None
        self._sync_pubsub: Optional[Any] = None

    def _pubsub(self) -> Any:
        if self._sync_pubsub is None:
            kwargs = self._redis.connection_pool.connection_kwargs
            self._sync_redis = sync_redis.Redis(
                host=kwargs.get("host", "localhost"),
                port=kwargs.get("port", 6379),
                db=kwargs.get("db", 0),
                decode_responses=True,
            )
            self._sync_pubsub = self._sync_redis.pubsub()
        return self._sync_pubsub

    async def publish(self, channel: str, event: Any) -> int:
        """Serialize a dataclass event to JSON and publish it.

        Returns:
            Number of subscribers that received the message.
        """
        payload = json.dumps(asdict(event), default=str)
        receivers = await self._redis.publish(channel, payload)
        logger.debug("event_bus_published", channel=channel, subscribers=receivers)
        return receivers

    async def publish_many(self, events: Iterable[tuple[str, Any]]) -> int:
        """Publish ``(channel, event)`` pairs in order.

        A failing publish is logged and skipped so one bad payload does not
        drop the rest of the tick's events.
        """
        published = 0
        for channel, event in events:
            try:
                await self.publish(channel, event)
                published += 1
            except Exception as exc:
                logger.error(
                    "event_bus_publish_failed",
                    channel=channel,
                    event_type=type(event).__name__,
                    error=str(exc),
                )
        return published

    async def subscribe(self, channel: str, handler: Handler, event_type: Optional[Type[Any]] = None) -> None:
        if channel not in self._handlers:
            self._pubsub().subscribe(channel)
            self._handlers[channel] = []
            logger.info("event_bus_subscribed_to_channel", channel=channel)
        self._handlers[channel].append((handler, event_type))

    async def listen(self) -> None:
        """Run the background listener thread until cancelled."""
        self._loop = asyncio.get_running_loop()
        thread = threading.Thread(
            target=self._sync_listen_thread,
            daemon=True,
            name="event-bus-listener",
        )
        thread.start()
        logger.info("event_bus_listen_started", channels=list(self._handlers))

        try:
            while True:
                await asyncio.sleep(60)
        except asyncio.CancelledError:
            logger.info("event_bus_listen_cancelled")
            raise

    def _sync_listen_thread(self) -> None:
        for message in self._pubsub().listen():
            if message.get("type") != "message":
                continue
            try:
                data = json.loads(message["data"])
            except (TypeError, json.JSONDecodeError):
                logger.warning("event_bus_bad_payload", channel=message.get("channel"))
                continue

            if self._loop and not self._loop.is_closed():
                self._loop.call_soon_threadsafe(
                    self._loop.create_task,
                    self._dispatch(message["channel"], data),
                )

    async def _dispatch(self, channel: str, data: dict[str, Any]) -> None:
        for handler, event_type in self._handlers.get(channel, []):
            try:
                payload = event_type(**data) if event_type is not None else data
                await handler(payload)
            except Exception as exc:
                logger.error(
                    "event_bus_handler_error",
                    channel=channel,
                    error=str(exc),
                    error_type=type(exc).__name__,
                )

    async def close(self) -> None:
        if self._sync_pubsub is not None:
            self._sync_pubsub.close()
        if self._sync_redis is not None:
            self._sync_redis.close()
