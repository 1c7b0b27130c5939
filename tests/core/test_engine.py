"""Unit tests for CoreEngine."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from colony.bus.channels import Channels
from colony.config import Settings
from colony.core.engine import CoreEngine
from colony.core.errors import InvariantViolation
from colony.core.facility import FacilityState
from colony.core.layout import build_colony
from colony.core.room import Room


@pytest.fixture
def settings() -> Settings:
    """Create test settings."""
    return Settings(
        tick_rate_ms=5,
        room_names=["W1N1"],
        stats_interval=1000,
        snapshot_interval_ticks=1000,
    )


@pytest.fixture
def rooms(settings: Settings) -> dict[str, Room]:
    return build_colony(settings)


@pytest.fixture
def engine(rooms: dict[str, Room], settings: Settings) -> CoreEngine:
    """Create test engine."""
    return CoreEngine(rooms=rooms, settings=settings)


def test_engine_initialization(engine: CoreEngine) -> None:
    assert engine.tick_counter == 0
    assert engine.running is False
    assert list(engine.rooms) == ["W1N1"]


def test_step_advances_tick_and_returns_events(engine: CoreEngine) -> None:
    events = engine.step()

    assert engine.tick_counter == 1
    # The facility leaves SELECT_TARGET on the first tick
    assert events[0][0] == Channels.FACILITY
    assert engine.rooms["W1N1"].facility.state is FacilityState.ACQUIRE_SUBSTRATES


def test_first_batch_is_produced_and_stored(engine: CoreEngine) -> None:
    room = engine.rooms["W1N1"]
    assert room.stock.get("OH", 0) == 0

    for _ in range(600):
        engine.step()
        task = room.task
        if task is not None:
            assert 0 <= task.completed_amount <= task.amount

    assert room.stock["OH"] >= 500
    assert room.stock["H"] <= 49500


def test_dead_agents_are_removed(engine: CoreEngine) -> None:
    room = engine.rooms["W1N1"]
    agent = room.agents["W1N1 transfer"]
    agent.alive = False

    engine.step()

    assert "W1N1 transfer" not in room.agents
    assert len(room.agents) == 2


def test_agent_errors_are_isolated(engine: CoreEngine) -> None:
    room = engine.rooms["W1N1"]
    broken = MagicMock()
    broken.is_delivering.side_effect = RuntimeError("boom")
    room.roles["transfer"] = broken
    carrier = room.agents["W1N1 taskCarrier"]
    room.agents["W1N1 transfer"].memory.ready = True

    engine.step()
    engine.step()

    # The other agents and the facility keep running
    assert engine.tick_counter == 2
    assert carrier.memory.ready is True
    assert room.task is not None


def test_invariant_violation_propagates(engine: CoreEngine) -> None:
    room = engine.rooms["W1N1"]
    broken = MagicMock()
    broken.is_delivering.side_effect = InvariantViolation("corrupted")
    room.roles["transfer"] = broken
    room.agents["W1N1 transfer"].memory.ready = True

    with pytest.raises(InvariantViolation):
        engine.step()


@pytest.mark.asyncio
async def test_run_publishes_tick_events(rooms: dict[str, Room], settings: Settings) -> None:
    event_bus = MagicMock()
    event_bus.publish_many = AsyncMock(return_value=1)
    event_bus.publish = AsyncMock(return_value=0)
    engine = CoreEngine(rooms=rooms, settings=settings, event_bus=event_bus)

    task = asyncio.create_task(engine.run())
    await asyncio.sleep(0.1)
    engine.stop()
    await asyncio.wait_for(task, timeout=1.0)

    assert engine.tick_counter > 0
    assert event_bus.publish_many.await_count >= 1


@pytest.mark.asyncio
async def test_run_persists_state_and_telemetry(rooms: dict[str, Room]) -> None:
    settings = Settings(tick_rate_ms=5, room_names=["W1N1"], snapshot_interval_ticks=1)
    redis = AsyncMock()
    event_bus = MagicMock()
    event_bus.publish_many = AsyncMock(return_value=0)
    event_bus.publish = AsyncMock(return_value=0)
    engine = CoreEngine(rooms=rooms, settings=settings, redis=redis, event_bus=event_bus)

    task = asyncio.create_task(engine.run())
    await asyncio.sleep(0.05)
    engine.stop()
    await asyncio.wait_for(task, timeout=1.0)

    redis.set.assert_any_await("colony:tick", "1")
    redis.sadd.assert_any_await("colony:rooms", "W1N1")
    key = redis.setex.await_args_list[0].args[0]
    assert key == "colony:snapshot:W1N1:1"

    channel, event = event_bus.publish.await_args_list[0].args
    assert channel == Channels.TELEMETRY
    assert event.snapshot_keys == ["colony:snapshot:W1N1:1"]


def test_stop(engine: CoreEngine) -> None:
    engine.running = True
    engine.stop()

    assert engine.running is False
