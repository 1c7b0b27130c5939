"""Tests for the simulation runner's stop handling."""

from __future__ import annotations

import asyncio

import pytest

from colony.core.errors import InvariantViolation
from colony.main import SimulationRunner


def pending_event_waiters() -> list[asyncio.Task]:
    return [task for task in asyncio.all_tasks() if task.get_coro().__qualname__ == "Event.wait"]


@pytest.mark.asyncio
async def test_engine_failure_stops_runner_without_leaking_tasks() -> None:
    runner = SimulationRunner()

    async def failing_engine() -> None:
        raise InvariantViolation("progress report exceeds remaining")

    engine_task = asyncio.create_task(failing_engine())

    await asyncio.wait_for(runner.wait_for_stop(engine_task), timeout=1.0)

    assert engine_task.done()
    with pytest.raises(InvariantViolation):
        engine_task.result()
    assert pending_event_waiters() == []


@pytest.mark.asyncio
async def test_shutdown_signal_stops_runner_while_engine_runs() -> None:
    runner = SimulationRunner()
    engine_task = asyncio.create_task(asyncio.sleep(60))

    runner.shutdown_event.set()
    await asyncio.wait_for(runner.wait_for_stop(engine_task), timeout=1.0)

    assert not engine_task.done()
    engine_task.cancel()
    await asyncio.gather(engine_task, return_exceptions=True)
    assert pending_event_waiters() == []
