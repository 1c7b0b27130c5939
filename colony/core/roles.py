"""Role configurations — the per-role behavior an agent runs each tick.

Every role exposes the same small capability set:

- ``prepare`` / ``is_ready``: one-time positioning before the role is active
- ``acquire``: the "getting resource" behavior for one tick
- ``deliver``: the "delivering resource" behavior for one tick
- ``is_delivering``: pure predicate over the agent's cargo choosing the mode

Hooks receive the agent and the room's ``TickContext`` and must return
within the tick. Host failures are surfaced with ``say`` and retried on
the next tick; they never raise.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional, Protocol

import structlog

from colony.core.agent import Agent
from colony.core.compounds import ENERGY
from colony.core.host import HostStatus
from colony.core.structures import EXTENSION, SPAWN, TOWER, Position

if TYPE_CHECKING:
    from colony.core.room import TickContext

logger = structlog.get_logger()


class RoleConfig(Protocol):
    """Interface every role implements."""

    body_type: str

    def prepare(self, agent: Agent, ctx: TickContext) -> None: ...

    def is_ready(self, agent: Agent, ctx: TickContext) -> bool: ...

    def acquire(self, agent: Agent, ctx: TickContext) -> None: ...

    def deliver(self, agent: Agent, ctx: TickContext) -> None: ...

    def is_delivering(self, agent: Agent) -> bool: ...


class BaseRole:
    """Defaults for the optional hooks: nothing to prepare, always ready."""

    body_type = "worker"

    def prepare(self, agent: Agent, ctx: TickContext) -> None:
        return None

    def is_ready(self, agent: Agent, ctx: TickContext) -> bool:
        return True


def _report_failure(agent: Agent, ctx: TickContext, action: str, result: HostStatus) -> None:
    logger.debug("host_call_failed", agent=agent.name, action=action, status=result.name)
    ctx.host.say(agent, f"ERROR {result.name}")


class TransferRole(BaseRole):
    """Fills spawns, extensions and towers with energy from storage.

    Args:
        source_id: Structure to draw energy from; the room storage if omitted.
    """

    body_type = "transfer"

    def __init__(self, source_id: Optional[str] = None) -> None:
        self.source_id = source_id

    def acquire(self, agent: Agent, ctx: TickContext) -> None:
        source = ctx.host.get_object(self.source_id) if self.source_id else ctx.room.storage
        if source is None:
            ctx.notify("no_energy_source", "no structure to draw energy from", agent=agent.name)
            return

        result = ctx.host.withdraw(agent, source, ENERGY)
        if result == HostStatus.ERR_NOT_IN_RANGE:
            ctx.host.move_to(agent, source)
        elif result != HostStatus.OK:
            _report_failure(agent, ctx, "withdraw", result)

    def deliver(self, agent: Agent, ctx: TickContext) -> None:
        target = ctx.host.find_closest_by_range(
            agent,
            ctx.room.structures_of(SPAWN, EXTENSION, TOWER),
            lambda s: s.store.free_capacity(ENERGY) > 0,
        )
        if target is None:
            return

        result = ctx.host.transfer(agent, target, ENERGY)
        if result == HostStatus.ERR_NOT_IN_RANGE:
            ctx.host.move_to(agent, target)
        elif result != HostStatus.OK:
            _report_failure(agent, ctx, "transfer", result)

    def is_delivering(self, agent: Agent) -> bool:
        return agent.store.get(ENERGY) > 0


class TaskCarrierRole(BaseRole):
    """Works the room's active logistics task, walking to its endpoints."""

    body_type = "transfer"
    stationary = False

    def acquire(self, agent: Agent, ctx: TickContext) -> None:
        task = ctx.room.get_task()
        if task is None or task.fulfilled:
            ctx.host.say(agent, "no task")
            return

        source = ctx.host.get_object(task.source_id)
        available = source.store.get(task.resource_type) if source is not None else 0
        wanted = min(agent.store.free_capacity(task.resource_type), task.remaining, available)

        result = ctx.host.withdraw(agent, source, task.resource_type, wanted if wanted > 0 else None)
        if result == HostStatus.ERR_NOT_IN_RANGE and not self.stationary and source is not None:
            ctx.host.move_to(agent, source)
        elif result != HostStatus.OK:
            _report_failure(agent, ctx, "withdraw", result)

    def deliver(self, agent: Agent, ctx: TickContext) -> None:
        task = ctx.room.get_task()
        carried = agent.store.resources()
        if task is None or task.fulfilled or any(r != task.resource_type for r in carried):
            self._return_cargo(agent, ctx)
            return

        target = ctx.host.get_object(task.target_id)
        if target is None:
            _report_failure(agent, ctx, "transfer", HostStatus.ERR_INVALID_TARGET)
            return

        # Captured before the transfer: the report must be what moves now
        amount = min(
            agent.store.get(task.resource_type),
            target.store.free_capacity(task.resource_type),
            task.remaining,
        )
        if amount <= 0:
            _report_failure(agent, ctx, "transfer", HostStatus.ERR_FULL)
            return

        result = ctx.host.transfer(agent, target, task.resource_type, amount)
        if result == HostStatus.OK:
            ctx.room.handle_task(amount, task_id=task.task_id)
        elif result == HostStatus.ERR_NOT_IN_RANGE and not self.stationary:
            ctx.host.move_to(agent, target)
        else:
            _report_failure(agent, ctx, "transfer", result)

    def _return_cargo(self, agent: Agent, ctx: TickContext) -> None:
        """Put cargo no task wants back into storage, without accounting."""
        storage = ctx.room.storage
        carried = agent.store.resources()
        if storage is None or not carried:
            return

        result = ctx.host.transfer(agent, storage, carried[0])
        if result == HostStatus.ERR_NOT_IN_RANGE and not self.stationary:
            ctx.host.move_to(agent, storage)
        elif result != HostStatus.OK:
            _report_failure(agent, ctx, "return_cargo", result)

    def is_delivering(self, agent: Agent) -> bool:
        return agent.store.used_capacity() > 0


class CenterTransferRole(TaskCarrierRole):
    """Stationary task carrier parked on one tile next to the room's hub.

    Args:
        pos: Tile the agent works from.
    """

    body_type = "centerTransfer"
    stationary = True

    def __init__(self, pos: Position) -> None:
        self.pos = pos

    def prepare(self, agent: Agent, ctx: TickContext) -> None:
        ctx.host.move_to(agent, self.pos)

    def is_ready(self, agent: Agent, ctx: TickContext) -> bool:
        return agent.pos == self.pos
