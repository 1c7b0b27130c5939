"""Logistics — the room's single active transfer task and the planner that feeds it.

A ``LogisticsTask`` describes one bulk transfer (source, target, compound,
amount). Any number of agents contribute to it; each successful delivery
reports exactly what moved, so ``completed_amount`` is a plain sum that
does not depend on the order agents run in.

The ``LogisticsPlanner`` owns the task lifecycle: it retires fulfilled or
stalled tasks and publishes the next queued ``TransferRequest``. Agents
never delete tasks, they only report progress.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Optional

import structlog

from colony.bus.channels import Channels
from colony.bus.events import TaskEvent
from colony.core.errors import InvariantViolation
from colony.core.reactions import ReactionGraph
from colony.core.reserve import ReserveGate

if TYPE_CHECKING:
    from colony.core.room import TickContext

logger = structlog.get_logger()

TransferKey = tuple[str, str, str]

# Fields fixed for the lifetime of a task
_IMMUTABLE_FIELDS = frozenset({"task_id", "source_id", "target_id", "resource_type", "amount"})


@dataclass
class LogisticsTask:
    """One pending bulk transfer shared by every agent in a room."""

    source_id: str
    target_id: str
    resource_type: str
    amount: int
    completed_amount: int = 0
    task_id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])
    created_tick: int = 0
    # Planner bookkeeping for stall detection
    observed_amount: int = 0
    progress_tick: int = 0

    def __post_init__(self) -> None:
        if self.amount <= 0:
            raise InvariantViolation(f"task amount must be positive, got {self.amount}")
        if not 0 <= self.completed_amount <= self.amount:
            raise InvariantViolation(
                f"completed_amount {self.completed_amount} outside [0, {self.amount}]"
            )

    def __setattr__(self, name: str, value: Any) -> None:
        if name in _IMMUTABLE_FIELDS and name in self.__dict__:
            raise AttributeError(f"LogisticsTask.{name} is immutable")
        super().__setattr__(name, value)

    @property
    def key(self) -> TransferKey:
        return (self.source_id, self.target_id, self.resource_type)

    @property
    def remaining(self) -> int:
        return self.amount - self.completed_amount

    @property
    def fulfilled(self) -> bool:
        return self.completed_amount >= self.amount

    def record(self, amount: int) -> None:
        """Add ``amount`` actually transferred to the progress accumulator."""
        if amount < 0:
            raise InvariantViolation(f"negative progress report {amount} for task {self.task_id}")
        if amount > self.remaining:
            raise InvariantViolation(
                f"progress report {amount} exceeds remaining {self.remaining} for task {self.task_id}"
            )
        self.completed_amount += amount

    def to_dict(self) -> dict[str, Any]:
        return {
            "task_id": self.task_id,
            "source_id": self.source_id,
            "target_id": self.target_id,
            "resource_type": self.resource_type,
            "amount": self.amount,
            "completed_amount": self.completed_amount,
            "created_tick": self.created_tick,
            "observed_amount": self.observed_amount,
            "progress_tick": self.progress_tick,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LogisticsTask:
        return cls(**data)


@dataclass
class TransferRequest:
    """A queued transfer need, waiting to become the room's active task."""

    source_id: str
    target_id: str
    resource_type: str
    amount: int
    requested_by: str = ""

    @property
    def key(self) -> TransferKey:
        return (self.source_id, self.target_id, self.resource_type)

    def to_dict(self) -> dict[str, Any]:
        return {
            "source_id": self.source_id,
            "target_id": self.target_id,
            "resource_type": self.resource_type,
            "amount": self.amount,
            "requested_by": self.requested_by,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TransferRequest:
        return cls(**data)


class LogisticsPlanner:
    """Retires finished tasks and publishes the next one, one room at a time."""

    def __init__(
        self,
        gate: ReserveGate,
        graph: ReactionGraph,
        stale_task_ticks: int = 300,
    ) -> None:
        """Initialize the planner.

        Args:
            gate: Reserve gate re-checked before raw stock leaves storage.
            graph: Reaction graph, used to tell raw materials apart.
            stale_task_ticks: Ticks without progress before a task is replaced.
        """
        self.gate = gate
        self.graph = graph
        self.stale_task_ticks = stale_task_ticks

    def step(self, ctx: TickContext) -> Optional[LogisticsTask]:
        """Advance the room's task lifecycle by one tick.

        Returns:
            The room's active task after this tick, if any.
        """
        room = ctx.room
        task = room.task

        if task is not None:
            if task.fulfilled:
                self._retire(ctx, task, "completed")
            else:
                reason = self._abandon_reason(ctx, task)
                if reason is None:
                    return task
                self._retire(ctx, task, reason)

        return self._publish_next(ctx)

    def _abandon_reason(self, ctx: TickContext, task: LogisticsTask) -> Optional[str]:
        room = ctx.room
        if task.source_id not in room.structures or task.target_id not in room.structures:
            return "endpoint_missing"

        if task.completed_amount > task.observed_amount:
            task.observed_amount = task.completed_amount
            task.progress_tick = ctx.tick
            return None

        if ctx.tick - task.progress_tick > self.stale_task_ticks:
            return "stalled"
        return None

    def _retire(self, ctx: TickContext, task: LogisticsTask, reason: str) -> None:
        ctx.room.task = None
        action = "completed" if reason == "completed" else "abandoned"
        log = logger.info if action == "completed" else logger.warning
        log(
            f"task_{action}",
            room=ctx.room.name,
            task_id=task.task_id,
            resource_type=task.resource_type,
            amount=task.amount,
            completed_amount=task.completed_amount,
            reason=reason,
            tick=ctx.tick,
        )
        ctx.emit(Channels.LOGISTICS, TaskEvent.from_task(ctx.room.name, task, action, ctx.tick, reason))

    def _publish_next(self, ctx: TickContext) -> Optional[LogisticsTask]:
        room = ctx.room

        for key, request in list(room.requests.items()):
            source = room.structures.get(request.source_id)
            target = room.structures.get(request.target_id)
            if source is None or target is None or request.amount <= 0:
                logger.warning(
                    "transfer_request_dropped",
                    room=room.name,
                    source_id=request.source_id,
                    target_id=request.target_id,
                    resource_type=request.resource_type,
                )
                del room.requests[key]
                continue

            available = source.store.get(request.resource_type)
            if available <= 0:
                continue

            amount = min(request.amount, available)
            if self._reserve_blocked(room.storage_id, request, amount, available):
                logger.debug(
                    "transfer_request_reserve_blocked",
                    room=room.name,
                    resource_type=request.resource_type,
                    amount=amount,
                    stock=available,
                )
                continue

            task = LogisticsTask(
                source_id=request.source_id,
                target_id=request.target_id,
                resource_type=request.resource_type,
                amount=amount,
                created_tick=ctx.tick,
                progress_tick=ctx.tick,
            )
            del room.requests[key]
            room.task = task

            logger.info(
                "task_published",
                room=room.name,
                task_id=task.task_id,
                source_id=task.source_id,
                target_id=task.target_id,
                resource_type=task.resource_type,
                amount=task.amount,
                requested_by=request.requested_by,
                tick=ctx.tick,
            )
            ctx.emit(Channels.LOGISTICS, TaskEvent.from_task(room.name, task, "published", ctx.tick))
            return task

        return None

    def _reserve_blocked(
        self,
        storage_id: Optional[str],
        request: TransferRequest,
        amount: int,
        available: int,
    ) -> bool:
        if request.source_id != storage_id:
            return False
        resource = request.resource_type
        if not self.graph.knows(resource) or not self.graph.is_raw(resource):
            return False
        return not self.gate.can_consume(resource, amount, available)
