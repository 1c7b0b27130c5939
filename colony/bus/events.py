"""Event types for Redis Pub/Sub communication.

All events are dataclasses that can be serialized to/from JSON.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from colony.core.logistics import LogisticsTask


@dataclass
class NoticeEvent:
    """Advisory message: a configuration problem or an agent's say.

    Attributes:
        room: Room the notice originates from
        kind: Short machine-readable category (e.g. 'unknown_role')
        message: Human-readable text
        agent: Agent name, when the notice concerns one agent
        tick: Simulation tick
    """

    room: str
    kind: str
    message: str
    agent: Optional[str] = None
    tick: int = 0
    timestamp: float = field(default_factory=time.time)


@dataclass
class TaskEvent:
    """Published by the logistics planner on task publish / completion / abandonment."""

    room: str
    task_id: str
    action: str  # 'published' | 'completed' | 'abandoned'
    resource_type: str
    amount: int
    completed_amount: int
    tick: int
    reason: str = ""
    timestamp: float = field(default_factory=time.time)

    @classmethod
    def from_task(
        cls,
        room: str,
        task: LogisticsTask,
        action: str,
        tick: int,
        reason: str = "",
    ) -> TaskEvent:
        return cls(
            room=room,
            task_id=task.task_id,
            action=action,
            resource_type=task.resource_type,
            amount=task.amount,
            completed_amount=task.completed_amount,
            tick=tick,
            reason=reason,
        )


@dataclass
class FacilityEvent:
    """Published by a production facility on every state transition."""

    room: str
    structure_id: str
    from_state: str
    to_state: str
    target: Optional[str]
    produced: int
    tick: int
    timestamp: float = field(default_factory=time.time)


@dataclass
class TelemetryEvent:
    """Published by Core Engine every N ticks with room snapshot keys.

    Attributes:
        tick: Current simulation tick number
        snapshot_keys: Redis keys containing the room snapshots
    """

    tick: int
    snapshot_keys: list[str] = field(default_factory=list)
    timestamp: float = field(default_factory=time.time)
