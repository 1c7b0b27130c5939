"""Room aggregate — everything one room owns, looked up by room name.

A room owns its structures, agents, the single active logistics task, the
queued transfer requests and its production facility. Nothing here is
shared across rooms, so each room can be stepped independently.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Mapping, Optional

import structlog

from colony.bus.channels import Channels
from colony.bus.events import NoticeEvent
from colony.core.agent import Agent
from colony.core.logistics import LogisticsTask, TransferKey, TransferRequest
from colony.core.structures import Structure

if TYPE_CHECKING:
    from colony.core.facility import ProductionFacility
    from colony.core.host import Host
    from colony.core.roles import RoleConfig

logger = structlog.get_logger()


@dataclass
class Room:
    name: str
    structures: dict[str, Structure] = field(default_factory=dict)
    agents: dict[str, Agent] = field(default_factory=dict)
    storage_id: Optional[str] = None
    facility: Optional[ProductionFacility] = None
    task: Optional[LogisticsTask] = None
    requests: dict[TransferKey, TransferRequest] = field(default_factory=dict)
    # Role configurations by role name; configuration, not persisted
    roles: dict[str, RoleConfig] = field(default_factory=dict, repr=False, compare=False)

    @property
    def storage(self) -> Optional[Structure]:
        if self.storage_id is None:
            return None
        return self.structures.get(self.storage_id)

    @property
    def stock(self) -> Mapping[str, int]:
        """Compound quantities currently held in the room's storage."""
        storage = self.storage
        return storage.store.as_dict() if storage is not None else {}

    def add_structure(self, structure: Structure) -> Structure:
        self.structures[structure.id] = structure
        return structure

    def add_agent(self, agent: Agent) -> Agent:
        self.agents[agent.name] = agent
        return agent

    def structures_of(self, *structure_types: str) -> list[Structure]:
        return [s for s in self.structures.values() if s.structure_type in structure_types]

    # ------------------------------------------------------------------
    # Task accessor / mutator used by role hooks
    # ------------------------------------------------------------------

    def get_task(self) -> Optional[LogisticsTask]:
        return self.task

    def handle_task(self, amount: int, task_id: Optional[str] = None) -> bool:
        """Report ``amount`` delivered towards the active task.

        Reports against a fulfilled task, a retired task or a different
        task than ``task_id`` are ignored.

        Returns:
            True if the amount was accounted.
        """
        task = self.task
        if task is None or task.fulfilled or (task_id is not None and task.task_id != task_id):
            logger.warning(
                "stale_task_report",
                room=self.name,
                amount=amount,
                reported_task=task_id,
                active_task=task.task_id if task else None,
            )
            return False

        task.record(amount)
        logger.debug(
            "task_progress",
            room=self.name,
            task_id=task.task_id,
            amount=amount,
            completed_amount=task.completed_amount,
            target_amount=task.amount,
        )
        return True

    # ------------------------------------------------------------------
    # Transfer requests
    # ------------------------------------------------------------------

    def has_active(self, key: TransferKey) -> bool:
        return self.task is not None and not self.task.fulfilled and self.task.key == key

    def request_transfer(self, request: TransferRequest) -> bool:
        """Queue a request, replacing the amount of an identical queued one.

        Ignored while an active task already covers the same transfer.
        """
        if self.has_active(request.key):
            return False
        self.requests[request.key] = request
        return True

    def cancel_request(self, key: TransferKey) -> None:
        self.requests.pop(key, None)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "storage_id": self.storage_id,
            "structures": [s.to_dict() for s in self.structures.values()],
            "agents": [a.to_dict() for a in self.agents.values()],
            "task": self.task.to_dict() if self.task else None,
            "requests": [r.to_dict() for r in self.requests.values()],
            "facility": self.facility.to_dict() if self.facility else None,
        }

    def load_state(self, data: dict[str, Any]) -> None:
        """Overwrite mutable state with a saved snapshot.

        Roles and the facility's configuration stay as built; only their
        persisted state is replaced.
        """
        self.storage_id = data.get("storage_id")
        self.structures = {s["id"]: Structure.from_dict(s) for s in data.get("structures", [])}
        self.agents = {a["name"]: Agent.from_dict(a) for a in data.get("agents", [])}
        self.task = LogisticsTask.from_dict(data["task"]) if data.get("task") else None
        requests = [TransferRequest.from_dict(r) for r in data.get("requests", [])]
        self.requests = {r.key: r for r in requests}
        if self.facility is not None and data.get("facility"):
            self.facility.load_state(data["facility"])


@dataclass
class TickContext:
    """Per-room view handed to role hooks and the facility for one tick."""

    tick: int
    room: Room
    host: Host
    outbox: list[tuple[str, Any]] = field(default_factory=list)

    def emit(self, channel: str, event: Any) -> None:
        self.outbox.append((channel, event))

    def notify(self, kind: str, message: str, agent: Optional[str] = None) -> None:
        """Surface a non-fatal problem on the notice channel."""
        logger.warning("colony_notice", room=self.room.name, kind=kind, message=message, agent=agent)
        self.emit(
            Channels.NOTICES,
            NoticeEvent(room=self.room.name, kind=kind, message=message, agent=agent, tick=self.tick),
        )
