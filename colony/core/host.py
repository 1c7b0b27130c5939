"""Host primitives — the boundary between colony logic and the world it runs in.

Role hooks only touch the world through a ``Host``: moving, withdrawing,
transferring, nearest-structure queries and advisory ``say`` messages.
``LocalHost`` is the in-process implementation the engine runs against.
Status codes match the host game's constants so hooks can treat any
non-OK result as an opaque, retry-next-tick failure.
"""

from __future__ import annotations

from enum import IntEnum
from typing import TYPE_CHECKING, Callable, Iterable, Mapping, Optional, Protocol, Union

import structlog

from colony.core.agent import Agent
from colony.core.structures import Position, Structure

if TYPE_CHECKING:
    from colony.core.room import Room

logger = structlog.get_logger()


class HostStatus(IntEnum):
    OK = 0
    ERR_NOT_OWNER = -1
    ERR_BUSY = -4
    ERR_NOT_ENOUGH_RESOURCES = -6
    ERR_INVALID_TARGET = -7
    ERR_FULL = -8
    ERR_NOT_IN_RANGE = -9
    ERR_INVALID_ARGS = -10


MoveTarget = Union[Structure, Position]


class Host(Protocol):
    """Primitives provided by the world the agents live in."""

    def get_object(self, object_id: str) -> Optional[Structure]: ...

    def move_to(self, agent: Agent, target: MoveTarget) -> HostStatus: ...

    def withdraw(
        self, agent: Agent, structure: Optional[Structure], resource: str, amount: Optional[int] = None
    ) -> HostStatus: ...

    def transfer(
        self, agent: Agent, structure: Optional[Structure], resource: str, amount: Optional[int] = None
    ) -> HostStatus: ...

    def find_closest_by_range(
        self,
        agent: Agent,
        candidates: Iterable[Structure],
        predicate: Optional[Callable[[Structure], bool]] = None,
    ) -> Optional[Structure]: ...

    def say(self, agent: Agent, message: str) -> None: ...


def _distance(a: Position, b: Position) -> int:
    return max(abs(a[0] - b[0]), abs(a[1] - b[1]))


def _position(target: MoveTarget) -> Position:
    return target.pos if isinstance(target, Structure) else target


class LocalHost:
    """In-process host over the rooms owned by the engine.

    Range is adjacency (Chebyshev distance <= 1) and ``move_to`` advances
    one tile per call along a cached straight-line path. Store changes
    apply immediately.
    """

    def __init__(self, rooms: Mapping[str, Room]) -> None:
        self._rooms = rooms

    def get_object(self, object_id: str) -> Optional[Structure]:
        for room in self._rooms.values():
            structure = room.structures.get(object_id)
            if structure is not None:
                return structure
        return None

    @staticmethod
    def in_range(agent: Agent, target: MoveTarget) -> bool:
        return _distance(agent.pos, _position(target)) <= 1

    def move_to(self, agent: Agent, target: MoveTarget) -> HostStatus:
        goal = _position(target)
        if agent.pos == goal:
            agent.memory.path = []
            return HostStatus.OK

        if not agent.memory.path or agent.memory.path[-1] != goal:
            agent.memory.path = self._plot(agent.pos, goal)

        agent.pos = agent.memory.path.pop(0)
        return HostStatus.OK

    @staticmethod
    def _plot(start: Position, goal: Position) -> list[Position]:
        path: list[Position] = []
        x, y = start
        while (x, y) != goal:
            x += (goal[0] > x) - (goal[0] < x)
            y += (goal[1] > y) - (goal[1] < y)
            path.append((x, y))
        return path

    def withdraw(
        self, agent: Agent, structure: Optional[Structure], resource: str, amount: Optional[int] = None
    ) -> HostStatus:
        if structure is None:
            return HostStatus.ERR_INVALID_TARGET
        if amount is not None and amount <= 0:
            return HostStatus.ERR_INVALID_ARGS
        if not self.in_range(agent, structure):
            return HostStatus.ERR_NOT_IN_RANGE

        available = structure.store.get(resource)
        free = agent.store.free_capacity(resource)
        if available <= 0:
            return HostStatus.ERR_NOT_ENOUGH_RESOURCES
        if free <= 0:
            return HostStatus.ERR_FULL

        if amount is None:
            amount = min(available, free)
        if amount > available:
            return HostStatus.ERR_NOT_ENOUGH_RESOURCES
        if amount > free:
            return HostStatus.ERR_FULL

        structure.store.remove(resource, amount)
        agent.store.add(resource, amount)
        return HostStatus.OK

    def transfer(
        self, agent: Agent, structure: Optional[Structure], resource: str, amount: Optional[int] = None
    ) -> HostStatus:
        if structure is None:
            return HostStatus.ERR_INVALID_TARGET
        if amount is not None and amount <= 0:
            return HostStatus.ERR_INVALID_ARGS
        if not self.in_range(agent, structure):
            return HostStatus.ERR_NOT_IN_RANGE

        carried = agent.store.get(resource)
        free = structure.store.free_capacity(resource)
        if carried <= 0:
            return HostStatus.ERR_NOT_ENOUGH_RESOURCES
        if free <= 0:
            return HostStatus.ERR_FULL

        if amount is None:
            amount = min(carried, free)
        if amount > carried:
            return HostStatus.ERR_NOT_ENOUGH_RESOURCES
        if amount > free:
            return HostStatus.ERR_FULL

        agent.store.remove(resource, amount)
        structure.store.add(resource, amount)
        return HostStatus.OK

    def find_closest_by_range(
        self,
        agent: Agent,
        candidates: Iterable[Structure],
        predicate: Optional[Callable[[Structure], bool]] = None,
    ) -> Optional[Structure]:
        matching = [s for s in candidates if predicate is None or predicate(s)]
        if not matching:
            return None
        # min() keeps the first of equally distant candidates
        return min(matching, key=lambda s: _distance(agent.pos, s.pos))

    def say(self, agent: Agent, message: str) -> None:
        agent.saying = message
        logger.info("agent_say", agent=agent.name, room=agent.room_name, message=message)
