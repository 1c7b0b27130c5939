"""Agent model — mobile worker units and their persisted per-tick state."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from colony.core.structures import Position, Store


@dataclass
class AgentState:
    """Memory that survives between ticks.

    ``working`` mirrors the last mode-switch evaluation and ``ready``
    latches once the role's readiness check has passed.
    """

    role: str = ""
    ready: bool = False
    working: bool = False
    path: list[Position] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "role": self.role,
            "ready": self.ready,
            "working": self.working,
            "path": [list(p) for p in self.path],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AgentState:
        return cls(
            role=data.get("role", ""),
            ready=bool(data.get("ready", False)),
            working=bool(data.get("working", False)),
            path=[(int(p[0]), int(p[1])) for p in data.get("path", [])],
        )


@dataclass
class Agent:
    """A single worker unit executing one role per tick."""

    name: str
    room_name: str
    pos: Position
    store: Store
    body: list[str] = field(default_factory=list)
    memory: AgentState = field(default_factory=AgentState)
    alive: bool = True
    # Last advisory message, for dashboards
    saying: str = ""

    @property
    def id(self) -> str:
        return self.name

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "room_name": self.room_name,
            "pos": list(self.pos),
            "store": self.store.to_dict(),
            "body": list(self.body),
            "memory": self.memory.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Agent:
        return cls(
            name=data["name"],
            room_name=data["room_name"],
            pos=(int(data["pos"][0]), int(data["pos"][1])),
            store=Store.from_dict(data["store"]),
            body=list(data.get("body", [])),
            memory=AgentState.from_dict(data.get("memory", {})),
        )
