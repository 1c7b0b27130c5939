"""Structures and their resource stores."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from colony.core.errors import InvariantViolation

# Structure types
STORAGE = "storage"
SPAWN = "spawn"
EXTENSION = "extension"
TOWER = "tower"
LAB = "lab"
LINK = "link"
TERMINAL = "terminal"

Position = tuple[int, int]


class Store:
    """Per-compound contents with an optional shared capacity.

    ``capacity=None`` means unbounded.
    """

    def __init__(self, capacity: Optional[int] = None, contents: Optional[dict[str, int]] = None) -> None:
        self.capacity = capacity
        self._contents: dict[str, int] = {}
        for resource, amount in (contents or {}).items():
            self.add(resource, amount)

    def get(self, resource: str) -> int:
        return self._contents.get(resource, 0)

    def __getitem__(self, resource: str) -> int:
        return self.get(resource)

    def used_capacity(self, resource: Optional[str] = None) -> int:
        if resource is not None:
            return self.get(resource)
        return sum(self._contents.values())

    def free_capacity(self, resource: Optional[str] = None) -> int:
        """Room left in the store; ``resource`` is accepted for host parity."""
        if self.capacity is None:
            return 2**31 - 1
        return self.capacity - self.used_capacity()

    def resources(self) -> list[str]:
        return [r for r, amount in self._contents.items() if amount > 0]

    def add(self, resource: str, amount: int) -> None:
        if amount < 0:
            raise InvariantViolation(f"cannot add negative amount {amount} of {resource}")
        if amount == 0:
            return
        if self.capacity is not None and self.used_capacity() + amount > self.capacity:
            raise InvariantViolation(
                f"store overflow: {amount} {resource} exceeds free capacity {self.free_capacity()}"
            )
        self._contents[resource] = self.get(resource) + amount

    def remove(self, resource: str, amount: int) -> None:
        if amount < 0:
            raise InvariantViolation(f"cannot remove negative amount {amount} of {resource}")
        remaining = self.get(resource) - amount
        if remaining < 0:
            raise InvariantViolation(f"negative stock for {resource}: {remaining}")
        if remaining == 0:
            self._contents.pop(resource, None)
        else:
            self._contents[resource] = remaining

    def as_dict(self) -> dict[str, int]:
        return {r: a for r, a in self._contents.items() if a > 0}

    def to_dict(self) -> dict[str, Any]:
        return {"capacity": self.capacity, "contents": self.as_dict()}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Store:
        return cls(capacity=data.get("capacity"), contents=data.get("contents") or {})

    def __repr__(self) -> str:
        return f"Store(capacity={self.capacity}, contents={self.as_dict()})"


@dataclass
class Structure:
    """A stationary structure with a store (storage, spawn, lab...)."""

    id: str
    structure_type: str
    pos: Position
    store: Store = field(default_factory=Store)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "structure_type": self.structure_type,
            "pos": list(self.pos),
            "store": self.store.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Structure:
        return cls(
            id=data["id"],
            structure_type=data["structure_type"],
            pos=(int(data["pos"][0]), int(data["pos"][1])),
            store=Store.from_dict(data["store"]),
        )
