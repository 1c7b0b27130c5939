"""Tests for LocalHost primitives and structure stores."""

from __future__ import annotations

import pytest

from colony.core.agent import Agent
from colony.core.errors import InvariantViolation
from colony.core.host import HostStatus, LocalHost
from colony.core.room import Room
from colony.core.structures import EXTENSION, SPAWN, STORAGE, Store, Structure


@pytest.fixture
def room() -> Room:
    room = Room(name="W1N1")
    storage = room.add_structure(Structure("storage", STORAGE, (10, 10), Store(contents={"energy": 1000, "H": 300})))
    room.storage_id = storage.id
    room.add_structure(Structure("spawn", SPAWN, (20, 10), Store(capacity=300)))
    room.add_structure(Structure("ext", EXTENSION, (11, 11), Store(capacity=50)))
    return room


@pytest.fixture
def host(room: Room) -> LocalHost:
    return LocalHost({room.name: room})


@pytest.fixture
def agent() -> Agent:
    return Agent(name="carrier", room_name="W1N1", pos=(11, 10), store=Store(capacity=100))


# -------------------------------------------------------------------------
# Store
# -------------------------------------------------------------------------


def test_store_capacity_accounting() -> None:
    store = Store(capacity=100, contents={"H": 30})
    store.add("O", 20)

    assert store.used_capacity() == 50
    assert store.free_capacity() == 50
    assert store["H"] == 30
    assert store.get("X") == 0


def test_store_rejects_overflow_and_negative_stock() -> None:
    store = Store(capacity=10)

    with pytest.raises(InvariantViolation):
        store.add("H", 11)
    with pytest.raises(InvariantViolation):
        store.remove("H", 1)
    with pytest.raises(InvariantViolation):
        store.add("H", -1)


def test_store_drops_empty_resources() -> None:
    store = Store(contents={"H": 5})
    store.remove("H", 5)

    assert store.resources() == []
    assert store.as_dict() == {}


def test_structure_round_trips_through_dict() -> None:
    structure = Structure("lab", "lab", (3, 4), Store(capacity=3000, contents={"OH": 15}))

    restored = Structure.from_dict(structure.to_dict())

    assert restored.id == "lab"
    assert restored.pos == (3, 4)
    assert restored.store.capacity == 3000
    assert restored.store.as_dict() == {"OH": 15}


# -------------------------------------------------------------------------
# LocalHost
# -------------------------------------------------------------------------


def test_get_object(host: LocalHost) -> None:
    assert host.get_object("spawn").structure_type == SPAWN
    assert host.get_object("missing") is None


def test_withdraw_moves_resources(host: LocalHost, room: Room, agent: Agent) -> None:
    result = host.withdraw(agent, room.storage, "energy", 40)

    assert result == HostStatus.OK
    assert agent.store.get("energy") == 40
    assert room.storage.store.get("energy") == 960


def test_withdraw_without_amount_fills_free_capacity(host: LocalHost, room: Room, agent: Agent) -> None:
    assert host.withdraw(agent, room.storage, "energy") == HostStatus.OK
    assert agent.store.get("energy") == 100


def test_withdraw_status_codes(host: LocalHost, room: Room, agent: Agent) -> None:
    assert host.withdraw(agent, None, "energy") == HostStatus.ERR_INVALID_TARGET
    assert host.withdraw(agent, room.storage, "energy", 0) == HostStatus.ERR_INVALID_ARGS
    assert host.withdraw(agent, room.storage, "X") == HostStatus.ERR_NOT_ENOUGH_RESOURCES
    assert host.withdraw(agent, room.structures["spawn"], "energy") == HostStatus.ERR_NOT_IN_RANGE

    agent.store.add("H", 100)
    assert host.withdraw(agent, room.storage, "energy") == HostStatus.ERR_FULL


def test_transfer_status_codes(host: LocalHost, room: Room, agent: Agent) -> None:
    ext = room.structures["ext"]
    assert host.transfer(agent, ext, "energy") == HostStatus.ERR_NOT_ENOUGH_RESOURCES

    agent.store.add("energy", 80)
    assert host.transfer(agent, ext, "energy", 60) == HostStatus.ERR_FULL
    assert host.transfer(agent, ext, "energy") == HostStatus.OK
    assert ext.store.get("energy") == 50
    assert agent.store.get("energy") == 30
    assert host.transfer(agent, ext, "energy") == HostStatus.ERR_FULL


def test_move_to_advances_one_tile(host: LocalHost, room: Room, agent: Agent) -> None:
    spawn = room.structures["spawn"]

    host.move_to(agent, spawn)
    assert agent.pos == (12, 10)

    while not host.in_range(agent, spawn):
        host.move_to(agent, spawn)
    assert agent.pos == (19, 10)


def test_move_to_position_stops_on_tile(host: LocalHost, agent: Agent) -> None:
    for _ in range(5):
        host.move_to(agent, (13, 12))

    assert agent.pos == (13, 12)
    assert agent.memory.path == []


def test_find_closest_by_range(host: LocalHost, room: Room, agent: Agent) -> None:
    candidates = room.structures_of(SPAWN, EXTENSION)

    assert host.find_closest_by_range(agent, candidates).id == "ext"
    assert host.find_closest_by_range(agent, candidates, lambda s: s.id == "spawn").id == "spawn"
    assert host.find_closest_by_range(agent, []) is None


def test_say_records_message(host: LocalHost, agent: Agent) -> None:
    host.say(agent, "no task")

    assert agent.saying == "no task"
