"""Tests for the production facility state machine."""

from __future__ import annotations

import pytest

from colony.bus.channels import Channels
from colony.bus.events import FacilityEvent, NoticeEvent
from colony.core.facility import FacilityState, ProductionFacility, ProductionTarget, default_plan
from colony.core.host import LocalHost
from colony.core.reactions import ReactionGraph
from colony.core.reserve import ReserveGate
from colony.core.room import Room, TickContext
from colony.core.structures import LAB, STORAGE, Store, Structure

PLAN = [ProductionTarget("OH", 4000), ProductionTarget("ZK", 4000)]


@pytest.fixture
def facility() -> ProductionFacility:
    return ProductionFacility(
        structure_id="lab",
        graph=ReactionGraph(),
        gate=ReserveGate(),
        targets=PLAN,
        reaction_amount=5,
        batch_size=500,
    )


@pytest.fixture
def room(facility: ProductionFacility) -> Room:
    room = Room(name="W1N1")
    storage = room.add_structure(
        Structure("storage", STORAGE, (25, 25), Store(contents={"OH": 4000, "ZK": 1000, "Z": 50000, "K": 50000}))
    )
    room.storage_id = storage.id
    room.add_structure(Structure("lab", LAB, (25, 27), Store(capacity=3000)))
    room.facility = facility
    return room


def make_ctx(room: Room, tick: int = 1) -> TickContext:
    return TickContext(tick=tick, room=room, host=LocalHost({room.name: room}))


def deliver_requests(room: Room) -> None:
    """Carry out every queued request instantly."""
    for key, request in list(room.requests.items()):
        source = room.structures[request.source_id]
        target = room.structures[request.target_id]
        source.store.remove(request.resource_type, request.amount)
        target.store.add(request.resource_type, request.amount)
        del room.requests[key]


# -------------------------------------------------------------------------
# Target selection
# -------------------------------------------------------------------------


def test_selects_first_entry_below_quota(facility: ProductionFacility) -> None:
    selection = facility.select_target({"OH": 4000, "ZK": 1000})

    assert selection.entry.target == "ZK"
    assert selection.step == "ZK"
    assert selection.amount == 500


def test_selection_ignores_stock_iteration_order(facility: ProductionFacility) -> None:
    first = facility.select_target({"OH": 4000, "ZK": 1000, "H": 5})
    second = facility.select_target({"H": 5, "ZK": 1000, "OH": 4000})

    assert first == second


def test_batch_is_capped_by_quota_gap(facility: ProductionFacility) -> None:
    assert facility.select_target({"OH": 3800}).amount == 200


def test_unknown_plan_entry_is_skipped() -> None:
    facility = ProductionFacility(
        "lab",
        ReactionGraph(),
        ReserveGate(),
        targets=[ProductionTarget("H2O", 4000), ProductionTarget("ZK", 4000)],
    )

    selection = facility.select_target({"H2O": 4000, "ZK": 1000})

    assert selection.entry.target == "ZK"


def test_selection_descends_to_missing_intermediate() -> None:
    facility = ProductionFacility("lab", ReactionGraph(), ReserveGate(), targets=[ProductionTarget("XKHO2", 1000)])

    selection = facility.select_target({})

    assert selection.entry.target == "XKHO2"
    assert selection.step == "KO"


def test_nothing_selected_when_every_quota_is_met(facility: ProductionFacility, room: Room) -> None:
    room.storage.store.add("ZK", 3000)

    assert facility.select_target(room.stock) is None
    assert facility.step(make_ctx(room)) is FacilityState.SELECT_TARGET


def test_default_plan_order() -> None:
    plan = default_plan()

    assert [p.target for p in plan[:4]] == ["OH", "ZK", "UL", "G"]
    assert plan[-1] == ProductionTarget("XGHO2", 1000)


def test_raw_target_is_reported(room: Room) -> None:
    facility = ProductionFacility("lab", ReactionGraph(), ReserveGate(), targets=[ProductionTarget("H", 100)])
    room.facility = facility
    ctx = make_ctx(room)

    assert facility.step(ctx) is FacilityState.SELECT_TARGET
    assert isinstance(ctx.outbox[0][1], NoticeEvent)
    assert ctx.outbox[0][1].kind == "raw_production_target"


def test_raw_target_is_skipped_for_next_entry(room: Room) -> None:
    facility = ProductionFacility(
        "lab",
        ReactionGraph(),
        ReserveGate(),
        targets=[ProductionTarget("H", 100), ProductionTarget("ZK", 4000)],
        batch_size=500,
    )
    room.facility = facility
    ctx = make_ctx(room)

    assert facility.step(ctx) is FacilityState.ACQUIRE_SUBSTRATES
    assert facility.plan_target == "ZK"
    assert facility.target == "ZK"
    notices = [event for _, event in ctx.outbox if isinstance(event, NoticeEvent)]
    assert [n.kind for n in notices] == ["raw_production_target"]


def test_raw_target_notice_is_sent_once(room: Room) -> None:
    facility = ProductionFacility("lab", ReactionGraph(), ReserveGate(), targets=[ProductionTarget("H", 100)])
    room.facility = facility
    facility.step(make_ctx(room, tick=1))

    ctx = make_ctx(room, tick=2)
    assert facility.step(ctx) is FacilityState.SELECT_TARGET
    assert ctx.outbox == []


# -------------------------------------------------------------------------
# Cycle
# -------------------------------------------------------------------------


def test_select_advances_and_emits_transition(facility: ProductionFacility, room: Room) -> None:
    ctx = make_ctx(room)

    assert facility.step(ctx) is FacilityState.ACQUIRE_SUBSTRATES
    assert facility.target == "ZK"
    assert facility.substrates == ("Z", "K")
    assert facility.batch == 500

    channel, event = ctx.outbox[0]
    assert channel == Channels.FACILITY
    assert isinstance(event, FacilityEvent)
    assert event.from_state == "getTarget"
    assert event.to_state == "getResource"


def test_acquire_requests_missing_substrates(facility: ProductionFacility, room: Room) -> None:
    facility.step(make_ctx(room))

    assert facility.step(make_ctx(room, tick=2)) is FacilityState.ACQUIRE_SUBSTRATES
    assert room.requests[("storage", "lab", "Z")].amount == 500
    assert room.requests[("storage", "lab", "K")].amount == 500


def test_full_cycle(facility: ProductionFacility, room: Room) -> None:
    facility.step(make_ctx(room))
    facility.step(make_ctx(room))
    deliver_requests(room)

    assert facility.step(make_ctx(room)) is FacilityState.SYNTHESIZING
    assert room.requests == {}

    for _ in range(99):
        assert facility.step(make_ctx(room)) is FacilityState.SYNTHESIZING
    assert facility.step(make_ctx(room)) is FacilityState.DEPOSIT_OUTPUT

    lab = room.structures["lab"]
    assert facility.produced == 500
    assert lab.store.as_dict() == {"ZK": 500}

    facility.step(make_ctx(room))
    assert room.requests[("lab", "storage", "ZK")].amount == 500
    deliver_requests(room)

    assert facility.step(make_ctx(room)) is FacilityState.SELECT_TARGET
    assert facility.target is None
    assert facility.produced == 0
    assert room.stock["ZK"] == 1500


def test_interrupted_synthesis_keeps_progress(facility: ProductionFacility, room: Room) -> None:
    facility.step(make_ctx(room))
    facility.step(make_ctx(room))
    deliver_requests(room)
    facility.step(make_ctx(room))
    for _ in range(10):
        facility.step(make_ctx(room))
    assert facility.produced == 50

    lab = room.structures["lab"]
    lab.store.remove("Z", 450)

    assert facility.step(make_ctx(room)) is FacilityState.ACQUIRE_SUBSTRATES
    assert facility.produced == 50

    facility.step(make_ctx(room))
    assert room.requests[("storage", "lab", "Z")].amount == 450
    assert ("storage", "lab", "K") not in room.requests


def test_reserve_gate_blocks_raw_substrate(facility: ProductionFacility, room: Room) -> None:
    storage = room.storage
    storage.store.remove("Z", 9600)
    facility.step(make_ctx(room))

    facility.step(make_ctx(room))

    assert facility.blocked_on == "Z"
    assert ("storage", "lab", "Z") not in room.requests
    assert ("storage", "lab", "K") in room.requests
    assert facility.state is FacilityState.ACQUIRE_SUBSTRATES


def test_idles_without_lab(facility: ProductionFacility, room: Room) -> None:
    del room.structures["lab"]

    assert facility.step(make_ctx(room)) is FacilityState.SELECT_TARGET
    assert facility.target is None


def test_state_round_trips(facility: ProductionFacility, room: Room) -> None:
    facility.step(make_ctx(room))
    saved = facility.to_dict()

    restored = ProductionFacility("lab", ReactionGraph(), ReserveGate(), targets=PLAN)
    restored.load_state(saved)

    assert restored.status() == facility.status()
    assert restored.state is FacilityState.ACQUIRE_SUBSTRATES
