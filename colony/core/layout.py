"""Starter room layout: hub structures, a lab cluster and the logistics crew."""

from __future__ import annotations

from typing import Optional

import structlog

from colony.config import Settings
from colony.core.agent import Agent, AgentState
from colony.core.body import body_for, carry_capacity
from colony.core.compounds import ENERGY, RAW_MATERIALS
from colony.core.facility import ProductionFacility, ProductionTarget
from colony.core.reactions import ReactionGraph
from colony.core.reserve import ReserveGate
from colony.core.roles import CenterTransferRole, RoleConfig, TaskCarrierRole, TransferRole
from colony.core.room import Room
from colony.core.structures import EXTENSION, LAB, SPAWN, STORAGE, TOWER, Position, Store, Structure

logger = structlog.get_logger()

# Hub anchor; storage sits here, the center tile is directly below it and
# the lab cluster below that.
HUB: Position = (25, 25)

STARTING_STOCK = {ENERGY: 100_000, **{mineral: 50_000 for mineral in sorted(RAW_MATERIALS)}}


def spawn_agent(
    room: Room,
    name: str,
    role_name: str,
    pos: Position,
    energy_capacity: int,
) -> Agent:
    """Create an agent with the body its role's budget allows."""
    role = room.roles[role_name]
    body = body_for(role.body_type, energy_capacity)
    agent = Agent(
        name=name,
        room_name=room.name,
        pos=pos,
        store=Store(capacity=carry_capacity(body)),
        body=body,
        memory=AgentState(role=role_name),
    )
    logger.info("agent_spawned", agent=name, room=room.name, role=role_name, parts=len(body))
    return room.add_agent(agent)


def build_room(
    name: str,
    settings: Settings,
    graph: ReactionGraph,
    gate: ReserveGate,
    targets: Optional[list[ProductionTarget]] = None,
) -> Room:
    """Build a room with storage, spawn, extensions, tower, lab and agents."""
    x, y = HUB
    center: Position = (x, y + 1)

    room = Room(name=name)
    storage = room.add_structure(
        Structure(f"{name}-storage", STORAGE, HUB, Store(contents=dict(STARTING_STOCK)))
    )
    room.storage_id = storage.id
    room.add_structure(Structure(f"{name}-spawn", SPAWN, (x - 5, y), Store(capacity=300)))
    for index in range(5):
        room.add_structure(
            Structure(f"{name}-extension{index}", EXTENSION, (x - 7, y - 2 + index), Store(capacity=50))
        )
    room.add_structure(Structure(f"{name}-tower", TOWER, (x + 5, y), Store(capacity=1000)))
    lab = room.add_structure(Structure(f"{name}-lab", LAB, (x, y + 2), Store(capacity=3000)))

    room.facility = ProductionFacility(
        structure_id=lab.id,
        graph=graph,
        gate=gate,
        targets=targets,
        reaction_amount=settings.reaction_amount,
        batch_size=settings.batch_size,
    )

    roles: dict[str, RoleConfig] = {
        "transfer": TransferRole(),
        "centerTransfer": CenterTransferRole(center),
        "taskCarrier": TaskCarrierRole(),
    }
    room.roles.update(roles)

    spawn_agent(room, f"{name} transfer", "transfer", (x - 4, y), settings.energy_capacity)
    spawn_agent(room, f"{name} centerTransfer", "centerTransfer", (x - 4, y + 1), settings.energy_capacity)
    spawn_agent(room, f"{name} taskCarrier", "taskCarrier", (x + 1, y), settings.energy_capacity)

    logger.info(
        "room_built",
        room=name,
        structures=len(room.structures),
        agents=len(room.agents),
        plan_entries=len(room.facility.targets),
    )
    return room


def build_colony(settings: Settings) -> dict[str, Room]:
    graph = ReactionGraph()
    gate = ReserveGate(settings.reserve_thresholds)
    return {name: build_room(name, settings, graph, gate) for name in settings.room_names}
