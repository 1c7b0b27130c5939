"""Room state, transfer request and reaction lookup routes.

Provides:
- GET  /api/rooms                     summary per room
- GET  /api/rooms/{name}              facility, task, requests and stock
- POST /api/rooms/{name}/requests     queue a transfer request
- GET  /api/reactions/{product}       substrates and full synthesis chain
"""

from __future__ import annotations

from typing import Any, Optional

import structlog
from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel, Field

from colony.core.errors import UnknownCompound
from colony.core.logistics import TransferRequest
from colony.core.room import Room

logger = structlog.get_logger()

router = APIRouter()


# -------------------------------------------------------------------------
# Request/Response Models
# -------------------------------------------------------------------------


class RoomSummary(BaseModel):
    """One row of the rooms listing."""

    name: str = Field(..., description="Room name")
    agent_count: int = Field(..., description="Agents in the room")
    facility_state: Optional[str] = Field(default=None, description="Production facility state")
    facility_target: Optional[str] = Field(default=None, description="Compound being synthesized")
    task_id: Optional[str] = Field(default=None, description="Active logistics task")
    queued_requests: int = Field(..., description="Transfer requests waiting for publication")


class RoomDetail(BaseModel):
    """Full view of one room."""

    name: str
    tick: int = Field(..., description="Current simulation tick")
    facility: Optional[dict[str, Any]] = Field(default=None, description="Facility status")
    task: Optional[dict[str, Any]] = Field(default=None, description="Active logistics task")
    requests: list[dict[str, Any]] = Field(default_factory=list, description="Queued transfer requests")
    stock: dict[str, int] = Field(default_factory=dict, description="Storage contents")
    agents: list[dict[str, Any]] = Field(default_factory=list, description="Agent name, role and mode")


class TransferRequestBody(BaseModel):
    """Request model for queueing a transfer."""

    source_id: str = Field(..., description="Structure to withdraw from")
    target_id: str = Field(..., description="Structure to deliver to")
    resource_type: str = Field(..., description="Resource to move")
    amount: int = Field(..., gt=0, description="Units to move")


class TransferRequestResponse(BaseModel):
    queued: bool = Field(..., description="False when an active task already covers the transfer")
    request: dict[str, Any]


class ReactionResponse(BaseModel):
    """Response model for a reaction lookup."""

    product: str
    raw: bool = Field(..., description="True for raw materials, which have no reaction")
    substrates: Optional[list[str]] = Field(default=None, description="The two direct substrates")
    tier: int = Field(..., description="0 for raw materials, depth of the reaction tree otherwise")
    chain: list[str] = Field(default_factory=list, description="Synthesis order ending with the product")
    raw_requirements: dict[str, int] = Field(
        default_factory=dict, description="Raw materials consumed per unit of product"
    )


# -------------------------------------------------------------------------
# Helpers
# -------------------------------------------------------------------------


def _get_room(request: Request, name: str) -> Room:
    room = request.app.state.app_state.room(name)
    if room is None:
        raise HTTPException(status_code=404, detail=f"Room '{name}' not found")
    return room


# -------------------------------------------------------------------------
# Rooms
# -------------------------------------------------------------------------


@router.get("/rooms", response_model=list[RoomSummary])
async def list_rooms(request: Request) -> list[RoomSummary]:
    engine = request.app.state.app_state.engine
    summaries = []
    for room in engine.rooms.values():
        facility = room.facility
        summaries.append(
            RoomSummary(
                name=room.name,
                agent_count=len(room.agents),
                facility_state=facility.state.value if facility else None,
                facility_target=facility.target if facility else None,
                task_id=room.task.task_id if room.task else None,
                queued_requests=len(room.requests),
            )
        )
    return summaries


@router.get("/rooms/{name}", response_model=RoomDetail)
async def get_room(name: str, request: Request) -> RoomDetail:
    """Get one room's facility progress, active task, queue and stock.

    Raises:
        HTTPException: 404 if the room does not exist.
    """
    room = _get_room(request, name)
    engine = request.app.state.app_state.engine

    return RoomDetail(
        name=room.name,
        tick=engine.tick_counter,
        facility=room.facility.status() if room.facility else None,
        task=room.task.to_dict() if room.task else None,
        requests=[r.to_dict() for r in room.requests.values()],
        stock=dict(room.stock),
        agents=[
            {"name": a.name, "role": a.memory.role, "ready": a.memory.ready, "working": a.memory.working}
            for a in room.agents.values()
        ],
    )


@router.post("/rooms/{name}/requests", response_model=TransferRequestResponse)
async def queue_transfer_request(
    name: str,
    body: TransferRequestBody,
    request: Request,
) -> TransferRequestResponse:
    """Queue a transfer request for the room's logistics planner.

    Raises:
        HTTPException: 404 if the room does not exist, 422 if either
            endpoint is not a structure of the room.
    """
    room = _get_room(request, name)

    for structure_id in (body.source_id, body.target_id):
        if structure_id not in room.structures:
            raise HTTPException(
                status_code=422,
                detail=f"Structure '{structure_id}' not found in room '{name}'",
            )

    transfer = TransferRequest(
        source_id=body.source_id,
        target_id=body.target_id,
        resource_type=body.resource_type,
        amount=body.amount,
        requested_by="api",
    )
    queued = room.request_transfer(transfer)

    logger.info(
        "transfer_request_received",
        room=name,
        source_id=body.source_id,
        target_id=body.target_id,
        resource_type=body.resource_type,
        amount=body.amount,
        queued=queued,
    )

    return TransferRequestResponse(queued=queued, request=transfer.to_dict())


# -------------------------------------------------------------------------
# Reactions
# -------------------------------------------------------------------------


@router.get("/reactions/{product}", response_model=ReactionResponse)
async def get_reaction(product: str, request: Request) -> ReactionResponse:
    """Look up the substrates and synthesis chain of a compound.

    Raises:
        HTTPException: 404 if the compound is unknown.
    """
    graph = request.app.state.app_state.graph
    try:
        substrates = graph.resolve(product)
    except UnknownCompound as exc:
        raise HTTPException(status_code=404, detail=str(exc))

    return ReactionResponse(
        product=product,
        raw=substrates is None,
        substrates=list(substrates) if substrates else None,
        tier=graph.tier(product),
        chain=list(graph.chain(product)),
        raw_requirements=graph.raw_requirements(product),
    )
