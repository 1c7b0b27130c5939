"""Core colony model — rooms, agents, logistics tasks, production graph.

The tick engine and room layout live in ``colony.core.engine`` and
``colony.core.layout``; they depend on ``colony.config`` and are not
re-exported here.
"""

from colony.core.errors import ColonyError, InvariantViolation, UnknownCompound
from colony.core.logistics import LogisticsTask, TransferRequest
from colony.core.reactions import ReactionGraph
from colony.core.reserve import ReserveGate
from colony.core.room import Room, TickContext

__all__ = [
    "ColonyError",
    "InvariantViolation",
    "UnknownCompound",
    "LogisticsTask",
    "TransferRequest",
    "ReactionGraph",
    "ReserveGate",
    "Room",
    "TickContext",
]
