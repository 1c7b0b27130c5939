"""Exception types shared by the colony core."""

from __future__ import annotations


class ColonyError(Exception):
    """Base class for recoverable colony errors."""


class UnknownCompound(ColonyError, KeyError):
    """Raised when a compound is neither a raw material nor a known product."""

    def __init__(self, compound: str) -> None:
        super().__init__(compound)
        self.compound = compound

    def __str__(self) -> str:
        return f"unknown compound: {self.compound!r}"


class InvariantViolation(AssertionError):
    """Shared state was observed in a state the invariants rule out.

    This is a programming error, not a recoverable condition: the engine
    lets it propagate instead of isolating it like other hook failures.
    """
