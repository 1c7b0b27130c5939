"""Reserve gate — keeps raw stock above configured minimums."""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping

from colony.core.compounds import DEFAULT_RESERVE_THRESHOLDS
from colony.core.errors import InvariantViolation


class ReserveGate:
    """Decides whether synthesis may draw ``amount`` of a compound from storage.

    Consumption is denied when the stock left behind would be at or below
    the compound's threshold. Compounds without a threshold are always
    consumable. The check is side-effect free; stock is shared with other
    agents, so callers re-check right before consuming.
    """

    def __init__(self, thresholds: Mapping[str, int] = DEFAULT_RESERVE_THRESHOLDS) -> None:
        self.thresholds = MappingProxyType(dict(thresholds))

    def threshold(self, compound: str) -> int | None:
        return self.thresholds.get(compound)

    def can_consume(self, compound: str, amount: int, current_stock: int) -> bool:
        if current_stock < 0:
            raise InvariantViolation(f"negative stock for {compound}: {current_stock}")
        if amount < 0:
            raise InvariantViolation(f"negative consumption for {compound}: {amount}")

        threshold = self.thresholds.get(compound)
        if threshold is None:
            return True
        return current_stock - amount > threshold

