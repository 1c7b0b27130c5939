"""Production graph resolver — substrate lookups over the static reaction table.

``ReactionGraph`` answers two kinds of questions:

- one level: which two substrates does a product need right now
  (``resolve``), and which compound should be synthesized first given
  the current stock (``next_step``);
- recursive: the full chain of compounds to synthesize for a product
  (``chain``) and the raw units it consumes (``raw_requirements``).

The table is static, so recursive answers are memoised per product.
"""

from __future__ import annotations

from collections import Counter
from types import MappingProxyType
from typing import Iterable, Mapping, Optional

import structlog

from colony.core.compounds import RAW_MATERIALS, REACTIONS
from colony.core.errors import UnknownCompound

logger = structlog.get_logger()


class ReactionGraph:
    """Immutable product -> substrates dependency forest rooted at raw materials."""

    def __init__(
        self,
        reactions: Mapping[str, tuple[str, str]] = REACTIONS,
        raw_materials: Iterable[str] = RAW_MATERIALS,
    ) -> None:
        """Initialize the graph.

        Args:
            reactions: Mapping of product to its two substrates.
            raw_materials: Leaf compounds that have no further substrates.
        """
        self._reactions = MappingProxyType(dict(reactions))
        self._raw = frozenset(raw_materials)
        self._chains: dict[str, tuple[str, ...]] = {}
        self._tiers: dict[str, int] = {}

    def resolve(self, product: str) -> Optional[tuple[str, str]]:
        """Return the two substrates of ``product``, or None for a raw material.

        Raises:
            UnknownCompound: If ``product`` is neither raw nor in the table.
        """
        if product in self._raw:
            return None
        try:
            return self._reactions[product]
        except KeyError:
            raise UnknownCompound(product) from None

    def is_raw(self, compound: str) -> bool:
        """Check whether ``compound`` is a leaf of the graph."""
        if compound in self._raw:
            return True
        if compound in self._reactions:
            return False
        raise UnknownCompound(compound)

    def knows(self, compound: str) -> bool:
        return compound in self._raw or compound in self._reactions

    def tier(self, product: str) -> int:
        """Depth of ``product`` above the raw materials (raw = 0)."""
        if product not in self._tiers:
            substrates = self.resolve(product)
            if substrates is None:
                self._tiers[product] = 0
            else:
                self._tiers[product] = 1 + max(self.tier(s) for s in substrates)
        return self._tiers[product]

    def chain(self, product: str) -> tuple[str, ...]:
        """Every compound to synthesize for ``product``, dependencies first.

        Raw materials are excluded; ``product`` itself is last. Empty for a
        raw material.
        """
        cached = self._chains.get(product)
        if cached is not None:
            return cached

        substrates = self.resolve(product)
        if substrates is None:
            steps: tuple[str, ...] = ()
        else:
            ordered: list[str] = []
            for substrate in substrates:
                for step in self.chain(substrate):
                    if step not in ordered:
                        ordered.append(step)
            ordered.append(product)
            steps = tuple(ordered)

        self._chains[product] = steps
        return steps

    def raw_requirements(self, product: str, amount: int = 1) -> dict[str, int]:
        """Raw units consumed to make ``amount`` of ``product``.

        Every reaction turns one unit of each substrate into one unit of
        product.
        """
        totals: Counter[str] = Counter()
        substrates = self.resolve(product)
        if substrates is None:
            totals[product] += amount
            return dict(totals)
        for substrate in substrates:
            totals.update(self.raw_requirements(substrate, amount))
        return dict(totals)

    def next_step(self, product: str, stock: Mapping[str, int], amount: int) -> str:
        """The compound to synthesize first on the way to ``product``.

        Descends into the first intermediate substrate whose stock is below
        ``amount``; returns ``product`` itself once all its intermediates
        are stocked.
        """
        substrates = self.resolve(product)
        if substrates is None:
            return product
        for substrate in substrates:
            if not self.is_raw(substrate) and stock.get(substrate, 0) < amount:
                logger.debug(
                    "reaction_descend",
                    product=product,
                    substrate=substrate,
                    stock=stock.get(substrate, 0),
                    amount=amount,
                )
                return self.next_step(substrate, stock, amount)
        return product
