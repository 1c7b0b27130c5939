"""Production facility — the synthesis cycle of one lab cluster.

The facility cycles through four states in fixed order:

    SELECT_TARGET -> ACQUIRE_SUBSTRATES -> SYNTHESIZING -> DEPOSIT_OUTPUT -> SELECT_TARGET

Substrates and output move through the room's logistics requests; the
facility itself only reads stock, issues requests and runs reactions on
its own store. Waiting is staying in the same state on the next tick.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Iterable, Mapping, Optional

import structlog

from colony.bus.channels import Channels
from colony.bus.events import FacilityEvent
from colony.core.compounds import DEFAULT_PRODUCTION_PLAN
from colony.core.errors import UnknownCompound
from colony.core.logistics import TransferRequest
from colony.core.reactions import ReactionGraph
from colony.core.reserve import ReserveGate

if TYPE_CHECKING:
    from colony.core.room import TickContext
    from colony.core.structures import Structure

logger = structlog.get_logger()


class FacilityState(str, Enum):
    SELECT_TARGET = "getTarget"
    ACQUIRE_SUBSTRATES = "getResource"
    SYNTHESIZING = "working"
    DEPOSIT_OUTPUT = "putResource"


_NEXT_STATE = {
    FacilityState.SELECT_TARGET: FacilityState.ACQUIRE_SUBSTRATES,
    FacilityState.ACQUIRE_SUBSTRATES: FacilityState.SYNTHESIZING,
    FacilityState.SYNTHESIZING: FacilityState.DEPOSIT_OUTPUT,
    FacilityState.DEPOSIT_OUTPUT: FacilityState.SELECT_TARGET,
}


@dataclass(frozen=True)
class ProductionTarget:
    """One entry of the standing production plan."""

    target: str
    number: int


def default_plan() -> list[ProductionTarget]:
    return [ProductionTarget(target, number) for target, number in DEFAULT_PRODUCTION_PLAN]


@dataclass(frozen=True)
class Selection:
    """Result of a priority scan."""

    entry: ProductionTarget
    step: str  # compound to synthesize now, possibly an intermediate of entry.target
    amount: int


class ProductionFacility:
    """State machine driving one facility structure.

    Attributes:
        state: Current ``FacilityState``.
        plan_target: Plan entry the current batch works towards.
        target: Compound synthesized by the current batch.
        substrates: The two substrates of ``target``.
        batch: Units planned for the current batch.
        produced: Units synthesized so far in the current batch.
    """

    def __init__(
        self,
        structure_id: str,
        graph: ReactionGraph,
        gate: ReserveGate,
        targets: Optional[Iterable[ProductionTarget]] = None,
        reaction_amount: int = 5,
        batch_size: int = 500,
    ) -> None:
        """Initialize the facility.

        Args:
            structure_id: Structure whose store holds substrates and output.
            graph: Reaction graph for substrate resolution.
            gate: Reserve gate consulted before raw stock is requested.
            targets: Production plan in priority order.
            reaction_amount: Units synthesized per tick.
            batch_size: Upper bound of a batch.
        """
        self.structure_id = structure_id
        self.graph = graph
        self.gate = gate
        self.targets: list[ProductionTarget] = list(targets) if targets is not None else default_plan()
        self.reaction_amount = reaction_amount
        self.batch_size = batch_size

        self.state = FacilityState.SELECT_TARGET
        self.plan_target: Optional[str] = None
        self.target: Optional[str] = None
        self.substrates: Optional[tuple[str, str]] = None
        self.batch = 0
        self.produced = 0
        self.blocked_on: Optional[str] = None
        self._reported_raw: set[str] = set()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def step(self, ctx: TickContext) -> FacilityState:
        """Run one tick of the current state's work."""
        room = ctx.room
        structure = room.structures.get(self.structure_id)
        if structure is None or room.storage is None:
            logger.debug("facility_idle", room=room.name, structure_id=self.structure_id, reason="missing_structure")
            return self.state

        if self.state is FacilityState.SELECT_TARGET:
            self._select(ctx)
        elif self.state is FacilityState.ACQUIRE_SUBSTRATES:
            self._acquire(ctx, structure)
        elif self.state is FacilityState.SYNTHESIZING:
            self._synthesize(ctx, structure)
        else:
            self._deposit(ctx, structure)
        return self.state

    def select_target(self, stock: Mapping[str, int]) -> Optional[Selection]:
        """Scan the plan in priority order for the first entry below quota.

        Depends only on the plan order and ``stock``; entries naming a raw
        material or an unknown compound are logged and skipped.
        """
        for entry in self.targets:
            current = stock.get(entry.target, 0)
            if current >= entry.number:
                continue
            amount = min(self.batch_size, entry.number - current)
            try:
                if self.graph.is_raw(entry.target):
                    logger.debug("production_target_raw", target=entry.target)
                    continue
                step = self.graph.next_step(entry.target, stock, amount)
            except UnknownCompound as exc:
                logger.warning("production_target_unknown", target=entry.target, error=str(exc))
                continue
            return Selection(entry=entry, step=step, amount=amount)
        return None

    def status(self) -> dict[str, Any]:
        """Read-only view for dashboards."""
        return {
            "structure_id": self.structure_id,
            "state": self.state.value,
            "plan_target": self.plan_target,
            "target": self.target,
            "substrates": list(self.substrates) if self.substrates else None,
            "batch": self.batch,
            "produced": self.produced,
            "blocked_on": self.blocked_on,
        }

    def to_dict(self) -> dict[str, Any]:
        return self.status()

    def load_state(self, data: Mapping[str, Any]) -> None:
        self.state = FacilityState(data["state"])
        self.plan_target = data.get("plan_target")
        self.target = data.get("target")
        substrates = data.get("substrates")
        self.substrates = (substrates[0], substrates[1]) if substrates else None
        self.batch = int(data.get("batch", 0))
        self.produced = int(data.get("produced", 0))
        self.blocked_on = data.get("blocked_on")

    # ------------------------------------------------------------------
    # State handlers
    # ------------------------------------------------------------------

    def _select(self, ctx: TickContext) -> None:
        self._report_raw_targets(ctx)
        selection = self.select_target(ctx.room.stock)
        if selection is None:
            return

        substrates = self.graph.resolve(selection.step)
        assert substrates is not None

        self.plan_target = selection.entry.target
        self.target = selection.step
        self.substrates = substrates
        self.batch = selection.amount
        self.produced = 0
        self.blocked_on = None
        logger.info(
            "facility_target_selected",
            room=ctx.room.name,
            plan_target=self.plan_target,
            target=self.target,
            substrates=list(substrates),
            batch=self.batch,
        )
        self._advance(ctx, _NEXT_STATE[self.state])

    def _acquire(self, ctx: TickContext, structure: Structure) -> None:
        room = ctx.room
        storage = room.storage
        assert storage is not None and self.substrates is not None

        remaining = self.batch - self.produced
        missing = False
        blocked: Optional[str] = None

        for substrate in self.substrates:
            key = (storage.id, structure.id, substrate)
            need = remaining - structure.store.get(substrate)
            if need <= 0:
                room.cancel_request(key)
                continue

            missing = True
            if room.has_active(key):
                continue

            if self.graph.is_raw(substrate) and not self.gate.can_consume(
                substrate, need, storage.store.get(substrate)
            ):
                room.cancel_request(key)
                blocked = substrate
                continue

            room.request_transfer(
                TransferRequest(
                    source_id=storage.id,
                    target_id=structure.id,
                    resource_type=substrate,
                    amount=need,
                    requested_by=f"facility:{structure.id}",
                )
            )

        if blocked is not None and blocked != self.blocked_on:
            logger.info(
                "facility_reserve_blocked",
                room=room.name,
                substrate=blocked,
                stock=storage.store.get(blocked),
                threshold=self.gate.threshold(blocked),
            )
        self.blocked_on = blocked

        if not missing:
            self._advance(ctx, _NEXT_STATE[self.state])

    def _synthesize(self, ctx: TickContext, structure: Structure) -> None:
        assert self.substrates is not None and self.target is not None

        remaining = self.batch - self.produced
        if remaining <= 0:
            self._advance(ctx, _NEXT_STATE[self.state])
            return

        amount = min(self.reaction_amount, remaining)
        first, second = self.substrates
        store = structure.store
        if store.get(first) < amount or store.get(second) < amount:
            logger.info(
                "facility_substrate_exhausted",
                room=ctx.room.name,
                target=self.target,
                produced=self.produced,
                batch=self.batch,
            )
            self._advance(ctx, FacilityState.ACQUIRE_SUBSTRATES)
            return

        store.remove(first, amount)
        store.remove(second, amount)
        store.add(self.target, amount)
        self.produced += amount

        if self.produced >= self.batch:
            self._advance(ctx, _NEXT_STATE[self.state])

    def _deposit(self, ctx: TickContext, structure: Structure) -> None:
        room = ctx.room
        storage = room.storage
        assert storage is not None

        contents = structure.store.as_dict()
        if not contents:
            logger.info(
                "facility_batch_deposited",
                room=room.name,
                target=self.target,
                produced=self.produced,
            )
            self.plan_target = None
            self.target = None
            self.substrates = None
            self.batch = 0
            self.produced = 0
            self._advance(ctx, _NEXT_STATE[self.state])
            return

        for resource, amount in contents.items():
            key = (structure.id, storage.id, resource)
            if room.has_active(key):
                continue
            room.request_transfer(
                TransferRequest(
                    source_id=structure.id,
                    target_id=storage.id,
                    resource_type=resource,
                    amount=amount,
                    requested_by=f"facility:{structure.id}",
                )
            )

    def _report_raw_targets(self, ctx: TickContext) -> None:
        # Once per plan entry; the scan skips them on every tick
        for entry in self.targets:
            if entry.target in self._reported_raw or not self.graph.knows(entry.target):
                continue
            if self.graph.is_raw(entry.target):
                self._reported_raw.add(entry.target)
                ctx.notify("raw_production_target", f"{entry.target} is a raw material")

    def _advance(self, ctx: TickContext, new_state: FacilityState) -> None:
        old_state = self.state
        self.state = new_state
        logger.info(
            "facility_state_changed",
            room=ctx.room.name,
            structure_id=self.structure_id,
            from_state=old_state.value,
            to_state=new_state.value,
            target=self.target,
            produced=self.produced,
            tick=ctx.tick,
        )
        ctx.emit(
            Channels.FACILITY,
            FacilityEvent(
                room=ctx.room.name,
                structure_id=self.structure_id,
                from_state=old_state.value,
                to_state=new_state.value,
                target=self.target,
                produced=self.produced,
                tick=ctx.tick,
            ),
        )
