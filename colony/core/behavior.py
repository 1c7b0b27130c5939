"""Agent behavior engine — runs one role step per agent per tick."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from colony.core.agent import Agent

if TYPE_CHECKING:
    from colony.core.roles import RoleConfig
    from colony.core.room import TickContext

logger = structlog.get_logger()


class BehaviorEngine:
    """Dispatches an agent to its role's hooks for one tick.

    Order within a tick:
    1. Until the role reports ready, run ``prepare`` and stop there.
    2. Evaluate ``is_delivering`` and persist it as ``memory.working``.
    3. Run ``deliver`` when delivering, ``acquire`` otherwise.
    4. Re-evaluate ``is_delivering`` so the stored mode reflects the
       agent's cargo after the action.

    The mode is recomputed every tick rather than cached, so an agent that
    loses its cargo mid-delivery is back to acquiring on the next
    evaluation.
    """

    def run(self, agent: Agent, ctx: TickContext) -> None:
        role = ctx.room.roles.get(agent.memory.role)
        if role is None:
            ctx.notify("unknown_role", f"no role configured for {agent.memory.role!r}", agent=agent.name)
            return

        if not agent.memory.ready:
            if not role.is_ready(agent, ctx):
                role.prepare(agent, ctx)
                return
            agent.memory.ready = True
            logger.info("agent_ready", agent=agent.name, role=agent.memory.role, tick=ctx.tick)

        working = self._evaluate_mode(agent, role, ctx)
        if working:
            role.deliver(agent, ctx)
        else:
            role.acquire(agent, ctx)
        self._evaluate_mode(agent, role, ctx)

    @staticmethod
    def _evaluate_mode(agent: Agent, role: RoleConfig, ctx: TickContext) -> bool:
        working = bool(role.is_delivering(agent))
        if working != agent.memory.working:
            logger.debug(
                "agent_mode_changed",
                agent=agent.name,
                mode="delivering" if working else "acquiring",
                tick=ctx.tick,
            )
            agent.memory.working = working
        return working
