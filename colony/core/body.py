"""Body part tables per body type, tiered by spawn energy budget."""

from __future__ import annotations

WORK = "work"
CARRY = "carry"
MOVE = "move"

CARRY_CAPACITY = 50

_TIERS = (300, 550, 800, 1300, 1800, 2300, 5600, 12900)

BODY_CONFIGS: dict[str, dict[int, list[str]]] = {
    "worker": {
        budget: [WORK, CARRY, MOVE] * count
        for budget, count in zip(_TIERS, (1, 2, 3, 4, 6, 7, 9, 14))
    },
    "transfer": {
        300: [CARRY, CARRY, MOVE],
        550: [CARRY, CARRY, MOVE, CARRY, MOVE],
        800: [CARRY, CARRY, MOVE] * 2,
        1300: [CARRY, CARRY, MOVE] * 2 + [CARRY, MOVE],
        1800: [CARRY, CARRY, MOVE] * 4,
        2300: [CARRY, CARRY, MOVE] * 5,
        5600: [CARRY, CARRY, MOVE] * 7,
        12900: [CARRY, CARRY, MOVE] * 9,
    },
    "centerTransfer": {
        300: [CARRY, CARRY, MOVE],
        550: [CARRY, CARRY, MOVE],
        800: [CARRY] * 5 + [MOVE],
        1300: [CARRY] * 7 + [MOVE],
        1800: [CARRY] * 11 + [MOVE],
        2300: [CARRY] * 14 + [MOVE],
        5600: [CARRY] * 26 + [MOVE],
        12900: [CARRY] * 38 + [MOVE],
    },
}


def body_for(body_type: str, energy_capacity: int) -> list[str]:
    """Largest body of ``body_type`` whose tier fits ``energy_capacity``.

    Falls back to the smallest tier when the budget is below every tier.
    """
    tiers = BODY_CONFIGS[body_type]
    fitting = [budget for budget in tiers if budget <= energy_capacity]
    budget = max(fitting) if fitting else min(tiers)
    return list(tiers[budget])


def carry_capacity(body: list[str]) -> int:
    return body.count(CARRY) * CARRY_CAPACITY
