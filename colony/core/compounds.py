"""Compound identifiers, the static reaction table and the standing production plan.

Identifiers follow the host's resource constants (``"H"``, ``"OH"``,
``"XKHO2"``...). The tables here are loaded once and never mutated.
"""

from __future__ import annotations

from types import MappingProxyType

ENERGY = "energy"

# Raw minerals
HYDROGEN = "H"
OXYGEN = "O"
UTRIUM = "U"
LEMERGIUM = "L"
KEANIUM = "K"
ZYNTHIUM = "Z"
CATALYST = "X"

# Base compounds
HYDROXIDE = "OH"
ZYNTHIUM_KEANITE = "ZK"
UTRIUM_LEMERGITE = "UL"
GHODIUM = "G"

# Tier 1
UTRIUM_HYDRIDE = "UH"
UTRIUM_OXIDE = "UO"
KEANIUM_HYDRIDE = "KH"
KEANIUM_OXIDE = "KO"
LEMERGIUM_HYDRIDE = "LH"
LEMERGIUM_OXIDE = "LO"
ZYNTHIUM_HYDRIDE = "ZH"
ZYNTHIUM_OXIDE = "ZO"
GHODIUM_HYDRIDE = "GH"
GHODIUM_OXIDE = "GO"

# Tier 2
UTRIUM_ACID = "UH2O"
UTRIUM_ALKALIDE = "UHO2"
KEANIUM_ACID = "KH2O"
KEANIUM_ALKALIDE = "KHO2"
LEMERGIUM_ACID = "LH2O"
LEMERGIUM_ALKALIDE = "LHO2"
ZYNTHIUM_ACID = "ZH2O"
ZYNTHIUM_ALKALIDE = "ZHO2"
GHODIUM_ACID = "GH2O"
GHODIUM_ALKALIDE = "GHO2"

# Tier 3
CATALYZED_UTRIUM_ACID = "XUH2O"
CATALYZED_UTRIUM_ALKALIDE = "XUHO2"
CATALYZED_KEANIUM_ACID = "XKH2O"
CATALYZED_KEANIUM_ALKALIDE = "XKHO2"
CATALYZED_LEMERGIUM_ACID = "XLH2O"
CATALYZED_LEMERGIUM_ALKALIDE = "XLHO2"
CATALYZED_ZYNTHIUM_ACID = "XZH2O"
CATALYZED_ZYNTHIUM_ALKALIDE = "XZHO2"
CATALYZED_GHODIUM_ACID = "XGH2O"
CATALYZED_GHODIUM_ALKALIDE = "XGHO2"

RAW_MATERIALS: frozenset[str] = frozenset(
    {HYDROGEN, OXYGEN, UTRIUM, LEMERGIUM, KEANIUM, ZYNTHIUM, CATALYST}
)

# product -> (substrate, substrate)
REACTIONS: MappingProxyType[str, tuple[str, str]] = MappingProxyType({
    # Tier 3
    CATALYZED_GHODIUM_ACID: (GHODIUM_ACID, CATALYST),
    CATALYZED_GHODIUM_ALKALIDE: (GHODIUM_ALKALIDE, CATALYST),
    CATALYZED_KEANIUM_ACID: (KEANIUM_ACID, CATALYST),
    CATALYZED_KEANIUM_ALKALIDE: (KEANIUM_ALKALIDE, CATALYST),
    CATALYZED_LEMERGIUM_ACID: (LEMERGIUM_ACID, CATALYST),
    CATALYZED_LEMERGIUM_ALKALIDE: (LEMERGIUM_ALKALIDE, CATALYST),
    CATALYZED_UTRIUM_ACID: (UTRIUM_ACID, CATALYST),
    CATALYZED_UTRIUM_ALKALIDE: (UTRIUM_ALKALIDE, CATALYST),
    CATALYZED_ZYNTHIUM_ACID: (ZYNTHIUM_ACID, CATALYST),
    CATALYZED_ZYNTHIUM_ALKALIDE: (ZYNTHIUM_ALKALIDE, CATALYST),
    # Tier 2
    GHODIUM_ACID: (GHODIUM_HYDRIDE, HYDROXIDE),
    GHODIUM_ALKALIDE: (GHODIUM_OXIDE, HYDROXIDE),
    KEANIUM_ACID: (KEANIUM_HYDRIDE, HYDROXIDE),
    KEANIUM_ALKALIDE: (KEANIUM_OXIDE, HYDROXIDE),
    LEMERGIUM_ACID: (LEMERGIUM_HYDRIDE, HYDROXIDE),
    LEMERGIUM_ALKALIDE: (LEMERGIUM_OXIDE, HYDROXIDE),
    UTRIUM_ACID: (UTRIUM_HYDRIDE, HYDROXIDE),
    UTRIUM_ALKALIDE: (UTRIUM_OXIDE, HYDROXIDE),
    ZYNTHIUM_ACID: (ZYNTHIUM_HYDRIDE, HYDROXIDE),
    ZYNTHIUM_ALKALIDE: (ZYNTHIUM_OXIDE, HYDROXIDE),
    # Tier 1
    GHODIUM_HYDRIDE: (GHODIUM, HYDROGEN),
    GHODIUM_OXIDE: (GHODIUM, OXYGEN),
    KEANIUM_HYDRIDE: (KEANIUM, HYDROGEN),
    KEANIUM_OXIDE: (KEANIUM, OXYGEN),
    LEMERGIUM_HYDRIDE: (LEMERGIUM, HYDROGEN),
    LEMERGIUM_OXIDE: (LEMERGIUM, OXYGEN),
    UTRIUM_HYDRIDE: (UTRIUM, HYDROGEN),
    UTRIUM_OXIDE: (UTRIUM, OXYGEN),
    ZYNTHIUM_HYDRIDE: (ZYNTHIUM, HYDROGEN),
    ZYNTHIUM_OXIDE: (ZYNTHIUM, OXYGEN),
    GHODIUM: (ZYNTHIUM_KEANITE, UTRIUM_LEMERGITE),
    # Base
    ZYNTHIUM_KEANITE: (ZYNTHIUM, KEANIUM),
    UTRIUM_LEMERGITE: (UTRIUM, LEMERGIUM),
    HYDROXIDE: (HYDROGEN, OXYGEN),
})

TIER3_COMPOUNDS: tuple[str, ...] = tuple(p for p in REACTIONS if p.startswith(CATALYST))

# Standing production plan, in priority order: (target, quota)
DEFAULT_PRODUCTION_PLAN: tuple[tuple[str, int], ...] = (
    # Base
    (HYDROXIDE, 4000),
    (ZYNTHIUM_KEANITE, 4000),
    (UTRIUM_LEMERGITE, 4000),
    (GHODIUM, 5000),
    # XKHO2 line
    (KEANIUM_OXIDE, 3000),
    (KEANIUM_ALKALIDE, 2000),
    (CATALYZED_KEANIUM_ALKALIDE, 1000),
    # XLHO2 line
    (LEMERGIUM_OXIDE, 3000),
    (LEMERGIUM_ALKALIDE, 2000),
    (CATALYZED_LEMERGIUM_ALKALIDE, 1000),
    # XZHO2 line
    (ZYNTHIUM_OXIDE, 3000),
    (ZYNTHIUM_ALKALIDE, 2000),
    (CATALYZED_ZYNTHIUM_ALKALIDE, 1000),
    # XGHO2 line
    (GHODIUM_OXIDE, 3000),
    (GHODIUM_ALKALIDE, 2000),
    (CATALYZED_GHODIUM_ALKALIDE, 1000),
)

# Raw stock that must stay in storage before synthesis may draw on it
DEFAULT_RESERVE_THRESHOLDS: MappingProxyType[str, int] = MappingProxyType(
    {mineral: 40000 for mineral in sorted(RAW_MATERIALS)}
)
