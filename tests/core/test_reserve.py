"""Tests for the reserve gate."""

from __future__ import annotations

import pytest

from colony.core.errors import InvariantViolation
from colony.core.reserve import ReserveGate


@pytest.fixture
def gate() -> ReserveGate:
    return ReserveGate({"H": 40000, "O": 40000})


def test_allows_consumption_above_threshold(gate: ReserveGate) -> None:
    assert gate.can_consume("H", 500, 50000) is True


def test_denies_consumption_landing_on_threshold(gate: ReserveGate) -> None:
    assert gate.can_consume("H", 10000, 50000) is False


def test_boundary_one_unit_either_side(gate: ReserveGate) -> None:
    assert gate.can_consume("H", 9999, 50000) is True
    assert gate.can_consume("H", 10001, 50000) is False


def test_denies_when_stock_already_below_threshold(gate: ReserveGate) -> None:
    assert gate.can_consume("O", 1, 30000) is False


def test_compound_without_threshold_is_always_consumable(gate: ReserveGate) -> None:
    assert gate.threshold("OH") is None
    assert gate.can_consume("OH", 500, 0) is True


def test_default_thresholds_cover_raw_minerals() -> None:
    gate = ReserveGate()

    for mineral in ("H", "O", "U", "L", "K", "Z", "X"):
        assert gate.threshold(mineral) == 40000


def test_thresholds_are_read_only(gate: ReserveGate) -> None:
    with pytest.raises(TypeError):
        gate.thresholds["H"] = 0  # type: ignore[index]


def test_negative_inputs_are_invariant_violations(gate: ReserveGate) -> None:
    with pytest.raises(InvariantViolation):
        gate.can_consume("H", 1, -5)
    with pytest.raises(InvariantViolation):
        gate.can_consume("H", -1, 50000)
