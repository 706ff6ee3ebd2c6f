"""Tests for the Money and Quantity value types."""

from __future__ import annotations

import dataclasses
from decimal import ROUND_HALF_UP, Decimal

import pytest

from common.values import Money, Quantity


def _half_away(x: float) -> float:
    return float(Decimal(str(x)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


@pytest.mark.parametrize("amount", [0, 1, 12.5, 19.99, 0.015, 2.675, 1234.565, -3.335, 0.001])
def test_major_units_round_trip_rounds_to_cents(amount):
    assert Money.from_major_units(amount).to_major_units() == _half_away(amount)


def test_ties_round_away_from_zero():
    assert Money.from_major_units("0.125").cents == 13
    assert Money.from_major_units("-0.125").cents == -13
    assert Money.from_major_units("0.124").cents == 12


def test_from_major_units_accepts_decimal_and_string():
    assert Money.from_major_units(Decimal("7.10")).cents == 710
    assert Money.from_major_units("7.1").cents == 710


@pytest.mark.parametrize("bad", ["abc", "NaN", "Infinity", None])
def test_from_major_units_rejects_non_amounts(bad):
    with pytest.raises(ValueError):
        Money.from_major_units(bad)


@pytest.mark.parametrize("huge", [1e30, "1e40", Decimal("-" + "9" * 40)])
def test_from_major_units_rejects_amounts_too_large_for_cents(huge):
    with pytest.raises(ValueError, match="out of range"):
        Money.from_major_units(huge)


def test_money_requires_integral_cents():
    with pytest.raises(TypeError):
        Money(12.5)
    with pytest.raises(TypeError):
        Money(True)


def test_money_is_immutable():
    price = Money(100)
    with pytest.raises(dataclasses.FrozenInstanceError):
        price.cents = 200


def test_money_renders_two_decimals():
    assert str(Money(250)) == "2.50"
    assert str(Money(-5)) == "-0.05"


def test_quantity_minus_can_go_negative_and_clamp_to_zero():
    result = Quantity(10).minus(15)
    assert result == Quantity(-5)
    assert result.is_negative
    assert result.clamped() == Quantity(0)
    assert Quantity(7).clamped() == Quantity(7)


def test_quantity_covers():
    assert Quantity(5).covers(5)
    assert not Quantity(5).covers(6)


@pytest.mark.parametrize("raw,expected", [(3, 3), (3.0, 3), ("4", 4), (" 2 ", 2), (-1, -1)])
def test_quantity_of_coerces_wire_values(raw, expected):
    assert Quantity.of(raw) == Quantity(expected)


def test_quantity_of_rejects_fractions_and_bools():
    with pytest.raises(ValueError):
        Quantity.of(2.5)
    with pytest.raises(TypeError):
        Quantity.of(False)
    with pytest.raises(TypeError):
        Quantity(1.0)
