from decimal import Decimal

import pytest

from parstock.services.quantities import from_tenths, non_negative_tenths, round1, to_tenths


@pytest.mark.parametrize(
    "raw, expected",
    [
        (5.5, Decimal("5.5")),
        ("2.25", Decimal("2.3")),
        (-2.25, Decimal("-2.3")),
        (0.15, Decimal("0.2")),
        (7, Decimal("7.0")),
        (" 3.04 ", Decimal("3.0")),
    ],
)
def test_round1_half_away_from_zero(raw, expected):
    assert round1(raw) == expected


@pytest.mark.parametrize("raw", [None, "", "abc", float("nan"), float("inf"), "-inf", True])
def test_round1_garbage_is_zero(raw):
    assert round1(raw) == Decimal("0.0")


@pytest.mark.parametrize("raw", [0.05, 1.25, "9.99", -0.04, 123456.789])
def test_round1_is_idempotent(raw):
    once = round1(raw)
    assert round1(once) == once


def test_tenths_conversions():
    assert to_tenths("5.5") == 55
    assert to_tenths(-1.2) == -12
    assert non_negative_tenths(-1.2) == 0
    assert non_negative_tenths("abc") == 0
    assert from_tenths(55) == Decimal("5.5")
    assert from_tenths(0) == Decimal("0.0")
