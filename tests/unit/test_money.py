"""Unit tests for amount parsing and minor-unit conversion"""

from decimal import Decimal

import pytest

from wallet_master.domain.exceptions import InvalidRequest
from wallet_master.domain.money import from_minor_units, has_fraction, parse_amount, to_minor_units


@pytest.mark.parametrize(
    "raw, expected",
    [
        (10, Decimal("10.00")),
        ("10.5", Decimal("10.50")),
        (10.99, Decimal("10.99")),
        (0.1, Decimal("0.10")),
        (Decimal("0.01"), Decimal("0.01")),
    ],
)
def test_parse_amount_accepts_positive_numbers(raw, expected):
    assert parse_amount(raw) == expected


@pytest.mark.parametrize("raw", [None, False, "", "ten", [], 0, "-1", "NaN", "-Infinity", "1.005"])
def test_parse_amount_rejects(raw):
    with pytest.raises(InvalidRequest):
        parse_amount(raw)


def test_parse_amount_names_the_field():
    with pytest.raises(InvalidRequest, match="targetAmount is required"):
        parse_amount(None, field="targetAmount")


def test_minor_unit_conversion():
    assert to_minor_units(Decimal("12.34")) == 1234
    assert to_minor_units(Decimal("0.10")) == 10
    assert from_minor_units(1234) == Decimal("12.34")
    assert from_minor_units(5) == Decimal("0.05")


def test_has_fraction():
    assert has_fraction(Decimal("10.99"), ".99")
    assert has_fraction(Decimal("0.99"), ".99")
    assert not has_fraction(Decimal("10.98"), ".99")
    assert not has_fraction(Decimal("99.00"), ".99")
