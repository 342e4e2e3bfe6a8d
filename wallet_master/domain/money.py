"""Monetary amount helpers

Amounts travel as major units (dollars) everywhere except at the gateway
boundary, where they are converted to minor units (cents).
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any

from wallet_master.domain.exceptions import InvalidRequest

CENT = Decimal("0.01")


def parse_amount(value: Any, field: str = "amount") -> Decimal:
    """
    Validate a client-supplied amount and return it as a Decimal.

    Accepts Decimal, int, float or numeric strings. Floats go through their
    shortest repr so 10.99 stays 10.99 rather than its binary expansion.

    Raises:
        InvalidRequest: missing, non-numeric, non-finite, non-positive, or
            with more than two decimal places
    """
    if value is None or isinstance(value, bool):
        raise InvalidRequest(f"{field} is required")

    try:
        amount = Decimal(repr(value)) if isinstance(value, float) else Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidRequest(f"{field} must be a number")

    if not amount.is_finite():
        raise InvalidRequest(f"{field} must be a finite number")
    if amount <= 0:
        raise InvalidRequest(f"{field} must be greater than zero")
    try:
        quantized = amount.quantize(CENT)
    except InvalidOperation:
        raise InvalidRequest(f"{field} is too large")
    if amount != quantized:
        raise InvalidRequest(f"{field} cannot have more than two decimal places")

    return quantized


def to_minor_units(amount: Decimal) -> int:
    """$12.34 -> 1234"""
    return int((amount * 100).to_integral_value(rounding=ROUND_HALF_UP))


def from_minor_units(cents: int) -> Decimal:
    """1234 -> $12.34"""
    return (Decimal(cents) / 100).quantize(CENT)


def has_fraction(amount: Decimal, fraction: str) -> bool:
    """True when the fractional part of `amount` is exactly `fraction` (e.g. ".99")"""
    return amount.quantize(CENT) % 1 == Decimal(fraction)
