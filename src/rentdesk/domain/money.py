"""Fixed-point money helpers."""

from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Union

CENT = Decimal("0.01")
ZERO = Decimal("0.00")

# Slack allowed when comparing a payment against the remaining balance.
PAYMENT_TOLERANCE = Decimal("0.01")


def to_money(value: Union[Decimal, int, str, float, None]) -> Decimal:
    """Convert a value to a Decimal quantized to cents.

    Floats go through ``str`` so that 0.1 becomes Decimal("0.10") and not the
    binary expansion.
    """
    if value is None:
        return ZERO
    if isinstance(value, float):
        value = str(value)
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def round_cents(value: Decimal) -> Decimal:
    """Round half-up to two decimal places."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def sum_money(values: Iterable[Decimal]) -> Decimal:
    """Sum amounts, returning 0.00 for an empty iterable."""
    total = ZERO
    for value in values:
        total += value
    return total


def exceeds_limit(amount: Decimal, limit: Decimal) -> bool:
    """True when ``amount`` is over ``limit`` by a cent or more.

    Differences below PAYMENT_TOLERANCE are rounding noise and are accepted.
    """
    return amount - limit >= PAYMENT_TOLERANCE
