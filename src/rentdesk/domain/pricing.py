"""Rental price resolution.

A rental is priced either from an explicit pricing tier of the item (fixed
price, fixed duration) or from the item's base value per rental period.
"""

import math
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional

from rentdesk.domain.entities import Item, PricingTier, RentalPeriod
from rentdesk.domain.errors import ValidationError
from rentdesk.domain.money import round_cents, to_money

# Month is approximated as 30 days.
PERIOD_UNIT_HOURS = {
    RentalPeriod.HOUR: 1,
    RentalPeriod.DAY: 24,
    RentalPeriod.WEEK: 168,
    RentalPeriod.MONTH: 720,
}


@dataclass(frozen=True)
class PriceQuote:
    """Resolved rental price and the duration it pays for."""

    price: Decimal
    duration_minutes: int
    tier_id: Optional[int] = None


def period_unit_hours(period: RentalPeriod) -> int:
    """Length of one billing unit in hours."""
    return PERIOD_UNIT_HOURS[RentalPeriod(period)]


def hours_between(start: datetime, end: datetime) -> float:
    """Absolute number of hours between two instants."""
    return abs((end - start).total_seconds()) / 3600


def calculate_rental_value(
    base_value: Decimal,
    period: RentalPeriod,
    start: datetime,
    end: datetime,
) -> Decimal:
    """Charge one base value per started period unit."""
    units = math.ceil(hours_between(start, end) / period_unit_hours(period))
    return round_cents(to_money(base_value) * units)


def estimate_duration_minutes(start: datetime, end: datetime) -> int:
    """Round the rental length to whole minutes (half up)."""
    return int(math.floor(hours_between(start, end) * 60 + 0.5))


def resolve_price(
    item: Item,
    start: datetime,
    end: datetime,
    tier: Optional[PricingTier] = None,
) -> PriceQuote:
    """Resolve the price of renting ``item`` from ``start`` to ``end``.

    Args:
        item: Item being rented
        start: Rental start
        end: Expected rental end
        tier: Optional pricing tier chosen by the operator

    Returns:
        PriceQuote with the price and the duration used as late-fee basis

    Raises:
        ValidationError: If the tier belongs to another item
    """
    if tier is not None:
        if tier.item_id != item.id:
            raise ValidationError(f"Pricing tier {tier.id} does not belong to item {item.id}")
        return PriceQuote(
            price=to_money(tier.price),
            duration_minutes=tier.duration_minutes,
            tier_id=tier.id,
        )

    return PriceQuote(
        price=calculate_rental_value(item.base_rental_value, item.rental_period, start, end),
        duration_minutes=estimate_duration_minutes(start, end),
    )
