"""Rental lifecycle service.

A rental is created ``active``, may be flagged ``overdue`` by the overdue
sweep, and ends either ``completed`` or ``cancelled``. The rented item is
reserved on creation and released when the rental ends.
"""

import logging
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Optional

from rentdesk.database.base import Database
from rentdesk.domain import audit
from rentdesk.domain.audit import AuditSink, LoggingAuditSink
from rentdesk.domain.clock import Clock, SystemClock
from rentdesk.domain.entities import ItemStatus, PaymentMethod, Rental, RentalStatus
from rentdesk.domain.errors import (
    NotFoundError,
    ValidationError,
    ConflictError,
    client_not_found,
    item_not_found,
    item_unavailable,
    rental_not_found,
)
from rentdesk.domain.money import ZERO, exceeds_limit, round_cents, to_money
from rentdesk.domain.pricing import resolve_price

logger = logging.getLogger(__name__)

# Rate basis for rentals that carry no pricing duration. This is an
# approximation kept for older rentals; it ignores the item's rental period.
LATE_FEE_FALLBACK_MINUTES = 60

DEPOSIT_PAYMENT_METHOD = PaymentMethod.CASH
DEPOSIT_PAYMENT_NOTE = "Deposit (advance payment)"

_ONE_MINUTE = timedelta(minutes=1)


def minutes_late(expected_end: datetime, actual_end: datetime) -> int:
    """Whole minutes past the expected end, rounded up. 0 when on time."""
    if actual_end <= expected_end:
        return 0
    # Ceiling division on timedelta keeps sub-second precision exact
    return -((expected_end - actual_end) // _ONE_MINUTE)


def calculate_late_fee(
    rental_value: Decimal,
    pricing_duration_minutes: Optional[int],
    expected_end: datetime,
    actual_end: datetime,
) -> Decimal:
    """Prorate the rental value per minute of delay.

    Args:
        rental_value: Price paid for the contracted duration
        pricing_duration_minutes: Contracted duration; falls back to 60 when missing
        expected_end: Contracted end
        actual_end: Actual return time

    Returns:
        Late fee rounded half-up to cents
    """
    late = minutes_late(expected_end, actual_end)
    if late == 0:
        return ZERO

    duration = pricing_duration_minutes or LATE_FEE_FALLBACK_MINUTES
    per_minute = to_money(rental_value) / Decimal(duration)
    return round_cents(per_minute * late)


class RentalService:
    """Service for the rental lifecycle."""

    def __init__(self, db: Database, clock: Optional[Clock] = None, audit_sink: Optional[AuditSink] = None):
        """Initialize rental service.

        Args:
            db: Database instance
            clock: Source of the current time (defaults to system clock)
            audit_sink: Destination of audit events (defaults to logging)
        """
        self.db = db
        self.clock = clock or SystemClock()
        self.audit = audit_sink or LoggingAuditSink()

    def create(
        self,
        client_id: int,
        item_id: int,
        start_date: datetime,
        expected_end_date: datetime,
        user_id: int,
        deposit: Decimal = Decimal("0"),
        discount: Decimal = Decimal("0"),
        observations: Optional[str] = None,
        pricing_tier_id: Optional[int] = None,
    ) -> Rental:
        """Create a rental and reserve its item.

        The price comes from the chosen pricing tier, or else from the item's
        base value per rental period. A positive deposit is recorded as a
        cash payment on the new rental.

        Args:
            client_id: Renting client
            item_id: Rented item
            start_date: Rental start
            expected_end_date: Contracted return time
            user_id: Acting user
            deposit: Amount paid up front
            discount: Discount on the rental value
            observations: Optional notes
            pricing_tier_id: Optional pricing tier of the item

        Returns:
            Created rental

        Raises:
            NotFoundError: If the client or item doesn't exist
            ValidationError: If the client or item is inactive, or an input is out of range
            ConflictError: If the item is not available
        """
        deposit = to_money(deposit)
        discount = to_money(discount)
        if expected_end_date <= start_date:
            raise ValidationError("Expected end date must be after the start date")
        if deposit < 0:
            raise ValidationError("Deposit cannot be negative")
        if discount < 0:
            raise ValidationError("Discount cannot be negative")

        client = self.db.get_client(client_id)
        if client is None:
            raise NotFoundError(client_not_found(client_id))
        if not client.active:
            raise ValidationError(f"Client {client_id} is inactive")

        item = self.db.get_item(item_id)
        if item is None:
            raise NotFoundError(item_not_found(item_id))
        if not item.active:
            raise ValidationError(f"Item {item_id} is inactive")
        if item.status != ItemStatus.AVAILABLE:
            raise ConflictError(item_unavailable(item.status.value))

        tier = None
        if pricing_tier_id is not None:
            tier = self.db.get_pricing_tier(pricing_tier_id)
            if tier is None or tier.item_id != item_id:
                raise ValidationError(f"Pricing tier {pricing_tier_id} is not valid for item {item_id}")

        quote = resolve_price(item, start_date, expected_end_date, tier)
        if discount > quote.price:
            raise ValidationError(
                f"Discount {discount:.2f} exceeds the rental value {quote.price:.2f}"
            )
        total_value = quote.price - discount
        if exceeds_limit(deposit, total_value):
            raise ValidationError(
                f"Deposit {deposit:.2f} exceeds the rental total {total_value:.2f}"
            )

        now = self.clock.now()
        rental_id = self.db.create_rental(
            client_id=client_id,
            item_id=item_id,
            start_date=start_date,
            expected_end_date=expected_end_date,
            rental_value=quote.price,
            deposit=deposit,
            discount=discount,
            total_value=total_value,
            pricing_duration_minutes=quote.duration_minutes,
            created_at=now,
            observations=observations,
            deposit_payment_method=DEPOSIT_PAYMENT_METHOD if deposit > 0 else None,
            deposit_payment_notes=DEPOSIT_PAYMENT_NOTE if deposit > 0 else None,
        )
        logger.info("Created rental %s for item %s, value %s", rental_id, item_id, quote.price)
        audit.emit(
            self.audit,
            now,
            user_id,
            audit.RENTAL_CREATE,
            "rental",
            rental_id,
            f"client {client_id}, item {item.code}, value {quote.price:.2f}, deposit {deposit:.2f}",
        )
        return self.db.get_rental(rental_id)

    def get_rental(self, rental_id: int) -> Optional[Rental]:
        """Get rental by ID."""
        return self.db.get_rental(rental_id)

    def list_rentals(
        self,
        status: Optional[RentalStatus] = None,
        client_id: Optional[int] = None,
        item_id: Optional[int] = None,
    ) -> list[Rental]:
        """List rentals, newest first."""
        return self.db.list_rentals(status=status, client_id=client_id, item_id=item_id)

    def _get_open_rental(self, rental_id: int, verb: str) -> Rental:
        rental = self.db.get_rental(rental_id)
        if rental is None:
            raise NotFoundError(rental_not_found(rental_id))
        if not rental.is_open:
            raise ValidationError(
                f"Rental {rental_id} cannot be {verb} (status: {rental.status.value})"
            )
        return rental

    def complete(
        self,
        rental_id: int,
        user_id: int,
        actual_end_date: Optional[datetime] = None,
    ) -> Rental:
        """Complete a rental, charging a late fee when returned late.

        Args:
            rental_id: Rental ID
            user_id: Acting user
            actual_end_date: Return time (defaults to now)

        Returns:
            Completed rental

        Raises:
            NotFoundError: If the rental doesn't exist
            ValidationError: If the rental is already completed or cancelled
        """
        rental = self._get_open_rental(rental_id, "completed")

        now = self.clock.now()
        actual_end = actual_end_date or now
        late_fee = calculate_late_fee(
            rental.rental_value,
            rental.pricing_duration_minutes,
            rental.expected_end_date,
            actual_end,
        )
        total_value = rental.rental_value - rental.discount + late_fee

        self.db.complete_rental(
            rental_id=rental_id,
            actual_end_date=actual_end,
            late_fee=late_fee,
            total_value=total_value,
            updated_at=now,
        )
        logger.info("Completed rental %s, late fee %s", rental_id, late_fee)
        audit.emit(
            self.audit,
            now,
            user_id,
            audit.RENTAL_COMPLETE,
            "rental",
            rental_id,
            f"discount {rental.discount:.2f}, late fee {late_fee:.2f}, total {total_value:.2f}",
        )
        return self.db.get_rental(rental_id)

    def cancel(self, rental_id: int, user_id: int) -> Rental:
        """Cancel a rental and release its item.

        Payments already made are kept; refunds go through the cash register.

        Raises:
            NotFoundError: If the rental doesn't exist
            ValidationError: If the rental is already completed or cancelled
        """
        rental = self._get_open_rental(rental_id, "cancelled")

        now = self.clock.now()
        self.db.cancel_rental(rental_id, now)
        logger.info("Cancelled rental %s", rental_id)
        audit.emit(
            self.audit,
            now,
            user_id,
            audit.RENTAL_CANCEL,
            "rental",
            rental_id,
            f"was {rental.status.value}",
        )
        return self.db.get_rental(rental_id)

    def check_overdue_rentals(self, user_id: Optional[int] = None) -> int:
        """Flag active rentals past their expected end as overdue.

        Returns:
            Number of rentals flagged by this call
        """
        now = self.clock.now()
        count = self.db.mark_overdue_rentals(now)
        if count:
            logger.info("Marked %d rental(s) overdue", count)
            audit.emit(
                self.audit,
                now,
                user_id,
                audit.RENTAL_OVERDUE_SWEEP,
                "rental",
                None,
                f"{count} rental(s) marked overdue",
            )
        return count
