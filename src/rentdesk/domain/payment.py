"""Payment ledger service."""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Optional

from rentdesk.database.base import Database
from rentdesk.domain import audit
from rentdesk.domain.audit import AuditSink, LoggingAuditSink
from rentdesk.domain.clock import Clock, SystemClock
from rentdesk.domain.entities import Payment, PaymentBalance, PaymentMethod
from rentdesk.domain.errors import (
    NotFoundError,
    ValidationError,
    payment_exceeds_balance,
    rental_not_found,
)
from rentdesk.domain.money import exceeds_limit, to_money

logger = logging.getLogger(__name__)


class PaymentService:
    """Service for recording payments against rentals."""

    def __init__(self, db: Database, clock: Optional[Clock] = None, audit_sink: Optional[AuditSink] = None):
        """Initialize payment service.

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
        rental_id: int,
        amount: Decimal,
        method: PaymentMethod,
        user_id: int,
        payment_date: Optional[datetime] = None,
        notes: Optional[str] = None,
    ) -> Payment:
        """Record a payment.

        The rental's status is not checked: trailing payments after
        completion are allowed.

        Args:
            rental_id: Rental being paid
            amount: Payment amount
            method: Payment method
            user_id: Acting user
            payment_date: When the money was received (defaults to now)
            notes: Optional notes

        Returns:
            Created payment

        Raises:
            NotFoundError: If the rental doesn't exist
            ValidationError: If amount is not positive or exceeds the remaining balance
        """
        amount = to_money(amount)
        method = PaymentMethod(method)
        if amount <= 0:
            raise ValidationError("Payment amount must be greater than zero")

        balance = self.get_balance(rental_id)
        if exceeds_limit(amount, balance.remaining):
            raise ValidationError(
                payment_exceeds_balance(balance.total_value, balance.total_paid, balance.remaining)
            )

        now = self.clock.now()
        payment_id = self.db.create_payment(
            rental_id=rental_id,
            amount=amount,
            method=method,
            payment_date=payment_date or now,
            created_at=now,
            notes=notes,
        )
        logger.info("Recorded payment %s of %s on rental %s", payment_id, amount, rental_id)
        audit.emit(
            self.audit,
            now,
            user_id,
            audit.PAYMENT_CREATE,
            "payment",
            payment_id,
            f"rental {rental_id}, {amount:.2f} via {method.value}",
        )
        return self.db.get_payment(payment_id)

    def get_balance(self, rental_id: int) -> PaymentBalance:
        """Compute a rental's outstanding balance.

        ``remaining`` may be zero or negative once the rental is paid off.

        Raises:
            NotFoundError: If the rental doesn't exist
        """
        rental = self.db.get_rental(rental_id)
        if rental is None:
            raise NotFoundError(rental_not_found(rental_id))

        total_paid = self.db.get_total_paid(rental_id)
        return PaymentBalance(
            total_value=rental.total_value,
            total_paid=total_paid,
            remaining=rental.total_value - total_paid,
        )

    def get_payment(self, payment_id: int) -> Optional[Payment]:
        """Get payment by ID."""
        return self.db.get_payment(payment_id)

    def list_payments(
        self,
        rental_id: Optional[int] = None,
        method: Optional[PaymentMethod] = None,
    ) -> list[Payment]:
        """List payments, newest first."""
        return self.db.list_payments(rental_id=rental_id, method=method)
