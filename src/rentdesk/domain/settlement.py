"""Send rental money to the cash register.

Money taken for a rental (deposit, payments, discount) is posted to the
operator's open register as transactions referencing the rental. Repeated
calls only post what has not been sent yet.
"""

import logging
from decimal import Decimal
from typing import Optional

from rentdesk.database.base import Database
from rentdesk.domain import audit
from rentdesk.domain.audit import AuditSink, LoggingAuditSink
from rentdesk.domain.cashier import emit_transaction_audit
from rentdesk.domain.clock import Clock, SystemClock
from rentdesk.domain.entities import (
    CashPosting,
    PaymentMethod,
    Rental,
    SettlementMode,
    SettlementResult,
    TransactionCategory,
    TransactionType,
)
from rentdesk.domain.errors import ConflictError, NotFoundError, ValidationError, rental_not_found
from rentdesk.domain.money import ZERO, to_money

logger = logging.getLogger(__name__)

RENTAL_REFERENCE = "rental"


class CashierSettlementService:
    """Service that posts a rental's unsent amounts to the cash register."""

    def __init__(self, db: Database, clock: Optional[Clock] = None, audit_sink: Optional[AuditSink] = None):
        """Initialize settlement service.

        Args:
            db: Database instance
            clock: Source of the current time (defaults to system clock)
            audit_sink: Destination of audit events (defaults to logging)
        """
        self.db = db
        self.clock = clock or SystemClock()
        self.audit = audit_sink or LoggingAuditSink()

    def already_sent(self, rental_id: int) -> dict[TransactionCategory, Decimal]:
        """Signed totals already posted for a rental, per category.

        Entries count positive and exits negative. Cancelled transactions are
        ignored. Registers of every operator and status are included.
        """
        return self.db.sum_referenced_cash(RENTAL_REFERENCE, rental_id)

    def send_to_cashier(
        self,
        rental_id: int,
        operator_id: int,
        mode: SettlementMode,
        amount: Optional[Decimal] = None,
        payment_method: PaymentMethod = PaymentMethod.CASH,
    ) -> SettlementResult:
        """Post a rental's money to the operator's open register.

        Args:
            rental_id: Rental to settle
            operator_id: Operator whose open register receives the money
            mode: ``deposit`` sends the unsent deposit, ``full`` sends unsent
                payments and the unsent discount, ``amount`` sends ``amount``
            amount: Amount to send in ``amount`` mode
            payment_method: Payment method of the posted entries

        Returns:
            SettlementResult with the created transactions

        Raises:
            NotFoundError: If the rental doesn't exist
            ConflictError: If the operator has no open register or nothing is left to send
            ValidationError: If the rental has no deposit in ``deposit`` mode or
                the amount is not positive in ``amount`` mode
        """
        mode = SettlementMode(mode)
        payment_method = PaymentMethod(payment_method)

        rental = self.db.get_rental(rental_id)
        if rental is None:
            raise NotFoundError(rental_not_found(rental_id))

        register = self.db.get_open_cash_register(operator_id)
        if register is None:
            raise ConflictError("Operator has no open cash register. Open one first.")

        label = self._describe(rental)
        postings: list[CashPosting] = []
        sent: Optional[dict[TransactionCategory, Decimal]] = None

        if mode == SettlementMode.DEPOSIT:
            if rental.deposit <= 0:
                raise ValidationError(f"Rental {rental_id} has no deposit")
            sent = self.already_sent(rental_id)
            remaining = rental.deposit - sent.get(TransactionCategory.DEPOSIT, ZERO)
            if remaining <= 0:
                raise ConflictError("Deposit was already fully sent to the cash register")
            postings.append(
                CashPosting(
                    TransactionType.ENTRY, TransactionCategory.DEPOSIT, remaining, f"Deposit {label}", payment_method
                )
            )

        elif mode == SettlementMode.FULL:
            sent = self.already_sent(rental_id)
            total_paid = self.db.get_total_paid(rental_id)
            payment_delta = (
                total_paid
                - sent.get(TransactionCategory.RENTAL_PAYMENT, ZERO)
                - sent.get(TransactionCategory.DEPOSIT, ZERO)
            )
            if payment_delta > 0:
                postings.append(
                    CashPosting(
                        TransactionType.ENTRY,
                        TransactionCategory.RENTAL_PAYMENT,
                        payment_delta,
                        f"Payment {label}",
                        payment_method,
                    )
                )
            discount_delta = rental.discount - abs(sent.get(TransactionCategory.ADJUSTMENT, ZERO))
            if discount_delta > 0:
                postings.append(
                    CashPosting(
                        TransactionType.EXIT, TransactionCategory.ADJUSTMENT, discount_delta, f"Discount {label}"
                    )
                )
            if not postings:
                raise ConflictError("All amounts of this rental were already sent to the cash register")

        else:
            amount = to_money(amount)
            if amount <= 0:
                raise ValidationError("Amount must be greater than zero")
            postings.append(
                CashPosting(
                    TransactionType.ENTRY,
                    TransactionCategory.RENTAL_PAYMENT,
                    amount,
                    f"Payment {label}",
                    payment_method,
                )
            )

        # One store transaction; it fails if another send landed since `sent` was read
        now = self.clock.now()
        transaction_ids = self.db.create_cash_transactions(
            register_id=register.id,
            postings=postings,
            created_by=operator_id,
            created_at=now,
            reference_type=RENTAL_REFERENCE,
            reference_id=rental_id,
            expected_sent=sent,
        )
        transactions = tuple(self.db.get_cash_transaction(txn_id) for txn_id in transaction_ids)
        for transaction in transactions:
            emit_transaction_audit(self.audit, now, operator_id, transaction)

        logger.info("Sent rental %s to register %s (%s)", rental_id, register.id, mode.value)
        audit.emit(
            self.audit,
            now,
            operator_id,
            audit.RENTAL_TO_CASHIER,
            "rental",
            rental_id,
            f"{mode.value}: {len(transactions)} transaction(s) on register {register.id}",
        )
        return SettlementResult(register_id=register.id, transactions=transactions)

    def _describe(self, rental: Rental) -> str:
        item = self.db.get_item(rental.item_id)
        client = self.db.get_client(rental.client_id)
        item_name = item.name if item else f"item {rental.item_id}"
        client_name = client.name if client else f"client {rental.client_id}"
        return f"rental #{rental.id} - {item_name} ({client_name})"
