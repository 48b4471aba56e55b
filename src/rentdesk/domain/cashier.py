"""Cash register ledger service.

Each operator works on at most one open register at a time. Movements are
recorded against an open register with a positive amount whose direction is
given by the transaction type. A movement is never deleted: cancelling it sets
a flag and excludes it from every total.
"""

import logging
from collections import defaultdict
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Optional

from rentdesk.database.base import Database
from rentdesk.domain import audit
from rentdesk.domain.audit import AuditSink, LoggingAuditSink
from rentdesk.domain.clock import Clock, SystemClock
from rentdesk.domain.entities import (
    CashRegister,
    CashTransaction,
    CategoryTotal,
    PaymentMethod,
    PaymentMethodTotal,
    RegisterStatus,
    RegisterSummary,
    RegisterTotals,
    TransactionCategory,
    TransactionType,
)
from rentdesk.domain.errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
    register_already_open,
    register_not_found,
    transaction_not_found,
)
from rentdesk.domain.money import sum_money, to_money

logger = logging.getLogger(__name__)

MIN_CANCELLATION_REASON_LENGTH = 3
DEFAULT_REGISTER_PAGE_SIZE = 50
DEFAULT_TRANSACTION_PAGE_SIZE = 100


def emit_transaction_audit(sink: AuditSink, now: datetime, user_id: int, transaction: CashTransaction) -> None:
    """Record the audit event of a newly posted movement."""
    action = audit.CASHIER_ENTRY if transaction.type == TransactionType.ENTRY else audit.CASHIER_EXIT
    audit.emit(
        sink,
        now,
        user_id,
        action,
        "cash_transaction",
        transaction.id,
        f"register {transaction.register_id}, {transaction.category.value} "
        f"{transaction.amount:.2f}: {transaction.description}",
    )


def compute_totals(transactions: list[CashTransaction]) -> RegisterTotals:
    """Totals of the non-cancelled transactions; cancelled ones are only counted."""
    active = [t for t in transactions if not t.cancelled]
    entries = sum_money(t.amount for t in active if t.type == TransactionType.ENTRY)
    exits = sum_money(t.amount for t in active if t.type == TransactionType.EXIT)
    return RegisterTotals(
        entries=entries,
        exits=exits,
        net=sum_money(t.signed_amount for t in active),
        active_count=len(active),
        cancelled_count=len(transactions) - len(active),
    )


def _day_bounds(start_date: Optional[date], end_date: Optional[date]) -> tuple[Optional[datetime], Optional[datetime]]:
    """Turn an inclusive date range into [from, before) datetimes."""
    lower = datetime.combine(start_date, datetime.min.time()) if start_date else None
    upper = datetime.combine(end_date + timedelta(days=1), datetime.min.time()) if end_date else None
    return lower, upper


class CashierService:
    """Service for cash register sessions and their movements."""

    def __init__(self, db: Database, clock: Optional[Clock] = None, audit_sink: Optional[AuditSink] = None):
        """Initialize cashier service.

        Args:
            db: Database instance
            clock: Source of the current time (defaults to system clock)
            audit_sink: Destination of audit events (defaults to logging)
        """
        self.db = db
        self.clock = clock or SystemClock()
        self.audit = audit_sink or LoggingAuditSink()

    def open_register(
        self,
        operator_id: int,
        opening_balance: Decimal,
        observations: Optional[str] = None,
    ) -> CashRegister:
        """Open a cash register for an operator.

        Args:
            operator_id: Operator who owns the register
            opening_balance: Cash in the drawer at opening
            observations: Optional notes

        Returns:
            The new open register

        Raises:
            ConflictError: If the operator already has an open register
            ValidationError: If opening balance is negative
        """
        existing = self.db.get_open_cash_register(operator_id)
        if existing is not None:
            raise ConflictError(register_already_open(existing.id))

        opening_balance = to_money(opening_balance)
        if opening_balance < 0:
            raise ValidationError("Opening balance cannot be negative")

        now = self.clock.now()
        register_id = self.db.create_cash_register(
            operator_id=operator_id,
            opening_balance=opening_balance,
            opened_at=now,
            observations=observations,
        )
        logger.info("Operator %s opened register %s with %s", operator_id, register_id, opening_balance)
        audit.emit(
            self.audit,
            now,
            operator_id,
            audit.CASHIER_OPEN,
            "cash_register",
            register_id,
            f"opening balance {opening_balance:.2f}",
        )
        return self.db.get_cash_register(register_id)

    def close_register(
        self,
        register_id: int,
        operator_id: int,
        observations: Optional[str] = None,
    ) -> CashRegister:
        """Close a register.

        Totals are recomputed from the non-cancelled transactions when
        closing; running values are not trusted. The closing operator may be
        someone other than the owner.

        Raises:
            NotFoundError: If the register doesn't exist
            ConflictError: If the register is already closed
        """
        register = self.db.get_cash_register(register_id)
        if register is None:
            raise NotFoundError(register_not_found(register_id))
        if not register.is_open:
            raise ConflictError("Cash register is already closed")

        now = self.clock.now()
        self.db.close_cash_register(
            register_id=register_id,
            closed_by=operator_id,
            closed_at=now,
            observations=observations,
        )
        closed = self.db.get_cash_register(register_id)
        if closed.operator_id != operator_id:
            logger.warning(
                "Register %s of operator %s closed by operator %s",
                register_id,
                closed.operator_id,
                operator_id,
            )
        audit.emit(
            self.audit,
            now,
            operator_id,
            audit.CASHIER_CLOSE,
            "cash_register",
            register_id,
            f"entries {closed.total_entries:.2f}, exits {closed.total_exits:.2f}, "
            f"closing balance {closed.closing_balance:.2f}",
        )
        return closed

    def create_transaction(
        self,
        register_id: int,
        type: TransactionType,
        category: TransactionCategory,
        amount: Decimal,
        description: str,
        user_id: int,
        payment_method: Optional[PaymentMethod] = None,
        reference_type: Optional[str] = None,
        reference_id: Optional[int] = None,
    ) -> CashTransaction:
        """Record a movement on an open register.

        Args:
            register_id: Target register
            type: Entry or exit
            category: Movement category
            amount: Positive amount
            description: What the movement is for
            user_id: Acting user
            payment_method: Optional payment method
            reference_type: Optional kind of the referenced entity (e.g. "rental")
            reference_id: Optional ID of the referenced entity

        Returns:
            Created transaction

        Raises:
            NotFoundError: If the register doesn't exist
            ConflictError: If the register is closed
            ValidationError: If amount is not positive, description is blank or
                only half of the reference is given
        """
        type = TransactionType(type)
        category = TransactionCategory(category)
        if payment_method is not None:
            payment_method = PaymentMethod(payment_method)

        register = self.db.get_cash_register(register_id)
        if register is None:
            raise NotFoundError(register_not_found(register_id))
        if not register.is_open:
            raise ConflictError("Cannot register movement on closed register")

        amount = to_money(amount)
        if amount <= 0:
            raise ValidationError("Amount must be greater than zero")
        description = (description or "").strip()
        if not description:
            raise ValidationError("Description cannot be empty")
        if (reference_type is None) != (reference_id is None):
            raise ValidationError("Reference type and reference ID must be given together")

        now = self.clock.now()
        transaction_id = self.db.create_cash_transaction(
            register_id=register_id,
            type=type,
            category=category,
            amount=amount,
            description=description,
            created_by=user_id,
            created_at=now,
            payment_method=payment_method,
            reference_type=reference_type,
            reference_id=reference_id,
        )
        logger.debug("Recorded %s %s of %s on register %s", type.value, category.value, amount, register_id)
        transaction = self.db.get_cash_transaction(transaction_id)
        emit_transaction_audit(self.audit, now, user_id, transaction)
        return transaction

    def cancel_transaction(self, transaction_id: int, cancelled_by: int, reason: str) -> CashTransaction:
        """Cancel a movement. The row is kept with the cancellation details.

        Raises:
            NotFoundError: If the transaction doesn't exist
            ConflictError: If it is already cancelled or its register is closed
            ValidationError: If the reason is shorter than 3 characters
        """
        txn = self.db.get_cash_transaction(transaction_id)
        if txn is None:
            raise NotFoundError(transaction_not_found(transaction_id))
        if txn.cancelled:
            raise ConflictError("Transaction is already cancelled")

        register = self.db.get_cash_register(txn.register_id)
        if register is None or not register.is_open:
            raise ConflictError("Cannot cancel a transaction of a closed register")

        reason = (reason or "").strip()
        if len(reason) < MIN_CANCELLATION_REASON_LENGTH:
            raise ValidationError(
                f"Cancellation reason must have at least {MIN_CANCELLATION_REASON_LENGTH} characters"
            )

        now = self.clock.now()
        self.db.cancel_cash_transaction(
            transaction_id=transaction_id,
            cancelled_by=cancelled_by,
            reason=reason,
            cancelled_at=now,
        )
        logger.info("Cancelled transaction %s: %s", transaction_id, reason)
        audit.emit(
            self.audit,
            now,
            cancelled_by,
            audit.CASHIER_CANCEL,
            "cash_transaction",
            transaction_id,
            f"{txn.type.value} {txn.amount:.2f} cancelled: {reason}",
        )
        return self.db.get_cash_transaction(transaction_id)

    def get_register_summary(self, register_id: int) -> RegisterSummary:
        """Live summary of a register, open or closed.

        Raises:
            NotFoundError: If the register doesn't exist
        """
        register = self.db.get_cash_register(register_id)
        if register is None:
            raise NotFoundError(register_not_found(register_id))

        transactions = self.db.list_cash_transactions(register_id=register_id, newest_first=False)
        totals = compute_totals(transactions)
        active = [t for t in transactions if not t.cancelled]

        by_category: dict[tuple[TransactionType, TransactionCategory], list[Decimal]] = defaultdict(list)
        by_method: dict[tuple[PaymentMethod, TransactionType], list[Decimal]] = defaultdict(list)
        for txn in active:
            by_category[(txn.type, txn.category)].append(txn.amount)
            if txn.payment_method is not None:
                by_method[(txn.payment_method, txn.type)].append(txn.amount)

        category_totals = tuple(
            CategoryTotal(type=txn_type, category=category, total=sum_money(amounts), count=len(amounts))
            for (txn_type, category), amounts in sorted(
                by_category.items(), key=lambda kv: (kv[0][0].value, kv[0][1].value)
            )
        )
        method_totals = tuple(
            PaymentMethodTotal(payment_method=method, type=txn_type, total=sum_money(amounts), count=len(amounts))
            for (method, txn_type), amounts in sorted(
                by_method.items(), key=lambda kv: (kv[0][0].value, kv[0][1].value)
            )
        )

        return RegisterSummary(
            register=register,
            current_balance=register.opening_balance + totals.net,
            totals=totals,
            by_category=category_totals,
            by_payment_method=method_totals,
        )

    def get_register(self, register_id: int) -> Optional[CashRegister]:
        """Get cash register by ID."""
        return self.db.get_cash_register(register_id)

    def get_open_register(self, operator_id: int) -> Optional[CashRegister]:
        """Get the operator's open register, if any."""
        return self.db.get_open_cash_register(operator_id)

    def list_registers(
        self,
        operator_id: Optional[int] = None,
        status: Optional[RegisterStatus] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        limit: int = DEFAULT_REGISTER_PAGE_SIZE,
        offset: int = 0,
    ) -> list[CashRegister]:
        """List registers opened in an inclusive date range, newest first."""
        opened_from, opened_before = _day_bounds(start_date, end_date)
        return self.db.list_cash_registers(
            operator_id=operator_id,
            status=status,
            opened_from=opened_from,
            opened_before=opened_before,
            limit=limit,
            offset=offset,
        )

    def get_transaction(self, transaction_id: int) -> Optional[CashTransaction]:
        """Get cash transaction by ID, cancelled or not."""
        return self.db.get_cash_transaction(transaction_id)

    def list_transactions(
        self,
        register_id: Optional[int] = None,
        type: Optional[TransactionType] = None,
        category: Optional[TransactionCategory] = None,
        cancelled: Optional[bool] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        limit: int = DEFAULT_TRANSACTION_PAGE_SIZE,
        offset: int = 0,
    ) -> list[CashTransaction]:
        """List transactions created in an inclusive date range, newest first."""
        created_from, created_before = _day_bounds(start_date, end_date)
        return self.db.list_cash_transactions(
            register_id=register_id,
            type=type,
            category=category,
            cancelled=cancelled,
            created_from=created_from,
            created_before=created_before,
            limit=limit,
            offset=offset,
        )
