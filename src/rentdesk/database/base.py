"""Abstract database interface."""

from abc import ABC, abstractmethod
from datetime import datetime
from decimal import Decimal
from typing import Any, Mapping, Optional, Sequence

# Import entities directly to avoid circular import through domain/__init__.py
from rentdesk.domain.entities import (
    CashPosting,
    CashRegister,
    CashTransaction,
    Client,
    Item,
    ItemStatus,
    MethodStat,
    Payment,
    PaymentMethod,
    PricingTier,
    PricingTierInput,
    RegisterStatus,
    Rental,
    RentalHistoryEntry,
    RentalPeriod,
    RentalStatus,
    RevenueGrouping,
    RevenuePeriod,
    TopClient,
    TopItem,
    TransactionCategory,
    TransactionType,
)


class Database(ABC):
    """Abstract database interface for rentdesk.

    Methods documented as atomic run all their statements in one store
    transaction: either every write lands or none does.
    """

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    # Client operations
    @abstractmethod
    def create_client(
        self,
        name: str,
        created_at: datetime,
        document: Optional[str] = None,
        phone: Optional[str] = None,
        email: Optional[str] = None,
    ) -> int:
        """Create a client. Returns client ID."""
        pass

    @abstractmethod
    def get_client(self, client_id: int) -> Optional[Client]:
        """Get client by ID."""
        pass

    @abstractmethod
    def list_clients(self, search: Optional[str] = None, include_inactive: bool = False) -> list[Client]:
        """List clients ordered by name, optionally filtered by a name fragment."""
        pass

    @abstractmethod
    def update_client_active(self, client_id: int, active: bool) -> None:
        """Activate or deactivate a client."""
        pass

    @abstractmethod
    def update_client(self, client_id: int, changes: Mapping[str, Optional[str]]) -> None:
        """Overwrite client fields.

        Args:
            client_id: Client to update
            changes: New values keyed by field name (name, document, phone or
                email). A None value clears an optional field.

        Raises:
            NotFoundError: If the client doesn't exist
        """
        pass

    @abstractmethod
    def count_clients(self, include_inactive: bool = False) -> int:
        """Count clients."""
        pass

    # Item operations
    @abstractmethod
    def create_item(
        self,
        name: str,
        code: str,
        category: str,
        base_rental_value: Decimal,
        rental_period: RentalPeriod,
        created_at: datetime,
        observations: Optional[str] = None,
        pricing_tiers: Sequence[PricingTierInput] = (),
    ) -> int:
        """Create an item together with its pricing tiers (atomic). Returns item ID."""
        pass

    @abstractmethod
    def get_item(self, item_id: int) -> Optional[Item]:
        """Get item by ID."""
        pass

    @abstractmethod
    def get_item_by_code(self, code: str) -> Optional[Item]:
        """Get item by its unique code."""
        pass

    @abstractmethod
    def list_items(
        self,
        status: Optional[ItemStatus] = None,
        category: Optional[str] = None,
        search: Optional[str] = None,
        include_inactive: bool = False,
        by_category: bool = False,
    ) -> list[Item]:
        """List items ordered by name, or by category then name."""
        pass

    @abstractmethod
    def list_item_categories(self) -> list[str]:
        """List distinct categories of active items."""
        pass

    @abstractmethod
    def update_item_status(self, item_id: int, status: ItemStatus, updated_at: datetime) -> None:
        """Set an item's availability status."""
        pass

    @abstractmethod
    def update_item_active(self, item_id: int, active: bool, updated_at: datetime) -> None:
        """Activate or deactivate an item."""
        pass

    @abstractmethod
    def update_item(self, item_id: int, changes: Mapping[str, Any], updated_at: datetime) -> None:
        """Overwrite item fields.

        Args:
            item_id: Item to update
            changes: New values keyed by field name (name, code, category,
                base_rental_value, rental_period, observations or status)
            updated_at: Modification time

        Raises:
            NotFoundError: If the item doesn't exist
            ConflictError: If the new code belongs to another item
        """
        pass

    @abstractmethod
    def count_items_by_status(self) -> dict[ItemStatus, int]:
        """Count active items per status."""
        pass

    # Pricing tier operations
    @abstractmethod
    def get_pricing_tier(self, tier_id: int) -> Optional[PricingTier]:
        """Get pricing tier by ID."""
        pass

    @abstractmethod
    def list_pricing_tiers(self, item_id: int) -> list[PricingTier]:
        """List an item's tiers ordered by sort order, then duration."""
        pass

    @abstractmethod
    def replace_pricing_tiers(self, item_id: int, tiers: Sequence[PricingTierInput]) -> None:
        """Delete all tiers of an item and insert ``tiers`` in order (atomic)."""
        pass

    # Rental operations
    @abstractmethod
    def create_rental(
        self,
        client_id: int,
        item_id: int,
        start_date: datetime,
        expected_end_date: datetime,
        rental_value: Decimal,
        deposit: Decimal,
        discount: Decimal,
        total_value: Decimal,
        pricing_duration_minutes: Optional[int],
        created_at: datetime,
        observations: Optional[str] = None,
        deposit_payment_method: Optional[PaymentMethod] = None,
        deposit_payment_notes: Optional[str] = None,
    ) -> int:
        """Create a rental (atomic).

        Inserts the rental, flips the item from available to rented and, when
        ``deposit_payment_method`` is given, records the deposit as a payment.

        Raises:
            ConflictError: If the item is no longer available
        """
        pass

    @abstractmethod
    def get_rental(self, rental_id: int) -> Optional[Rental]:
        """Get rental by ID."""
        pass

    @abstractmethod
    def list_rentals(
        self,
        status: Optional[RentalStatus] = None,
        client_id: Optional[int] = None,
        item_id: Optional[int] = None,
    ) -> list[Rental]:
        """List rentals, newest first."""
        pass

    @abstractmethod
    def complete_rental(
        self,
        rental_id: int,
        actual_end_date: datetime,
        late_fee: Decimal,
        total_value: Decimal,
        updated_at: datetime,
    ) -> None:
        """Mark an open rental completed and release its item (atomic).

        Raises:
            ConflictError: If the rental is no longer active or overdue
        """
        pass

    @abstractmethod
    def cancel_rental(self, rental_id: int, updated_at: datetime) -> None:
        """Mark an open rental cancelled and release its item (atomic).

        Raises:
            ConflictError: If the rental is no longer active or overdue
        """
        pass

    @abstractmethod
    def mark_overdue_rentals(self, now: datetime) -> int:
        """Flag active rentals whose expected end is before ``now``. Returns row count."""
        pass

    @abstractmethod
    def count_open_rentals(self, client_id: Optional[int] = None, item_id: Optional[int] = None) -> int:
        """Count active or overdue rentals, optionally for one client or item."""
        pass

    @abstractmethod
    def count_rentals_by_status(self) -> dict[RentalStatus, int]:
        """Count rentals per status."""
        pass

    @abstractmethod
    def list_client_rental_history(self, client_id: int) -> list[RentalHistoryEntry]:
        """List a client's rentals with the item name and code, newest first."""
        pass

    @abstractmethod
    def top_items(self, limit: int) -> list[TopItem]:
        """Items with the most rentals, with the summed rental totals."""
        pass

    @abstractmethod
    def top_clients(self, limit: int) -> list[TopClient]:
        """Clients with the highest summed rental totals."""
        pass

    # Payment operations
    @abstractmethod
    def create_payment(
        self,
        rental_id: int,
        amount: Decimal,
        method: PaymentMethod,
        payment_date: datetime,
        created_at: datetime,
        notes: Optional[str] = None,
    ) -> int:
        """Create a payment. Returns payment ID."""
        pass

    @abstractmethod
    def get_payment(self, payment_id: int) -> Optional[Payment]:
        """Get payment by ID."""
        pass

    @abstractmethod
    def list_payments(
        self,
        rental_id: Optional[int] = None,
        method: Optional[PaymentMethod] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> list[Payment]:
        """List payments, newest payment date first.

        Args:
            rental_id: Optional rental filter
            method: Optional payment method filter
            start_date: Optional inclusive lower bound on payment_date
            end_date: Optional exclusive upper bound on payment_date
        """
        pass

    @abstractmethod
    def get_total_paid(self, rental_id: int) -> Decimal:
        """Sum of all payments of a rental."""
        pass

    @abstractmethod
    def payment_totals(
        self,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> tuple[Decimal, int]:
        """Sum and count of payments, optionally bounded like list_payments."""
        pass

    @abstractmethod
    def payment_totals_by_method(self) -> list[MethodStat]:
        """Sum and count of payments per method, largest total first."""
        pass

    @abstractmethod
    def revenue_by_period(
        self,
        start_date: datetime,
        end_date: datetime,
        grouping: RevenueGrouping,
    ) -> list[RevenuePeriod]:
        """Sum and count of payments per period, oldest period first.

        Periods are labelled ``YYYY-MM-DD`` by day, ``YYYY-Www`` by week
        (Monday-based week number) and ``YYYY-MM`` by month. Bounds work as
        in list_payments; periods without payments are omitted.
        """
        pass

    # Cash register operations
    @abstractmethod
    def create_cash_register(
        self,
        operator_id: int,
        opening_balance: Decimal,
        opened_at: datetime,
        observations: Optional[str] = None,
    ) -> int:
        """Open a cash register. Returns register ID.

        Raises:
            ConflictError: If the operator already has an open register
        """
        pass

    @abstractmethod
    def get_cash_register(self, register_id: int) -> Optional[CashRegister]:
        """Get cash register by ID."""
        pass

    @abstractmethod
    def get_open_cash_register(self, operator_id: int) -> Optional[CashRegister]:
        """Get the operator's open register, if any."""
        pass

    @abstractmethod
    def list_cash_registers(
        self,
        operator_id: Optional[int] = None,
        status: Optional[RegisterStatus] = None,
        opened_from: Optional[datetime] = None,
        opened_before: Optional[datetime] = None,
        limit: Optional[int] = None,
        offset: int = 0,
        newest_first: bool = True,
    ) -> list[CashRegister]:
        """List cash registers ordered by opening time."""
        pass

    @abstractmethod
    def close_cash_register(
        self,
        register_id: int,
        closed_by: int,
        closed_at: datetime,
        observations: Optional[str] = None,
    ) -> None:
        """Close a register (atomic).

        Recomputes entries and exits from the non-cancelled transactions,
        stores them with the resulting closing balance and stamps the close.

        Raises:
            ConflictError: If the register is already closed
        """
        pass

    # Cash transaction operations
    @abstractmethod
    def create_cash_transaction(
        self,
        register_id: int,
        type: TransactionType,
        category: TransactionCategory,
        amount: Decimal,
        description: str,
        created_by: int,
        created_at: datetime,
        payment_method: Optional[PaymentMethod] = None,
        reference_type: Optional[str] = None,
        reference_id: Optional[int] = None,
    ) -> int:
        """Record a cash movement. Returns transaction ID."""
        pass

    @abstractmethod
    def create_cash_transactions(
        self,
        register_id: int,
        postings: Sequence[CashPosting],
        created_by: int,
        created_at: datetime,
        reference_type: Optional[str] = None,
        reference_id: Optional[int] = None,
        expected_sent: Optional[Mapping[TransactionCategory, Decimal]] = None,
    ) -> list[int]:
        """Record several movements on an open register (atomic).

        When ``expected_sent`` is given, the signed totals already posted for
        the reference (see sum_referenced_cash) are read again inside the
        transaction and must still match it.

        Returns:
            Transaction IDs in posting order

        Raises:
            NotFoundError: If the register doesn't exist
            ConflictError: If the register is closed or the referenced totals changed
        """
        pass

    @abstractmethod
    def sum_referenced_cash(self, reference_type: str, reference_id: int) -> dict[TransactionCategory, Decimal]:
        """Signed totals of the non-cancelled movements of a reference, per category.

        Entries count positive and exits negative. Registers of every operator
        and status are included.
        """
        pass

    @abstractmethod
    def get_cash_transaction(self, transaction_id: int) -> Optional[CashTransaction]:
        """Get cash transaction by ID."""
        pass

    @abstractmethod
    def list_cash_transactions(
        self,
        register_id: Optional[int] = None,
        type: Optional[TransactionType] = None,
        category: Optional[TransactionCategory] = None,
        cancelled: Optional[bool] = None,
        created_from: Optional[datetime] = None,
        created_before: Optional[datetime] = None,
        reference_type: Optional[str] = None,
        reference_id: Optional[int] = None,
        limit: Optional[int] = None,
        offset: int = 0,
        newest_first: bool = True,
    ) -> list[CashTransaction]:
        """List cash transactions with optional filters."""
        pass

    @abstractmethod
    def cancel_cash_transaction(
        self,
        transaction_id: int,
        cancelled_by: int,
        reason: str,
        cancelled_at: datetime,
    ) -> None:
        """Flag a transaction as cancelled, keeping the row for audit."""
        pass
