"""Domain model entities for rentdesk.

These are pure data classes representing business concepts, independent of
database schema. Rows coming out of the store are converted into these at the
persistence boundary, so services never see ORM objects.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional


class RentalPeriod(str, Enum):
    """Billing unit used for period-based pricing."""

    HOUR = "hour"
    DAY = "day"
    WEEK = "week"
    MONTH = "month"


class ItemStatus(str, Enum):
    """Availability status of a rental item."""

    AVAILABLE = "available"
    RENTED = "rented"
    MAINTENANCE = "maintenance"


class RentalStatus(str, Enum):
    """Lifecycle status of a rental."""

    ACTIVE = "active"
    OVERDUE = "overdue"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PaymentMethod(str, Enum):
    """Accepted payment methods."""

    CASH = "cash"
    CREDIT_CARD = "credit_card"
    DEBIT_CARD = "debit_card"
    PIX = "pix"
    TRANSFER = "transfer"
    OTHER = "other"


class RegisterStatus(str, Enum):
    """Cash register session status."""

    OPEN = "open"
    CLOSED = "closed"


class TransactionType(str, Enum):
    """Direction of a cash movement."""

    ENTRY = "entry"
    EXIT = "exit"


class TransactionCategory(str, Enum):
    """Category of a cash movement."""

    RENTAL_PAYMENT = "rental_payment"
    DEPOSIT = "deposit"
    REFUND = "refund"
    EXPENSE = "expense"
    ADJUSTMENT = "adjustment"
    WITHDRAWAL = "withdrawal"
    SUPPLY = "supply"
    OTHER = "other"


class SettlementMode(str, Enum):
    """What part of a rental's money is sent to the cash register."""

    FULL = "full"
    DEPOSIT = "deposit"
    AMOUNT = "amount"


class RevenueGrouping(str, Enum):
    """Bucket size of a revenue report."""

    DAY = "day"
    WEEK = "week"
    MONTH = "month"


@dataclass(frozen=True)
class Client:
    """Client domain entity."""

    id: int
    name: str
    document: Optional[str]
    phone: Optional[str]
    email: Optional[str]
    active: bool
    created_at: datetime


@dataclass(frozen=True)
class PricingTier:
    """Fixed-price duration tier attached to an item."""

    id: int
    item_id: int
    duration_minutes: int
    label: str
    price: Decimal
    tolerance_minutes: int
    sort_order: int


@dataclass(frozen=True)
class PricingTierInput:
    """Tier definition supplied when saving an item's tier set."""

    duration_minutes: int
    label: str
    price: Decimal
    tolerance_minutes: int = 0


@dataclass(frozen=True)
class Item:
    """Rental item domain entity."""

    id: int
    name: str
    code: str
    category: str
    base_rental_value: Decimal
    rental_period: RentalPeriod
    status: ItemStatus
    observations: Optional[str]
    active: bool
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class Rental:
    """Rental domain entity."""

    id: int
    client_id: int
    item_id: int
    start_date: datetime
    expected_end_date: datetime
    actual_end_date: Optional[datetime]
    rental_value: Decimal
    deposit: Decimal
    late_fee: Decimal
    discount: Decimal
    total_value: Decimal
    pricing_duration_minutes: Optional[int]
    status: RentalStatus
    observations: Optional[str]
    created_at: datetime
    updated_at: datetime

    @property
    def is_open(self) -> bool:
        """True while the rental still holds its item."""
        return self.status in (RentalStatus.ACTIVE, RentalStatus.OVERDUE)


@dataclass(frozen=True)
class Payment:
    """Payment domain entity."""

    id: int
    rental_id: int
    amount: Decimal
    method: PaymentMethod
    payment_date: datetime
    notes: Optional[str]
    created_at: datetime


@dataclass(frozen=True)
class PaymentBalance:
    """Outstanding balance of a rental."""

    total_value: Decimal
    total_paid: Decimal
    remaining: Decimal


@dataclass(frozen=True)
class CashRegister:
    """Cash register session domain entity."""

    id: int
    operator_id: int
    opening_balance: Decimal
    closing_balance: Optional[Decimal]
    total_entries: Decimal
    total_exits: Decimal
    status: RegisterStatus
    opened_at: datetime
    closed_at: Optional[datetime]
    closed_by: Optional[int]
    observations: Optional[str]

    @property
    def is_open(self) -> bool:
        return self.status == RegisterStatus.OPEN


@dataclass(frozen=True)
class CashTransaction:
    """Cash movement domain entity.

    The amount is always positive; the direction is carried by ``type``.
    """

    id: int
    register_id: int
    type: TransactionType
    category: TransactionCategory
    amount: Decimal
    description: str
    payment_method: Optional[PaymentMethod]
    reference_type: Optional[str]
    reference_id: Optional[int]
    created_by: int
    created_at: datetime
    cancelled: bool = False
    cancelled_at: Optional[datetime] = None
    cancelled_by: Optional[int] = None
    cancellation_reason: Optional[str] = None

    @property
    def signed_amount(self) -> Decimal:
        """Amount with the sign implied by the transaction type."""
        return self.amount if self.type == TransactionType.ENTRY else -self.amount


@dataclass(frozen=True)
class CashPosting:
    """A cash movement waiting to be written to a register."""

    type: TransactionType
    category: TransactionCategory
    amount: Decimal
    description: str
    payment_method: Optional[PaymentMethod] = None


@dataclass(frozen=True)
class RegisterTotals:
    """Totals of a register's non-cancelled transactions."""

    entries: Decimal
    exits: Decimal
    net: Decimal
    active_count: int
    cancelled_count: int


@dataclass(frozen=True)
class CategoryTotal:
    """Non-cancelled total for one (type, category) pair."""

    type: TransactionType
    category: TransactionCategory
    total: Decimal
    count: int


@dataclass(frozen=True)
class PaymentMethodTotal:
    """Non-cancelled total for one (payment method, type) pair."""

    payment_method: PaymentMethod
    type: TransactionType
    total: Decimal
    count: int


@dataclass(frozen=True)
class RegisterSummary:
    """Live summary of a cash register."""

    register: CashRegister
    current_balance: Decimal
    totals: RegisterTotals
    by_category: tuple[CategoryTotal, ...]
    by_payment_method: tuple[PaymentMethodTotal, ...]


@dataclass(frozen=True)
class RegisterReport:
    """A register together with its full transaction list."""

    register: CashRegister
    transactions: tuple[CashTransaction, ...]


@dataclass(frozen=True)
class ReportTotals:
    """Totals across the registers of a daily report.

    ``closing_balance`` is None when at least one register is still open.
    """

    opening_balance: Decimal
    closing_balance: Optional[Decimal]
    total_entries: Decimal
    total_exits: Decimal
    net_movement: Decimal
    transaction_count: int
    cancelled_count: int


@dataclass(frozen=True)
class DailyReport:
    """All registers opened on one day."""

    date: date
    registers: tuple[RegisterReport, ...]
    totals: ReportTotals


@dataclass(frozen=True)
class DailySummary:
    """One day of a period report."""

    date: date
    registers_count: int
    total_opening: Decimal
    total_closing: Optional[Decimal]
    total_entries: Decimal
    total_exits: Decimal


@dataclass(frozen=True)
class PeriodTotals:
    """Totals across all days of a period report."""

    total_registers: int
    total_opening: Decimal
    total_closing: Optional[Decimal]
    total_entries: Decimal
    total_exits: Decimal
    net_movement: Decimal
    days_count: int


@dataclass(frozen=True)
class PeriodReport:
    """Day-by-day summary of registers opened in a date range."""

    start_date: date
    end_date: date
    days: tuple[DailySummary, ...]
    totals: PeriodTotals


@dataclass(frozen=True)
class SettlementResult:
    """Transactions posted by one send-to-cashier call."""

    register_id: int
    transactions: tuple[CashTransaction, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class RevenuePoint:
    """Payment revenue for one day."""

    day: date
    total: Decimal
    count: int


@dataclass(frozen=True)
class MethodStat:
    """Payment revenue for one payment method."""

    method: PaymentMethod
    total: Decimal
    count: int



@dataclass(frozen=True)
class RevenuePeriod:
    """Payment revenue for one labelled period (day, week or month)."""

    period: str
    total: Decimal
    count: int


@dataclass(frozen=True)
class TopItem:
    """Rental count and billed value of one item."""

    item_id: int
    item_name: str
    item_code: str
    rental_count: int
    total_revenue: Decimal


@dataclass(frozen=True)
class TopClient:
    """Rental count and billed value of one client."""

    client_id: int
    client_name: str
    rental_count: int
    total_spent: Decimal


@dataclass(frozen=True)
class RentalHistoryEntry:
    """A rental of a client together with the rented item's name and code."""

    rental: Rental
    item_name: str
    item_code: str

@dataclass(frozen=True)
class DashboardSnapshot:
    """Back-office headline numbers."""

    total_clients: int
    total_items: int
    items_available: int
    items_rented: int
    items_maintenance: int
    active_rentals: int
    overdue_rentals: int
    revenue_today: Decimal
    revenue_month: Decimal
    revenue_total: Decimal
