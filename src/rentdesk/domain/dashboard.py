"""Dashboard and business report service."""

from datetime import date, datetime, timedelta
from typing import Optional

from rentdesk.database.base import Database
from rentdesk.domain.clock import Clock, SystemClock
from rentdesk.domain.entities import (
    DashboardSnapshot,
    ItemStatus,
    MethodStat,
    RentalStatus,
    RevenueGrouping,
    RevenuePeriod,
    RevenuePoint,
    TopClient,
    TopItem,
)
from rentdesk.domain.errors import ValidationError

DEFAULT_TOP_LIMIT = 10


def _start_of(day: date) -> datetime:
    return datetime.combine(day, datetime.min.time())


def _check_range(start_date: date, end_date: date) -> None:
    if start_date > end_date:
        raise ValidationError("Start date must be on or before end date")


class DashboardService:
    """Service for back-office headline numbers and rankings.

    Revenue is the sum of payments, bucketed by payment date. Rankings sum
    the rentals' total values.
    """

    def __init__(self, db: Database, clock: Optional[Clock] = None):
        """Initialize dashboard service.

        Args:
            db: Database instance
            clock: Source of the current time (defaults to system clock)
        """
        self.db = db
        self.clock = clock or SystemClock()

    def get_snapshot(self) -> DashboardSnapshot:
        """Counts of clients, items and rentals plus revenue figures."""
        today = self.clock.now().date()
        tomorrow = _start_of(today + timedelta(days=1))

        items = self.db.count_items_by_status()
        rentals = self.db.count_rentals_by_status()
        revenue_today, _ = self.db.payment_totals(start_date=_start_of(today), end_date=tomorrow)
        revenue_month, _ = self.db.payment_totals(start_date=_start_of(today.replace(day=1)), end_date=tomorrow)
        revenue_total, _ = self.db.payment_totals()

        return DashboardSnapshot(
            total_clients=self.db.count_clients(),
            total_items=sum(items.values()),
            items_available=items[ItemStatus.AVAILABLE],
            items_rented=items[ItemStatus.RENTED],
            items_maintenance=items[ItemStatus.MAINTENANCE],
            active_rentals=rentals[RentalStatus.ACTIVE],
            overdue_rentals=rentals[RentalStatus.OVERDUE],
            revenue_today=revenue_today,
            revenue_month=revenue_month,
            revenue_total=revenue_total,
        )

    def revenue_by_day(self, start_date: date, end_date: date) -> list[RevenuePoint]:
        """Payment revenue per day between two dates, both inclusive.

        Days without payments are omitted.

        Raises:
            ValidationError: If start_date is after end_date
        """
        return [
            RevenuePoint(day=date.fromisoformat(p.period), total=p.total, count=p.count)
            for p in self.revenue_by_period(start_date, end_date, RevenueGrouping.DAY)
        ]

    def revenue_by_period(
        self,
        start_date: date,
        end_date: date,
        group_by: RevenueGrouping = RevenueGrouping.DAY,
    ) -> list[RevenuePeriod]:
        """Payment revenue between two dates, both inclusive, per day, week or month.

        Periods are labelled ``2024-01-31``, ``2024-W05`` (weeks start on
        Monday; days before the first Monday fall in week 00) and ``2024-01``.

        Raises:
            ValidationError: If start_date is after end_date
        """
        _check_range(start_date, end_date)
        return self.db.revenue_by_period(
            _start_of(start_date),
            _start_of(end_date + timedelta(days=1)),
            RevenueGrouping(group_by),
        )

    def revenue_by_month(self, year: int) -> list[RevenuePeriod]:
        """Payment revenue per month of one calendar year."""
        return self.revenue_by_period(date(year, 1, 1), date(year, 12, 31), RevenueGrouping.MONTH)

    def payment_method_stats(self) -> list[MethodStat]:
        """Payment revenue per method, largest total first."""
        return self.db.payment_totals_by_method()

    def top_items(self, limit: int = DEFAULT_TOP_LIMIT) -> list[TopItem]:
        """Most rented items first.

        Raises:
            ValidationError: If limit is not positive
        """
        if limit <= 0:
            raise ValidationError("Limit must be greater than zero")
        return self.db.top_items(limit)

    def top_clients(self, limit: int = DEFAULT_TOP_LIMIT) -> list[TopClient]:
        """Clients with the highest rental totals first.

        Raises:
            ValidationError: If limit is not positive
        """
        if limit <= 0:
            raise ValidationError("Limit must be greater than zero")
        return self.db.top_clients(limit)
