"""Daily and period reports over cash registers."""

from collections import defaultdict
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Optional

from rentdesk.database.base import Database
from rentdesk.domain.cashier import compute_totals
from rentdesk.domain.entities import (
    CashRegister,
    DailyReport,
    DailySummary,
    PeriodReport,
    PeriodTotals,
    RegisterReport,
    ReportTotals,
)
from rentdesk.domain.errors import ValidationError
from rentdesk.domain.money import ZERO, sum_money


def _closing_total(registers: list[CashRegister]) -> Optional[Decimal]:
    """Sum of closing balances, or None while any register is still open."""
    if any(r.closing_balance is None for r in registers):
        return None
    return sum_money(r.closing_balance for r in registers)


class CashReportService:
    """Service for cash register reports.

    Registers are assigned to the day they were opened on, whatever the day
    they were closed.
    """

    def __init__(self, db: Database):
        """Initialize cash report service.

        Args:
            db: Database instance
        """
        self.db = db

    def _registers_opened_between(self, start_date: date, end_date: date) -> list[CashRegister]:
        return self.db.list_cash_registers(
            opened_from=datetime.combine(start_date, datetime.min.time()),
            opened_before=datetime.combine(end_date + timedelta(days=1), datetime.min.time()),
            newest_first=False,
        )

    def get_daily_report(self, day: date) -> DailyReport:
        """Report on all registers opened on ``day`` with their transactions.

        Cancelled transactions are listed but left out of the money totals.
        The closing balance total is None if any register is still open.
        """
        registers = self._registers_opened_between(day, day)

        reports = []
        entries = ZERO
        exits = ZERO
        active_count = 0
        cancelled_count = 0
        for register in registers:
            transactions = self.db.list_cash_transactions(register_id=register.id, newest_first=False)
            totals = compute_totals(transactions)
            entries += totals.entries
            exits += totals.exits
            active_count += totals.active_count
            cancelled_count += totals.cancelled_count
            reports.append(RegisterReport(register=register, transactions=tuple(transactions)))

        return DailyReport(
            date=day,
            registers=tuple(reports),
            totals=ReportTotals(
                opening_balance=sum_money(r.opening_balance for r in registers),
                closing_balance=_closing_total(registers),
                total_entries=entries,
                total_exits=exits,
                net_movement=entries - exits,
                transaction_count=active_count,
                cancelled_count=cancelled_count,
            ),
        )

    def get_period_report(self, start_date: date, end_date: date) -> PeriodReport:
        """Summarize registers opened between two dates, both inclusive.

        Only days with at least one register appear.

        Raises:
            ValidationError: If start_date is after end_date
        """
        if start_date > end_date:
            raise ValidationError("Start date must be on or before end date")

        by_day: dict[date, list[CashRegister]] = defaultdict(list)
        for register in self._registers_opened_between(start_date, end_date):
            by_day[register.opened_at.date()].append(register)

        days = []
        for day in sorted(by_day):
            registers = by_day[day]
            entries = ZERO
            exits = ZERO
            for register in registers:
                totals = compute_totals(self.db.list_cash_transactions(register_id=register.id))
                entries += totals.entries
                exits += totals.exits
            days.append(
                DailySummary(
                    date=day,
                    registers_count=len(registers),
                    total_opening=sum_money(r.opening_balance for r in registers),
                    total_closing=_closing_total(registers),
                    total_entries=entries,
                    total_exits=exits,
                )
            )

        total_entries = sum_money(d.total_entries for d in days)
        total_exits = sum_money(d.total_exits for d in days)
        if any(d.total_closing is None for d in days):
            total_closing = None
        else:
            total_closing = sum_money(d.total_closing for d in days)

        return PeriodReport(
            start_date=start_date,
            end_date=end_date,
            days=tuple(days),
            totals=PeriodTotals(
                total_registers=sum(d.registers_count for d in days),
                total_opening=sum_money(d.total_opening for d in days),
                total_closing=total_closing,
                total_entries=total_entries,
                total_exits=total_exits,
                net_movement=total_entries - total_exits,
                days_count=len(days),
            ),
        )
