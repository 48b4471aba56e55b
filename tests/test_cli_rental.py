"""Tests for rental, payment and dashboard commands."""

from datetime import datetime

import pytest

from rentdesk.cli.main import cli
from rentdesk.domain.clock import FixedClock


@pytest.fixture
def run(cli_runner, temp_db):
    """Invoke the CLI against the temporary database with a pinned clock."""
    clock = FixedClock(datetime(2024, 1, 1, 9, 0))

    def invoke(*args):
        return cli_runner.invoke(cli, ["--db-path", temp_db.database_path, *args], obj={"clock": clock})

    invoke.clock = clock
    return invoke


@pytest.fixture
def catalog(run):
    """One client and one kayak billed at 10.00 per hour."""
    run("client", "create", "Maria Silva")
    run("item", "create", "Kayak", "--code", "IT-01", "--category", "boats", "--value", "10")
    return run


def _rent(run, *extra):
    return run(
        "rental", "create", "--client", "1", "--item", "1",
        "--start", "2024-01-01 10:00", "--end", "2024-01-01 12:00", *extra,
    )


class TestRentalCommands:
    def test_create_rental(self, catalog):
        """Test renting an item with a deposit."""
        result = _rent(catalog, "--deposit", "5")

        assert result.exit_code == 0
        assert "Created rental 1: value 20.00, discount 0.00, total 20.00" in result.output
        assert "Deposit 5.00 recorded as payment" in result.output

    def test_create_rental_with_discount(self, catalog):
        result = _rent(catalog, "--discount", "2.5")

        assert result.exit_code == 0
        assert "discount 2.50, total 17.50" in result.output

    def test_item_cannot_be_rented_twice(self, catalog):
        _rent(catalog)
        result = _rent(catalog)

        assert result.exit_code == 1
        assert "Item is not available (current status: rented)" in result.output

    def test_create_rental_unknown_client(self, catalog):
        result = catalog("rental", "create", "--client", "9", "--item", "1", "--end", "+2h")

        assert result.exit_code == 1
        assert "Client 9 not found" in result.output

    def test_create_rental_end_before_start(self, catalog):
        result = catalog("rental", "create", "--client", "1", "--item", "1", "--start", "now", "--end", "2023-12-31")

        assert result.exit_code == 1
        assert "Expected end date must be after the start date" in result.output

    def test_create_rental_unparseable_end(self, catalog):
        result = catalog("rental", "create", "--client", "1", "--item", "1", "--end", "whenever")

        assert result.exit_code == 1
        assert "Error:" in result.output

    def test_relative_dates_use_clock(self, catalog):
        result = catalog("rental", "create", "--client", "1", "--item", "1", "--end", "+3h")

        assert result.exit_code == 0
        assert "value 30.00" in result.output

        result = catalog("rental", "list")
        assert "2024-01-01 09:00 -> 2024-01-01 12:00" in result.output

    def test_complete_late(self, catalog):
        """Test a return 30 minutes late charges half an hour."""
        _rent(catalog)

        result = catalog("rental", "complete", "1", "--at", "2024-01-01 12:30")
        assert result.exit_code == 0
        assert "Completed rental 1: late fee 5.00, total 25.00" in result.output

        result = catalog("rental", "show", "1")
        assert "(completed)" in result.output
        assert "Returned:      2024-01-01 12:30" in result.output

        result = catalog("item", "list", "--status", "available")
        assert "Kayak" in result.output

    def test_complete_twice(self, catalog):
        _rent(catalog)
        catalog("rental", "complete", "1", "--at", "2024-01-01 12:00")
        result = catalog("rental", "complete", "1")

        assert result.exit_code == 1
        assert "cannot be completed (status: completed)" in result.output

    def test_cancel_rental(self, catalog):
        _rent(catalog)

        result = catalog("rental", "cancel", "1")
        assert result.exit_code == 0
        assert "Cancelled rental 1" in result.output

        result = catalog("rental", "list", "--status", "cancelled")
        assert "ID:   1" in result.output

    def test_show_unknown_rental(self, catalog):
        result = catalog("rental", "show", "3")

        assert result.exit_code == 1
        assert "Rental 3 not found" in result.output

    def test_list_empty(self, catalog):
        result = catalog("rental", "list")

        assert "No rentals found." in result.output

    def test_check_overdue(self, catalog):
        catalog("rental", "create", "--client", "1", "--item", "1", "--end", "+1h")

        result = catalog("rental", "check-overdue")
        assert "0 rental(s) marked overdue" in result.output

        catalog.clock.set(datetime(2024, 1, 1, 11, 0))
        result = catalog("rental", "check-overdue")
        assert result.exit_code == 0
        assert "1 rental(s) marked overdue" in result.output

        result = catalog("rental", "list", "--status", "overdue")
        assert "ID:   1" in result.output

        result = catalog("rental", "check-overdue")
        assert "0 rental(s) marked overdue" in result.output


class TestSendToCashier:
    def test_requires_open_register(self, catalog):
        _rent(catalog, "--deposit", "5")
        result = catalog("rental", "send-to-cashier", "1")

        assert result.exit_code == 1
        assert "no open cash register" in result.output

    def test_deposit_then_full(self, catalog):
        _rent(catalog, "--deposit", "5")
        catalog("cashier", "open", "--balance", "50")

        result = catalog("rental", "send-to-cashier", "1", "--mode", "deposit")
        assert result.exit_code == 0
        assert "1 transaction(s) posted to register 1" in result.output
        assert "deposit" in result.output

        result = catalog("rental", "send-to-cashier", "1", "--mode", "deposit")
        assert result.exit_code == 1
        assert "already fully sent" in result.output

        catalog("payment", "add", "1", "15", "--method", "pix")
        result = catalog("rental", "send-to-cashier", "1")
        assert result.exit_code == 0
        assert "1 transaction(s) posted to register 1" in result.output
        assert "15.00" in result.output

        result = catalog("rental", "send-to-cashier", "1")
        assert result.exit_code == 1
        assert "already sent" in result.output

        result = catalog("cashier", "show")
        assert "70.00" in result.output

    def test_amount_mode(self, catalog):
        _rent(catalog)
        catalog("cashier", "open")

        result = catalog("rental", "send-to-cashier", "1", "--mode", "amount", "--amount", "12.5")
        assert result.exit_code == 0
        assert "12.50" in result.output

        result = catalog("rental", "send-to-cashier", "1", "--mode", "amount")
        assert result.exit_code == 1
        assert "greater than zero" in result.output


class TestPaymentCommands:
    def test_add_payment_and_balance(self, catalog):
        """Test paying off a rental in two parts."""
        _rent(catalog, "--deposit", "5")

        result = catalog("payment", "add", "1", "10", "--method", "pix", "--notes", "first half")
        assert result.exit_code == 0
        assert "Recorded payment 2: 10.00 via pix" in result.output

        result = catalog("payment", "balance", "1")
        assert result.exit_code == 0
        assert "Total:          20.00" in result.output
        assert "Paid:           15.00" in result.output
        assert "Remaining:       5.00" in result.output

        result = catalog("payment", "add", "1", "5")
        assert result.exit_code == 0

        result = catalog("payment", "balance", "1")
        assert "Remaining:       0.00" in result.output

    def test_overpayment_rejected(self, catalog):
        _rent(catalog)
        result = catalog("payment", "add", "1", "20.02")

        assert result.exit_code == 1
        assert "Amount exceeds the remaining balance" in result.output
        assert "Remaining: 20.00" in result.output

    def test_rounding_tolerance(self, catalog):
        _rent(catalog)
        result = catalog("payment", "add", "1", "20.004")

        assert result.exit_code == 0
        assert "Recorded payment 1: 20.00 via cash" in result.output

    def test_non_positive_payment(self, catalog):
        _rent(catalog)
        result = catalog("payment", "add", "1", "0")

        assert result.exit_code == 1
        assert "greater than zero" in result.output

    def test_payment_date_option(self, catalog):
        _rent(catalog)
        catalog("payment", "add", "1", "4", "--date", "yesterday")

        result = catalog("payment", "list", "--rental", "1")
        assert "2023-12-31 00:00" in result.output

    def test_list_payments_by_method(self, catalog):
        _rent(catalog, "--deposit", "5")
        catalog("payment", "add", "1", "3", "--method", "credit_card")

        result = catalog("payment", "list", "--method", "credit_card")
        assert "credit_card" in result.output
        assert "   5.00" not in result.output

        result = catalog("payment", "list", "--method", "pix")
        assert "No payments found." in result.output

    def test_balance_unknown_rental(self, catalog):
        result = catalog("payment", "balance", "8")

        assert result.exit_code == 1
        assert "Rental 8 not found" in result.output


def test_dashboard(catalog):
    _rent(catalog, "--deposit", "5")

    result = catalog("dashboard", "--days", "3")
    assert result.exit_code == 0
    assert "Dashboard" in result.output
    assert "Clients:            1" in result.output
    assert "1 rented" in result.output
    assert "Active rentals:     1" in result.output
    assert "Revenue total:" in result.output


def test_client_history(catalog):
    _rent(catalog)

    result = catalog("client", "history", "1")

    assert result.exit_code == 0
    assert "IT-01" in result.output
    assert "Kayak" in result.output
    assert "2024-01-01 10:00 -> 2024-01-01 12:00" in result.output
    assert "active" in result.output
