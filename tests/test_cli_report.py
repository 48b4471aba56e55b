"""Tests for report commands."""

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

    return invoke


@pytest.fixture
def paid(run):
    """Kayak rented by Maria for 20.00: 5.00 deposit in cash and 10.00 by pix."""
    run("client", "create", "Maria Silva")
    run("item", "create", "Kayak", "--code", "IT-01", "--category", "boats", "--value", "10")
    run("item", "create", "Raft", "--code", "RF-01", "--category", "boats", "--value", "8")
    run("item", "create", "Bike", "--code", "BK-01", "--category", "bikes", "--value", "5")
    run(
        "rental", "create", "--client", "1", "--item", "1",
        "--start", "2024-01-01 10:00", "--end", "2024-01-01 12:00", "--deposit", "5",
    )
    run("payment", "add", "1", "10", "--method", "pix")
    return run


class TestRevenue:
    def test_defaults_to_this_month_per_day(self, paid):
        result = paid("report", "revenue")

        assert result.exit_code == 0
        assert "Revenue 2024-01-01 to 2024-01-01, per day" in result.output
        assert "2024-01-01          15.00  (2 payment(s))" in result.output

    def test_year_per_month(self, paid):
        result = paid("report", "revenue", "--year", "2024")

        assert result.exit_code == 0
        assert "Revenue 2024, per month" in result.output
        assert "2024-01             15.00" in result.output

    def test_range_per_week(self, paid):
        result = paid(
            "report", "revenue", "--start-date", "2023-12-01", "--end-date", "2024-01-31", "--group-by", "week"
        )

        assert result.exit_code == 0
        assert "2024-W01" in result.output
        assert "2023-W" not in result.output

    def test_no_payments(self, run):
        result = run("report", "revenue", "--year", "2020")

        assert result.exit_code == 0
        assert "No payments in this period." in result.output

    def test_year_excludes_other_dates(self, run):
        result = run("report", "revenue", "--year", "2024", "--this-month")

        assert result.exit_code == 1
        assert "--year cannot be combined" in result.output

    def test_reversed_range(self, run):
        result = run("report", "revenue", "--start-date", "2024-02-01", "--end-date", "2024-01-01")

        assert result.exit_code == 1
        assert "Start date must be on or before end date" in result.output


class TestRankings:
    def test_top_items(self, paid):
        result = paid("report", "top-items")

        assert result.exit_code == 0
        assert " 1. IT-01" in result.output
        assert "1 rental(s)" in result.output
        assert "20.00" in result.output

    def test_top_clients(self, paid):
        result = paid("report", "top-clients", "--limit", "1")

        assert result.exit_code == 0
        assert " 1. Maria Silva" in result.output

    def test_without_rentals(self, run):
        assert "No rentals yet." in run("report", "top-items").output
        assert "No rentals yet." in run("report", "top-clients").output

    def test_limit_must_be_positive(self, run):
        result = run("report", "top-items", "--limit", "0")

        assert result.exit_code == 1
        assert "Limit must be greater than zero" in result.output


class TestItemReports:
    def test_available_grouped_by_category(self, paid):
        result = paid("report", "available")

        assert result.exit_code == 0
        assert result.output.index("bikes:") < result.output.index("BK-01") < result.output.index("boats:")
        assert "RF-01" in result.output
        assert "IT-01" not in result.output

    def test_maintenance(self, paid):
        assert "No items in maintenance." in paid("report", "maintenance").output

        paid("item", "status", "2", "maintenance")
        result = paid("report", "maintenance")

        assert result.exit_code == 0
        assert "boats:" in result.output
        assert "RF-01" in result.output
