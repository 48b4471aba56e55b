"""Shared pytest fixtures for rentdesk tests."""

import os
import tempfile
from datetime import datetime
from decimal import Decimal

import pytest

from rentdesk.database.factories import create_sqlite_database
from rentdesk.domain.audit import AuditSink
from rentdesk.domain.cash_report import CashReportService
from rentdesk.domain.cashier import CashierService
from rentdesk.domain.client import ClientService
from rentdesk.domain.clock import FixedClock
from rentdesk.domain.dashboard import DashboardService
from rentdesk.domain.entities import RentalPeriod
from rentdesk.domain.item import ItemService
from rentdesk.domain.payment import PaymentService
from rentdesk.domain.rental import RentalService
from rentdesk.domain.settlement import CashierSettlementService
from rentdesk.logging_config import reset_logging

OPERATOR_ID = 1


class RecordingAuditSink(AuditSink):
    """Audit sink that keeps events in memory."""

    def __init__(self):
        self.events = []

    def record(self, event):
        self.events.append(event)

    def actions(self):
        return [e.action for e in self.events]


@pytest.fixture(autouse=True)
def clean_logging():
    """Undo any handler installed by the CLI so caplog keeps working."""
    yield
    reset_logging()


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def fixed_clock():
    """Clock pinned to 2024-01-01 09:00."""
    return FixedClock(datetime(2024, 1, 1, 9, 0))


@pytest.fixture
def audit_sink():
    """In-memory audit sink."""
    return RecordingAuditSink()


@pytest.fixture
def client_service(temp_db, fixed_clock, audit_sink):
    return ClientService(temp_db, clock=fixed_clock, audit_sink=audit_sink)


@pytest.fixture
def item_service(temp_db, fixed_clock, audit_sink):
    return ItemService(temp_db, clock=fixed_clock, audit_sink=audit_sink)


@pytest.fixture
def rental_service(temp_db, fixed_clock, audit_sink):
    return RentalService(temp_db, clock=fixed_clock, audit_sink=audit_sink)


@pytest.fixture
def payment_service(temp_db, fixed_clock, audit_sink):
    return PaymentService(temp_db, clock=fixed_clock, audit_sink=audit_sink)


@pytest.fixture
def cashier_service(temp_db, fixed_clock, audit_sink):
    return CashierService(temp_db, clock=fixed_clock, audit_sink=audit_sink)


@pytest.fixture
def settlement_service(temp_db, fixed_clock, audit_sink):
    return CashierSettlementService(temp_db, clock=fixed_clock, audit_sink=audit_sink)


@pytest.fixture
def report_service(temp_db):
    return CashReportService(temp_db)


@pytest.fixture
def dashboard_service(temp_db, fixed_clock):
    return DashboardService(temp_db, clock=fixed_clock)


@pytest.fixture
def sample_client(client_service):
    """Create a sample client for testing."""
    return client_service.create_client(name="Maria Silva", user_id=OPERATOR_ID, phone="555-0101")


@pytest.fixture
def sample_item(item_service):
    """Create an hourly item worth 10.00 per hour."""
    return item_service.create_item(
        name="Kayak",
        code="IT-01",
        category="boats",
        user_id=OPERATOR_ID,
        base_rental_value=Decimal("10.00"),
        rental_period=RentalPeriod.HOUR,
    )


@pytest.fixture
def sample_rental(rental_service, sample_client, sample_item):
    """Two-hour rental of the sample item (total 20.00)."""
    return rental_service.create(
        client_id=sample_client.id,
        item_id=sample_item.id,
        start_date=datetime(2024, 1, 1, 10, 0),
        expected_end_date=datetime(2024, 1, 1, 12, 0),
        user_id=OPERATOR_ID,
    )


@pytest.fixture
def open_register(cashier_service):
    """Register of OPERATOR_ID opened with 100.00."""
    return cashier_service.open_register(operator_id=OPERATOR_ID, opening_balance=Decimal("100.00"))


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()
