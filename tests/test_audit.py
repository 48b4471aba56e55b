"""Tests for audit events and the logging sink."""

import logging
from datetime import datetime

from rentdesk.domain import audit
from rentdesk.domain.audit import AUDIT_LOGGER_NAME, AuditEvent, LoggingAuditSink

NOW = datetime(2024, 1, 1, 9, 0)


def test_logging_sink_writes_record(caplog):
    """Test an event becomes one INFO record with structured extras."""
    sink = LoggingAuditSink(origin="cli")
    with caplog.at_level(logging.INFO, logger=AUDIT_LOGGER_NAME):
        audit.emit(sink, NOW, 7, audit.RENTAL_CREATE, "rental", 3, "value 20.00")

    [record] = caplog.records
    assert record.name == AUDIT_LOGGER_NAME
    assert record.levelno == logging.INFO
    assert record.getMessage() == "RENTAL_CREATE rental#3 by 7: value 20.00"
    assert record.audit_action == audit.RENTAL_CREATE
    assert record.audit_actor_id == 7
    assert record.audit_origin == "cli"
    assert record.audit_occurred_at == "2024-01-01T09:00:00"


def test_event_origin_is_kept(caplog):
    """Test the sink only fills in a missing origin."""
    sink = LoggingAuditSink(origin="cli")
    event = AuditEvent(
        actor_id=None,
        action=audit.RENTAL_OVERDUE_SWEEP,
        resource="rental",
        resource_id=None,
        details="2 rental(s) marked overdue",
        occurred_at=NOW,
        origin="scheduler",
    )
    with caplog.at_level(logging.INFO, logger=AUDIT_LOGGER_NAME):
        sink.record(event)

    assert caplog.records[0].audit_origin == "scheduler"


def test_custom_logger():
    logger = logging.getLogger("rentdesk.tests.audit")
    sink = LoggingAuditSink(logger=logger)
    assert sink.logger is logger


def test_emit_builds_event(audit_sink):
    audit.emit(audit_sink, NOW, 1, audit.CASHIER_OPEN, "cash_register", 4)

    [event] = audit_sink.events
    assert event.action == audit.CASHIER_OPEN
    assert event.resource == "cash_register"
    assert event.resource_id == 4
    assert event.details == ""
    assert event.occurred_at == NOW
    assert event.origin is None
