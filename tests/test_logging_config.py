"""Tests for logging setup."""

import io
import logging

import pytest

from rentdesk.logging_config import KeyValueFormatter, configure_logging, reset_logging


def test_configure_logging_installs_one_handler():
    stream = io.StringIO()
    configure_logging("INFO", stream=stream)
    configure_logging("DEBUG", stream=stream)

    logger = logging.getLogger("rentdesk")
    assert len(logger.handlers) == 1
    assert logger.level == logging.DEBUG
    assert logger.propagate is False

    logging.getLogger("rentdesk.domain.cashier").debug("hello %s", "world")
    assert "DEBUG rentdesk.domain.cashier: hello world" in stream.getvalue()


def test_level_filters_records():
    stream = io.StringIO()
    configure_logging("WARNING", stream=stream)

    logging.getLogger("rentdesk.audit").info("quiet")
    assert stream.getvalue() == ""


def test_reset_logging_restores_propagation():
    configure_logging(logging.INFO, stream=io.StringIO())
    reset_logging()

    logger = logging.getLogger("rentdesk")
    assert logger.handlers == []
    assert logger.propagate is True
    assert logger.level == logging.NOTSET


def test_unknown_level():
    with pytest.raises(ValueError, match="Unknown log level"):
        configure_logging("LOUD")


def test_formatter_appends_extras():
    record = logging.LogRecord("rentdesk.audit", logging.INFO, __file__, 1, "event", (), None)
    record.audit_action = "CASHIER_OPEN"
    record.audit_origin = None

    line = KeyValueFormatter().format(record)

    assert line.endswith("INFO rentdesk.audit: event audit_action=CASHIER_OPEN")


def test_configure_logging_follows_new_stream():
    first, second = io.StringIO(), io.StringIO()
    configure_logging("INFO", stream=first)
    configure_logging("INFO", stream=second)

    logging.getLogger("rentdesk.cli").info("moved")

    assert len(logging.getLogger("rentdesk").handlers) == 1
    assert first.getvalue() == ""
    assert "moved" in second.getvalue()
