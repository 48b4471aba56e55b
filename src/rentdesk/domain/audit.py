"""Audit events and sinks.

Every state-changing service call records one AuditEvent after its write
succeeds. Where the events end up is the sink's business; the default sink
writes them to the ``rentdesk.audit`` logger.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Optional

AUDIT_LOGGER_NAME = "rentdesk.audit"

CLIENT_CREATE = "CLIENT_CREATE"
CLIENT_DEACTIVATE = "CLIENT_DEACTIVATE"
CLIENT_UPDATE = "CLIENT_UPDATE"
ITEM_CREATE = "ITEM_CREATE"
ITEM_STATUS_CHANGE = "ITEM_STATUS_CHANGE"
ITEM_DEACTIVATE = "ITEM_DEACTIVATE"
ITEM_UPDATE = "ITEM_UPDATE"
ITEM_PRICING_SAVE = "ITEM_PRICING_SAVE"
RENTAL_CREATE = "RENTAL_CREATE"
RENTAL_COMPLETE = "RENTAL_COMPLETE"
RENTAL_CANCEL = "RENTAL_CANCEL"
RENTAL_OVERDUE_SWEEP = "RENTAL_OVERDUE_SWEEP"
RENTAL_TO_CASHIER = "RENTAL_TO_CASHIER"
PAYMENT_CREATE = "PAYMENT_CREATE"
CASHIER_OPEN = "CASHIER_OPEN"
CASHIER_CLOSE = "CASHIER_CLOSE"
CASHIER_ENTRY = "CASHIER_ENTRY"
CASHIER_EXIT = "CASHIER_EXIT"
CASHIER_CANCEL = "CASHIER_CANCEL"


@dataclass(frozen=True)
class AuditEvent:
    """One auditable state change."""

    actor_id: Optional[int]
    action: str
    resource: str
    resource_id: Optional[int]
    details: str
    occurred_at: datetime
    origin: Optional[str] = None


class AuditSink(ABC):
    """Append-only destination for audit events."""

    @abstractmethod
    def record(self, event: AuditEvent) -> None:
        """Store or forward an audit event."""


class LoggingAuditSink(AuditSink):
    """Audit sink that writes events to the standard logging system."""

    def __init__(self, origin: Optional[str] = None, logger: Optional[logging.Logger] = None):
        """Initialize logging audit sink.

        Args:
            origin: Origin address stamped on events that carry none
            logger: Logger to write to (defaults to ``rentdesk.audit``)
        """
        self.origin = origin
        self.logger = logger or logging.getLogger(AUDIT_LOGGER_NAME)

    def record(self, event: AuditEvent) -> None:
        if event.origin is None and self.origin is not None:
            event = replace(event, origin=self.origin)
        self.logger.info(
            "%s %s#%s by %s: %s",
            event.action,
            event.resource,
            event.resource_id,
            event.actor_id,
            event.details,
            extra={
                "audit_action": event.action,
                "audit_resource": event.resource,
                "audit_resource_id": event.resource_id,
                "audit_actor_id": event.actor_id,
                "audit_origin": event.origin,
                "audit_occurred_at": event.occurred_at.isoformat(),
            },
        )


def emit(
    sink: AuditSink,
    occurred_at: datetime,
    actor_id: Optional[int],
    action: str,
    resource: str,
    resource_id: Optional[int],
    details: str = "",
) -> None:
    """Build an AuditEvent and hand it to ``sink``."""
    sink.record(
        AuditEvent(
            actor_id=actor_id,
            action=action,
            resource=resource,
            resource_id=resource_id,
            details=details,
            occurred_at=occurred_at,
        )
    )
