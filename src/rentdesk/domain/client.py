"""Client domain service."""

import logging
from typing import Optional

from rentdesk.database.base import Database
from rentdesk.domain import audit
from rentdesk.domain.audit import AuditSink, LoggingAuditSink
from rentdesk.domain.clock import Clock, SystemClock
from rentdesk.domain.entities import Client, RentalHistoryEntry
from rentdesk.domain.errors import ConflictError, NotFoundError, ValidationError, client_not_found

logger = logging.getLogger(__name__)


class ClientService:
    """Service for managing clients."""

    def __init__(self, db: Database, clock: Optional[Clock] = None, audit_sink: Optional[AuditSink] = None):
        """Initialize client service.

        Args:
            db: Database instance
            clock: Source of the current time (defaults to system clock)
            audit_sink: Destination of audit events (defaults to logging)
        """
        self.db = db
        self.clock = clock or SystemClock()
        self.audit = audit_sink or LoggingAuditSink()

    def create_client(
        self,
        name: str,
        user_id: int,
        document: Optional[str] = None,
        phone: Optional[str] = None,
        email: Optional[str] = None,
    ) -> Client:
        """Create a client.

        Raises:
            ValidationError: If name is blank
        """
        name = (name or "").strip()
        if not name:
            raise ValidationError("Client name cannot be empty")

        now = self.clock.now()
        client_id = self.db.create_client(
            name=name,
            created_at=now,
            document=document,
            phone=phone,
            email=email,
        )
        logger.info("Created client %s", client_id)
        audit.emit(self.audit, now, user_id, audit.CLIENT_CREATE, "client", client_id, name)
        return self.db.get_client(client_id)

    def get_client(self, client_id: int) -> Optional[Client]:
        """Get client by ID."""
        return self.db.get_client(client_id)

    def list_clients(self, search: Optional[str] = None, include_inactive: bool = False) -> list[Client]:
        """List clients, optionally filtered by a name fragment."""
        return self.db.list_clients(search=search, include_inactive=include_inactive)

    def deactivate_client(self, client_id: int, user_id: int) -> None:
        """Deactivate a client.

        Raises:
            NotFoundError: If the client doesn't exist
            ConflictError: If the client still holds an open rental
        """
        client = self.db.get_client(client_id)
        if client is None:
            raise NotFoundError(client_not_found(client_id))

        open_rentals = self.db.count_open_rentals(client_id=client_id)
        if open_rentals > 0:
            raise ConflictError(
                f"Client {client_id} has {open_rentals} open rental(s) and cannot be deactivated"
            )

        self.db.update_client_active(client_id, False)
        audit.emit(self.audit, self.clock.now(), user_id, audit.CLIENT_DEACTIVATE, "client", client_id, client.name)

    def update_client(
        self,
        client_id: int,
        user_id: int,
        name: Optional[str] = None,
        document: Optional[str] = None,
        phone: Optional[str] = None,
        email: Optional[str] = None,
    ) -> Client:
        """Edit a client's fields. Arguments left as None are not changed.

        An empty document, phone or email clears that field.

        Raises:
            NotFoundError: If the client doesn't exist
            ValidationError: If nothing is given or the name is blank
        """
        client = self.db.get_client(client_id)
        if client is None:
            raise NotFoundError(client_not_found(client_id))

        changes: dict[str, Optional[str]] = {}
        if name is not None:
            name = name.strip()
            if not name:
                raise ValidationError("Client name cannot be empty")
            changes["name"] = name
        for field, value in (("document", document), ("phone", phone), ("email", email)):
            if value is not None:
                changes[field] = value.strip() or None
        if not changes:
            raise ValidationError("No field to update")

        self.db.update_client(client_id, changes)
        logger.info("Updated client %s: %s", client_id, ", ".join(sorted(changes)))
        audit.emit(
            self.audit,
            self.clock.now(),
            user_id,
            audit.CLIENT_UPDATE,
            "client",
            client_id,
            ", ".join(sorted(changes)),
        )
        return self.db.get_client(client_id)

    def rental_history(self, client_id: int) -> list[RentalHistoryEntry]:
        """A client's rentals with the rented item's name and code, newest first.

        Raises:
            NotFoundError: If the client doesn't exist
        """
        if self.db.get_client(client_id) is None:
            raise NotFoundError(client_not_found(client_id))
        return self.db.list_client_rental_history(client_id)
