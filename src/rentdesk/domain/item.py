"""Item availability and pricing tier service."""

import logging
from decimal import Decimal
from typing import Optional, Sequence

from rentdesk.database.base import Database
from rentdesk.domain import audit
from rentdesk.domain.audit import AuditSink, LoggingAuditSink
from rentdesk.domain.clock import Clock, SystemClock
from rentdesk.domain.entities import Item, ItemStatus, PricingTier, PricingTierInput, RentalPeriod
from rentdesk.domain.errors import ConflictError, NotFoundError, ValidationError, item_not_found
from rentdesk.domain.money import to_money

logger = logging.getLogger(__name__)

# Statuses an operator may set by hand. 'rented' only follows rental transitions.
MANUAL_STATUSES = (ItemStatus.AVAILABLE, ItemStatus.MAINTENANCE)


def validate_pricing_tiers(tiers: Sequence[PricingTierInput]) -> list[PricingTierInput]:
    """Check a tier set and normalize prices to cents.

    Raises:
        ValidationError: On non-positive duration, negative price or tolerance, or blank label
    """
    normalized = []
    for position, tier in enumerate(tiers, start=1):
        if tier.duration_minutes is None or tier.duration_minutes <= 0:
            raise ValidationError(f"Pricing tier {position}: duration must be positive")
        if not (tier.label or "").strip():
            raise ValidationError(f"Pricing tier {position}: label cannot be empty")
        price = to_money(tier.price)
        if price < 0:
            raise ValidationError(f"Pricing tier {position}: price cannot be negative")
        if (tier.tolerance_minutes or 0) < 0:
            raise ValidationError(f"Pricing tier {position}: tolerance cannot be negative")
        normalized.append(
            PricingTierInput(
                duration_minutes=tier.duration_minutes,
                label=tier.label.strip(),
                price=price,
                tolerance_minutes=tier.tolerance_minutes or 0,
            )
        )
    return normalized


class ItemService:
    """Service for managing rental items and their pricing tiers."""

    def __init__(self, db: Database, clock: Optional[Clock] = None, audit_sink: Optional[AuditSink] = None):
        """Initialize item service.

        Args:
            db: Database instance
            clock: Source of the current time (defaults to system clock)
            audit_sink: Destination of audit events (defaults to logging)
        """
        self.db = db
        self.clock = clock or SystemClock()
        self.audit = audit_sink or LoggingAuditSink()

    def create_item(
        self,
        name: str,
        code: str,
        category: str,
        user_id: int,
        base_rental_value: Decimal = Decimal("0"),
        rental_period: RentalPeriod = RentalPeriod.HOUR,
        observations: Optional[str] = None,
        pricing_tiers: Sequence[PricingTierInput] = (),
    ) -> Item:
        """Create an item.

        When pricing tiers are given, the first tier's price becomes the
        item's base rental value.

        Args:
            name: Item name
            code: Unique item code
            category: Free-form category name
            user_id: Acting user
            base_rental_value: Price per rental period
            rental_period: Billing unit for period-based pricing
            observations: Optional notes
            pricing_tiers: Optional fixed-price tiers, in display order

        Returns:
            Created item

        Raises:
            ValidationError: If a field is blank or a value is out of range
            ConflictError: If the code is already used
        """
        name = (name or "").strip()
        code = (code or "").strip()
        category = (category or "").strip()
        if not name:
            raise ValidationError("Item name cannot be empty")
        if not code:
            raise ValidationError("Item code cannot be empty")
        if not category:
            raise ValidationError("Item category cannot be empty")

        tiers = validate_pricing_tiers(pricing_tiers)
        base_value = tiers[0].price if tiers else to_money(base_rental_value)
        if base_value < 0:
            raise ValidationError("Base rental value cannot be negative")

        if self.db.get_item_by_code(code) is not None:
            raise ConflictError(f"Item code '{code}' is already in use")

        now = self.clock.now()
        item_id = self.db.create_item(
            name=name,
            code=code,
            category=category,
            base_rental_value=base_value,
            rental_period=RentalPeriod(rental_period),
            created_at=now,
            observations=observations,
            pricing_tiers=tiers,
        )
        logger.info("Created item %s (%s) with %d pricing tier(s)", item_id, code, len(tiers))
        audit.emit(self.audit, now, user_id, audit.ITEM_CREATE, "item", item_id, f"{code} - {name}")
        return self.db.get_item(item_id)

    def get_item(self, item_id: int) -> Optional[Item]:
        """Get item by ID."""
        return self.db.get_item(item_id)

    def list_items(
        self,
        status: Optional[ItemStatus] = None,
        category: Optional[str] = None,
        search: Optional[str] = None,
    ) -> list[Item]:
        """List active items with optional filters."""
        return self.db.list_items(status=status, category=category, search=search)

    def list_categories(self) -> list[str]:
        """List categories in use."""
        return self.db.list_item_categories()

    def set_status(self, item_id: int, status: ItemStatus, user_id: int) -> Item:
        """Toggle an item between available and maintenance.

        Raises:
            NotFoundError: If the item doesn't exist
            ValidationError: If status is not a manual status
            ConflictError: While an open rental references the item
        """
        status = ItemStatus(status)
        item = self.db.get_item(item_id)
        if item is None:
            raise NotFoundError(item_not_found(item_id))
        self._check_manual_status(item, status)

        now = self.clock.now()
        self.db.update_item_status(item_id, status, now)
        audit.emit(
            self.audit,
            now,
            user_id,
            audit.ITEM_STATUS_CHANGE,
            "item",
            item_id,
            f"{item.status.value} -> {status.value}",
        )
        return self.db.get_item(item_id)

    def _check_manual_status(self, item: Item, status: ItemStatus) -> None:
        if status not in MANUAL_STATUSES:
            raise ValidationError(
                f"Status '{status.value}' cannot be set manually; use a rental instead"
            )
        if item.status == ItemStatus.RENTED or self.db.count_open_rentals(item_id=item.id) > 0:
            raise ConflictError(f"Item {item.id} is rented; its status follows the rental")

    def update_item(
        self,
        item_id: int,
        user_id: int,
        name: Optional[str] = None,
        code: Optional[str] = None,
        category: Optional[str] = None,
        base_rental_value: Optional[Decimal] = None,
        rental_period: Optional[RentalPeriod] = None,
        observations: Optional[str] = None,
        status: Optional[ItemStatus] = None,
    ) -> Item:
        """Edit an item's fields. Arguments left as None are not changed.

        An empty ``observations`` string clears the notes. Status follows the
        same rules as set_status.

        Raises:
            NotFoundError: If the item doesn't exist
            ValidationError: If nothing is given, a field is blank or a value is out of range
            ConflictError: If the code belongs to another item, or the status
                is changed while an open rental references the item
        """
        item = self.db.get_item(item_id)
        if item is None:
            raise NotFoundError(item_not_found(item_id))

        changes = {}
        for field, value in (("name", name), ("code", code), ("category", category)):
            if value is None:
                continue
            value = value.strip()
            if not value:
                raise ValidationError(f"Item {field} cannot be empty")
            changes[field] = value
        if base_rental_value is not None:
            value = to_money(base_rental_value)
            if value < 0:
                raise ValidationError("Base rental value cannot be negative")
            changes["base_rental_value"] = value
        if rental_period is not None:
            changes["rental_period"] = RentalPeriod(rental_period)
        if observations is not None:
            changes["observations"] = observations.strip() or None
        if status is not None:
            status = ItemStatus(status)
            self._check_manual_status(item, status)
            changes["status"] = status
        if not changes:
            raise ValidationError("No field to update")

        if "code" in changes:
            holder = self.db.get_item_by_code(changes["code"])
            if holder is not None and holder.id != item_id:
                raise ConflictError(f"Item code '{changes['code']}' is already in use")

        now = self.clock.now()
        self.db.update_item(item_id, changes, now)
        logger.info("Updated item %s: %s", item_id, ", ".join(sorted(changes)))
        audit.emit(
            self.audit,
            now,
            user_id,
            audit.ITEM_UPDATE,
            "item",
            item_id,
            ", ".join(sorted(changes)),
        )
        return self.db.get_item(item_id)

    def available_items(self) -> list[Item]:
        """Active items ready to rent, by category then name."""
        return self.db.list_items(status=ItemStatus.AVAILABLE, by_category=True)

    def maintenance_items(self) -> list[Item]:
        """Active items in maintenance, by category then name."""
        return self.db.list_items(status=ItemStatus.MAINTENANCE, by_category=True)

    def deactivate_item(self, item_id: int, user_id: int) -> None:
        """Deactivate an item.

        Raises:
            NotFoundError: If the item doesn't exist
            ConflictError: While the item is rented
        """
        item = self.db.get_item(item_id)
        if item is None:
            raise NotFoundError(item_not_found(item_id))
        if item.status == ItemStatus.RENTED:
            raise ConflictError(f"Item {item_id} is rented and cannot be deactivated")

        now = self.clock.now()
        self.db.update_item_active(item_id, False, now)
        audit.emit(self.audit, now, user_id, audit.ITEM_DEACTIVATE, "item", item_id, item.code)

    def list_pricing_tiers(self, item_id: int) -> list[PricingTier]:
        """List an item's pricing tiers in display order."""
        return self.db.list_pricing_tiers(item_id)

    def save_pricing_tiers(
        self,
        item_id: int,
        tiers: Sequence[PricingTierInput],
        user_id: int,
    ) -> list[PricingTier]:
        """Replace all pricing tiers of an item.

        The new tiers keep the given order. An empty sequence clears them.

        Raises:
            NotFoundError: If the item doesn't exist
            ValidationError: If a tier is invalid
        """
        if self.db.get_item(item_id) is None:
            raise NotFoundError(item_not_found(item_id))

        normalized = validate_pricing_tiers(tiers)
        self.db.replace_pricing_tiers(item_id, normalized)
        logger.info("Saved %d pricing tier(s) for item %s", len(normalized), item_id)
        audit.emit(
            self.audit,
            self.clock.now(),
            user_id,
            audit.ITEM_PRICING_SAVE,
            "item",
            item_id,
            f"{len(normalized)} tier(s)",
        )
        return self.db.list_pricing_tiers(item_id)
