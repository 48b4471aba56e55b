"""Tests for item availability and pricing tiers."""

from datetime import datetime
from decimal import Decimal

import pytest

from rentdesk.domain import audit
from rentdesk.domain.entities import ItemStatus, PricingTierInput, RentalPeriod
from rentdesk.domain.errors import ConflictError, NotFoundError, ValidationError
from rentdesk.domain.item import validate_pricing_tiers

OPERATOR_ID = 1

TIERS = [
    PricingTierInput(duration_minutes=30, label="30 min", price=Decimal("10")),
    PricingTierInput(duration_minutes=60, label="1 hour", price=Decimal("18"), tolerance_minutes=5),
    PricingTierInput(duration_minutes=15, label="Quick", price=Decimal("6")),
]


class TestCreateItem:
    """Tests for creating items."""

    def test_create_item(self, item_service, audit_sink):
        item = item_service.create_item(
            name=" Kayak ",
            code="KY-01",
            category="boats",
            user_id=OPERATOR_ID,
            base_rental_value=Decimal("25"),
            rental_period=RentalPeriod.DAY,
            observations="Blue",
        )

        assert item.name == "Kayak"
        assert item.code == "KY-01"
        assert item.base_rental_value == Decimal("25.00")
        assert item.rental_period == RentalPeriod.DAY
        assert item.status == ItemStatus.AVAILABLE
        assert item.active is True
        assert item.observations == "Blue"
        assert audit_sink.actions() == [audit.ITEM_CREATE]

    def test_first_tier_sets_base_value(self, item_service):
        item = item_service.create_item(
            name="Bike", code="BK-01", category="bikes", user_id=OPERATOR_ID, pricing_tiers=TIERS
        )
        assert item.base_rental_value == Decimal("10.00")
        assert len(item_service.list_pricing_tiers(item.id)) == 3

    @pytest.mark.parametrize(
        "field, message",
        [("name", "name"), ("code", "code"), ("category", "category")],
    )
    def test_blank_fields(self, item_service, field, message):
        values = {"name": "Bike", "code": "BK-01", "category": "bikes"}
        values[field] = "  "
        with pytest.raises(ValidationError, match=message):
            item_service.create_item(user_id=OPERATOR_ID, **values)

    def test_negative_base_value(self, item_service):
        with pytest.raises(ValidationError, match="cannot be negative"):
            item_service.create_item(
                name="Bike", code="BK-01", category="bikes", user_id=OPERATOR_ID, base_rental_value=Decimal("-1")
            )

    def test_duplicate_code(self, item_service, sample_item):
        with pytest.raises(ConflictError, match="already in use"):
            item_service.create_item(name="Other", code=sample_item.code, category="boats", user_id=OPERATOR_ID)


class TestItemStatus:
    """Tests for manual status changes."""

    def test_toggle_maintenance(self, item_service, sample_item, audit_sink):
        item = item_service.set_status(sample_item.id, ItemStatus.MAINTENANCE, user_id=OPERATOR_ID)
        assert item.status == ItemStatus.MAINTENANCE
        assert audit_sink.events[-1].details == "available -> maintenance"

        item = item_service.set_status(sample_item.id, ItemStatus.AVAILABLE, user_id=OPERATOR_ID)
        assert item.status == ItemStatus.AVAILABLE

    def test_rented_cannot_be_set(self, item_service, sample_item):
        with pytest.raises(ValidationError, match="cannot be set manually"):
            item_service.set_status(sample_item.id, ItemStatus.RENTED, user_id=OPERATOR_ID)

    def test_rented_item_is_locked(self, item_service, sample_rental):
        """Test the status of a rented item follows its rental."""
        with pytest.raises(ConflictError, match="rented"):
            item_service.set_status(sample_rental.item_id, ItemStatus.MAINTENANCE, user_id=OPERATOR_ID)

    def test_unknown_item(self, item_service):
        with pytest.raises(NotFoundError):
            item_service.set_status(99, ItemStatus.MAINTENANCE, user_id=OPERATOR_ID)

    def test_deactivate(self, item_service, sample_item):
        item_service.deactivate_item(sample_item.id, user_id=OPERATOR_ID)
        assert item_service.get_item(sample_item.id).active is False
        assert item_service.list_items() == []

    def test_deactivate_rented(self, item_service, sample_rental):
        with pytest.raises(ConflictError):
            item_service.deactivate_item(sample_rental.item_id, user_id=OPERATOR_ID)


class TestPricingTiers:
    """Tests for saving and listing pricing tiers."""

    def test_round_trip_keeps_order(self, item_service, sample_item, audit_sink):
        """Test saved tiers come back in the given order, not sorted by duration."""
        saved = item_service.save_pricing_tiers(sample_item.id, TIERS, user_id=OPERATOR_ID)

        assert [(t.label, t.duration_minutes, t.price, t.tolerance_minutes) for t in saved] == [
            ("30 min", 30, Decimal("10.00"), 0),
            ("1 hour", 60, Decimal("18.00"), 5),
            ("Quick", 15, Decimal("6.00"), 0),
        ]
        assert [t.sort_order for t in saved] == [0, 1, 2]
        assert all(t.item_id == sample_item.id for t in saved)
        assert audit_sink.actions()[-1] == audit.ITEM_PRICING_SAVE

    def test_save_replaces_all(self, item_service, sample_item):
        item_service.save_pricing_tiers(sample_item.id, TIERS, user_id=OPERATOR_ID)
        saved = item_service.save_pricing_tiers(
            sample_item.id,
            [PricingTierInput(duration_minutes=120, label="2 hours", price=Decimal("30"))],
            user_id=OPERATOR_ID,
        )
        assert [t.label for t in saved] == ["2 hours"]
        assert [t.label for t in item_service.list_pricing_tiers(sample_item.id)] == ["2 hours"]

    def test_empty_set_clears(self, item_service, sample_item):
        item_service.save_pricing_tiers(sample_item.id, TIERS, user_id=OPERATOR_ID)
        assert item_service.save_pricing_tiers(sample_item.id, [], user_id=OPERATOR_ID) == []
        assert item_service.list_pricing_tiers(sample_item.id) == []

    def test_invalid_tier_keeps_old_set(self, item_service, sample_item):
        item_service.save_pricing_tiers(sample_item.id, TIERS, user_id=OPERATOR_ID)
        with pytest.raises(ValidationError, match="Pricing tier 2"):
            item_service.save_pricing_tiers(
                sample_item.id,
                [TIERS[0], PricingTierInput(duration_minutes=0, label="Zero", price=Decimal("1"))],
                user_id=OPERATOR_ID,
            )
        assert len(item_service.list_pricing_tiers(sample_item.id)) == 3

    def test_unknown_item(self, item_service):
        with pytest.raises(NotFoundError):
            item_service.save_pricing_tiers(99, TIERS, user_id=OPERATOR_ID)


class TestValidatePricingTiers:
    """Tests for tier validation."""

    @pytest.mark.parametrize(
        "tier, message",
        [
            (PricingTierInput(duration_minutes=-5, label="x", price=Decimal("1")), "duration must be positive"),
            (PricingTierInput(duration_minutes=5, label=" ", price=Decimal("1")), "label cannot be empty"),
            (PricingTierInput(duration_minutes=5, label="x", price=Decimal("-1")), "price cannot be negative"),
            (
                PricingTierInput(duration_minutes=5, label="x", price=Decimal("1"), tolerance_minutes=-1),
                "tolerance cannot be negative",
            ),
        ],
    )
    def test_invalid(self, tier, message):
        with pytest.raises(ValidationError, match=message):
            validate_pricing_tiers([tier])

    def test_normalizes(self):
        [tier] = validate_pricing_tiers([PricingTierInput(duration_minutes=5, label=" Five ", price=Decimal("1.005"))])
        assert tier.label == "Five"
        assert tier.price == Decimal("1.01")


def test_list_items_filters(item_service, sample_item, fixed_clock):
    bike = item_service.create_item(name="Bike", code="BK-01", category="bikes", user_id=OPERATOR_ID)
    item_service.set_status(bike.id, ItemStatus.MAINTENANCE, user_id=OPERATOR_ID)

    assert [i.name for i in item_service.list_items()] == ["Bike", "Kayak"]
    assert [i.id for i in item_service.list_items(status=ItemStatus.AVAILABLE)] == [sample_item.id]
    assert [i.id for i in item_service.list_items(category="bikes")] == [bike.id]
    assert [i.id for i in item_service.list_items(search="it-0")] == [sample_item.id]
    assert item_service.list_categories() == ["bikes", "boats"]


def test_tier_used_by_rental_survives_replacement(item_service, rental_service, sample_client, sample_item):
    """Test replacing tiers does not touch rentals that were priced by them."""
    [tier] = item_service.save_pricing_tiers(
        sample_item.id,
        [PricingTierInput(duration_minutes=45, label="45 min", price=Decimal("12"))],
        user_id=OPERATOR_ID,
    )
    rental = rental_service.create(
        client_id=sample_client.id,
        item_id=sample_item.id,
        start_date=datetime(2024, 1, 1, 10, 0),
        expected_end_date=datetime(2024, 1, 1, 10, 45),
        user_id=OPERATOR_ID,
        pricing_tier_id=tier.id,
    )
    item_service.save_pricing_tiers(sample_item.id, [], user_id=OPERATOR_ID)

    kept = rental_service.get_rental(rental.id)
    assert kept.rental_value == Decimal("12.00")
    assert kept.pricing_duration_minutes == 45


class TestUpdateItem:
    """Tests for editing item details."""

    def test_update_fields(self, item_service, sample_item, fixed_clock, audit_sink):
        fixed_clock.set(datetime(2024, 1, 2, 9, 0))

        item = item_service.update_item(
            sample_item.id,
            user_id=OPERATOR_ID,
            name=" Sea Kayak ",
            base_rental_value=Decimal("12.5"),
            rental_period=RentalPeriod.DAY,
            observations="New paddles",
        )

        assert item.name == "Sea Kayak"
        assert item.code == "IT-01"
        assert item.base_rental_value == Decimal("12.50")
        assert item.rental_period == RentalPeriod.DAY
        assert item.observations == "New paddles"
        assert item.updated_at == datetime(2024, 1, 2, 9, 0)
        assert item.created_at == datetime(2024, 1, 1, 9, 0)
        event = audit_sink.events[-1]
        assert event.action == audit.ITEM_UPDATE
        assert event.resource_id == sample_item.id
        assert event.details == "base_rental_value, name, observations, rental_period"

    def test_empty_observations_clear(self, item_service, sample_item):
        item_service.update_item(sample_item.id, user_id=OPERATOR_ID, observations="Scratched")
        item = item_service.update_item(sample_item.id, user_id=OPERATOR_ID, observations="  ")
        assert item.observations is None

    def test_nothing_to_update(self, item_service, sample_item):
        with pytest.raises(ValidationError, match="No field to update"):
            item_service.update_item(sample_item.id, user_id=OPERATOR_ID)

    @pytest.mark.parametrize("field", ["name", "code", "category"])
    def test_blank_field(self, item_service, sample_item, field):
        with pytest.raises(ValidationError, match=f"Item {field} cannot be empty"):
            item_service.update_item(sample_item.id, user_id=OPERATOR_ID, **{field: "  "})

    def test_negative_value(self, item_service, sample_item):
        with pytest.raises(ValidationError, match="cannot be negative"):
            item_service.update_item(sample_item.id, user_id=OPERATOR_ID, base_rental_value=Decimal("-1"))

    def test_code_of_another_item(self, item_service, sample_item):
        other = item_service.create_item(name="Canoe", code="CN-01", category="boats", user_id=OPERATOR_ID)
        with pytest.raises(ConflictError, match="already in use"):
            item_service.update_item(other.id, user_id=OPERATOR_ID, code="IT-01")
        assert item_service.get_item(other.id).code == "CN-01"

    def test_keeping_own_code(self, item_service, sample_item):
        item = item_service.update_item(sample_item.id, user_id=OPERATOR_ID, code="IT-01", category="kayaks")
        assert (item.code, item.category) == ("IT-01", "kayaks")

    def test_status_change(self, item_service, sample_item):
        item = item_service.update_item(sample_item.id, user_id=OPERATOR_ID, status=ItemStatus.MAINTENANCE)
        assert item.status == ItemStatus.MAINTENANCE

    def test_status_locked_while_rented(self, item_service, sample_rental):
        with pytest.raises(ConflictError, match="status follows the rental"):
            item_service.update_item(sample_rental.item_id, user_id=OPERATOR_ID, status=ItemStatus.AVAILABLE)
        assert item_service.get_item(sample_rental.item_id).status == ItemStatus.RENTED

    def test_other_fields_editable_while_rented(self, item_service, sample_rental):
        item = item_service.update_item(sample_rental.item_id, user_id=OPERATOR_ID, name="Kayak 2")
        assert item.name == "Kayak 2"
        assert item.status == ItemStatus.RENTED

    def test_rented_status_is_not_manual(self, item_service, sample_item):
        with pytest.raises(ValidationError):
            item_service.update_item(sample_item.id, user_id=OPERATOR_ID, status=ItemStatus.RENTED)

    def test_unknown_item(self, item_service):
        with pytest.raises(NotFoundError):
            item_service.update_item(99, user_id=OPERATOR_ID, name="Ghost")


def test_available_and_maintenance_items(item_service, sample_item):
    bike = item_service.create_item(name="Bike", code="BK-01", category="bikes", user_id=OPERATOR_ID)
    canoe = item_service.create_item(name="Canoe", code="CN-01", category="boats", user_id=OPERATOR_ID)
    raft = item_service.create_item(name="Raft", code="RF-01", category="boats", user_id=OPERATOR_ID)
    item_service.set_status(raft.id, ItemStatus.MAINTENANCE, user_id=OPERATOR_ID)
    gone = item_service.create_item(name="Old Bike", code="BK-00", category="bikes", user_id=OPERATOR_ID)
    item_service.deactivate_item(gone.id, user_id=OPERATOR_ID)

    assert [i.id for i in item_service.available_items()] == [bike.id, canoe.id, sample_item.id]
    assert [i.id for i in item_service.maintenance_items()] == [raft.id]
