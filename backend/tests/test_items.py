# Overview: Pytest coverage for item catalog management.

import pytest

from rentals.models import AuditAction, ItemCondition
from rentals.validation import ConflictError, NotFoundError, ValidationError


class TestItemCreate:
    def test_codes_and_defaults(self, make_item, admin):
        first = make_item()
        second = make_item(name="Taça")
        assert (first.code, second.code) == ("CAD-001", "CAD-002")
        assert first.id.startswith("ITEM-")
        assert first.condition == ItemCondition.NORMAL
        assert first.created_by == admin.id

    def test_code_follows_highest_remaining(self, services, admin, make_item):
        first = make_item()
        make_item(name="Taça")
        services.items.delete(first.id, admin)
        assert make_item(name="Jarra").code == "CAD-003"

    def test_negative_quantity_rejected(self, make_item):
        with pytest.raises(ValidationError):
            make_item(quantity_total=-1)

    def test_get_by_code(self, services, make_item):
        item = make_item()
        assert services.items.get_by_code("CAD-001").id == item.id
        assert services.items.get_by_code("CAD-404") is None


class TestItemUpdate:
    def test_partial_update(self, services, admin, make_item):
        item = make_item(rental_value=5)
        updated = services.items.update(item.id, {"rental_value": "7.50"}, admin)
        assert updated.rental_value == 7.5
        assert updated.name == item.name
        assert updated.code == item.code

    def test_mark_damaged(self, services, admin, make_item):
        item = make_item()
        updated = services.items.update(
            item.id, {"condition": "DAMAGED", "damage_description": "Borda lascada"}, admin
        )
        assert updated.is_damaged

    def test_update_cannot_zero_the_total(self, services, admin, make_item):
        item = make_item(quantity_total=3)
        with pytest.raises(ValidationError, match="above zero"):
            services.items.update(item.id, {"quantity_total": 0}, admin)
        assert services.items.get_by_id(item.id).quantity_total == 3

    def test_update_missing(self, services, admin):
        with pytest.raises(NotFoundError, match="Item not found"):
            services.items.update("ITEM-missing", {"name": "x"}, admin)


class TestAdjustQuantity:
    def test_add_and_remove_units(self, services, admin, make_item):
        item = make_item(quantity_total=10)
        assert services.items.adjust_quantity(item.id, 5, admin).quantity_total == 15
        assert services.items.adjust_quantity(item.id, -14, admin).quantity_total == 1

    def test_cannot_reach_zero(self, services, admin, make_item):
        item = make_item(quantity_total=3)
        with pytest.raises(ValidationError, match="above zero"):
            services.items.adjust_quantity(item.id, -3, admin)

    def test_cannot_drop_below_maintenance(self, services, admin, make_item):
        item = make_item(quantity_total=5, quantity_maintenance=3)
        with pytest.raises(ValidationError, match="quantity_maintenance"):
            services.items.adjust_quantity(item.id, -3, admin)

    def test_adjust_is_audited_as_update(self, services, admin, make_item):
        item = make_item(quantity_total=5)
        services.items.adjust_quantity(item.id, 1, admin)
        log = services.audit.get_by_entity("ITEM", item.id)[-1]
        assert log.action == AuditAction.UPDATE
        assert (log.changes["old"]["quantity_total"], log.changes["new"]["quantity_total"]) == (5, 6)


class TestItemDelete:
    def test_blocked_by_active_orders(self, services, admin, make_item, make_order):
        item = make_item()
        make_order([(item, 1)])
        make_order([(item, 1)], status="DELIVERED")
        with pytest.raises(ConflictError, match="2 active order"):
            services.items.delete(item.id, admin)

    def test_quotes_do_not_block_delete(self, services, admin, make_item, make_order):
        item = make_item()
        make_order([(item, 1)], status="QUOTE")
        services.items.delete(item.id, admin)
        assert services.items.get_by_id(item.id) is None

    def test_delete_missing(self, services, admin):
        with pytest.raises(NotFoundError):
            services.items.delete("ITEM-missing", admin)
