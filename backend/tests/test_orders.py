# Overview: Pytest coverage for the order lifecycle and its availability gate.

"""
Order Lifecycle Tests

1. Validation happens before anything is written
2. Activating an order (QUOTE -> CONFIRMED_PAID) runs the availability gate
3. Re-validating an active order never counts its own hold
4. Leaving the active statuses or deleting releases stock
5. Every successful write appends exactly one audit entry
"""

from contextlib import nullcontext
from datetime import date, datetime

import pytest

from rentals.models import AuditAction, EntityType, OrderStatus
from rentals.services.audit_service import AuditLogService
from rentals.services.order_service import OrderService
from rentals.validation import InsufficientStockError, NotFoundError, ValidationError


def _line(item, qty, **extra):
    return {"item_id": item.id, "quantity": qty, "unit_value": item.rental_value, **extra}


class TestCreateValidation:
    def test_client_is_required(self, services, admin, make_item):
        item = make_item()
        with pytest.raises(ValidationError, match="Client is required"):
            services.orders.create({"payment_method": "PIX", "items": [_line(item, 1)]}, admin)

    def test_payment_method_is_required(self, services, admin, make_client):
        client = make_client()
        with pytest.raises(ValidationError, match="Payment method is required"):
            services.orders.create({"client_id": client.id}, admin)

    def test_active_order_needs_dates(self, make_item, make_order):
        item = make_item()
        with pytest.raises(ValidationError, match="dates are required"):
            make_order([(item, 1)], pickup_date=None)

    def test_return_before_pickup(self, make_item, make_order):
        item = make_item()
        with pytest.raises(ValidationError, match="return_date"):
            make_order([(item, 1)], status="QUOTE", pickup_date="2024-01-05", return_date="2024-01-01")

    def test_unreadable_date_is_rejected(self, make_item, make_order):
        item = make_item()
        with pytest.raises(ValidationError, match="pickup_date"):
            make_order([(item, 1)], status="QUOTE", pickup_date="next friday")

    def test_non_positive_quantity(self, make_item, make_order):
        item = make_item()
        with pytest.raises(ValidationError, match="quantity"):
            make_order([(item, 0)], status="QUOTE")

    def test_unknown_status(self, make_item, make_order):
        item = make_item()
        with pytest.raises(ValidationError, match="status"):
            make_order([(item, 1)], status="SHIPPED")

    def test_rejected_create_writes_nothing(self, services, make_item, make_order):
        item = make_item(quantity_total=1)
        with pytest.raises(InsufficientStockError):
            make_order([(item, 2)])
        assert services.orders.get_all() == []
        assert [log for log in services.audit.get_all() if log.entity_type == EntityType.ORDER] == []


class TestCreateDerivedFields:
    def test_date_objects_are_stored_as_iso_days(self, services, make_item, make_order):
        item = make_item(quantity_total=10)
        order = make_order(
            [(item, 4)],
            pickup_date=date(2024, 1, 1),
            return_date=datetime(2024, 1, 3, 18, 30),
            assembly_date=date(2023, 12, 31),
        )

        stored = services.store.get_all("orders")[0]
        assert (stored["pickup_date"], stored["return_date"]) == ("2024-01-01", "2024-01-03")
        assert stored["assembly_date"] == "2023-12-31"
        assert services.orders.get_by_id(order.id).pickup_date == "2024-01-01"
        assert services.items.get_availability(item.id, "2024-01-03", "2024-01-03") == 6

    def test_codes_are_sequential(self, make_item, make_order):
        item = make_item()
        first = make_order([(item, 1)], status="QUOTE")
        second = make_order([(item, 1)], status="QUOTE")
        assert (first.code, second.code) == ("PED-001", "PED-002")
        assert first.id.startswith("ORD-")

    def test_snapshots_and_totals(self, make_client, make_item, make_order):
        item = make_item(name="Painel redondo", rental_value=15.5)
        order = make_order([(item, 2)], amount_paid=10)

        assert order.client_name == "Maria Silva"
        line = order.items[0]
        assert line.item_name == "Painel redondo"
        assert line.item_code == item.code
        assert line.total_value == 31.0
        assert line.order_id == order.id
        assert order.total_value == 31.0
        assert order.amount_pending == 21.0

    def test_explicit_client_name_is_kept(self, make_item, make_order):
        item = make_item()
        order = make_order([(item, 1)], status="QUOTE", client_name="Maria (festa)")
        assert order.client_name == "Maria (festa)"

    def test_create_writes_one_audit_entry(self, services, make_item, make_order):
        item = make_item()
        order = make_order([(item, 1)])
        logs = services.audit.get_by_entity("ORDER", order.id)
        assert [log.action for log in logs] == [AuditAction.CREATE]
        assert logs[0].changes["code"] == order.code


class TestActivationGate:
    def test_confirming_a_quote_checks_stock(self, services, admin, make_item, make_order):
        item = make_item(quantity_total=5)
        make_order([(item, 4)])
        quote = make_order([(item, 3)], status="QUOTE")

        with pytest.raises(InsufficientStockError) as excinfo:
            services.orders.set_status(quote.id, "CONFIRMED_PAID", admin)

        assert excinfo.value.available == 1
        assert excinfo.value.requested == 3
        assert services.orders.get_by_id(quote.id).status == OrderStatus.QUOTE

    def test_quotes_may_exceed_stock(self, make_item, make_order):
        item = make_item(quantity_total=1)
        quote = make_order([(item, 50)], status="QUOTE")
        assert quote.status == OrderStatus.QUOTE

    def test_active_order_does_not_compete_with_itself(self, services, admin, make_item, make_order):
        item = make_item(quantity_total=10)
        order = make_order([(item, 10)])

        moved = services.orders.update(
            order.id, {"pickup_date": "2024-01-02", "return_date": "2024-01-04"}, admin
        )
        assert moved.pickup_date == "2024-01-02"

    def test_growing_an_active_order_is_checked(self, services, admin, make_item, make_order):
        item = make_item(quantity_total=10)
        make_order([(item, 6)])
        order = make_order([(item, 3)])

        with pytest.raises(InsufficientStockError) as excinfo:
            services.orders.update(order.id, {"items": [_line(item, 5)]}, admin)
        assert excinfo.value.available == 4

    def test_edits_without_booking_changes_skip_the_gate(self, services, admin, make_item, make_order):
        item = make_item(quantity_total=4)
        order = make_order([(item, 4)])
        # Shrink stock under the booking; a notes edit must still go through
        services.items.update(item.id, {"quantity_total": 2}, admin)

        updated = services.orders.update(order.id, {"notes": "Entregar pela manhã"}, admin)
        assert updated.notes == "Entregar pela manhã"

    def test_delivered_to_returned_releases_stock(self, services, admin, make_item, make_order):
        item = make_item(quantity_total=3)
        order = make_order([(item, 3)], status="DELIVERED")
        services.orders.set_status(order.id, "RETURNED", admin)
        assert services.items.get_availability(item.id, "2024-01-02", "2024-01-02") == 3

    def test_any_status_may_be_written(self, services, admin, make_item, make_order):
        item = make_item()
        order = make_order([(item, 1)], status="RETURNED")
        reopened = services.orders.set_status(order.id, "QUOTE", admin)
        assert reopened.status == OrderStatus.QUOTE


class TestUpdateAndDelete:
    def test_changing_lines_recomputes_pending(self, services, admin, make_item, make_order):
        item = make_item(rental_value=10)
        order = make_order([(item, 1)], status="QUOTE", amount_paid=5)
        assert order.amount_pending == 5.0

        updated = services.orders.update(order.id, {"items": [_line(item, 3)]}, admin)
        assert updated.total_value == 30.0
        assert updated.amount_pending == 25.0

    def test_update_records_old_and_new(self, services, admin, make_item, make_order):
        item = make_item()
        order = make_order([(item, 1)], status="QUOTE")
        services.orders.update(order.id, {"notes": "x"}, admin)

        update_log = services.audit.get_by_entity("ORDER", order.id)[-1]
        assert update_log.action == AuditAction.UPDATE
        assert update_log.changes["old"]["notes"] is None
        assert update_log.changes["new"]["notes"] == "x"

    def test_system_fields_cannot_be_patched(self, services, admin, make_item, make_order):
        item = make_item()
        order = make_order([(item, 1)], status="QUOTE")
        updated = services.orders.update(order.id, {"code": "PED-999", "id": "hijack"}, admin)
        assert (updated.id, updated.code) == (order.id, order.code)

    def test_update_missing_order(self, services, admin):
        with pytest.raises(NotFoundError):
            services.orders.update("ORD-missing", {"notes": "x"}, admin)

    def test_delete_releases_stock(self, services, admin, make_item, make_order):
        item = make_item(quantity_total=2)
        order = make_order([(item, 2)])
        services.orders.delete(order.id, admin)

        assert services.items.get_availability(item.id, "2024-01-02", "2024-01-02") == 2
        assert services.audit.get_by_entity("ORDER", order.id)[-1].action == AuditAction.DELETE

    def test_delete_missing_order(self, services, admin):
        with pytest.raises(NotFoundError):
            services.orders.delete("ORD-missing", admin)

    def test_get_by_client(self, services, make_item, make_order):
        item = make_item()
        order = make_order([(item, 1)], status="QUOTE")
        assert [o.id for o in services.orders.get_by_client(order.client_id)] == [order.id]
        assert services.orders.get_by_client("CLI-other") == []


class TestSerializedBookings:
    def test_gate_behaves_the_same_under_the_lock(self, services, admin, make_item, make_client):
        orders = OrderService(services.store, AuditLogService(services.store), serialize_bookings=True)
        item = make_item(quantity_total=2)
        client = make_client()
        data = {
            "client_id": client.id,
            "payment_method": "CASH",
            "status": "CONFIRMED_PAID",
            "pickup_date": "2024-02-01",
            "return_date": "2024-02-02",
            "items": [_line(item, 2)],
        }
        orders.create(data, admin)
        with pytest.raises(InsufficientStockError):
            orders.create(data, admin)

    def test_delete_runs_under_the_lock(self, services, admin, make_item, make_order, monkeypatch):
        item = make_item()
        order = make_order([(item, 1)])
        orders = OrderService(services.store, AuditLogService(services.store), serialize_bookings=True)
        seen = []

        def recording_guard(enabled):
            seen.append(enabled)
            return nullcontext()

        monkeypatch.setattr("rentals.services.order_service.booking_guard", recording_guard)
        orders.delete(order.id, admin)

        assert seen == [True]
        assert services.orders.get_all() == []
