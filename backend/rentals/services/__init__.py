# Overview: Wires the record-store services together for one application.

from __future__ import annotations

from dataclasses import dataclass

from .audit_service import AuditLogService
from .availability_service import AvailabilityEngine
from .client_service import ClientService
from .item_service import ItemService
from .order_service import OrderService
from .record_store import RecordStore
from .supplier_service import SupplierService
from .system_service import SystemService
from .user_service import BCRYPT_ROUNDS, UserService


@dataclass
class RentalServices:
    store: RecordStore
    audit: AuditLogService
    availability: AvailabilityEngine
    items: ItemService
    orders: OrderService
    clients: ClientService
    suppliers: SupplierService
    users: UserService
    system: SystemService


def build_services(
    store: RecordStore,
    *,
    serialize_bookings: bool = False,
    item_code_prefix: str = "CAD-",
    order_code_prefix: str = "PED-",
    bcrypt_rounds: int = BCRYPT_ROUNDS,
) -> RentalServices:
    audit = AuditLogService(store)
    availability = AvailabilityEngine(store)
    return RentalServices(
        store=store,
        audit=audit,
        availability=availability,
        items=ItemService(store, audit, availability, code_prefix=item_code_prefix),
        orders=OrderService(
            store,
            audit,
            availability,
            code_prefix=order_code_prefix,
            serialize_bookings=serialize_bookings,
        ),
        clients=ClientService(store, audit),
        suppliers=SupplierService(store, audit),
        users=UserService(store, audit, bcrypt_rounds=bcrypt_rounds),
        system=SystemService(store, audit),
    )
