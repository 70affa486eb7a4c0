from .records import RecordCollection
from .inventory import Item, ItemCategory, ItemCondition, ItemLocation, Supplier
from .orders import Order, OrderItem, OrderStatus, PartyType, PaymentMethod, ACTIVE_STATUSES, BILLABLE_STATUSES
from .customers import Client, ClientStatus, ClientHistory
from .auth import User, UserRole
from .audit import AuditLog, AuditAction, EntityType

__all__ = [
    'RecordCollection',
    'Item', 'ItemCategory', 'ItemCondition', 'ItemLocation', 'Supplier',
    'Order', 'OrderItem', 'OrderStatus', 'PartyType', 'PaymentMethod',
    'ACTIVE_STATUSES', 'BILLABLE_STATUSES',
    'Client', 'ClientStatus', 'ClientHistory',
    'User', 'UserRole',
    'AuditLog', 'AuditAction', 'EntityType',
]
