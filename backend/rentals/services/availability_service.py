# Overview: Free-quantity computation for rentable items over a date range.

"""
Availability Invariants (authoritative)

Availability is never stored. It is recomputed from scratch on every call by
scanning the current orders, so creating, editing or deleting an order takes
effect the instant its record is written.

free(item, [start, end]) = max(0, quantity_total - used - quantity_maintenance)

- Missing item -> 0. DAMAGED item -> 0 whatever its quantities.
- used sums, over every order in CONFIRMED_PAID or DELIVERED whose
  [pickup_date, return_date] overlaps [start, end], the units of the item on
  all of that order's lines.
- Overlap is tested on closed intervals: s1 <= e2 and s2 <= e1. An order
  returning the same day another starts DOES overlap (same-day turnover is
  not guaranteed).
- Orders without both dates never overlap anything.
- Windows are whole calendar days. A time-of-day on either side is dropped
  before comparing; the time lives in pickup_time/return_time.
- Maintenance holds are not date-scoped; they always reduce availability.
- The listing used by pickers goes through the same per-item computation.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Iterable, Union

from ..models import Item, Order
from ..time_utils import coerce_datetime
from ..validation import ValidationError
from .record_store import RecordStore


logger = logging.getLogger(__name__)

ITEMS_COLLECTION = "items"
ORDERS_COLLECTION = "orders"

DateLike = Union[str, date, datetime]


def dates_overlap(start1: datetime, end1: datetime, start2: datetime, end2: datetime) -> bool:
    """Closed-interval overlap; touching boundaries count as overlapping."""
    return start1 <= end2 and start2 <= end1


def calendar_day(value: DateLike | None) -> datetime | None:
    """Midnight of the day value falls on; bookings are whole days, times are ignored."""
    dt = coerce_datetime(value)
    if dt is None:
        return None
    return datetime(dt.year, dt.month, dt.day)


def parse_range(start: DateLike, end: DateLike) -> tuple[datetime, datetime]:
    """Normalize a query window. Raises ValidationError on bad or inverted input."""
    try:
        start_dt = calendar_day(start)
        end_dt = calendar_day(end)
    except ValueError:
        raise ValidationError("Dates must be ISO-8601 (YYYY-MM-DD)")
    if start_dt is None or end_dt is None:
        raise ValidationError("Both start and end dates are required")
    if end_dt < start_dt:
        raise ValidationError("End date must not be before start date")
    return start_dt, end_dt


def order_window(order: Order) -> tuple[datetime, datetime] | None:
    """The order's booked window, or None when it cannot take part in overlap scans."""
    if not order.has_dates:
        return None
    try:
        start = calendar_day(order.pickup_date)
        end = calendar_day(order.return_date)
    except ValueError:
        logger.warning("Order %s has unreadable dates; excluded from availability", order.id)
        return None
    if start is None or end is None:
        return None
    return start, end


class AvailabilityEngine:
    def __init__(self, store: RecordStore):
        self.store = store

    def _items(self) -> list[Item]:
        return [Item.from_dict(r) for r in self.store.get_all(ITEMS_COLLECTION)]

    def _orders(self) -> list[Order]:
        return [Order.from_dict(r) for r in self.store.get_all(ORDERS_COLLECTION)]

    def _find_item(self, item_id: str) -> Item | None:
        for item in self._items():
            if item.id == item_id:
                return item
        return None

    def committed_quantity(
        self,
        item_id: str,
        start: datetime,
        end: datetime,
        *,
        orders: Iterable[Order] | None = None,
        exclude_order_id: str | None = None,
    ) -> int:
        """Units of item_id held by active orders overlapping [start, end]."""
        used = 0
        for order in (self._orders() if orders is None else orders):
            if not order.is_active:
                continue
            if exclude_order_id is not None and order.id == exclude_order_id:
                continue
            held = order.quantity_for(item_id)
            if not held:
                continue
            window = order_window(order)
            if window is None:
                continue
            if dates_overlap(start, end, window[0], window[1]):
                used += held
        return used

    def free_quantity(
        self,
        item: Item,
        start: datetime,
        end: datetime,
        *,
        orders: Iterable[Order] | None = None,
        exclude_order_id: str | None = None,
    ) -> int:
        if item.is_damaged:
            return 0
        used = self.committed_quantity(
            item.id, start, end, orders=orders, exclude_order_id=exclude_order_id
        )
        return max(0, item.quantity_total - used - item.quantity_maintenance)

    def get_availability(
        self,
        item_id: str,
        start: DateLike,
        end: DateLike,
        *,
        exclude_order_id: str | None = None,
    ) -> int:
        """
        Free units of item_id over [start, end].

        exclude_order_id leaves one order's own hold out of the scan, which is
        how an active order is re-validated without competing with itself.
        """
        start_dt, end_dt = parse_range(start, end)
        item = self._find_item(item_id)
        if item is None:
            return 0
        return self.free_quantity(item, start_dt, end_dt, exclude_order_id=exclude_order_id)

    def availability_map(self, start: DateLike, end: DateLike) -> dict[str, int]:
        """{item_id: free units} for every item; orders are read once."""
        start_dt, end_dt = parse_range(start, end)
        orders = self._orders()
        return {
            item.id: self.free_quantity(item, start_dt, end_dt, orders=orders)
            for item in self._items()
        }

    def list_available(self, start: DateLike, end: DateLike) -> list[Item]:
        """Items with at least one free unit over [start, end]."""
        start_dt, end_dt = parse_range(start, end)
        orders = self._orders()
        return [
            item for item in self._items()
            if self.free_quantity(item, start_dt, end_dt, orders=orders) > 0
        ]
