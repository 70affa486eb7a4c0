# Overview: Optional serialization of availability-check-then-write sequences.

from __future__ import annotations

import threading
from contextlib import contextmanager, nullcontext


_booking_lock = threading.RLock()


def booking_guard(enabled: bool):
    """
    Critical section around "check availability, then write the order".

    NOTE: Disabled by default. Without it two near-simultaneous bookings of the
    same item can both pass the check (single-operator assumption). When
    enabled it serializes bookings inside this process only; it does not
    coordinate separate processes or devices.
    """
    if not enabled:
        return nullcontext()
    return _locked()


@contextmanager
def _locked():
    with _booking_lock:
        yield
