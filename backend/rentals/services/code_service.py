# Overview: Human-facing sequential codes and opaque record ids.

"""
Code Service

SEQUENTIAL CODES: next code = prefix + zero-padded (max existing suffix + 1).
Malformed suffixes count as zero. Derived from the records on hand, so two
writers on different devices can mint the same code; the store is
single-writer per device and this race is accepted.

RECORD IDS: opaque, globally unique tokens (uuid4) with a readable prefix.
"""

from __future__ import annotations

import re
import uuid
from typing import Iterable


CODE_WIDTH = 3

_NON_DIGITS = re.compile(r"\D")


def code_number(code: str | None, prefix: str) -> int:
    """Numeric suffix of a code sharing prefix; anything else counts as 0."""
    if not code or not code.startswith(prefix):
        return 0
    digits = _NON_DIGITS.sub("", code[len(prefix):])
    return int(digits) if digits else 0


def next_sequential_code(prefix: str, existing_codes: Iterable[str | None], width: int = CODE_WIDTH) -> str:
    """
    Next code after the highest one in use (max + 1, not count + 1).

    >>> next_sequential_code("CAD-", ["CAD-001", "CAD-003"])
    'CAD-004'
    """
    highest = max((code_number(c, prefix) for c in existing_codes), default=0)
    return f"{prefix}{str(highest + 1).zfill(width)}"


def new_record_id(prefix: str) -> str:
    return f"{prefix}{uuid.uuid4().hex}"
