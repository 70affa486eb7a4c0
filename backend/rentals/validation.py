from __future__ import annotations

import re
from dataclasses import MISSING, dataclass, fields
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any


class ValidationError(ValueError):
    """400-level input problem (missing client, payment method, dates...)."""


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., duplicate CPF, insufficient stock)."""


class DuplicateRecordError(ConflictError):
    """A uniqueness rule (CPF, e-mail) would be violated."""


class InsufficientStockError(ConflictError):
    """
    Raised by the booking gate when a line asks for more units than are free.

    Carries the numbers so callers can show them without parsing the message.
    """

    def __init__(self, *, item_id: str, item_name: str, available: int, requested: int):
        self.item_id = item_id
        self.item_name = item_name
        self.available = available
        self.requested = requested
        super().__init__(
            f"Insufficient stock for item: {item_name}. "
            f"Available: {available}, requested: {requested}"
        )


class NotFoundError(ValueError):
    """404-level: the referenced record does not exist."""


class PermissionDeniedError(ValueError):
    """403-level: the acting user may not perform this operation."""


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST
    """
    writable_fields: set[str]
    required_on_create: set[str] = None  # type: ignore


def validate_payload(*, model: type, payload: dict, policy: ModelValidationPolicy, partial: bool) -> dict:
    """
    Validates incoming JSON against:
    - a policy allowlist (writable_fields)
    - the record dataclass field names
    - required_on_create (if partial=False)
    Returns a cleaned patch dict with only writable fields.

    Type coercion is left to the record's from_dict so that it happens in one place.
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    required = policy.required_on_create or set()
    if not partial:
        missing = sorted(f for f in required if payload.get(f) in (None, ""))
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    known = {f.name for f in fields(model)}
    extra = {"password"}

    patch: dict = {}
    for k, raw in payload.items():
        if k not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {k}")
        if k not in known and k not in extra:
            raise ValidationError(f"Unknown field: {k}")
        patch[k] = raw.strip() if isinstance(raw, str) else raw

    return patch


def missing_required_fields(model: type, data: dict) -> list[str]:
    """Names of dataclass fields without defaults that are absent from data."""
    return [
        f.name
        for f in fields(model)
        if f.default is MISSING and f.default_factory is MISSING and f.name not in data
    ]


# ---------------------------------------------------------------------------
# Scalar coercion
# ---------------------------------------------------------------------------

def coerce_int(name: str, value: Any) -> int:
    """Strict integer coercion: rejects bools, floats with decimals and scientific notation."""
    if isinstance(value, bool):
        raise ValidationError(f"{name} must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if value.is_integer():
            return int(value)
        raise ValidationError(f"{name} must be an integer, not a decimal")
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{name} must be an integer")
        if "e" in stripped.lower():
            raise ValidationError(f"{name} must be a plain integer (scientific notation not allowed)")
        if "." in stripped:
            raise ValidationError(f"{name} must be an integer (no decimals)")
        try:
            return int(stripped)
        except ValueError:
            raise ValidationError(f"{name} must be an integer")
    raise ValidationError(f"{name} must be an integer")


def coerce_money(name: str, value: Any) -> float:
    """Monetary amounts are kept as floats rounded to cents."""
    if isinstance(value, bool) or value is None:
        raise ValidationError(f"{name} must be a number")
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{name} must be a number")
    if not amount.is_finite():
        raise ValidationError(f"{name} must be a number")
    return float(amount.quantize(Decimal("0.01")))


def coerce_enum(name: str, enum_cls: type[Enum], value: Any) -> Enum:
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).strip())
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise ValidationError(f"Invalid {name} '{value}'. Must be one of: {allowed}")


# ---------------------------------------------------------------------------
# Brazilian tax ids
# ---------------------------------------------------------------------------

_NON_DIGITS = re.compile(r"\D")


def digits_only(value: str | None) -> str:
    return _NON_DIGITS.sub("", value or "")


def _cpf_check_digit(digits: str) -> int:
    weight = len(digits) + 1
    total = sum(int(d) * (weight - i) for i, d in enumerate(digits))
    check = 11 - (total % 11)
    return 0 if check >= 10 else check


def is_valid_cpf(cpf: str | None) -> bool:
    """Validates a CPF (formatting is ignored); all-equal digit sequences are rejected."""
    clean = digits_only(cpf)
    if len(clean) != 11 or len(set(clean)) == 1:
        return False
    if _cpf_check_digit(clean[:9]) != int(clean[9]):
        return False
    return _cpf_check_digit(clean[:10]) == int(clean[10])


def format_cpf(cpf: str) -> str:
    """000.000.000-00, or the input untouched when it is not 11 digits."""
    clean = digits_only(cpf)
    if len(clean) != 11:
        return cpf
    return f"{clean[:3]}.{clean[3:6]}.{clean[6:9]}-{clean[9:]}"


def _cnpj_check_digit(digits: str) -> int:
    weights = list(range(len(digits) - 7, 1, -1)) + list(range(9, 1, -1))
    total = sum(int(d) * w for d, w in zip(digits, weights))
    remainder = total % 11
    return 0 if remainder < 2 else 11 - remainder


def is_valid_cnpj(cnpj: str | None) -> bool:
    clean = digits_only(cnpj)
    if len(clean) != 14 or len(set(clean)) == 1:
        return False
    if _cnpj_check_digit(clean[:12]) != int(clean[12]):
        return False
    return _cnpj_check_digit(clean[:13]) == int(clean[13])


def format_cnpj(cnpj: str) -> str:
    clean = digits_only(cnpj)
    if len(clean) != 14:
        return cnpj
    return f"{clean[:2]}.{clean[2:5]}.{clean[5:8]}/{clean[8:12]}-{clean[12:]}"


def is_valid_tax_id(value: str | None) -> bool:
    """Suppliers may be people (CPF) or companies (CNPJ)."""
    clean = digits_only(value)
    if len(clean) == 11:
        return is_valid_cpf(clean)
    if len(clean) == 14:
        return is_valid_cnpj(clean)
    return False
