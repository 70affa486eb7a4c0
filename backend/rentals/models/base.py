from __future__ import annotations

from dataclasses import fields, is_dataclass
from enum import Enum
from typing import Any, ClassVar, Mapping

from ..validation import (
    ValidationError,
    coerce_enum,
    coerce_int,
    coerce_money,
    missing_required_fields,
)


def to_plain(value: Any) -> Any:
    """Convert a record value into JSON-serializable data."""
    if isinstance(value, Enum):
        return value.value
    if is_dataclass(value) and hasattr(value, "to_dict"):
        return value.to_dict()
    if isinstance(value, (list, tuple)):
        return [to_plain(v) for v in value]
    if isinstance(value, dict):
        return {k: to_plain(v) for k, v in value.items()}
    return value


class RecordModel:
    """
    Shared (de)serialization for the JSON records kept in the record store.

    Subclasses are dataclasses and declare which fields need coercion; the
    defaulting rules live in the dataclass field defaults, nowhere else.
    Unknown keys in stored data are ignored.
    """

    ENUM_FIELDS: ClassVar[dict[str, type[Enum]]] = {}
    INT_FIELDS: ClassVar[tuple[str, ...]] = ()
    MONEY_FIELDS: ClassVar[tuple[str, ...]] = ()
    LIST_FIELDS: ClassVar[tuple[str, ...]] = ()
    NESTED_FIELDS: ClassVar[dict[str, type]] = {}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]):
        if not isinstance(data, Mapping):
            raise ValidationError(f"{cls.__name__} data must be an object")

        known = {f.name for f in fields(cls)}
        kwargs = {k: v for k, v in data.items() if k in known}

        # None means "use the default" for fields that have one
        for f in fields(cls):
            if f.name in kwargs and kwargs[f.name] is None and f.name in (
                set(cls.INT_FIELDS) | set(cls.MONEY_FIELDS) | set(cls.LIST_FIELDS) | set(cls.ENUM_FIELDS)
            ):
                del kwargs[f.name]

        missing = missing_required_fields(cls, kwargs)
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

        for name, enum_cls in cls.ENUM_FIELDS.items():
            if name in kwargs:
                kwargs[name] = coerce_enum(name, enum_cls, kwargs[name])
        for name in cls.INT_FIELDS:
            if name in kwargs:
                kwargs[name] = coerce_int(name, kwargs[name])
        for name in cls.MONEY_FIELDS:
            if name in kwargs:
                kwargs[name] = coerce_money(name, kwargs[name])
        for name in cls.LIST_FIELDS:
            if name in kwargs:
                if not isinstance(kwargs[name], (list, tuple)):
                    raise ValidationError(f"{name} must be a list")
                kwargs[name] = list(kwargs[name])
        for name, nested in cls.NESTED_FIELDS.items():
            if name in kwargs:
                kwargs[name] = [
                    v if isinstance(v, nested) else nested.from_dict(v) for v in kwargs[name]
                ]

        return cls(**kwargs)

    def to_dict(self) -> dict:
        return {f.name: to_plain(getattr(self, f.name)) for f in fields(self)}

    def merged(self, patch: Mapping[str, Any]):
        """A new record with patch applied on top of this one (partial update)."""
        return type(self).from_dict({**self.to_dict(), **patch})
