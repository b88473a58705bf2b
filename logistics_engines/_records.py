"""Attribute access over line items given as objects or plain mappings."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any


def field_value(record: Any, key: str, default: Any = None) -> Any:
    """Get ``key`` from a record (dataclass/ORM object or dict)."""
    if record is None:
        return default
    if isinstance(record, Mapping):
        return record.get(key, default)
    return getattr(record, key, default)


def text_value(record: Any, key: str) -> str:
    """String field, trimmed; absent or None becomes ''."""
    value = field_value(record, key)
    if value is None:
        return ""
    return str(value).strip()
