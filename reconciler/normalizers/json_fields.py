"""
reconciler/normalizers/json_fields.py

Lenient field extractors for legacy JSON records.
Each getter returns None (or the given default) when the key is absent,
null, or holds a value of the wrong kind. Non-finite numbers (NaN, Infinity)
count as the wrong kind. Callers decide whether that makes the whole record
unusable.
"""

import math
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def get_string(record: dict[str, Any], key: str, default: Optional[str] = None) -> Optional[str]:
    value = record.get(key)
    if value is None:
        return default
    return str(value)


def get_long(record: dict[str, Any], key: str) -> Optional[int]:
    """Read an integer; numeric strings and floats are accepted and truncated."""
    value = record.get(key)
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    number = get_double(record, key)
    return None if number is None else int(number)


def get_double(record: dict[str, Any], key: str) -> Optional[float]:
    """Read a finite float; numeric strings are accepted."""
    value = record.get(key)
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def get_bool(record: dict[str, Any], key: str, default: bool) -> bool:
    value = record.get(key)
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.lower() in ("true", "false"):
        return value.lower() == "true"
    return default


def get_dict(record: dict[str, Any], key: str) -> Optional[dict]:
    value = record.get(key)
    return value if isinstance(value, dict) else None


def first_long(record: dict[str, Any], *keys: str) -> Optional[int]:
    """Return the first key that yields an integer."""
    for key in keys:
        value = get_long(record, key)
        if value is not None:
            return value
    return None


def first_double(record: dict[str, Any], *keys: str) -> Optional[float]:
    for key in keys:
        value = get_double(record, key)
        if value is not None:
            return value
    return None


def iso_to_millis(text: Optional[str]) -> Optional[int]:
    """Convert an ISO 8601 timestamp to epoch ms; None if it does not parse."""
    if not text:
        return None
    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return (parsed - _EPOCH) // timedelta(milliseconds=1)
