"""Numeric coercion and tolerant field lookup for provider payloads.

Providers report the same logical field with different capitalisation,
nesting and types depending on endpoint tier. These helpers normalise
that without per-field guard code in every adapter.
"""

import math
from datetime import datetime, timezone
from typing import Any, Mapping


def to_float(value: Any) -> float | None:
    """Coerce to a finite float. Anything unparseable becomes None, never 0 or NaN."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        result = float(value)
    elif isinstance(value, str):
        text = value.strip().replace(",", "")
        if not text:
            return None
        try:
            result = float(text)
        except ValueError:
            return None
    else:
        return None
    return result if math.isfinite(result) else None


def to_int(value: Any) -> int | None:
    """Coerce to an int via to_float, truncating toward zero."""
    number = to_float(value)
    return int(number) if number is not None else None


def to_bool(value: Any) -> bool | None:
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ("true", "1", "yes"):
            return True
        if lowered in ("false", "0", "no"):
            return False
        return None
    if isinstance(value, (int, float)):
        return bool(value)
    return None


def to_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def to_datetime(value: Any) -> datetime | None:
    """
    Parse a timestamp into an aware UTC datetime.

    Accepts epoch seconds, epoch milliseconds (values above 1e11) and
    ISO 8601 strings (with or without a trailing Z).
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)

    number = to_float(value)
    if number is not None:
        if number <= 0:
            return None
        if number > 1e11:
            number = number / 1000.0
        try:
            return datetime.fromtimestamp(number, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None

    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)

    return None


def _lookup(data: Mapping[str, Any], key: str) -> Any:
    if key in data:
        return data[key]
    lowered = key.lower()
    for candidate, value in data.items():
        if isinstance(candidate, str) and candidate.lower() == lowered:
            return value
    return None


def dig(data: Any, path: str) -> Any:
    """
    Follow a dotted path through nested mappings, case-insensitively.

    >>> dig({"Liquidity": {"USD": 5}}, "liquidity.usd")
    5
    """
    current = data
    for part in path.split("."):
        if not isinstance(current, Mapping):
            return None
        current = _lookup(current, part)
        if current is None:
            return None
    return current


def pick(data: Any, *paths: str) -> Any:
    """Return the first non-empty value found under any of the paths."""
    for path in paths:
        value = dig(data, path)
        if value is not None and value != "":
            return value
    return None


def pick_float(data: Any, *paths: str) -> float | None:
    """Return the first path whose value coerces to a finite float."""
    for path in paths:
        number = to_float(dig(data, path))
        if number is not None:
            return number
    return None


def clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    return max(low, min(high, value))


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positives, matching Math.round semantics."""
    return int(math.floor(value + 0.5))
