"""
Lenient value coercion used by the schema parser.

Persisted form schemas have been written by several generations of the
editor, so the same logical value can live in more than one place or be
spelled as a different type. Each helper here is total: bad input
becomes None, never an exception.

Resolution order is expressed by composing these left to right, e.g.

    first_defined(to_optional_number(validation.get("min")),
                  to_optional_number(raw.get("min")))
"""
from __future__ import annotations

import math
from typing import Any, Dict, Iterable, List, Optional


def as_mapping(value: Any) -> Dict[str, Any]:
    """Return ``value`` if it is a dict, otherwise an empty dict."""
    return value if isinstance(value, dict) else {}


def first_defined(*values: Any) -> Any:
    """Return the first value that is not None."""
    for value in values:
        if value is not None:
            return value
    return None


def to_optional_number(value: Any) -> Optional[float | int]:
    """
    Coerce finite numbers and numeric strings; everything else is None.

    Booleans are not numbers here. Integral strings come back as int so
    that "10" and "1e3" round-trip as 10 and 1000 rather than floats.
    Integers too large for a float count as non-finite.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        try:
            float(value)
        except OverflowError:
            return None
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    if isinstance(value, str) and value.strip():
        text = value.strip()
        if "_" in text:
            return None
        try:
            parsed = float(text)
        except ValueError:
            return None
        if not math.isfinite(parsed):
            return None
        if parsed.is_integer():
            try:
                return int(text)
            except ValueError:
                return int(parsed)
        return parsed
    return None


def to_optional_string(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


def to_optional_string_array(value: Any) -> Optional[List[str]]:
    """Trimmed non-empty strings from a list; None when nothing usable remains."""
    if not isinstance(value, list):
        return None
    items = [entry.strip() for entry in value if isinstance(entry, str)]
    items = [entry for entry in items if entry]
    return items or None


def merge_string_arrays(*values: Optional[Iterable[str]]) -> Optional[List[str]]:
    """
    Concatenate, trim and de-duplicate string lists.

    Comparison is case-sensitive and the order of first occurrence wins.
    """
    merged: List[str] = []
    seen = set()
    for values_list in values:
        for entry in values_list or ():
            item = entry.strip()
            if item and item not in seen:
                seen.add(item)
                merged.append(item)
    return merged or None
