from __future__ import annotations

import math

# SQLite INTEGER is a signed 64-bit value.
INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1


def clean_text(value) -> str | None:
    """Return `value` as trimmed text, or None when there is nothing left.

    - None / "" / whitespace -> None
    - JSON booleans -> "true" / "false"
    - numbers -> their text form (integral floats without ".0")
    - lists/dicts -> None (not a scalar)
    """

    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if not math.isfinite(value):
            return None
        return str(int(value)) if value.is_integer() else str(value)
    if isinstance(value, str):
        s = value.strip()
        return s or None
    return None


def _in_int64(n: int) -> int | None:
    return n if INT64_MIN <= n <= INT64_MAX else None


def parse_int(value) -> int | None:
    """Parse an integer from a JSON scalar or text.

    Heuristics:
    - None/"" -> None
    - booleans are not numbers -> None
    - ints pass through; integral floats/"12.0" are truncated to int
    - thousands separators ("1,234") are accepted
    - values outside SQLite's 64-bit INTEGER range -> None
    - anything else -> None
    """

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return _in_int64(value)
    if isinstance(value, float):
        return _in_int64(int(value)) if math.isfinite(value) and value.is_integer() else None
    if not isinstance(value, str):
        return None

    s = value.strip().replace(",", "")
    if s == "":
        return None

    # int first (so "1" becomes int not float); ASCII digits only
    digits = s[1:] if s[0] in "+-" else s
    if digits.isascii() and digits.isdecimal():
        return _in_int64(int(s))

    try:
        f = float(s)
    except ValueError:
        return None
    return _in_int64(int(f)) if math.isfinite(f) and f.is_integer() else None


def parse_flag(value) -> bool:
    """Normalize a boolean-like value to a two-valued flag.

    "true" / "1" (trimmed, case-insensitive) and JSON true are True; anything
    else, including None and unrecognized text, is False.
    """

    if isinstance(value, bool):
        return value
    text = clean_text(value)
    if text is None:
        return False
    return text.lower() in {"true", "1"}
