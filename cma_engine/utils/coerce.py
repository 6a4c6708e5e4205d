"""Lenient scalar coercion for inconsistently typed MLS feed values."""

from __future__ import annotations

import math
from datetime import date, datetime
from typing import Any, Optional

import pandas as pd

_NULL_TOKENS = {"", "null", "none", "nan", "n/a", "na", "-"}
_NUMERIC_NOISE = str.maketrans("", "", "$,_ ")


def _is_null(v: Any) -> bool:
    if v is None:
        return True
    if isinstance(v, str):
        return v.strip().lower() in _NULL_TOKENS
    return False


def to_float(v: Any) -> Optional[float]:
    """Coerce ``v`` to a finite float; currency and thousands separators are stripped."""

    if _is_null(v) or isinstance(v, bool):
        return None
    try:
        if isinstance(v, str):
            v = v.translate(_NUMERIC_NOISE)
        result = float(v)
    except (TypeError, ValueError):
        return None
    if math.isnan(result) or math.isinf(result):
        return None
    return result


def to_int(v: Any) -> Optional[int]:
    result = to_float(v)
    if result is None:
        return None
    return int(result)


def to_str(v: Any) -> str:
    return "" if v is None else str(v)


def to_date(v: Any) -> Optional[date]:
    """Parse ISO strings, datetimes and timestamps to a ``date``; garbage yields ``None``."""

    if _is_null(v) or isinstance(v, bool):
        return None
    if isinstance(v, datetime):
        return v.date()
    if isinstance(v, date):
        return v
    parsed = pd.to_datetime(v, errors="coerce")
    if parsed is None or pd.isna(parsed):
        return None
    return parsed.date()


def positive(v: Any) -> Optional[float]:
    """Return ``v`` as a float only when it is strictly positive."""

    result = to_float(v)
    if result is None or result <= 0:
        return None
    return result
