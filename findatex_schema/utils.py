"""
utils.py – shared, low-level utilities for the findatex-schema package.

This module consolidates common helpers for:
- Type checking (dates, date-times, numeric kinds)
- Presence checks (what counts as a missing value)
"""

from __future__ import annotations

import datetime as _dt
import math
import re
from typing import Any

# --------------------------------------------------------------------------- #
# Date & date-time helpers                                                    #
# --------------------------------------------------------------------------- #

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_DT_RE = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(?:\.\d{1,6})?(?:Z|[+\-]\d{2}:\d{2})$")


def _is_date(value: Any) -> bool:
    """Return True iff *value* is a ``YYYY-MM-DD`` string naming a real day."""
    if not isinstance(value, str) or not _DATE_RE.fullmatch(value):
        return False
    try:
        _dt.date.fromisoformat(value)
        return True
    except ValueError:
        return False


def _is_datetime(value: Any) -> bool:
    """Return True iff *value* is a valid ISO-8601 date-time string."""
    if not isinstance(value, str) or not _DT_RE.fullmatch(value):
        return False
    try:
        _dt.datetime.fromisoformat(value.replace("Z", "+00:00"))
        return True
    except ValueError:
        return False


# --------------------------------------------------------------------------- #
# Numeric kinds                                                               #
# --------------------------------------------------------------------------- #

def _is_number(value: Any) -> bool:
    """Finite int or float; booleans are not numbers."""
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    return isinstance(value, float) and math.isfinite(value)


def _is_integer(value: Any) -> bool:
    """Python int, or a float with no fractional part (``1.0`` from JSON)."""
    if not _is_number(value):
        return False
    return isinstance(value, int) or value.is_integer()


# --------------------------------------------------------------------------- #
# Presence                                                                    #
# --------------------------------------------------------------------------- #

def _is_missing(value: Any) -> bool:
    """``None`` and float NaN (an empty DataFrame cell) count as absent."""
    if value is None:
        return True
    return isinstance(value, float) and math.isnan(value)


def _is_blank(value: Any) -> bool:
    """Missing, or a string holding only whitespace."""
    return _is_missing(value) or (isinstance(value, str) and not value.strip())


def _type_name(value: Any) -> str:
    """JSON-ish name of *value*'s runtime type, for error messages."""
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, int):
        return "integer"
    if isinstance(value, float):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, dict):
        return "object"
    if isinstance(value, (list, tuple)):
        return "list"
    return type(value).__name__
