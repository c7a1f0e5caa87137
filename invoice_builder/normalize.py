# invoice_builder/normalize.py
from __future__ import annotations

import math
import re
from datetime import date, datetime
from typing import Any, Optional

import dateparser

LEADING_NUMBER_RE = re.compile(r"^[-+]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][-+]?\d+)?")


def coerce_number(value: Any) -> float:
    """Turn whatever a form field produced into a float; anything unusable is 0.

    Strings are read the way a browser number parser reads them: the longest
    numeric prefix wins ("12kg" -> 12.0) and text without one gives 0.
    """
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        s = value.strip().replace(" ", "")
        m = LEADING_NUMBER_RE.match(s)
        if not m:
            return 0.0
        try:
            number = float(m.group(0))
        except ValueError:
            return 0.0
    else:
        return 0.0
    if not math.isfinite(number):
        return 0.0
    return number


def parse_date_any(text: Optional[str]) -> Optional[date]:
    if not text:
        return None
    text = text.strip()
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    dt = dateparser.parse(
        text,
        settings={"DATE_ORDER": "YMD", "PREFER_DAY_OF_MONTH": "first"},
    )
    if not dt:
        return None
    return dt.date()


def format_display_date(value: Optional[str]) -> str:
    """ISO date -> "January 16, 2024"; empty or unparseable input -> ""."""
    d = parse_date_any(value)
    if d is None:
        return ""
    return f"{d:%B} {d.day}, {d.year}"


def format_money(currency: str, value: float) -> str:
    return f"{currency}{value:.2f}"


def to_iso(value: date | datetime) -> str:
    if isinstance(value, datetime):
        value = value.date()
    return value.isoformat()
