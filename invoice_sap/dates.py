# invoice_sap/dates.py
"""
Invoice date resolution.

Alma's production export writes American dates (MM/DD/YYYY), while the
sample file shipped with the interface documentation used an eight digit
UK layout (DDMMYYYY). SAP wants YYYYMMDD. Each strategy below returns the
converted date or None, and ``resolve_invoice_date`` tries them in order.
"""
from __future__ import annotations

from datetime import datetime
from typing import Callable, List, Optional, Tuple

from .config_labels import (
    CENTURY_MARKERS,
    EIGHT_DIGIT_DATE_PATTERN,
    UNKNOWN_DATE,
    US_SLASH_DATE_PATTERN,
)

DateStrategy = Callable[[str], Optional[str]]


def from_us_slashes(raw: str) -> Optional[str]:
    m = US_SLASH_DATE_PATTERN.match(raw)
    if not m:
        return None
    # Digits alone are not enough: 02/30/2016 is not rewritten as 20160230,
    # it falls through to the later strategies.
    try:
        dt = datetime(int(m.group("year")), int(m.group("month")), int(m.group("day")))
    except ValueError:
        return None
    return dt.strftime("%Y%m%d")


def _is_day(value: int) -> bool:
    return 1 <= value <= 31


def _is_month(value: int) -> bool:
    return 1 <= value <= 12


def from_eight_digits(raw: str) -> Optional[str]:
    """
    Reorder an eight digit date into YYYYMMDD.

    When the third pair is 19 or 20 it is taken to be the century, so the
    year sits at the end and the first two pairs are day and month in some
    order: day-month (UK) wins when both readings are possible. Anything
    else is assumed to be YYYYMMDD already and passes through.
    """
    m = EIGHT_DIGIT_DATE_PATTERN.match(raw)
    if not m:
        return None
    first, second, third, fourth = m.groups()

    if int(third) in CENTURY_MARKERS:
        if _is_day(int(first)) and _is_month(int(second)):
            return third + fourth + second + first
        if _is_month(int(first)) and _is_day(int(second)):
            return third + fourth + first + second

    return first + second + third + fourth


DATE_STRATEGIES: List[Tuple[str, DateStrategy]] = [
    ("us-slashes", from_us_slashes),
    ("eight-digits", from_eight_digits),
]


def resolve_invoice_date(raw: Optional[str]) -> str:
    text = (raw or "").strip()
    for _name, strategy in DATE_STRATEGIES:
        resolved = strategy(text)
        if resolved is not None:
            return resolved
    return UNKNOWN_DATE
