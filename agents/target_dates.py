"""
Target date parsing and month arithmetic.

Models report target dates in many shapes: ISO dates, "Q2 2027",
"H2 2027", "June 2027", Korean labels such as "2027년 2분기". Anything
month-granular resolves to the 15th of the relevant month:

    quarter -> last month of the quarter
    half    -> June / December
    year    -> June
"""

from __future__ import annotations

import calendar
import re
from datetime import date

_MONTHS = {name.lower(): i for i, name in enumerate(calendar.month_name) if name}
_MONTHS.update({name.lower(): i for i, name in enumerate(calendar.month_abbr) if name})
_MONTHS["sept"] = 9

_ISO_DAY = re.compile(r"^(\d{4})[-/](\d{1,2})[-/](\d{1,2})$")
_ISO_MONTH = re.compile(r"^(\d{4})[-/](\d{1,2})$")
_KO_QUARTER = re.compile(r"(\d{4})년?\s*(\d)\s*분기")
_KO_HALF = re.compile(r"(\d{4})년?\s*(상반기|하반기)")
_KO_MONTH = re.compile(r"(\d{4})년?\s*(\d{1,2})월")
_QUARTER = re.compile(r"\bQ([1-4])\s*[-/]?\s*(\d{4})\b|\b(\d{4})\s*[-/]?\s*Q([1-4])\b", re.IGNORECASE)
_HALF = re.compile(r"\bH([12])\s*[-/]?\s*(\d{4})\b|\b(\d{4})\s*[-/]?\s*H([12])\b", re.IGNORECASE)
_MONTH_DAY_YEAR = re.compile(r"\b([A-Za-z]{3,9})\.?\s+(\d{1,2})(?:st|nd|rd|th)?,?\s+(\d{4})\b")
_MONTH_NAME = re.compile(r"\b([A-Za-z]{3,9})\.?,?\s+(\d{4})\b")
_YEAR_ONLY = re.compile(r"^(\d{4})년?$")
_ANY_YEAR = re.compile(r"\b(\d{4})\b")


def add_months(d: date, months: int) -> date:
    """Shift a date by whole months, clamping the day to the target month's length."""
    index = d.year * 12 + (d.month - 1) + months
    year, month = divmod(index, 12)
    month += 1
    day = min(d.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def month_label(d: date) -> str:
    """Human-readable month label, e.g. 'June 2027'."""
    return f"{calendar.month_name[d.month]} {d.year}"


def label_for(year: int, month: int) -> str:
    return f"{calendar.month_name[month]} {year}"


def _mid_month(year: int, month: int) -> date | None:
    if 1 <= month <= 12 and 1 <= year <= 9999:
        return date(year, month, 15)
    return None


def parse_target_date(text: str | None) -> date | None:
    """Parse a free-form target date label. Returns None when no date can be recovered."""
    if not text:
        return None
    s = text.strip()
    if not s:
        return None

    m = _ISO_DAY.match(s)
    if m:
        try:
            return date(int(m.group(1)), int(m.group(2)), int(m.group(3)))
        except ValueError:
            return None

    m = _ISO_MONTH.match(s)
    if m:
        return _mid_month(int(m.group(1)), int(m.group(2)))

    m = _KO_QUARTER.search(s)
    if m:
        quarter = int(m.group(2))
        if 1 <= quarter <= 4:
            return _mid_month(int(m.group(1)), quarter * 3)

    m = _KO_HALF.search(s)
    if m:
        return _mid_month(int(m.group(1)), 6 if m.group(2) == "상반기" else 12)

    m = _KO_MONTH.search(s)
    if m:
        return _mid_month(int(m.group(1)), int(m.group(2)))

    m = _QUARTER.search(s)
    if m:
        if m.group(1):
            quarter, year = int(m.group(1)), int(m.group(2))
        else:
            year, quarter = int(m.group(3)), int(m.group(4))
        return _mid_month(year, quarter * 3)

    m = _HALF.search(s)
    if m:
        if m.group(1):
            half, year = int(m.group(1)), int(m.group(2))
        else:
            year, half = int(m.group(3)), int(m.group(4))
        return _mid_month(year, 6 if half == 1 else 12)

    for m in _MONTH_DAY_YEAR.finditer(s):
        month = _MONTHS.get(m.group(1).lower())
        if month:
            try:
                return date(int(m.group(3)), month, int(m.group(2)))
            except ValueError:
                return _mid_month(int(m.group(3)), month)

    for m in _MONTH_NAME.finditer(s):
        month = _MONTHS.get(m.group(1).lower())
        if month:
            return _mid_month(int(m.group(2)), month)

    m = _YEAR_ONLY.match(s)
    if m:
        return _mid_month(int(m.group(1)), 6)

    m = _ANY_YEAR.search(s)
    if m:
        return _mid_month(int(m.group(1)), 6)

    return None
