"""
Delivery date helpers.

Amazon shows delivery estimates as "Thursday, October 16" or "April 15"
without a year. These helpers turn such text into a day count from today.
"""
import re
from datetime import date, datetime
from typing import Optional

MONTH_DAY_PATTERN = re.compile(r"([A-Za-z]{3,9})\.?\s+(\d{1,2})\b")


def _month_number(name: str) -> Optional[int]:
    for fmt in ("%B", "%b"):
        try:
            return datetime.strptime(name.capitalize(), fmt).month
        except ValueError:
            continue
    return None


def parse_month_day(text: str, today: date) -> Optional[date]:
    """
    Resolve a year-less "Month Day" (optionally preceded by a weekday) to a date.

    Dates earlier than ``today`` are taken to mean next year.

    Example:
        >>> parse_month_day("Thursday, October 16", date(2025, 10, 1))
        datetime.date(2025, 10, 16)
        >>> parse_month_day("January 3", date(2025, 12, 20))
        datetime.date(2026, 1, 3)
    """
    if not text:
        return None

    for match in MONTH_DAY_PATTERN.finditer(text):
        month = _month_number(match.group(1))
        if month is None:
            continue
        day = int(match.group(2))
        for year in (today.year, today.year + 1):
            try:
                candidate = date(year, month, day)
            except ValueError:
                continue
            if candidate >= today:
                return candidate
        return None
    return None


def days_until(text: str, today: Optional[date] = None) -> Optional[int]:
    """Whole days from ``today`` to the date named in ``text``, or None if unparsable."""
    today = today or date.today()
    target = parse_month_day(text, today)
    if target is None:
        return None
    return max(0, (target - today).days)
