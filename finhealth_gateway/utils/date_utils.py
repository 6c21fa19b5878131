"""Date manipulation utilities"""

from datetime import date, datetime
from typing import Iterable, Optional, Tuple


def parse_iso_date(value: str | date) -> date:
    """Parse an ISO-8601 date or datetime string into a date (trailing 'Z' accepted)"""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    if "T" in text or " " in text:
        return datetime.fromisoformat(text).date()
    return date.fromisoformat(text)


def latest_month(dates: Iterable[date]) -> Optional[Tuple[int, int]]:
    """(year, month) of the most recent date, or None for no dates"""
    newest = max(dates, default=None)
    if newest is None:
        return None
    return newest.year, newest.month


def month_key(year: int, month: int) -> str:
    return f"{year:04d}-{month:02d}"
