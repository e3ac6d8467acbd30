from __future__ import annotations

import re
from datetime import date, datetime, timedelta
from typing import Iterator, Optional

from ..core.constants import DAYS_OF_WEEK
from ..core.exceptions import ValidationError

_TIME_RE = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)(?::([0-5]\d))?$")


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def require_iso_date(value: Optional[str], field_name: str) -> date:
    v = str(value or "").strip()
    if not v:
        raise ValidationError(f"{field_name} is required")
    try:
        return parse_iso_date(v)
    except ValueError:
        raise ValidationError(f"{field_name} must be a date (YYYY-MM-DD)")


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()


def day_name(value: date) -> str:
    return DAYS_OF_WEEK[value.weekday()]


def normalize_time_string(value: Optional[str], field_name: str) -> Optional[str]:
    """Accept HH:MM or HH:MM:SS and return HH:MM:SS (None for blank)."""
    v = str(value or "").strip()
    if not v:
        return None
    m = _TIME_RE.match(v)
    if not m:
        raise ValidationError(f"{field_name} must be a time (HH:MM or HH:MM:SS)")
    return f"{m.group(1)}:{m.group(2)}:{m.group(3) or '00'}"


def iter_dates(start: date, end: date) -> Iterator[date]:
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)
