from __future__ import annotations

from datetime import date, datetime
from typing import Optional


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD (a trailing time part is ignored) into date."""
    return datetime.strptime(value[:10], "%Y-%m-%d").date()


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()


def iso(value: Optional[date]) -> Optional[str]:
    return value.isoformat() if value else None


def anniversary_in(year: int, anchor: date) -> date:
    """Anchor's month/day in ``year``; 29 Feb falls back to 28 Feb."""
    try:
        return anchor.replace(year=year)
    except ValueError:
        return anchor.replace(year=year, day=28)
