"""Subscription cycles and receipt numbers."""
from __future__ import annotations

import secrets
from datetime import date, datetime

from ..common.datetime_utils import anniversary_in


def subscription_start(registered_on: date, today: date) -> date:
    """Latest registration anniversary at or before ``today``."""
    start = anniversary_in(today.year, registered_on)
    if start > today:
        start = anniversary_in(today.year - 1, registered_on)
    return start


def subscription_year_for(registered_on: date, today: date) -> str:
    """Label of the cycle ``today`` falls in, e.g. ``"2025-2026"``."""
    start = subscription_start(registered_on, today).year
    return f"{start}-{start + 1}"


def calendar_subscription_year(today: date) -> str:
    return f"{today.year}-{today.year + 1}"


def registered_at_least_a_year_ago(registered_on: date, today: date) -> bool:
    return registered_on <= anniversary_in(today.year - 1, today)


def generate_receipt_number(now: datetime) -> str:
    return f"RCP{int(now.timestamp() * 1000)}{secrets.randbelow(1000):03d}"
