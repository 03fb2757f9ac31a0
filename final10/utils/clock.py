"""UTC day helpers shared by quotas, daily tasks and claims."""
from __future__ import annotations

from datetime import datetime, timedelta, UTC
from typing import Optional


def utc_now() -> datetime:
    return datetime.now(UTC)


def utc_day(now: Optional[datetime] = None) -> str:
    """Return the UTC calendar day as YYYY-MM-DD."""
    now = now or utc_now()
    if now.tzinfo is not None:
        now = now.astimezone(UTC)
    return now.strftime("%Y-%m-%d")


def next_utc_midnight(now: Optional[datetime] = None) -> datetime:
    now = (now or utc_now()).astimezone(UTC)
    start = now.replace(hour=0, minute=0, second=0, microsecond=0)
    return start + timedelta(days=1)


def is_weekend(now: Optional[datetime] = None) -> bool:
    """Saturday or Sunday in UTC."""
    now = (now or utc_now()).astimezone(UTC)
    return now.weekday() >= 5
