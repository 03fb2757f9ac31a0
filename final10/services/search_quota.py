"""
Daily search quota for free-tier accounts.

Free users get ``daily_search_limit`` searches per UTC day plus
``searches_per_ad`` more for each ad watched (up to ``max_ads_per_day``).
Premium and pro members search without limit.
"""
from __future__ import annotations

from datetime import datetime
from typing import Dict, Optional

from final10.db import models
from final10.db.models.base import as_utc, now_utc
from final10.services.errors import AccountError
from final10.utils.clock import utc_day


def is_premium(user: models.User, now: Optional[datetime] = None) -> bool:
    if user.membership_tier not in ("premium", "pro"):
        return False
    if user.subscription_expires is None:
        return True
    return as_utc(user.subscription_expires) > (now or now_utc())


def _roll_day(user: models.User, day: str) -> None:
    if user.search_day != day:
        user.search_day = day
        user.searches_today = 0
    if user.ad_day != day:
        user.ad_day = day
        user.ads_watched_today = 0


def search_status(user: models.User, now: Optional[datetime] = None) -> Dict[str, object]:
    now = now or now_utc()
    _roll_day(user, utc_day(now))
    unlimited = is_premium(user, now)
    available = user.daily_search_limit + user.ads_watched_today * user.searches_per_ad
    remaining = -1 if unlimited else max(0, available - user.searches_today)
    return {
        "can_search": unlimited or remaining > 0,
        "remaining": remaining,
        "searches_today": user.searches_today,
        "ads_watched_today": user.ads_watched_today,
        "max_ads_per_day": user.max_ads_per_day,
        "searches_per_ad": user.searches_per_ad,
        "membership_tier": user.membership_tier,
    }


def can_search(user: models.User, now: Optional[datetime] = None) -> bool:
    return bool(search_status(user, now)["can_search"])


def record_search(user: models.User, now: Optional[datetime] = None) -> None:
    now = now or now_utc()
    _roll_day(user, utc_day(now))
    user.searches_today += 1


def watch_ad(user: models.User, now: Optional[datetime] = None) -> Dict[str, object]:
    """Count an ad view toward extra searches; premium views earn no searches."""
    now = now or now_utc()
    _roll_day(user, utc_day(now))
    if is_premium(user, now):
        return {"counted": False, "searches_unlocked": 0}
    if user.ads_watched_today >= user.max_ads_per_day:
        raise AccountError("Daily ad limit reached")
    user.ads_watched_today += 1
    return {"counted": True, "searches_unlocked": user.searches_per_ad}
