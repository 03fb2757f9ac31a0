from datetime import datetime, timedelta, UTC

import pytest

from final10.services import search_quota
from final10.services.errors import AccountError

NOW = datetime(2026, 2, 2, 12, 0, tzinfo=UTC)


def test_free_user_gets_daily_limit(make_user):
    user = make_user()
    status = search_quota.search_status(user, NOW)
    assert status["remaining"] == 5
    assert status["can_search"] is True
    assert status["membership_tier"] == "free"

    for _ in range(5):
        search_quota.record_search(user, NOW)
    assert search_quota.can_search(user, NOW) is False


def test_quota_rolls_over_at_utc_midnight(make_user):
    user = make_user()
    for _ in range(5):
        search_quota.record_search(user, NOW)
    assert search_quota.search_status(user, NOW + timedelta(days=1))["remaining"] == 5


def test_ads_unlock_extra_searches_up_to_daily_cap(make_user):
    user = make_user()
    for _ in range(3):
        assert search_quota.watch_ad(user, NOW) == {"counted": True, "searches_unlocked": 5}
    with pytest.raises(AccountError, match="Daily ad limit"):
        search_quota.watch_ad(user, NOW)
    assert search_quota.search_status(user, NOW)["remaining"] == 20


def test_premium_is_unlimited_and_ads_do_not_count(make_user):
    user = make_user(membership_tier="premium", subscription_expires=None)
    status = search_quota.search_status(user, NOW)
    assert status["remaining"] == -1
    assert status["can_search"] is True
    assert search_quota.watch_ad(user, NOW) == {"counted": False, "searches_unlocked": 0}
    assert user.ads_watched_today == 0


def test_expired_subscription_falls_back_to_free_quota(make_user):
    user = make_user(membership_tier="pro", subscription_expires=NOW - timedelta(days=1))
    assert search_quota.is_premium(user, NOW) is False
    assert search_quota.search_status(user, NOW)["remaining"] == 5
