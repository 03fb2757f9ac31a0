from datetime import timedelta

import pytest

from final10.db import schemas
from final10.db.models.base import now_utc
from final10.services import promo_analytics
from final10.services.promo_code_service import PromoCodeService


@pytest.mark.parametrize(
    "code,valid",
    [("SAVE20", True), ("A_B-C", True), ("ab", False), ("lower", False), ("", False), (None, False), ("X" * 51, False)],
)
def test_is_valid_code_format(code, valid):
    assert promo_analytics.is_valid_code_format(code) is valid


def test_generate_unique_code_uses_prefix(db):
    code = promo_analytics.generate_unique_code(db, prefix="summer", length=6)
    assert code.startswith("SUMMER")
    assert len(code) == 12
    assert promo_analytics.is_valid_code_format(code)


@pytest.fixture
def applied(db, make_user):
    creator = make_user()
    shopper = make_user()
    service = PromoCodeService(db)
    promo = service.create(
        schemas.PromoCodeCreate(
            code="TEN", description="Ten off", discount_type="fixed", discount_value=10, commission_rate=5, is_public=True
        ),
        creator_id=creator.id,
        creator_type="influencer",
        created_by_id=creator.id,
    )
    db.commit()
    service.apply("TEN", 80.0, "order-1", shopper)
    db.refresh(promo)
    return promo, creator, shopper


def test_daily_usage_stats_fill_every_day(db, applied):
    promo, _, _ = applied
    series = promo_analytics.get_daily_usage_stats(db, days=7, promo_code_id=promo.id)
    assert len(series) == 7
    assert [row["usage_count"] for row in series[:-1]] == [0] * 6
    assert series[-1] == {
        "date": now_utc().date().isoformat(),
        "usage_count": 1,
        "revenue": 80.0,
        "discount": 10.0,
        "commission": 4.0,
    }


def test_promo_code_metrics(db, applied):
    promo, _, _ = applied
    metrics = promo_analytics.get_promo_code_metrics(db, promo, days=3)
    assert metrics["total_usage"] == 1
    assert metrics["unique_users"] == 1
    assert metrics["average_order_value"] == 80.0
    assert metrics["total_commission"] == 4.0
    assert metrics["days_until_expiration"] is None
    assert len(metrics["daily_usage"]) == 3


def test_creator_performance(db, applied):
    _, creator, _ = applied
    perf = promo_analytics.get_creator_performance(db, creator.id)
    assert perf["total_codes"] == 1
    assert perf["active_codes"] == 1
    assert perf["pending_earnings"] == 4.0
    assert perf["paid_earnings"] == 0.0
    assert perf["top_codes"][0]["code"] == "TEN"


def test_admin_analytics_overview(db, applied):
    analytics = promo_analytics.get_admin_analytics(db, start_date=now_utc() - timedelta(days=1))
    assert analytics["overview"]["total_codes"] == 1
    assert analytics["overview"]["total_usage"] == 1
    assert analytics["overview"]["total_revenue"] == 80.0
    assert analytics["top_public_codes"][0]["code"] == "TEN"
    assert analytics["pending_payouts"] == []


def test_can_user_use_code_reports_user_limit(db, applied):
    promo, _, shopper = applied
    verdict = promo_analytics.can_user_use_code(db, promo, shopper.id, order_value=80.0)
    assert verdict == {"can_use": False, "errors": ["User usage limit reached"], "user_usage_count": 1}
