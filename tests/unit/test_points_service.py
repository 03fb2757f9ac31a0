from datetime import datetime, timedelta, UTC

import pytest

from final10.db import models
from final10.services import points_service
from final10.services.errors import PointsError

# 2026-01-07 is a Wednesday, 2026-01-10 a Saturday
WEEKDAY = datetime(2026, 1, 7, 9, 30, tzinfo=UTC)
SATURDAY = datetime(2026, 1, 10, 9, 30, tzinfo=UTC)


def _ledger(db, user):
    return db.query(models.PointsLedger).filter(models.PointsLedger.user_id == user.id).all()


def test_award_points_updates_balance_lifetime_and_ledger(db, make_user):
    user = make_user(points_balance=0, lifetime_points_earned=0)
    entry, created = points_service.award_points(db, user, 250, "test", ref_id="r1")
    db.commit()

    assert created is True
    assert entry.type == "earn"
    assert user.points_balance == 250
    assert user.lifetime_points_earned == 250
    assert [e.amount for e in _ledger(db, user)] == [250]


def test_award_points_is_idempotent_per_key(db, make_user):
    user = make_user(points_balance=0, lifetime_points_earned=0)
    first, created_first = points_service.award_points(db, user, 40, "test", idempotency_key="k-1")
    second, created_second = points_service.award_points(db, user, 40, "test", idempotency_key="k-1")
    db.commit()

    assert created_first is True
    assert created_second is False
    assert first.id == second.id
    assert user.points_balance == 40
    assert len(_ledger(db, user)) == 1


def test_idempotency_key_owned_by_other_user_conflicts(db, make_user):
    alice = make_user()
    bob = make_user()
    points_service.award_points(db, alice, 10, "test", idempotency_key="shared")
    with pytest.raises(PointsError) as exc:
        points_service.award_points(db, bob, 10, "test", idempotency_key="shared")
    assert exc.value.status_code == 409


@pytest.mark.parametrize("amount", [0, -5])
def test_non_positive_amounts_rejected(db, user, amount):
    with pytest.raises(PointsError):
        points_service.award_points(db, user, amount, "test")
    with pytest.raises(PointsError):
        points_service.spend_points(db, user, amount, "test")


def test_spend_points_keeps_lifetime_and_checks_balance(db, make_user):
    user = make_user(points_balance=100, lifetime_points_earned=500)
    points_service.spend_points(db, user, 60, "test")
    assert user.points_balance == 40
    assert user.lifetime_points_earned == 500
    with pytest.raises(PointsError, match="Insufficient points"):
        points_service.spend_points(db, user, 41, "test")


def test_badges_follow_lifetime_thresholds(db, make_user):
    user = make_user(points_balance=0, lifetime_points_earned=99_999)
    points_service.award_points(db, user, 1, "test")
    assert user.badges == ["Bronze"]
    assert points_service.badges_for(25_000_000) == ["Bronze", "Silver", "Gold", "Diamond"]
    assert points_service.badges_for(0) == []


def test_redeem_for_discount_converts_with_ratio(db, make_user):
    user = make_user(points_balance=1000)
    result = points_service.redeem_for_discount(db, user, amount=500, idempotency_key="redeem-1", auction_id="a1")
    assert result == {"ok": True, "idempotent": False, "discount_usd": 5.0, "new_balance": 500}

    again = points_service.redeem_for_discount(db, user, amount=500, idempotency_key="redeem-1")
    assert again["idempotent"] is True
    assert again["new_balance"] == 500


def test_earn_multiplier_stacks_trial_premium_and_weekend(make_user):
    user = make_user(
        trial_active=True,
        trial_ends_at=WEEKDAY + timedelta(days=4),
        membership_tier="premium",
        subscription_expires=WEEKDAY + timedelta(days=10),
    )
    assert points_service.earn_multiplier(user, WEEKDAY) == pytest.approx(1.7)
    assert points_service.earn_multiplier(user, SATURDAY) == pytest.approx(2.7)


def test_expired_trial_and_subscription_do_not_count(make_user):
    user = make_user(
        trial_active=True,
        trial_ends_at=WEEKDAY - timedelta(days=1),
        membership_tier="premium",
        subscription_expires=WEEKDAY - timedelta(days=1),
    )
    assert points_service.earn_multiplier(user, WEEKDAY) == 1.0


def test_daily_claim_once_per_day(db, make_user):
    user = make_user(points_balance=0, lifetime_points_earned=0)
    result = points_service.daily_claim(db, user, now=WEEKDAY)
    assert result["awarded"] == 100
    assert user.last_daily_claim == "2026-01-07"

    with pytest.raises(PointsError, match="already"):
        points_service.daily_claim(db, user, now=WEEKDAY + timedelta(hours=5))

    next_day = points_service.daily_claim(db, user, now=WEEKDAY + timedelta(days=1))
    assert next_day["new_balance"] == 200


def test_daily_claim_applies_weekend_multiplier(db, make_user):
    user = make_user(points_balance=0, lifetime_points_earned=0)
    result = points_service.daily_claim(db, user, now=SATURDAY)
    assert result["multiplier"] == 2.0
    assert result["awarded"] == 200


def test_public_config_exposes_rates():
    config = points_service.public_config()
    assert config["discount_ratio"] == 0.01
    assert config["badge_tiers"]["Gold"] == 10_000_000
    assert config["version"] == "v1"
