from datetime import timedelta

import pytest

from final10.db.models.base import now_utc
from final10.db.repositories import referrals as referral_repo
from final10.services import referral_guard


@pytest.mark.parametrize(
    "ip,private",
    [
        ("10.1.2.3", True),
        ("192.168.0.10", True),
        ("172.16.5.5", True),
        ("172.31.255.1", True),
        ("172.32.0.1", False),
        ("127.0.0.1", True),
        ("::1", True),
        ("8.8.8.8", False),
        (None, False),
        ("", False),
    ],
)
def test_is_private_ip(ip, private):
    assert referral_guard.is_private_ip(ip) is private


def _check(db, referrer, **kwargs):
    params = {
        "new_email": "newbie@example.com",
        "new_user_id": None,
        "ip": "203.0.113.7",
        "ua": "Mozilla/5.0",
        "now": now_utc(),
    }
    params.update(kwargs)
    return referral_guard.check_referral(db, referrer=referrer, **params)


def test_clean_referral_passes(db, user):
    assert _check(db, user) == referral_guard.GuardResult(True)


def test_private_ip_blocked(db, user):
    assert _check(db, user, ip="10.0.0.4").reason == "private_ip"


def test_self_referral_by_email_blocked(db, user):
    assert _check(db, user, new_email=user.email.upper()).reason == "self_email"


def test_self_referral_by_id_blocked(db, user):
    assert _check(db, user, new_user_id=user.id).reason == "self_id"


def test_one_accepted_referral_per_ip_per_day(db, make_user):
    referrer = make_user()
    other = make_user()
    referral_repo.create_referral_log(
        db, referrer_id=other.id, referee_id=None, ip="203.0.113.7", ua="Other", status="accepted"
    )
    db.commit()
    assert _check(db, referrer).reason == "ip_quota"
    assert _check(db, referrer, ip="198.51.100.1").ok is True


def test_rejected_logs_do_not_count(db, user):
    referral_repo.create_referral_log(
        db, referrer_id=user.id, referee_id=None, ip="203.0.113.7", ua="Mozilla/5.0", status="rejected"
    )
    db.commit()
    assert _check(db, user).ok is True


def test_device_quota_over_a_week(db, user):
    for _ in range(2):
        referral_repo.create_referral_log(
            db, referrer_id=user.id, referee_id=None, ip="203.0.113.7", ua="Mozilla/5.0", status="accepted"
        )
    db.commit()
    # Two days later the IP window has passed but the device window has not
    result = _check(db, user, now=now_utc() + timedelta(days=2))
    assert result.reason == "device_quota"
