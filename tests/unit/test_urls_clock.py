from datetime import datetime, timedelta, timezone, UTC

import pytest

from final10.utils import clock, urls


def test_client_base_url(monkeypatch):
    monkeypatch.delenv("CLIENT_URL", raising=False)
    assert urls.get_client_base_url() == "http://localhost:3000"
    monkeypatch.setenv("CLIENT_URL", "https://final10.app/")
    assert urls.build_referral_link("abc") == "https://final10.app/signup?ref=abc"


@pytest.mark.parametrize(
    "value,host",
    [("https://WWW.Example.com/a", "www.example.com"), ("example.com/path", "example.com"), ("", None), ("   ", None)],
)
def test_extract_hostname(value, host):
    assert urls.extract_hostname(value) == host


def test_host_matches_only_real_subdomains():
    assert urls.host_matches("m.facebook.com", "facebook.com")
    assert urls.host_matches("facebook.com", "facebook.com")
    assert not urls.host_matches("notfacebook.com", "facebook.com")
    assert not urls.host_matches(None, "facebook.com")


def test_utc_day_converts_offsets():
    late_evening_west = datetime(2026, 1, 1, 22, 0, tzinfo=timezone(timedelta(hours=-5)))
    assert clock.utc_day(late_evening_west) == "2026-01-02"


def test_next_midnight_and_weekend():
    now = datetime(2026, 1, 10, 18, 45, tzinfo=UTC)
    assert clock.next_utc_midnight(now) == datetime(2026, 1, 11, tzinfo=UTC)
    assert clock.is_weekend(now) is True
    assert clock.is_weekend(now + timedelta(days=2)) is False
