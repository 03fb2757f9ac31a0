import pytest

from final10.utils import feature_flags


def test_defaults_are_enabled():
    assert feature_flags.get_feature_flags() == {
        "feature_live_search_enabled": True,
        "feature_referrals_enabled": True,
        "feature_shield_enabled": True,
    }


@pytest.mark.parametrize("raw,expected", [("0", False), ("off", False), ("", False), ("yes", True), ("TRUE", True), ("maybe", True)])
def test_env_values_are_normalized(monkeypatch, raw, expected):
    monkeypatch.setenv("FEATURE_SHIELD_ENABLED", raw)
    feature_flags.refresh_feature_flag_cache()
    assert feature_flags.shield_enabled() is expected


def test_cache_holds_until_refreshed(monkeypatch):
    assert feature_flags.live_search_enabled() is True
    monkeypatch.setenv("FEATURE_LIVE_SEARCH_ENABLED", "false")
    assert feature_flags.live_search_enabled() is True
    feature_flags.refresh_feature_flag_cache()
    assert feature_flags.live_search_enabled() is False
    assert feature_flags.referrals_enabled() is True
