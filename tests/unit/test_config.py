from final10.utils import config


def test_points_defaults():
    settings = config.get_points_settings()
    assert settings.discount_ratio == 0.01
    assert settings.referral_points == 5000
    assert settings.weekend_multiplier == 1.0
    assert settings.badge_tiers["Bronze"] == 100_000


def test_invalid_numbers_fall_back_to_defaults(monkeypatch):
    monkeypatch.setenv("WEEKEND_MULTIPLIER", "double")
    monkeypatch.setenv("REFERRAL_POINTS", "")
    config.refresh_settings_cache()
    settings = config.get_points_settings()
    assert settings.weekend_multiplier == 1.0
    assert settings.referral_points == 5000


def test_admin_emails_are_lowercased(monkeypatch):
    monkeypatch.setenv("ADMIN_EMAILS", "Boss@Example.com, ops@example.com ,")
    config.refresh_settings_cache()
    assert config.get_auth_settings().admin_emails == ("boss@example.com", "ops@example.com")


def test_shield_settings_strip_trailing_slash(monkeypatch):
    monkeypatch.setenv("SHIELD_WEBHOOK_BASE_URL", " https://apps.example.com/ ")
    config.refresh_settings_cache()
    settings = config.get_shield_settings()
    assert settings.webhook_base_url == "https://apps.example.com"
    assert settings.webhook_secret is None
