from unittest.mock import MagicMock, patch

import pytest
import requests

from final10.shield.risk import EVENT_TYPES
from final10.shield.sdk import (
    SavvyShield,
    ShieldConfig,
    ShieldError,
    get_client_ip,
    get_user_agent,
    send_shield_event,
)


def _config(**overrides):
    fields = {"api_url": "https://api.example.com/api/shield/", "api_key": "f10_sk_abc", "app_name": "arcade"}
    fields.update(overrides)
    return ShieldConfig(**fields)


def test_config_requires_url_key_and_app():
    with pytest.raises(ValueError):
        _config(api_key="")
    config = _config(retries=0)
    assert config.api_url == "https://api.example.com/api/shield"
    assert config.retries == 1


def test_send_fraud_signal_posts_with_headers():
    session = MagicMock()
    session.post.return_value.json.return_value = {"success": True}
    shield = SavvyShield(_config(), session=session, sleep=lambda _: None)

    assert shield.send_fraud_signal("user-1", "gold", {"value": 10}) == {"success": True}
    args, kwargs = session.post.call_args
    assert args[0] == "https://api.example.com/api/shield/ingest"
    assert kwargs["headers"]["X-Shield-Key"] == "f10_sk_abc"
    assert kwargs["json"]["type"] == "fraud_signal"
    assert kwargs["json"]["app"] == "arcade"
    assert kwargs["json"]["context"] == {"value": 10}
    assert kwargs["json"]["ts"]


def test_retries_with_exponential_backoff_then_raises():
    session = MagicMock()
    session.post.side_effect = requests.ConnectionError("down")
    sleeps = []
    shield = SavvyShield(_config(retries=3), session=session, sleep=sleeps.append)

    with pytest.raises(ShieldError, match="after 3 attempts"):
        shield.send_event({"type": "cheat_signal", "savvy_user_id": "u", "level": "guest"})
    assert session.post.call_count == 3
    assert sleeps == [2, 4]


def test_recovers_after_transient_failure():
    ok = MagicMock()
    ok.json.return_value = {"success": True}
    session = MagicMock()
    session.post.side_effect = [requests.Timeout("slow"), ok]
    shield = SavvyShield(_config(), session=session, sleep=lambda _: None)
    assert shield.send_user_report("u", "vip") == {"success": True}


def test_client_ip_and_user_agent_helpers():
    assert get_client_ip({"X-Forwarded-For": "1.2.3.4, 10.0.0.1"}) == "1.2.3.4"
    assert get_client_ip({"X-Real-IP": "5.6.7.8"}, peer="9.9.9.9") == "5.6.7.8"
    assert get_client_ip({}, peer="9.9.9.9") == "9.9.9.9"
    assert get_client_ip({}) == "unknown"
    assert get_user_agent({"User-Agent": "curl/8"}) == "curl/8"
    assert get_user_agent({}) == "unknown"


def test_send_shield_event_builds_a_one_off_client():
    with patch("final10.shield.sdk.requests.Session") as session_cls:
        session_cls.return_value.post.return_value.json.return_value = {"success": True}
        result = send_shield_event(_config(), {"type": "bot_detection", "savvy_user_id": "u", "level": "silver"})
    assert result == {"success": True}
    assert session_cls.return_value.post.call_args.kwargs["json"]["type"] == "bot_detection"


@pytest.mark.parametrize("event_type", sorted(EVENT_TYPES))
def test_typed_helpers_cover_every_event_type(event_type):
    session = MagicMock()
    shield = SavvyShield(_config(), session=session, sleep=lambda _: None)
    getattr(shield, f"send_{event_type}")("u", "bronze")
    assert session.post.call_args.kwargs["json"]["type"] == event_type
