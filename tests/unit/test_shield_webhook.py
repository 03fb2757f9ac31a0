import json
import uuid
from unittest.mock import MagicMock, patch

import requests

from final10.db import models
from final10.shield import webhook
from final10.utils.config import ShieldSettings

SETTINGS = ShieldSettings(webhook_base_url="https://apps.example.com", webhook_secret="s3cret")


def _enforcement():
    return models.ShieldEnforcement(
        id=uuid.uuid4(),
        savvy_user_id="player-9",
        app="arcade",
        level="gold",
        risk_score=0.8,
        decision="temp_suspend",
        decision_reason="High risk",
        duration_hours=48,
        features_affected=["betting"],
        restrictions={"betting": True},
        case_id="case-1",
        webhook_retry_count=0,
    )


def test_signature_is_hmac_of_canonical_body():
    body = webhook.canonical_json({"b": 1, "a": [1, 2]})
    assert body == '{"a":[1,2],"b":1}'
    assert webhook.sign_payload(body, "k") == webhook.sign_payload('{"a":[1,2],"b":1}', "k")
    assert webhook.sign_payload(body, "k") != webhook.sign_payload(body, "other")


def test_skipped_without_base_url():
    enforcement = _enforcement()
    with patch("final10.shield.webhook.requests.post") as post:
        assert webhook.send_enforcement_webhook(enforcement, ShieldSettings()) is False
    post.assert_not_called()
    assert enforcement.webhook_sent in (None, False)


def test_success_posts_signed_payload():
    enforcement = _enforcement()
    with patch("final10.shield.webhook.requests.post") as post:
        post.return_value = MagicMock(status_code=200, text="ok")
        assert webhook.send_enforcement_webhook(enforcement, SETTINGS) is True

    args, kwargs = post.call_args
    assert args[0] == "https://apps.example.com/arcade/shield/enforce"
    payload = json.loads(kwargs["data"])
    assert payload["action"] == "temp_suspend"
    assert payload["enforcement_id"] == str(enforcement.id)
    assert kwargs["headers"]["X-Shield-Signature"] == webhook.sign_payload(kwargs["data"], "s3cret")
    assert enforcement.webhook_sent is True
    assert enforcement.webhook_status_code == 200
    assert enforcement.webhook_retry_count == 0


def test_http_error_counts_a_retry():
    enforcement = _enforcement()
    with patch("final10.shield.webhook.requests.post") as post:
        post.return_value = MagicMock(status_code=502, text="bad gateway")
        assert webhook.send_enforcement_webhook(enforcement, SETTINGS) is False
    assert enforcement.webhook_sent is True
    assert enforcement.webhook_status_code == 502
    assert enforcement.webhook_retry_count == 1


def test_transport_error_is_recorded_not_raised():
    enforcement = _enforcement()
    with patch("final10.shield.webhook.requests.post", side_effect=requests.ConnectionError("refused")):
        assert webhook.send_enforcement_webhook(enforcement, SETTINGS) is False
    assert enforcement.webhook_sent is False
    assert enforcement.webhook_status_code == 0
    assert "refused" in enforcement.webhook_response
    assert enforcement.webhook_retry_count == 1
