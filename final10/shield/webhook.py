"""Signed enforcement webhooks delivered to the app that raised the event."""
from __future__ import annotations

import hashlib
import hmac
import json
import logging
import time
from typing import Any, Dict, Optional

import requests

from final10.db import models
from final10.utils.config import ShieldSettings, get_shield_settings

logger = logging.getLogger(__name__)

_RESPONSE_SNIPPET = 2000


def canonical_json(payload: Dict[str, Any]) -> str:
    return json.dumps(payload, sort_keys=True, separators=(",", ":"), default=str)


def sign_payload(body: str, secret: str) -> str:
    return hmac.new(secret.encode("utf-8"), body.encode("utf-8"), hashlib.sha256).hexdigest()


def build_payload(enforcement: models.ShieldEnforcement) -> Dict[str, Any]:
    return {
        "savvy_user_id": enforcement.savvy_user_id,
        "action": enforcement.decision,
        "features": enforcement.features_affected or [],
        "duration_hours": enforcement.duration_hours,
        "reason": enforcement.decision_reason,
        "restrictions": enforcement.restrictions or {},
        "risk_score": enforcement.risk_score,
        "enforcement_id": str(enforcement.id),
        "case_id": enforcement.case_id,
    }


def send_enforcement_webhook(
    enforcement: models.ShieldEnforcement,
    settings: Optional[ShieldSettings] = None,
) -> bool:
    """POST the enforcement to ``{base}/{app}/shield/enforce`` and record the outcome.

    Returns True on a 2xx response. Never raises for transport or HTTP errors;
    the caller commits the updated webhook fields.
    """
    settings = settings or get_shield_settings()
    if not settings.webhook_base_url:
        logger.debug("shield_webhook_skipped: enforcement=%s reason=no_base_url", enforcement.id)
        return False
    if not settings.webhook_secret:
        logger.warning("shield_webhook_unsigned: SHIELD_WEBHOOK_SECRET is not set")

    url = f"{settings.webhook_base_url}/{enforcement.app}/shield/enforce"
    body = canonical_json(build_payload(enforcement))
    headers = {
        "Content-Type": "application/json",
        "X-Shield-Signature": sign_payload(body, settings.webhook_secret or ""),
        "X-Shield-Timestamp": str(int(time.time() * 1000)),
    }
    try:
        resp = requests.post(url, data=body, headers=headers, timeout=settings.webhook_timeout_seconds)
    except requests.RequestException as exc:
        enforcement.webhook_sent = False
        enforcement.webhook_status_code = 0
        enforcement.webhook_response = str(exc)[:_RESPONSE_SNIPPET]
        enforcement.webhook_retry_count = (enforcement.webhook_retry_count or 0) + 1
        logger.warning("shield_webhook_failed: enforcement=%s url=%s error=%s", enforcement.id, url, exc)
        return False

    enforcement.webhook_sent = True
    enforcement.webhook_status_code = resp.status_code
    enforcement.webhook_response = (resp.text or "")[:_RESPONSE_SNIPPET]
    ok = 200 <= resp.status_code < 300
    if not ok:
        enforcement.webhook_retry_count = (enforcement.webhook_retry_count or 0) + 1
        logger.warning("shield_webhook_rejected: enforcement=%s status=%s", enforcement.id, resp.status_code)
    else:
        logger.info("shield_webhook_sent: enforcement=%s app=%s status=%s", enforcement.id, enforcement.app, resp.status_code)
    return ok
