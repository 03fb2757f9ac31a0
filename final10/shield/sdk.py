"""
Client for sending fraud signals to a Shield ingest endpoint.

Example:

    shield = SavvyShield(ShieldConfig(api_url="https://api.example.com/api/shield",
                                      api_key="f10_sk_...", app_name="arcade"))
    shield.send_fraud_signal("user-42", "gold", {"value": 2500})
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Mapping, Optional

import requests

logger = logging.getLogger(__name__)


class ShieldError(Exception):
    """Raised when the Shield API cannot be reached after every retry."""


@dataclass
class ShieldConfig:
    api_url: str
    api_key: str
    app_name: str
    environment: str = "production"
    timeout: float = 5.0
    retries: int = 3

    def __post_init__(self):
        if not self.api_url or not self.api_key or not self.app_name:
            raise ValueError("Missing required configuration: api_url, api_key, app_name")
        self.api_url = self.api_url.rstrip("/")
        self.retries = max(1, int(self.retries))


class SavvyShield:
    def __init__(
        self,
        config: ShieldConfig,
        *,
        session: Optional[requests.Session] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.config = config
        self._session = session or requests.Session()
        self._sleep = sleep

    def send_event(self, event: Mapping[str, Any]) -> Dict[str, Any]:
        payload = dict(event)
        payload.setdefault("context", {})
        if not payload.get("ts"):
            payload["ts"] = datetime.now(timezone.utc).isoformat()
        payload["app"] = self.config.app_name
        return self._post("/ingest", payload)

    def _send(self, event_type: str, savvy_user_id: str, level: str, context: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
        return self.send_event({
            "type": event_type,
            "savvy_user_id": savvy_user_id,
            "level": level,
            "context": dict(context or {}),
        })

    def send_fraud_signal(self, savvy_user_id, level, context=None):
        return self._send("fraud_signal", savvy_user_id, level, context)

    def send_cheat_signal(self, savvy_user_id, level, context=None):
        return self._send("cheat_signal", savvy_user_id, level, context)

    def send_user_report(self, savvy_user_id, level, context=None):
        return self._send("user_report", savvy_user_id, level, context)

    def send_payment_risk(self, savvy_user_id, level, context=None):
        return self._send("payment_risk", savvy_user_id, level, context)

    def send_behavioral_anomaly(self, savvy_user_id, level, context=None):
        return self._send("behavioral_anomaly", savvy_user_id, level, context)

    def send_device_reuse(self, savvy_user_id, level, context=None):
        return self._send("device_reuse", savvy_user_id, level, context)

    def send_velocity_spike(self, savvy_user_id, level, context=None):
        return self._send("velocity_spike", savvy_user_id, level, context)

    def send_impossible_travel(self, savvy_user_id, level, context=None):
        return self._send("impossible_travel", savvy_user_id, level, context)

    def send_bot_detection(self, savvy_user_id, level, context=None):
        return self._send("bot_detection", savvy_user_id, level, context)

    def send_chargeback_signal(self, savvy_user_id, level, context=None):
        return self._send("chargeback_signal", savvy_user_id, level, context)

    def send_ip_reputation(self, savvy_user_id, level, context=None):
        return self._send("ip_reputation", savvy_user_id, level, context)

    def send_win_rate_anomaly(self, savvy_user_id, level, context=None):
        return self._send("win_rate_anomaly", savvy_user_id, level, context)

    def _post(self, endpoint: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        url = f"{self.config.api_url}{endpoint}"
        headers = {
            "Content-Type": "application/json",
            "X-Shield-Key": self.config.api_key,
            "X-Shield-App": self.config.app_name,
            "X-Shield-Environment": self.config.environment,
        }
        last_error: Optional[Exception] = None
        for attempt in range(1, self.config.retries + 1):
            try:
                resp = self._session.post(url, json=payload, headers=headers, timeout=self.config.timeout)
                resp.raise_for_status()
                return resp.json()
            except (requests.RequestException, ValueError) as exc:
                last_error = exc
                logger.warning("shield_sdk_request_failed: attempt=%s/%s error=%s", attempt, self.config.retries, exc)
                if attempt < self.config.retries:
                    self._sleep(2 ** attempt)
        raise ShieldError(f"Shield API request failed after {self.config.retries} attempts: {last_error}")


def get_client_ip(headers: Mapping[str, str], peer: Optional[str] = None) -> str:
    """First X-Forwarded-For hop, then X-Real-IP, then the socket peer."""
    lowered = {k.lower(): v for k, v in headers.items()}
    forwarded = lowered.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    return lowered.get("x-real-ip") or peer or "unknown"


def get_user_agent(headers: Mapping[str, str]) -> str:
    lowered = {k.lower(): v for k, v in headers.items()}
    return lowered.get("user-agent") or "unknown"


def send_shield_event(config: ShieldConfig, event: Mapping[str, Any]) -> Dict[str, Any]:
    return SavvyShield(config).send_event(event)
