"""Typed settings sourced from the environment.

Each group is a frozen dataclass built by ``from_env`` and cached; call
``refresh_settings_cache`` after changing the environment in tests.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Dict, Tuple

logger = logging.getLogger(__name__)

_DEV_JWT_SECRET = "final10-dev-secret-change-me"


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw.strip())
    except ValueError:
        logger.warning("Invalid integer for %s=%r; using %s", name, raw, default)
        return default


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw.strip())
    except ValueError:
        logger.warning("Invalid number for %s=%r; using %s", name, raw, default)
        return default


def _csv_env(name: str, default: Tuple[str, ...] = ()) -> Tuple[str, ...]:
    raw = os.getenv(name)
    if raw is None:
        return default
    return tuple(part.strip().lower() for part in raw.split(",") if part.strip())


@dataclass(frozen=True)
class AuthSettings:
    jwt_secret: str
    jwt_algorithm: str = "HS256"
    signup_expires_minutes: int = 60
    login_expires_minutes: int = 7 * 24 * 60
    admin_emails: Tuple[str, ...] = ()

    @classmethod
    def from_env(cls) -> "AuthSettings":
        secret = os.getenv("JWT_SECRET")
        if not secret:
            logger.warning("JWT_SECRET is not set; using the development secret.")
            secret = _DEV_JWT_SECRET
        return cls(
            jwt_secret=secret,
            jwt_algorithm=os.getenv("JWT_ALGORITHM", "HS256"),
            signup_expires_minutes=_int_env("JWT_SIGNUP_EXPIRES_MINUTES", 60),
            login_expires_minutes=_int_env("JWT_LOGIN_EXPIRES_MINUTES", 7 * 24 * 60),
            admin_emails=_csv_env("ADMIN_EMAILS"),
        )


@dataclass(frozen=True)
class PointsSettings:
    trial_days: int = 14
    trial_bonus_multiplier: float = 0.5
    premium_bonus_multiplier: float = 0.20
    weekend_multiplier: float = 1.0
    discount_ratio: float = 0.01
    signup_bonus: int = 100
    welcome_bonus: int = 500
    referee_bonus: int = 200
    daily_claim_points: int = 100
    referral_points: int = 5000
    referral_daily_cap: int = 10
    badge_tiers: Dict[str, int] = field(default_factory=lambda: {
        "Bronze": 100_000,
        "Silver": 1_000_000,
        "Gold": 10_000_000,
        "Diamond": 25_000_000,
    })

    @classmethod
    def from_env(cls) -> "PointsSettings":
        return cls(
            trial_days=_int_env("TRIAL_DAYS", 14),
            trial_bonus_multiplier=_float_env("TRIAL_BONUS_MULTIPLIER", 0.5),
            premium_bonus_multiplier=_float_env("PREMIUM_BONUS_MULTIPLIER", 0.20),
            weekend_multiplier=_float_env("WEEKEND_MULTIPLIER", 1.0),
            discount_ratio=_float_env("DISCOUNT_RATIO", 0.01),
            referral_points=_int_env("REFERRAL_POINTS", 5000),
            referral_daily_cap=_int_env("REFERRAL_DAILY_CAP", 10),
        )


@dataclass(frozen=True)
class ShieldSettings:
    webhook_base_url: str | None = None
    webhook_secret: str | None = None
    environment: str = "production"
    webhook_timeout_seconds: float = 5.0

    @classmethod
    def from_env(cls) -> "ShieldSettings":
        base = (os.getenv("SHIELD_WEBHOOK_BASE_URL") or "").strip() or None
        return cls(
            webhook_base_url=base.rstrip("/") if base else None,
            webhook_secret=os.getenv("SHIELD_WEBHOOK_SECRET") or None,
            environment=os.getenv("SHIELD_ENVIRONMENT", "production"),
            webhook_timeout_seconds=_float_env("SHIELD_WEBHOOK_TIMEOUT_SECONDS", 5.0),
        )


@lru_cache(maxsize=None)
def get_auth_settings() -> AuthSettings:
    return AuthSettings.from_env()


@lru_cache(maxsize=None)
def get_points_settings() -> PointsSettings:
    return PointsSettings.from_env()


@lru_cache(maxsize=None)
def get_shield_settings() -> ShieldSettings:
    return ShieldSettings.from_env()


def refresh_settings_cache() -> None:
    """Invalidate cached settings (useful for tests)."""
    get_auth_settings.cache_clear()
    get_points_settings.cache_clear()
    get_shield_settings.cache_clear()
