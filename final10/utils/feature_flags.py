"""Feature flag helpers for runtime configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Dict, Literal, TypedDict, cast


FeatureFlagKey = Literal[
    "feature_live_search_enabled",
    "feature_referrals_enabled",
    "feature_shield_enabled",
]


class FeatureFlagValues(TypedDict):
    feature_live_search_enabled: bool
    feature_referrals_enabled: bool
    feature_shield_enabled: bool


@dataclass(frozen=True)
class FeatureFlagDefinition:
    env_var: str
    default: bool


_FEATURE_FLAG_DEFINITIONS: Dict[FeatureFlagKey, FeatureFlagDefinition] = {
    "feature_live_search_enabled": FeatureFlagDefinition("FEATURE_LIVE_SEARCH_ENABLED", True),
    "feature_referrals_enabled": FeatureFlagDefinition("FEATURE_REFERRALS_ENABLED", True),
    "feature_shield_enabled": FeatureFlagDefinition("FEATURE_SHIELD_ENABLED", True),
}


def _normalize_bool(value: str | None, default: bool = True) -> bool:
    """Return normalized boolean from environment-style value."""
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"", "0", "false", "no", "off"}:
        return False
    if normalized in {"1", "true", "yes", "on"}:
        return True
    return default


@lru_cache(maxsize=None)
def get_feature_flags() -> FeatureFlagValues:
    """Return the cached feature flag state sourced from the environment."""
    values: Dict[FeatureFlagKey, bool] = {}
    for key, definition in _FEATURE_FLAG_DEFINITIONS.items():
        values[key] = _normalize_bool(os.getenv(definition.env_var), default=definition.default)
    return cast(FeatureFlagValues, values)


def is_feature_enabled(flag: FeatureFlagKey) -> bool:
    """Return whether the supplied feature flag evaluates to true."""
    return get_feature_flags()[flag]


def live_search_enabled() -> bool:
    """Toggle for the cross-marketplace live search endpoint."""
    return is_feature_enabled("feature_live_search_enabled")


def referrals_enabled() -> bool:
    """Toggle for referral rewards at signup."""
    return is_feature_enabled("feature_referrals_enabled")


def shield_enabled() -> bool:
    """Toggle for Shield event ingestion."""
    return is_feature_enabled("feature_shield_enabled")


def refresh_feature_flag_cache() -> None:
    """Invalidate cached feature flag values (useful for tests)."""
    get_feature_flags.cache_clear()
