"""
Risk scoring and the level-aware decision matrix for Shield events.

Pure functions only; persistence happens in ``final10.shield.service``.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

EVENT_TYPE_WEIGHTS: Dict[str, float] = {
    "fraud_signal": 0.8,
    "cheat_signal": 0.7,
    "user_report": 0.6,
    "payment_risk": 0.9,
    "behavioral_anomaly": 0.5,
    "device_reuse": 0.8,
    "velocity_spike": 0.6,
    "impossible_travel": 0.7,
    "bot_detection": 0.8,
    "chargeback_signal": 0.9,
    "ip_reputation": 0.6,
    "win_rate_anomaly": 0.7,
}
EVENT_TYPES = tuple(EVENT_TYPE_WEIGHTS)
FALLBACK_EVENT_TYPE = "behavioral_anomaly"
UNKNOWN_TYPE_WEIGHT = 0.3
BASE_SCORE = 0.1

LEVELS = ("guest", "bronze", "silver", "gold", "vip", "platinum")
TIER_BY_LEVEL = {
    "guest": "low",
    "bronze": "low",
    "silver": "mid",
    "gold": "mid",
    "vip": "high",
    "platinum": "high",
}

OBSERVE_BELOW = 0.6
MODERATE_BELOW = 0.75
HIGH_BELOW = 0.9
SLA_HOURS = {"low": 24, "mid": 12, "high": 4}
CRITICAL_HIGH_TIER_SLA_HOURS = 2
DEFAULT_CONFIDENCE = 0.8

_FEATURES = ("betting", "withdrawals", "trading", "promotions", "messaging")


def normalize_event_type(raw: Optional[str]) -> str:
    return raw if raw in EVENT_TYPE_WEIGHTS else FALLBACK_EVENT_TYPE


def tier_for_level(level: Optional[str]) -> str:
    return TIER_BY_LEVEL.get((level or "").lower(), "low")


def _number(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def calculate_risk_score(event_type: str, context: Optional[Mapping[str, Any]] = None) -> float:
    """Heuristic score in [0, 1] for events that arrive without one."""
    context = context or {}
    score = BASE_SCORE + EVENT_TYPE_WEIGHTS.get(event_type, UNKNOWN_TYPE_WEIGHT)

    value = _number(context.get("value"))
    if value > 1000:
        score += 0.2
    if value > 5000:
        score += 0.1
    if value > 10000:
        score += 0.1

    if _number(context.get("device_reuse_count")) > 5:
        score += 0.2
    if _number(context.get("velocity_spike")) > 10:
        score += 0.15
    if context.get("impossible_travel"):
        score += 0.2
    return round(min(score, 1.0), 4)


def risk_band(risk_score: float) -> str:
    if risk_score < OBSERVE_BELOW:
        return "observe"
    if risk_score < MODERATE_BELOW:
        return "moderate"
    if risk_score < HIGH_BELOW:
        return "high"
    return "critical"


@dataclass
class Decision:
    action: str
    tier: str
    risk_score: float
    confidence: float
    reasoning: str
    duration_hours: Optional[int] = None
    sla_hours: Optional[int] = None
    features_affected: List[str] = field(default_factory=list)
    restrictions: Dict[str, Any] = field(default_factory=dict)

    @property
    def requires_enforcement(self) -> bool:
        return self.action != "observe"


def _restrictions(blocked, custom=None) -> Dict[str, Any]:
    out: Dict[str, Any] = {name: name in blocked for name in _FEATURES}
    if custom:
        out["custom"] = list(custom)
    return out


# (band, tier) -> action, duration hours, features, blocked restrictions, custom restrictions
_MATRIX = {
    ("moderate", "low"): ("temp_suspend", 24, ["betting", "withdrawals", "trading"],
                          {"betting", "withdrawals", "trading"}, None),
    ("moderate", "mid"): ("temp_suspend", 12, ["betting", "withdrawals"],
                          {"betting", "withdrawals"}, None),
    ("moderate", "high"): ("soft_restrict", None, ["high_value_betting"],
                           set(), ["high_value_betting"]),
    ("high", "low"): ("auto_block", 72, ["all"], set(_FEATURES), None),
    ("high", "mid"): ("temp_suspend", 48, ["betting", "withdrawals", "trading", "promotions"],
                      {"betting", "withdrawals", "trading", "promotions"}, None),
    ("high", "high"): ("soft_restrict", None, ["high_value_operations"],
                       set(), ["high_value_operations", "bulk_operations"]),
    ("critical", "low"): ("auto_block", None, ["all"], set(_FEATURES), None),
    ("critical", "mid"): ("auto_block", None, ["all"], set(_FEATURES), None),
    ("critical", "high"): ("suspend_features", None, ["high_risk_features"],
                           {"betting", "withdrawals", "trading"}, ["high_risk_features", "admin_functions"]),
}


def decide(level: Optional[str], risk_score: float, confidence: Optional[float] = None) -> Decision:
    tier = tier_for_level(level)
    confidence = DEFAULT_CONFIDENCE if confidence is None else confidence
    band = risk_band(risk_score)
    if band == "observe":
        return Decision(
            action="observe",
            tier=tier,
            risk_score=risk_score,
            confidence=confidence,
            reasoning="Risk score below threshold - monitoring only",
        )

    action, duration, features, blocked, custom = _MATRIX[(band, tier)]
    sla = SLA_HOURS[tier]
    if band == "critical" and tier == "high":
        sla = CRITICAL_HIGH_TIER_SLA_HOURS
    return Decision(
        action=action,
        tier=tier,
        risk_score=risk_score,
        confidence=confidence,
        reasoning=f"{band.capitalize()} risk detected ({risk_score:.3f}) - {tier} tier {action}",
        duration_hours=duration,
        sla_hours=sla,
        features_affected=list(features),
        restrictions=_restrictions(blocked, custom),
    )
