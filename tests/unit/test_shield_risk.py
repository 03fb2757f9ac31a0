import pytest

from final10.shield import risk


def test_score_uses_type_weight_plus_base():
    assert risk.calculate_risk_score("fraud_signal", {}) == pytest.approx(0.9)
    assert risk.calculate_risk_score("mystery", None) == pytest.approx(0.4)


def test_score_adds_context_signals_and_caps_at_one():
    assert risk.calculate_risk_score("behavioral_anomaly", {"value": "2000"}) == pytest.approx(0.8)
    assert risk.calculate_risk_score("behavioral_anomaly", {"value": 20000}) == pytest.approx(1.0)
    assert risk.calculate_risk_score("ip_reputation", {"velocity_spike": 11}) == pytest.approx(0.85)
    assert risk.calculate_risk_score("ip_reputation", {"value": "n/a"}) == pytest.approx(0.7)


def test_normalize_event_type_falls_back():
    assert risk.normalize_event_type("payment_risk") == "payment_risk"
    assert risk.normalize_event_type("made_up") == "behavioral_anomaly"
    assert risk.normalize_event_type(None) == "behavioral_anomaly"


@pytest.mark.parametrize(
    "score,band",
    [(0.0, "observe"), (0.59, "observe"), (0.6, "moderate"), (0.75, "high"), (0.89, "high"), (0.9, "critical")],
)
def test_risk_band_thresholds(score, band):
    assert risk.risk_band(score) == band


@pytest.mark.parametrize(
    "level,tier",
    [("guest", "low"), ("BRONZE", "low"), ("silver", "mid"), ("gold", "mid"), ("vip", "high"), ("platinum", "high"), (None, "low"), ("wizard", "low")],
)
def test_tier_for_level(level, tier):
    assert risk.tier_for_level(level) == tier


def test_low_score_only_observes():
    decision = risk.decide("gold", 0.3)
    assert decision.action == "observe"
    assert decision.requires_enforcement is False
    assert decision.sla_hours is None
    assert decision.reasoning == "Risk score below threshold - monitoring only"


def test_moderate_mid_tier_gets_temporary_suspension():
    decision = risk.decide("gold", 0.7)
    assert decision.action == "temp_suspend"
    assert decision.duration_hours == 12
    assert decision.sla_hours == 12
    assert decision.restrictions["betting"] is True
    assert decision.restrictions["trading"] is False


def test_high_low_tier_is_blocked_for_three_days():
    decision = risk.decide("guest", 0.8)
    assert decision.action == "auto_block"
    assert decision.duration_hours == 72
    assert all(decision.restrictions[name] for name in ("betting", "withdrawals", "trading", "promotions", "messaging"))


def test_critical_high_tier_has_short_sla():
    decision = risk.decide("vip", 0.95, confidence=0.6)
    assert decision.action == "suspend_features"
    assert decision.sla_hours == 2
    assert decision.confidence == 0.6
    assert decision.restrictions["custom"] == ["high_risk_features", "admin_functions"]


def test_high_tier_moderate_risk_is_soft():
    decision = risk.decide("platinum", 0.65)
    assert decision.action == "soft_restrict"
    assert decision.duration_hours is None
    assert decision.sla_hours == 4
