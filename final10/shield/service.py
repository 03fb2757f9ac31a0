"""
Shield event ingestion, enforcement lifecycle and admin reporting.

Ingestion stores the event, scores it when the sender gave no score, runs
the decision matrix and, for anything stronger than ``observe``, opens an
enforcement that waits for human review and notifies the originating app.
"""
from __future__ import annotations

import logging
from collections import Counter
from datetime import datetime, timedelta
from typing import Any, Dict, Optional, Tuple

from sqlalchemy.orm import Session

from final10.db import models, schemas
from final10.db.models.base import as_utc, now_utc
from final10.db.repositories import shield as shield_repo
from final10.services.errors import ShieldEventError
from final10.shield import risk
from final10.shield.webhook import send_enforcement_webhook
from final10.utils import token_crypto

logger = logging.getLogger(__name__)

HIGH_RISK = 0.8
ESCALATE_AT = 0.9


def _case_id(savvy_user_id: str, now: datetime) -> str:
    return f"case_{int(now.timestamp() * 1000)}_{savvy_user_id}"


def ingest_event(
    db: Session,
    *,
    app: str,
    payload: schemas.IngestRequest,
    ip: Optional[str] = None,
    ua: Optional[str] = None,
    trace_id: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    if not payload.type or not payload.savvy_user_id or not payload.level:
        raise ShieldEventError("Missing required fields: type, savvy_user_id, level")
    now = now or now_utc()
    event_type = risk.normalize_event_type(payload.type)
    context = dict(payload.context or {})
    context.update({"ip_address": ip, "user_agent": ua, "timestamp": now.isoformat()})

    event = models.ShieldEvent(
        savvy_user_id=payload.savvy_user_id,
        app=app,
        level=payload.level.lower(),
        event_type=event_type,
        context=context,
        ts=as_utc(payload.ts) or now,
        risk_score=payload.risk_score if payload.risk_score is not None else 0.0,
        risk_factors=list(payload.risk_factors or []),
        confidence_level=payload.confidence if payload.confidence is not None else risk.DEFAULT_CONFIDENCE,
        investigation_status="pending",
        metadata_json={
            "source": "shield_sdk",
            "trace_id": trace_id,
            "original_type": payload.type,
            **(payload.metadata or {}),
        },
    )
    if payload.risk_score is None:
        event.risk_score = risk.calculate_risk_score(event_type, context)
    db.add(event)
    db.flush()
    logger.info("shield_ingest: type=%s user=%s app=%s risk=%s", event_type, event.savvy_user_id, app, event.risk_score)

    decision, enforcement = process_event(db, event, now=now)
    db.commit()
    return {
        "success": True,
        "event_id": event.id,
        "risk_score": decision.risk_score,
        "action": decision.action,
        "enforcement_id": enforcement.id if enforcement else None,
    }


def process_event(
    db: Session,
    event: models.ShieldEvent,
    *,
    now: Optional[datetime] = None,
) -> Tuple[risk.Decision, Optional[models.ShieldEnforcement]]:
    decision = risk.decide(event.level, event.risk_score, event.confidence_level)
    if not decision.requires_enforcement:
        return decision, None
    enforcement = create_enforcement(db, decision, event, now=now)
    send_enforcement_webhook(enforcement)
    return decision, enforcement


def create_enforcement(
    db: Session,
    decision: risk.Decision,
    event: models.ShieldEvent,
    *,
    now: Optional[datetime] = None,
) -> models.ShieldEnforcement:
    now = now or now_utc()
    if not event.case_id:
        event.case_id = _case_id(event.savvy_user_id, now)
    enforcement = models.ShieldEnforcement(
        savvy_user_id=event.savvy_user_id,
        app=event.app,
        level=event.level,
        risk_score=decision.risk_score,
        confidence=decision.confidence,
        decision=decision.action,
        decision_reason=decision.reasoning,
        duration_hours=decision.duration_hours,
        features_affected=decision.features_affected,
        restrictions=decision.restrictions,
        status="active",
        review_required=True,
        review_status="pending",
        sla_hours=decision.sla_hours,
        sla_deadline=now + timedelta(hours=decision.sla_hours) if decision.sla_hours else None,
        event_id=event.id,
        case_id=event.case_id,
        false_positive_probability=round(1 - decision.confidence, 4),
        expires_at=now + timedelta(hours=decision.duration_hours) if decision.duration_hours else None,
    )
    db.add(enforcement)
    db.flush()
    logger.info(
        "shield_enforcement_created: decision=%s user=%s level=%s enforcement=%s",
        enforcement.decision, enforcement.savvy_user_id, enforcement.level, enforcement.id,
    )
    return enforcement


# Review

def _require_pending(enforcement: models.ShieldEnforcement) -> None:
    if enforcement.review_status != "pending":
        raise ShieldEventError(f"Enforcement already reviewed ({enforcement.review_status})")


def _mark_reviewed(enforcement: models.ShieldEnforcement, reviewer: models.User, notes: Optional[str]) -> None:
    enforcement.reviewed_by_id = reviewer.id
    enforcement.reviewed_at = now_utc()
    if notes:
        enforcement.review_notes = notes


def _resolve_event(db: Session, enforcement: models.ShieldEnforcement) -> None:
    if enforcement.event_id is None:
        return
    event = shield_repo.get_event(db, enforcement.event_id)
    if event is not None:
        event.investigation_status = "resolved"


def approve_enforcement(db: Session, enforcement: models.ShieldEnforcement, *, reviewer: models.User, notes: Optional[str] = None) -> models.ShieldEnforcement:
    _require_pending(enforcement)
    enforcement.status = "approved"
    enforcement.review_status = "approved"
    _mark_reviewed(enforcement, reviewer, notes)
    db.commit()
    db.refresh(enforcement)
    return enforcement


def reject_enforcement(db: Session, enforcement: models.ShieldEnforcement, *, reviewer: models.User, notes: Optional[str] = None) -> models.ShieldEnforcement:
    _require_pending(enforcement)
    enforcement.status = "rejected"
    enforcement.review_status = "rejected"
    _mark_reviewed(enforcement, reviewer, notes)
    _resolve_event(db, enforcement)
    db.commit()
    db.refresh(enforcement)
    return enforcement


def override_enforcement(
    db: Session,
    enforcement: models.ShieldEnforcement,
    *,
    reviewer: models.User,
    decision: str,
    reason: str,
) -> models.ShieldEnforcement:
    enforcement.status = "overridden"
    enforcement.review_status = "overridden"
    enforcement.override_decision = decision
    enforcement.override_reason = reason
    _mark_reviewed(enforcement, reviewer, reason)
    _resolve_event(db, enforcement)
    db.commit()
    db.refresh(enforcement)
    return enforcement


# Reporting

def user_profile(db: Session, savvy_user_id: str, *, days: int = 30, now: Optional[datetime] = None) -> Dict[str, Any]:
    now = now or now_utc()
    events = shield_repo.user_events_since(db, savvy_user_id=savvy_user_id, since=now - timedelta(days=days))
    scores = [e.risk_score for e in events]
    return {
        "savvy_user_id": savvy_user_id,
        "days": days,
        "total_events": len(events),
        "avg_risk_score": round(sum(scores) / len(scores), 4) if scores else 0.0,
        "max_risk_score": max(scores) if scores else 0.0,
        "event_types": dict(Counter(e.event_type for e in events)),
        "apps": sorted({e.app for e in events}),
        "recent_high_risk": [e for e in events if e.risk_score >= HIGH_RISK][:10],
    }


def investigate_user(db: Session, savvy_user_id: str, *, days: int = 30) -> Dict[str, Any]:
    """Move the user's pending events to investigating; escalate on very high risk."""
    profile = user_profile(db, savvy_user_id, days=days)
    escalate = profile["max_risk_score"] >= ESCALATE_AT
    status = "escalated" if escalate else "investigating"
    updated = 0
    for event in shield_repo.user_events_since(db, savvy_user_id=savvy_user_id, since=now_utc() - timedelta(days=days)):
        if event.investigation_status == "pending":
            event.investigation_status = status
            updated += 1
    db.commit()
    logger.info("shield_investigate: user=%s updated=%s escalated=%s", savvy_user_id, updated, escalate)
    return {"savvy_user_id": savvy_user_id, "events_updated": updated, "escalated": escalate, "profile": profile}


def enforcement_stats(db: Session, *, days: int = 30, now: Optional[datetime] = None) -> Dict[str, Any]:
    now = now or now_utc()
    since = now - timedelta(days=days)
    return {
        "days": days,
        "by_decision": shield_repo.counts_by(db, models.ShieldEnforcement.decision, since=since),
        "by_status": shield_repo.counts_by(db, models.ShieldEnforcement.status, since=since),
        "overdue_reviews": shield_repo.count_overdue(db, now=now),
        "active_enforcements": shield_repo.count_active(db),
    }


def authenticate_key(db: Session, raw_key: Optional[str]) -> Optional[models.ShieldApiKey]:
    """Return the active key matching ``raw_key`` or None."""
    parsed = token_crypto.parse_key(raw_key or "")
    if parsed is None:
        return None
    api_key = shield_repo.get_by_key_id(db, key_id=parsed.key_id)
    if api_key is None or api_key.status != "active":
        return None
    if not token_crypto.verify_secret(parsed.secret, api_key.key_hash):
        return None
    shield_repo.mark_used_now(db, api_key=api_key)
    return api_key
