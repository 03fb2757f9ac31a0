"""
Repositories for Shield ingest keys, events and enforcements.
"""
from __future__ import annotations

import uuid
from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from final10.db import models
from final10.db.models.base import now_utc
from final10.utils import token_crypto


# Ingest keys

def create_api_key(db: Session, *, app: str, name: str, created_by_id: Optional[uuid.UUID]) -> Tuple[models.ShieldApiKey, str]:
    key_id, secret, full_key = token_crypto.generate_key()
    prefix, last_four = token_crypto.derive_display_parts(full_key)
    api_key = models.ShieldApiKey(
        key_id=key_id,
        key_hash=token_crypto.hash_secret(secret),
        app=app,
        name=name,
        prefix=prefix,
        last_four=last_four,
        status="active",
        created_by_id=created_by_id,
    )
    db.add(api_key)
    db.commit()
    db.refresh(api_key)
    return api_key, full_key


def list_api_keys(db: Session) -> List[models.ShieldApiKey]:
    return db.query(models.ShieldApiKey).order_by(models.ShieldApiKey.created_at.desc()).all()


def get_api_key(db: Session, key_db_id: uuid.UUID) -> Optional[models.ShieldApiKey]:
    return db.query(models.ShieldApiKey).filter(models.ShieldApiKey.id == key_db_id).first()


def get_by_key_id(db: Session, *, key_id: str) -> Optional[models.ShieldApiKey]:
    return db.query(models.ShieldApiKey).filter(models.ShieldApiKey.key_id == key_id).first()


def revoke_api_key(db: Session, *, key_db_id: uuid.UUID) -> bool:
    api_key = get_api_key(db, key_db_id)
    if not api_key:
        return False
    if api_key.status != "revoked":
        api_key.status = "revoked"
        api_key.revoked_at = now_utc()
        db.commit()
    return True


def mark_used_now(db: Session, *, api_key: models.ShieldApiKey) -> None:
    api_key.last_used_at = now_utc()
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise


# Events

def get_event(db: Session, event_id: uuid.UUID) -> Optional[models.ShieldEvent]:
    return db.query(models.ShieldEvent).filter(models.ShieldEvent.id == event_id).first()


def list_events(
    db: Session,
    *,
    savvy_user_id: Optional[str] = None,
    app: Optional[str] = None,
    event_type: Optional[str] = None,
    min_risk: Optional[float] = None,
    status: Optional[str] = None,
    since: Optional[datetime] = None,
    skip: int = 0,
    limit: int = 50,
) -> Tuple[List[models.ShieldEvent], int]:
    query = db.query(models.ShieldEvent)
    if savvy_user_id:
        query = query.filter(models.ShieldEvent.savvy_user_id == savvy_user_id)
    if app:
        query = query.filter(models.ShieldEvent.app == app)
    if event_type:
        query = query.filter(models.ShieldEvent.event_type == event_type)
    if min_risk is not None:
        query = query.filter(models.ShieldEvent.risk_score >= min_risk)
    if status:
        query = query.filter(models.ShieldEvent.investigation_status == status)
    if since is not None:
        query = query.filter(models.ShieldEvent.created_at >= since)
    total = query.count()
    items = query.order_by(models.ShieldEvent.created_at.desc()).offset(skip).limit(limit).all()
    return items, total


def user_events_since(db: Session, *, savvy_user_id: str, since: datetime) -> List[models.ShieldEvent]:
    return (
        db.query(models.ShieldEvent)
        .filter(
            models.ShieldEvent.savvy_user_id == savvy_user_id,
            models.ShieldEvent.created_at >= since,
        )
        .order_by(models.ShieldEvent.created_at.desc())
        .all()
    )


# Enforcements

def get_enforcement(db: Session, enforcement_id: uuid.UUID) -> Optional[models.ShieldEnforcement]:
    return db.query(models.ShieldEnforcement).filter(models.ShieldEnforcement.id == enforcement_id).first()


def list_enforcements(
    db: Session,
    *,
    status: Optional[str] = None,
    decision: Optional[str] = None,
    app: Optional[str] = None,
    overdue_before: Optional[datetime] = None,
    skip: int = 0,
    limit: int = 50,
) -> Tuple[List[models.ShieldEnforcement], int]:
    query = db.query(models.ShieldEnforcement)
    if status:
        query = query.filter(models.ShieldEnforcement.status == status)
    if decision:
        query = query.filter(models.ShieldEnforcement.decision == decision)
    if app:
        query = query.filter(models.ShieldEnforcement.app == app)
    if overdue_before is not None:
        query = query.filter(
            models.ShieldEnforcement.review_status == "pending",
            models.ShieldEnforcement.sla_deadline < overdue_before,
        )
    total = query.count()
    items = query.order_by(models.ShieldEnforcement.created_at.desc()).offset(skip).limit(limit).all()
    return items, total


def counts_by(db: Session, column, *, since: datetime) -> dict:
    rows = (
        db.query(column, func.count(models.ShieldEnforcement.id))
        .filter(models.ShieldEnforcement.created_at >= since)
        .group_by(column)
        .all()
    )
    return {key: int(count) for key, count in rows}


def count_overdue(db: Session, *, now: datetime) -> int:
    return (
        db.query(models.ShieldEnforcement)
        .filter(
            models.ShieldEnforcement.review_status == "pending",
            models.ShieldEnforcement.sla_deadline < now,
        )
        .count()
    )


def count_active(db: Session) -> int:
    return db.query(models.ShieldEnforcement).filter(models.ShieldEnforcement.status == "active").count()
