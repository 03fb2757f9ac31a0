"""
Points ledger repository functions.

Rows are added and flushed here; the calling service owns the commit so a
ledger row and the balance change on the user land together.
"""
from __future__ import annotations

import uuid
from typing import List, Optional

from sqlalchemy.orm import Session

from final10.db import models


def get_by_idempotency_key(db: Session, key: str) -> Optional[models.PointsLedger]:
    if not key:
        return None
    return db.query(models.PointsLedger).filter(models.PointsLedger.idempotency_key == key).first()


def add_entry(
    db: Session,
    *,
    user_id: uuid.UUID,
    type: str,
    amount: int,
    source: str,
    ref_id: Optional[str] = None,
    idempotency_key: Optional[str] = None,
) -> models.PointsLedger:
    entry = models.PointsLedger(
        user_id=user_id,
        type=type,
        amount=amount,
        source=source,
        ref_id=ref_id,
        idempotency_key=idempotency_key,
    )
    db.add(entry)
    db.flush()
    return entry


def recent_entries(db: Session, *, user_id: uuid.UUID, limit: int = 25) -> List[models.PointsLedger]:
    return (
        db.query(models.PointsLedger)
        .filter(models.PointsLedger.user_id == user_id)
        .order_by(models.PointsLedger.created_at.desc())
        .limit(limit)
        .all()
    )


def top_lifetime(db: Session, *, limit: int = 100) -> List[models.User]:
    return (
        db.query(models.User)
        .order_by(models.User.lifetime_points_earned.desc(), models.User.created_at.asc())
        .limit(limit)
        .all()
    )
