"""
Referral log repository functions.

Counts used by the referral guard and the per-referrer daily cap.
"""
from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from final10.db import models


def create_referral_log(
    db: Session,
    *,
    referrer_id: uuid.UUID,
    referee_id: Optional[uuid.UUID],
    ip: Optional[str],
    ua: Optional[str],
    status: str,
    reason: Optional[str] = None,
) -> models.ReferralLog:
    log = models.ReferralLog(
        referrer_id=referrer_id,
        referee_id=referee_id,
        ip=ip,
        ua=ua,
        status=status,
        reason=reason,
    )
    db.add(log)
    db.flush()
    return log


def count_accepted_for_referrer(db: Session, *, referrer_id: uuid.UUID, since: Optional[datetime] = None) -> int:
    query = db.query(models.ReferralLog).filter(
        models.ReferralLog.referrer_id == referrer_id,
        models.ReferralLog.status == "accepted",
    )
    if since is not None:
        query = query.filter(models.ReferralLog.created_at >= since)
    return query.count()


def count_accepted_from_ip(db: Session, *, ip: str, since: datetime) -> int:
    return (
        db.query(models.ReferralLog)
        .filter(
            models.ReferralLog.ip == ip,
            models.ReferralLog.status == "accepted",
            models.ReferralLog.created_at >= since,
        )
        .count()
    )


def count_accepted_from_device(db: Session, *, ip: str, ua: str, since: datetime) -> int:
    return (
        db.query(models.ReferralLog)
        .filter(
            models.ReferralLog.ip == ip,
            models.ReferralLog.ua == ua,
            models.ReferralLog.status == "accepted",
            models.ReferralLog.created_at >= since,
        )
        .count()
    )
