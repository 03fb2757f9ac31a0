"""
Points ledger service.

Every balance change goes through a ledger row. Earning raises both the
spendable balance and the lifetime total; redeeming lowers the balance only.
Idempotency keys make retries safe: a repeated key returns the original row
without touching balances.
"""
from __future__ import annotations

import logging
import math
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from final10.db import models
from final10.db.models.base import as_utc, now_utc
from final10.db.repositories import points as points_repo
from final10.services.errors import PointsError
from final10.utils.clock import is_weekend, utc_day
from final10.utils.config import get_points_settings

logger = logging.getLogger(__name__)


def badges_for(lifetime: int) -> List[str]:
    """Return every badge tier reached by ``lifetime`` points, lowest first."""
    tiers = get_points_settings().badge_tiers
    return [name for name, threshold in sorted(tiers.items(), key=lambda kv: kv[1]) if lifetime >= threshold]


def trial_is_active(user: models.User, now: Optional[datetime] = None) -> bool:
    now = now or now_utc()
    return bool(user.trial_active and user.trial_ends_at and as_utc(user.trial_ends_at) > now)


def subscription_is_active(user: models.User, now: Optional[datetime] = None) -> bool:
    now = now or now_utc()
    if user.membership_tier not in ("premium", "pro"):
        return False
    return bool(user.subscription_expires and as_utc(user.subscription_expires) > now)


def earn_multiplier(user: models.User, now: Optional[datetime] = None) -> float:
    settings = get_points_settings()
    now = now or now_utc()
    multiplier = 1.0
    if trial_is_active(user, now):
        multiplier += settings.trial_bonus_multiplier
    if subscription_is_active(user, now):
        multiplier += settings.premium_bonus_multiplier
    if is_weekend(now):
        multiplier += settings.weekend_multiplier
    return multiplier


def _existing_for_key(db: Session, user: models.User, key: Optional[str]) -> Optional[models.PointsLedger]:
    if not key:
        return None
    entry = points_repo.get_by_idempotency_key(db, key)
    if entry is not None and entry.user_id != user.id:
        raise PointsError("Idempotency key already used", status_code=409)
    return entry


def award_points(
    db: Session,
    user: models.User,
    amount: int,
    source: str,
    *,
    ref_id: Optional[str] = None,
    idempotency_key: Optional[str] = None,
) -> Tuple[models.PointsLedger, bool]:
    """Credit ``amount`` points; returns (ledger row, created). Flushes only."""
    if amount <= 0:
        raise PointsError("Amount must be a positive integer")
    existing = _existing_for_key(db, user, idempotency_key)
    if existing is not None:
        return existing, False
    entry = points_repo.add_entry(
        db,
        user_id=user.id,
        type="earn",
        amount=int(amount),
        source=source,
        ref_id=ref_id,
        idempotency_key=idempotency_key,
    )
    user.points_balance = (user.points_balance or 0) + int(amount)
    user.lifetime_points_earned = (user.lifetime_points_earned or 0) + int(amount)
    user.badges = badges_for(user.lifetime_points_earned)
    db.flush()
    logger.debug("points_earn: user=%s amount=%s source=%s", user.id, amount, source)
    return entry, True


def spend_points(
    db: Session,
    user: models.User,
    amount: int,
    source: str,
    *,
    ref_id: Optional[str] = None,
    idempotency_key: Optional[str] = None,
) -> Tuple[models.PointsLedger, bool]:
    """Debit ``amount`` points; lifetime total is unchanged. Flushes only."""
    if amount <= 0:
        raise PointsError("Amount must be a positive integer")
    existing = _existing_for_key(db, user, idempotency_key)
    if existing is not None:
        return existing, False
    if (user.points_balance or 0) < amount:
        raise PointsError("Insufficient points")
    entry = points_repo.add_entry(
        db,
        user_id=user.id,
        type="redeem",
        amount=int(amount),
        source=source,
        ref_id=ref_id,
        idempotency_key=idempotency_key,
    )
    user.points_balance = user.points_balance - int(amount)
    db.flush()
    logger.debug("points_redeem: user=%s amount=%s source=%s", user.id, amount, source)
    return entry, True


def redeem_for_discount(
    db: Session,
    user: models.User,
    *,
    amount: int,
    idempotency_key: str,
    auction_id: Optional[str] = None,
) -> Dict[str, object]:
    entry, created = spend_points(
        db,
        user,
        amount,
        "auction_redeem",
        ref_id=auction_id,
        idempotency_key=idempotency_key,
    )
    db.commit()
    ratio = get_points_settings().discount_ratio
    return {
        "ok": True,
        "idempotent": not created,
        "discount_usd": round(entry.amount * ratio, 2),
        "new_balance": user.points_balance,
    }


def daily_claim(db: Session, user: models.User, now: Optional[datetime] = None) -> Dict[str, object]:
    """Award the once-per-UTC-day claim, scaled by the earn multiplier."""
    now = now or now_utc()
    day = utc_day(now)
    if user.last_daily_claim == day:
        raise PointsError("Daily claim already used today")
    base = get_points_settings().daily_claim_points
    multiplier = earn_multiplier(user, now)
    amount = int(math.floor(base * multiplier))
    award_points(db, user, amount, "daily_claim", idempotency_key=f"daily_claim_{user.id}_{day}")
    user.last_daily_claim = day
    db.commit()
    return {"ok": True, "awarded": amount, "multiplier": multiplier, "new_balance": user.points_balance}


def points_summary(db: Session, user: models.User) -> Dict[str, object]:
    return {
        "points_balance": user.points_balance,
        "lifetime_points_earned": user.lifetime_points_earned,
        "badges": list(user.badges or []),
        "recent": points_repo.recent_entries(db, user_id=user.id, limit=25),
        "trial": {"active": trial_is_active(user), "ends_at": user.trial_ends_at},
    }


def public_config() -> Dict[str, object]:
    settings = get_points_settings()
    return {
        "trial_days": settings.trial_days,
        "trial_bonus_multiplier": settings.trial_bonus_multiplier,
        "premium_bonus_multiplier": settings.premium_bonus_multiplier,
        "weekend_multiplier": settings.weekend_multiplier,
        "badge_tiers": dict(settings.badge_tiers),
        "discount_ratio": settings.discount_ratio,
        "version": "v1",
    }
