"""
Promo code reporting helpers: code generation, per-code metrics, creator
performance and daily usage series.
"""
from __future__ import annotations

import re
import secrets
import string
import uuid
from collections import OrderedDict
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from final10.db import models
from final10.db.models.base import as_utc, now_utc
from final10.db.repositories import promo_codes as promo_repo
from final10.services.promo_code_service import calculate_commission, validate_usage

_CODE_FORMAT = re.compile(r"^[A-Z0-9_-]{3,50}$")
_ALPHABET = string.ascii_uppercase + string.digits
MAX_CODE_ATTEMPTS = 100

__all__ = [
    "calculate_commission",
    "can_user_use_code",
    "generate_unique_code",
    "get_admin_analytics",
    "get_creator_performance",
    "get_daily_usage_stats",
    "get_promo_code_metrics",
    "is_valid_code_format",
]


def is_valid_code_format(code: Optional[str]) -> bool:
    return bool(code) and bool(_CODE_FORMAT.match(code))


def generate_unique_code(db: Session, prefix: str = "", length: int = 6) -> str:
    """Return an unused code made of ``prefix`` plus random A-Z0-9 characters."""
    prefix = (prefix or "").strip().upper()
    for _ in range(MAX_CODE_ATTEMPTS):
        candidate = prefix + "".join(secrets.choice(_ALPHABET) for _ in range(length))
        if not promo_repo.code_exists(db, candidate):
            return candidate
    raise RuntimeError("Unable to generate unique promo code")


def get_daily_usage_stats(
    db: Session,
    *,
    days: int = 30,
    promo_code_id: Optional[uuid.UUID] = None,
    now: Optional[datetime] = None,
) -> List[Dict[str, Any]]:
    """Per-day usage, revenue, discount and commission for the last ``days`` days.

    Every day in the window is present, oldest first, including empty ones.
    """
    now = now or now_utc()
    start_day = (now - timedelta(days=days - 1)).date()
    buckets: "OrderedDict[str, Dict[str, Any]]" = OrderedDict()
    for offset in range(days):
        day = (start_day + timedelta(days=offset)).isoformat()
        buckets[day] = {"date": day, "usage_count": 0, "revenue": 0.0, "discount": 0.0, "commission": 0.0}

    since = datetime.combine(start_day, datetime.min.time(), tzinfo=now.tzinfo)
    for usage in promo_repo.usages_since(db, since=since, promo_code_id=promo_code_id):
        day = as_utc(usage.created_at).date().isoformat()
        bucket = buckets.get(day)
        if bucket is None:
            continue
        bucket["usage_count"] += 1
        bucket["revenue"] += usage.order_value
        bucket["discount"] += usage.discount_amount
        bucket["commission"] += usage.commission_amount

    for bucket in buckets.values():
        for key in ("revenue", "discount", "commission"):
            bucket[key] = round(bucket[key], 2)
    return list(buckets.values())


def get_promo_code_metrics(db: Session, promo: models.PromoCode, *, days: int = 30) -> Dict[str, Any]:
    usages = [u for u in promo.usages if u.status == "applied"]
    count = len(usages)
    revenue = sum(u.order_value for u in usages)
    discount = sum(u.discount_amount for u in usages)
    commission = sum(u.commission_amount for u in usages)
    return {
        "promo_code_id": promo.id,
        "code": promo.code,
        "total_usage": count,
        "unique_users": len({u.user_id for u in usages}),
        "total_revenue": round(revenue, 2),
        "total_discount": round(discount, 2),
        "total_commission": round(commission, 2),
        "average_order_value": round(revenue / count, 2) if count else 0.0,
        "average_discount": round(discount / count, 2) if count else 0.0,
        "usage_percentage": promo.usage_percentage,
        "days_until_expiration": promo.days_until_expiration,
        "daily_usage": get_daily_usage_stats(db, days=days, promo_code_id=promo.id),
    }


def get_creator_performance(db: Session, creator_id: uuid.UUID) -> Dict[str, Any]:
    codes = promo_repo.list_by_creator(db, creator_id=creator_id)
    by_status = promo_repo.commission_totals_by_status(db, creator_id=creator_id)
    total_usage = sum(c.usage_count or 0 for c in codes)
    total_revenue = sum(c.total_revenue or 0 for c in codes)
    top = sorted(codes, key=lambda c: c.usage_count or 0, reverse=True)[:5]
    return {
        "creator_id": creator_id,
        "total_codes": len(codes),
        "active_codes": sum(1 for c in codes if c.can_be_used),
        "total_usage": total_usage,
        "total_revenue": round(total_revenue, 2),
        "total_commission": round(sum(c.total_commission or 0 for c in codes), 2),
        "average_order_value": round(total_revenue / total_usage, 2) if total_usage else 0.0,
        "commissions": by_status,
        "pending_earnings": by_status.get("pending", {}).get("total", 0.0),
        "paid_earnings": by_status.get("paid", {}).get("total", 0.0),
        "top_codes": [{"code": c.code, "usage_count": c.usage_count, "total_revenue": c.total_revenue} for c in top],
    }


def get_admin_analytics(
    db: Session,
    *,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
) -> Dict[str, Any]:
    end = as_utc(end_date) or now_utc()
    start = as_utc(start_date) or end - timedelta(days=30)
    usages = [u for u in promo_repo.usages_since(db, since=start) if as_utc(u.created_at) <= end]
    codes, total_codes = promo_repo.list_all(db, now=end, limit=10_000)
    public_codes = [c for c in codes if c.is_public]
    top_public = sorted(public_codes, key=lambda c: c.usage_count or 0, reverse=True)[:10]
    return {
        "period": {"start": start, "end": end},
        "overview": {
            "total_codes": total_codes,
            "active_codes": sum(1 for c in codes if c.is_active),
            "total_usage": len(usages),
            "total_revenue": round(sum(u.order_value for u in usages), 2),
            "total_discount": round(sum(u.discount_amount for u in usages), 2),
            "total_commission": round(sum(u.commission_amount for u in usages), 2),
        },
        "top_public_codes": [
            {"id": c.id, "code": c.code, "usage_count": c.usage_count, "total_revenue": c.total_revenue}
            for c in top_public
        ],
        "pending_payouts": promo_repo.pending_payouts(db),
    }


def can_user_use_code(
    db: Session,
    promo: models.PromoCode,
    user_id: uuid.UUID,
    order_value: float = 0,
) -> Dict[str, Any]:
    errors = validate_usage(promo, order_value)
    used = promo_repo.count_user_usages(db, promo_code_id=promo.id, user_id=user_id)
    if used >= promo.user_usage_limit:
        errors.append("User usage limit reached")
    return {"can_use": not errors, "errors": errors, "user_usage_count": used}
