"""
Promo code, usage and commission repository functions.
"""
from __future__ import annotations

import uuid
from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from final10.db import models


def get_promo_code(db: Session, promo_code_id: uuid.UUID) -> Optional[models.PromoCode]:
    return db.query(models.PromoCode).filter(models.PromoCode.id == promo_code_id).first()


def get_by_code(db: Session, code: str, *, active_only: bool = False) -> Optional[models.PromoCode]:
    query = db.query(models.PromoCode).filter(models.PromoCode.code == code.strip().upper())
    if active_only:
        query = query.filter(models.PromoCode.is_active.is_(True))
    return query.first()


def code_exists(db: Session, code: str) -> bool:
    return db.query(models.PromoCode.id).filter(models.PromoCode.code == code.strip().upper()).first() is not None


def get_owned(db: Session, *, promo_code_id: uuid.UUID, creator_id: uuid.UUID) -> Optional[models.PromoCode]:
    return (
        db.query(models.PromoCode)
        .filter(models.PromoCode.id == promo_code_id, models.PromoCode.creator_id == creator_id)
        .first()
    )


def create_promo_code(db: Session, **fields) -> models.PromoCode:
    promo = models.PromoCode(**fields)
    db.add(promo)
    db.commit()
    db.refresh(promo)
    return promo


def delete_promo_code(db: Session, promo: models.PromoCode) -> None:
    try:
        db.delete(promo)
        db.commit()
    except Exception as exc:
        db.rollback()
        raise RuntimeError(f"Failed to delete promo code {promo.id}") from exc


def list_public(db: Session, *, now: datetime) -> List[models.PromoCode]:
    return (
        db.query(models.PromoCode)
        .filter(
            models.PromoCode.is_active.is_(True),
            models.PromoCode.is_public.is_(True),
            models.PromoCode.valid_from <= now,
            or_(models.PromoCode.valid_until.is_(None), models.PromoCode.valid_until >= now),
        )
        .order_by(models.PromoCode.usage_count.desc())
        .all()
    )


def list_by_creator(db: Session, *, creator_id: uuid.UUID) -> List[models.PromoCode]:
    return (
        db.query(models.PromoCode)
        .filter(models.PromoCode.creator_id == creator_id)
        .order_by(models.PromoCode.created_at.desc())
        .all()
    )


def list_all(
    db: Session,
    *,
    status: Optional[str] = None,
    creator_id: Optional[uuid.UUID] = None,
    now: datetime,
    skip: int = 0,
    limit: int = 20,
) -> Tuple[List[models.PromoCode], int]:
    query = db.query(models.PromoCode)
    if status == "active":
        query = query.filter(models.PromoCode.is_active.is_(True))
    elif status == "inactive":
        query = query.filter(models.PromoCode.is_active.is_(False))
    elif status == "expired":
        query = query.filter(models.PromoCode.valid_until.isnot(None), models.PromoCode.valid_until < now)
    if creator_id:
        query = query.filter(models.PromoCode.creator_id == creator_id)
    total = query.count()
    items = query.order_by(models.PromoCode.created_at.desc()).offset(skip).limit(limit).all()
    return items, total


def count_user_usages(db: Session, *, promo_code_id: uuid.UUID, user_id: uuid.UUID) -> int:
    return (
        db.query(models.PromoCodeUsage)
        .filter(
            models.PromoCodeUsage.promo_code_id == promo_code_id,
            models.PromoCodeUsage.user_id == user_id,
            models.PromoCodeUsage.status == "applied",
        )
        .count()
    )


def get_usage(db: Session, usage_id: uuid.UUID) -> Optional[models.PromoCodeUsage]:
    return db.query(models.PromoCodeUsage).filter(models.PromoCodeUsage.id == usage_id).first()


def list_usages(db: Session, *, promo_code_id: uuid.UUID, limit: int = 100) -> List[models.PromoCodeUsage]:
    return (
        db.query(models.PromoCodeUsage)
        .filter(models.PromoCodeUsage.promo_code_id == promo_code_id)
        .order_by(models.PromoCodeUsage.created_at.desc())
        .limit(limit)
        .all()
    )


def usages_since(db: Session, *, since: datetime, promo_code_id: Optional[uuid.UUID] = None) -> List[models.PromoCodeUsage]:
    query = db.query(models.PromoCodeUsage).filter(
        models.PromoCodeUsage.created_at >= since,
        models.PromoCodeUsage.status == "applied",
    )
    if promo_code_id:
        query = query.filter(models.PromoCodeUsage.promo_code_id == promo_code_id)
    return query.order_by(models.PromoCodeUsage.created_at.asc()).all()


def get_commission(db: Session, commission_id: uuid.UUID) -> Optional[models.Commission]:
    return db.query(models.Commission).filter(models.Commission.id == commission_id).first()


def get_commission_for_usage(db: Session, *, usage_id: uuid.UUID) -> Optional[models.Commission]:
    return db.query(models.Commission).filter(models.Commission.promo_code_usage_id == usage_id).first()


def list_commissions(
    db: Session,
    *,
    creator_id: Optional[uuid.UUID] = None,
    status: Optional[str] = None,
    skip: int = 0,
    limit: int = 50,
) -> Tuple[List[models.Commission], int]:
    query = db.query(models.Commission)
    if creator_id:
        query = query.filter(models.Commission.creator_id == creator_id)
    if status:
        query = query.filter(models.Commission.status == status)
    total = query.count()
    items = query.order_by(models.Commission.created_at.desc()).offset(skip).limit(limit).all()
    return items, total


def commission_totals_by_status(db: Session, *, creator_id: uuid.UUID) -> dict:
    rows = (
        db.query(
            models.Commission.status,
            func.count(models.Commission.id),
            func.coalesce(func.sum(models.Commission.commission_amount), 0.0),
        )
        .filter(models.Commission.creator_id == creator_id)
        .group_by(models.Commission.status)
        .all()
    )
    return {status: {"count": int(count), "total": round(float(total), 2)} for status, count, total in rows}


def pending_payouts(db: Session) -> List[dict]:
    rows = (
        db.query(
            models.Commission.creator_id,
            func.count(models.Commission.id),
            func.coalesce(func.sum(models.Commission.commission_amount), 0.0),
        )
        .filter(models.Commission.status == "approved")
        .group_by(models.Commission.creator_id)
        .all()
    )
    return [
        {"creator_id": creator_id, "count": int(count), "total": round(float(total), 2)}
        for creator_id, count, total in rows
    ]
