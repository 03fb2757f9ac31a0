"""
User repository functions.

Lookups, creation and the paginated admin listing.
"""
from __future__ import annotations

import uuid
from typing import List, Optional, Tuple

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from final10.db import models


def get_user(db: Session, user_id: uuid.UUID) -> Optional[models.User]:
    return db.query(models.User).filter(models.User.id == user_id).first()


def get_user_by_email(db: Session, email: str) -> Optional[models.User]:
    return db.query(models.User).filter(func.lower(models.User.email) == email.strip().lower()).first()


def get_user_by_username(db: Session, username: str) -> Optional[models.User]:
    return db.query(models.User).filter(func.lower(models.User.username) == username.strip().lower()).first()


def email_or_username_taken(db: Session, *, email: str, username: str) -> bool:
    return (
        db.query(models.User.id)
        .filter(or_(
            func.lower(models.User.email) == email.strip().lower(),
            func.lower(models.User.username) == username.strip().lower(),
        ))
        .first()
        is not None
    )


def get_user_by_referral_code(db: Session, code: str) -> Optional[models.User]:
    """Resolve a referral code, accepting either the stored code or a raw user id."""
    if not code:
        return None
    user = db.query(models.User).filter(models.User.referral_code == code).first()
    if user:
        return user
    try:
        return get_user(db, uuid.UUID(code))
    except ValueError:
        return None


def create_user(
    db: Session,
    *,
    first_name: str,
    last_name: str,
    username: str,
    email: str,
    password_hash: str,
    role: str = "user",
) -> models.User:
    """Add a new user and flush; the caller commits."""
    user_id = uuid.uuid4()
    user = models.User(
        id=user_id,
        first_name=first_name.strip(),
        last_name=last_name.strip(),
        username=username.strip(),
        email=email.strip().lower(),
        password_hash=password_hash,
        role=role,
        referral_code=str(user_id),
        points_balance=0,
        lifetime_points_earned=0,
        badges=[],
    )
    db.add(user)
    db.flush()
    return user


def list_users(
    db: Session,
    *,
    role: Optional[str] = None,
    q: Optional[str] = None,
    skip: int = 0,
    limit: int = 50,
) -> Tuple[List[models.User], int]:
    query = db.query(models.User)
    if role:
        query = query.filter(models.User.role == role)
    if q:
        pattern = f"%{q.strip().lower()}%"
        query = query.filter(or_(
            func.lower(models.User.username).like(pattern),
            func.lower(models.User.email).like(pattern),
        ))
    total = query.count()
    items = query.order_by(models.User.created_at.desc()).offset(skip).limit(limit).all()
    return items, total
