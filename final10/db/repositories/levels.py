"""
User level repository functions.
"""
from __future__ import annotations

import uuid
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from final10.db import models


def get_level(db: Session, *, user_id: uuid.UUID) -> Optional[models.UserLevel]:
    return db.query(models.UserLevel).filter(models.UserLevel.user_id == user_id).first()


def create_level(db: Session, *, user_id: uuid.UUID, xp_to_next_level: int, stats: dict) -> models.UserLevel:
    level = models.UserLevel(
        user_id=user_id,
        current_level=1,
        total_xp=0,
        xp_progress=0,
        xp_to_next_level=xp_to_next_level,
        stats=stats,
    )
    db.add(level)
    db.flush()
    return level


def leaderboard(db: Session, *, order: str = "level", limit: int = 50) -> List[Tuple[models.UserLevel, str]]:
    query = db.query(models.UserLevel, models.User.username).join(models.User, models.User.id == models.UserLevel.user_id)
    if order == "xp":
        query = query.order_by(models.UserLevel.total_xp.desc())
    else:
        query = query.order_by(models.UserLevel.current_level.desc(), models.UserLevel.total_xp.desc())
    return query.limit(limit).all()
