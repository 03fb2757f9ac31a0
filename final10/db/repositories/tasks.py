"""
Daily task progress repository functions.
"""
from __future__ import annotations

import uuid
from typing import Optional

from sqlalchemy.orm import Session

from final10.db import models


def get_progress(db: Session, *, user_id: uuid.UUID, day: str) -> Optional[models.DailyTaskProgress]:
    return (
        db.query(models.DailyTaskProgress)
        .filter(
            models.DailyTaskProgress.user_id == user_id,
            models.DailyTaskProgress.day == day,
        )
        .first()
    )


def get_or_create_progress(db: Session, *, user_id: uuid.UUID, day: str) -> models.DailyTaskProgress:
    progress = get_progress(db, user_id=user_id, day=day)
    if progress is None:
        progress = models.DailyTaskProgress(user_id=user_id, day=day, points_earned=0, all_tasks_completed=False)
        db.add(progress)
        db.flush()
    return progress
