"""
Daily task tracking.

Each task has a per-day counter and a target. Every step earns XP and bumps
the matching stat; the task's points are paid once, on the step that reaches
the target. Finishing every task in a day pays a one-off bonus.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Dict, Optional

from sqlalchemy.orm import Session

from final10.db import models
from final10.db.models.base import now_utc
from final10.db.repositories import tasks as task_repo
from final10.services import level_service, points_service
from final10.services.errors import TaskError
from final10.utils.clock import next_utc_midnight, utc_day

logger = logging.getLogger(__name__)

ALL_TASKS_BONUS = 1000


@dataclass(frozen=True)
class TaskDefinition:
    key: str
    column: str
    name: str
    description: str
    points: int
    xp: int
    stat: str
    target: int = 1


TASKS: Dict[str, TaskDefinition] = {
    t.key: t
    for t in (
        TaskDefinition("dailyLogin", "daily_login", "Daily Login", "Open the app today", 50, 25, "total_days_active"),
        TaskDefinition("searchProduct", "search_product", "Search a Product", "Run a live marketplace search", 25, 15, "total_searches"),
        TaskDefinition("watchAds", "watch_ads", "Watch Ads", "Watch 5 sponsored videos", 100, 10, "total_ads_watched", 5),
        TaskDefinition("shareApp", "share_app", "Share the App", "Share Final10 three times", 300, 20, "total_shares", 3),
        TaskDefinition("shareProduct", "share_product", "Share a Product", "Share an auction you like", 75, 15, "total_shares"),
        TaskDefinition("socialPost", "social_post", "Social Post", "Post about Final10 with our hashtags", 300, 30, "total_social_posts"),
        TaskDefinition("useVideoScanner", "use_video_scanner", "Video Scanner", "Scan a product with the video scanner", 20, 10, "total_video_scans"),
        TaskDefinition("searchLocalDeals", "search_local_deals", "Local Deals", "Search for deals near you", 25, 12, "total_local_deals_searches"),
    )
}


def _all_complete(progress: models.DailyTaskProgress) -> bool:
    return all(getattr(progress, t.column) >= t.target for t in TASKS.values())


def _update_streak(db: Session, user: models.User, now: datetime) -> None:
    yesterday = task_repo.get_progress(db, user_id=user.id, day=utc_day(now - timedelta(days=1)))
    level = level_service.get_or_create_level(db, user)
    current = (level.stats or {}).get("streak_days", 0)
    streak = current + 1 if yesterday is not None and yesterday.daily_login > 0 else 1
    level_service.set_stat(db, user, "streak_days", streak)


def record_task(db: Session, user: models.User, key: str, now: Optional[datetime] = None) -> Dict[str, object]:
    """Advance ``key`` by one step for today; commits."""
    task = TASKS.get(key)
    if task is None:
        raise TaskError(f"Unknown task '{key}'")
    now = now or now_utc()
    day = utc_day(now)
    progress = task_repo.get_or_create_progress(db, user_id=user.id, day=day)
    count = getattr(progress, task.column)
    if count >= task.target:
        return {"task": key, "recorded": False, "completed": True, "points_awarded": 0, "progress": count, "target": task.target}

    count += 1
    setattr(progress, task.column, count)
    level_result = level_service.award_xp(db, user, task.xp, source=f"task:{key}")
    level_service.update_stat(db, user, task.stat)
    if key == "dailyLogin":
        _update_streak(db, user, now)

    points_awarded = 0
    completed = count >= task.target
    if completed:
        points_service.award_points(
            db,
            user,
            task.points,
            f"task:{key}",
            ref_id=day,
            idempotency_key=f"task_{user.id}_{day}_{key}",
        )
        progress.points_earned += task.points
        points_awarded += task.points
        level_service.update_stat(db, user, "total_tasks_completed")

    if completed and not progress.all_tasks_completed and _all_complete(progress):
        points_service.award_points(
            db,
            user,
            ALL_TASKS_BONUS,
            "task:all_completed",
            ref_id=day,
            idempotency_key=f"task_{user.id}_{day}_all",
        )
        progress.all_tasks_completed = True
        progress.points_earned += ALL_TASKS_BONUS
        points_awarded += ALL_TASKS_BONUS
        logger.info("daily_tasks_complete: user=%s day=%s", user.id, day)

    db.commit()
    return {
        "task": key,
        "recorded": True,
        "completed": completed,
        "points_awarded": points_awarded,
        "progress": count,
        "target": task.target,
        "level": level_result,
    }


def daily_view(db: Session, user: models.User, now: Optional[datetime] = None) -> Dict[str, object]:
    now = now or now_utc()
    progress = task_repo.get_or_create_progress(db, user_id=user.id, day=utc_day(now))
    db.commit()
    tasks = {}
    for key, task in TASKS.items():
        count = getattr(progress, task.column)
        tasks[key] = {
            "name": task.name,
            "description": task.description,
            "points": task.points,
            "completed": count >= task.target,
            "progress": count,
            "target": task.target,
        }
    return {
        "tasks": tasks,
        "total_points_earned": progress.points_earned,
        "all_tasks_completed": progress.all_tasks_completed,
        "reset_time": next_utc_midnight(now),
    }
