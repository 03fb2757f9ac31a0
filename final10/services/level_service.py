"""
Levels and XP.

XP curve: levels 2-5 need ``50*n^2 - 50*n`` total XP, later levels add a
flat 500 per level starting from 1000 at level 6. Each level gained pays
500 points; milestone levels pay a one-off bonus.
"""
from __future__ import annotations

import logging
import math
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from final10.db import models
from final10.db.repositories import levels as level_repo
from final10.services import points_service

logger = logging.getLogger(__name__)

LEVEL_UP_POINTS = 500

STAT_KEYS = (
    "total_tasks_completed",
    "total_days_active",
    "total_searches",
    "total_ads_watched",
    "total_shares",
    "total_social_posts",
    "total_video_scans",
    "total_local_deals_searches",
    "streak_days",
    "longest_streak",
)

MILESTONES = (
    (5, "Rookie Trader", "Reached level 5", 250),
    (10, "Smart Shopper", "Reached level 10", 500),
    (15, "Auction Expert", "Reached level 15", 750),
    (20, "Deal Hunter", "Reached level 20", 1000),
    (25, "Bargain Master", "Reached level 25", 1500),
    (30, "Final10 Legend", "Reached level 30", 2000),
    (50, "Auction God", "Reached level 50", 5000),
)


def xp_for_level(level: int) -> int:
    """Total XP required to reach ``level``."""
    if level <= 1:
        return 0
    if level <= 5:
        return int(math.floor(50 * level * level - 50 * level))
    return 1000 + (level - 6) * 500


def _empty_stats() -> Dict[str, int]:
    return {key: 0 for key in STAT_KEYS}


def get_or_create_level(db: Session, user: models.User) -> models.UserLevel:
    level = level_repo.get_level(db, user_id=user.id)
    if level is None:
        level = level_repo.create_level(db, user_id=user.id, xp_to_next_level=xp_for_level(2), stats=_empty_stats())
    return level


def _sync_progress(level: models.UserLevel) -> None:
    current_floor = xp_for_level(level.current_level)
    level.xp_progress = level.total_xp - current_floor
    level.xp_to_next_level = xp_for_level(level.current_level + 1) - current_floor


def xp_info(level: models.UserLevel) -> Dict[str, int]:
    span = level.xp_to_next_level or 1
    return {
        "current_level": level.current_level,
        "total_xp": level.total_xp,
        "xp_progress": level.xp_progress,
        "xp_to_next_level": level.xp_to_next_level,
        "progress_percentage": min(100, int(level.xp_progress * 100 / span)),
    }


def _check_milestones(db: Session, user: models.User, level: models.UserLevel) -> int:
    achieved = {m.level for m in level.milestones}
    awarded = 0
    for milestone_level, name, description, reward in MILESTONES:
        if level.current_level < milestone_level or milestone_level in achieved:
            continue
        level.milestones.append(models.LevelMilestone(
            level=milestone_level, name=name, description=description, reward=reward,
        ))
        points_service.award_points(
            db,
            user,
            reward,
            "milestone",
            ref_id=name,
            idempotency_key=f"milestone_{user.id}_{milestone_level}",
        )
        awarded += reward
        logger.info("level_milestone: user=%s milestone=%s", user.id, name)
    return awarded


def award_xp(db: Session, user: models.User, amount: int, source: str = "task") -> Dict[str, object]:
    """Add XP, apply level-ups and milestones. Flushes; the caller commits."""
    level = get_or_create_level(db, user)
    start_level = level.current_level
    level.total_xp += max(0, int(amount))
    points_awarded = 0
    while level.total_xp >= xp_for_level(level.current_level + 1):
        level.current_level += 1
        level.rewards.append(models.LevelReward(level=level.current_level, points_awarded=LEVEL_UP_POINTS, type="level_up"))
        points_service.award_points(
            db,
            user,
            LEVEL_UP_POINTS,
            "level_up",
            ref_id=str(level.current_level),
            idempotency_key=f"level_up_{user.id}_{level.current_level}",
        )
        points_awarded += LEVEL_UP_POINTS
    _sync_progress(level)
    points_awarded += _check_milestones(db, user, level)
    db.flush()
    gained = level.current_level - start_level
    if gained:
        logger.info("level_up: user=%s level=%s source=%s", user.id, level.current_level, source)
    return {
        "leveled_up": gained > 0,
        "new_level": level.current_level,
        "levels_gained": gained,
        "points_awarded": points_awarded,
        "xp_info": xp_info(level),
    }


def update_stat(db: Session, user: models.User, stat: str, increment: int = 1) -> None:
    """Bump a known stat counter; unknown keys are ignored."""
    if stat not in STAT_KEYS:
        return
    level = get_or_create_level(db, user)
    stats = dict(_empty_stats(), **(level.stats or {}))
    stats[stat] = stats.get(stat, 0) + increment
    if stat == "streak_days":
        stats["longest_streak"] = max(stats.get("longest_streak", 0), stats[stat])
    # Reassign so the JSON column is marked dirty
    level.stats = stats
    db.flush()


def overview(db: Session, user: models.User) -> Dict[str, object]:
    level = get_or_create_level(db, user)
    return {
        "xp_info": xp_info(level),
        "stats": dict(_empty_stats(), **(level.stats or {})),
        "recent_rewards": list(level.rewards)[-10:],
        "milestones": list(level.milestones),
    }


def milestones_view(db: Session, user: models.User) -> Dict[str, object]:
    level = get_or_create_level(db, user)
    achieved = {m.level: m for m in level.milestones}
    items: List[Dict[str, object]] = []
    next_milestone: Optional[Dict[str, object]] = None
    for milestone_level, name, description, reward in MILESTONES:
        record = achieved.get(milestone_level)
        item = {
            "level": milestone_level,
            "name": name,
            "description": description,
            "reward": reward,
            "achieved": record is not None,
            "achieved_at": record.achieved_at if record else None,
        }
        items.append(item)
        if record is None and next_milestone is None:
            next_milestone = dict(item, levels_remaining=milestone_level - level.current_level)
    return {"current_level": level.current_level, "milestones": items, "next_milestone": next_milestone}


def leaderboard(db: Session, *, order: str = "level", limit: int = 50) -> List[Dict[str, object]]:
    rows = level_repo.leaderboard(db, order=order, limit=limit)
    return [
        {"rank": idx, "username": username, "current_level": lvl.current_level, "total_xp": lvl.total_xp}
        for idx, (lvl, username) in enumerate(rows, start=1)
    ]


def set_stat(db: Session, user: models.User, stat: str, value: int) -> None:
    """Overwrite a known stat counter; keeps longest_streak in step with streak_days."""
    if stat not in STAT_KEYS:
        return
    level = get_or_create_level(db, user)
    stats = dict(_empty_stats(), **(level.stats or {}))
    stats[stat] = int(value)
    if stat == "streak_days":
        stats["longest_streak"] = max(stats.get("longest_streak", 0), stats[stat])
    level.stats = stats
    db.flush()
