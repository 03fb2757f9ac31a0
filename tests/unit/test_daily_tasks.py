from datetime import datetime, timedelta, UTC

import pytest

from final10.db import models
from final10.services import daily_tasks, level_service
from final10.services.errors import TaskError

NOW = datetime(2026, 3, 4, 15, 0, tzinfo=UTC)


def test_unknown_task_is_rejected(db, user):
    with pytest.raises(TaskError):
        daily_tasks.record_task(db, user, "flyKite", now=NOW)


def test_single_step_task_pays_once(db, make_user):
    user = make_user(points_balance=0, lifetime_points_earned=0)
    first = daily_tasks.record_task(db, user, "useVideoScanner", now=NOW)
    second = daily_tasks.record_task(db, user, "useVideoScanner", now=NOW)

    assert first["recorded"] is True
    assert first["completed"] is True
    assert first["points_awarded"] == 20
    assert second["recorded"] is False
    assert second["points_awarded"] == 0
    assert user.points_balance == 20


def test_multi_step_task_pays_on_target(db, make_user):
    user = make_user(points_balance=0, lifetime_points_earned=0)
    results = [daily_tasks.record_task(db, user, "shareApp", now=NOW) for _ in range(3)]

    assert [r["progress"] for r in results] == [1, 2, 3]
    assert [r["points_awarded"] for r in results] == [0, 0, 300]
    assert user.points_balance == 300


def test_every_step_earns_xp_and_stat(db, user):
    daily_tasks.record_task(db, user, "watchAds", now=NOW)
    daily_tasks.record_task(db, user, "watchAds", now=NOW)
    level = level_service.get_or_create_level(db, user)
    assert level.total_xp == 20
    assert level.stats["total_ads_watched"] == 2
    assert level.stats["total_tasks_completed"] == 0


def test_progress_resets_per_utc_day(db, user):
    daily_tasks.record_task(db, user, "searchProduct", now=NOW)
    tomorrow = daily_tasks.record_task(db, user, "searchProduct", now=NOW + timedelta(days=1))
    assert tomorrow["recorded"] is True
    assert db.query(models.DailyTaskProgress).filter_by(user_id=user.id).count() == 2


def test_daily_login_builds_streak(db, user):
    daily_tasks.record_task(db, user, "dailyLogin", now=NOW - timedelta(days=1))
    daily_tasks.record_task(db, user, "dailyLogin", now=NOW)
    stats = level_service.get_or_create_level(db, user).stats
    assert stats["streak_days"] == 2
    assert stats["longest_streak"] == 2

    daily_tasks.record_task(db, user, "dailyLogin", now=NOW + timedelta(days=5))
    stats = level_service.get_or_create_level(db, user).stats
    assert stats["streak_days"] == 1
    assert stats["longest_streak"] == 2


def test_completing_every_task_pays_bonus_once(db, make_user):
    user = make_user(points_balance=0, lifetime_points_earned=0)
    last = None
    for key, task in daily_tasks.TASKS.items():
        for _ in range(task.target):
            last = daily_tasks.record_task(db, user, key, now=NOW)

    view = daily_tasks.daily_view(db, user, now=NOW)
    task_points = sum(t.points for t in daily_tasks.TASKS.values())
    assert view["all_tasks_completed"] is True
    assert view["total_points_earned"] == task_points + daily_tasks.ALL_TASKS_BONUS
    assert last["points_awarded"] == daily_tasks.TASKS["searchLocalDeals"].points + daily_tasks.ALL_TASKS_BONUS
    assert all(t["completed"] for t in view["tasks"].values())


def test_daily_view_reports_reset_time(db, user):
    view = daily_tasks.daily_view(db, user, now=NOW)
    assert view["reset_time"] == datetime(2026, 3, 5, tzinfo=UTC)
    assert view["tasks"]["watchAds"]["target"] == 5
    assert view["tasks"]["watchAds"]["progress"] == 0
