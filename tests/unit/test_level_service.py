import pytest

from final10.db import models
from final10.services import level_service


@pytest.mark.parametrize(
    "level,xp",
    [(0, 0), (1, 0), (2, 100), (3, 300), (4, 600), (5, 1000), (6, 1000), (7, 1500), (10, 3000)],
)
def test_xp_for_level(level, xp):
    assert level_service.xp_for_level(level) == xp


def test_level_row_is_created_lazily(db, user):
    level = level_service.get_or_create_level(db, user)
    assert level.current_level == 1
    assert level.total_xp == 0
    assert level.xp_to_next_level == 100
    assert set(level.stats) == set(level_service.STAT_KEYS)
    assert level_service.get_or_create_level(db, user).id == level.id


def test_award_xp_below_threshold_keeps_level(db, make_user):
    user = make_user(points_balance=0, lifetime_points_earned=0)
    result = level_service.award_xp(db, user, 60)
    assert result["leveled_up"] is False
    assert result["points_awarded"] == 0
    assert result["xp_info"]["xp_progress"] == 60
    assert result["xp_info"]["progress_percentage"] == 60


def test_award_xp_levels_up_and_pays_points(db, make_user):
    user = make_user(points_balance=0, lifetime_points_earned=0)
    result = level_service.award_xp(db, user, 150)
    db.commit()

    assert result["leveled_up"] is True
    assert result["new_level"] == 2
    assert result["levels_gained"] == 1
    assert result["points_awarded"] == level_service.LEVEL_UP_POINTS
    assert result["xp_info"]["xp_progress"] == 50
    assert result["xp_info"]["xp_to_next_level"] == 200
    assert user.points_balance == 500

    rewards = db.query(models.LevelReward).all()
    assert [(r.level, r.points_awarded) for r in rewards] == [(2, 500)]


def test_multi_level_jump_hits_milestone_once(db, make_user):
    user = make_user(points_balance=0, lifetime_points_earned=0)
    result = level_service.award_xp(db, user, 1000)
    db.commit()

    # Levels 5 and 6 share the 1000 XP floor, so both are reached
    assert result["new_level"] == 6
    assert result["levels_gained"] == 5
    assert result["points_awarded"] == 5 * 500 + 250
    milestones = db.query(models.LevelMilestone).all()
    assert [m.name for m in milestones] == ["Rookie Trader"]

    level_service.award_xp(db, user, 10)
    db.commit()
    assert db.query(models.LevelMilestone).count() == 1


def test_update_stat_ignores_unknown_keys_and_tracks_longest_streak(db, user):
    level_service.update_stat(db, user, "total_searches")
    level_service.update_stat(db, user, "not_a_stat")
    level_service.set_stat(db, user, "streak_days", 4)
    level_service.set_stat(db, user, "streak_days", 1)
    stats = level_service.get_or_create_level(db, user).stats

    assert stats["total_searches"] == 1
    assert "not_a_stat" not in stats
    assert stats["streak_days"] == 1
    assert stats["longest_streak"] == 4


def test_milestones_view_points_to_next_milestone(db, user):
    level_service.award_xp(db, user, 300)
    view = level_service.milestones_view(db, user)
    assert view["current_level"] == 3
    assert len(view["milestones"]) == len(level_service.MILESTONES)
    assert view["next_milestone"]["level"] == 5
    assert view["next_milestone"]["levels_remaining"] == 2


def test_leaderboard_orders_by_level_then_xp(db, make_user):
    low = make_user(username="low_player")
    high = make_user(username="high_player")
    level_service.award_xp(db, low, 120)
    level_service.award_xp(db, high, 700)
    db.commit()

    board = level_service.leaderboard(db, order="level", limit=10)
    assert [row["username"] for row in board] == ["high_player", "low_player"]
    assert board[0]["rank"] == 1
