"""
Level and XP endpoints.
"""
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from final10.api.deps import get_current_user, require_staff
from final10.audit import AuditAction, safe_log
from final10.db import models, schemas
from final10.db.database import get_db
from final10.db.repositories import users as user_repo
from final10.services import level_service

router = APIRouter(prefix="/levels", tags=["levels"])


@router.get("/me", response_model=schemas.LevelOverview)
def my_level(
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    result = level_service.overview(db, user)
    db.commit()
    return result


@router.get("/stats")
def my_stats(
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    result = level_service.overview(db, user)
    db.commit()
    return {"stats": result["stats"], "xp_info": result["xp_info"]}


@router.get("/milestones")
def my_milestones(
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    result = level_service.milestones_view(db, user)
    db.commit()
    return result


@router.get("/leaderboard", response_model=List[schemas.LevelLeaderboardEntry])
def level_leaderboard(
    type: str = Query("level", pattern="^(level|xp)$"),
    limit: int = Query(50, ge=1, le=100),
    db: Session = Depends(get_db),
):
    return level_service.leaderboard(db, order=type, limit=limit)


@router.post("/award-xp")
def award_xp(
    payload: schemas.AwardXPRequest,
    db: Session = Depends(get_db),
    admin: models.User = Depends(require_staff),
):
    target = user_repo.get_user(db, payload.user_id)
    if not target:
        raise HTTPException(status_code=404, detail="User not found")
    result = level_service.award_xp(db, target, payload.xp_amount, source=payload.source)
    db.commit()
    safe_log(
        db,
        action=AuditAction.LEVEL_XP_AWARD,
        target_type="user",
        target_id=target.id,
        actor_user_id=admin.id,
        metadata={"xp": payload.xp_amount, "source": payload.source},
    )
    return result
