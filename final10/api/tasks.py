"""
Daily task endpoints.
"""
import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from final10.api.deps import get_current_user
from final10.db import models, schemas
from final10.db.database import get_db
from final10.services import daily_tasks
from final10.services.share_verification import verify_share

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tasks", tags=["tasks"])

SHARE_TASKS = {"app": "shareApp", "product": "shareProduct", "social": "socialPost"}


@router.get("/daily", response_model=schemas.DailyTasksOut)
def get_daily_tasks(
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    return daily_tasks.daily_view(db, user)


@router.post("/daily-login")
def daily_login(
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    return daily_tasks.record_task(db, user, "dailyLogin")


@router.post("/video-scanner")
def video_scanner(
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    return daily_tasks.record_task(db, user, "useVideoScanner")


@router.post("/local-deals-search")
def local_deals_search(
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    return daily_tasks.record_task(db, user, "searchLocalDeals")


@router.post("/share")
def share(
    payload: schemas.ShareRequest,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    ok, reason = verify_share(payload.type, payload.platform, payload.url)
    if not ok:
        logger.info("share_rejected: user=%s type=%s reason=%s", user.id, payload.type, reason)
        raise HTTPException(status_code=400, detail=reason)
    return daily_tasks.record_task(db, user, SHARE_TASKS[payload.type])
