"""
Points API endpoints: balance, ledger summary, redemption, the daily claim
and the lifetime leaderboard.
"""
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from final10.api.deps import get_current_user, raise_service_error
from final10.db import models, schemas
from final10.db.database import get_db
from final10.db.repositories import points as points_repo
from final10.services import points_service
from final10.services.errors import PointsError

router = APIRouter(prefix="/points", tags=["points"])
leaderboard_router = APIRouter(prefix="/leaderboard", tags=["points"])


def _positive_int(value) -> int:
    if isinstance(value, bool):
        raise ValueError("boolean")
    if isinstance(value, int):
        amount = value
    elif isinstance(value, float) and value.is_integer():
        amount = int(value)
    elif isinstance(value, str) and value.strip().isdigit():
        amount = int(value.strip())
    else:
        raise ValueError("not an integer")
    if amount <= 0:
        raise ValueError("not positive")
    return amount


@router.get("")
def get_balance(user: models.User = Depends(get_current_user)):
    return {"points": user.points_balance}


@router.get("/me", response_model=schemas.PointsSummary)
def get_summary(
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    return points_service.points_summary(db, user)


@router.post("/redeem", response_model=schemas.RedeemResponse)
def redeem(
    payload: schemas.RedeemRequest,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    key = (payload.idempotency_key or "").strip()
    if not key:
        raise HTTPException(status_code=400, detail="idempotency_key is required")
    try:
        amount = _positive_int(payload.amount)
    except ValueError:
        raise HTTPException(status_code=400, detail="amount must be a positive integer")
    try:
        return points_service.redeem_for_discount(
            db, user, amount=amount, idempotency_key=key, auction_id=payload.auction_id,
        )
    except PointsError as exc:
        db.rollback()
        raise_service_error(exc)


@router.post("/daily-claim")
def daily_claim(
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    try:
        return points_service.daily_claim(db, user)
    except PointsError as exc:
        db.rollback()
        raise_service_error(exc)


@leaderboard_router.get("/lifetime", response_model=List[schemas.LeaderboardEntry])
def lifetime_leaderboard(db: Session = Depends(get_db)):
    return points_repo.top_lifetime(db, limit=100)
