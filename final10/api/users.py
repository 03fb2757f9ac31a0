"""
Users API endpoints.

Self-service profile, referral and membership routes plus the staff-only
user administration routes.
"""
import logging
import math
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from final10.api.deps import get_current_user, raise_service_error, require_permission
from final10.audit import AuditAction, safe_log
from final10.db import models, schemas
from final10.db.database import get_db
from final10.db.repositories import users as user_repo
from final10.services.account_service import AccountService
from final10.services.errors import AccountError
from final10.utils.role_permissions import PERM_MANAGE_USERS, ROLE_SUPERADMIN, permissions_for

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["users"])


@router.patch("/me", response_model=schemas.UserPublic)
def update_me(
    payload: schemas.UserUpdate,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    try:
        return AccountService(db).update_profile(user, payload)
    except AccountError as exc:
        raise_service_error(exc)


@router.get("/me/referrals", response_model=schemas.ReferralSummary)
def my_referrals(
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    return AccountService(db).referral_summary(user)


@router.post("/me/upgrade", response_model=schemas.UserPublic)
def upgrade_me(
    payload: schemas.UpgradeRequest,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    # Payment capture is mocked; the upgrade always succeeds.
    return AccountService(db).upgrade(user, payload.months)


# Staff administration

@router.get("/admin")
def list_users(
    role: Optional[str] = None,
    q: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    _admin: models.User = Depends(require_permission(PERM_MANAGE_USERS)),
):
    items, total = user_repo.list_users(db, role=role, q=q, skip=(page - 1) * limit, limit=limit)
    return {
        "users": [
            {**schemas.UserPublic.model_validate(u).model_dump(), "permissions": permissions_for(u)}
            for u in items
        ],
        "pagination": {
            "current": page,
            "pages": math.ceil(total / limit) if total else 0,
            "total": total,
            "limit": limit,
        },
    }


def _target_user(db: Session, user_id: uuid.UUID) -> models.User:
    target = user_repo.get_user(db, user_id)
    if not target:
        raise HTTPException(status_code=404, detail="User not found")
    return target


@router.patch("/admin/{user_id}/role", response_model=schemas.UserPublic)
def set_role(
    user_id: uuid.UUID,
    payload: schemas.RoleUpdateRequest,
    db: Session = Depends(get_db),
    admin: models.User = Depends(require_permission(PERM_MANAGE_USERS)),
):
    if admin.role != ROLE_SUPERADMIN:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Only a superadmin can change roles")
    target = _target_user(db, user_id)
    previous = target.role
    try:
        target = AccountService(db).set_role(target, payload.role, payload.permissions)
    except AccountError as exc:
        raise_service_error(exc)
    safe_log(
        db,
        action=AuditAction.USER_ROLE_CHANGE,
        target_type="user",
        target_id=target.id,
        actor_user_id=admin.id,
        metadata={"from": previous, "to": target.role, "permissions": payload.permissions},
    )
    return target


@router.post("/admin/{user_id}/grant-points", response_model=schemas.UserPublic)
def grant_points(
    user_id: uuid.UUID,
    payload: schemas.GrantPointsRequest,
    db: Session = Depends(get_db),
    admin: models.User = Depends(require_permission(PERM_MANAGE_USERS)),
):
    target = _target_user(db, user_id)
    target = AccountService(db).grant_points(target, payload.amount, payload.reason, granted_by=admin.id)
    safe_log(
        db,
        action=AuditAction.USER_POINTS_GRANT,
        target_type="user",
        target_id=target.id,
        actor_user_id=admin.id,
        reason=payload.reason,
        metadata={"amount": payload.amount},
    )
    logger.info("points_granted: target=%s amount=%s by=%s", target.id, payload.amount, admin.id)
    return target
