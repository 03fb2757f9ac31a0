"""
Shield API endpoints.

``/ingest`` is called by partner apps with an ingest key. Every other route
is for staff holding ``can_manage_shield``.
"""
import logging
import math
import uuid
from datetime import timedelta
from typing import List, Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Query, Request, status
from sqlalchemy.orm import Session

from final10.api.deps import get_client_ip, get_shield_api_key, get_user_agent, raise_service_error, require_permission
from final10.audit import AuditAction, log_shield
from final10.db import models, schemas
from final10.db.database import get_db
from final10.db.models.base import now_utc
from final10.db.repositories import shield as shield_repo
from final10.services.errors import ShieldEventError
from final10.shield import service as shield_service
from final10.utils.role_permissions import PERM_MANAGE_SHIELD

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/shield", tags=["shield"])

require_shield_admin = require_permission(PERM_MANAGE_SHIELD)


def _pagination(page: int, limit: int, total: int) -> dict:
    return {"current": page, "pages": math.ceil(total / limit) if total else 0, "total": total, "limit": limit}


def _enforcement(db: Session, enforcement_id: uuid.UUID) -> models.ShieldEnforcement:
    enforcement = shield_repo.get_enforcement(db, enforcement_id)
    if not enforcement:
        raise HTTPException(status_code=404, detail="Enforcement not found")
    return enforcement


@router.post("/ingest", response_model=schemas.IngestResponse)
def ingest(
    payload: schemas.IngestRequest,
    request: Request,
    db: Session = Depends(get_db),
    api_key: models.ShieldApiKey = Depends(get_shield_api_key),
    x_trace_id: Optional[str] = Header(default=None, alias="X-Trace-Id"),
):
    try:
        return shield_service.ingest_event(
            db,
            app=api_key.app,
            payload=payload,
            ip=get_client_ip(request),
            ua=get_user_agent(request),
            trace_id=x_trace_id,
        )
    except ShieldEventError as exc:
        raise_service_error(exc)


@router.get("/events")
def list_events(
    user: Optional[str] = None,
    app: Optional[str] = None,
    type: Optional[str] = None,
    min_risk: Optional[float] = Query(None, ge=0, le=1),
    status_filter: Optional[str] = Query(None, alias="status"),
    days: int = Query(30, ge=1, le=365),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
    _admin: models.User = Depends(require_shield_admin),
):
    items, total = shield_repo.list_events(
        db,
        savvy_user_id=user,
        app=app,
        event_type=type,
        min_risk=min_risk,
        status=status_filter,
        since=now_utc() - timedelta(days=days),
        skip=(page - 1) * limit,
        limit=limit,
    )
    return {
        "events": [schemas.ShieldEventOut.model_validate(e) for e in items],
        "pagination": _pagination(page, limit, total),
    }


@router.get("/enforcements")
def list_enforcements(
    status_filter: Optional[str] = Query(None, alias="status"),
    decision: Optional[str] = None,
    app: Optional[str] = None,
    overdue: bool = False,
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
    _admin: models.User = Depends(require_shield_admin),
):
    items, total = shield_repo.list_enforcements(
        db,
        status=status_filter,
        decision=decision,
        app=app,
        overdue_before=now_utc() if overdue else None,
        skip=(page - 1) * limit,
        limit=limit,
    )
    return {
        "enforcements": [schemas.ShieldEnforcementOut.model_validate(e) for e in items],
        "pagination": _pagination(page, limit, total),
    }


@router.get("/stats")
def stats(
    days: int = Query(30, ge=1, le=365),
    db: Session = Depends(get_db),
    _admin: models.User = Depends(require_shield_admin),
):
    return shield_service.enforcement_stats(db, days=days)


@router.post("/enforcements/{enforcement_id}/approve", response_model=schemas.ShieldEnforcementOut)
def approve(
    enforcement_id: uuid.UUID,
    payload: Optional[schemas.ReviewRequest] = None,
    db: Session = Depends(get_db),
    admin: models.User = Depends(require_shield_admin),
):
    enforcement = _enforcement(db, enforcement_id)
    notes = payload.notes if payload else None
    try:
        enforcement = shield_service.approve_enforcement(db, enforcement, reviewer=admin, notes=notes)
    except ShieldEventError as exc:
        raise_service_error(exc)
    log_shield(db, actor_user_id=admin.id, target_id=enforcement.id, action=AuditAction.SHIELD_ENFORCEMENT_APPROVE)
    return enforcement


@router.post("/enforcements/{enforcement_id}/reject", response_model=schemas.ShieldEnforcementOut)
def reject(
    enforcement_id: uuid.UUID,
    payload: Optional[schemas.ReviewRequest] = None,
    db: Session = Depends(get_db),
    admin: models.User = Depends(require_shield_admin),
):
    enforcement = _enforcement(db, enforcement_id)
    notes = payload.notes if payload else None
    try:
        enforcement = shield_service.reject_enforcement(db, enforcement, reviewer=admin, notes=notes)
    except ShieldEventError as exc:
        raise_service_error(exc)
    log_shield(db, actor_user_id=admin.id, target_id=enforcement.id, action=AuditAction.SHIELD_ENFORCEMENT_REJECT)
    return enforcement


@router.post("/enforcements/{enforcement_id}/override", response_model=schemas.ShieldEnforcementOut)
def override(
    enforcement_id: uuid.UUID,
    payload: schemas.OverrideRequest,
    db: Session = Depends(get_db),
    admin: models.User = Depends(require_shield_admin),
):
    enforcement = _enforcement(db, enforcement_id)
    original = enforcement.decision
    enforcement = shield_service.override_enforcement(
        db, enforcement, reviewer=admin, decision=payload.decision, reason=payload.reason,
    )
    log_shield(
        db,
        actor_user_id=admin.id,
        target_id=enforcement.id,
        action=AuditAction.SHIELD_ENFORCEMENT_OVERRIDE,
        metadata={"from": original, "to": payload.decision, "reason": payload.reason},
    )
    return enforcement


@router.get("/user/{savvy_user_id}/profile")
def user_profile(
    savvy_user_id: str,
    days: int = Query(30, ge=1, le=365),
    db: Session = Depends(get_db),
    _admin: models.User = Depends(require_shield_admin),
):
    profile = shield_service.user_profile(db, savvy_user_id, days=days)
    profile["recent_high_risk"] = [schemas.ShieldEventOut.model_validate(e) for e in profile["recent_high_risk"]]
    return profile


@router.post("/investigate/{savvy_user_id}")
def investigate(
    savvy_user_id: str,
    db: Session = Depends(get_db),
    admin: models.User = Depends(require_shield_admin),
):
    result = shield_service.investigate_user(db, savvy_user_id)
    result["profile"]["recent_high_risk"] = [
        schemas.ShieldEventOut.model_validate(e) for e in result["profile"]["recent_high_risk"]
    ]
    log_shield(
        db,
        actor_user_id=admin.id,
        target_id=None,
        target_type="shield_user",
        action=AuditAction.SHIELD_INVESTIGATE,
        metadata={"savvy_user_id": savvy_user_id, "escalated": result["escalated"]},
    )
    return result


# Ingest keys

@router.post("/keys", response_model=schemas.ApiKeyCreateResponse, status_code=status.HTTP_201_CREATED)
def create_key(
    payload: schemas.ApiKeyCreateRequest,
    db: Session = Depends(get_db),
    admin: models.User = Depends(require_shield_admin),
):
    api_key, full_key = shield_repo.create_api_key(db, app=payload.app, name=payload.name, created_by_id=admin.id)
    log_shield(
        db,
        actor_user_id=admin.id,
        target_id=api_key.id,
        target_type="shield_api_key",
        action=AuditAction.SHIELD_KEY_CREATE,
        metadata={"app": api_key.app, "name": api_key.name},
    )
    return schemas.ApiKeyCreateResponse(
        id=api_key.id,
        app=api_key.app,
        name=api_key.name,
        prefix=api_key.prefix,
        last_four=api_key.last_four,
        status=api_key.status,
        created_at=api_key.created_at,
        last_used_at=api_key.last_used_at,
        key=full_key,
    )


@router.get("/keys", response_model=List[schemas.ApiKeyOut])
def list_keys(
    db: Session = Depends(get_db),
    _admin: models.User = Depends(require_shield_admin),
):
    return shield_repo.list_api_keys(db)


@router.delete("/keys/{key_id}", status_code=status.HTTP_204_NO_CONTENT)
def revoke_key(
    key_id: uuid.UUID,
    db: Session = Depends(get_db),
    admin: models.User = Depends(require_shield_admin),
):
    if not shield_repo.revoke_api_key(db, key_db_id=key_id):
        raise HTTPException(status_code=404, detail="API key not found")
    log_shield(
        db,
        actor_user_id=admin.id,
        target_id=key_id,
        target_type="shield_api_key",
        action=AuditAction.SHIELD_KEY_REVOKE,
    )
    return None
