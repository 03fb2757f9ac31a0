"""
Promo code API endpoints.

Shopper routes validate and apply codes; creator routes manage a creator's
own codes and commissions; admin routes manage every code and the
commission payout lifecycle.
"""
import logging
import math
import uuid
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.orm import Session

from final10.api.deps import get_client_ip, get_current_user, get_user_agent, raise_service_error, require_promo_admin
from final10.audit import AuditAction, log_commission, log_promo_code
from final10.db import models, schemas
from final10.db.database import get_db
from final10.db.models.base import now_utc
from final10.db.repositories import promo_codes as promo_repo
from final10.db.repositories import users as user_repo
from final10.services import promo_analytics
from final10.services.errors import PromoCodeError
from final10.services.promo_code_service import PromoCodeService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/promo-codes", tags=["promo-codes"])


def _pagination(page: int, limit: int, total: int) -> dict:
    return {"current": page, "pages": math.ceil(total / limit) if total else 0, "total": total, "limit": limit}


def _owned_code(db: Session, promo_code_id: uuid.UUID, user: models.User) -> models.PromoCode:
    promo = promo_repo.get_owned(db, promo_code_id=promo_code_id, creator_id=user.id)
    if not promo:
        raise HTTPException(status_code=404, detail="Promo code not found")
    return promo


def _any_code(db: Session, promo_code_id: uuid.UUID) -> models.PromoCode:
    promo = promo_repo.get_promo_code(db, promo_code_id)
    if not promo:
        raise HTTPException(status_code=404, detail="Promo code not found")
    return promo


def _commission(db: Session, commission_id: uuid.UUID) -> models.Commission:
    commission = promo_repo.get_commission(db, commission_id)
    if not commission:
        raise HTTPException(status_code=404, detail="Commission not found")
    return commission


# Shopper routes

@router.get("/public", response_model=List[schemas.PublicPromoCode])
def public_codes(
    db: Session = Depends(get_db),
    _user: models.User = Depends(get_current_user),
):
    return promo_repo.list_public(db, now=now_utc())


@router.post("/validate")
def validate_code(
    payload: schemas.ValidateRequest,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    try:
        return PromoCodeService(db).validate(payload.code, payload.order_value, user)
    except PromoCodeError as exc:
        raise_service_error(exc)


@router.post("/apply")
def apply_code(
    payload: schemas.ApplyRequest,
    request: Request,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    try:
        return PromoCodeService(db).apply(
            payload.code,
            payload.order_value,
            payload.order_id,
            user,
            ip=get_client_ip(request),
            ua=get_user_agent(request),
        )
    except PromoCodeError as exc:
        db.rollback()
        raise_service_error(exc)


# Creator routes

@router.get("/creator/my-codes", response_model=List[schemas.PromoCodeOut])
def my_codes(
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    return promo_repo.list_by_creator(db, creator_id=user.id)


@router.get("/creator/stats")
def creator_stats(
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    return PromoCodeService(db).creator_stats(user)


@router.get("/creator/commissions")
def creator_commissions(
    status_filter: Optional[str] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=100),
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    items, total = promo_repo.list_commissions(
        db, creator_id=user.id, status=status_filter, skip=(page - 1) * limit, limit=limit,
    )
    return {
        "commissions": [schemas.CommissionOut.model_validate(c) for c in items],
        "pagination": _pagination(page, limit, total),
    }


@router.get("/creator/generate-code")
def generate_code(
    prefix: str = Query("", max_length=20, pattern="^[A-Za-z0-9_-]*$"),
    db: Session = Depends(get_db),
    _user: models.User = Depends(get_current_user),
):
    try:
        return {"code": promo_analytics.generate_unique_code(db, prefix)}
    except RuntimeError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc))


@router.post("/creator/create", response_model=schemas.PromoCodeOut, status_code=status.HTTP_201_CREATED)
def creator_create(
    payload: schemas.PromoCodeCreate,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    try:
        return PromoCodeService(db).create(
            payload, creator_id=user.id, creator_type="influencer", created_by_id=user.id,
        )
    except PromoCodeError as exc:
        raise_service_error(exc)


@router.put("/creator/{promo_code_id}", response_model=schemas.PromoCodeOut)
def creator_update(
    promo_code_id: uuid.UUID,
    payload: schemas.PromoCodeUpdate,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    promo = _owned_code(db, promo_code_id, user)
    try:
        return PromoCodeService(db).update(promo, payload)
    except PromoCodeError as exc:
        raise_service_error(exc)


@router.get("/creator/{promo_code_id}/usage", response_model=List[schemas.UsageOut])
def creator_usage(
    promo_code_id: uuid.UUID,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    promo = _owned_code(db, promo_code_id, user)
    return promo_repo.list_usages(db, promo_code_id=promo.id, limit=100)


@router.get("/creator/{promo_code_id}/metrics")
def creator_metrics(
    promo_code_id: uuid.UUID,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    promo = _owned_code(db, promo_code_id, user)
    return promo_analytics.get_promo_code_metrics(db, promo, days=30)


# Admin routes

@router.get("/admin/all")
def admin_list(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    status_filter: Optional[str] = Query(None, alias="status", pattern="^(active|inactive|expired)$"),
    creator: Optional[uuid.UUID] = None,
    db: Session = Depends(get_db),
    _admin: models.User = Depends(require_promo_admin),
):
    items, total = promo_repo.list_all(
        db, status=status_filter, creator_id=creator, now=now_utc(), skip=(page - 1) * limit, limit=limit,
    )
    return {
        "promo_codes": [schemas.PromoCodeOut.model_validate(p) for p in items],
        "pagination": _pagination(page, limit, total),
    }


@router.get("/admin/analytics")
def admin_analytics(
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    db: Session = Depends(get_db),
    _admin: models.User = Depends(require_promo_admin),
):
    return promo_analytics.get_admin_analytics(db, start_date=start_date, end_date=end_date)


@router.post("/admin/create", response_model=schemas.PromoCodeOut, status_code=status.HTTP_201_CREATED)
def admin_create(
    payload: schemas.AdminPromoCodeCreate,
    db: Session = Depends(get_db),
    admin: models.User = Depends(require_promo_admin),
):
    creator_id = payload.creator_id or admin.id
    if creator_id != admin.id and not user_repo.get_user(db, creator_id):
        raise HTTPException(status_code=404, detail="Creator not found")
    try:
        promo = PromoCodeService(db).create(
            payload, creator_id=creator_id, creator_type=payload.creator_type, created_by_id=admin.id,
        )
    except PromoCodeError as exc:
        raise_service_error(exc)
    log_promo_code(db, actor_user_id=admin.id, promo_code_id=promo.id, action=AuditAction.PROMO_CODE_CREATE, code=promo.code)
    return promo


@router.put("/admin/{promo_code_id}", response_model=schemas.PromoCodeOut)
def admin_update(
    promo_code_id: uuid.UUID,
    payload: schemas.AdminPromoCodeUpdate,
    db: Session = Depends(get_db),
    admin: models.User = Depends(require_promo_admin),
):
    promo = _any_code(db, promo_code_id)
    try:
        promo = PromoCodeService(db).update(promo, payload)
    except PromoCodeError as exc:
        raise_service_error(exc)
    log_promo_code(
        db,
        actor_user_id=admin.id,
        promo_code_id=promo.id,
        action=AuditAction.PROMO_CODE_UPDATE,
        code=promo.code,
        metadata={"fields": sorted(payload.model_dump(exclude_unset=True))},
    )
    return promo


@router.delete("/admin/{promo_code_id}", status_code=status.HTTP_204_NO_CONTENT)
def admin_delete(
    promo_code_id: uuid.UUID,
    db: Session = Depends(get_db),
    admin: models.User = Depends(require_promo_admin),
):
    promo = _any_code(db, promo_code_id)
    code = promo.code
    try:
        promo_repo.delete_promo_code(db, promo)
    except RuntimeError:
        logger.exception("promo_delete_failed: id=%s", promo_code_id)
        raise HTTPException(status_code=500, detail="Failed to delete promo code")
    log_promo_code(db, actor_user_id=admin.id, promo_code_id=promo_code_id, action=AuditAction.PROMO_CODE_DELETE, code=code)
    return None


@router.get("/admin/commissions")
def admin_commissions(
    status_filter: Optional[str] = Query(None, alias="status"),
    creator: Optional[uuid.UUID] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=100),
    db: Session = Depends(get_db),
    _admin: models.User = Depends(require_promo_admin),
):
    items, total = promo_repo.list_commissions(
        db, creator_id=creator, status=status_filter, skip=(page - 1) * limit, limit=limit,
    )
    return {
        "commissions": [schemas.CommissionOut.model_validate(c) for c in items],
        "pagination": _pagination(page, limit, total),
    }


@router.put("/admin/commissions/{commission_id}/approve", response_model=schemas.CommissionOut)
def approve_commission(
    commission_id: uuid.UUID,
    db: Session = Depends(get_db),
    admin: models.User = Depends(require_promo_admin),
):
    commission = _commission(db, commission_id)
    try:
        commission = PromoCodeService(db).approve_commission(commission, approver=admin)
    except PromoCodeError as exc:
        raise_service_error(exc)
    log_commission(db, actor_user_id=admin.id, commission_id=commission.id, action=AuditAction.COMMISSION_APPROVE)
    return commission


@router.put("/admin/commissions/{commission_id}/pay", response_model=schemas.CommissionOut)
def pay_commission(
    commission_id: uuid.UUID,
    payload: schemas.PayCommissionRequest,
    db: Session = Depends(get_db),
    admin: models.User = Depends(require_promo_admin),
):
    commission = _commission(db, commission_id)
    try:
        commission = PromoCodeService(db).pay_commission(commission, payload)
    except PromoCodeError as exc:
        raise_service_error(exc)
    log_commission(
        db,
        actor_user_id=admin.id,
        commission_id=commission.id,
        action=AuditAction.COMMISSION_PAY,
        metadata={"paid_amount": commission.paid_amount, "transaction_id": commission.transaction_id},
    )
    return commission


@router.put("/admin/commissions/{commission_id}/cancel", response_model=schemas.CommissionOut)
def cancel_commission(
    commission_id: uuid.UUID,
    db: Session = Depends(get_db),
    admin: models.User = Depends(require_promo_admin),
):
    commission = _commission(db, commission_id)
    try:
        commission = PromoCodeService(db).cancel_commission(commission)
    except PromoCodeError as exc:
        raise_service_error(exc)
    log_commission(db, actor_user_id=admin.id, commission_id=commission.id, action=AuditAction.COMMISSION_CANCEL)
    return commission


@router.post("/admin/usages/{usage_id}/refund", response_model=schemas.UsageOut)
def refund_usage(
    usage_id: uuid.UUID,
    db: Session = Depends(get_db),
    admin: models.User = Depends(require_promo_admin),
):
    usage = promo_repo.get_usage(db, usage_id)
    if not usage:
        raise HTTPException(status_code=404, detail="Usage not found")
    try:
        usage = PromoCodeService(db).refund_usage(usage)
    except PromoCodeError as exc:
        raise_service_error(exc)
    log_promo_code(
        db,
        actor_user_id=admin.id,
        promo_code_id=usage.promo_code_id,
        action=AuditAction.PROMO_USAGE_REFUND,
        metadata={"usage_id": str(usage.id), "order_id": usage.order_id},
    )
    return usage
