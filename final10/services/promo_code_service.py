"""
Promo code service: validation, discounts, application and commissions.

Applying a code records a usage row, bumps the code's counters and revenue
totals and, when the code carries a commission rate, opens a pending
commission for the creator.
"""
from __future__ import annotations

import logging
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from final10.db import models, schemas
from final10.db.models.base import as_utc, now_utc
from final10.db.repositories import promo_codes as promo_repo
from final10.services import points_service
from final10.services.errors import PromoCodeError
from final10.utils.config import get_points_settings

logger = logging.getLogger(__name__)

REQUIRED_CREATE_FIELDS = ("code", "description", "discount_type", "discount_value")
IMMUTABLE_FIELDS = {"code", "creator_id", "created_by_id", "usage_count", "total_revenue", "total_commission"}


def validate_usage(promo: models.PromoCode, order_value: float = 0, now: Optional[datetime] = None) -> List[str]:
    """Return every failed rule, in a fixed order; empty means usable."""
    now = now or now_utc()
    errors: List[str] = []
    if not promo.is_active:
        errors.append("Promo code is not active")
    if promo.valid_until and as_utc(promo.valid_until) < now:
        errors.append("Promo code has expired")
    if as_utc(promo.valid_from) > now:
        errors.append("Promo code is not yet valid")
    if promo.usage_limit is not None and (promo.usage_count or 0) >= promo.usage_limit:
        errors.append("Promo code usage limit reached")
    if order_value < (promo.minimum_order_value or 0):
        errors.append(f"Minimum order value of ${promo.minimum_order_value:.2f} required")
    return errors


def calculate_discount(promo: models.PromoCode, order_value: float, now: Optional[datetime] = None) -> Dict[str, float]:
    if validate_usage(promo, order_value, now):
        return {"discount": 0.0, "final_amount": round(order_value, 2), "savings": 0.0}
    if promo.discount_type == "percentage":
        discount = order_value * promo.discount_value / 100
    elif promo.discount_type == "fixed":
        discount = promo.discount_value
    else:
        # free_shipping carries no price reduction on the order itself
        discount = 0.0
    discount = min(discount, order_value)
    final_amount = max(0.0, order_value - discount)
    return {"discount": round(discount, 2), "final_amount": round(final_amount, 2), "savings": round(discount, 2)}


def calculate_commission(order_value: float, commission_rate: float) -> float:
    return round(order_value * commission_rate / 100, 2)


class PromoCodeService:
    """Promo code operations for shoppers, creators and admins."""

    def __init__(self, db: Session):
        self.db = db

    # Shopper flow

    def _checked_code(self, code: Optional[str], order_value: float, user: models.User) -> models.PromoCode:
        if not code or not code.strip():
            raise PromoCodeError("Promo code is required")
        promo = promo_repo.get_by_code(self.db, code, active_only=True)
        if promo is None:
            raise PromoCodeError("Invalid promo code", status_code=404)
        used = promo_repo.count_user_usages(self.db, promo_code_id=promo.id, user_id=user.id)
        if used >= promo.user_usage_limit:
            raise PromoCodeError("You have already used this promo code the maximum number of times")
        errors = validate_usage(promo, order_value)
        if errors:
            raise PromoCodeError("; ".join(errors))
        return promo

    def validate(self, code: Optional[str], order_value: float, user: models.User) -> Dict[str, Any]:
        promo = self._checked_code(code, order_value, user)
        return {
            "valid": True,
            "promo_code": {
                "id": promo.id,
                "code": promo.code,
                "description": promo.description,
                "discount_type": promo.discount_type,
                "discount_value": promo.discount_value,
                "minimum_order_value": promo.minimum_order_value,
            },
            "discount": calculate_discount(promo, order_value),
            "user_usage_count": promo_repo.count_user_usages(self.db, promo_code_id=promo.id, user_id=user.id),
            "user_usage_limit": promo.user_usage_limit,
        }

    def apply(
        self,
        code: Optional[str],
        order_value: float,
        order_id: str,
        user: models.User,
        *,
        ip: Optional[str] = None,
        ua: Optional[str] = None,
    ) -> Dict[str, Any]:
        promo = self._checked_code(code, order_value, user)
        discount = calculate_discount(promo, order_value)
        commission_amount = calculate_commission(order_value, promo.commission_rate)
        usage = models.PromoCodeUsage(
            promo_code_id=promo.id,
            user_id=user.id,
            order_id=order_id,
            order_value=order_value,
            discount_amount=discount["discount"],
            final_amount=discount["final_amount"],
            commission_amount=commission_amount,
            status="applied",
            ip_address=ip,
            user_agent=ua,
        )
        self.db.add(usage)
        promo.usage_count = (promo.usage_count or 0) + 1
        promo.total_revenue = round((promo.total_revenue or 0) + order_value, 2)
        promo.total_commission = round((promo.total_commission or 0) + commission_amount, 2)
        self.db.flush()
        commission = self._create_commission(promo, usage)
        self.db.commit()
        logger.info("promo_applied: code=%s user=%s order=%s", promo.code, user.id, order_id)
        return {
            "success": True,
            "usage_id": usage.id,
            "discount": discount,
            "commission_amount": commission_amount,
            "commission_id": commission.id if commission else None,
        }

    def _create_commission(self, promo: models.PromoCode, usage: models.PromoCodeUsage) -> Optional[models.Commission]:
        if not promo.commission_rate:
            return None
        commission = models.Commission(
            creator_id=promo.creator_id,
            promo_code_id=promo.id,
            promo_code_usage_id=usage.id,
            order_value=usage.order_value,
            commission_rate=promo.commission_rate,
            commission_amount=usage.commission_amount,
            status="pending",
        )
        self.db.add(commission)
        self.db.flush()
        return commission

    # Creator / admin management

    def create(
        self,
        payload: schemas.PromoCodeCreate,
        *,
        creator_id: uuid.UUID,
        creator_type: str,
        created_by_id: uuid.UUID,
    ) -> models.PromoCode:
        missing = [name for name in REQUIRED_CREATE_FIELDS if getattr(payload, name) in (None, "")]
        if missing or not (payload.description or "").strip():
            raise PromoCodeError("Missing required fields: code, description, discount_type, discount_value")
        try:
            code = schemas.clean_code(payload.code)
        except ValueError as exc:
            raise PromoCodeError(str(exc))
        if promo_repo.code_exists(self.db, code):
            raise PromoCodeError("Promo code already exists")
        data = payload.model_dump(exclude={"creator_id", "creator_type"})
        data["code"] = code
        data["description"] = payload.description.strip()
        data["valid_from"] = as_utc(data.get("valid_from")) or now_utc()
        data["valid_until"] = as_utc(data.get("valid_until"))
        if data["valid_until"] and data["valid_until"] <= data["valid_from"]:
            raise PromoCodeError("valid_until must be after valid_from")
        promo = promo_repo.create_promo_code(
            self.db,
            **data,
            creator_id=creator_id,
            creator_type=creator_type,
            created_by_id=created_by_id,
        )
        logger.info("promo_created: code=%s creator=%s", promo.code, creator_id)
        return promo

    def update(self, promo: models.PromoCode, payload: schemas.PromoCodeUpdate) -> models.PromoCode:
        data = payload.model_dump(exclude_unset=True)
        for key in IMMUTABLE_FIELDS:
            data.pop(key, None)
        for key in ("valid_from", "valid_until"):
            if key in data:
                data[key] = as_utc(data[key])
        valid_from = data.get("valid_from", as_utc(promo.valid_from))
        valid_until = data.get("valid_until", as_utc(promo.valid_until))
        if valid_from is None:
            data.pop("valid_from", None)
            valid_from = as_utc(promo.valid_from)
        if valid_until and valid_until <= valid_from:
            raise PromoCodeError("valid_until must be after valid_from")
        for key, value in data.items():
            setattr(promo, key, value)
        self.db.commit()
        self.db.refresh(promo)
        return promo

    def creator_stats(self, creator: models.User) -> Dict[str, Any]:
        codes = promo_repo.list_by_creator(self.db, creator_id=creator.id)
        by_status = promo_repo.commission_totals_by_status(self.db, creator_id=creator.id)
        return {
            "total_codes": len(codes),
            "active_codes": sum(1 for c in codes if c.is_active),
            "total_usage": sum(c.usage_count or 0 for c in codes),
            "total_revenue": round(sum(c.total_revenue or 0 for c in codes), 2),
            "total_commission": round(sum(c.total_commission or 0 for c in codes), 2),
            "earnings": {
                status: by_status.get(status, {"count": 0, "total": 0.0})
                for status in ("pending", "approved", "paid", "cancelled")
            },
        }

    # Commission lifecycle

    def approve_commission(self, commission: models.Commission, *, approver: models.User) -> models.Commission:
        if commission.status != "pending":
            raise PromoCodeError(f"Commission is {commission.status}, only pending commissions can be approved")
        commission.status = "approved"
        commission.approved_by_id = approver.id
        commission.approved_at = now_utc()
        self.db.commit()
        self.db.refresh(commission)
        return commission

    def pay_commission(self, commission: models.Commission, payload: schemas.PayCommissionRequest) -> models.Commission:
        if commission.status != "approved":
            raise PromoCodeError("Commission must be approved before payment")
        paid_amount = payload.paid_amount if payload.paid_amount is not None else commission.commission_amount
        if payload.payout_method:
            commission.payout_method = payload.payout_method
        if commission.payout_method == "points":
            creator = self.db.get(models.User, commission.creator_id)
            ratio = get_points_settings().discount_ratio
            points = int(round(paid_amount / ratio))
            if creator is not None and points > 0:
                points_service.award_points(
                    self.db,
                    creator,
                    points,
                    "commission_payout",
                    ref_id=str(commission.id),
                    idempotency_key=f"commission_{commission.id}",
                )
        commission.status = "paid"
        commission.paid_amount = round(paid_amount, 2)
        commission.paid_at = now_utc()
        commission.transaction_id = payload.transaction_id
        self.db.commit()
        self.db.refresh(commission)
        logger.info("commission_paid: id=%s amount=%s method=%s", commission.id, paid_amount, commission.payout_method)
        return commission

    def cancel_commission(self, commission: models.Commission, *, notes: Optional[str] = None) -> models.Commission:
        if commission.status == "paid":
            raise PromoCodeError("Paid commissions cannot be cancelled")
        commission.status = "cancelled"
        if notes:
            commission.notes = notes
        self.db.commit()
        self.db.refresh(commission)
        return commission

    def refund_usage(self, usage: models.PromoCodeUsage) -> models.PromoCodeUsage:
        if usage.status != "applied":
            raise PromoCodeError(f"Usage is already {usage.status}")
        commission = promo_repo.get_commission_for_usage(self.db, usage_id=usage.id)
        if commission is not None and commission.status == "paid":
            raise PromoCodeError("Commission for this usage was already paid")
        promo = usage.promo_code
        usage.status = "refunded"
        promo.usage_count = max(0, (promo.usage_count or 0) - 1)
        promo.total_revenue = round(max(0.0, (promo.total_revenue or 0) - usage.order_value), 2)
        promo.total_commission = round(max(0.0, (promo.total_commission or 0) - usage.commission_amount), 2)
        if commission is not None:
            commission.status = "cancelled"
            commission.notes = "Order refunded"
        self.db.commit()
        self.db.refresh(usage)
        return usage
