"""
Audit logging helpers and enums.

Centralized helpers to persist normalized audit records with consistent
schema; includes convenience wrappers per target type.
"""
from __future__ import annotations

import logging
import uuid
from enum import Enum
from typing import Any, Optional, Dict

from sqlalchemy.orm import Session

from final10.db import schemas
from final10.db.repositories import audits as audit_repo

logger = logging.getLogger(__name__)


class AuditAction(str, Enum):
    # Users
    USER_ROLE_CHANGE = "user_role_change"
    USER_POINTS_GRANT = "user_points_grant"
    # Auctions
    AUCTION_CANCEL = "auction_cancel"
    AUCTION_CLOSE_EXPIRED = "auction_close_expired"
    AUCTION_REFRESH = "auction_refresh"
    # Levels
    LEVEL_XP_AWARD = "level_xp_award"
    # Promo codes
    PROMO_CODE_CREATE = "promo_code_create"
    PROMO_CODE_UPDATE = "promo_code_update"
    PROMO_CODE_DELETE = "promo_code_delete"
    PROMO_USAGE_REFUND = "promo_usage_refund"
    # Commissions
    COMMISSION_APPROVE = "commission_approve"
    COMMISSION_PAY = "commission_pay"
    COMMISSION_CANCEL = "commission_cancel"
    # Feed
    FEED_IMPORT = "feed_import"
    # Shield
    SHIELD_ENFORCEMENT_APPROVE = "shield_enforcement_approve"
    SHIELD_ENFORCEMENT_REJECT = "shield_enforcement_reject"
    SHIELD_ENFORCEMENT_OVERRIDE = "shield_enforcement_override"
    SHIELD_INVESTIGATE = "shield_investigate"
    SHIELD_KEY_CREATE = "shield_key_create"
    SHIELD_KEY_REVOKE = "shield_key_revoke"


class AuditStatus(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"


def log(
    db: Session,
    *,
    action: AuditAction | str,
    status: AuditStatus | str = AuditStatus.SUCCESS,
    target_type: str,
    target_id: Optional[uuid.UUID] = None,
    actor_user_id: Optional[uuid.UUID],
    reason: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None,
):
    """Central audit logging helper.

    Ensures consistent schema and a single place for enrichment.
    """
    # Persist plain string values, not Enum reprs
    action_value = action.value if isinstance(action, AuditAction) else str(action)
    status_value = status.value if isinstance(status, AuditStatus) else str(status)
    audit_log = schemas.AuditLogCreate(
        action_type=action_value,
        status=status_value,
        target_type=target_type,
        target_id=target_id,
        reason=reason,
        metadata=metadata or {},
    )
    return audit_repo.create_audit_log(db, audit_log=audit_log, actor_user_id=actor_user_id)


def safe_log(db: Session, **kwargs) -> None:
    """Write an audit record; a failure is logged and never reaches the caller."""
    try:
        log(db, **kwargs)
    except Exception:
        db.rollback()
        logger.warning("audit_write_failed: action=%s target=%s", kwargs.get("action"), kwargs.get("target_id"), exc_info=True)


def log_promo_code(db: Session, *, actor_user_id: uuid.UUID, promo_code_id: uuid.UUID, action: AuditAction, code: Optional[str] = None, metadata: Optional[Dict[str, Any]] = None):
    payload = dict(metadata or {})
    if code:
        payload["code"] = code
    safe_log(
        db,
        action=action,
        target_type="promo_code",
        target_id=promo_code_id,
        actor_user_id=actor_user_id,
        metadata=payload,
    )


def log_commission(db: Session, *, actor_user_id: uuid.UUID, commission_id: uuid.UUID, action: AuditAction, metadata: Optional[Dict[str, Any]] = None):
    safe_log(
        db,
        action=action,
        target_type="commission",
        target_id=commission_id,
        actor_user_id=actor_user_id,
        metadata=metadata,
    )


def log_shield(db: Session, *, actor_user_id: uuid.UUID, target_id: Optional[uuid.UUID], action: AuditAction, target_type: str = "shield_enforcement", metadata: Optional[Dict[str, Any]] = None):
    safe_log(
        db,
        action=action,
        target_type=target_type,
        target_id=target_id,
        actor_user_id=actor_user_id,
        metadata=metadata,
    )


__all__ = ["AuditAction", "AuditStatus", "log", "safe_log", "log_promo_code", "log_commission", "log_shield"]
