"""
Audit log API endpoints.

Read-only view over audit records for staff with analytics access.
"""
from typing import List, Optional
import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from final10.api.deps import require_permission
from final10.db import models, schemas
from final10.db.database import get_db
from final10.db.repositories import audits as audit_repo
from final10.utils.role_permissions import PERM_VIEW_ANALYTICS

router = APIRouter(prefix="/audits", tags=["audits"])


@router.get("", response_model=List[schemas.AuditLog])
def list_audit_logs(
    user_id: Optional[uuid.UUID] = None,
    action_type: Optional[str] = None,
    target_type: Optional[str] = None,
    status: Optional[str] = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db),
    _admin: models.User = Depends(require_permission(PERM_VIEW_ANALYTICS)),
):
    return audit_repo.get_audit_logs(
        db,
        user_id=user_id,
        action_type=action_type,
        target_type=target_type,
        status=status,
        skip=skip,
        limit=limit,
    )
