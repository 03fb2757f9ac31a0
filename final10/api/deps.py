"""
API dependency helpers.

Resolves the bearer user, staff permission checks, client network details
and Shield ingest keys for routes.
"""
import logging
from typing import Callable, NoReturn, Optional

from fastapi import Depends, Header, HTTPException, Request, status
from sqlalchemy.orm import Session

from final10.db import models
from final10.db.database import get_db
from final10.db.repositories import users as user_repo
from final10.services.errors import ServiceError
from final10.shield import service as shield_service
from final10.utils.feature_flags import shield_enabled
from final10.utils.jwt_tokens import decode_access_token
from final10.utils.role_permissions import can_manage_promotions, has_permission, is_staff

logger = logging.getLogger(__name__)


def raise_service_error(exc: ServiceError) -> NoReturn:
    raise HTTPException(status_code=exc.status_code, detail=exc.message)


def _bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def _resolve_user(db: Session, authorization: Optional[str]) -> Optional[models.User]:
    token = _bearer_token(authorization)
    if not token:
        return None
    user_id = decode_access_token(token)
    if user_id is None:
        return None
    return user_repo.get_user(db, user_id)


# Contract:
# Returns the ORM user for a valid bearer token.
# Raises 401 when the token is missing, malformed, expired or orphaned.
def get_current_user(
    db: Session = Depends(get_db),
    authorization: Optional[str] = Header(default=None),
) -> models.User:
    if not _bearer_token(authorization):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Authentication required")
    user = _resolve_user(db, authorization)
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or expired token")
    return user


def require_staff(user: models.User = Depends(get_current_user)) -> models.User:
    if not is_staff(user):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    return user


def require_promo_admin(user: models.User = Depends(get_current_user)) -> models.User:
    if not can_manage_promotions(user):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    return user


def require_permission(permission: str) -> Callable[..., models.User]:
    """Dependency factory: the bearer must be staff holding ``permission``."""

    def _checker(user: models.User = Depends(get_current_user)) -> models.User:
        if not has_permission(user, permission):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
        return user

    return _checker


def get_client_ip(request: Request) -> Optional[str]:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    return request.client.host if request.client else None


def get_user_agent(request: Request) -> Optional[str]:
    return request.headers.get("user-agent")


def get_shield_api_key(
    db: Session = Depends(get_db),
    x_shield_key: Optional[str] = Header(default=None, alias="X-Shield-Key"),
) -> models.ShieldApiKey:
    if not shield_enabled():
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Shield ingestion is disabled")
    if not x_shield_key:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing Shield API key")
    api_key = shield_service.authenticate_key(db, x_shield_key)
    if api_key is None:
        logger.warning("shield_key_rejected: prefix=%s", x_shield_key[:14])
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid Shield API key")
    return api_key
