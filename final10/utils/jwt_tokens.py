"""JWT issuing and verification for bearer authentication."""
from __future__ import annotations

import uuid
from datetime import timedelta
from typing import Optional

from jose import JWTError, jwt

from final10.db.models.base import now_utc
from final10.utils.config import get_auth_settings


def create_access_token(user_id: uuid.UUID, *, expires_minutes: int) -> str:
    settings = get_auth_settings()
    issued = now_utc()
    payload = {
        "sub": str(user_id),
        "iat": int(issued.timestamp()),
        "exp": int((issued + timedelta(minutes=expires_minutes)).timestamp()),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> Optional[uuid.UUID]:
    """Return the user id carried by ``token``, or None when it is invalid or expired."""
    settings = get_auth_settings()
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None
    subject = payload.get("sub")
    if not subject:
        return None
    try:
        return uuid.UUID(str(subject))
    except ValueError:
        return None
