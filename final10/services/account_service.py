"""
Account service: signup with referral rewards, login and profile changes.
"""
from __future__ import annotations

import logging
import re
import uuid
from datetime import timedelta
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from final10.db import models, schemas
from final10.db.models.base import as_utc, now_utc
from final10.db.repositories import referrals as referral_repo
from final10.db.repositories import users as user_repo
from final10.services import points_service
from final10.services.errors import AccountError
from final10.services.referral_guard import check_referral
from final10.utils import token_crypto
from final10.utils.clock import utc_now
from final10.utils.config import get_auth_settings, get_points_settings
from final10.utils.feature_flags import referrals_enabled
from final10.utils.jwt_tokens import create_access_token
from final10.utils.role_permissions import ADMIN_PERMISSIONS, validate_role
from final10.utils.urls import build_referral_link

logger = logging.getLogger(__name__)

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

WELCOME_CODE = "welcome"
WELCOME_PREMIUM_DAYS = 7


class AccountService:
    """Signup, login and membership changes for end users."""

    def __init__(self, db: Session):
        self.db = db

    def signup(self, payload: schemas.SignupRequest, *, ip: Optional[str], ua: Optional[str]) -> Dict[str, Any]:
        fields = {
            "first_name": payload.first_name.strip(),
            "last_name": payload.last_name.strip(),
            "username": payload.username.strip(),
            "email": payload.email.strip().lower(),
            "password": payload.password,
        }
        if not all(fields.values()):
            raise AccountError("All fields are required")
        if not _EMAIL_RE.match(fields["email"]):
            raise AccountError("Invalid email address")
        if len(fields["password"]) < 6:
            raise AccountError("Password must be at least 6 characters")
        if not 3 <= len(fields["username"]) <= 30:
            raise AccountError("Username must be 3..30 characters")
        if user_repo.email_or_username_taken(self.db, email=fields["email"], username=fields["username"]):
            raise AccountError("Email or username already in use")

        auth = get_auth_settings()
        role = "superadmin" if fields["email"] in auth.admin_emails else "user"
        user = user_repo.create_user(
            self.db,
            first_name=fields["first_name"],
            last_name=fields["last_name"],
            username=fields["username"],
            email=fields["email"],
            password_hash=token_crypto.hash_secret(fields["password"]),
            role=role,
        )

        settings = get_points_settings()
        now = now_utc()
        code = (payload.referral_code or "").strip()
        is_welcome = code.lower() == WELCOME_CODE
        if is_welcome:
            user.membership_tier = "premium"
            user.subscription_expires = now + timedelta(days=WELCOME_PREMIUM_DAYS)
            user.trial_active = True
            user.trial_ends_at = now + timedelta(days=WELCOME_PREMIUM_DAYS)
            user.referral_code_used = WELCOME_CODE
            bonus = settings.welcome_bonus
        else:
            bonus = settings.signup_bonus
        points_service.award_points(self.db, user, bonus, "signup_bonus", idempotency_key=f"signup_{user.id}")

        if code and not is_welcome and referrals_enabled():
            self._apply_referral(user, code, ip=ip, ua=ua)

        self.db.commit()
        self.db.refresh(user)
        logger.info("user_signup: user=%s referral=%s", user.id, bool(code))
        token = create_access_token(user.id, expires_minutes=auth.signup_expires_minutes)
        return {"token": token, "user": user}

    def _apply_referral(self, user: models.User, code: str, *, ip: Optional[str], ua: Optional[str]) -> None:
        referrer = user_repo.get_user_by_referral_code(self.db, code)
        if referrer is None:
            logger.info("referral_unknown_code: user=%s", user.id)
            return
        settings = get_points_settings()
        ua_value = ua or ""
        result = check_referral(
            self.db,
            referrer=referrer,
            new_email=user.email,
            new_user_id=user.id,
            ip=ip,
            ua=ua_value,
            now=utc_now(),
        )
        if not result.ok:
            referral_repo.create_referral_log(
                self.db, referrer_id=referrer.id, referee_id=user.id, ip=ip, ua=ua_value, status="blocked", reason=result.reason,
            )
            logger.warning("referral_blocked: referrer=%s reason=%s", referrer.id, result.reason)
            return

        user.referred_by_id = referrer.id
        user.referral_code_used = code
        start_of_day = utc_now().replace(hour=0, minute=0, second=0, microsecond=0)
        accepted_today = referral_repo.count_accepted_for_referrer(self.db, referrer_id=referrer.id, since=start_of_day)
        if accepted_today >= settings.referral_daily_cap:
            referral_repo.create_referral_log(
                self.db, referrer_id=referrer.id, referee_id=user.id, ip=ip, ua=ua_value, status="capped", reason="daily_cap",
            )
        else:
            points_service.award_points(
                self.db,
                referrer,
                settings.referral_points,
                "referral",
                ref_id=str(user.id),
                idempotency_key=f"referral_{referrer.id}_{user.id}",
            )
            referral_repo.create_referral_log(
                self.db, referrer_id=referrer.id, referee_id=user.id, ip=ip, ua=ua_value, status="accepted",
            )
        points_service.award_points(
            self.db,
            user,
            settings.referee_bonus,
            "referral_bonus",
            ref_id=str(referrer.id),
            idempotency_key=f"referee_{user.id}",
        )

    def login(self, email: str, password: str) -> Dict[str, Any]:
        user = user_repo.get_user_by_email(self.db, email or "")
        if user is None or not token_crypto.verify_secret(password or "", user.password_hash):
            raise AccountError("Invalid credentials")
        user.last_active = now_utc()
        self.db.commit()
        self.db.refresh(user)
        token = create_access_token(user.id, expires_minutes=get_auth_settings().login_expires_minutes)
        return {"token": token, "user": user}

    def update_profile(self, user: models.User, payload: schemas.UserUpdate) -> models.User:
        data = payload.model_dump(exclude_unset=True)
        username = data.get("username")
        if username and username.lower() != user.username.lower():
            if user_repo.get_user_by_username(self.db, username):
                raise AccountError("Username already in use", status_code=409)
        for key, value in data.items():
            if value is not None:
                setattr(user, key, value.strip() if isinstance(value, str) else value)
        self.db.commit()
        self.db.refresh(user)
        return user

    def upgrade(self, user: models.User, months: int) -> models.User:
        """Extend premium by 30 days per month, stacking onto a running subscription."""
        now = now_utc()
        current = as_utc(user.subscription_expires)
        start = current if current and current > now else now
        user.membership_tier = "premium" if user.membership_tier != "pro" else "pro"
        user.subscription_expires = start + timedelta(days=30 * months)
        self.db.commit()
        self.db.refresh(user)
        logger.info("membership_upgrade: user=%s months=%s", user.id, months)
        return user

    def referral_summary(self, user: models.User) -> Dict[str, Any]:
        start_of_day = utc_now().replace(hour=0, minute=0, second=0, microsecond=0)
        return {
            "referral_code": user.referral_code,
            "referral_link": build_referral_link(user.referral_code or str(user.id)),
            "accepted_total": referral_repo.count_accepted_for_referrer(self.db, referrer_id=user.id),
            "accepted_today": referral_repo.count_accepted_for_referrer(self.db, referrer_id=user.id, since=start_of_day),
            "referred_by": user.referred_by_id,
        }

    def set_role(self, target: models.User, role: str, permissions: Dict[str, bool]) -> models.User:
        try:
            validate_role(role)
        except ValueError as exc:
            raise AccountError(str(exc)) from exc
        unknown = set(permissions) - ADMIN_PERMISSIONS
        if unknown:
            raise AccountError(f"Unknown permissions: {sorted(unknown)}")
        target.role = role
        for perm in ADMIN_PERMISSIONS:
            if perm in permissions:
                setattr(target, perm, bool(permissions[perm]))
            elif role == "user":
                setattr(target, perm, False)
        self.db.commit()
        self.db.refresh(target)
        return target

    def grant_points(self, target: models.User, amount: int, reason: str, *, granted_by: uuid.UUID) -> models.User:
        points_service.award_points(self.db, target, amount, "owner_grant", ref_id=f"{granted_by}:{reason}"[:120])
        self.db.commit()
        self.db.refresh(target)
        return target
