"""
Referral abuse checks applied at signup.

A referral is blocked when it comes from a private address, when the
referrer is the new account, or when the address (or address plus user
agent) has already produced accepted referrals recently.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from final10.db import models
from final10.db.repositories import referrals as referral_repo

_PRIVATE_IP_RE = re.compile(r"^(10\.|192\.168\.|172\.(1[6-9]|2\d|3[0-1])\.|127\.|::1$|::ffff:127\.)")

IP_WINDOW = timedelta(hours=24)
IP_LIMIT = 1
DEVICE_WINDOW = timedelta(days=7)
DEVICE_LIMIT = 2


@dataclass(frozen=True)
class GuardResult:
    ok: bool
    reason: Optional[str] = None


def is_private_ip(ip: Optional[str]) -> bool:
    if not ip:
        return False
    return bool(_PRIVATE_IP_RE.match(ip.strip()))


def check_referral(
    db: Session,
    *,
    referrer: models.User,
    new_email: str,
    new_user_id,
    ip: Optional[str],
    ua: Optional[str],
    now: datetime,
) -> GuardResult:
    if is_private_ip(ip):
        return GuardResult(False, "private_ip")
    if referrer.email and referrer.email.lower() == (new_email or "").strip().lower():
        return GuardResult(False, "self_email")
    if new_user_id is not None and referrer.id == new_user_id:
        return GuardResult(False, "self_id")
    if ip:
        if referral_repo.count_accepted_from_ip(db, ip=ip, since=now - IP_WINDOW) >= IP_LIMIT:
            return GuardResult(False, "ip_quota")
        if referral_repo.count_accepted_from_device(db, ip=ip, ua=ua or "", since=now - DEVICE_WINDOW) >= DEVICE_LIMIT:
            return GuardResult(False, "device_quota")
    return GuardResult(True)
