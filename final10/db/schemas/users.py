import re
import uuid
from datetime import datetime
from typing import Optional, List, Dict
from pydantic import BaseModel, ConfigDict, Field, field_validator

_USERNAME_RE = re.compile(r"^[A-Za-z0-9_.-]+$")


class SignupRequest(BaseModel):
    first_name: str = ""
    last_name: str = ""
    username: str = ""
    email: str = ""
    password: str = ""
    referral_code: Optional[str] = None


class LoginRequest(BaseModel):
    email: str
    password: str


class UserPublic(BaseModel):
    id: uuid.UUID
    first_name: str
    last_name: str
    username: str
    email: str
    role: str
    membership_tier: str
    subscription_expires: Optional[datetime] = None
    points_balance: int
    lifetime_points_earned: int
    badges: List[str] = []
    trial_active: bool
    trial_ends_at: Optional[datetime] = None
    referral_code: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class AuthResponse(BaseModel):
    token: str
    user: UserPublic


class UserUpdate(BaseModel):
    first_name: Optional[str] = Field(default=None, min_length=1, max_length=80)
    last_name: Optional[str] = Field(default=None, min_length=1, max_length=80)
    username: Optional[str] = None

    @field_validator("username")
    @classmethod
    def _validate_username(cls, v: Optional[str]):
        if v is None:
            return v
        cleaned = v.strip()
        if not 3 <= len(cleaned) <= 30:
            raise ValueError("username must be 3..30 characters")
        if not _USERNAME_RE.match(cleaned):
            raise ValueError("username may contain letters, digits, '.', '_' and '-'")
        return cleaned


class UpgradeRequest(BaseModel):
    months: int = Field(default=1, ge=1, le=24)


class RoleUpdateRequest(BaseModel):
    role: str
    permissions: Dict[str, bool] = {}


class GrantPointsRequest(BaseModel):
    amount: int = Field(gt=0)
    reason: str = Field(min_length=1, max_length=200)


class ReferralSummary(BaseModel):
    referral_code: Optional[str]
    referral_link: str
    accepted_total: int
    accepted_today: int
    referred_by: Optional[uuid.UUID] = None


class SearchStatus(BaseModel):
    can_search: bool
    remaining: int  # -1 means unlimited
    searches_today: int
    ads_watched_today: int
    max_ads_per_day: int
    searches_per_ad: int
    membership_tier: str


