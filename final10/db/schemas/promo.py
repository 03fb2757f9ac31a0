import re
import uuid
from datetime import datetime
from typing import Optional, List, Literal
from pydantic import BaseModel, ConfigDict, Field

_CODE_RE = re.compile(r"^[A-Z0-9_-]+$")

DiscountType = Literal["percentage", "fixed", "free_shipping"]
CreatorType = Literal["influencer", "partner", "admin"]


def clean_code(v: Optional[str]) -> str:
    cleaned = (v or "").strip().upper()
    if not 3 <= len(cleaned) <= 50 or not _CODE_RE.match(cleaned):
        raise ValueError("Promo code must be 3-50 characters of A-Z, 0-9, '_' or '-'")
    return cleaned


class PromoCodeCreate(BaseModel):
    # Required fields and the code format are checked in the service so they map to 400
    code: Optional[str] = None
    description: Optional[str] = Field(default=None, max_length=500)
    discount_type: Optional[DiscountType] = None
    discount_value: Optional[float] = Field(default=None, ge=0)
    usage_limit: Optional[int] = Field(default=None, ge=1)
    user_usage_limit: int = Field(default=1, ge=1)
    valid_from: Optional[datetime] = None
    valid_until: Optional[datetime] = None
    is_active: bool = True
    is_public: bool = False
    minimum_order_value: float = Field(default=0, ge=0)
    commission_rate: float = Field(default=0, ge=0, le=100)
    tags: List[str] = []
    notes: Optional[str] = None


class AdminPromoCodeCreate(PromoCodeCreate):
    creator_id: Optional[uuid.UUID] = None
    creator_type: CreatorType = "admin"


class PromoCodeUpdate(BaseModel):
    description: Optional[str] = Field(default=None, min_length=1, max_length=500)
    discount_type: Optional[DiscountType] = None
    discount_value: Optional[float] = Field(default=None, ge=0)
    usage_limit: Optional[int] = Field(default=None, ge=1)
    user_usage_limit: Optional[int] = Field(default=None, ge=1)
    valid_from: Optional[datetime] = None
    valid_until: Optional[datetime] = None
    is_active: Optional[bool] = None
    is_public: Optional[bool] = None
    minimum_order_value: Optional[float] = Field(default=None, ge=0)
    commission_rate: Optional[float] = Field(default=None, ge=0, le=100)
    tags: Optional[List[str]] = None
    notes: Optional[str] = None


class AdminPromoCodeUpdate(PromoCodeUpdate):
    creator_type: Optional[CreatorType] = None


class PromoCodeOut(BaseModel):
    id: uuid.UUID
    code: str
    description: str
    creator_id: uuid.UUID
    creator_type: str
    discount_type: str
    discount_value: float
    usage_limit: Optional[int] = None
    usage_count: int
    user_usage_limit: int
    valid_from: datetime
    valid_until: Optional[datetime] = None
    is_active: bool
    is_public: bool
    minimum_order_value: float
    commission_rate: float
    total_revenue: float
    total_commission: float
    tags: List[str] = []
    usage_percentage: int = 0
    days_until_expiration: Optional[int] = None
    is_expired: bool = False
    can_be_used: bool = False
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class PublicPromoCode(BaseModel):
    code: str
    description: str
    discount_type: str
    discount_value: float
    minimum_order_value: float
    valid_until: Optional[datetime] = None
    usage_count: int

    model_config = ConfigDict(from_attributes=True)


class ValidateRequest(BaseModel):
    code: Optional[str] = None
    order_value: float = Field(default=0, ge=0)


class ApplyRequest(ValidateRequest):
    order_id: str = Field(min_length=1, max_length=120)


class DiscountResult(BaseModel):
    discount: float
    final_amount: float
    savings: float


class UsageOut(BaseModel):
    id: uuid.UUID
    promo_code_id: uuid.UUID
    user_id: uuid.UUID
    order_id: str
    order_value: float
    discount_amount: float
    final_amount: float
    commission_amount: float
    status: str
    savings_percentage: int = 0
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CommissionOut(BaseModel):
    id: uuid.UUID
    creator_id: uuid.UUID
    promo_code_id: uuid.UUID
    promo_code_usage_id: uuid.UUID
    order_value: float
    commission_rate: float
    commission_amount: float
    status: str
    payout_method: str
    paid_at: Optional[datetime] = None
    paid_amount: Optional[float] = None
    transaction_id: Optional[str] = None
    approved_at: Optional[datetime] = None
    minimum_payout: float
    is_ready_for_payout: bool = False
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PayCommissionRequest(BaseModel):
    paid_amount: Optional[float] = Field(default=None, gt=0)
    transaction_id: str = Field(min_length=1, max_length=120)
    payout_method: Optional[Literal["paypal", "bank_transfer", "check", "points"]] = None
