import uuid
from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel, ConfigDict


class LedgerEntry(BaseModel):
    id: uuid.UUID
    type: str
    amount: int
    source: str
    ref_id: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TrialState(BaseModel):
    active: bool
    ends_at: Optional[datetime] = None


class PointsSummary(BaseModel):
    points_balance: int
    lifetime_points_earned: int
    badges: List[str]
    recent: List[LedgerEntry]
    trial: TrialState


class RedeemRequest(BaseModel):
    # Validated in the router so missing/invalid values map to 400
    amount: Optional[object] = None
    auction_id: Optional[str] = None
    idempotency_key: Optional[str] = None


class RedeemResponse(BaseModel):
    ok: bool
    idempotent: bool = False
    discount_usd: float
    new_balance: int


class LeaderboardEntry(BaseModel):
    username: str
    lifetime_points_earned: int
    badges: List[str] = []

    model_config = ConfigDict(from_attributes=True)
