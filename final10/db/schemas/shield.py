import uuid
from datetime import datetime
from typing import Optional, List, Dict, Any, Literal
from pydantic import BaseModel, ConfigDict, Field

Decision = Literal["observe", "temp_suspend", "soft_restrict", "auto_block", "suspend_features"]


class IngestRequest(BaseModel):
    type: Optional[str] = None
    savvy_user_id: Optional[str] = None
    level: Optional[str] = None
    context: Dict[str, Any] = {}
    ts: Optional[datetime] = None
    risk_score: Optional[float] = Field(default=None, ge=0, le=1)
    confidence: Optional[float] = Field(default=None, ge=0, le=1)
    risk_factors: List[str] = []
    metadata: Optional[Dict[str, Any]] = None


class IngestResponse(BaseModel):
    success: bool
    event_id: uuid.UUID
    risk_score: float
    action: str
    enforcement_id: Optional[uuid.UUID] = None


class ShieldEventOut(BaseModel):
    id: uuid.UUID
    savvy_user_id: str
    app: str
    level: str
    event_type: str
    context: Dict[str, Any] = {}
    risk_score: float
    risk_factors: List[str] = []
    confidence_level: float
    investigation_status: str
    case_id: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ShieldEnforcementOut(BaseModel):
    id: uuid.UUID
    savvy_user_id: str
    app: str
    level: str
    risk_score: float
    confidence: float
    decision: str
    decision_reason: Optional[str] = None
    duration_hours: Optional[int] = None
    features_affected: List[str] = []
    restrictions: Dict[str, Any] = {}
    status: str
    review_required: bool
    review_status: str
    sla_hours: Optional[int] = None
    sla_deadline: Optional[datetime] = None
    reviewed_at: Optional[datetime] = None
    review_notes: Optional[str] = None
    override_decision: Optional[str] = None
    override_reason: Optional[str] = None
    case_id: Optional[str] = None
    event_id: Optional[uuid.UUID] = None
    false_positive_probability: Optional[float] = None
    webhook_sent: bool
    webhook_status_code: Optional[int] = None
    webhook_retry_count: int
    expires_at: Optional[datetime] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ReviewRequest(BaseModel):
    notes: Optional[str] = None


class OverrideRequest(BaseModel):
    decision: Decision
    reason: str = Field(min_length=1)


class ApiKeyCreateRequest(BaseModel):
    app: str = Field(min_length=1, max_length=60, pattern=r"^[a-z0-9_-]+$")
    name: str = Field(min_length=1, max_length=100)


class ApiKeyOut(BaseModel):
    id: uuid.UUID
    app: str
    name: str
    prefix: Optional[str] = None
    last_four: Optional[str] = None
    status: str
    created_at: datetime
    last_used_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ApiKeyCreateResponse(ApiKeyOut):
    key: str  # one-time secret string
