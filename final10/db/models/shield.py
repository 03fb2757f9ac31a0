import uuid
from sqlalchemy import (
    Column, String, Text, DateTime, Boolean, Integer, Float, ForeignKey, Index,
)
from sqlalchemy.dialects.postgresql import UUID, JSONB
from .base import Base, now_utc


class ShieldApiKey(Base):
    __tablename__ = 'shield_api_keys'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    # Identity and secret hash (never store the raw secret)
    key_id = Column(String(64), nullable=False, unique=True)
    key_hash = Column(Text, nullable=False)
    app = Column(String(60), nullable=False)
    name = Column(String(100), nullable=False)
    prefix = Column(String(12), nullable=True)
    last_four = Column(String(4), nullable=True)
    status = Column(String(20), nullable=False, default='active')  # active|revoked
    created_by_id = Column(UUID(as_uuid=True), ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_utc, nullable=False)
    last_used_at = Column(DateTime(timezone=True), nullable=True)
    revoked_at = Column(DateTime(timezone=True), nullable=True)


class ShieldEvent(Base):
    __tablename__ = 'shield_events'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    savvy_user_id = Column(String(120), nullable=False)
    app = Column(String(60), nullable=False)
    level = Column(String(20), nullable=False)  # guest|bronze|silver|gold|vip|platinum
    event_type = Column(String(40), nullable=False)
    context = Column(JSONB, nullable=False, default=dict)
    ts = Column(DateTime(timezone=True), nullable=False, default=now_utc)
    risk_score = Column(Float, nullable=False, default=0.0)
    risk_factors = Column(JSONB, nullable=False, default=list)
    confidence_level = Column(Float, nullable=False, default=0.8)
    # pending|investigating|resolved|escalated
    investigation_status = Column(String(20), nullable=False, default='pending')
    case_id = Column(String(120), nullable=True)
    metadata_json = Column('metadata', JSONB, nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_utc, nullable=False)

    __table_args__ = (
        Index('idx_shield_events_user_created', 'savvy_user_id', 'created_at'),
        Index('idx_shield_events_app_type', 'app', 'event_type'),
        Index('idx_shield_events_risk', 'risk_score'),
    )


class ShieldEnforcement(Base):
    __tablename__ = 'shield_enforcements'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    savvy_user_id = Column(String(120), nullable=False)
    app = Column(String(60), nullable=False)
    level = Column(String(20), nullable=False)
    risk_score = Column(Float, nullable=False)
    confidence = Column(Float, nullable=False, default=0.8)

    # observe|temp_suspend|soft_restrict|auto_block|suspend_features
    decision = Column(String(30), nullable=False)
    decision_reason = Column(Text, nullable=True)
    duration_hours = Column(Integer, nullable=True)  # null = indefinite
    features_affected = Column(JSONB, nullable=False, default=list)
    restrictions = Column(JSONB, nullable=False, default=dict)
    # active|approved|rejected|overridden|expired
    status = Column(String(20), nullable=False, default='active')

    review_required = Column(Boolean, nullable=False, default=True)
    review_status = Column(String(20), nullable=False, default='pending')
    sla_hours = Column(Integer, nullable=True)
    sla_deadline = Column(DateTime(timezone=True), nullable=True)
    reviewed_by_id = Column(UUID(as_uuid=True), ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    reviewed_at = Column(DateTime(timezone=True), nullable=True)
    review_notes = Column(Text, nullable=True)
    override_decision = Column(String(30), nullable=True)
    override_reason = Column(Text, nullable=True)

    event_id = Column(UUID(as_uuid=True), ForeignKey('shield_events.id', ondelete='SET NULL'), nullable=True)
    case_id = Column(String(120), nullable=True)
    false_positive_probability = Column(Float, nullable=True)

    webhook_sent = Column(Boolean, nullable=False, default=False)
    webhook_status_code = Column(Integer, nullable=True)
    webhook_response = Column(Text, nullable=True)
    webhook_retry_count = Column(Integer, nullable=False, default=0)

    expires_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_utc, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)

    __table_args__ = (
        Index('idx_shield_enforcements_user_status', 'savvy_user_id', 'status'),
        Index('idx_shield_enforcements_review', 'review_status', 'sla_deadline'),
    )
