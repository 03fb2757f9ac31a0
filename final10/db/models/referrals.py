import uuid
from sqlalchemy import Column, String, Text, DateTime, ForeignKey, Index
from sqlalchemy.dialects.postgresql import UUID
from .base import Base, now_utc


class ReferralLog(Base):
    __tablename__ = 'referral_logs'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    referrer_id = Column(UUID(as_uuid=True), ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    referee_id = Column(UUID(as_uuid=True), ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    ip = Column(String(64), nullable=True)
    ua = Column(Text, nullable=True)
    status = Column(String(20), nullable=False)  # accepted|blocked|capped
    reason = Column(String(60), nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_utc, nullable=False)

    __table_args__ = (
        Index('idx_referral_logs_referrer_created', 'referrer_id', 'created_at'),
        Index('idx_referral_logs_ip_created', 'ip', 'created_at'),
    )
