import uuid
from sqlalchemy import Column, String, DateTime, Integer, ForeignKey, Index, CheckConstraint
from sqlalchemy.dialects.postgresql import UUID
from .base import Base, now_utc


class PointsLedger(Base):
    __tablename__ = 'points_ledger'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    type = Column(String(10), nullable=False)  # earn|redeem
    amount = Column(Integer, nullable=False)  # always positive
    source = Column(String(60), nullable=False)
    ref_id = Column(String(120), nullable=True)
    idempotency_key = Column(String(200), nullable=True, unique=True)
    created_at = Column(DateTime(timezone=True), default=now_utc, nullable=False)

    __table_args__ = (
        Index('idx_points_ledger_user_created', 'user_id', 'created_at'),
        CheckConstraint('amount > 0', name='ck_points_ledger_amount_positive'),
    )
