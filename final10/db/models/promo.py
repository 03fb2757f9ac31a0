import uuid
from sqlalchemy import (
    Column, String, Text, DateTime, Boolean, Integer, Float, ForeignKey, Index,
)
from sqlalchemy.dialects.postgresql import UUID, JSONB
from sqlalchemy.orm import relationship
from .base import Base, now_utc, as_utc


class PromoCode(Base):
    __tablename__ = 'promo_codes'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    code = Column(String(50), nullable=False, unique=True, index=True)
    description = Column(String(500), nullable=False)
    creator_id = Column(UUID(as_uuid=True), ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    creator_type = Column(String(20), nullable=False, default='influencer')  # influencer|partner|admin
    created_by_id = Column(UUID(as_uuid=True), ForeignKey('users.id', ondelete='SET NULL'), nullable=True)

    discount_type = Column(String(20), nullable=False)  # percentage|fixed|free_shipping
    discount_value = Column(Float, nullable=False, default=0.0)
    usage_limit = Column(Integer, nullable=True)  # null = unlimited
    usage_count = Column(Integer, nullable=False, default=0)
    user_usage_limit = Column(Integer, nullable=False, default=1)

    valid_from = Column(DateTime(timezone=True), nullable=False, default=now_utc)
    valid_until = Column(DateTime(timezone=True), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    is_public = Column(Boolean, nullable=False, default=False)
    minimum_order_value = Column(Float, nullable=False, default=0.0)

    commission_rate = Column(Float, nullable=False, default=0.0)  # percent, 0..100
    total_revenue = Column(Float, nullable=False, default=0.0)
    total_commission = Column(Float, nullable=False, default=0.0)

    tags = Column(JSONB, nullable=False, default=list)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_utc)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)

    usages = relationship('PromoCodeUsage', back_populates='promo_code', cascade='all, delete-orphan')

    __table_args__ = (
        Index('idx_promo_codes_creator_active', 'creator_id', 'is_active'),
        Index('idx_promo_codes_validity', 'valid_from', 'valid_until'),
    )

    @property
    def usage_percentage(self):
        if not self.usage_limit:
            return 0
        return round((self.usage_count or 0) / self.usage_limit * 100)

    @property
    def is_expired(self) -> bool:
        return bool(self.valid_until and as_utc(self.valid_until) < now_utc())

    @property
    def days_until_expiration(self):
        if not self.valid_until:
            return None
        seconds = (as_utc(self.valid_until) - now_utc()).total_seconds()
        return max(0, -int(-seconds // 86400))

    @property
    def is_fully_used(self) -> bool:
        return self.usage_limit is not None and (self.usage_count or 0) >= self.usage_limit

    @property
    def can_be_used(self) -> bool:
        now = now_utc()
        return (
            bool(self.is_active)
            and as_utc(self.valid_from) <= now
            and not self.is_expired
            and not self.is_fully_used
        )


class PromoCodeUsage(Base):
    __tablename__ = 'promo_code_usages'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    promo_code_id = Column(UUID(as_uuid=True), ForeignKey('promo_codes.id', ondelete='CASCADE'), nullable=False)
    user_id = Column(UUID(as_uuid=True), ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    order_id = Column(String(120), nullable=False)
    order_value = Column(Float, nullable=False)
    discount_amount = Column(Float, nullable=False)
    final_amount = Column(Float, nullable=False)
    commission_amount = Column(Float, nullable=False, default=0.0)
    status = Column(String(20), nullable=False, default='applied')  # applied|refunded|cancelled
    ip_address = Column(String(64), nullable=True)
    user_agent = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_utc, nullable=False)

    promo_code = relationship('PromoCode', back_populates='usages')

    __table_args__ = (
        Index('idx_promo_usages_code_user', 'promo_code_id', 'user_id'),
        Index('idx_promo_usages_created', 'created_at'),
    )

    @property
    def savings_percentage(self):
        if not self.order_value:
            return 0
        return round(self.discount_amount / self.order_value * 100)


class Commission(Base):
    __tablename__ = 'commissions'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    creator_id = Column(UUID(as_uuid=True), ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    promo_code_id = Column(UUID(as_uuid=True), ForeignKey('promo_codes.id', ondelete='CASCADE'), nullable=False)
    promo_code_usage_id = Column(UUID(as_uuid=True), ForeignKey('promo_code_usages.id', ondelete='CASCADE'), nullable=False)
    order_value = Column(Float, nullable=False)
    commission_rate = Column(Float, nullable=False)
    commission_amount = Column(Float, nullable=False)
    status = Column(String(20), nullable=False, default='pending')  # pending|approved|paid|cancelled
    payout_method = Column(String(20), nullable=False, default='paypal')
    payout_details = Column(JSONB, nullable=True)
    paid_at = Column(DateTime(timezone=True), nullable=True)
    paid_amount = Column(Float, nullable=True)
    transaction_id = Column(String(120), nullable=True)
    approved_by_id = Column(UUID(as_uuid=True), ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)
    minimum_payout = Column(Float, nullable=False, default=25.0)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_utc, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)

    __table_args__ = (
        Index('idx_commissions_creator_status', 'creator_id', 'status'),
        Index('idx_commissions_code', 'promo_code_id'),
    )

    @property
    def is_ready_for_payout(self) -> bool:
        return self.status == 'approved' and self.commission_amount >= self.minimum_payout
