import uuid
from sqlalchemy import Column, String, DateTime, Boolean, Integer, ForeignKey, Index
from sqlalchemy.dialects.postgresql import UUID, JSONB
from .base import Base, now_utc


class User(Base):
    __tablename__ = 'users'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    first_name = Column(String(80), nullable=False)
    last_name = Column(String(80), nullable=False)
    username = Column(String(30), nullable=False, unique=True, index=True)
    email = Column(String, nullable=False, unique=True, index=True)
    password_hash = Column(String, nullable=False)

    # user|admin|superadmin; superadmin passes every permission check
    role = Column(String(20), nullable=False, default='user')
    can_manage_shield = Column(Boolean, nullable=False, default=False)
    can_manage_users = Column(Boolean, nullable=False, default=False)
    can_manage_promotions = Column(Boolean, nullable=False, default=False)
    can_manage_payments = Column(Boolean, nullable=False, default=False)
    can_view_analytics = Column(Boolean, nullable=False, default=False)

    # free|premium|pro
    membership_tier = Column(String(20), nullable=False, default='free')
    subscription_expires = Column(DateTime(timezone=True), nullable=True)

    # Spendable balance and monotonic lifetime total, both driven by points_ledger
    points_balance = Column(Integer, nullable=False, default=0)
    lifetime_points_earned = Column(Integer, nullable=False, default=0)
    badges = Column(JSONB, nullable=False, default=list)

    trial_active = Column(Boolean, nullable=False, default=False)
    trial_ends_at = Column(DateTime(timezone=True), nullable=True)
    last_daily_claim = Column(String(10), nullable=True)  # YYYY-MM-DD (UTC)

    referral_code = Column(String(64), nullable=True, unique=True)
    referral_code_used = Column(String(64), nullable=True)
    referred_by_id = Column(UUID(as_uuid=True), ForeignKey('users.id', ondelete='SET NULL'), nullable=True)

    # Search quota counters, reset when the stored day differs from today
    search_day = Column(String(10), nullable=True)
    searches_today = Column(Integer, nullable=False, default=0)
    daily_search_limit = Column(Integer, nullable=False, default=5)
    ad_day = Column(String(10), nullable=True)
    ads_watched_today = Column(Integer, nullable=False, default=0)
    max_ads_per_day = Column(Integer, nullable=False, default=3)
    searches_per_ad = Column(Integer, nullable=False, default=5)

    last_active = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_utc)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)

    __table_args__ = (
        Index('idx_users_lifetime_points', 'lifetime_points_earned'),
        Index('idx_users_role', 'role'),
    )
