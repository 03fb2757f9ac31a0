import uuid
from sqlalchemy import Column, String, DateTime, Boolean, Integer, ForeignKey, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from .base import Base, now_utc


class DailyTaskProgress(Base):
    __tablename__ = 'daily_task_progress'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    day = Column(String(10), nullable=False)  # YYYY-MM-DD (UTC)

    daily_login = Column(Integer, nullable=False, default=0)
    search_product = Column(Integer, nullable=False, default=0)
    watch_ads = Column(Integer, nullable=False, default=0)
    share_app = Column(Integer, nullable=False, default=0)
    share_product = Column(Integer, nullable=False, default=0)
    social_post = Column(Integer, nullable=False, default=0)
    use_video_scanner = Column(Integer, nullable=False, default=0)
    search_local_deals = Column(Integer, nullable=False, default=0)

    points_earned = Column(Integer, nullable=False, default=0)
    all_tasks_completed = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), default=now_utc)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)

    __table_args__ = (
        UniqueConstraint('user_id', 'day', name='uq_daily_task_progress_user_day'),
    )
