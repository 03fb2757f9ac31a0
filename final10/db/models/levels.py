import uuid
from sqlalchemy import Column, String, Text, DateTime, Integer, ForeignKey, Index
from sqlalchemy.dialects.postgresql import UUID, JSONB
from sqlalchemy.orm import relationship
from .base import Base, now_utc


class UserLevel(Base):
    __tablename__ = 'user_levels'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey('users.id', ondelete='CASCADE'), nullable=False, unique=True)
    current_level = Column(Integer, nullable=False, default=1)
    total_xp = Column(Integer, nullable=False, default=0)
    xp_to_next_level = Column(Integer, nullable=False, default=100)
    xp_progress = Column(Integer, nullable=False, default=0)
    # Counter dict; replace the whole value on update so the change is flushed
    stats = Column(JSONB, nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True), default=now_utc)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)

    rewards = relationship('LevelReward', back_populates='user_level', cascade='all, delete-orphan', order_by='LevelReward.awarded_at')
    milestones = relationship('LevelMilestone', back_populates='user_level', cascade='all, delete-orphan', order_by='LevelMilestone.achieved_at')

    __table_args__ = (
        Index('idx_user_levels_level_xp', 'current_level', 'total_xp'),
    )


class LevelReward(Base):
    __tablename__ = 'level_rewards'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_level_id = Column(UUID(as_uuid=True), ForeignKey('user_levels.id', ondelete='CASCADE'), nullable=False)
    level = Column(Integer, nullable=False)
    points_awarded = Column(Integer, nullable=False)
    type = Column(String(30), nullable=False, default='level_up')
    awarded_at = Column(DateTime(timezone=True), default=now_utc, nullable=False)

    user_level = relationship('UserLevel', back_populates='rewards')


class LevelMilestone(Base):
    __tablename__ = 'level_milestones'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_level_id = Column(UUID(as_uuid=True), ForeignKey('user_levels.id', ondelete='CASCADE'), nullable=False)
    level = Column(Integer, nullable=False)
    name = Column(String(60), nullable=False)
    description = Column(Text, nullable=True)
    reward = Column(Integer, nullable=False, default=0)
    achieved_at = Column(DateTime(timezone=True), default=now_utc, nullable=False)

    user_level = relationship('UserLevel', back_populates='milestones')
