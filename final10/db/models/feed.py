import uuid
from sqlalchemy import Column, String, Text, DateTime, Boolean, Float, Index, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID, JSONB
from .base import Base, now_utc


class FeedItem(Base):
    __tablename__ = 'feed_items'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    source = Column(String(20), nullable=False)  # youtube|reddit|tiktok|instagram|app
    source_id = Column(String(200), nullable=False)
    author = Column(JSONB, nullable=True)
    text = Column(Text, nullable=True)
    permalink = Column(Text, nullable=True)
    media = Column(JSONB, nullable=False, default=list)
    tags = Column(JSONB, nullable=False, default=list)
    products = Column(JSONB, nullable=False, default=list)
    metrics = Column(JSONB, nullable=False, default=dict)
    timestamp = Column(DateTime(timezone=True), nullable=False, default=now_utc)
    rank = Column(Float, nullable=False, default=0.0)
    is_product = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), default=now_utc)

    __table_args__ = (
        UniqueConstraint('source', 'source_id', name='uq_feed_items_source'),
        Index('idx_feed_items_timestamp_rank', 'timestamp', 'rank'),
    )
