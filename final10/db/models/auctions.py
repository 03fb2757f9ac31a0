import uuid
from sqlalchemy import (
    Column, String, Text, DateTime, Boolean, Integer, Float, ForeignKey, Index, UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import UUID, JSONB
from sqlalchemy.orm import relationship
from .base import Base, now_utc, as_utc


class Auction(Base):
    __tablename__ = 'auctions'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    title = Column(String(300), nullable=False)
    description = Column(Text, nullable=False, default='')
    category = Column(String(30), nullable=False, default='other')
    subcategory = Column(String(100), nullable=True)
    condition = Column(String(20), nullable=False, default='good')

    starting_price = Column(Float, nullable=False, default=0.0)
    current_bid = Column(Float, nullable=False, default=0.0)
    buy_it_now_price = Column(Float, nullable=True)
    reserve_price = Column(Float, nullable=True)
    bid_increment = Column(Float, nullable=False, default=1.0)

    start_time = Column(DateTime(timezone=True), nullable=False, default=now_utc)
    end_time = Column(DateTime(timezone=True), nullable=False)
    # active|ended|cancelled|sold
    status = Column(String(20), nullable=False, default='active')

    seller_id = Column(UUID(as_uuid=True), ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    winner_id = Column(UUID(as_uuid=True), ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    bid_count = Column(Integer, nullable=False, default=0)
    views = Column(Integer, nullable=False, default=0)
    is_featured = Column(Boolean, nullable=False, default=False)

    images = Column(JSONB, nullable=False, default=list)
    tags = Column(JSONB, nullable=False, default=list)
    location = Column(JSONB, nullable=True)
    shipping = Column(JSONB, nullable=True)

    # ebay|mercari|facebook|offerup|internal
    source_platform = Column(String(20), nullable=False, default='internal')
    source_external_id = Column(String(120), nullable=True)
    source_url = Column(Text, nullable=True)

    deal_potential = Column(Integer, nullable=False, default=50)
    competition_level = Column(String(10), nullable=False, default='low')
    trending_score = Column(Integer, nullable=False, default=30)

    last_updated = Column(DateTime(timezone=True), default=now_utc)
    created_at = Column(DateTime(timezone=True), default=now_utc)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)

    bids = relationship('Bid', back_populates='auction', cascade='all, delete-orphan', order_by='Bid.created_at')
    watchers = relationship('AuctionWatcher', back_populates='auction', cascade='all, delete-orphan')

    __table_args__ = (
        UniqueConstraint('source_platform', 'source_external_id', name='uq_auctions_source'),
        Index('idx_auctions_status_end', 'status', 'end_time'),
        Index('idx_auctions_category', 'category'),
        Index('idx_auctions_deal', 'deal_potential'),
        Index('idx_auctions_trending', 'trending_score'),
    )

    def time_remaining_seconds(self, now=None) -> int:
        now = now or now_utc()
        remaining = (as_utc(self.end_time) - now).total_seconds()
        return max(0, int(remaining))


class Bid(Base):
    __tablename__ = 'bids'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    auction_id = Column(UUID(as_uuid=True), ForeignKey('auctions.id', ondelete='CASCADE'), nullable=False)
    bidder_id = Column(UUID(as_uuid=True), ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    amount = Column(Float, nullable=False)
    is_winning = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), default=now_utc, nullable=False)

    auction = relationship('Auction', back_populates='bids')

    __table_args__ = (
        Index('idx_bids_auction_amount', 'auction_id', 'amount'),
    )


class AuctionWatcher(Base):
    __tablename__ = 'auction_watchers'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    auction_id = Column(UUID(as_uuid=True), ForeignKey('auctions.id', ondelete='CASCADE'), nullable=False)
    user_id = Column(UUID(as_uuid=True), ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    created_at = Column(DateTime(timezone=True), default=now_utc, nullable=False)

    auction = relationship('Auction', back_populates='watchers')

    __table_args__ = (
        UniqueConstraint('auction_id', 'user_id', name='uq_auction_watchers'),
    )
