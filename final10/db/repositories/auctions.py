"""
Auction repository functions.

Listing queries with filters and sorting, the curated views (trending,
ending soon, deals), bids and watchers.
"""
from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import List, Optional, Tuple

from sqlalchemy import String, and_, cast, func, or_
from sqlalchemy.orm import Session

from final10.db import models

SORT_COLUMNS = {
    "endTime": models.Auction.end_time,
    "price": models.Auction.current_bid,
    "dealPotential": models.Auction.deal_potential,
    "trending": models.Auction.trending_score,
}


@dataclass
class AuctionFilters:
    category: Optional[str] = None
    condition: Optional[str] = None
    platform: Optional[str] = None
    search: Optional[str] = None
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    time_remaining_minutes: Optional[int] = None


def get_auction(db: Session, auction_id: uuid.UUID) -> Optional[models.Auction]:
    return db.query(models.Auction).filter(models.Auction.id == auction_id).first()


def get_by_source(db: Session, *, platform: str, external_id: str) -> Optional[models.Auction]:
    return (
        db.query(models.Auction)
        .filter(
            models.Auction.source_platform == platform,
            models.Auction.source_external_id == external_id,
        )
        .first()
    )


def _active(db: Session):
    return db.query(models.Auction).filter(models.Auction.status == "active")


def list_auctions(
    db: Session,
    *,
    filters: AuctionFilters,
    now: datetime,
    sort_by: str = "endTime",
    sort_order: str = "asc",
    skip: int = 0,
    limit: int = 20,
) -> Tuple[List[models.Auction], int]:
    query = _active(db)
    if filters.category:
        query = query.filter(models.Auction.category == filters.category)
    if filters.condition:
        query = query.filter(models.Auction.condition == filters.condition)
    if filters.platform:
        query = query.filter(models.Auction.source_platform == filters.platform)
    if filters.min_price is not None:
        query = query.filter(models.Auction.current_bid >= filters.min_price)
    if filters.max_price is not None:
        query = query.filter(models.Auction.current_bid <= filters.max_price)
    if filters.time_remaining_minutes is not None:
        query = query.filter(
            models.Auction.end_time > now,
            models.Auction.end_time <= now + timedelta(minutes=filters.time_remaining_minutes),
        )
    if filters.search:
        pattern = f"%{filters.search.strip().lower()}%"
        query = query.filter(or_(
            func.lower(models.Auction.title).like(pattern),
            func.lower(models.Auction.description).like(pattern),
            func.lower(cast(models.Auction.tags, String)).like(pattern),
        ))

    column = SORT_COLUMNS.get(sort_by, models.Auction.end_time)
    ordering = column.desc() if sort_order == "desc" else column.asc()
    total = query.count()
    items = query.order_by(ordering, models.Auction.id).offset(skip).limit(limit).all()
    return items, total


def trending(db: Session, *, now: datetime, limit: int = 10) -> List[models.Auction]:
    return (
        _active(db)
        .filter(
            models.Auction.trending_score >= 70,
            models.Auction.end_time > now,
            models.Auction.end_time <= now + timedelta(seconds=600),
        )
        .order_by(models.Auction.trending_score.desc(), models.Auction.deal_potential.desc())
        .limit(limit)
        .all()
    )


def ending_soon(db: Session, *, now: datetime, limit: int = 20) -> List[models.Auction]:
    return (
        _active(db)
        .filter(
            models.Auction.end_time > now,
            models.Auction.end_time <= now + timedelta(seconds=600),
        )
        .order_by(models.Auction.end_time.asc())
        .limit(limit)
        .all()
    )


def deals(db: Session, *, limit: int = 15) -> List[models.Auction]:
    return (
        _active(db)
        .filter(
            models.Auction.deal_potential >= 80,
            models.Auction.competition_level == "low",
        )
        .order_by(models.Auction.deal_potential.desc())
        .limit(limit)
        .all()
    )


FeedCursor = Tuple[int, int, uuid.UUID]


def product_feed(
    db: Session,
    *,
    limit: int,
    cursor: Optional[FeedCursor] = None,
    category: Optional[str] = None,
    trending_first: bool = False,
) -> List[models.Auction]:
    """Active auctions by score, paged by a keyset over the same sort keys."""
    query = _active(db)
    if category:
        query = query.filter(models.Auction.category == category)
    if trending_first:
        keys = (models.Auction.trending_score, models.Auction.deal_potential, models.Auction.id)
    else:
        keys = (models.Auction.deal_potential, models.Auction.trending_score, models.Auction.id)
    if cursor is not None:
        # Rows strictly after the cursor in (key0, key1, id) descending order
        query = query.filter(or_(
            keys[0] < cursor[0],
            and_(keys[0] == cursor[0], keys[1] < cursor[1]),
            and_(keys[0] == cursor[0], keys[1] == cursor[1], keys[2] < cursor[2]),
        ))
    return query.order_by(*(k.desc() for k in keys)).limit(limit).all()


def product_feed_cursor(auction: models.Auction, *, trending_first: bool = False) -> FeedCursor:
    if trending_first:
        return auction.trending_score, auction.deal_potential, auction.id
    return auction.deal_potential, auction.trending_score, auction.id


def expired_active(db: Session, *, now: datetime) -> List[models.Auction]:
    return _active(db).filter(models.Auction.end_time <= now).all()


def active_external_titles(db: Session, *, limit: int = 50) -> List[str]:
    rows = (
        _active(db)
        .filter(models.Auction.source_platform != "internal")
        .with_entities(models.Auction.title)
        .order_by(models.Auction.last_updated.asc())
        .limit(limit)
        .all()
    )
    return [r[0] for r in rows]


def highest_bid(db: Session, *, auction_id: uuid.UUID) -> Optional[models.Bid]:
    return (
        db.query(models.Bid)
        .filter(models.Bid.auction_id == auction_id)
        .order_by(models.Bid.amount.desc(), models.Bid.created_at.asc())
        .first()
    )


def clear_winning_bids(db: Session, *, auction_id: uuid.UUID) -> None:
    (
        db.query(models.Bid)
        .filter(models.Bid.auction_id == auction_id, models.Bid.is_winning.is_(True))
        .update({models.Bid.is_winning: False}, synchronize_session="fetch")
    )


def get_watch(db: Session, *, auction_id: uuid.UUID, user_id: uuid.UUID) -> Optional[models.AuctionWatcher]:
    return (
        db.query(models.AuctionWatcher)
        .filter(
            models.AuctionWatcher.auction_id == auction_id,
            models.AuctionWatcher.user_id == user_id,
        )
        .first()
    )


def count_watchers(db: Session, *, auction_id: uuid.UUID) -> int:
    return db.query(models.AuctionWatcher).filter(models.AuctionWatcher.auction_id == auction_id).count()
