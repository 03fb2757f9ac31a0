"""
Auction service: creation, bidding, watching and lifecycle.
"""
from __future__ import annotations

import logging
import math
import uuid
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from final10.db import models, schemas
from final10.db.models.base import as_utc, now_utc
from final10.db.repositories import auctions as auction_repo
from final10.services import points_service
from final10.services.errors import AuctionError
from final10.services.scoring import calculate_competition_level, calculate_trending_score
from final10.services.search_quota import is_premium

logger = logging.getLogger(__name__)

BID_POINTS = 5
BID_FEE_POINTS = 10


def to_out(auction: models.Auction, now: Optional[datetime] = None) -> schemas.AuctionOut:
    out = schemas.AuctionOut.model_validate(auction)
    return out.model_copy(update={"time_remaining": auction.time_remaining_seconds(now)})


def to_detail(db: Session, auction: models.Auction, now: Optional[datetime] = None) -> schemas.AuctionDetail:
    base = to_out(auction, now).model_dump()
    return schemas.AuctionDetail(
        **base,
        bids=[schemas.BidOut.model_validate(b) for b in sorted(auction.bids, key=lambda b: b.amount, reverse=True)],
        watcher_count=auction_repo.count_watchers(db, auction_id=auction.id),
    )


def list_auctions(
    db: Session,
    *,
    filters: auction_repo.AuctionFilters,
    sort_by: str,
    sort_order: str,
    page: int,
    limit: int,
) -> Dict[str, object]:
    now = now_utc()
    page = max(1, page)
    limit = max(1, min(100, limit))
    items, total = auction_repo.list_auctions(
        db, filters=filters, now=now, sort_by=sort_by, sort_order=sort_order, skip=(page - 1) * limit, limit=limit,
    )
    return {
        "auctions": [to_out(a, now) for a in items],
        "pagination": {"current": page, "pages": math.ceil(total / limit) if total else 0, "total": total, "limit": limit},
    }


def view_auction(db: Session, auction: models.Auction) -> schemas.AuctionDetail:
    auction.views = (auction.views or 0) + 1
    db.commit()
    db.refresh(auction)
    return to_detail(db, auction)


def create_auction(db: Session, seller: models.User, payload: schemas.AuctionCreate) -> models.Auction:
    now = now_utc()
    start = as_utc(payload.start_time) if payload.start_time else now
    end = as_utc(payload.end_time)
    if end <= now:
        raise AuctionError("End time must be in the future")
    if end <= start:
        raise AuctionError("End time must be after start time")
    remaining = int((end - now).total_seconds())
    auction = models.Auction(
        title=payload.title.strip(),
        description=payload.description,
        category=payload.category,
        subcategory=payload.subcategory,
        condition=payload.condition,
        starting_price=payload.starting_price,
        current_bid=payload.starting_price,
        buy_it_now_price=payload.buy_it_now_price,
        reserve_price=payload.reserve_price,
        bid_increment=payload.bid_increment,
        start_time=start,
        end_time=end,
        status="active",
        seller_id=seller.id,
        images=[img.model_dump() for img in payload.images],
        tags=list(payload.tags),
        location=payload.location,
        shipping=payload.shipping,
        source_platform="internal",
        competition_level="low",
        trending_score=calculate_trending_score(remaining, 0),
        last_updated=now,
    )
    db.add(auction)
    db.commit()
    db.refresh(auction)
    logger.info("auction_created: id=%s seller=%s", auction.id, seller.id)
    return auction


def place_bid(db: Session, auction: models.Auction, bidder: models.User, amount: float) -> Dict[str, object]:
    now = now_utc()
    if auction.status != "active":
        raise AuctionError("Auction is not active")
    if as_utc(auction.end_time) <= now:
        raise AuctionError("Auction has ended")
    if auction.seller_id is not None and auction.seller_id == bidder.id:
        raise AuctionError("You cannot bid on your own auction")
    if amount <= auction.current_bid:
        raise AuctionError("Bid must be higher than current bid")
    charge_fee = not is_premium(bidder, now)
    if charge_fee and (bidder.points_balance or 0) < BID_FEE_POINTS:
        raise AuctionError(f"Insufficient points to place bid ({BID_FEE_POINTS} required)")

    auction_repo.clear_winning_bids(db, auction_id=auction.id)
    bid = models.Bid(auction_id=auction.id, bidder_id=bidder.id, amount=amount, is_winning=True)
    db.add(bid)
    auction.current_bid = amount
    auction.bid_count = (auction.bid_count or 0) + 1
    auction.competition_level = calculate_competition_level(auction.bid_count)
    auction.last_updated = now
    if auction_repo.get_watch(db, auction_id=auction.id, user_id=bidder.id) is None:
        db.add(models.AuctionWatcher(auction_id=auction.id, user_id=bidder.id))
    db.flush()

    points_service.award_points(db, bidder, BID_POINTS, "bid", ref_id=str(bid.id))
    if charge_fee:
        points_service.spend_points(db, bidder, BID_FEE_POINTS, "bid_fee", ref_id=str(bid.id))
    db.commit()
    db.refresh(auction)
    logger.info("bid_placed: auction=%s bidder=%s amount=%s", auction.id, bidder.id, amount)
    return {
        "bid": schemas.BidOut.model_validate(bid),
        "current_bid": auction.current_bid,
        "bid_count": auction.bid_count,
        "points_balance": bidder.points_balance,
    }


def toggle_watch(db: Session, auction: models.Auction, user: models.User) -> bool:
    watch = auction_repo.get_watch(db, auction_id=auction.id, user_id=user.id)
    if watch is not None:
        db.delete(watch)
        db.commit()
        return False
    db.add(models.AuctionWatcher(auction_id=auction.id, user_id=user.id))
    db.commit()
    return True


def cancel_auction(db: Session, auction: models.Auction) -> models.Auction:
    if auction.status != "active":
        raise AuctionError("Only active auctions can be cancelled")
    auction.status = "cancelled"
    db.commit()
    db.refresh(auction)
    return auction


def close_expired_auctions(db: Session, now: Optional[datetime] = None) -> int:
    """Settle every active auction past its end time; returns how many closed."""
    now = now or now_utc()
    closed = 0
    for auction in auction_repo.expired_active(db, now=now):
        top = auction_repo.highest_bid(db, auction_id=auction.id)
        reserve_met = top is not None and (auction.reserve_price is None or top.amount >= auction.reserve_price)
        if reserve_met:
            auction.status = "sold"
            auction.winner_id = top.bidder_id
        else:
            auction.status = "ended"
        closed += 1
    db.commit()
    if closed:
        logger.info("auctions_closed: count=%d", closed)
    return closed


def parse_auction_id(raw: str) -> uuid.UUID:
    try:
        return uuid.UUID(str(raw))
    except ValueError as exc:
        raise AuctionError("Invalid auction id", status_code=422) from exc


def serialize_many(auctions: List[models.Auction]) -> List[schemas.AuctionOut]:
    now = now_utc()
    return [to_out(a, now) for a in auctions]
