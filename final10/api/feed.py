"""
Social feed endpoints: curated product posts, user submissions and the
swipe-style auction feed.
"""
import hashlib
import logging
import uuid
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from final10.api.deps import get_current_user, require_staff
from final10.audit import AuditAction, safe_log
from final10.db import models, schemas
from final10.db.database import get_db
from final10.db.models.base import as_utc, now_utc
from final10.db.repositories import auctions as auction_repo
from final10.db.repositories import feed as feed_repo
from final10.services import points_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/feed", tags=["feed"])

MAX_PAGE = 50
SUBMIT_POINTS = 100
REQUIRED_HASHTAGS = ("#final10", "#stayearning", "#staysavvy")


@router.get("", response_model=schemas.FeedPage)
def get_feed(
    source: str = "all",
    limit: int = Query(20, ge=1),
    cursor: Optional[datetime] = None,
    tags: Optional[str] = None,
    db: Session = Depends(get_db),
):
    limit = min(limit, MAX_PAGE)
    tag_list = [t.strip() for t in tags.split(",") if t.strip()] if tags else None
    items = feed_repo.list_product_items(db, source=source, tags=tag_list, cursor=as_utc(cursor), limit=limit)
    return {"items": items, "next_cursor": items[-1].timestamp if items else None}


@router.post("/items")
def import_items(
    items: List[schemas.FeedItemIn],
    db: Session = Depends(get_db),
    admin: models.User = Depends(require_staff),
):
    created, updated = feed_repo.upsert_items(db, items=items)
    safe_log(
        db,
        action=AuditAction.FEED_IMPORT,
        target_type="feed",
        actor_user_id=admin.id,
        metadata={"created": created, "updated": updated},
    )
    return {"created": created, "updated": updated}


@router.post("/submit")
def submit_post(
    payload: schemas.FeedSubmitRequest,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    caption = payload.caption.lower()
    missing = [tag for tag in REQUIRED_HASHTAGS if tag not in caption]
    if missing:
        raise HTTPException(status_code=400, detail=f"Caption must include {', '.join(REQUIRED_HASHTAGS)}")
    url = payload.url.strip()
    digest = hashlib.sha256(url.encode("utf-8")).hexdigest()[:40]
    _entry, created = points_service.award_points(
        db,
        user,
        SUBMIT_POINTS,
        "feed_submit",
        ref_id=url[:120],
        idempotency_key=f"feed_submit_{user.id}_{digest}",
    )
    db.commit()
    message = "Post submitted, points awarded" if created else "Post already rewarded"
    logger.info("feed_submit: user=%s created=%s", user.id, created)
    return {"message": message, "new_balance": user.points_balance}


def _feed_card(auction: models.Auction, now: datetime) -> dict:
    images = auction.images or []
    primary = next((img for img in images if img.get("is_primary")), images[0] if images else None)
    return {
        "id": auction.id,
        "title": auction.title,
        "image": primary.get("url") if primary else None,
        "price": auction.current_bid,
        "platform": auction.source_platform,
        "url": auction.source_url,
        "category": auction.category,
        "time_remaining": auction.time_remaining_seconds(now),
        "deal_potential": auction.deal_potential,
        "trending_score": auction.trending_score,
        "competition_level": auction.competition_level,
        "bid_count": auction.bid_count,
        "tags": auction.tags or [],
    }


def _parse_feed_cursor(cursor: Optional[str]) -> Optional[auction_repo.FeedCursor]:
    if not cursor:
        return None
    try:
        first, second, auction_id = cursor.split(":")
        return int(first), int(second), uuid.UUID(auction_id)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid cursor")


@router.get("/product-feed")
def product_feed(
    limit: int = Query(20, ge=1),
    cursor: Optional[str] = None,
    category: Optional[str] = None,
    trending: bool = False,
    db: Session = Depends(get_db),
):
    limit = min(limit, MAX_PAGE)
    items = auction_repo.product_feed(
        db, limit=limit, cursor=_parse_feed_cursor(cursor), category=category, trending_first=trending,
    )
    now = now_utc()
    next_cursor = None
    if items:
        first, second, auction_id = auction_repo.product_feed_cursor(items[-1], trending_first=trending)
        next_cursor = f"{first}:{second}:{auction_id}"
    return {"items": [_feed_card(a, now) for a in items], "next_cursor": next_cursor}
