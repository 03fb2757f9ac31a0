"""
Auction API endpoints.

Listing, detail, bidding and watching, the curated views, live
cross-marketplace search and the staff maintenance routes. Static paths are
declared before ``/{auction_id}`` so they are not captured by it.
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from final10.api.deps import get_current_user, raise_service_error, require_staff
from final10.audit import AuditAction, safe_log
from final10.db import models, schemas
from final10.db.database import get_db
from final10.db.models.base import now_utc
from final10.db.repositories import auctions as auction_repo
from final10.services import auction_service, daily_tasks, search_quota
from final10.services.aggregator import ONE_FROM_EACH, AuctionAggregator
from final10.services.errors import AccountError, AuctionError
from final10.utils.feature_flags import live_search_enabled
from final10.utils.role_permissions import is_staff

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auctions", tags=["auctions"])


def get_aggregator() -> AuctionAggregator:
    return AuctionAggregator()


def _load(db: Session, auction_id: str) -> models.Auction:
    try:
        parsed = auction_service.parse_auction_id(auction_id)
    except AuctionError as exc:
        raise_service_error(exc)
    auction = auction_repo.get_auction(db, parsed)
    if not auction:
        raise HTTPException(status_code=404, detail="Auction not found")
    return auction


@router.get("", response_model=schemas.AuctionList)
def list_auctions(
    category: Optional[str] = None,
    condition: Optional[str] = None,
    platform: Optional[str] = None,
    search: Optional[str] = None,
    min_price: Optional[float] = Query(None, ge=0),
    max_price: Optional[float] = Query(None, ge=0),
    time_remaining: Optional[int] = Query(None, ge=0, description="Minutes until end"),
    sort_by: str = Query("endTime", pattern="^(endTime|price|dealPotential|trending)$"),
    sort_order: str = Query("asc", pattern="^(asc|desc)$"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
):
    filters = auction_repo.AuctionFilters(
        category=category,
        condition=condition,
        platform=platform,
        search=search,
        min_price=min_price,
        max_price=max_price,
        time_remaining_minutes=time_remaining,
    )
    return auction_service.list_auctions(
        db, filters=filters, sort_by=sort_by, sort_order=sort_order, page=page, limit=limit,
    )


@router.post("", response_model=schemas.AuctionOut, status_code=status.HTTP_201_CREATED)
def create_auction(
    payload: schemas.AuctionCreate,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    try:
        auction = auction_service.create_auction(db, user, payload)
    except AuctionError as exc:
        raise_service_error(exc)
    return auction_service.to_out(auction)


@router.get("/trending/auctions", response_model=List[schemas.AuctionOut])
def trending_auctions(db: Session = Depends(get_db)):
    return auction_service.serialize_many(auction_repo.trending(db, now=now_utc()))


@router.get("/ending-soon/auctions", response_model=List[schemas.AuctionOut])
def ending_soon_auctions(db: Session = Depends(get_db)):
    return auction_service.serialize_many(auction_repo.ending_soon(db, now=now_utc()))


@router.get("/deals/auctions", response_model=List[schemas.AuctionOut])
def deal_auctions(db: Session = Depends(get_db)):
    return auction_service.serialize_many(auction_repo.deals(db))


@router.get("/search-status", response_model=schemas.SearchStatus)
def get_search_status(
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    result = search_quota.search_status(user)
    db.commit()
    return result


@router.post("/watch-ad")
def watch_ad(
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    try:
        result = search_quota.watch_ad(user)
    except AccountError as exc:
        raise_service_error(exc)
    db.commit()
    task = daily_tasks.record_task(db, user, "watchAds")
    search_status = search_quota.search_status(user)
    db.commit()
    return {
        **result,
        "task_points_earned": task["points_awarded"],
        "search_status": search_status,
    }


@router.get("/live-search")
def live_search(
    q: Optional[str] = None,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
    aggregator: AuctionAggregator = Depends(get_aggregator),
):
    if not live_search_enabled():
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Live search is disabled")
    term = (q or "").strip()
    if not term:
        raise HTTPException(status_code=400, detail="Search term is required")
    if not search_quota.can_search(user):
        db.commit()
        raise HTTPException(status_code=status.HTTP_429_TOO_MANY_REQUESTS, detail="Daily search limit reached")

    results = aggregator.get_one_from_each(term)
    aggregator.save_listings(db, results)
    search_quota.record_search(user)
    db.commit()
    task = daily_tasks.record_task(db, user, "searchProduct")
    search_status = search_quota.search_status(user)
    db.commit()
    logger.info("auction_live_search: user=%s term=%r found=%d", user.id, term, len(results))
    by_platform = {listing.platform: listing for listing in results}
    return {
        "search_term": term,
        "results": results,
        "total_found": len(results),
        "platforms": {p: by_platform.get(p) for p in ONE_FROM_EACH},
        "search_status": search_status,
        "user_tier": user.membership_tier,
        "task_points_earned": task["points_awarded"],
    }


@router.post("/refresh")
def refresh_auctions(
    db: Session = Depends(get_db),
    admin: models.User = Depends(require_staff),
    aggregator: AuctionAggregator = Depends(get_aggregator),
):
    result = aggregator.refresh_auction_data(db)
    safe_log(
        db,
        action=AuditAction.AUCTION_REFRESH,
        target_type="auction",
        actor_user_id=admin.id,
        metadata={"terms": result["terms"], "total_saved": result["total_saved"]},
    )
    return result


@router.post("/admin/close-expired")
def close_expired(
    db: Session = Depends(get_db),
    admin: models.User = Depends(require_staff),
):
    closed = auction_service.close_expired_auctions(db)
    safe_log(
        db,
        action=AuditAction.AUCTION_CLOSE_EXPIRED,
        target_type="auction",
        actor_user_id=admin.id,
        metadata={"closed": closed},
    )
    return {"closed": closed}


@router.get("/{auction_id}", response_model=schemas.AuctionDetail)
def get_auction(auction_id: str, db: Session = Depends(get_db)):
    return auction_service.view_auction(db, _load(db, auction_id))


@router.post("/{auction_id}/bid")
def place_bid(
    auction_id: str,
    payload: schemas.BidCreate,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    auction = _load(db, auction_id)
    try:
        return auction_service.place_bid(db, auction, user, payload.amount)
    except AuctionError as exc:
        raise_service_error(exc)


@router.post("/{auction_id}/watch")
def toggle_watch(
    auction_id: str,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    auction = _load(db, auction_id)
    return {"is_watching": auction_service.toggle_watch(db, auction, user)}


@router.post("/{auction_id}/cancel", response_model=schemas.AuctionOut)
def cancel_auction(
    auction_id: str,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    auction = _load(db, auction_id)
    if auction.seller_id != user.id and not is_staff(user):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Only the seller or an admin can cancel")
    try:
        auction = auction_service.cancel_auction(db, auction)
    except AuctionError as exc:
        raise_service_error(exc)
    safe_log(
        db,
        action=AuditAction.AUCTION_CANCEL,
        target_type="auction",
        target_id=auction.id,
        actor_user_id=user.id,
    )
    return auction_service.to_out(auction)
