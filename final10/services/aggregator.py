"""
Cross-marketplace aggregation.

Fans a search term out to every configured provider on a thread pool,
tolerates per-provider failures, ranks the combined listings and upserts
them into the auctions table keyed by (platform, external id).
"""
from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import timedelta
from typing import Dict, List, Optional, Sequence

from sqlalchemy.orm import Session

from final10.db import models, schemas
from final10.db.models.base import now_utc
from final10.db.repositories import auctions as auction_repo
from final10.services.marketplace_providers import BaseMarketplaceProvider, build_providers

logger = logging.getLogger(__name__)

ONE_FROM_EACH = ("ebay", "mercari", "facebook")


def _rank_key(listing: schemas.Listing) -> float:
    return (listing.deal_potential + listing.trending_score) / 2


class AuctionAggregator:
    def __init__(self, providers: Optional[Sequence[BaseMarketplaceProvider]] = None, max_workers: int = 4):
        self.providers = list(providers) if providers is not None else build_providers()
        self.max_workers = max_workers

    def _search_one(self, provider: BaseMarketplaceProvider, term: str, limit: int) -> List[schemas.Listing]:
        try:
            return provider.search(term, limit)
        except Exception as exc:
            logger.warning("marketplace_search_failed: platform=%s term=%r error=%s", provider.platform, term, exc)
            return []

    def search_all_platforms(self, term: str, limit_per_platform: int = 5) -> List[schemas.Listing]:
        if not self.providers:
            return []
        workers = max(1, min(self.max_workers, len(self.providers)))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = [executor.submit(self._search_one, p, term, limit_per_platform) for p in self.providers]
            # Preserve provider order
            results: List[schemas.Listing] = []
            for future in futures:
                results.extend(future.result())
        logger.info("marketplace_search: term=%r providers=%d found=%d", term, len(self.providers), len(results))
        return results

    def get_live_results(self, term: str, limit_per_platform: int = 5) -> List[schemas.Listing]:
        listings = self.search_all_platforms(term, limit_per_platform)
        return sorted(listings, key=_rank_key, reverse=True)

    def get_one_from_each(self, term: str) -> List[schemas.Listing]:
        chosen = [p for p in self.providers if p.platform in ONE_FROM_EACH]
        chosen.sort(key=lambda p: ONE_FROM_EACH.index(p.platform))
        if not chosen:
            return []
        picked: List[schemas.Listing] = []
        with ThreadPoolExecutor(max_workers=len(chosen)) as executor:
            futures = [executor.submit(self._search_one, p, term, 1) for p in chosen]
            for future in futures:
                results = future.result()
                if results:
                    picked.append(results[0])
        return picked

    def save_listings(self, db: Session, listings: Sequence[schemas.Listing]) -> List[models.Auction]:
        saved: List[models.Auction] = []
        for listing in listings:
            try:
                saved.append(self._upsert(db, listing))
                db.commit()
            except Exception:
                db.rollback()
                logger.warning("listing_save_failed: platform=%s id=%s", listing.platform, listing.external_id, exc_info=True)
        return saved

    def _upsert(self, db: Session, listing: schemas.Listing) -> models.Auction:
        now = now_utc()
        end_time = now + timedelta(seconds=listing.time_remaining)
        images = [{"url": listing.image_url, "alt": listing.title, "is_primary": True}] if listing.image_url else []
        auction = auction_repo.get_by_source(db, platform=listing.platform, external_id=listing.external_id)
        if auction is None:
            auction = models.Auction(
                source_platform=listing.platform,
                source_external_id=listing.external_id,
                starting_price=listing.price,
                start_time=now,
                status="active",
            )
            db.add(auction)
        auction.title = listing.title
        auction.description = listing.description
        auction.category = listing.category
        auction.condition = listing.condition if listing.condition in {"new", "like-new", "good", "fair", "poor"} else "good"
        auction.current_bid = listing.price
        auction.end_time = end_time
        auction.bid_count = listing.bid_count
        auction.images = images
        auction.tags = list(listing.tags)
        auction.source_url = listing.url
        auction.deal_potential = listing.deal_potential
        auction.competition_level = listing.competition_level
        auction.trending_score = listing.trending_score
        auction.last_updated = now
        db.flush()
        return auction

    def search_and_save(self, db: Session, term: str, limit_per_platform: int = 5) -> Dict[str, object]:
        live = self.get_live_results(term, limit_per_platform)
        saved = self.save_listings(db, live)
        return {
            "live_results": live,
            "saved": saved,
            "total_found": len(live),
            "total_saved": len(saved),
        }

    def refresh_auction_data(self, db: Session, max_terms: int = 10) -> Dict[str, object]:
        """Re-search the first title word of active external listings."""
        terms: List[str] = []
        for title in auction_repo.active_external_titles(db):
            words = title.split()
            if not words:
                continue
            word = words[0].lower()
            if word not in terms:
                terms.append(word)
            if len(terms) >= max_terms:
                break
        total_saved = 0
        for term in terms:
            result = self.search_and_save(db, term, limit_per_platform=3)
            total_saved += int(result["total_saved"])
        logger.info("auction_refresh: terms=%d saved=%d", len(terms), total_saved)
        return {"terms": terms, "total_saved": total_saved}
