"""
Listing normalization and scoring.

Turns raw marketplace items into ``schemas.Listing`` values with a category,
tags and the deal/competition/trending scores used for ranking.
"""
from __future__ import annotations

import hashlib
import re
from datetime import datetime
from typing import Any, Dict, List, Optional

from final10.db import schemas
from final10.db.models.base import as_utc, now_utc

DEFAULT_TIME_LEFT = 86400

_CATEGORY_RULES = (
    (("iphone", "samsung", "phone"), "electronics"),
    (("nike", "adidas", "shoe"), "fashion"),
    (("laptop", "computer", "macbook"), "electronics"),
    (("book",), "books"),
    (("toy", "game"), "toys"),
)

_TIME_PART_RE = re.compile(r"(\d+)\s*([dhms])", re.IGNORECASE)
_ITEM_ID_RE = re.compile(r"/itm/(?:[^/]+/)?(\d+)")
_PRICE_RE = re.compile(r"[-+]?\d[\d,]*\.?\d*")
_BIDS_RE = re.compile(r"\d+")
_UNIT_SECONDS = {"d": 86400, "h": 3600, "m": 60, "s": 1}


def categorize(title: str) -> str:
    lowered = (title or "").lower()
    for keywords, category in _CATEGORY_RULES:
        if any(k in lowered for k in keywords):
            return category
    return "other"


def extract_tags(title: str) -> List[str]:
    """Lowercased words longer than three characters, in title order, deduplicated."""
    seen: List[str] = []
    for word in re.split(r"\W+", (title or "").lower()):
        if len(word) > 3 and word not in seen:
            seen.append(word)
    return seen


def parse_time_left(text: Optional[str]) -> int:
    """Parse '2d 5h', '3h 20m' or '45m' into seconds; unknown text means one day."""
    if not text:
        return DEFAULT_TIME_LEFT
    parts = _TIME_PART_RE.findall(str(text))
    if not parts:
        return DEFAULT_TIME_LEFT
    return sum(int(value) * _UNIT_SECONDS[unit.lower()] for value, unit in parts)


def parse_price(value: Any) -> float:
    if isinstance(value, (int, float)):
        return float(value)
    match = _PRICE_RE.search(str(value or ""))
    if not match:
        return 0.0
    return float(match.group(0).replace(",", ""))


def parse_bid_count(value: Any) -> int:
    """First whole number in the text ("3 bids" -> 3), else 0."""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return max(0, int(value))
    match = _BIDS_RE.search(str(value or ""))
    return int(match.group(0)) if match else 0


def calculate_deal_potential(price: float, time_remaining: int, bid_count: int) -> int:
    score = 50
    if price < 50:
        score += 20
    elif price < 100:
        score += 15
    elif price < 500:
        score += 10
    if time_remaining < 3600:
        score += 15
    elif time_remaining < 86400:
        score += 10
    if bid_count == 0:
        score += 15
    elif bid_count < 3:
        score += 10
    return max(0, min(100, score))


def calculate_competition_level(bid_count: int) -> str:
    if bid_count == 0:
        return "low"
    if bid_count < 5:
        return "medium"
    return "high"


def calculate_trending_score(time_remaining: int, bid_count: int) -> int:
    score = 30 + min(40, bid_count * 5)
    if time_remaining < 3600:
        score += 20
    elif time_remaining < 86400:
        score += 10
    return min(100, score)


def _external_id(platform: str, raw: Dict[str, Any], title: str, url: Optional[str]) -> str:
    if raw.get("id") not in (None, ""):
        return str(raw["id"])
    if url:
        match = _ITEM_ID_RE.search(url)
        if match:
            return match.group(1)
    digest = hashlib.sha1(f"{platform}|{url or ''}|{title}".encode("utf-8")).hexdigest()
    return digest[:20]


def _time_remaining(raw: Dict[str, Any], now: datetime) -> int:
    ends_at = raw.get("ends_at")
    if ends_at:
        if isinstance(ends_at, str):
            try:
                ends_at = datetime.fromisoformat(ends_at.replace("Z", "+00:00"))
            except ValueError:
                ends_at = None
        if isinstance(ends_at, datetime):
            return max(0, int((as_utc(ends_at) - now).total_seconds()))
    return parse_time_left(raw.get("time_left"))


def normalize_listing(platform: str, raw: Dict[str, Any], now: Optional[datetime] = None) -> Optional[schemas.Listing]:
    """Build a scored Listing from a raw item; items without a title are dropped."""
    now = now or now_utc()
    title = str(raw.get("title") or "").strip()
    if not title:
        return None
    price = parse_price(raw.get("price"))
    bids = parse_bid_count(raw.get("bids"))
    remaining = _time_remaining(raw, now)
    url = raw.get("url")
    return schemas.Listing(
        platform=platform,
        external_id=_external_id(platform, raw, title, url),
        title=title[:300],
        description=str(raw.get("description") or title),
        price=price,
        url=url,
        image_url=raw.get("image"),
        time_remaining=remaining,
        bid_count=bids,
        category=categorize(title),
        condition=str(raw.get("condition") or "good"),
        tags=extract_tags(title),
        deal_potential=calculate_deal_potential(price, remaining, bids),
        competition_level=calculate_competition_level(bids),
        trending_score=calculate_trending_score(remaining, bids),
    )
