"""Marketplace provider abstraction used for live listing search."""
from __future__ import annotations

import hashlib
import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

import requests

from final10.db import schemas
from final10.services.scoring import normalize_listing

logger = logging.getLogger(__name__)

DEFAULT_PLATFORMS: Tuple[str, ...] = ("ebay", "mercari", "facebook", "offerup")
_MOCK_TITLES = (
    "Apple iPhone 13 128GB Unlocked",
    "Nike Air Max 90 Running Shoes",
    "MacBook Air M1 Laptop",
    "Vintage Board Game Collection",
    "Hardcover Cookbook Bundle",
    "Samsung Galaxy Watch 5",
)


@dataclass
class MarketplaceConfig:
    provider: str
    platforms: Tuple[str, ...] = DEFAULT_PLATFORMS
    gateway_url: Optional[str] = None
    api_key: Optional[str] = None
    timeout_seconds: float = 10.0
    max_workers: int = 4

    @classmethod
    def from_env(cls) -> "MarketplaceConfig":
        provider = (os.getenv("MARKETPLACE_PROVIDER") or "mock").strip().lower()
        raw_platforms = os.getenv("MARKETPLACE_PLATFORMS")
        platforms = (
            tuple(p.strip().lower() for p in raw_platforms.split(",") if p.strip())
            if raw_platforms
            else DEFAULT_PLATFORMS
        )
        timeout_raw = os.getenv("MARKETPLACE_TIMEOUT_SECONDS", "10")
        try:
            timeout = float(timeout_raw)
        except ValueError:
            logger.warning("Invalid MARKETPLACE_TIMEOUT_SECONDS=%r; using 10", timeout_raw)
            timeout = 10.0
        if provider == "http":
            return cls(
                provider=provider,
                platforms=platforms,
                gateway_url=(os.getenv("MARKETPLACE_GATEWAY_URL") or "").rstrip("/") or None,
                api_key=os.getenv("MARKETPLACE_API_KEY"),
                timeout_seconds=timeout,
            )
        if provider == "mock":
            return cls(provider=provider, platforms=platforms)
        if provider in {"disabled", "none", "off", ""}:
            return cls(provider="disabled", platforms=())
        logger.warning("Unknown MARKETPLACE_PROVIDER '%s'; marketplace search disabled.", provider)
        return cls(provider="disabled", platforms=())

    @property
    def is_enabled(self) -> bool:
        if self.provider == "disabled":
            return False
        if self.provider == "http" and not self.gateway_url:
            logger.warning("MARKETPLACE_GATEWAY_URL must be set for the http provider; disabling search.")
            return False
        return True


class BaseMarketplaceProvider:
    platform: str = "internal"

    def search(self, term: str, limit: int = 5) -> List[schemas.Listing]:
        raise NotImplementedError


class MockMarketplaceProvider(BaseMarketplaceProvider):
    """Deterministic listings derived from a hash of platform and term."""

    def __init__(self, platform: str) -> None:
        self.platform = platform

    def search(self, term: str, limit: int = 5) -> List[schemas.Listing]:
        listings: List[schemas.Listing] = []
        for idx in range(limit):
            digest = hashlib.sha256(f"{self.platform}|{term}|{idx}".encode("utf-8")).digest()
            base_title = _MOCK_TITLES[digest[0] % len(_MOCK_TITLES)]
            raw: Dict[str, Any] = {
                "id": f"{self.platform[:2]}{digest[:6].hex()}",
                "title": f"{term.title()} - {base_title}" if term else base_title,
                "price": round(5 + (int.from_bytes(digest[1:3], "big") % 60000) / 100, 2),
                "bids": digest[3] % 12,
                "time_left": f"{digest[4] % 3}d {digest[5] % 24}h {digest[6] % 60}m",
                "url": f"https://{self.platform}.example.com/itm/{int.from_bytes(digest[7:11], 'big')}",
                "image": f"https://img.example.com/{digest[:4].hex()}.jpg",
            }
            listing = normalize_listing(self.platform, raw)
            if listing is not None:
                listings.append(listing)
        return listings


class HttpMarketplaceProvider(BaseMarketplaceProvider):
    """Reads normalized JSON items from a listing gateway: GET {gateway}/{platform}/search."""

    def __init__(self, platform: str, gateway_url: str, api_key: Optional[str] = None, timeout: float = 10.0) -> None:
        self.platform = platform
        self.gateway_url = gateway_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout

    def search(self, term: str, limit: int = 5) -> List[schemas.Listing]:
        headers = {"Accept": "application/json"}
        if self.api_key:
            headers["X-Api-Key"] = self.api_key
        response = requests.get(
            f"{self.gateway_url}/{self.platform}/search",
            params={"q": term, "limit": limit},
            headers=headers,
            timeout=(3, self.timeout),
        )
        response.raise_for_status()
        payload = response.json()
        items = payload.get("items") if isinstance(payload, dict) else payload
        if not isinstance(items, list):
            raise RuntimeError(f"Unexpected {self.platform} gateway response structure")
        listings: List[schemas.Listing] = []
        for raw in items[:limit]:
            if not isinstance(raw, dict):
                continue
            try:
                listing = normalize_listing(self.platform, raw)
            except (ValueError, TypeError) as exc:
                logger.warning("marketplace_item_skipped: platform=%s error=%s", self.platform, exc)
                continue
            if listing is not None:
                listings.append(listing)
        return listings


def build_providers(config: Optional[MarketplaceConfig] = None) -> List[BaseMarketplaceProvider]:
    config = config or MarketplaceConfig.from_env()
    if not config.is_enabled:
        return []
    if config.provider == "http":
        return [
            HttpMarketplaceProvider(p, config.gateway_url, config.api_key, config.timeout_seconds)
            for p in config.platforms
        ]
    return [MockMarketplaceProvider(p) for p in config.platforms]
