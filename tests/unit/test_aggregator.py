from unittest.mock import MagicMock, patch

import pytest
import requests

from final10.db import models
from final10.services.aggregator import AuctionAggregator
from final10.services.marketplace_providers import (
    BaseMarketplaceProvider,
    HttpMarketplaceProvider,
    MarketplaceConfig,
    MockMarketplaceProvider,
    build_providers,
)


class _BrokenProvider(BaseMarketplaceProvider):
    platform = "broken"

    def search(self, term, limit=5):
        raise requests.ConnectionError("gateway down")


def _aggregator(*extra):
    providers = [MockMarketplaceProvider(p) for p in ("ebay", "mercari", "facebook")]
    return AuctionAggregator(providers=[*providers, *extra])


def test_mock_provider_is_deterministic():
    first = MockMarketplaceProvider("ebay").search("camera", 3)
    second = MockMarketplaceProvider("ebay").search("camera", 3)
    assert [l.external_id for l in first] == [l.external_id for l in second]
    assert len(first) == 3
    assert all(l.platform == "ebay" for l in first)


def test_failed_provider_is_skipped():
    results = _aggregator(_BrokenProvider()).search_all_platforms("camera", 2)
    assert len(results) == 6
    assert {l.platform for l in results} == {"ebay", "mercari", "facebook"}


def test_live_results_are_ranked():
    results = _aggregator().get_live_results("watch", 3)
    keys = [(l.deal_potential + l.trending_score) / 2 for l in results]
    assert keys == sorted(keys, reverse=True)


def test_one_from_each_keeps_platform_order():
    picked = _aggregator().get_one_from_each("phone")
    assert [l.platform for l in picked] == ["ebay", "mercari", "facebook"]


def test_search_and_save_upserts_by_source(db):
    aggregator = _aggregator()
    first = aggregator.search_and_save(db, "lamp", limit_per_platform=2)
    assert first["total_found"] == 6
    assert first["total_saved"] == 6
    aggregator.search_and_save(db, "lamp", limit_per_platform=2)
    assert db.query(models.Auction).count() == 6
    auction = db.query(models.Auction).first()
    assert auction.status == "active"
    assert auction.source_platform in {"ebay", "mercari", "facebook"}


def test_refresh_uses_first_title_words(db):
    aggregator = _aggregator()
    aggregator.search_and_save(db, "lamp", limit_per_platform=1)
    result = aggregator.refresh_auction_data(db)
    assert result["terms"] == ["lamp"]
    assert result["total_saved"] == 9


def test_http_provider_normalizes_gateway_items():
    response = MagicMock()
    response.json.return_value = {"items": [{"id": "1", "title": "Retro lamp", "price": "$12"}, "junk", {"title": ""}]}
    with patch("final10.services.marketplace_providers.requests.get", return_value=response) as get:
        listings = HttpMarketplaceProvider("ebay", "https://gw.example.com/", api_key="k").search("lamp", 5)
    assert [l.title for l in listings] == ["Retro lamp"]
    args, kwargs = get.call_args
    assert args[0] == "https://gw.example.com/ebay/search"
    assert kwargs["headers"]["X-Api-Key"] == "k"
    assert kwargs["params"] == {"q": "lamp", "limit": 5}


def test_http_provider_skips_items_that_fail_to_normalize(caplog):
    response = MagicMock()
    response.json.return_value = {
        "items": [
            {"id": "1", "title": "Retro lamp", "price": "$12", "bids": "3 bids"},
            {"id": "2", "title": "Brass lamp", "price": "$20", "image": ["a.jpg", "b.jpg"]},
            {"id": "3", "title": "Desk lamp", "price": "$8", "bids": "no bids"},
        ]
    }
    with patch("final10.services.marketplace_providers.requests.get", return_value=response):
        with caplog.at_level("WARNING", logger="final10.services.marketplace_providers"):
            listings = HttpMarketplaceProvider("ebay", "https://gw.example.com").search("lamp", 5)
    assert [(l.external_id, l.bid_count) for l in listings] == [("1", 3), ("3", 0)]
    assert "marketplace_item_skipped" in caplog.text


def test_http_provider_rejects_unexpected_shape():
    response = MagicMock()
    response.json.return_value = {"items": "nope"}
    with patch("final10.services.marketplace_providers.requests.get", return_value=response):
        with pytest.raises(RuntimeError):
            HttpMarketplaceProvider("ebay", "https://gw.example.com").search("lamp")


def test_build_providers_from_config():
    assert [p.platform for p in build_providers(MarketplaceConfig(provider="mock", platforms=("ebay",)))] == ["ebay"]
    assert build_providers(MarketplaceConfig(provider="disabled", platforms=())) == []
    assert build_providers(MarketplaceConfig(provider="http", platforms=("ebay",))) == []


def test_config_from_env(monkeypatch):
    monkeypatch.setenv("MARKETPLACE_PROVIDER", "bogus")
    assert MarketplaceConfig.from_env().provider == "disabled"
    monkeypatch.setenv("MARKETPLACE_PROVIDER", "mock")
    monkeypatch.setenv("MARKETPLACE_PLATFORMS", "eBay, mercari")
    assert MarketplaceConfig.from_env().platforms == ("ebay", "mercari")
