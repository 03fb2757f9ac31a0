from datetime import datetime, timedelta, UTC

import pytest

from final10.services import scoring


@pytest.mark.parametrize(
    "title,expected",
    [
        ("Apple iPhone 13 Pro", "electronics"),
        ("Samsung Galaxy S22", "electronics"),
        ("Nike Air Max 90", "fashion"),
        ("Running shoes size 10", "fashion"),
        ("MacBook Pro 2021", "electronics"),
        ("Harry Potter book set", "books"),
        ("LEGO toy castle", "toys"),
        ("Board game bundle", "toys"),
        ("Oak dining table", "other"),
        ("", "other"),
    ],
)
def test_categorize(title, expected):
    assert scoring.categorize(title) == expected


def test_extract_tags_keeps_long_unique_words_in_order():
    assert scoring.extract_tags("The New iPhone, the NEW case and more") == ["iphone", "case", "more"]


@pytest.mark.parametrize(
    "text,seconds",
    [
        ("2d 5h", 2 * 86400 + 5 * 3600),
        ("3h 20m", 3 * 3600 + 20 * 60),
        ("45m", 45 * 60),
        ("10s", 10),
        ("ending soon", scoring.DEFAULT_TIME_LEFT),
        (None, scoring.DEFAULT_TIME_LEFT),
    ],
)
def test_parse_time_left(text, seconds):
    assert scoring.parse_time_left(text) == seconds


@pytest.mark.parametrize(
    "value,expected",
    [(12, 12.0), (3.5, 3.5), ("$1,299.99", 1299.99), ("US $40", 40.0), ("free", 0.0), (None, 0.0)],
)
def test_parse_price(value, expected):
    assert scoring.parse_price(value) == expected


@pytest.mark.parametrize(
    "value,expected",
    [(7, 7), (2.0, 2), ("3 bids", 3), ("12", 12), ("no bids yet", 0), ("", 0), (None, 0)],
)
def test_parse_bid_count(value, expected):
    assert scoring.parse_bid_count(value) == expected


def test_normalize_listing_reads_bid_text():
    listing = scoring.normalize_listing("ebay", {"title": "Retro lamp", "price": "$12", "bids": "3 bids"})
    assert listing.bid_count == 3
    assert listing.competition_level == "medium"


def test_deal_potential_rewards_cheap_ending_unbid_items():
    assert scoring.calculate_deal_potential(20, 600, 0) == 100
    assert scoring.calculate_deal_potential(75, 7200, 2) == 50 + 15 + 10 + 10
    assert scoring.calculate_deal_potential(1000, 3 * 86400, 9) == 50


def test_competition_level_thresholds():
    assert scoring.calculate_competition_level(0) == "low"
    assert scoring.calculate_competition_level(4) == "medium"
    assert scoring.calculate_competition_level(5) == "high"


def test_trending_score_caps_bid_bonus_and_total():
    assert scoring.calculate_trending_score(2 * 86400, 0) == 30
    assert scoring.calculate_trending_score(7200, 3) == 30 + 15 + 10
    assert scoring.calculate_trending_score(60, 20) == 90
    assert scoring.calculate_trending_score(60, 100) == 90


def test_normalize_listing_drops_items_without_title():
    assert scoring.normalize_listing("ebay", {"title": "  ", "price": 10}) is None


def test_normalize_listing_scores_and_extracts_item_id():
    listing = scoring.normalize_listing(
        "ebay",
        {
            "title": "Nike Air Max running shoes",
            "price": "$45.00",
            "bids": 0,
            "time_left": "30m",
            "url": "https://www.ebay.com/itm/nike-air-max/1234567890",
        },
    )
    assert listing.external_id == "1234567890"
    assert listing.category == "fashion"
    assert listing.price == 45.0
    assert listing.time_remaining == 1800
    assert listing.deal_potential == 100
    assert listing.competition_level == "low"
    assert listing.description == "Nike Air Max running shoes"


def test_normalize_listing_uses_end_time_when_present():
    now = datetime(2026, 1, 5, 12, 0, tzinfo=UTC)
    ends = (now + timedelta(hours=2)).isoformat()
    listing = scoring.normalize_listing("mercari", {"id": 77, "title": "Vintage camera", "ends_at": ends}, now=now)
    assert listing.external_id == "77"
    assert listing.time_remaining == 7200


def test_normalize_listing_hashes_id_when_missing():
    first = scoring.normalize_listing("facebook", {"title": "Couch", "url": "https://fb.com/x"})
    second = scoring.normalize_listing("facebook", {"title": "Couch", "url": "https://fb.com/x"})
    assert first.external_id == second.external_id
    assert len(first.external_id) == 20
