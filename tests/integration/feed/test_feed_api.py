from datetime import timedelta

from final10.db import models
from final10.db.models.base import now_utc


def _item(source_id, hours_ago, **overrides):
    item = {
        "source": "youtube",
        "source_id": source_id,
        "text": f"Deal {source_id}",
        "tags": ["Tech"],
        "timestamp": (now_utc() - timedelta(hours=hours_ago)).isoformat(),
    }
    item.update(overrides)
    return item


def test_import_requires_staff(client, auth_headers):
    r = client.post("/api/feed/items", json=[_item("a", 1)], headers=auth_headers)
    assert r.status_code == 403


def test_import_upserts_by_source(client, db, admin_headers):
    r = client.post("/api/feed/items", json=[_item("a", 1), _item("b", 2)], headers=admin_headers)
    assert r.json() == {"created": 2, "updated": 0}
    r = client.post("/api/feed/items", json=[_item("a", 1, text="Edited")], headers=admin_headers)
    assert r.json() == {"created": 0, "updated": 1}
    assert db.query(models.FeedItem).count() == 2
    assert db.query(models.AuditLog).filter_by(action_type="feed_import").count() == 2


def test_import_rejects_unknown_source(client, admin_headers):
    r = client.post("/api/feed/items", json=[_item("a", 1, source="myspace")], headers=admin_headers)
    assert r.status_code == 422


def test_feed_pages_newest_first(client, admin_headers):
    items = [_item(str(i), hours_ago=i) for i in range(1, 6)]
    client.post("/api/feed/items", json=items, headers=admin_headers)

    first = client.get("/api/feed", params={"limit": 2}).json()
    assert [i["source_id"] for i in first["items"]] == ["1", "2"]
    second = client.get("/api/feed", params={"limit": 2, "cursor": first["next_cursor"]}).json()
    assert [i["source_id"] for i in second["items"]] == ["3", "4"]


def test_feed_filters_by_source_tags_and_product_flag(client, admin_headers):
    client.post(
        "/api/feed/items",
        json=[
            _item("yt", 1),
            _item("rd", 2, source="reddit", tags=["home"]),
            _item("chat", 3, source="reddit", is_product=False),
        ],
        headers=admin_headers,
    )
    assert [i["source_id"] for i in client.get("/api/feed").json()["items"]] == ["yt", "rd"]
    assert [i["source_id"] for i in client.get("/api/feed", params={"source": "reddit"}).json()["items"]] == ["rd"]
    assert [i["source_id"] for i in client.get("/api/feed", params={"tags": "tech, toys"}).json()["items"]] == ["yt"]


def test_submit_post_awards_once(client, auth_headers):
    payload = {"url": "https://tiktok.com/@me/video/9", "caption": "My haul #Final10 #StayEarning #StaySavvy"}
    first = client.post("/api/feed/submit", json=payload, headers=auth_headers).json()
    assert first == {"message": "Post submitted, points awarded", "new_balance": 200}
    second = client.post("/api/feed/submit", json=payload, headers=auth_headers).json()
    assert second == {"message": "Post already rewarded", "new_balance": 200}


def test_submit_post_needs_all_hashtags(client, auth_headers):
    r = client.post("/api/feed/submit", json={"url": "https://x.com/1", "caption": "#final10 only"}, headers=auth_headers)
    assert r.status_code == 400
    assert r.json()["detail"] == "Caption must include #final10, #stayearning, #staysavvy"


def test_product_feed_cards(client, db):
    db.add(models.Auction(
        title="Desk lamp",
        current_bid=15,
        end_time=now_utc() + timedelta(hours=3),
        deal_potential=90,
        images=[{"url": "https://img.example.com/1.jpg", "is_primary": True}],
    ))
    db.add(models.Auction(title="Chair", current_bid=40, end_time=now_utc() + timedelta(hours=3), deal_potential=40))
    db.commit()

    body = client.get("/api/feed/product-feed", params={"limit": 10}).json()
    assert [card["title"] for card in body["items"]] == ["Desk lamp", "Chair"]
    assert body["items"][0]["image"] == "https://img.example.com/1.jpg"
    assert body["items"][1]["image"] is None
    assert body["next_cursor"] is not None


def test_product_feed_pages_follow_score_order(client, db):
    # Newer auctions score higher, so paging by creation time would skip them
    for n, (deal, created_hours_ago) in enumerate([(60, 5), (90, 1), (90, 2), (75, 4), (90, 3)]):
        db.add(models.Auction(
            title=f"Lot {n}",
            current_bid=10,
            end_time=now_utc() + timedelta(hours=6),
            deal_potential=deal,
            trending_score=30,
            created_at=now_utc() - timedelta(hours=created_hours_ago),
        ))
    db.commit()

    seen, cursor = [], None
    for _ in range(5):
        params = {"limit": 2}
        if cursor:
            params["cursor"] = cursor
        body = client.get("/api/feed/product-feed", params=params).json()
        seen.extend((card["deal_potential"], card["title"]) for card in body["items"])
        cursor = body["next_cursor"]
        if not cursor:
            break
    assert [deal for deal, _ in seen] == [90, 90, 90, 75, 60]
    assert len({title for _, title in seen}) == 5


def test_product_feed_rejects_malformed_cursor(client):
    r = client.get("/api/feed/product-feed", params={"cursor": "2026-01-01T00:00:00"})
    assert r.status_code == 400
    assert r.json()["detail"] == "Invalid cursor"
