import pytest


def test_daily_view_lists_every_task(client, auth_headers):
    r = client.get("/api/tasks/daily", headers=auth_headers)
    assert r.status_code == 200
    body = r.json()
    assert set(body["tasks"]) == {
        "dailyLogin",
        "searchProduct",
        "watchAds",
        "shareApp",
        "shareProduct",
        "socialPost",
        "useVideoScanner",
        "searchLocalDeals",
    }
    assert body["all_tasks_completed"] is False


@pytest.mark.parametrize(
    "path,task,points",
    [
        ("/api/tasks/daily-login", "dailyLogin", 50),
        ("/api/tasks/video-scanner", "useVideoScanner", 20),
        ("/api/tasks/local-deals-search", "searchLocalDeals", 25),
    ],
)
def test_single_step_tasks(client, auth_headers, path, task, points):
    first = client.post(path, headers=auth_headers).json()
    assert first["task"] == task
    assert first["points_awarded"] == points
    again = client.post(path, headers=auth_headers).json()
    assert again["recorded"] is False


def test_share_app_pays_on_third_share(client, auth_headers):
    payload = {"type": "app", "platform": "twitter", "url": "https://x.com/me/status/1"}
    awarded = [client.post("/api/tasks/share", json=payload, headers=auth_headers).json()["points_awarded"] for _ in range(3)]
    assert awarded == [0, 0, 300]


def test_social_share_needs_hashtag(client, auth_headers):
    payload = {"type": "social", "platform": "instagram", "url": "https://instagram.com/p/abc"}
    r = client.post("/api/tasks/share", json=payload, headers=auth_headers)
    assert r.status_code == 400
    assert r.json()["detail"] == "Social posts must include our hashtags"


def test_share_rejects_foreign_domain(client, auth_headers):
    payload = {"type": "product", "platform": "facebook", "url": "https://example.com/post/1"}
    r = client.post("/api/tasks/share", json=payload, headers=auth_headers)
    assert r.json()["detail"] == "URL does not belong to facebook"


def test_share_rejects_unknown_type(client, auth_headers):
    payload = {"type": "carrier-pigeon", "platform": "twitter", "url": "https://x.com/status/1"}
    assert client.post("/api/tasks/share", json=payload, headers=auth_headers).status_code == 422
