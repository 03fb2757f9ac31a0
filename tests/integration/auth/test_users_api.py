from final10.db import models


def test_update_profile(client, auth_headers, user):
    r = client.patch("/api/users/me", json={"first_name": "Robin", "username": "robin_b"}, headers=auth_headers)
    assert r.status_code == 200
    assert r.json()["first_name"] == "Robin"
    assert r.json()["username"] == "robin_b"


def test_update_profile_username_conflict(client, auth_headers, make_user):
    make_user(username="taken")
    r = client.patch("/api/users/me", json={"username": "taken"}, headers=auth_headers)
    assert r.status_code == 409


def test_update_profile_rejects_bad_username(client, auth_headers):
    r = client.patch("/api/users/me", json={"username": "x"}, headers=auth_headers)
    assert r.status_code == 422


def test_referral_summary(client, auth_headers, user, monkeypatch):
    monkeypatch.setenv("CLIENT_URL", "https://final10.app")
    r = client.get("/api/users/me/referrals", headers=auth_headers)
    assert r.status_code == 200
    body = r.json()
    assert body["referral_code"] == str(user.id)
    assert body["referral_link"] == f"https://final10.app/signup?ref={user.id}"
    assert body["accepted_total"] == 0


def test_upgrade_stacks_months(client, auth_headers):
    first = client.post("/api/users/me/upgrade", json={"months": 1}, headers=auth_headers).json()
    second = client.post("/api/users/me/upgrade", json={"months": 2}, headers=auth_headers).json()
    assert first["membership_tier"] == "premium"
    assert second["subscription_expires"] > first["subscription_expires"]


def test_admin_list_requires_permission(client, auth_headers, admin_headers, make_user):
    assert client.get("/api/users/admin", headers=auth_headers).status_code == 403
    make_user(username="findme")
    r = client.get("/api/users/admin", params={"q": "findme"}, headers=admin_headers)
    assert r.status_code == 200
    body = r.json()
    assert [u["username"] for u in body["users"]] == ["findme"]
    assert body["pagination"]["total"] == 1
    assert body["users"][0]["permissions"]["can_manage_users"] is False


def test_only_superadmin_changes_roles(client, make_user, headers_for, admin_headers, user):
    manager = make_user(role="admin", can_manage_users=True)
    r = client.patch(f"/api/users/admin/{user.id}/role", json={"role": "admin"}, headers=headers_for(manager))
    assert r.status_code == 403

    r = client.patch(
        f"/api/users/admin/{user.id}/role",
        json={"role": "admin", "permissions": {"can_manage_shield": True}},
        headers=admin_headers,
    )
    assert r.status_code == 200
    assert r.json()["role"] == "admin"

    bad = client.patch(f"/api/users/admin/{user.id}/role", json={"role": "owner"}, headers=admin_headers)
    assert bad.status_code == 400


def test_role_change_is_audited(client, db, admin_headers, admin_user, user):
    client.patch(f"/api/users/admin/{user.id}/role", json={"role": "admin"}, headers=admin_headers)
    entry = db.query(models.AuditLog).filter_by(action_type="user_role_change").one()
    assert entry.actor_user_id == admin_user.id
    assert entry.metadata_json["from"] == "user"


def test_grant_points(client, admin_headers, user):
    r = client.post(
        f"/api/users/admin/{user.id}/grant-points",
        json={"amount": 250, "reason": "contest winner"},
        headers=admin_headers,
    )
    assert r.status_code == 200
    assert r.json()["points_balance"] == 350


def test_grant_points_unknown_user(client, admin_headers):
    r = client.post(
        "/api/users/admin/00000000-0000-0000-0000-000000000000/grant-points",
        json={"amount": 1, "reason": "x"},
        headers=admin_headers,
    )
    assert r.status_code == 404
