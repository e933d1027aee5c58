"""Profiles: first-access creation, coins and the admin flag."""

import pytest
from fastapi import HTTPException

from app.config.messages import message
from app.modules.profiles.schemas import CoinsMode
from app.modules.profiles.service import ProfileService

from tests.conftest import USER, ADMIN


def seed_profile(fake_supabase, **overrides):
    row = {"id": USER["id"], "email": USER["email"], "full_name": "Ana Pérez", "coins": 100, "is_admin": False}
    row.update(overrides)
    fake_supabase.seed("profiles", [row])
    return row


# ── Own profile ───────────────────────────────────

def test_me_creates_profile_on_first_access(client, fake_supabase):
    resp = client.get("/api/v1/profiles/me")
    assert resp.status_code == 200
    body = resp.json()
    assert body["coins"] == 0
    assert body["full_name"] == "Ana Pérez"
    assert body["company_name"] == "Acme"
    assert len(fake_supabase.rows("profiles")) == 1


def test_me_returns_existing_profile(client, fake_supabase):
    seed_profile(fake_supabase, coins=250)
    assert client.get("/api/v1/profiles/me").json()["coins"] == 250
    assert len(fake_supabase.rows("profiles")) == 1


def test_update_my_profile(client, fake_supabase):
    seed_profile(fake_supabase)
    resp = client.put("/api/v1/profiles/me", json={"company_name": "Nueva SA"})
    assert resp.status_code == 200
    assert resp.json()["company_name"] == "Nueva SA"
    assert resp.json()["full_name"] == "Ana Pérez"


# ── Coins ─────────────────────────────────────────

def test_add_coins(admin_client, fake_supabase):
    seed_profile(fake_supabase, coins=100)
    resp = admin_client.put(f"/api/v1/profiles/{USER['id']}/coins", json={"amount": 50})
    assert resp.status_code == 200
    assert resp.json()["coins"] == 150


def test_set_coins(admin_client, fake_supabase):
    seed_profile(fake_supabase, coins=100)
    resp = admin_client.put(f"/api/v1/profiles/{USER['id']}/coins", json={"amount": 7, "mode": "set"})
    assert resp.json()["coins"] == 7


def test_coins_cannot_go_negative(fake_supabase):
    seed_profile(fake_supabase, coins=10)
    with pytest.raises(HTTPException) as exc:
        ProfileService(fake_supabase).update_coins(USER["id"], -20, CoinsMode.ADD)
    assert exc.value.status_code == 400
    assert exc.value.detail == message("ORDERS.INSUFFICIENT_COINS")
    assert fake_supabase.rows("profiles")[0]["coins"] == 10


def test_coins_for_unknown_user(admin_client):
    resp = admin_client.put("/api/v1/profiles/nobody/coins", json={"amount": 5})
    assert resp.status_code == 404


def test_coins_require_admin(client, fake_supabase):
    seed_profile(fake_supabase)
    resp = client.put(f"/api/v1/profiles/{USER['id']}/coins", json={"amount": 1000})
    assert resp.status_code == 403


# ── Admin flag ────────────────────────────────────

def test_profile_flag_grants_admin(make_client, fake_supabase):
    seed_profile(fake_supabase, is_admin=True)
    client = make_client(USER)
    assert client.get("/api/v1/profiles").status_code == 200


def test_set_admin_mirrors_to_auth(fake_supabase):
    seed_profile(fake_supabase)
    service = ProfileService(fake_supabase, fake_supabase)

    profile = service.set_admin(USER["id"], True, mirror_to_auth=True)
    assert profile.is_admin is True
    fake_supabase.auth.admin.update_user_by_id.assert_called_once_with(
        USER["id"], {"app_metadata": {"type": "admin"}}
    )


def test_set_admin_without_mirror_leaves_auth_alone(fake_supabase):
    seed_profile(fake_supabase, is_admin=True)
    profile = ProfileService(fake_supabase).set_admin(USER["id"], False)
    assert profile.is_admin is False
    fake_supabase.auth.admin.update_user_by_id.assert_not_called()


def test_set_admin_route(admin_client, fake_supabase):
    seed_profile(fake_supabase)
    resp = admin_client.put(f"/api/v1/profiles/{USER['id']}/admin", json={"is_admin": True})
    assert resp.status_code == 200
    assert resp.json()["is_admin"] is True


# ── Listing and stats ─────────────────────────────

def test_list_profiles_paginates(admin_client, fake_supabase):
    fake_supabase.seed("profiles", [
        {"id": f"u-{i}", "email": f"u{i}@example.com", "coins": i, "created_at": f"2026-01-0{i}T00:00:00+00:00"}
        for i in range(1, 6)
    ])
    body = admin_client.get("/api/v1/profiles", params={"limit": 2, "offset": 1}).json()
    assert [p["id"] for p in body] == ["u-4", "u-3"]


def test_profile_stats(admin_client, fake_supabase):
    fake_supabase.seed("profiles", [
        {"id": "u-1", "email": "a@example.com", "coins": 10, "created_at": "2020-01-01T00:00:00+00:00"},
        {"id": "u-2", "email": "b@example.com", "coins": 300, "created_at": "2020-01-01T00:00:00+00:00"},
        {"id": ADMIN["id"], "email": ADMIN["email"], "coins": 0, "created_at": "2999-01-01T00:00:00+00:00"},
    ])
    body = admin_client.get("/api/v1/profiles/stats").json()
    assert body["total_users"] == 3
    assert body["new_users_today"] == 1
    assert body["top_users"][0]["id"] == "u-2"


def test_get_profile_not_found(admin_client):
    resp = admin_client.get("/api/v1/profiles/nobody")
    assert resp.status_code == 404
    assert resp.json()["detail"] == message("PROFILE.NOT_FOUND")
