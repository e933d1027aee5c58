"""Checkout and order endpoints."""

import pytest

from app.config.messages import message
from app.modules.orders.service import extract_order_id

from tests.conftest import USER, ADMIN, make_product


@pytest.fixture
def stocked_cart(fake_supabase):
    """Ana has 500 coins and two products (150 coins total) in her cart"""
    fake_supabase.seed("profiles", [{"id": USER["id"], "email": USER["email"], "coins": 500, "is_admin": False}])
    a = fake_supabase.seed("products", [make_product(name="Termo", price=50, max_per_user=2)])[0]
    b = fake_supabase.seed("products", [make_product(name="Gorra", price=50, max_per_user=1)])[0]
    fake_supabase.seed("cart_items", [
        {"user_id": USER["id"], "product_id": a["id"], "quantity": 2},
        {"user_id": USER["id"], "product_id": b["id"], "quantity": 1},
    ])
    return a, b


def seed_order(fake_supabase, order_id, user_id, total=100, status="pending", created_at="2026-01-01T10:00:00+00:00"):
    fake_supabase.seed("orders", [{
        "id": order_id, "user_id": user_id, "total_coins": total,
        "status": status, "created_at": created_at,
    }])
    fake_supabase.seed("order_items", [{
        "order_id": order_id, "product_id": "p-1", "product_name": "Termo", "quantity": 2, "price": total / 2,
    }])


# ── extract_order_id ──────────────────────────────

@pytest.mark.parametrize("data, expected", [
    ({"order_id": "o-1"}, "o-1"),
    ([{"order_id": "o-2"}], "o-2"),
    ("o-3", "o-3"),
    ([], None),
    ({}, None),
    (None, None),
])
def test_extract_order_id(data, expected):
    assert extract_order_id(data) == expected


# ── Checkout ──────────────────────────────────────

def test_checkout_places_order_and_clears_cart(client, fake_supabase, stocked_cart):
    fake_supabase.rpc_handlers["handle_new_order"] = lambda params: {"order_id": "order-1"}

    resp = client.post("/api/v1/orders/checkout")
    assert resp.status_code == 201
    body = resp.json()
    assert body["order_id"] == "order-1"
    assert body["total_coins"] == 150
    assert body["item_count"] == 3

    name, params = fake_supabase.rpc_calls[0]
    assert name == "handle_new_order"
    assert params["p_user_id"] == USER["id"]
    assert params["p_total_amount"] == 150
    assert sorted(i["quantity"] for i in params["p_cart_items"]) == [1, 2]
    assert fake_supabase.rows("cart_items") == []


def test_checkout_empty_cart(client, fake_supabase):
    resp = client.post("/api/v1/orders/checkout")
    assert resp.status_code == 400
    assert resp.json()["detail"] == message("CART.EMPTY_ERROR")
    assert fake_supabase.rpc_calls == []


def test_checkout_not_enough_coins(client, fake_supabase, stocked_cart):
    fake_supabase.tables["profiles"][0]["coins"] = 100
    resp = client.post("/api/v1/orders/checkout")
    assert resp.status_code == 400
    assert resp.json()["detail"] == message("ORDERS.INSUFFICIENT_COINS")
    assert len(fake_supabase.rows("cart_items")) == 2


def test_checkout_insufficient_stock(client, fake_supabase, stocked_cart):
    def out_of_stock(params):
        raise Exception("Insufficient stock for product Termo")

    fake_supabase.rpc_handlers["handle_new_order"] = out_of_stock
    resp = client.post("/api/v1/orders/checkout")
    assert resp.status_code == 409
    assert resp.json()["detail"] == message("ORDERS.INSUFFICIENT_STOCK")
    assert len(fake_supabase.rows("cart_items")) == 2


def test_checkout_unexpected_rpc_response(client, fake_supabase, stocked_cart):
    fake_supabase.rpc_handlers["handle_new_order"] = lambda params: []
    resp = client.post("/api/v1/orders/checkout")
    assert resp.status_code == 502
    assert resp.json()["detail"] == message("ORDERS.INVALID_RESPONSE")


# ── Reading orders ────────────────────────────────

def test_list_my_orders_newest_first(client, fake_supabase):
    seed_order(fake_supabase, "o-old", USER["id"], created_at="2026-01-01T10:00:00+00:00")
    seed_order(fake_supabase, "o-new", USER["id"], created_at="2026-02-01T10:00:00+00:00")
    seed_order(fake_supabase, "o-other", ADMIN["id"])

    body = client.get("/api/v1/orders").json()
    assert [o["id"] for o in body] == ["o-new", "o-old"]
    assert body[0]["items"][0]["product_name"] == "Termo"


def test_other_users_order_is_not_found(client, fake_supabase):
    seed_order(fake_supabase, "o-admin", ADMIN["id"])
    resp = client.get("/api/v1/orders/o-admin")
    assert resp.status_code == 404


def test_admin_sees_any_order(admin_client, fake_supabase):
    seed_order(fake_supabase, "o-ana", USER["id"])
    resp = admin_client.get("/api/v1/orders/o-ana")
    assert resp.status_code == 200
    assert resp.json()["user_id"] == USER["id"]


def test_admin_list_includes_buyer(admin_client, fake_supabase):
    fake_supabase.seed("profiles", [{"id": USER["id"], "email": USER["email"], "full_name": "Ana Pérez"}])
    seed_order(fake_supabase, "o-ana", USER["id"])
    body = admin_client.get("/api/v1/orders/admin/all").json()
    assert body[0]["user"] == {"email": USER["email"], "full_name": "Ana Pérez"}


def test_admin_routes_reject_regular_users(client):
    assert client.get("/api/v1/orders/admin/all").status_code == 403
    assert client.put("/api/v1/orders/o-1/status", json={"status": "completed"}).status_code == 403


def test_update_status(admin_client, fake_supabase):
    seed_order(fake_supabase, "o-ana", USER["id"])
    resp = admin_client.put("/api/v1/orders/o-ana/status", json={"status": "completed"})
    assert resp.status_code == 200
    assert resp.json()["status"] == "completed"
    assert fake_supabase.rows("orders")[0]["status"] == "completed"


def test_update_status_rejects_unknown_status(admin_client):
    resp = admin_client.put("/api/v1/orders/o-ana/status", json={"status": "shipped"})
    assert resp.status_code == 422


def test_order_stats(admin_client, fake_supabase):
    seed_order(fake_supabase, "o-1", USER["id"], total=100, status="completed")
    seed_order(fake_supabase, "o-2", USER["id"], total=60)
    body = admin_client.get("/api/v1/orders/admin/stats").json()
    assert body["total_orders"] == 2
    assert body["completed_orders"] == 1
    assert body["total_coins_spent"] == 160
    assert body["popular_products"] == [{"product_id": "p-1", "product_name": "Termo", "quantity": 4}]
