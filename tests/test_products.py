"""Product catalog, admin product management and image upload."""

from unittest.mock import MagicMock

import pytest
from fastapi import HTTPException

from app.config.messages import message
from app.modules.products.service import ProductService, aggregate_purchases, is_uuid
from app.modules.products.storage import ProductImageStorage

from tests.conftest import make_product


# ── Helpers ───────────────────────────────────────

def test_is_uuid():
    assert is_uuid("3f1c2b8e-6a7d-4c55-9e1a-2b3c4d5e6f70")
    assert not is_uuid("termo-mi-partner")


def test_aggregate_purchases_sums_and_ranks():
    rows = [
        {"product_id": "a", "product_name": "Termo", "quantity": 1},
        {"product_id": "b", "product_name": "Gorra", "quantity": 5},
        {"product_id": "a", "product_name": None, "quantity": 2},
        {"product_id": None, "quantity": 9},
    ]
    ranked = aggregate_purchases(rows, limit=10)
    assert [(p.product_id, p.quantity) for p in ranked] == [("b", 5), ("a", 3)]
    assert ranked[1].product_name == "Termo"
    assert len(aggregate_purchases(rows, limit=1)) == 1


# ── Catalog ───────────────────────────────────────

def test_list_products_sorted_and_filtered(client, fake_supabase):
    fake_supabase.seed("products", [
        make_product(name="Termo", category="Merch"),
        make_product(name="Agenda", category="Oficina"),
        make_product(name="Gorra", category="Merch"),
    ])
    assert [p["name"] for p in client.get("/api/v1/products").json()] == ["Agenda", "Gorra", "Termo"]
    merch = client.get("/api/v1/products", params={"category": "Merch"}).json()
    assert [p["name"] for p in merch] == ["Gorra", "Termo"]


def test_list_categories(client, fake_supabase):
    fake_supabase.seed("products", [
        make_product(category="Merch"), make_product(category="Oficina"),
        make_product(category="Merch"), make_product(category=None),
    ])
    assert client.get("/api/v1/products/categories").json() == ["Merch", "Oficina"]


def test_get_product_by_slug_or_id(client, fake_supabase):
    product = fake_supabase.seed("products", [make_product(urlpage="termo-mi-partner")])[0]
    assert client.get("/api/v1/products/termo-mi-partner").json()["id"] == product["id"]
    assert client.get(f"/api/v1/products/{product['id']}").json()["urlpage"] == "termo-mi-partner"


def test_get_product_not_found(client):
    resp = client.get("/api/v1/products/no-such-product")
    assert resp.status_code == 404
    assert resp.json()["detail"] == message("PRODUCTS.NOT_FOUND")


def test_get_product_by_code(client, fake_supabase):
    product = fake_supabase.seed("products", [make_product()])[0]
    fake_supabase.seed("qr_codes", [{"id": "qr-1", "code": "AB12CD34", "product_id": product["id"]}])
    assert client.get("/api/v1/products/code/AB12CD34").json()["id"] == product["id"]
    assert client.get("/api/v1/products/code/NOPE").status_code == 404


# ── Admin ─────────────────────────────────────────

def test_create_product_requires_admin(client):
    resp = client.post("/api/v1/products", json={"name": "Termo", "price": 50})
    assert resp.status_code == 403


def test_create_product(admin_client, fake_supabase):
    resp = admin_client.post("/api/v1/products", json={"name": "Termo", "price": 50, "stock": 3})
    assert resp.status_code == 201
    body = resp.json()
    assert body["max_per_user"] == 1
    assert fake_supabase.rows("products")[0]["stock"] == 3


def test_create_product_validates_price(admin_client):
    assert admin_client.post("/api/v1/products", json={"name": "Termo", "price": 0}).status_code == 422


def test_update_product(admin_client, fake_supabase):
    product = fake_supabase.seed("products", [make_product(stock=10)])[0]
    resp = admin_client.put(f"/api/v1/products/{product['id']}", json={"stock": 4})
    assert resp.status_code == 200
    assert resp.json()["stock"] == 4


def test_update_product_without_fields(admin_client, fake_supabase):
    product = fake_supabase.seed("products", [make_product()])[0]
    resp = admin_client.put(f"/api/v1/products/{product['id']}", json={})
    assert resp.status_code == 400
    assert resp.json()["detail"] == message("PRODUCTS.NO_UPDATES")


def test_delete_product_removes_its_qr_codes(admin_client, fake_supabase):
    product = fake_supabase.seed("products", [make_product()])[0]
    fake_supabase.seed("qr_codes", [
        {"id": "qr-1", "code": "AAA111", "product_id": product["id"]},
        {"id": "qr-2", "code": "BBB222", "product_id": "other"},
    ])
    assert admin_client.delete(f"/api/v1/products/{product['id']}").status_code == 204
    assert fake_supabase.rows("products") == []
    assert [r["id"] for r in fake_supabase.rows("qr_codes")] == ["qr-2"]


def test_delete_missing_product(admin_client):
    assert admin_client.delete("/api/v1/products/4b1d8f6e-0000-4000-8000-000000000000").status_code == 404


def test_most_purchased(admin_client, fake_supabase):
    fake_supabase.seed("order_items", [
        {"order_id": "o-1", "product_id": "a", "product_name": "Termo", "quantity": 1},
        {"order_id": "o-2", "product_id": "b", "product_name": "Gorra", "quantity": 3},
    ])
    body = admin_client.get("/api/v1/products/most-purchased").json()
    assert [p["product_id"] for p in body] == ["b", "a"]


# ── Images ────────────────────────────────────────

def test_upload_image(admin_client, fake_supabase):
    product = fake_supabase.seed("products", [make_product()])[0]
    bucket = fake_supabase.storage.from_.return_value
    bucket.get_public_url.return_value = "https://cdn.example.com/products/termo.png"

    resp = admin_client.post(
        f"/api/v1/products/{product['id']}/image",
        files={"file": ("termo.png", b"\x89PNG...", "image/png")},
    )
    assert resp.status_code == 200
    assert resp.json()["image_url"] == "https://cdn.example.com/products/termo.png"
    fake_supabase.storage.from_.assert_called_with("products")


def test_upload_rejects_non_images(admin_client, fake_supabase):
    product = fake_supabase.seed("products", [make_product()])[0]
    resp = admin_client.post(
        f"/api/v1/products/{product['id']}/image",
        files={"file": ("notes.txt", b"hola", "text/plain")},
    )
    assert resp.status_code == 400
    assert resp.json()["detail"] == message("PRODUCTS.IMAGE_NOT_IMAGE")


def test_upload_rejects_large_files(fake_supabase):
    product = fake_supabase.seed("products", [make_product()])[0]
    service = ProductService(fake_supabase, image_storage=MagicMock())
    with pytest.raises(HTTPException) as exc:
        service.upload_image(product["id"], "big.png", b"0" * (6 * 1024 * 1024), "image/png")
    assert exc.value.status_code == 400


def test_storage_falls_back_to_second_bucket():
    supabase = MagicMock()
    primary, fallback = MagicMock(), MagicMock()
    primary.upload.side_effect = Exception("Bucket not found")
    fallback.get_public_url.return_value = "https://cdn.example.com/images/x.png"
    supabase.storage.from_.side_effect = lambda name: {"products": primary, "images": fallback}[name]

    url = ProductImageStorage(supabase).upload("p-1", "x.png", b"data", "image/png")
    assert url == "https://cdn.example.com/images/x.png"
    path, content, options = fallback.upload.call_args.args
    assert path.startswith("products/p-1_") and path.endswith(".png")
    assert options["content-type"] == "image/png"


def test_upload_failure_in_both_buckets_is_502(fake_supabase):
    product = fake_supabase.seed("products", [make_product()])[0]
    storage = MagicMock()
    storage.upload.side_effect = Exception("storage down")
    service = ProductService(fake_supabase, image_storage=storage)
    with pytest.raises(HTTPException) as exc:
        service.upload_image(product["id"], "x.png", b"data", "image/png")
    assert exc.value.status_code == 502
