# Overview: Pytest coverage for the product catalog API.

import pytest

from shopledger.models import Product


class TestCreateProduct:

    def test_create(self, client, db_session, headers_a, tenant_a):
        resp = client.post(
            "/api/products",
            json={"name": "Eraser", "price_cents": 250, "quantity": 40},
            headers=headers_a,
        )

        assert resp.status_code == 201
        product = resp.json["product"]
        assert product["name"] == "Eraser"
        assert product["price_cents"] == 250
        assert product["quantity"] == 40
        assert product["tenant_id"] == tenant_a.id

    def test_tenant_id_not_writable(self, client, db_session, headers_a, tenant_a, tenant_b):
        resp = client.post(
            "/api/products",
            json={"name": "Eraser", "price_cents": 250, "quantity": 1, "tenant_id": tenant_b.id},
            headers=headers_a,
        )

        assert resp.status_code == 400
        assert resp.json["error"] == "Field not allowed: tenant_id"
        assert db_session.query(Product).count() == 0

    @pytest.mark.parametrize("missing", ["name", "price_cents", "quantity"])
    def test_required_fields(self, client, db_session, headers_a, missing):
        payload = {"name": "Eraser", "price_cents": 250, "quantity": 1}
        del payload[missing]

        resp = client.post("/api/products", json=payload, headers=headers_a)

        assert resp.status_code == 400
        assert db_session.query(Product).count() == 0

    @pytest.mark.parametrize("field,value", [
        ("price_cents", -1),
        ("price_cents", "12.50"),
        ("quantity", -3),
        ("price_cents", 1_000_000_000),
        ("quantity", 10**19),
        ("name", None),
        ("name", "   "),
    ])
    def test_invalid_numbers(self, client, db_session, headers_a, field, value):
        payload = {"name": "Eraser", "price_cents": 250, "quantity": 1, field: value}

        resp = client.post("/api/products", json=payload, headers=headers_a)

        assert resp.status_code == 400


class TestReadProducts:

    def test_list_newest_first(self, client, db_session, headers_a, product_a, product_a2):
        resp = client.get("/api/products", headers=headers_a)

        assert resp.status_code == 200
        assert resp.json["count"] == 2
        assert [p["id"] for p in resp.json["items"]] == [product_a2.id, product_a.id]

    def test_list_paginated(self, client, db_session, headers_a, product_a, product_a2):
        resp = client.get("/api/products?page=1&per_page=1", headers=headers_a)

        assert resp.json["count"] == 1
        assert resp.json["pagination"]["total"] == 2
        assert resp.json["pagination"]["has_next"] is True

    def test_get(self, client, db_session, headers_a, product_a):
        resp = client.get(f"/api/products/{product_a.id}", headers=headers_a)

        assert resp.status_code == 200
        assert resp.json["product"]["name"] == "Notebook"

    def test_get_missing(self, client, db_session, headers_a):
        assert client.get("/api/products/99999", headers=headers_a).status_code == 404


class TestUpdateDeleteProduct:

    def test_update(self, client, db_session, headers_a, product_a):
        resp = client.put(f"/api/products/{product_a.id}", json={"price_cents": 5500, "quantity": 12}, headers=headers_a)

        assert resp.status_code == 200
        assert resp.json["product"]["price_cents"] == 5500
        assert resp.json["product"]["quantity"] == 12

    def test_update_empty(self, client, db_session, headers_a, product_a):
        resp = client.put(f"/api/products/{product_a.id}", json={}, headers=headers_a)
        assert resp.status_code == 400

    def test_update_missing(self, client, db_session, headers_a):
        resp = client.put("/api/products/99999", json={"name": "x"}, headers=headers_a)
        assert resp.status_code == 404

    def test_delete(self, client, db_session, headers_a, product_a):
        resp = client.delete(f"/api/products/{product_a.id}", headers=headers_a)

        assert resp.status_code == 200
        assert resp.json == {"ok": True, "id": product_a.id}
        assert db_session.query(Product).count() == 0

    def test_delete_missing(self, client, db_session, headers_a):
        assert client.delete("/api/products/99999", headers=headers_a).status_code == 404

    def test_update_price_over_limit(self, client, db_session, headers_a, product_a):
        resp = client.put(f"/api/products/{product_a.id}", json={"price_cents": 10**19}, headers=headers_a)

        assert resp.status_code == 400
        assert resp.json["error"] == "price_cents cannot exceed 999999999"
        db_session.refresh(product_a)
        assert product_a.price_cents == 5000

    def test_update_name_stripped(self, client, db_session, headers_a, product_a):
        resp = client.put(f"/api/products/{product_a.id}", json={"name": "  Ledger  "}, headers=headers_a)

        assert resp.status_code == 200
        assert resp.json["product"]["name"] == "Ledger"
