"""
Sales API tests.

Verifies:
- POST /api/sales settles a cart and returns server-computed totals
- Cart rejections map to 400 with details, collisions to 409, commit failures to 500
- History, lookup and metadata edit endpoints
"""

import pytest
from sqlalchemy.exc import SQLAlchemyError

from tireshop.models import Product, Sale
from tireshop.services import invoice_service, sales_service

from factories import cart_payload


def tire_line(product, qty=2):
    return {"product_id": product.id, "quantity": qty, "unit_price": "100.00"}


# =============================================================================
# CHECKOUT
# =============================================================================


class TestCreateSale:

    def test_settles_and_returns_sale(self, client, new_tire):
        resp = client.post("/api/sales", json=cart_payload([tire_line(new_tire)]))

        assert resp.status_code == 201
        sale = resp.get_json()["sale"]
        assert sale["subtotal"] == "200.00"
        assert sale["per_item_tax_total"] == "3.50"
        assert sale["global_tax_rate"] == "9.50"
        assert sale["global_tax_amount"] == "19.00"
        assert sale["grand_total"] == "222.50"
        assert sale["payment_status"] == "paid"
        assert invoice_service.is_valid_invoice_number(sale["invoice_number"])
        assert [i["product_sku"] for i in sale["items"]] == ["TIRE-225-65R17"]

    def test_custom_item_in_response(self, client, new_tire):
        custom = {"product_id": None, "product_name": "Disposal fee", "quantity": 4, "unit_price": "3.00"}

        resp = client.post("/api/sales", json=cart_payload([tire_line(new_tire), custom]))

        assert resp.status_code == 201
        items = resp.get_json()["sale"]["items"]
        assert items[1]["is_custom"] is True
        assert items[1]["product_sku"] == "CUSTOM"
        assert items[1]["line_total"] == "12.00"

    def test_insufficient_stock_is_400_with_details(self, client, db_session, new_tire):
        resp = client.post("/api/sales", json=cart_payload([tire_line(new_tire, qty=11)]))

        assert resp.status_code == 400
        body = resp.get_json()
        assert body["error"] == "Insufficient stock for All-Season 225/65R17. Available: 10"
        assert body["details"] == {"product_id": new_tire.id, "requested_quantity": 11, "available": 10}
        assert db_session.query(Sale).count() == 0

    def test_unknown_product_is_400(self, client, db_session):
        resp = client.post("/api/sales", json=cart_payload([{"product_id": 77, "quantity": 1, "unit_price": "1"}]))

        assert resp.status_code == 400
        assert resp.get_json()["error"] == "Product not found: 77"

    @pytest.mark.parametrize("payload", [
        cart_payload([]),
        cart_payload([{"product_id": 1, "quantity": 0, "unit_price": "1"}]),
        cart_payload([{"product_id": None, "quantity": 1, "unit_price": "1"}]),
        cart_payload([{"product_id": None, "product_name": "x", "quantity": 1, "unit_price": "1"}], subtotal="5"),
    ])
    def test_malformed_cart_is_400(self, client, payload):
        resp = client.post("/api/sales", json=payload)

        assert resp.status_code == 400
        assert "error" in resp.get_json()

    def test_oversized_custom_price_is_400(self, client, db_session):
        line = {"product_id": None, "product_name": "Labor", "quantity": 1, "unit_price": "1e30"}

        resp = client.post("/api/sales", json=cart_payload([line]))

        assert resp.status_code == 400
        assert resp.get_json()["error"] == "items[0].unit_price cannot exceed 99999999.99"
        assert db_session.query(Sale).count() == 0

    def test_non_json_body_is_400(self, client):
        resp = client.post("/api/sales", data="nope", content_type="text/plain")

        assert resp.status_code == 400
        assert resp.get_json()["error"] == "Invalid JSON payload"

    def test_exhausted_invoice_numbers_is_409(self, client, new_tire, monkeypatch):
        monkeypatch.setattr(invoice_service, "generate_invoice_number", lambda now=None: "INV-20260101-ZZZZ")
        assert client.post("/api/sales", json=cart_payload([tire_line(new_tire, qty=1)])).status_code == 201

        resp = client.post("/api/sales", json=cart_payload([tire_line(new_tire, qty=1)]))

        assert resp.status_code == 409
        assert resp.get_json()["retryable"] is True

    def test_commit_failure_is_500_and_rolled_back(self, client, db_session, new_tire, monkeypatch):
        def broken_adjust(*args, **kwargs):
            raise SQLAlchemyError("database is gone")

        monkeypatch.setattr(sales_service, "adjust_quantity", broken_adjust)

        resp = client.post("/api/sales", json=cart_payload([tire_line(new_tire)]))

        assert resp.status_code == 500
        assert resp.get_json() == {"error": "Failed to create sale"}
        assert db_session.query(Sale).count() == 0
        db_session.expire_all()
        assert db_session.get(Product, new_tire.id).quantity == 10


# =============================================================================
# HISTORY AND EDITS
# =============================================================================


class TestSaleReads:

    def test_list_recent_and_get(self, client, new_tire):
        created = client.post("/api/sales", json=cart_payload([tire_line(new_tire, qty=1)])).get_json()["sale"]

        listing = client.get("/api/sales").get_json()
        assert listing["count"] == 1
        assert listing["items"][0]["invoice_number"] == created["invoice_number"]
        assert "items" not in listing["items"][0]

        recent = client.get("/api/sales/recent").get_json()
        assert recent["count"] == 1

        detail = client.get(f"/api/sales/{created['id']}").get_json()["sale"]
        assert len(detail["items"]) == 1

    def test_date_filter(self, client, new_tire):
        client.post("/api/sales", json=cart_payload([tire_line(new_tire, qty=1)]))

        resp = client.get("/api/sales?start=2000-01-01&end=2000-01-31")

        assert resp.status_code == 200
        assert resp.get_json()["count"] == 0

    def test_bad_date_filter_is_400(self, client):
        assert client.get("/api/sales?start=yesterday").status_code == 400

    def test_missing_sale_is_404(self, client):
        assert client.get("/api/sales/999").status_code == 404


class TestSaleEdit:

    def test_edit_customer_details(self, client, new_tire):
        sale = client.post("/api/sales", json=cart_payload([tire_line(new_tire)])).get_json()["sale"]

        resp = client.put(f"/api/sales/{sale['id']}", json={"customer_phone": "555-0199", "warranty_type": "partial"})

        assert resp.status_code == 200
        edited = resp.get_json()["sale"]
        assert edited["customer_phone"] == "555-0199"
        assert edited["warranty_type"] == "partial"
        assert edited["grand_total"] == sale["grand_total"]

    def test_pricing_fields_are_rejected(self, client, new_tire):
        sale = client.post("/api/sales", json=cart_payload([tire_line(new_tire)])).get_json()["sale"]

        resp = client.put(f"/api/sales/{sale['id']}", json={"grand_total": "1.00"})

        assert resp.status_code == 400
        assert resp.get_json()["error"] == "Field not allowed: grand_total"

    def test_edit_missing_sale_is_404(self, client):
        assert client.put("/api/sales/999", json={"notes": "hi"}).status_code == 404
