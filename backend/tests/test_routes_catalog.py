"""
Catalog API tests: categories, products, stock adjustments and bulk import.
"""

from tireshop.models import Product

from factories import make_category, make_product


PRODUCT_BODY = {
    "sku": "WHL-17-5X114",
    "name": "Alloy Wheel 17in",
    "cost_price": "80.00",
    "selling_price": "149.99",
    "quantity": 8,
}


# =============================================================================
# CATEGORIES
# =============================================================================


class TestCategories:

    def test_create_and_list(self, client):
        resp = client.post("/api/categories", json={"name": "Wheels", "description": "Rims"})
        assert resp.status_code == 201

        listing = client.get("/api/categories").get_json()
        assert listing["count"] == 1
        assert listing["items"][0]["name"] == "Wheels"

    def test_name_required(self, client):
        resp = client.post("/api/categories", json={"description": "no name"})

        assert resp.status_code == 400
        assert resp.get_json()["error"] == "Missing required fields: name"

    def test_rename(self, client, tires):
        resp = client.patch(f"/api/categories/{tires.id}", json={"name": "Winter Tires"})

        assert resp.status_code == 200
        assert resp.get_json()["name"] == "Winter Tires"

    def test_delete_uncategorizes_products(self, client, db_session, new_tire, tires):
        resp = client.delete(f"/api/categories/{tires.id}")

        assert resp.status_code == 200
        db_session.expire_all()
        assert db_session.get(Product, new_tire.id).category_id is None

    def test_missing_category_is_404(self, client):
        assert client.patch("/api/categories/999", json={"name": "x"}).status_code == 404
        assert client.delete("/api/categories/999").status_code == 404


# =============================================================================
# PRODUCTS
# =============================================================================


class TestProducts:

    def test_create_product(self, client):
        resp = client.post("/api/products", json=PRODUCT_BODY)

        assert resp.status_code == 201
        body = resp.get_json()
        assert body["sku"] == "WHL-17-5X114"
        assert body["selling_price"] == "149.99"
        assert body["per_item_tax"] == "0.00"
        assert body["condition"] == "new"
        assert body["status"] == "ACTIVE"
        assert body["min_stock_level"] == 5

    def test_duplicate_sku_is_409(self, client):
        client.post("/api/products", json=PRODUCT_BODY)

        resp = client.post("/api/products", json={**PRODUCT_BODY, "name": "Other"})

        assert resp.status_code == 409

    def test_missing_required_fields(self, client):
        resp = client.post("/api/products", json={"sku": "X"})

        assert resp.status_code == 400
        assert resp.get_json()["error"] == "Missing required fields: cost_price, name, selling_price"

    def test_negative_price_rejected(self, client):
        resp = client.post("/api/products", json={**PRODUCT_BODY, "selling_price": "-1"})

        assert resp.status_code == 400
        assert resp.get_json()["error"] == "selling_price must be >= 0"

    def test_unknown_condition_rejected(self, client):
        resp = client.post("/api/products", json={**PRODUCT_BODY, "condition": "mint"})

        assert resp.status_code == 400

    def test_unknown_category_rejected(self, client):
        resp = client.post("/api/products", json={**PRODUCT_BODY, "category_id": 999})

        assert resp.status_code == 400
        assert resp.get_json()["error"] == "Category not found: 999"

    def test_update_cannot_touch_sku_or_quantity(self, client, new_tire):
        assert client.patch(f"/api/products/{new_tire.id}", json={"sku": "NEW"}).status_code == 400
        assert client.patch(f"/api/products/{new_tire.id}", json={"quantity": 99}).status_code == 400

        resp = client.patch(f"/api/products/{new_tire.id}", json={"selling_price": "110", "condition": "Used"})
        assert resp.status_code == 200
        assert resp.get_json()["selling_price"] == "110.00"
        assert resp.get_json()["condition"] == "used"

    def test_soft_delete_hides_product(self, client, db_session, new_tire):
        assert client.delete(f"/api/products/{new_tire.id}").status_code == 200

        assert client.get("/api/products").get_json()["count"] == 0
        # Row is kept for historical sale items
        assert client.get(f"/api/products/{new_tire.id}").get_json()["status"] == "DELETED"
        assert client.delete(f"/api/products/{new_tire.id}").status_code == 404

    def test_low_stock(self, client, db_session):
        make_product(db_session, sku="LOW-1", quantity=2, min_stock_level=5)
        make_product(db_session, sku="OK-1", quantity=20, min_stock_level=5)

        skus = [p["sku"] for p in client.get("/api/products/low-stock").get_json()["items"]]

        assert skus == ["LOW-1"]

    def test_get_missing_product_is_404(self, client):
        assert client.get("/api/products/999").status_code == 404


class TestStockAdjust:

    def test_restock(self, client, new_tire):
        resp = client.post(f"/api/products/{new_tire.id}/adjust", json={"delta": 6})

        assert resp.status_code == 200
        assert resp.get_json()["quantity"] == 16

    def test_cannot_go_below_zero(self, client, new_tire):
        resp = client.post(f"/api/products/{new_tire.id}/adjust", json={"delta": -11})

        assert resp.status_code == 400
        assert resp.get_json()["details"]["available"] == 10

    def test_delta_must_be_nonzero_int(self, client, new_tire):
        for bad in (0, "3", 1.5, None, True):
            resp = client.post(f"/api/products/{new_tire.id}/adjust", json={"delta": bad})
            assert resp.status_code == 400, bad

    def test_unknown_product_is_404(self, client):
        assert client.post("/api/products/999/adjust", json={"delta": 1}).status_code == 404


# =============================================================================
# IMPORT
# =============================================================================


class TestImport:

    def test_bad_rows_are_skipped_good_rows_kept(self, client, db_session):
        rows = [
            {"sku": "IMP-1", "name": "Imported Tire", "quantity": "4", "selling_price": "95.5", "cost_price": "50"},
            {"sku": "", "name": "No SKU"},
            {"sku": "IMP-2", "name": "Bad price", "selling_price": "-10"},
            {"sku": "IMP-3", "name": "Loose numbers", "quantity": "", "per_item_tax": "n/a"},
            "not a row",
        ]

        resp = client.post("/api/products/import", json={"rows": rows})

        assert resp.status_code == 200
        body = resp.get_json()
        assert body["imported"] == 2
        assert [s["row"] for s in body["skipped"]] == [2, 3, 5]
        assert body["message"] == "2 products imported successfully"

        imported = db_session.query(Product).filter_by(sku="IMP-1").one()
        assert imported.quantity == 4
        assert str(imported.selling_price) == "95.50"
        loose = db_session.query(Product).filter_by(sku="IMP-3").one()
        assert loose.quantity == 0
        assert db_session.query(Product).filter_by(sku="IMP-2").count() == 0

    def test_out_of_range_numbers_skip_only_their_row(self, client, db_session):
        rows = [
            {"sku": "GOOD-1", "name": "Good Tire", "quantity": "2", "selling_price": "80", "cost_price": "40"},
            {"sku": "BAD-1", "name": "Endless stock", "quantity": "inf", "selling_price": "80", "cost_price": "40"},
            {"sku": "BAD-2", "name": "Huge cost", "quantity": "1", "selling_price": "80", "cost_price": "1e30"},
        ]

        resp = client.post("/api/products/import", json={"rows": rows})

        assert resp.status_code == 200
        body = resp.get_json()
        assert body["imported"] == 1
        assert [s["row"] for s in body["skipped"]] == [2, 3]
        assert body["skipped"][0]["reason"] == "quantity must be a whole number"
        assert body["skipped"][1]["reason"] == "cost_price cannot exceed 99999999.99"
        assert db_session.query(Product).filter_by(sku="GOOD-1").one().quantity == 2
        assert db_session.query(Product).filter(Product.sku.in_(["BAD-1", "BAD-2"])).count() == 0

    def test_quantity_must_be_whole(self, client, db_session):
        rows = [
            {"sku": "QTY-1", "name": "Fractional", "quantity": "12.7", "selling_price": "10", "cost_price": "5"},
            {"sku": "QTY-2", "name": "Garbled", "quantity": "abc", "selling_price": "10", "cost_price": "5"},
            {"sku": "QTY-3", "name": "Spreadsheet float", "quantity": 12.0, "selling_price": "10", "cost_price": "5"},
            {"sku": "QTY-4", "name": "Too many", "quantity": "1000001", "selling_price": "10", "cost_price": "5"},
        ]

        body = client.post("/api/products/import", json={"rows": rows}).get_json()

        assert body["imported"] == 1
        assert [(s["sku"], s["reason"]) for s in body["skipped"]] == [
            ("QTY-1", "quantity must be a whole number"),
            ("QTY-2", "quantity must be a whole number"),
            ("QTY-4", "quantity cannot exceed 1000000"),
        ]
        assert db_session.query(Product).filter_by(sku="QTY-3").one().quantity == 12

    def test_existing_sku_is_updated_and_restored(self, client, db_session):
        tires = make_category(db_session, "Tires")
        product = make_product(db_session, sku="IMP-9", quantity=1, category=tires)
        product.status = "DELETED"
        db_session.commit()

        resp = client.post("/api/products/import", json={"rows": [
            {"sku": "IMP-9", "name": "Renamed", "quantity": 12, "selling_price": "10", "cost_price": "5"},
        ]})

        assert resp.get_json()["imported"] == 1
        db_session.expire_all()
        product = db_session.query(Product).filter_by(sku="IMP-9").one()
        assert product.name == "Renamed"
        assert product.quantity == 12
        assert product.status == "ACTIVE"
        assert product.category_id == tires.id

    def test_rows_must_be_a_list(self, client):
        assert client.post("/api/products/import", json={"rows": "IMP-1"}).status_code == 400
