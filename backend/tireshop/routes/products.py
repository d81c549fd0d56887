# Overview: Flask API routes for products operations; parses input and returns JSON responses.

# backend/tireshop/routes/products.py
"""
Product management routes.

Deleting a product is a soft delete (status -> DELETED). Stock changes go
through POST /<id>/adjust, never through a plain update, so that every
quantity change uses the same never-below-zero guard as a sale.
"""
from flask import Blueprint, request, current_app
from ..models import Product
from ..services import products_service, inventory_service, import_service
from ..services.errors import InsufficientStock, ProductNotFound
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_product,
    ValidationError,
    ConflictError,
)

PRODUCT_CREATE_POLICY = ModelValidationPolicy(
    writable_fields={
        "sku", "name", "description", "category_id", "brand", "size", "quantity",
        "min_stock_level", "cost_price", "selling_price", "per_item_tax",
        "location", "condition",
    },
    required_on_create={"sku", "name", "cost_price", "selling_price"},
)

# SKU is immutable and quantity only moves through /adjust
PRODUCT_UPDATE_POLICY = ModelValidationPolicy(
    writable_fields=PRODUCT_CREATE_POLICY.writable_fields - {"sku", "quantity"},
)

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.get("")
def list_products():
    """List active products, newest first."""
    products = products_service.list_products()
    return {"items": [p.to_dict() for p in products], "count": len(products)}


@products_bp.get("/low-stock")
def list_low_stock():
    """Active products at or below their min_stock_level."""
    products = products_service.list_low_stock_products()
    return {"items": [p.to_dict() for p in products], "count": len(products)}


@products_bp.get("/<int:product_id>")
def get_product_route(product_id: int):
    product = products_service.get_product(product_id)
    if product is None:
        return {"error": "Product not found"}, 404
    return product.to_dict(), 200


@products_bp.post("")
def create_product_route():
    """Create a new product."""
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_CREATE_POLICY, partial=False)
        enforce_rules_product(patch)
    except ValidationError as e:
        return {"error": str(e)}, 400

    patch.setdefault("min_stock_level", current_app.config.get("LOW_STOCK_DEFAULT_LEVEL", 5))

    try:
        created = products_service.create_product(patch=patch)
    except ConflictError as e:
        return {"error": str(e)}, 409
    except ValidationError as e:
        return {"error": str(e)}, 400

    return created.to_dict(), 201


@products_bp.patch("/<int:product_id>")
def update_product_route(product_id: int):
    """Update product details (not SKU, not stock)."""
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_UPDATE_POLICY, partial=True)
        enforce_rules_product(patch)
        updated = products_service.update_product(product_id=product_id, patch=patch)
    except ValidationError as e:
        return {"error": str(e)}, 400

    if updated is None:
        return {"error": "Product not found"}, 404
    return updated.to_dict(), 200


@products_bp.delete("/<int:product_id>")
def delete_product_route(product_id: int):
    """Soft-delete a product; it disappears from the catalog but keeps its row."""
    if not products_service.delete_product(product_id=product_id):
        return {"error": "Product not found"}, 404
    return {"ok": True}, 200


@products_bp.post("/<int:product_id>/adjust")
def adjust_stock_route(product_id: int):
    """
    Adjust stock by a signed delta (restock, shrinkage, count correction).

    Body: {"delta": int}
    """
    payload = request.get_json(silent=True) or {}
    delta = payload.get("delta")

    if isinstance(delta, bool) or not isinstance(delta, int) or delta == 0:
        return {"error": "delta must be a non-zero integer"}, 400

    try:
        product = inventory_service.adjust_quantity(product_id, delta)
    except ProductNotFound:
        return {"error": "Product not found"}, 404
    except InsufficientStock as e:
        return {"error": e.message, "details": e.details}, 400

    current_app.logger.info("Stock for product %s adjusted by %d -> %d", product_id, delta, product.quantity)
    return product.to_dict(), 200


@products_bp.post("/import")
def import_products_route():
    """
    Upsert products from already-parsed rows.

    Body: {"rows": [{"sku", "name", "brand", "size", "quantity",
                     "cost_price", "selling_price", "per_item_tax"}, ...]}
    Bad rows are skipped and reported; good rows are kept.
    """
    payload = request.get_json(silent=True) or {}
    rows = payload.get("rows")
    if not isinstance(rows, list):
        return {"error": "rows must be a list"}, 400

    try:
        result = import_service.import_products(rows)
    except Exception:
        current_app.logger.exception("Failed to import products")
        return {"error": "Failed to import products"}, 500

    result["message"] = f"{result['imported']} products imported successfully"
    return result, 200
