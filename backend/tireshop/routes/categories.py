# Overview: Flask API routes for product categories; parses input and returns JSON responses.

from flask import Blueprint, request

from ..models import Category
from ..services import products_service
from ..validation import ModelValidationPolicy, validate_payload, ValidationError

CATEGORY_POLICY = ModelValidationPolicy(
    writable_fields={"name", "description"},
    required_on_create={"name"},
)

categories_bp = Blueprint("categories", __name__, url_prefix="/api/categories")


@categories_bp.get("")
def list_categories():
    categories = products_service.list_categories()
    return {"items": [c.to_dict() for c in categories], "count": len(categories)}


@categories_bp.post("")
def create_category_route():
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=Category, payload=payload, policy=CATEGORY_POLICY, partial=False)
    except ValidationError as e:
        return {"error": str(e)}, 400

    category = products_service.create_category(patch=patch)
    return category.to_dict(), 201


@categories_bp.patch("/<int:category_id>")
def update_category_route(category_id: int):
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=Category, payload=payload, policy=CATEGORY_POLICY, partial=True)
    except ValidationError as e:
        return {"error": str(e)}, 400

    category = products_service.update_category(category_id=category_id, patch=patch)
    if category is None:
        return {"error": "Category not found"}, 404
    return category.to_dict(), 200


@categories_bp.delete("/<int:category_id>")
def delete_category_route(category_id: int):
    """Delete a category. Its products are kept and become uncategorized."""
    if not products_service.delete_category(category_id=category_id):
        return {"error": "Category not found"}, 404
    return {"ok": True}, 200
