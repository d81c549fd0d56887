# Overview: Flask API routes for sales operations; parses input and returns JSON responses.

# backend/tireshop/routes/sales.py
"""Sales API routes: checkout (settlement), history, and metadata edits."""

from flask import Blueprint, request, current_app

from ..services import sales_service
from ..services.errors import (
    CommitFailure,
    InvoiceNumberConflict,
    SaleError,
)
from ..validation import ValidationError
from tireshop.time_utils import parse_date_range


sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


@sales_bp.get("")
def list_sales_route():
    """
    List sales, newest first.

    Query params:
    - start: ISO date/datetime (inclusive)
    - end: ISO date/datetime (exclusive; a bare date includes that whole day)
    """
    try:
        start, end = parse_date_range(request.args.get("start"), request.args.get("end"))
    except ValueError:
        return {"error": "start/end must be ISO-8601 dates"}, 400

    sales = sales_service.list_sales(start=start, end=end)
    return {"items": [s.to_dict() for s in sales], "count": len(sales)}


@sales_bp.get("/recent")
def recent_sales_route():
    sales = sales_service.list_recent_sales()
    return {"items": [s.to_dict() for s in sales], "count": len(sales)}


@sales_bp.get("/<int:sale_id>")
def get_sale_route(sale_id: int):
    """Get sale with its line items."""
    sale = sales_service.get_sale(sale_id)
    if sale is None:
        return {"error": "Sale not found"}, 404
    return {"sale": sale.to_dict(include_items=True)}, 200


@sales_bp.post("")
def create_sale_route():
    """
    Settle a cart into a paid sale.

    Totals are computed server-side from the cart, discount, labor_cost and
    the current tax rate; client-computed totals are not accepted.
    """
    payload = request.get_json(silent=True)

    try:
        sale = sales_service.settle_sale(payload)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except InvoiceNumberConflict as e:
        return {"error": e.message, "details": e.details, "retryable": True}, 409
    except CommitFailure:
        return {"error": "Failed to create sale"}, 500
    except SaleError as e:
        # ProductNotFound / InsufficientStock
        return {"error": e.message, "details": e.details}, 400
    except Exception:
        current_app.logger.exception("Failed to create sale")
        return {"error": "Failed to create sale"}, 500

    return {"sale": sale.to_dict(include_items=True)}, 201


@sales_bp.put("/<int:sale_id>")
def update_sale_route(sale_id: int):
    """
    Edit customer, vehicle, payment and warranty details of a sale.

    Pricing fields (subtotal, discount, labor_cost, ...) cannot be edited.
    """
    payload = request.get_json(silent=True) or {}

    try:
        sale = sales_service.update_sale(sale_id=sale_id, payload=payload)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except Exception:
        current_app.logger.exception("Failed to update sale")
        return {"error": "Failed to update sale"}, 500

    if sale is None:
        return {"error": "Sale not found"}, 404
    return {"sale": sale.to_dict(include_items=True)}, 200
