# Overview: Flask API routes for shop expenses; parses input and returns JSON responses.

from flask import Blueprint, request

from ..models import Expense
from ..services import expenses_service
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_expense,
    ValidationError,
)
from tireshop.time_utils import parse_date_range

EXPENSE_POLICY = ModelValidationPolicy(
    writable_fields={"description", "amount", "category", "payment_method", "notes", "expense_date"},
    required_on_create={"description", "amount"},
)

expenses_bp = Blueprint("expenses", __name__, url_prefix="/api/expenses")


@expenses_bp.get("")
def list_expenses_route():
    """List expenses newest first; optional ?start=&end= filter."""
    try:
        start, end = parse_date_range(request.args.get("start"), request.args.get("end"))
    except ValueError:
        return {"error": "start/end must be ISO-8601 dates"}, 400

    expenses = expenses_service.list_expenses(start=start, end=end)
    return {"items": [e.to_dict() for e in expenses], "count": len(expenses)}


@expenses_bp.get("/<int:expense_id>")
def get_expense_route(expense_id: int):
    expense = expenses_service.get_expense(expense_id)
    if expense is None:
        return {"error": "Expense not found"}, 404
    return expense.to_dict(), 200


@expenses_bp.post("")
def create_expense_route():
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=Expense, payload=payload, policy=EXPENSE_POLICY, partial=False)
        enforce_rules_expense(patch)
    except ValidationError as e:
        return {"error": str(e)}, 400

    expense = expenses_service.create_expense(patch=patch)
    return expense.to_dict(), 201


@expenses_bp.delete("/<int:expense_id>")
def delete_expense_route(expense_id: int):
    if not expenses_service.delete_expense(expense_id=expense_id):
        return {"error": "Expense not found"}, 404
    return {"ok": True}, 200
