# Overview: Flask API routes for shop settings; parses input and returns JSON responses.

from __future__ import annotations

from flask import Blueprint, request, current_app

from ..money import to_money_str
from ..services import settings_service
from ..validation import ValidationError


settings_bp = Blueprint("settings", __name__, url_prefix="/api/settings")


@settings_bp.get("/tax")
def get_tax_settings():
    """Current global sales tax rate (percentage)."""
    rate = settings_service.get_global_tax_rate()
    return {"global_tax_rate": to_money_str(rate)}, 200


@settings_bp.post("/tax")
def update_tax_settings():
    """
    Set the global sales tax rate.

    Only sales settled after this call use the new rate; existing invoices
    keep the rate they were settled with.
    """
    payload = request.get_json(silent=True) or {}
    if "global_tax_rate" not in payload:
        return {"error": "global_tax_rate required"}, 400

    try:
        rate = settings_service.set_global_tax_rate(payload["global_tax_rate"])
    except ValidationError as e:
        return {"error": str(e)}, 400
    except Exception:
        current_app.logger.exception("Failed to update tax settings")
        return {"error": "Internal server error"}, 500

    current_app.logger.info("Global tax rate set to %s", rate)
    return {"global_tax_rate": to_money_str(rate)}, 200
