# Overview: Service-layer operations for shop settings; encapsulates business logic and database work.

"""
Shop settings.

Settings are stored as text in a key/value table. The global tax rate is
read once per sale and snapshotted onto the Sale row, so changing it never
touches historical invoices.
"""
from __future__ import annotations

from decimal import Decimal

from flask import current_app

from ..extensions import db
from ..models import Setting
from ..money import parse_required_decimal, quantize_money
from ..validation import ValidationError
from ..config import DEFAULT_GLOBAL_TAX_RATE

GLOBAL_TAX_RATE_KEY = "globalTaxRate"

MAX_TAX_RATE = Decimal("100")


def get_setting(key: str) -> Setting | None:
    return db.session.query(Setting).filter_by(key=key).first()


def set_setting(key: str, value: str) -> Setting:
    setting = get_setting(key)
    if setting is None:
        setting = Setting(key=key, value=value)
        db.session.add(setting)
    else:
        setting.value = value
    db.session.commit()
    return setting


def _default_tax_rate() -> Decimal:
    raw = current_app.config.get("DEFAULT_GLOBAL_TAX_RATE", DEFAULT_GLOBAL_TAX_RATE)
    return Decimal(str(raw))


def validate_tax_rate(value) -> Decimal:
    rate = parse_required_decimal(value, "global_tax_rate")
    if rate < 0 or rate > MAX_TAX_RATE:
        raise ValidationError("global_tax_rate must be between 0 and 100")
    # Sale.global_tax_rate holds two decimals; keep the live rate identical to the snapshot
    return quantize_money(rate)


def get_global_tax_rate() -> Decimal:
    """Current sales tax percentage (9.5 when the shop never saved one)."""
    setting = get_setting(GLOBAL_TAX_RATE_KEY)
    if setting is None or not setting.value.strip():
        return _default_tax_rate()
    try:
        return validate_tax_rate(setting.value)
    except ValidationError:
        current_app.logger.warning(
            "Stored %s=%r is not a valid rate; using default",
            GLOBAL_TAX_RATE_KEY,
            setting.value,
        )
        return _default_tax_rate()


def set_global_tax_rate(value) -> Decimal:
    rate = validate_tax_rate(value)
    set_setting(GLOBAL_TAX_RATE_KEY, str(rate))
    return rate


def ensure_default_settings() -> bool:
    """Seed the tax rate setting if missing. Returns True when a row was created."""
    if get_setting(GLOBAL_TAX_RATE_KEY) is not None:
        return False
    set_setting(GLOBAL_TAX_RATE_KEY, str(_default_tax_rate()))
    return True
