# Overview: Fixed-point currency helpers shared by models, services and routes.

"""
Currency handling.

All amounts are carried as Decimal internally. Rounding to cents happens
only when a value is persisted or serialized, never between calculation
steps.
"""
from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any

from .validation import MAX_AMOUNT, ValidationError

ZERO = Decimal("0")
CENT = Decimal("0.01")


def _to_decimal(value: Any) -> Decimal | None:
    """Best-effort conversion; returns None for blank or unparsable input."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, int):
        result = Decimal(value)
    elif isinstance(value, float):
        # Go through repr so 0.1 stays 0.1 instead of its binary expansion
        result = Decimal(repr(value))
    elif isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            return None
        try:
            result = Decimal(stripped)
        except InvalidOperation:
            return None
    else:
        return None

    if not result.is_finite():
        return None
    return result


def is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == "")


def parse_required_decimal(value: Any, field: str) -> Decimal:
    """Required amount: missing or unparsable input is a hard validation error."""
    result = _to_decimal(value)
    if result is None:
        raise ValidationError(f"{field} must be a decimal amount")
    return result


def parse_optional_decimal(value: Any, default: Decimal = ZERO) -> Decimal:
    """Optional amount: blank or unparsable input falls back to the default."""
    result = _to_decimal(value)
    if result is None:
        return default
    return result


def check_amount_range(amount: Decimal, field: str) -> Decimal:
    """Reject amounts a Numeric(10, 2) column cannot hold."""
    if abs(amount) > MAX_AMOUNT:
        raise ValidationError(f"{field} cannot exceed {MAX_AMOUNT}")
    return amount


def quantize_money(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def to_money_str(value: Decimal | None) -> str | None:
    """Serialize an amount as a 2-decimal string ("12.50")."""
    if value is None:
        return None
    return str(quantize_money(Decimal(value)))
