# Overview: Bulk product upsert from already-parsed spreadsheet rows.

"""
Product import.

Unlike sale settlement, an import is deliberately NOT all-or-nothing: each
row is written inside its own savepoint, a bad row is logged and skipped,
and the rest of the sheet still lands. Rows are keyed by SKU - an existing
SKU is updated in place, a new one is created.

Reading CSV/XLSX files is the caller's concern; this module takes the rows
as a list of dicts.
"""

from __future__ import annotations

from typing import Any

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import Product, PRODUCT_STATUS_ACTIVE
from ..validation import MAX_QUANTITY, ValidationError, enforce_rules_product, _coerce_value, _columns_by_key
from ..money import ZERO, check_amount_range, parse_optional_decimal, parse_required_decimal, quantize_money

IMPORT_TEXT_FIELDS = ("name", "brand", "size")
IMPORT_AMOUNT_FIELDS = ("cost_price", "selling_price", "per_item_tax")


def _row_value(row: dict, key: str) -> Any:
    value = row.get(key)
    if isinstance(value, str):
        value = value.strip()
    return value


def _parse_quantity(value: Any) -> int:
    # Spreadsheet cells come through as "12", 12 or 12.0; a blank cell means none on hand
    if value is None or (isinstance(value, str) and not value.strip()):
        return 0
    if isinstance(value, bool):
        raise ValidationError("quantity must be a whole number")
    try:
        amount = parse_required_decimal(value, "quantity")
    except ValidationError:
        raise ValidationError("quantity must be a whole number")
    if amount != amount.to_integral_value():
        raise ValidationError("quantity must be a whole number")
    if amount > MAX_QUANTITY:
        raise ValidationError(f"quantity cannot exceed {MAX_QUANTITY}")
    return int(amount)


def build_import_patch(row: dict) -> dict:
    """Turn a raw row into a product patch; lenient on optional amounts, strict on quantity."""
    cols = _columns_by_key(Product)
    patch: dict = {}
    for field in IMPORT_TEXT_FIELDS:
        value = _row_value(row, field)
        if value not in (None, ""):
            patch[field] = _coerce_value(cols[field], value)

    patch["quantity"] = _parse_quantity(row.get("quantity"))
    for field in IMPORT_AMOUNT_FIELDS:
        amount = check_amount_range(parse_optional_decimal(row.get(field), ZERO), field)
        patch[field] = quantize_money(amount)

    enforce_rules_product(patch)
    return patch


def import_products(rows: list[dict]) -> dict:
    """
    Upsert products by SKU.

    Returns {"imported": n, "skipped": [{"row": i, "sku": ..., "reason": ...}]}
    where row is the 1-based position in the input.
    """
    imported = 0
    skipped: list[dict] = []

    for index, row in enumerate(rows, start=1):
        if not isinstance(row, dict):
            skipped.append({"row": index, "sku": None, "reason": "Row is not an object"})
            continue

        sku = _row_value(row, "sku")
        name = _row_value(row, "name")
        if not sku or not name:
            skipped.append({"row": index, "sku": sku or None, "reason": "Missing SKU or name"})
            continue
        sku = str(sku)

        try:
            patch = build_import_patch(row)
            with db.session.begin_nested():
                product = db.session.query(Product).filter(Product.sku == sku).first()
                if product is None:
                    product = Product(
                        sku=sku,
                        status=PRODUCT_STATUS_ACTIVE,
                        min_stock_level=current_app.config.get("LOW_STOCK_DEFAULT_LEVEL", 5),
                    )
                    db.session.add(product)
                else:
                    # Re-importing a deleted SKU brings it back
                    product.status = PRODUCT_STATUS_ACTIVE
                for k, v in patch.items():
                    setattr(product, k, v)
            imported += 1
        except (ValidationError, SQLAlchemyError, ArithmeticError) as exc:
            current_app.logger.warning("Failed to import row %d (sku=%s): %s", index, sku, exc)
            skipped.append({"row": index, "sku": sku, "reason": str(exc)})

    db.session.commit()
    return {"imported": imported, "skipped": skipped}
