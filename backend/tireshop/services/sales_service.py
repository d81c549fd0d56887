"""
Sales Service - cart settlement and sale records

settle_sale is the only way a Sale comes into existence:

    parse payload -> read tax rate once -> normalize cart (read-only)
    -> compute totals (pure) -> commit

The commit writes the Sale, its SaleItems and the stock decrements in one
transaction. Any failure rolls all three back. Stock is re-checked by the
conditional decrement at commit time, not only during validation.

A sale is never re-priced afterwards: update_sale edits customer/payment
metadata only.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from flask import current_app
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db
from ..models import Sale, SaleItem
from ..money import check_amount_range, parse_optional_decimal, quantize_money
from ..config import DEFAULT_TIRE_FEE
from ..validation import (
    ModelValidationPolicy,
    ValidationError,
    validate_payload,
    enforce_rules_sale_metadata,
)
from tireshop.time_utils import utcnow
from . import invoice_service, settings_service
from .concurrency import begin_write_transaction, run_with_retry
from .errors import CommitFailure, InvoiceNumberConflict, SaleError
from .inventory_service import adjust_quantity
from .line_item_service import CartEntry, LineItem, normalize_cart, parse_cart, requested_quantities
from .totals_service import SaleTotals, compute_totals

SALE_METADATA_FIELDS = {
    "customer_name", "customer_phone", "customer_email", "customer_address",
    "vehicle_make", "vehicle_model", "vehicle_year", "license_plate", "mileage",
    "payment_method", "cash_received", "change_given", "cheque_number",
    "warranty_type", "warranty_duration", "notes",
}

SALE_CREATE_POLICY = ModelValidationPolicy(
    writable_fields=SALE_METADATA_FIELDS,
    required_on_create={"customer_name", "payment_method"},
)

# Edits after the fact never touch pricing fields
SALE_EDIT_POLICY = ModelValidationPolicy(writable_fields=SALE_METADATA_FIELDS)

# Keys of the cart payload that are not Sale columns
CART_FIELDS = {"items", "discount", "labor_cost"}

RECENT_SALES_LIMIT = 10


@dataclass(frozen=True)
class SaleRequest:
    metadata: dict
    entries: list[CartEntry]
    discount: Decimal
    labor_cost: Decimal


def parse_sale_request(payload: dict) -> SaleRequest:
    """Validate a checkout payload before anything touches the database."""
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    metadata_payload = {k: v for k, v in payload.items() if k not in CART_FIELDS}
    metadata = validate_payload(
        model=Sale,
        payload=metadata_payload,
        policy=SALE_CREATE_POLICY,
        partial=False,
    )
    enforce_rules_sale_metadata(metadata)

    entries = parse_cart(payload.get("items"))

    return SaleRequest(
        metadata=metadata,
        entries=entries,
        discount=check_amount_range(parse_optional_decimal(payload.get("discount")), "discount"),
        labor_cost=check_amount_range(parse_optional_decimal(payload.get("labor_cost")), "labor_cost"),
    )


def _tire_fee() -> Decimal:
    return Decimal(str(current_app.config.get("TIRE_FEE", DEFAULT_TIRE_FEE)))


def quote_sale(payload: dict) -> tuple[SaleRequest, list[LineItem], SaleTotals]:
    """Validate, price and total a cart without writing anything."""
    request = parse_sale_request(payload)
    global_tax_rate = settings_service.get_global_tax_rate()
    line_items = normalize_cart(request.entries, tire_fee=_tire_fee())
    totals = compute_totals(
        line_items,
        discount=request.discount,
        labor_cost=request.labor_cost,
        global_tax_rate=global_tax_rate,
    )
    # In-range prices can still multiply past what the sale columns hold
    for index, line in enumerate(line_items):
        check_amount_range(line.line_total, f"items[{index}].line_total")
    check_amount_range(totals.subtotal, "subtotal")
    check_amount_range(totals.grand_total, "grand_total")
    return request, line_items, totals


def _commit_sale(
    *,
    invoice_number: str,
    sale_date: datetime,
    request: SaleRequest,
    line_items: list[LineItem],
    totals: SaleTotals,
) -> Sale:
    try:
        begin_write_transaction()

        sale = Sale(
            invoice_number=invoice_number,
            payment_status="paid",
            sale_date=sale_date,
            **request.metadata,
            **totals.as_money(),
        )
        db.session.add(sale)
        db.session.flush()

        for line in line_items:
            db.session.add(SaleItem(
                sale_id=sale.id,
                product_id=line.product_id,
                product_name=line.product_name,
                product_sku=line.product_sku,
                quantity=line.quantity,
                unit_price=quantize_money(line.unit_price),
                per_item_tax=quantize_money(line.per_item_tax),
                line_total=quantize_money(line.line_total),
                is_taxable=line.is_taxable,
            ))
        db.session.flush()

        for product_id, quantity in requested_quantities(line_items).items():
            adjust_quantity(product_id, -quantity, commit=False)

        db.session.commit()
        return sale

    except SaleError:
        db.session.rollback()
        raise
    except (OperationalError, StaleDataError):
        # run_with_retry rolls back and tries again
        raise
    except IntegrityError as exc:
        db.session.rollback()
        if "invoice_number" in str(exc.orig):
            raise InvoiceNumberConflict(
                f"Invoice number {invoice_number} already exists",
                details={"invoice_number": invoice_number},
            ) from exc
        current_app.logger.exception("Sale commit failed for invoice %s", invoice_number)
        raise CommitFailure("Failed to create sale") from exc
    except Exception as exc:
        db.session.rollback()
        current_app.logger.exception("Sale commit failed for invoice %s", invoice_number)
        raise CommitFailure("Failed to create sale") from exc


def settle_sale(payload: dict) -> Sale:
    """
    Create a paid sale from a checkout payload.

    Raises:
        ValidationError: malformed payload (nothing written)
        ProductNotFound / InsufficientStock: cart rejected (nothing written)
        InvoiceNumberConflict: every generated invoice number collided
        CommitFailure: persistence failed; the sale was rolled back
    """
    request, line_items, totals = quote_sale(payload)

    # Close the read-only validation transaction before taking the write lock
    db.session.commit()

    attempts = current_app.config.get("INVOICE_NUMBER_ATTEMPTS", 5)
    last_conflict: InvoiceNumberConflict | None = None

    for _ in range(attempts):
        sale_date = utcnow()
        invoice_number = invoice_service.generate_invoice_number(sale_date)
        try:
            sale = run_with_retry(lambda: _commit_sale(
                invoice_number=invoice_number,
                sale_date=sale_date,
                request=request,
                line_items=line_items,
                totals=totals,
            ))
        except InvoiceNumberConflict as exc:
            current_app.logger.warning("Invoice number collision on %s; regenerating", invoice_number)
            last_conflict = exc
            continue
        except (OperationalError, StaleDataError) as exc:
            current_app.logger.exception("Sale commit failed for invoice %s", invoice_number)
            raise CommitFailure("Failed to create sale") from exc

        current_app.logger.info(
            "Settled sale %s: %d line(s), grand total %s",
            sale.invoice_number,
            len(line_items),
            sale.grand_total,
        )
        return sale

    raise last_conflict or InvoiceNumberConflict("Could not allocate an invoice number")


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------

def list_sales(start: datetime | None = None, end: datetime | None = None) -> list[Sale]:
    """Sales newest first, optionally limited to [start, end)."""
    query = db.session.query(Sale)
    if start is not None:
        query = query.filter(Sale.sale_date >= start)
    if end is not None:
        query = query.filter(Sale.sale_date < end)
    return query.order_by(Sale.sale_date.desc(), Sale.id.desc()).all()


def list_recent_sales(limit: int = RECENT_SALES_LIMIT) -> list[Sale]:
    return (
        db.session.query(Sale)
        .order_by(Sale.sale_date.desc(), Sale.id.desc())
        .limit(limit)
        .all()
    )


def get_sale(sale_id: int) -> Sale | None:
    return db.session.get(Sale, sale_id)


def get_sale_by_invoice_number(invoice_number: str) -> Sale | None:
    return db.session.query(Sale).filter_by(invoice_number=invoice_number).first()


# ---------------------------------------------------------------------------
# Metadata edit
# ---------------------------------------------------------------------------

def update_sale(*, sale_id: int, payload: dict) -> Sale | None:
    """
    Edit customer/payment metadata of a settled sale.

    Totals stay exactly as settled; pricing fields are rejected outright
    rather than silently ignored.
    """
    patch = validate_payload(model=Sale, payload=payload, policy=SALE_EDIT_POLICY, partial=True)
    enforce_rules_sale_metadata(patch)

    sale = db.session.get(Sale, sale_id)
    if sale is None:
        return None

    for k, v in patch.items():
        setattr(sale, k, v)
    db.session.commit()
    return sale

