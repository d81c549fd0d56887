# Overview: Turns raw cart entries into priced, taxed line items; read-only against the catalog.

"""
Line item normalization.

A cart entry is either a CatalogItem (backed by a Product) or a CustomItem
(free-form charge such as labor or a disposal fee). The legacy wire format
marks custom entries with product_id = -1 or null; parse_cart_entry turns
that into the explicit variant once, at the boundary, and nothing past this
module compares against a sentinel.

Per-item tax resolution for catalog items, when the cart does not carry an
explicit per_item_tax:
    1. product.per_item_tax > 0           -> that amount
    2. category name contains "tire" and
       product.condition == "new"         -> the shop tire fee
    3. otherwise                          -> 0
Custom items never carry per-item tax; only the global sales tax can apply,
and only when the cashier opted in with is_taxable=true.
"""
from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Callable, Iterable, Optional, Union

from ..config import DEFAULT_TIRE_FEE
from ..models import Category, Product, CUSTOM_ITEM_SKU
from ..money import ZERO, check_amount_range, is_blank, parse_optional_decimal, parse_required_decimal
from ..validation import MAX_QUANTITY, ValidationError
from .errors import InsufficientStock, ProductNotFound

# Wire sentinel older clients send for "no catalog product"
LEGACY_CUSTOM_PRODUCT_ID = -1

TIRE_CATEGORY_KEYWORD = "tire"


@dataclass(frozen=True)
class CatalogItem:
    product_id: int
    quantity: int
    unit_price: Decimal
    # None means "resolve from the catalog"
    per_item_tax: Optional[Decimal] = None


@dataclass(frozen=True)
class CustomItem:
    name: str
    quantity: int
    unit_price: Decimal
    # Opt-in: shop fees and labor are untaxed unless the cashier says otherwise
    is_taxable: bool = False


CartEntry = Union[CatalogItem, CustomItem]


@dataclass(frozen=True)
class LineItem:
    """A priced line ready to be totalled and persisted as a SaleItem."""
    product_id: Optional[int]
    product_name: str
    product_sku: str
    quantity: int
    unit_price: Decimal
    per_item_tax: Decimal
    is_taxable: bool

    @property
    def is_custom(self) -> bool:
        return self.product_id is None

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity

    @property
    def per_item_tax_total(self) -> Decimal:
        return self.per_item_tax * self.quantity


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------

def _parse_quantity(value: Any, index: int) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"items[{index}].quantity must be an integer")
    if isinstance(value, str) and value.strip().isdigit():
        value = int(value.strip())
    if not isinstance(value, int):
        raise ValidationError(f"items[{index}].quantity must be an integer")
    if value < 1:
        raise ValidationError(f"items[{index}].quantity must be at least 1")
    if value > MAX_QUANTITY:
        raise ValidationError(f"items[{index}].quantity cannot exceed {MAX_QUANTITY}")
    return value


def _parse_unit_price(value: Any, index: int) -> Decimal:
    price = parse_required_decimal(value, f"items[{index}].unit_price")
    if price < 0:
        raise ValidationError(f"items[{index}].unit_price must be >= 0")
    return check_amount_range(price, f"items[{index}].unit_price")


def _parse_taxable_flag(value: Any) -> bool:
    # Only an explicit true opts a custom item into sales tax
    return value is True or (isinstance(value, str) and value.strip().lower() == "true")


def parse_cart_entry(raw: Any, index: int = 0) -> CartEntry:
    """Validate one raw cart dict and return the matching variant."""
    if not isinstance(raw, dict):
        raise ValidationError(f"items[{index}] must be an object")

    quantity = _parse_quantity(raw.get("quantity"), index)
    unit_price = _parse_unit_price(raw.get("unit_price"), index)

    product_id = raw.get("product_id")
    if product_id is None or product_id == LEGACY_CUSTOM_PRODUCT_ID:
        name = raw.get("product_name")
        if not isinstance(name, str) or not name.strip():
            raise ValidationError(f"items[{index}].product_name is required for custom items")
        return CustomItem(
            name=name.strip(),
            quantity=quantity,
            unit_price=unit_price,
            is_taxable=_parse_taxable_flag(raw.get("is_taxable")),
        )

    if isinstance(product_id, bool) or not isinstance(product_id, int) or product_id < 1:
        raise ValidationError(f"items[{index}].product_id must be a positive integer")

    raw_tax = raw.get("per_item_tax")
    per_item_tax = None if is_blank(raw_tax) else parse_optional_decimal(raw_tax)
    if per_item_tax is not None and per_item_tax < 0:
        raise ValidationError(f"items[{index}].per_item_tax must be >= 0")
    if per_item_tax is not None:
        check_amount_range(per_item_tax, f"items[{index}].per_item_tax")

    return CatalogItem(
        product_id=product_id,
        quantity=quantity,
        unit_price=unit_price,
        per_item_tax=per_item_tax,
    )


def parse_cart(raw_items: Any) -> list[CartEntry]:
    if not isinstance(raw_items, list) or not raw_items:
        raise ValidationError("At least one item is required")
    return [parse_cart_entry(raw, i) for i, raw in enumerate(raw_items)]


# ---------------------------------------------------------------------------
# Tax resolution
# ---------------------------------------------------------------------------

def is_tire_category(category: Optional[Category]) -> bool:
    if category is None or not category.name:
        return False
    return TIRE_CATEGORY_KEYWORD in category.name.lower()


def resolve_per_item_tax(
    product: Product,
    category: Optional[Category],
    tire_fee: Decimal = Decimal(DEFAULT_TIRE_FEE),
) -> Decimal:
    """Per-unit fee for a catalog product when the cart did not specify one."""
    explicit = Decimal(product.per_item_tax) if product.per_item_tax is not None else ZERO
    if explicit > 0:
        return explicit

    if is_tire_category(category) and (product.condition or "").lower() == "new":
        return tire_fee

    return ZERO


# ---------------------------------------------------------------------------
# Normalization
# ---------------------------------------------------------------------------

def _default_product_lookup(product_id: int) -> Optional[Product]:
    from .products_service import get_active_product
    return get_active_product(product_id)


def _default_category_lookup(category_id: int) -> Optional[Category]:
    from .products_service import get_category
    return get_category(category_id)


def requested_quantities(entries: Iterable[Union[CartEntry, LineItem]]) -> "OrderedDict[int, int]":
    """Total requested units per catalog product, in first-seen order."""
    totals: "OrderedDict[int, int]" = OrderedDict()
    for entry in entries:
        product_id = getattr(entry, "product_id", None)
        if product_id is None:
            continue
        totals[product_id] = totals.get(product_id, 0) + entry.quantity
    return totals


def normalize_cart(
    entries: list[CartEntry],
    *,
    tire_fee: Decimal = Decimal(DEFAULT_TIRE_FEE),
    get_product: Callable[[int], Optional[Product]] = _default_product_lookup,
    get_category: Callable[[int], Optional[Category]] = _default_category_lookup,
) -> list[LineItem]:
    """
    Price every entry, or fail the whole cart.

    Stock is checked against the sum of all lines for the same product, so
    splitting a request across two lines cannot sneak past the check.

    Raises:
        ProductNotFound: a catalog entry does not resolve to an active product
        InsufficientStock: requested units exceed product.quantity
    """
    products: dict[int, Product] = {}
    for product_id in requested_quantities(entries):
        product = get_product(product_id)
        if product is None or not product.is_active:
            raise ProductNotFound(product_id)
        products[product_id] = product

    for product_id, requested in requested_quantities(entries).items():
        product = products[product_id]
        if product.quantity < requested:
            raise InsufficientStock(
                product_id=product_id,
                product_name=product.name,
                requested=requested,
                available=product.quantity,
            )

    line_items = []
    for entry in entries:
        if isinstance(entry, CustomItem):
            line_items.append(LineItem(
                product_id=None,
                product_name=entry.name,
                product_sku=CUSTOM_ITEM_SKU,
                quantity=entry.quantity,
                unit_price=entry.unit_price,
                per_item_tax=ZERO,
                is_taxable=entry.is_taxable,
            ))
            continue

        product = products[entry.product_id]
        if entry.per_item_tax is not None:
            per_item_tax = entry.per_item_tax
        else:
            category = get_category(product.category_id) if product.category_id else None
            per_item_tax = resolve_per_item_tax(product, category, tire_fee)

        line_items.append(LineItem(
            product_id=product.id,
            product_name=product.name,
            product_sku=product.sku,
            quantity=entry.quantity,
            unit_price=entry.unit_price,
            per_item_tax=per_item_tax,
            is_taxable=True,
        ))

    return line_items
