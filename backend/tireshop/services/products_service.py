# backend/tireshop/services/products_service.py
"""
Catalog Service

Categories and products. Products are never hard-deleted: delete_product
flips status to DELETED and every lookup used for selling filters on
ACTIVE, so old invoices keep pointing at a real row.
"""
from __future__ import annotations

from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Category, Product, PRODUCT_STATUS_ACTIVE, PRODUCT_STATUS_DELETED
from ..validation import ConflictError, ValidationError

# sku is the immutable business key and is only set on create
PRODUCT_MUTABLE_FIELDS = {
    "name", "description", "category_id", "brand", "size", "quantity",
    "min_stock_level", "cost_price", "selling_price", "per_item_tax",
    "location", "condition",
}

CATEGORY_MUTABLE_FIELDS = {"name", "description"}

DEFAULT_CATEGORIES = (
    ("Tires", "All types of tires"),
    ("Wheels", "Wheels and rims"),
    ("Tire Parts", "Accessories and parts for tires"),
)


def apply_product_patch(p: Product, patch: dict) -> None:
    for k, v in patch.items():
        if k not in PRODUCT_MUTABLE_FIELDS:
            continue
        setattr(p, k, v)


def _require_category(category_id: int | None) -> None:
    if category_id is None:
        return
    if db.session.get(Category, category_id) is None:
        raise ValidationError(f"Category not found: {category_id}")


# ---------------------------------------------------------------------------
# Categories
# ---------------------------------------------------------------------------

def list_categories() -> list[Category]:
    return db.session.query(Category).order_by(Category.name.asc(), Category.id.asc()).all()


def get_category(category_id: int) -> Category | None:
    return db.session.get(Category, category_id)


def create_category(*, patch: dict) -> Category:
    category = Category(**{k: v for k, v in patch.items() if k in CATEGORY_MUTABLE_FIELDS})
    db.session.add(category)
    db.session.commit()
    return category


def update_category(*, category_id: int, patch: dict) -> Category | None:
    category = db.session.get(Category, category_id)
    if category is None:
        return None
    for k, v in patch.items():
        if k in CATEGORY_MUTABLE_FIELDS:
            setattr(category, k, v)
    db.session.commit()
    return category


def delete_category(*, category_id: int) -> bool:
    """Delete a category; its products become uncategorized."""
    category = db.session.get(Category, category_id)
    if category is None:
        return False
    (
        db.session.query(Product)
        .filter(Product.category_id == category_id)
        .update({Product.category_id: None}, synchronize_session=False)
    )
    db.session.delete(category)
    db.session.commit()
    return True


def seed_default_categories() -> list[str]:
    """Create any missing default categories (case-insensitive by name)."""
    existing = {c.name.lower() for c in db.session.query(Category).all()}
    created = []
    for name, description in DEFAULT_CATEGORIES:
        if name.lower() in existing:
            continue
        db.session.add(Category(name=name, description=description))
        created.append(name)
    db.session.commit()
    return created


# ---------------------------------------------------------------------------
# Products
# ---------------------------------------------------------------------------

def list_products() -> list[Product]:
    """Active products, newest first."""
    return (
        db.session.query(Product)
        .filter(Product.status == PRODUCT_STATUS_ACTIVE)
        .order_by(Product.created_at.desc(), Product.id.desc())
        .all()
    )


def list_low_stock_products() -> list[Product]:
    """Active products at or below their reorder level, emptiest first."""
    return (
        db.session.query(Product)
        .filter(Product.status == PRODUCT_STATUS_ACTIVE)
        .filter(Product.quantity <= Product.min_stock_level)
        .order_by(Product.quantity.asc(), Product.id.asc())
        .all()
    )


def get_product(product_id: int) -> Product | None:
    """Any product, including deleted ones (for history views)."""
    return db.session.get(Product, product_id)


def get_active_product(product_id: int) -> Product | None:
    """Product lookup for selling: deleted products are treated as missing."""
    return (
        db.session.query(Product)
        .filter(Product.id == product_id, Product.status == PRODUCT_STATUS_ACTIVE)
        .first()
    )


def get_product_by_sku(sku: str) -> Product | None:
    return db.session.query(Product).filter(Product.sku == sku).first()


def create_product(*, patch: dict) -> Product:
    """
    Create product using a validated patch dict.

    Raises:
        ConflictError: If SKU already exists
        ValidationError: If category_id does not exist
    """
    sku = patch.get("sku")
    if get_product_by_sku(sku) is not None:
        raise ConflictError(f"A product with SKU {sku!r} already exists")

    _require_category(patch.get("category_id"))

    p = Product(sku=sku, status=PRODUCT_STATUS_ACTIVE)
    apply_product_patch(p, patch)
    if p.per_item_tax is None:
        p.per_item_tax = 0

    db.session.add(p)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError(f"A product with SKU {sku!r} already exists")
    return p


def update_product(*, product_id: int, patch: dict) -> Product | None:
    p = db.session.get(Product, product_id)
    if p is None:
        return None

    if "category_id" in patch:
        _require_category(patch["category_id"])

    apply_product_patch(p, patch)
    db.session.commit()
    return p


def delete_product(*, product_id: int) -> bool:
    """Soft-delete: the row stays, status becomes DELETED."""
    p = db.session.get(Product, product_id)
    if p is None or p.status == PRODUCT_STATUS_DELETED:
        return False
    p.status = PRODUCT_STATUS_DELETED
    db.session.commit()
    return True
