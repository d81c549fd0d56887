# Overview: Service-layer operations for inventory; encapsulates business logic and database work.

"""
Stock mutation.

Every change to Product.quantity goes through adjust_quantity, which is a
single conditional UPDATE:

    UPDATE products SET quantity = quantity + :delta
    WHERE id = :id AND status = 'ACTIVE' AND quantity + :delta >= 0

Zero affected rows means the product vanished or the shelf is too short.
Two terminals racing for the last units cannot both win, no matter how long
ago they validated.
"""
from __future__ import annotations

from sqlalchemy import update

from ..extensions import db
from ..models import Product, PRODUCT_STATUS_ACTIVE
from ..validation import ValidationError
from .errors import InsufficientStock, ProductNotFound


def adjust_quantity(product_id: int, delta: int, *, commit: bool = True) -> Product:
    """
    Atomically add delta (negative to sell) to a product's stock.

    Raises:
        ProductNotFound: product missing or deleted
        InsufficientStock: the result would go below zero
    """
    if isinstance(delta, bool) or not isinstance(delta, int):
        raise ValidationError("delta must be an integer")

    stmt = (
        update(Product)
        .where(
            Product.id == product_id,
            Product.status == PRODUCT_STATUS_ACTIVE,
            Product.quantity + delta >= 0,
        )
        .values(quantity=Product.quantity + delta)
        .execution_options(synchronize_session=False)
    )
    result = db.session.execute(stmt)

    if not result.rowcount:
        product = (
            db.session.query(Product)
            .filter(Product.id == product_id, Product.status == PRODUCT_STATUS_ACTIVE)
            .first()
        )
        if product is None:
            raise ProductNotFound(product_id)
        db.session.refresh(product)
        raise InsufficientStock(
            product_id=product.id,
            product_name=product.name,
            requested=-delta,
            available=product.quantity,
        )

    product = db.session.get(Product, product_id)
    db.session.refresh(product)

    if commit:
        db.session.commit()
    return product
