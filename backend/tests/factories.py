"""Small builders shared by the test modules."""

from decimal import Decimal

from tireshop.models import Category, Product


def make_category(session, name="Tires", description=None) -> Category:
    category = Category(name=name, description=description)
    session.add(category)
    session.commit()
    return category


def make_product(session, *, sku, name=None, quantity=10, selling_price="100.00",
                 cost_price="60.00", per_item_tax="0", condition="new",
                 category=None, min_stock_level=5) -> Product:
    product = Product(
        sku=sku,
        name=name or f"Product {sku}",
        quantity=quantity,
        selling_price=Decimal(selling_price),
        cost_price=Decimal(cost_price),
        per_item_tax=Decimal(per_item_tax),
        condition=condition,
        category_id=category.id if category is not None else None,
        min_stock_level=min_stock_level,
    )
    session.add(product)
    session.commit()
    return product


def cart_payload(items, **overrides) -> dict:
    payload = {
        "customer_name": "Jane Doe",
        "payment_method": "card",
        "items": items,
    }
    payload.update(overrides)
    return payload
