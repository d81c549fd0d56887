from __future__ import annotations

from ..extensions import db
from ..money import to_money_str
from tireshop.time_utils import to_utc_z

PRODUCT_STATUS_ACTIVE = "ACTIVE"
PRODUCT_STATUS_DELETED = "DELETED"


class Category(db.Model):
    """
    Product grouping.

    The name also drives per-item tax inference: products in a category
    whose name contains "tire" get the shop tire fee when sold new.
    """
    __tablename__ = "categories"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(128), nullable=False)
    description = db.Column(db.Text, nullable=True)

    def __repr__(self) -> str:
        return f"<Category id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
        }


class Product(db.Model):
    """
    Product master data.

    SKU is the immutable business key. Rows are never deleted: removal flips
    status to DELETED so historical sale items keep a valid product_id.

    quantity is the authoritative stock count and must never go negative;
    all decrements go through inventory_service.adjust_quantity.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.UniqueConstraint("sku", name="uq_products_sku"),
        db.CheckConstraint("quantity >= 0", name="ck_products_quantity_non_negative"),
        db.Index("ix_products_status_name", "status", "name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    sku = db.Column(db.String(64), nullable=False)
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    category_id = db.Column(db.Integer, db.ForeignKey("categories.id"), nullable=True, index=True)
    brand = db.Column(db.String(128), nullable=True)
    size = db.Column(db.String(64), nullable=True)  # e.g. "225/65R17" for tires

    quantity = db.Column(db.Integer, nullable=False, default=0)
    min_stock_level = db.Column(db.Integer, nullable=False, default=5)

    cost_price = db.Column(db.Numeric(10, 2), nullable=False)
    selling_price = db.Column(db.Numeric(10, 2), nullable=False)
    # Fixed fee per unit sold (e.g. tire disposal fee); 0 means "infer from category"
    per_item_tax = db.Column(db.Numeric(10, 2), nullable=True, default=0)

    location = db.Column(db.String(128), nullable=True)
    condition = db.Column(db.String(16), nullable=False, default="new")  # new, used, refurbished

    status = db.Column(db.String(16), nullable=False, default=PRODUCT_STATUS_ACTIVE, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    category = db.relationship("Category", backref=db.backref("products", lazy=True))

    @property
    def is_active(self) -> bool:
        return self.status == PRODUCT_STATUS_ACTIVE

    def __repr__(self) -> str:
        return f"<Product id={self.id} sku={self.sku!r} name={self.name!r} qty={self.quantity}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sku": self.sku,
            "name": self.name,
            "description": self.description,
            "category_id": self.category_id,
            "brand": self.brand,
            "size": self.size,
            "quantity": self.quantity,
            "min_stock_level": self.min_stock_level,
            "cost_price": to_money_str(self.cost_price),
            "selling_price": to_money_str(self.selling_price),
            "per_item_tax": to_money_str(self.per_item_tax),
            "location": self.location,
            "condition": self.condition,
            "status": self.status,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
        }
