from __future__ import annotations

from ..extensions import db
from ..money import to_money_str
from tireshop.time_utils import to_utc_z

CUSTOM_ITEM_SKU = "CUSTOM"


class Sale(db.Model):
    """
    Settled sale (invoice).

    Totals are written once at settlement and never recalculated. Later
    edits only touch customer/payment metadata so that a historical
    invoice always reproduces the math it was printed with.
    """
    __tablename__ = "sales"
    __table_args__ = (
        db.UniqueConstraint("invoice_number", name="uq_sales_invoice_number"),
        db.Index("ix_sales_sale_date", "sale_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    # e.g. "INV-20260314-7QX2"
    invoice_number = db.Column(db.String(32), nullable=False)

    # Customer
    customer_name = db.Column(db.String(255), nullable=False)
    customer_phone = db.Column(db.String(64), nullable=True)
    customer_email = db.Column(db.String(255), nullable=True)
    customer_address = db.Column(db.Text, nullable=True)

    # Vehicle
    vehicle_make = db.Column(db.String(64), nullable=True)
    vehicle_model = db.Column(db.String(64), nullable=True)
    vehicle_year = db.Column(db.String(16), nullable=True)
    license_plate = db.Column(db.String(32), nullable=True)
    mileage = db.Column(db.String(32), nullable=True)

    # Pricing snapshot
    subtotal = db.Column(db.Numeric(10, 2), nullable=False)
    global_tax_rate = db.Column(db.Numeric(5, 2), nullable=False)
    global_tax_amount = db.Column(db.Numeric(10, 2), nullable=False)
    per_item_tax_total = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    discount = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    labor_cost = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    grand_total = db.Column(db.Numeric(10, 2), nullable=False)

    # Payment
    payment_method = db.Column(db.String(16), nullable=False)  # cash, card, check
    payment_status = db.Column(db.String(16), nullable=False, default="paid")  # paid, pending
    cash_received = db.Column(db.Numeric(10, 2), nullable=True)
    change_given = db.Column(db.Numeric(10, 2), nullable=True)
    cheque_number = db.Column(db.String(64), nullable=True)

    # Warranty
    warranty_type = db.Column(db.String(16), nullable=True)  # none, full, partial
    warranty_duration = db.Column(db.String(64), nullable=True)

    notes = db.Column(db.Text, nullable=True)

    sale_date = db.Column(db.DateTime(timezone=True), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    items = db.relationship(
        "SaleItem",
        backref="sale",
        lazy=True,
        cascade="all, delete-orphan",
        order_by="SaleItem.id",
    )

    def to_dict(self, include_items: bool = False) -> dict:
        data = {
            "id": self.id,
            "invoice_number": self.invoice_number,
            "customer_name": self.customer_name,
            "customer_phone": self.customer_phone,
            "customer_email": self.customer_email,
            "customer_address": self.customer_address,
            "vehicle_make": self.vehicle_make,
            "vehicle_model": self.vehicle_model,
            "vehicle_year": self.vehicle_year,
            "license_plate": self.license_plate,
            "mileage": self.mileage,
            "subtotal": to_money_str(self.subtotal),
            "global_tax_rate": to_money_str(self.global_tax_rate),
            "global_tax_amount": to_money_str(self.global_tax_amount),
            "per_item_tax_total": to_money_str(self.per_item_tax_total),
            "discount": to_money_str(self.discount),
            "labor_cost": to_money_str(self.labor_cost),
            "grand_total": to_money_str(self.grand_total),
            "payment_method": self.payment_method,
            "payment_status": self.payment_status,
            "cash_received": to_money_str(self.cash_received),
            "change_given": to_money_str(self.change_given),
            "cheque_number": self.cheque_number,
            "warranty_type": self.warranty_type,
            "warranty_duration": self.warranty_duration,
            "notes": self.notes,
            "sale_date": to_utc_z(self.sale_date),
            "created_at": to_utc_z(self.created_at),
        }
        if include_items:
            data["items"] = [item.to_dict() for item in self.items]
        return data


class SaleItem(db.Model):
    """
    Line on a settled sale.

    Name, SKU, price and tax are copied from the cart at settlement; the row
    is never joined back to live product data. product_id is NULL for
    custom (non-catalog) items.
    """
    __tablename__ = "sale_items"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=True, index=True)

    product_name = db.Column(db.String(255), nullable=False)
    product_sku = db.Column(db.String(64), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    unit_price = db.Column(db.Numeric(10, 2), nullable=False)
    per_item_tax = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    line_total = db.Column(db.Numeric(10, 2), nullable=False)
    is_taxable = db.Column(db.Boolean, nullable=False, default=True)

    @property
    def is_custom(self) -> bool:
        return self.product_id is None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sale_id": self.sale_id,
            "product_id": self.product_id,
            "product_name": self.product_name,
            "product_sku": self.product_sku,
            "quantity": self.quantity,
            "unit_price": to_money_str(self.unit_price),
            "per_item_tax": to_money_str(self.per_item_tax),
            "line_total": to_money_str(self.line_total),
            "is_taxable": self.is_taxable,
            "is_custom": self.is_custom,
        }
