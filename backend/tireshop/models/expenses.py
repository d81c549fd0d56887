from __future__ import annotations

from ..extensions import db
from ..money import to_money_str
from tireshop.time_utils import to_utc_z


class Expense(db.Model):
    """Day-to-day shop expense (supplies, utilities, rent, ...)."""
    __tablename__ = "expenses"
    __table_args__ = (
        db.Index("ix_expenses_expense_date", "expense_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    description = db.Column(db.String(255), nullable=False)
    amount = db.Column(db.Numeric(10, 2), nullable=False)
    category = db.Column(db.String(64), nullable=True)
    payment_method = db.Column(db.String(16), nullable=True)  # cash, card, check
    notes = db.Column(db.Text, nullable=True)
    expense_date = db.Column(db.DateTime(timezone=True), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "description": self.description,
            "amount": to_money_str(self.amount),
            "category": self.category,
            "payment_method": self.payment_method,
            "notes": self.notes,
            "expense_date": to_utc_z(self.expense_date),
            "created_at": to_utc_z(self.created_at),
        }
