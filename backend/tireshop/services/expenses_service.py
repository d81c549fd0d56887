# Overview: Service-layer operations for shop expenses; encapsulates business logic and database work.

from __future__ import annotations

from datetime import datetime

from ..extensions import db
from ..models import Expense
from tireshop.time_utils import utcnow

EXPENSE_MUTABLE_FIELDS = {"description", "amount", "category", "payment_method", "notes", "expense_date"}


def list_expenses(start: datetime | None = None, end: datetime | None = None) -> list[Expense]:
    """Expenses newest first, optionally limited to [start, end)."""
    query = db.session.query(Expense)
    if start is not None:
        query = query.filter(Expense.expense_date >= start)
    if end is not None:
        query = query.filter(Expense.expense_date < end)
    return query.order_by(Expense.expense_date.desc(), Expense.id.desc()).all()


def get_expense(expense_id: int) -> Expense | None:
    return db.session.get(Expense, expense_id)


def create_expense(*, patch: dict) -> Expense:
    expense = Expense(**{k: v for k, v in patch.items() if k in EXPENSE_MUTABLE_FIELDS})
    if expense.expense_date is None:
        expense.expense_date = utcnow()
    db.session.add(expense)
    db.session.commit()
    return expense


def delete_expense(*, expense_id: int) -> bool:
    """Hard delete. Returns False when nothing matched."""
    deleted = db.session.query(Expense).filter(Expense.id == expense_id).delete(synchronize_session=False)
    db.session.commit()
    return deleted > 0
