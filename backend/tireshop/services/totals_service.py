# Overview: Pure sale totals calculation; no database, no app context.

"""
Tax & totals.

    subtotal        = sum(unit_price * quantity)
    per_item_tax    = sum(per_item_tax * quantity)
    taxable_subtotal= sum(unit_price * quantity) over taxable lines
    taxable_amount  = taxable_subtotal + labor - discount   if taxable_subtotal > 0
                      0                                      otherwise
    global_tax      = taxable_amount * rate / 100
    grand_total     = subtotal + labor - discount + global_tax + per_item_tax

When no line is taxable the whole order is untaxed, labor included. Discount
and labor are not clamped, so an oversized discount yields a negative total;
guarding against that is the caller's job.

Nothing is rounded here. SaleTotals.as_money() rounds to cents for storage.
"""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Protocol

from ..money import ZERO, quantize_money

HUNDRED = Decimal("100")


class PricedLine(Protocol):
    quantity: int
    unit_price: Decimal
    per_item_tax: Decimal
    is_taxable: bool


@dataclass(frozen=True)
class SaleTotals:
    subtotal: Decimal
    per_item_tax_total: Decimal
    taxable_subtotal: Decimal
    taxable_amount: Decimal
    global_tax_rate: Decimal
    global_tax_amount: Decimal
    discount: Decimal
    labor_cost: Decimal
    grand_total: Decimal

    def as_money(self) -> dict[str, Decimal]:
        """Cent-rounded values for the Sale row (tax rate kept as entered)."""
        return {
            "subtotal": quantize_money(self.subtotal),
            "per_item_tax_total": quantize_money(self.per_item_tax_total),
            "global_tax_rate": self.global_tax_rate,
            "global_tax_amount": quantize_money(self.global_tax_amount),
            "discount": quantize_money(self.discount),
            "labor_cost": quantize_money(self.labor_cost),
            "grand_total": quantize_money(self.grand_total),
        }


def compute_totals(
    items: Iterable[PricedLine],
    *,
    discount: Decimal = ZERO,
    labor_cost: Decimal = ZERO,
    global_tax_rate: Decimal,
) -> SaleTotals:
    subtotal = ZERO
    per_item_tax_total = ZERO
    taxable_subtotal = ZERO

    for item in items:
        line_total = item.unit_price * item.quantity
        subtotal += line_total
        per_item_tax_total += item.per_item_tax * item.quantity
        if item.is_taxable:
            taxable_subtotal += line_total

    if taxable_subtotal > 0:
        taxable_amount = taxable_subtotal + labor_cost - discount
    else:
        taxable_amount = ZERO

    global_tax_amount = taxable_amount * (global_tax_rate / HUNDRED)
    grand_total = subtotal + labor_cost - discount + global_tax_amount + per_item_tax_total

    return SaleTotals(
        subtotal=subtotal,
        per_item_tax_total=per_item_tax_total,
        taxable_subtotal=taxable_subtotal,
        taxable_amount=taxable_amount,
        global_tax_rate=global_tax_rate,
        global_tax_amount=global_tax_amount,
        discount=discount,
        labor_cost=labor_cost,
        grand_total=grand_total,
    )
