"""Column coercion for API payloads."""

from decimal import Decimal

import pytest

from tireshop.models import Product, SaleItem
from tireshop.validation import ValidationError, _coerce_value, _columns_by_key

IS_TAXABLE = _columns_by_key(SaleItem)["is_taxable"]
COST_PRICE = _columns_by_key(Product)["cost_price"]


@pytest.mark.parametrize("value, expected", [
    (True, True),
    (False, False),
    ("true", True),
    (" True ", True),
    ("false", False),
    ("FALSE", False),
])
def test_booleans_parse_strictly(value, expected):
    assert _coerce_value(IS_TAXABLE, value) is expected


@pytest.mark.parametrize("value", ["yes", "no", "0", "", 1, 0, "n/a"])
def test_anything_else_is_not_a_boolean(value):
    with pytest.raises(ValidationError, match="is_taxable must be true or false"):
        _coerce_value(IS_TAXABLE, value)


def test_amounts_are_rounded_to_cents():
    assert _coerce_value(COST_PRICE, "12.345") == Decimal("12.35")


@pytest.mark.parametrize("value", ["1e30", "100000000", -100000000])
def test_amounts_beyond_column_range_are_rejected(value):
    with pytest.raises(ValidationError, match="cost_price cannot exceed 99999999.99"):
        _coerce_value(COST_PRICE, value)
