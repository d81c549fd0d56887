from .catalog import Category, Product, PRODUCT_STATUS_ACTIVE, PRODUCT_STATUS_DELETED
from .sales import Sale, SaleItem, CUSTOM_ITEM_SKU
from .settings import Setting
from .expenses import Expense

__all__ = [
    'Category', 'Product', 'PRODUCT_STATUS_ACTIVE', 'PRODUCT_STATUS_DELETED',
    'Sale', 'SaleItem', 'CUSTOM_ITEM_SKU',
    'Setting',
    'Expense',
]
