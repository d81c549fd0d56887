# backend/tireshop/config.py
from __future__ import annotations
import os

# Per-unit fee charged on new tires when a product carries no explicit per_item_tax.
DEFAULT_TIRE_FEE = "1.75"

# Sales tax percentage used until the shop saves its own setting.
DEFAULT_GLOBAL_TAX_RATE = "9.5"


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/tireshop.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///tireshop.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    TIRE_FEE = os.environ.get("TIRE_FEE", DEFAULT_TIRE_FEE)
    DEFAULT_GLOBAL_TAX_RATE = os.environ.get("DEFAULT_GLOBAL_TAX_RATE", DEFAULT_GLOBAL_TAX_RATE)

    # Invoice suffix regenerations allowed per sale before giving up
    INVOICE_NUMBER_ATTEMPTS = int(os.environ.get("INVOICE_NUMBER_ATTEMPTS", "5"))

    LOW_STOCK_DEFAULT_LEVEL = int(os.environ.get("LOW_STOCK_DEFAULT_LEVEL", "5"))
