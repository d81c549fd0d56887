# Overview: Invoice number generation for settled sales.

from __future__ import annotations

import re
import secrets
import string
from datetime import datetime

from tireshop.time_utils import utcnow

INVOICE_PREFIX = "INV"
SUFFIX_ALPHABET = string.digits + string.ascii_uppercase  # base-36, uppercase
SUFFIX_LENGTH = 4

INVOICE_NUMBER_RE = re.compile(r"^INV-\d{8}-[0-9A-Z]{4}$")


def generate_invoice_number(now: datetime | None = None) -> str:
    """
    Build "INV-YYYYMMDD-XXXX" for the commit date.

    The suffix is random, not sequential; uniqueness is enforced by the
    uq_sales_invoice_number constraint and collisions are retried by the
    settlement path.
    """
    now = now or utcnow()
    suffix = "".join(secrets.choice(SUFFIX_ALPHABET) for _ in range(SUFFIX_LENGTH))
    return f"{INVOICE_PREFIX}-{now.strftime('%Y%m%d')}-{suffix}"


def is_valid_invoice_number(value: str) -> bool:
    return bool(INVOICE_NUMBER_RE.match(value or ""))
