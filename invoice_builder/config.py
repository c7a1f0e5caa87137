# invoice_builder/config.py
"""Defaults, lookup tables and environment-driven settings."""
from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass
from typing import Optional

# Line-item defaults
DEFAULT_UNIT = "pcs"
DEFAULT_QUANTITY = 1.0
DEFAULT_ITEM_TAX_NAME = "VAT"
DEFAULT_ITEM_TAX_RATE = 10.0
NEW_TAX_NAME = "Tax"
NEW_TAX_RATE = 0.0

# Document defaults
DEFAULT_INVOICE_NUMBER = "INV-001"
DEFAULT_CURRENCY = "$"
DEFAULT_DUE_DAYS = 30

# Display symbol -> ISO code, in the order the currency picker lists them
CURRENCY_SYMBOLS = {
    "$": "USD",
    "€": "EUR",
    "£": "GBP",
    "¥": "JPY",
    "₹": "INR",
    "₽": "RUB",
    "₩": "KRW",
    "₨": "PKR",
    "₦": "NGN",
    "₡": "CRC",
    "RM": "MYR",
    "S$": "SGD",
    "฿": "THB",
    "₱": "PHP",
    "Rp": "IDR",
    "₫": "VND",
    "HK$": "HKD",
    "NT$": "TWD",
    "৳": "BDT",
}

# Payment terms code -> (days after invoice date, note sentence)
PAYMENT_TERMS = {
    "upon-receipt": (0, "Payment is due upon receipt of this invoice."),
    "net-7": (7, "Payment is due within 7 days of invoice date."),
    "net-15": (15, "Payment is due within 15 days of invoice date."),
    "net-30": (30, "Payment is due within 30 days of invoice date."),
}

PAYMENT_NOTE_PATTERN = re.compile(
    r"Payment is due (upon receipt|within \d+ days) of (this invoice|invoice date)\."
)

# Logo upload limits
MAX_LOGO_BYTES = 2 * 1024 * 1024

# PDF export: rendered pixels are converted to inches at this density
PDF_DPI = 96
PDF_MARGIN_INCHES = 0.2
PDF_CONTENT_WIDTH_PX = 794

EPSILON = 0.01  # Float comparison tolerance


@dataclass(frozen=True)
class Settings:
    log_level: str
    default_currency: str


def get_settings() -> Settings:
    currency = os.getenv("INVOICE_DEFAULT_CURRENCY") or DEFAULT_CURRENCY
    if currency not in CURRENCY_SYMBOLS:
        currency = DEFAULT_CURRENCY
    return Settings(
        log_level=(os.getenv("INVOICE_LOG_LEVEL") or "INFO").upper(),
        default_currency=currency,
    )


def configure_logging(level: Optional[str] = None) -> None:
    level = (level or get_settings().log_level).upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
