"""
Stock and expiry classification shared by inventory, POS and reporting.

Thresholds are fixed:
- stock: 0 is out of stock, 1..9 is low, 10+ is in stock
- expiry: before now is expired, up to now + 30 days (inclusive) is near expiry
"""
from __future__ import annotations

import enum
from datetime import datetime, timedelta

LOW_STOCK_THRESHOLD = 10
NEAR_EXPIRY_WINDOW = timedelta(days=30)


class StockStatus(str, enum.Enum):
    OUT_OF_STOCK = "OUT_OF_STOCK"
    LOW_STOCK = "LOW_STOCK"
    IN_STOCK = "IN_STOCK"

    @property
    def label(self) -> str:
        return _STOCK_LABELS[self]


class ExpiryStatus(str, enum.Enum):
    EXPIRED = "EXPIRED"
    NEAR_EXPIRY = "NEAR_EXPIRY"
    VALID = "VALID"

    @property
    def label(self) -> str:
        return _EXPIRY_LABELS[self]


_STOCK_LABELS = {
    StockStatus.OUT_OF_STOCK: "Out of Stock",
    StockStatus.LOW_STOCK: "Low Stock",
    StockStatus.IN_STOCK: "In Stock",
}

_EXPIRY_LABELS = {
    ExpiryStatus.EXPIRED: "Expired",
    ExpiryStatus.NEAR_EXPIRY: "Near Expiry",
    ExpiryStatus.VALID: "Valid",
}


def classify_stock(quantity: int) -> StockStatus:
    if quantity == 0:
        return StockStatus.OUT_OF_STOCK
    if quantity < LOW_STOCK_THRESHOLD:
        return StockStatus.LOW_STOCK
    return StockStatus.IN_STOCK


def classify_expiry(expiry_date: datetime, now: datetime) -> ExpiryStatus:
    # expiry == now is NEAR_EXPIRY, not EXPIRED
    if expiry_date < now:
        return ExpiryStatus.EXPIRED
    if expiry_date <= now + NEAR_EXPIRY_WINDOW:
        return ExpiryStatus.NEAR_EXPIRY
    return ExpiryStatus.VALID
