from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any

from .time_utils import parse_iso_datetime, to_utc_naive


# Maximum price: $9,999,999.99 (999,999,999 cents)
MAX_PRICE_CENTS = 999_999_999

CENT = Decimal("0.01")


class ValidationError(ValueError):
    """Malformed caller input; raised before anything is mutated."""


class ConflictError(ValueError):
    """Business rule conflict (e.g., duplicate username)."""


def require_text(value: Any, field: str, *, max_length: int | None = None) -> str:
    if value is None:
        raise ValidationError(f"{field} is required")
    text = str(value).strip()
    if not text:
        raise ValidationError(f"{field} cannot be blank")
    if max_length is not None and len(text) > max_length:
        raise ValidationError(f"{field} exceeds max length {max_length}")
    return text


def optional_text(value: Any, *, max_length: int | None = None, field: str = "value") -> str | None:
    """Blank strings collapse to None, mirroring optional form inputs."""
    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    if max_length is not None and len(text) > max_length:
        raise ValidationError(f"{field} exceeds max length {max_length}")
    return text


def _to_decimal(value: Any, field: str) -> Decimal:
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a number")
    if isinstance(value, Decimal):
        dec = value
    elif isinstance(value, (int, float, str)):
        raw = value.strip() if isinstance(value, str) else value
        if raw == "":
            raise ValidationError(f"{field} is required")
        try:
            dec = Decimal(str(raw))
        except InvalidOperation:
            raise ValidationError(f"{field} must be a number")
    else:
        raise ValidationError(f"{field} must be a number")

    if not dec.is_finite():
        raise ValidationError(f"{field} must be a finite number")
    return dec


def parse_price_cents(value: Any, field: str = "price") -> int:
    """
    Parse a currency amount ("5", "5.5", 5.25, Decimal("5.00")) into cents.

    Sub-cent input is rounded half-up.
    """
    amount = _to_decimal(value, field)
    if amount < 0:
        raise ValidationError(f"{field} must be >= 0")
    cents = int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    if cents > MAX_PRICE_CENTS:
        raise ValidationError(f"{field} cannot exceed {MAX_PRICE_CENTS / 100:,.2f}")
    return cents


def parse_quantity(value: Any, field: str = "quantity", *, minimum: int = 0) -> int:
    """
    Parse a whole-unit quantity from an int or digit string.

    Decimals, scientific notation and values below `minimum` are rejected.
    """
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be an integer")
    if isinstance(value, int):
        qty = value
    elif isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{field} is required")
        if "e" in stripped.lower():
            raise ValidationError(f"{field} must be a plain integer (scientific notation not allowed)")
        if "." in stripped:
            raise ValidationError(f"{field} must be an integer (no decimals)")
        try:
            qty = int(stripped)
        except ValueError:
            raise ValidationError(f"{field} must be an integer")
    elif isinstance(value, float):
        raise ValidationError(f"{field} must be an integer, not a decimal")
    else:
        raise ValidationError(f"{field} must be an integer")

    if qty < minimum:
        raise ValidationError(f"{field} must be >= {minimum}")
    return qty


def parse_date(value: Any, field: str) -> datetime:
    """Accept date, datetime, or an ISO-8601 string; return UTC-naive datetime."""
    if isinstance(value, (datetime, date)):
        return to_utc_naive(value)
    if isinstance(value, str):
        try:
            dt = parse_iso_datetime(value)
        except ValueError:
            raise ValidationError(f"{field} must be an ISO-8601 date")
        if dt is None:
            raise ValidationError(f"{field} is required")
        return dt
    if value is None:
        raise ValidationError(f"{field} is required")
    raise ValidationError(f"{field} must be a date")


def parse_discount_bps(value: Any) -> int:
    """
    Discount percentage -> basis points (10 -> 1000, "12.5" -> 1250).

    Not clamped to [0, 100]; range checks belong to the form that collects it.
    """
    if value is None or value == "":
        return 0
    pct = _to_decimal(value, "discount_percent")
    return int((pct * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
