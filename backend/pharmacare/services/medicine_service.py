# Overview: Service-layer operations for medicines; encapsulates inventory rules and database work.

"""
Medicine Inventory Service

Inventory rules:
- stock_quantity never goes negative; it grows only through refill_medicine()
  (and shrinks only through checkout, see pos_service)
- every refill appends exactly one RefillRecord; records are never edited
- updated_at is refreshed on every edit and refill, created_at never changes

Input handling:
- price and stock accept form text ("5.00", "12") as well as numbers
- all validation happens before the session is touched, so a rejected
  create/update leaves the collection unchanged
- deleting an absent id is a no-op (returns False); editing or refilling an
  absent id raises MedicineNotFoundError
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any

from flask import current_app

from ..classifiers import (
    LOW_STOCK_THRESHOLD,
    NEAR_EXPIRY_WINDOW,
    ExpiryStatus,
    StockStatus,
    classify_expiry,
    classify_stock,
)
from ..extensions import db
from ..models import Category, Medicine, RefillRecord
from ..time_utils import utcnow
from ..validation import (
    ConflictError,
    ValidationError,
    optional_text,
    parse_date,
    parse_price_cents,
    parse_quantity,
    require_text,
)

ALL_CATEGORIES = "all"

MEDICINE_MUTABLE_FIELDS = {
    "name",
    "generic_name",
    "batch_number",
    "manufacturer",
    "category_id",
    "price",
    "stock_quantity",
    "expiry_date",
    "barcode",
    "image_ref",
}


class MedicineNotFoundError(LookupError):
    """Raised when a medicine id is not in the inventory."""
    def __init__(self, medicine_id):
        super().__init__(f"Medicine {medicine_id} not found")
        self.medicine_id = medicine_id


# -- Categories --

def list_categories() -> list[Category]:
    return db.session.query(Category).order_by(Category.id.asc()).all()


def get_category(category_id: int) -> Category | None:
    return db.session.query(Category).filter_by(id=category_id).first()


def category_name(category_id: int | None) -> str:
    category = get_category(category_id) if category_id is not None else None
    return category.name if category else "Unknown"


def create_category(name: str, description: str | None = None) -> Category:
    name = require_text(name, "name", max_length=128)
    if db.session.query(Category).filter_by(name=name).first():
        raise ConflictError(f"Category {name!r} already exists")

    category = Category(name=name, description=optional_text(description))
    db.session.add(category)
    db.session.commit()
    return category


# -- Lookup / filtering --

def _normalize_category_filter(category_id) -> int | None:
    if category_id is None or category_id == "" or category_id == ALL_CATEGORIES:
        return None
    try:
        return int(category_id)
    except (TypeError, ValueError):
        raise ValidationError("category_id must be an id or 'all'")


def _filtered_query(text: str | None, category_id):
    query = db.session.query(Medicine)

    needle = (text or "").strip().lower()
    if needle:
        query = query.filter(
            db.or_(
                db.func.lower(Medicine.name).contains(needle, autoescape=True),
                db.func.lower(Medicine.manufacturer).contains(needle, autoescape=True),
                db.func.lower(Medicine.batch_number).contains(needle, autoescape=True),
            )
        )

    cat_id = _normalize_category_filter(category_id)
    if cat_id is not None:
        query = query.filter(Medicine.category_id == cat_id)

    # Insertion order
    return query.order_by(Medicine.id.asc())


def list_medicines(text: str | None = None, category_id=ALL_CATEGORIES) -> list[Medicine]:
    """
    Search the inventory.

    text matches name, manufacturer or batch number (case-insensitive
    substring, any field); category_id is an exact match, "all"/None for
    every category. Both filters apply together.
    """
    return _filtered_query(text, category_id).all()


def list_sellable_medicines(text: str | None = None, category_id=ALL_CATEGORIES) -> list[Medicine]:
    """Same filter as list_medicines, limited to medicines with stock on hand."""
    return _filtered_query(text, category_id).filter(Medicine.stock_quantity > 0).all()


def get_medicine(medicine_id: int) -> Medicine | None:
    return db.session.query(Medicine).filter_by(id=medicine_id).first()


def _require_medicine(medicine_id: int) -> Medicine:
    medicine = get_medicine(medicine_id)
    if medicine is None:
        raise MedicineNotFoundError(medicine_id)
    return medicine


# -- Create / update / delete --

def _clean_fields(fields: dict) -> dict:
    """Validate a full medicine form and return column values."""
    if fields is None or not isinstance(fields, dict):
        raise ValidationError("Invalid medicine payload")

    unknown = set(fields) - MEDICINE_MUTABLE_FIELDS
    if unknown:
        raise ValidationError(f"Field not allowed: {', '.join(sorted(unknown))}")

    cleaned = {
        "name": require_text(fields.get("name"), "name", max_length=255),
        "generic_name": optional_text(fields.get("generic_name"), max_length=255, field="generic_name"),
        "batch_number": require_text(fields.get("batch_number"), "batch_number", max_length=64),
        "manufacturer": require_text(fields.get("manufacturer"), "manufacturer", max_length=255),
        "price_cents": parse_price_cents(fields.get("price"), "price"),
        "stock_quantity": parse_quantity(fields.get("stock_quantity"), "stock_quantity"),
        "expiry_date": parse_date(fields.get("expiry_date"), "expiry_date"),
        "barcode": optional_text(fields.get("barcode"), max_length=64, field="barcode"),
        "image_ref": optional_text(fields.get("image_ref"), max_length=255, field="image_ref"),
    }

    raw_category = fields.get("category_id")
    if raw_category is None or raw_category == "":
        raise ValidationError("category_id is required")
    category_id = _normalize_category_filter(raw_category)
    if category_id is None or get_category(category_id) is None:
        raise ValidationError("category_id does not reference a known category")
    cleaned["category_id"] = category_id

    return cleaned


def create_medicine(fields: dict) -> Medicine:
    cleaned = _clean_fields(fields)
    now = utcnow()

    medicine = Medicine(**cleaned, created_at=now, updated_at=now)
    db.session.add(medicine)
    db.session.commit()

    current_app.logger.info("Created medicine %s (%s)", medicine.id, medicine.name)
    return medicine


def update_medicine(medicine_id: int, fields: dict) -> Medicine:
    """
    Replace every mutable field of a medicine.

    id, created_at and refill history are kept; updated_at is refreshed.
    """
    medicine = _require_medicine(medicine_id)
    cleaned = _clean_fields(fields)

    for key, value in cleaned.items():
        setattr(medicine, key, value)
    medicine.updated_at = next_updated_at(medicine)

    db.session.commit()
    return medicine


def delete_medicine(medicine_id: int) -> bool:
    """Remove a medicine; False when it does not exist."""
    medicine = get_medicine(medicine_id)
    if medicine is None:
        return False

    db.session.delete(medicine)
    db.session.commit()

    current_app.logger.info("Deleted medicine %s", medicine_id)
    return True


def next_updated_at(medicine: Medicine) -> datetime:
    """A fresh updated_at for a medicine that is about to change."""
    # Keep updated_at strictly increasing even when the clock has not ticked
    now = utcnow()
    if medicine.updated_at is not None and now <= medicine.updated_at:
        return medicine.updated_at + timedelta(microseconds=1)
    return now


# -- Refill --

def refill_medicine(
    medicine_id: int,
    quantity: Any,
    refill_date: Any = None,
    end_date: Any = None,
) -> Medicine:
    """
    Add stock to a medicine and record the refill.

    quantity must be a positive integer. refill_date defaults to now;
    end_date (usable-until) is optional.
    """
    qty = parse_quantity(quantity, "quantity", minimum=1)
    refilled_at = parse_date(refill_date, "refill_date") if refill_date not in (None, "") else utcnow()
    ends_at = parse_date(end_date, "end_date") if end_date not in (None, "") else None

    medicine = _require_medicine(medicine_id)

    record = RefillRecord(
        medicine_id=medicine.id,
        initial_quantity=qty,
        refill_date=refilled_at,
        end_date=ends_at,
    )
    medicine.refill_history.append(record)
    medicine.stock_quantity += qty
    medicine.updated_at = next_updated_at(medicine)

    db.session.commit()

    current_app.logger.info(
        "Refilled medicine %s by %s (stock now %s)", medicine.id, qty, medicine.stock_quantity
    )
    return medicine


# -- Status / alerts --

def stock_status(medicine: Medicine) -> StockStatus:
    return classify_stock(medicine.stock_quantity)


def expiry_status(medicine: Medicine, now: datetime | None = None) -> ExpiryStatus:
    return classify_expiry(medicine.expiry_date, now or utcnow())


def stock_alerts(now: datetime | None = None) -> dict:
    """
    Counts for the inventory banner.

    low_stock counts everything under the threshold, out-of-stock included;
    expiring counts everything on or before now + 30 days, expired included.
    """
    now = now or utcnow()
    low_stock = (
        db.session.query(db.func.count(Medicine.id))
        .filter(Medicine.stock_quantity < LOW_STOCK_THRESHOLD)
        .scalar()
    )
    expiring = (
        db.session.query(db.func.count(Medicine.id))
        .filter(Medicine.expiry_date <= now + NEAR_EXPIRY_WINDOW)
        .scalar()
    )
    return {
        "low_stock": int(low_stock or 0),
        "expiring_within_30_days": int(expiring or 0),
    }


def medicine_row(medicine: Medicine, now: datetime | None = None) -> dict:
    """Medicine dict with category name and status labels, as listed on screen."""
    data = medicine.to_dict()
    data["category_name"] = medicine.category.name if medicine.category else "Unknown"
    data["stock_status"] = stock_status(medicine).value
    data["expiry_status"] = expiry_status(medicine, now).value
    return data
