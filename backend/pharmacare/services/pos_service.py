# Overview: Service-layer operations for point of sale; cart building and checkout.

"""
Point-of-Sale Engine

The cart is transient working state (never persisted). Checkout turns it into
an immutable Sale with one SaleItem per line.

Cart lifecycle: EMPTY -> BUILDING -> COMPLETED -> EMPTY
- COMPLETED: the last checkout's receipt is available and the cart is empty;
  the next add_item() or clear() returns to EMPTY/BUILDING.

Stock bounds:
- a line's quantity never exceeds the medicine's stock_quantity
- a change that would cross the bound is refused and reported as
  CartResult.REJECTED; the cart is left as it was

Money:
- everything is in cents; unit prices are captured when a medicine is added
- discount = subtotal * pct / 100, rounded half-up to the cent
- total = subtotal - discount

With POS_DECREMENT_STOCK enabled (default), checkout takes the sold
quantities out of inventory in the same transaction as the sale; a line that
no longer fits the stock raises SaleError and nothing is written.
Every sale is attributed to an existing user (the cashier).
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Any

from flask import current_app

from ..extensions import db
from ..models import Medicine, Sale, SaleItem, User
from ..time_utils import start_of_day, utcnow
from ..validation import optional_text, parse_discount_bps
from .medicine_service import next_updated_at


class SaleError(Exception):
    """Raised for sale operation errors."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


class CartState(str, enum.Enum):
    EMPTY = "EMPTY"
    BUILDING = "BUILDING"
    COMPLETED = "COMPLETED"


class CartResult(str, enum.Enum):
    ADDED = "ADDED"
    INCREMENTED = "INCREMENTED"
    UPDATED = "UPDATED"
    REMOVED = "REMOVED"
    REJECTED = "REJECTED"
    NOT_IN_CART = "NOT_IN_CART"


@dataclass
class CartItem:
    medicine: Medicine
    quantity: int
    unit_price_cents: int
    # Captured at add time; the Medicine may be detached by checkout
    medicine_id: int = field(init=False)
    name: str = field(init=False)

    def __post_init__(self):
        self.medicine_id = self.medicine.id
        self.name = self.medicine.name

    @property
    def total_price_cents(self) -> int:
        return self.quantity * self.unit_price_cents

    def to_dict(self) -> dict:
        return {
            "medicine_id": self.medicine_id,
            "name": self.name,
            "quantity": self.quantity,
            "unit_price_cents": self.unit_price_cents,
            "total_price_cents": self.total_price_cents,
        }


@dataclass(frozen=True)
class Receipt:
    sale: Sale
    items: list[SaleItem]

    def to_dict(self) -> dict:
        data = self.sale.to_dict()
        data["items"] = [item.to_dict() for item in self.items]
        return data


def discount_cents_for(subtotal_cents: int, discount_bps: int) -> int:
    discount = Decimal(subtotal_cents) * Decimal(discount_bps) / Decimal(10_000)
    return int(discount.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


@dataclass
class Cart:
    items: list[CartItem] = field(default_factory=list)
    customer_name: str | None = None
    customer_phone: str | None = None
    discount_bps: int = 0
    last_receipt: Receipt | None = None
    _completed: bool = field(default=False, repr=False)

    # -- State --

    @property
    def state(self) -> CartState:
        if self.items:
            return CartState.BUILDING
        if self._completed:
            return CartState.COMPLETED
        return CartState.EMPTY

    def find(self, medicine_id: int) -> CartItem | None:
        for item in self.items:
            if item.medicine_id == medicine_id:
                return item
        return None

    # -- Editing --

    def add_item(self, medicine: Medicine) -> CartResult:
        """Add one unit of a medicine, bounded by its stock."""
        self._completed = False
        existing = self.find(medicine.id)

        if existing is not None:
            if existing.quantity + 1 > medicine.stock_quantity:
                return CartResult.REJECTED
            existing.quantity += 1
            return CartResult.INCREMENTED

        if medicine.stock_quantity < 1:
            return CartResult.REJECTED

        self.items.append(
            CartItem(medicine=medicine, quantity=1, unit_price_cents=medicine.price_cents)
        )
        return CartResult.ADDED

    def set_quantity(self, medicine_id: int, quantity: int) -> CartResult:
        existing = self.find(medicine_id)
        if existing is None:
            return CartResult.NOT_IN_CART

        if quantity <= 0:
            self.remove_item(medicine_id)
            return CartResult.REMOVED

        if quantity > existing.medicine.stock_quantity:
            return CartResult.REJECTED

        existing.quantity = quantity
        return CartResult.UPDATED

    def remove_item(self, medicine_id: int) -> bool:
        before = len(self.items)
        self.items = [item for item in self.items if item.medicine_id != medicine_id]
        return len(self.items) != before

    def set_customer(self, name: str | None = None, phone: str | None = None) -> None:
        self.customer_name = optional_text(name, max_length=255, field="customer_name")
        self.customer_phone = optional_text(phone, max_length=64, field="customer_phone")

    def set_discount(self, discount_percent: Any) -> None:
        self.discount_bps = parse_discount_bps(discount_percent)

    def clear(self) -> None:
        """Empty the cart and reset customer details and discount."""
        self.items = []
        self.customer_name = None
        self.customer_phone = None
        self.discount_bps = 0
        self._completed = False

    # -- Totals --

    @property
    def discount_percent(self) -> Decimal:
        return Decimal(self.discount_bps) / Decimal(100)

    @property
    def subtotal_cents(self) -> int:
        return sum(item.total_price_cents for item in self.items)

    @property
    def discount_cents(self) -> int:
        return discount_cents_for(self.subtotal_cents, self.discount_bps)

    @property
    def total_cents(self) -> int:
        return self.subtotal_cents - self.discount_cents

    def totals(self) -> dict:
        return {
            "subtotal_cents": self.subtotal_cents,
            "discount_bps": self.discount_bps,
            "discount_cents": self.discount_cents,
            "total_cents": self.total_cents,
        }

    def to_dict(self) -> dict:
        return {
            "state": self.state.value,
            "items": [item.to_dict() for item in self.items],
            "customer_name": self.customer_name,
            "customer_phone": self.customer_phone,
            **self.totals(),
        }

    def _complete(self, receipt: Receipt) -> None:
        self.clear()
        self.last_receipt = receipt
        self._completed = True


# -- Checkout --

def _next_receipt_number(now: datetime) -> str:
    day_start = start_of_day(now)
    seq = (
        db.session.query(db.func.count(Sale.id))
        .filter(Sale.date >= day_start, Sale.date < day_start + timedelta(days=1))
        .scalar()
    ) + 1
    return f"R-{day_start.strftime('%Y%m%d')}-{seq:04d}"


def _load_medicines(cart: Cart) -> dict[int, Medicine]:
    """Current rows for every cart line, keyed by id. Missing medicines raise SaleError."""
    ids = [item.medicine_id for item in cart.items]
    rows = db.session.query(Medicine).filter(Medicine.id.in_(ids)).all()
    medicines = {medicine.id: medicine for medicine in rows}

    missing = [medicine_id for medicine_id in ids if medicine_id not in medicines]
    if missing:
        raise SaleError("Medicine no longer exists", details={"medicine_ids": missing})
    return medicines


def _take_stock(cart: Cart, medicines: dict[int, Medicine]) -> None:
    insufficient = []
    for item in cart.items:
        on_hand = medicines[item.medicine_id].stock_quantity
        if on_hand < item.quantity:
            insufficient.append({
                "medicine_id": item.medicine_id,
                "requested_quantity": item.quantity,
                "on_hand": on_hand,
            })

    if insufficient:
        raise SaleError("Insufficient stock to complete sale", details={"items": insufficient})

    for item in cart.items:
        medicine = medicines[item.medicine_id]
        medicine.stock_quantity -= item.quantity
        medicine.updated_at = next_updated_at(medicine)


def checkout(
    cart: Cart,
    cashier_id: int,
    customer_name: str | None = None,
    customer_phone: str | None = None,
) -> Receipt | None:
    """
    Finalize the cart into a Sale.

    Returns None (and writes nothing) for an empty cart. Customer details
    default to the ones already set on the cart. The cashier must be an
    existing user.

    Stock and the receipt snapshot come from the medicine rows as they are
    now, not from the objects the cart was built with.
    """
    if not cart.items:
        return None

    if customer_name is not None or customer_phone is not None:
        cart.set_customer(
            customer_name if customer_name is not None else cart.customer_name,
            customer_phone if customer_phone is not None else cart.customer_phone,
        )

    now = utcnow()
    try:
        if cashier_id is None or db.session.get(User, cashier_id) is None:
            raise SaleError("Unknown cashier", details={"cashier_id": cashier_id})

        medicines = _load_medicines(cart)
        if current_app.config.get("POS_DECREMENT_STOCK", True):
            _take_stock(cart, medicines)

        sale = Sale(
            receipt_number=_next_receipt_number(now),
            date=now,
            subtotal_cents=cart.subtotal_cents,
            discount_bps=cart.discount_bps,
            discount_cents=cart.discount_cents,
            total_amount_cents=cart.total_cents,
            cashier_id=cashier_id,
            customer_name=cart.customer_name,
            customer_phone=cart.customer_phone,
            created_at=now,
        )
        for line in cart.items:
            medicine = medicines[line.medicine_id]
            sale.items.append(
                SaleItem(
                    medicine_id=medicine.id,
                    quantity=line.quantity,
                    unit_price_cents=line.unit_price_cents,
                    total_price_cents=line.total_price_cents,
                    medicine_name=medicine.name,
                    medicine_generic_name=medicine.generic_name,
                    batch_number=medicine.batch_number,
                    manufacturer=medicine.manufacturer,
                )
            )

        db.session.add(sale)
        db.session.commit()
    except SaleError:
        db.session.rollback()
        raise
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Checkout failed")
        raise

    receipt = Receipt(sale=sale, items=list(sale.items))
    cart._complete(receipt)

    current_app.logger.info(
        "Completed sale %s: %s item(s), total %s cents",
        sale.receipt_number,
        len(receipt.items),
        sale.total_amount_cents,
    )
    return receipt


def get_receipt(sale_id: int) -> Receipt | None:
    sale = db.session.query(Sale).filter_by(id=sale_id).first()
    if sale is None:
        return None
    return Receipt(sale=sale, items=list(sale.items))


def list_sales() -> list[Sale]:
    return db.session.query(Sale).order_by(Sale.date.desc(), Sale.id.desc()).all()
