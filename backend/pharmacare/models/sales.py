from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow


class Sale(db.Model):
    """
    A completed checkout. Sales are receipts: written once, never edited.

    All amounts are in cents. discount_bps is the discount percentage in
    basis points (10% -> 1000).
    """
    __tablename__ = "sales"
    __table_args__ = (
        db.UniqueConstraint("receipt_number", name="uq_sales_receipt_number"),
        db.Index("ix_sales_date", "date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    # Human-readable receipt number (e.g., "R-20240105-0003")
    receipt_number = db.Column(db.String(32), nullable=False)

    date = db.Column(db.DateTime(timezone=True), nullable=False)

    subtotal_cents = db.Column(db.Integer, nullable=False)
    discount_bps = db.Column(db.Integer, nullable=False, default=0)
    discount_cents = db.Column(db.Integer, nullable=False, default=0)
    total_amount_cents = db.Column(db.Integer, nullable=False)

    cashier_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    customer_name = db.Column(db.String(255), nullable=True)
    customer_phone = db.Column(db.String(64), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    cashier = db.relationship("User")
    items = db.relationship(
        "SaleItem",
        order_by="SaleItem.id",
        back_populates="sale",
        cascade="all, delete-orphan",
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "receipt_number": self.receipt_number,
            "date": to_utc_z(self.date),
            "subtotal_cents": self.subtotal_cents,
            "discount_bps": self.discount_bps,
            "discount_cents": self.discount_cents,
            "total_amount_cents": self.total_amount_cents,
            "cashier_id": self.cashier_id,
            "customer_name": self.customer_name,
            "customer_phone": self.customer_phone,
            "created_at": to_utc_z(self.created_at),
        }


class SaleItem(db.Model):
    """
    One line of a sale.

    unit_price_cents is the price at the time of sale. The medicine_* columns
    are a snapshot for the receipt, so a receipt still reads correctly after
    the medicine is edited or deleted.
    """
    __tablename__ = "sale_items"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id"), nullable=False, index=True)

    # Plain reference: medicines may be deleted while their sales remain
    medicine_id = db.Column(db.Integer, nullable=False, index=True)

    quantity = db.Column(db.Integer, nullable=False)
    unit_price_cents = db.Column(db.Integer, nullable=False)
    total_price_cents = db.Column(db.Integer, nullable=False)

    medicine_name = db.Column(db.String(255), nullable=False)
    medicine_generic_name = db.Column(db.String(255), nullable=True)
    batch_number = db.Column(db.String(64), nullable=True)
    manufacturer = db.Column(db.String(255), nullable=True)

    sale = db.relationship("Sale", back_populates="items")

    def medicine_snapshot(self) -> dict:
        return {
            "id": self.medicine_id,
            "name": self.medicine_name,
            "generic_name": self.medicine_generic_name,
            "batch_number": self.batch_number,
            "manufacturer": self.manufacturer,
        }

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sale_id": self.sale_id,
            "medicine_id": self.medicine_id,
            "quantity": self.quantity,
            "unit_price_cents": self.unit_price_cents,
            "total_price_cents": self.total_price_cents,
            "medicine": self.medicine_snapshot(),
        }
