from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow


class Category(db.Model):
    """Static lookup grouping medicines on the inventory and POS screens."""
    __tablename__ = "categories"
    __table_args__ = (
        db.UniqueConstraint("name", name="uq_categories_name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(128), nullable=False)
    description = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "created_at": to_utc_z(self.created_at),
        }


class Medicine(db.Model):
    """
    One inventory line (a batch of a medicine).

    INVARIANTS:
    - stock_quantity is never negative
    - updated_at moves forward on every edit and refill
    - stock only grows through refills; refill_history is append-only

    Prices are stored in cents. image_ref is an opaque key into whatever
    asset storage the caller uses; image bytes never live on this row.
    """
    __tablename__ = "medicines"
    __table_args__ = (
        db.CheckConstraint("stock_quantity >= 0", name="ck_medicines_stock_non_negative"),
        db.CheckConstraint("price_cents >= 0", name="ck_medicines_price_non_negative"),
        db.Index("ix_medicines_category", "category_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    generic_name = db.Column(db.String(255), nullable=True)
    batch_number = db.Column(db.String(64), nullable=False)
    manufacturer = db.Column(db.String(255), nullable=False)

    category_id = db.Column(db.Integer, db.ForeignKey("categories.id"), nullable=False)

    price_cents = db.Column(db.Integer, nullable=False, default=0)
    stock_quantity = db.Column(db.Integer, nullable=False, default=0)

    expiry_date = db.Column(db.DateTime(timezone=True), nullable=False)

    barcode = db.Column(db.String(64), nullable=True)
    image_ref = db.Column(db.String(255), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    category = db.relationship("Category")
    refill_history = db.relationship(
        "RefillRecord",
        order_by="RefillRecord.id",
        back_populates="medicine",
        cascade="all, delete-orphan",
        lazy="select",
    )

    def __repr__(self) -> str:
        return (
            f"<Medicine id={self.id} name={self.name!r} batch={self.batch_number!r} "
            f"stock={self.stock_quantity}>"
        )

    def to_dict(self, include_history: bool = False) -> dict:
        data = {
            "id": self.id,
            "name": self.name,
            "generic_name": self.generic_name,
            "batch_number": self.batch_number,
            "manufacturer": self.manufacturer,
            "category_id": self.category_id,
            "price_cents": self.price_cents,
            "stock_quantity": self.stock_quantity,
            "expiry_date": to_utc_z(self.expiry_date),
            "barcode": self.barcode,
            "image_ref": self.image_ref,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
        if include_history:
            data["refill_history"] = [r.to_dict() for r in self.refill_history]
        return data


class RefillRecord(db.Model):
    """Immutable replenishment entry. Rows are only ever inserted."""
    __tablename__ = "refill_records"
    __table_args__ = (
        db.CheckConstraint("initial_quantity > 0", name="ck_refill_records_quantity_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    medicine_id = db.Column(db.Integer, db.ForeignKey("medicines.id"), nullable=False, index=True)

    # Units added by this refill
    initial_quantity = db.Column(db.Integer, nullable=False)

    refill_date = db.Column(db.DateTime(timezone=True), nullable=False)
    end_date = db.Column(db.DateTime(timezone=True), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    medicine = db.relationship("Medicine", back_populates="refill_history")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "medicine_id": self.medicine_id,
            "initial_quantity": self.initial_quantity,
            "refill_date": to_utc_z(self.refill_date),
            "end_date": to_utc_z(self.end_date) if self.end_date else None,
            "created_at": to_utc_z(self.created_at),
        }
