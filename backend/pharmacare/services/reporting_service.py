# Overview: Service-layer operations for reporting; dashboard figures and sales summaries.

from __future__ import annotations

from datetime import datetime, timedelta

from ..classifiers import ExpiryStatus, StockStatus, classify_expiry, classify_stock
from ..extensions import db
from ..models import Medicine, Sale, SaleItem
from ..time_utils import (
    parse_iso_datetime,
    start_of_day,
    start_of_month,
    start_of_week,
    to_utc_z,
    utcnow,
)


class ReportError(Exception):
    """Raised when report generation fails."""
    pass


def _sales_total_cents(start: datetime, end: datetime) -> int:
    total = (
        db.session.query(db.func.coalesce(db.func.sum(Sale.total_amount_cents), 0))
        .filter(Sale.date >= start, Sale.date < end)
        .scalar()
    )
    return int(total or 0)


def dashboard_stats(now: datetime | None = None) -> dict:
    """
    Headline figures for the main dashboard, recomputed on every call.

    Sales windows: today, the current Monday-based week and the current
    calendar month, all ending at the start of tomorrow. Stock and expiry
    counts use the shared classifiers, so low_stock_count excludes
    out-of-stock medicines.
    """
    now = now or utcnow()
    tomorrow = start_of_day(now) + timedelta(days=1)

    stock_counts = {status: 0 for status in StockStatus}
    expiry_counts = {status: 0 for status in ExpiryStatus}
    total_medicines = 0
    for quantity, expiry_date in db.session.query(Medicine.stock_quantity, Medicine.expiry_date):
        total_medicines += 1
        stock_counts[classify_stock(quantity)] += 1
        expiry_counts[classify_expiry(expiry_date, now)] += 1

    return {
        "today_sales_cents": _sales_total_cents(start_of_day(now), tomorrow),
        "weekly_sales_cents": _sales_total_cents(start_of_week(now), tomorrow),
        "monthly_sales_cents": _sales_total_cents(start_of_month(now), tomorrow),
        "total_medicines": total_medicines,
        "low_stock_count": stock_counts[StockStatus.LOW_STOCK],
        "out_of_stock_count": stock_counts[StockStatus.OUT_OF_STOCK],
        "near_expiry_count": expiry_counts[ExpiryStatus.NEAR_EXPIRY],
        "expired_count": expiry_counts[ExpiryStatus.EXPIRED],
    }


def top_selling_medicines(limit: int | None = 5) -> list[dict]:
    """
    Medicines ranked by units sold, then revenue, across every sale.

    Remaining ties keep inventory insertion order (lower medicine id first).
    Names come from the live medicine when it still exists, otherwise from
    the snapshot on the sale items.
    """
    rows = (
        db.session.query(
            SaleItem.medicine_id.label("medicine_id"),
            db.func.sum(SaleItem.quantity).label("quantity_sold"),
            db.func.sum(SaleItem.total_price_cents).label("revenue_cents"),
            db.func.max(SaleItem.medicine_name).label("snapshot_name"),
            Medicine.name.label("current_name"),
        )
        .outerjoin(Medicine, Medicine.id == SaleItem.medicine_id)
        .group_by(SaleItem.medicine_id, Medicine.name)
        .order_by(SaleItem.medicine_id.asc())
        .all()
    )

    ranked = sorted(
        rows,
        key=lambda row: (-int(row.quantity_sold or 0), -int(row.revenue_cents or 0)),
    )
    if limit is not None:
        ranked = ranked[:limit]

    return [
        {
            "medicine_id": row.medicine_id,
            "name": row.current_name or row.snapshot_name,
            "quantity_sold": int(row.quantity_sold or 0),
            "revenue_cents": int(row.revenue_cents or 0),
        }
        for row in ranked
    ]


def sales_report(
    *,
    start: str | None = None,
    end: str | None = None,
    group_by: str = "day",
) -> dict:
    start_dt = parse_iso_datetime(start) if start else None
    end_dt = parse_iso_datetime(end) if end else None

    if group_by == "day":
        period_expr = db.func.strftime("%Y-%m-%d", Sale.date)
    elif group_by == "week":
        period_expr = db.func.strftime("%Y-W%W", Sale.date)
    elif group_by == "month":
        period_expr = db.func.strftime("%Y-%m", Sale.date)
    else:
        raise ReportError("group_by must be day, week, or month")

    sales = (
        db.session.query(
            period_expr.label("period"),
            db.func.count(Sale.id).label("sales_count"),
            db.func.coalesce(db.func.sum(Sale.subtotal_cents), 0).label("gross_sales_cents"),
            db.func.coalesce(db.func.sum(Sale.discount_cents), 0).label("discount_cents"),
            db.func.coalesce(db.func.sum(Sale.total_amount_cents), 0).label("net_sales_cents"),
        )
    )
    items = (
        db.session.query(
            period_expr.label("period"),
            db.func.coalesce(db.func.sum(SaleItem.quantity), 0).label("items_sold"),
        )
        .join(SaleItem, SaleItem.sale_id == Sale.id)
    )

    if start_dt:
        sales = sales.filter(Sale.date >= start_dt)
        items = items.filter(Sale.date >= start_dt)
    if end_dt:
        sales = sales.filter(Sale.date <= end_dt)
        items = items.filter(Sale.date <= end_dt)

    items_by_period = {row.period: int(row.items_sold or 0) for row in items.group_by("period").all()}
    rows = sales.group_by("period").order_by("period").all()

    return {
        "group_by": group_by,
        "start": to_utc_z(start_dt) if start_dt else None,
        "end": to_utc_z(end_dt) if end_dt else None,
        "rows": [
            {
                "period": row.period,
                "sales_count": int(row.sales_count or 0),
                "items_sold": items_by_period.get(row.period, 0),
                "gross_sales_cents": int(row.gross_sales_cents or 0),
                "discount_cents": int(row.discount_cents or 0),
                "net_sales_cents": int(row.net_sales_cents or 0),
            }
            for row in rows
        ],
    }
