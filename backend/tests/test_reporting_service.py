"""Dashboard figures and sales reports."""

import itertools
from datetime import datetime, timedelta

import pytest

from pharmacare.models import Sale, SaleItem, User
from pharmacare.services import reporting_service
from pharmacare.services.pos_service import Cart, checkout
from pharmacare.services.reporting_service import ReportError
from pharmacare.time_utils import utcnow


NOW = datetime(2024, 6, 12, 15, 0, 0)  # a Wednesday

_receipt_seq = itertools.count(1)


def _cashier_id(db_session):
    user = db_session.query(User).filter_by(username="till").first()
    if user is None:
        user = User(name="Till", username="till", email="till@pharmacy.com", role="cashier", password="x")
        db_session.add(user)
        db_session.flush()
    return user.id


def _sale(db_session, when, total_cents, lines=()):
    sale = Sale(
        cashier_id=_cashier_id(db_session),
        receipt_number=f"R-TEST-{next(_receipt_seq):04d}",
        date=when,
        subtotal_cents=total_cents,
        discount_cents=0,
        total_amount_cents=total_cents,
    )
    for medicine_id, name, qty, unit in lines:
        sale.items.append(
            SaleItem(
                medicine_id=medicine_id,
                medicine_name=name,
                quantity=qty,
                unit_price_cents=unit,
                total_price_cents=qty * unit,
            )
        )
    db_session.add(sale)
    db_session.commit()
    return sale


class TestDashboardStats:
    def test_sales_windows(self, db_session):
        _sale(db_session, NOW.replace(hour=9), 1000)                 # today
        _sale(db_session, NOW - timedelta(days=1), 2000)             # tuesday, same week
        _sale(db_session, NOW - timedelta(days=3), 4000)             # previous sunday, same month
        _sale(db_session, datetime(2024, 5, 31, 23, 0), 8000)        # last month
        _sale(db_session, NOW + timedelta(days=1), 16000)            # tomorrow, excluded

        stats = reporting_service.dashboard_stats(NOW)
        assert stats["today_sales_cents"] == 1000
        assert stats["weekly_sales_cents"] == 3000
        assert stats["monthly_sales_cents"] == 7000

    def test_inventory_counts(self, db_session, make_medicine):
        now = utcnow().replace(microsecond=0)
        make_medicine(name="A", stock_quantity=0, expiry_in_days=400)
        make_medicine(name="B", stock_quantity=5, expiry_in_days=-2)
        make_medicine(name="C", stock_quantity=9, expiry_in_days=15)
        make_medicine(name="D", stock_quantity=10, expiry_in_days=100)

        stats = reporting_service.dashboard_stats(now)
        assert stats["total_medicines"] == 4
        assert stats["low_stock_count"] == 2
        assert stats["out_of_stock_count"] == 1
        assert stats["expired_count"] == 1
        assert stats["near_expiry_count"] == 1

    def test_empty_store(self, db_session):
        stats = reporting_service.dashboard_stats(NOW)
        assert stats["today_sales_cents"] == 0
        assert stats["total_medicines"] == 0


class TestTopSelling:
    def test_ranked_by_quantity_then_revenue_then_insertion(self, db_session):
        _sale(db_session, NOW, 0, lines=[(1, "Alpha", 2, 100), (2, "Beta", 5, 100)])
        _sale(db_session, NOW, 0, lines=[(3, "Gamma", 5, 300), (4, "Delta", 2, 100)])

        top = reporting_service.top_selling_medicines()
        assert [row["medicine_id"] for row in top] == [3, 2, 1, 4]
        assert top[0] == {"medicine_id": 3, "name": "Gamma", "quantity_sold": 5, "revenue_cents": 1500}

    def test_limit(self, db_session):
        _sale(db_session, NOW, 0, lines=[(i, f"M{i}", i, 100) for i in range(1, 8)])
        assert len(reporting_service.top_selling_medicines(limit=5)) == 5
        assert len(reporting_service.top_selling_medicines(limit=None)) == 7

    def test_uses_live_name_when_medicine_exists(self, db_session, make_medicine, cashier_user):
        medicine = make_medicine(name="Panadol", stock_quantity=5)
        cart = Cart()
        cart.add_item(medicine)
        checkout(cart, cashier_id=cashier_user.id)

        medicine.name = "Panadol Extra"
        db_session.commit()

        top = reporting_service.top_selling_medicines()
        assert top[0]["name"] == "Panadol Extra"


class TestSalesReport:
    def test_groups_by_day(self, db_session):
        _sale(db_session, datetime(2024, 6, 10, 9), 1000, lines=[(1, "A", 2, 500)])
        _sale(db_session, datetime(2024, 6, 10, 17), 500, lines=[(1, "A", 1, 500)])
        _sale(db_session, datetime(2024, 6, 11, 12), 300, lines=[(2, "B", 3, 100)])

        report = reporting_service.sales_report(start="2024-06-10", end="2024-06-12")
        assert report["rows"] == [
            {
                "period": "2024-06-10",
                "sales_count": 2,
                "items_sold": 3,
                "gross_sales_cents": 1500,
                "discount_cents": 0,
                "net_sales_cents": 1500,
            },
            {
                "period": "2024-06-11",
                "sales_count": 1,
                "items_sold": 3,
                "gross_sales_cents": 300,
                "discount_cents": 0,
                "net_sales_cents": 300,
            },
        ]

    def test_rejects_unknown_grouping(self, db_session):
        with pytest.raises(ReportError):
            reporting_service.sales_report(group_by="hour")
