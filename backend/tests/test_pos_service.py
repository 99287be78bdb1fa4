"""Point of sale: cart bounds, totals and checkout."""

import pytest

from pharmacare.extensions import db
from pharmacare.models import Medicine, Sale, SaleItem
from pharmacare.services import medicine_service
from pharmacare.services.pos_service import (
    Cart,
    CartResult,
    CartState,
    SaleError,
    checkout,
    get_receipt,
    list_sales,
)


@pytest.fixture
def paracetamol(make_medicine):
    return make_medicine(name="Paracetamol", price_cents=500, stock_quantity=3)


class TestCartEditing:
    def test_new_cart_is_empty(self):
        cart = Cart()
        assert cart.state is CartState.EMPTY
        assert cart.totals() == {
            "subtotal_cents": 0,
            "discount_bps": 0,
            "discount_cents": 0,
            "total_cents": 0,
        }

    def test_add_captures_price_and_increments(self, db_session, paracetamol):
        cart = Cart()
        assert cart.add_item(paracetamol) is CartResult.ADDED
        assert cart.state is CartState.BUILDING

        paracetamol.price_cents = 900  # later price changes do not touch the line
        db_session.commit()

        assert cart.add_item(paracetamol) is CartResult.INCREMENTED
        line = cart.find(paracetamol.id)
        assert line.quantity == 2
        assert line.unit_price_cents == 500
        assert line.total_price_cents == 1000

    def test_add_beyond_stock_is_rejected(self, db_session, paracetamol):
        cart = Cart()
        for _ in range(3):
            cart.add_item(paracetamol)
        assert cart.add_item(paracetamol) is CartResult.REJECTED
        assert cart.find(paracetamol.id).quantity == 3

    def test_out_of_stock_medicine_cannot_be_added(self, db_session, make_medicine):
        empty = make_medicine(name="Gone", stock_quantity=0)
        cart = Cart()
        assert cart.add_item(empty) is CartResult.REJECTED
        assert cart.state is CartState.EMPTY

    def test_set_quantity_above_stock_leaves_quantity_unchanged(self, db_session, paracetamol):
        cart = Cart()
        cart.add_item(paracetamol)
        cart.add_item(paracetamol)

        assert cart.set_quantity(paracetamol.id, paracetamol.stock_quantity + 1) is CartResult.REJECTED
        assert cart.find(paracetamol.id).quantity == 2

    def test_set_quantity_updates_and_removes(self, db_session, paracetamol):
        cart = Cart()
        cart.add_item(paracetamol)

        assert cart.set_quantity(paracetamol.id, 3) is CartResult.UPDATED
        assert cart.find(paracetamol.id).total_price_cents == 1500

        assert cart.set_quantity(paracetamol.id, 0) is CartResult.REMOVED
        assert cart.find(paracetamol.id) is None
        assert cart.state is CartState.EMPTY

    def test_set_quantity_unknown_line(self, db_session, paracetamol):
        assert Cart().set_quantity(paracetamol.id, 1) is CartResult.NOT_IN_CART

    def test_remove_and_clear(self, db_session, make_medicine):
        a = make_medicine(name="Alpha", stock_quantity=5)
        b = make_medicine(name="Beta", stock_quantity=5)
        cart = Cart()
        cart.add_item(a)
        cart.add_item(b)
        cart.set_customer("Jane Doe", "555-0100")
        cart.set_discount(5)

        assert cart.remove_item(a.id) is True
        assert cart.remove_item(a.id) is False
        assert [item.medicine_id for item in cart.items] == [b.id]

        cart.clear()
        assert cart.items == []
        assert cart.customer_name is None
        assert cart.customer_phone is None
        assert cart.discount_bps == 0


class TestTotals:
    @pytest.mark.parametrize(
        "discount,expected_discount,expected_total",
        [(0, 0, 1500), (10, 150, 1350), ("12.5", 188, 1312), (100, 1500, 0)],
    )
    def test_discount_math(self, db_session, paracetamol, discount, expected_discount, expected_total):
        cart = Cart()
        for _ in range(3):
            cart.add_item(paracetamol)
        cart.set_discount(discount)

        assert cart.subtotal_cents == 1500
        assert cart.discount_cents == expected_discount
        assert cart.total_cents == expected_total


class TestCheckout:
    def test_empty_cart_is_noop(self, db_session, cashier_user):
        cart = Cart()
        assert checkout(cart, cashier_id=cashier_user.id) is None
        assert cart.state is CartState.EMPTY
        assert db_session.query(Sale).count() == 0

    def test_paracetamol_end_to_end(self, db_session, paracetamol, cashier_user):
        cart = Cart()
        cart.add_item(paracetamol)
        cart.add_item(paracetamol)
        line = cart.find(paracetamol.id)
        assert (line.quantity, line.total_price_cents) == (2, 1000)

        cart.add_item(paracetamol)
        assert cart.add_item(paracetamol) is CartResult.REJECTED
        line = cart.find(paracetamol.id)
        assert (line.quantity, line.total_price_cents) == (3, 1500)

        cart.set_discount(10)
        receipt = checkout(cart, cashier_id=cashier_user.id, customer_name="Jane Doe", customer_phone="555-0100")

        sale = receipt.sale
        assert sale.total_amount_cents == 1350
        assert sale.subtotal_cents == 1500
        assert sale.discount_cents == 150
        assert sale.customer_name == "Jane Doe"
        assert sale.customer_phone == "555-0100"
        assert len(receipt.items) == 1

        item = receipt.items[0]
        assert item.sale_id == sale.id
        assert item.quantity == 3
        assert item.unit_price_cents == 500
        assert item.total_price_cents == 1500
        assert item.medicine_snapshot()["name"] == "Paracetamol"

        assert cart.state is CartState.COMPLETED
        assert cart.items == []
        assert cart.discount_bps == 0
        assert cart.last_receipt is receipt

    def test_checkout_decrements_stock(self, db_session, paracetamol, cashier_user):
        cart = Cart()
        cart.add_item(paracetamol)
        cart.add_item(paracetamol)
        checkout(cart, cashier_id=cashier_user.id)

        db_session.refresh(paracetamol)
        assert paracetamol.stock_quantity == 1

    def test_checkout_without_decrement(self, app, db_session, paracetamol, cashier_user):
        cart = Cart()
        cart.add_item(paracetamol)
        app.config["POS_DECREMENT_STOCK"] = False
        try:
            checkout(cart, cashier_id=cashier_user.id)
        finally:
            app.config["POS_DECREMENT_STOCK"] = True

        db_session.refresh(paracetamol)
        assert paracetamol.stock_quantity == 3

    def test_stock_shortfall_writes_nothing(self, db_session, paracetamol, cashier_user):
        cart = Cart()
        cart.add_item(paracetamol)
        cart.add_item(paracetamol)

        # Stock sold elsewhere after the cart was built
        paracetamol.stock_quantity = 1
        db_session.commit()

        with pytest.raises(SaleError) as exc:
            checkout(cart, cashier_id=cashier_user.id)

        assert exc.value.details["items"][0]["on_hand"] == 1
        assert db_session.query(Sale).count() == 0
        assert db_session.query(SaleItem).count() == 0
        assert cart.state is CartState.BUILDING

    def test_sale_keeps_snapshot_after_medicine_edit(self, db_session, paracetamol, category, cashier_user):
        cart = Cart()
        cart.add_item(paracetamol)
        receipt = checkout(cart, cashier_id=cashier_user.id)

        medicine_service.update_medicine(
            paracetamol.id,
            {
                "name": "Renamed",
                "batch_number": "X-1",
                "manufacturer": "Other",
                "category_id": category.id,
                "price": "9.99",
                "stock_quantity": "10",
                "expiry_date": "2031-01-01",
            },
        )

        again = get_receipt(receipt.sale.id)
        assert again.items[0].medicine_name == "Paracetamol"
        assert again.items[0].unit_price_cents == 500

    def test_receipt_numbers_are_sequential(self, db_session, make_medicine, cashier_user):
        medicine = make_medicine(stock_quantity=10)
        numbers = []
        for _ in range(2):
            cart = Cart()
            cart.add_item(medicine)
            numbers.append(checkout(cart, cashier_id=cashier_user.id).sale.receipt_number)

        assert numbers[0].endswith("-0001")
        assert numbers[1].endswith("-0002")
        assert [s.receipt_number for s in list_sales()] == list(reversed(numbers))

    def test_adding_after_completion_starts_new_cart(self, db_session, make_medicine, cashier_user):
        medicine = make_medicine(stock_quantity=10)
        cart = Cart()
        cart.add_item(medicine)
        checkout(cart, cashier_id=cashier_user.id)
        assert cart.state is CartState.COMPLETED

        cart.add_item(medicine)
        assert cart.state is CartState.BUILDING
        cart.clear()
        assert cart.state is CartState.EMPTY

    def test_checkout_in_a_later_app_context(self, app, db_session, paracetamol, cashier_user):
        medicine_id = paracetamol.id
        cashier_id = cashier_user.id
        cart = Cart()

        with app.app_context():
            medicine = db.session.get(Medicine, medicine_id)
            cart.add_item(medicine)
            cart.add_item(medicine)

        with app.app_context():
            receipt_number = checkout(cart, cashier_id=cashier_id).sale.receipt_number

        with app.app_context():
            assert db.session.get(Medicine, medicine_id).stock_quantity == 1
            sale = db.session.query(Sale).filter_by(receipt_number=receipt_number).one()
            assert sale.items[0].medicine_name == "Paracetamol"
            assert sale.cashier_id == cashier_id

    def test_sale_records_the_cashier(self, db_session, paracetamol, cashier_user):
        cart = Cart()
        cart.add_item(paracetamol)
        receipt = checkout(cart, cashier_id=cashier_user.id)

        assert receipt.sale.cashier.username == "till"
        assert receipt.to_dict()["cashier_id"] == cashier_user.id

    @pytest.mark.parametrize("cashier_id", [None, 9999])
    def test_unknown_cashier_is_refused(self, db_session, paracetamol, cashier_id):
        cart = Cart()
        cart.add_item(paracetamol)

        with pytest.raises(SaleError):
            checkout(cart, cashier_id=cashier_id)

        assert db_session.query(Sale).count() == 0
        db_session.refresh(paracetamol)
        assert paracetamol.stock_quantity == 3
        assert cart.state is CartState.BUILDING

    def test_deleted_medicine_is_refused(self, db_session, paracetamol, cashier_user):
        cart = Cart()
        cart.add_item(paracetamol)
        medicine_service.delete_medicine(paracetamol.id)

        with pytest.raises(SaleError) as exc:
            checkout(cart, cashier_id=cashier_user.id)

        assert exc.value.details["medicine_ids"] == [cart.items[0].medicine_id]
        assert db_session.query(Sale).count() == 0

    def test_checkout_advances_updated_at(self, db_session, paracetamol, cashier_user):
        before = paracetamol.updated_at
        cart = Cart()
        cart.add_item(paracetamol)
        checkout(cart, cashier_id=cashier_user.id)

        db_session.refresh(paracetamol)
        assert paracetamol.updated_at > before

    def test_get_receipt_missing(self, db_session):
        assert get_receipt(9999) is None
