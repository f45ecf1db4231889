"""Application tests for the checkout orchestrator.

Covers:
- Happy path: one order, cart emptied, receipt consumed, totals from the quote
- Empty carts, withdrawn products and invalid customer details are rejected before payment
- Declined payment leaves no trace and the cart intact
- Persistence failure after payment, then retry with the payment reference
- Customers are upserted by email
"""

from decimal import Decimal

import pytest
from protean import current_domain
from protean.exceptions import ObjectNotFoundError, ValidationError
from storefront.cart.items import delete_session_lines
from storefront.cart.line import CartLine
from storefront.cart.store import add_item, get_cart
from storefront.catalogue.product import Product
from storefront.checkout import placement
from storefront.checkout.orchestrator import checkout, quote
from storefront.customer.customer import Customer, customer_id_for
from storefront.exceptions import EmptyCart, PaymentFailed, PersistenceFailure
from storefront.order.order import Order
from storefront.payment.methods import PaymentMethod
from storefront.payment.receipt import PaymentReceipt, find_receipt
from storefront.payment.simulators import set_simulator
from storefront.payment.simulators.bank_transfer import BankTransferSimulator
from storefront.settings import Settings, set_settings

VALID_CARD = {"cardNumber": "4111111111111111", "expiryDate": "12/30", "cvv": "123"}


def _all(aggregate):
    return current_domain.repository_for(aggregate)._dao.query.all().items


@pytest.fixture()
def drone_cart(make_product):
    """Session ``sess-drone`` holding one Skyline Pro 4K at 999.99 USD."""
    product = make_product(id="5", price=999.99, name="Skyline Pro 4K", slug="skyline-pro-4k")
    add_item("sess-drone", product.id, 1)
    return product


class CountingBankSimulator(BankTransferSimulator):
    def __init__(self):
        super().__init__(optimistic=True)
        self.calls = 0

    def initiate(self, amount, currency, details, session_id=None):
        self.calls += 1
        return super().initiate(amount, currency, details, session_id)


class TestQuote:
    def test_quote_for_drone_cart(self, drone_cart):
        totals = quote("sess-drone")
        assert totals.subtotal == Decimal("129998.70")
        assert totals.tax == Decimal("20799.79")
        assert totals.total == Decimal("150798.49")

    def test_quote_for_empty_cart_is_rejected(self):
        with pytest.raises(EmptyCart):
            quote("sess-empty")


class TestSuccessfulCheckout:
    def test_card_checkout_places_processing_order(self, drone_cart, customer_info):
        result = checkout("sess-drone", customer_info, "card", VALID_CARD)

        assert result.status == "processing"
        assert result.payment_status == "completed"
        assert result.payment_method == "card"
        assert result.total == Decimal("150798.49")
        assert result.currency == "KES"
        assert result.receipt["last4"] == "1111"

        order = current_domain.repository_for(Order).get(result.order_id)
        assert order.total == 150798.49
        assert order.subtotal == 129998.70
        assert order.tax == 20799.79
        assert order.shipping == 0.0
        assert order.shipping_address == "12 Kenyatta Avenue, Nairobi, Nairobi 00100"
        assert len(order.items) == 1
        assert order.items[0].price == 129998.70
        assert str(order.items[0].product_id) == "5"

    def test_cart_is_emptied(self, drone_cart, customer_info):
        checkout("sess-drone", customer_info, "card", VALID_CARD)
        assert get_cart("sess-drone") == []

    def test_receipt_is_consumed_by_the_order(self, drone_cart, customer_info):
        result = checkout("sess-drone", customer_info, "card", VALID_CARD)

        receipt = find_receipt(result.payment_reference)
        assert str(receipt.consumed_by_order) == result.order_id
        assert receipt.amount == 150798.49

    def test_exactly_one_order_per_checkout(self, drone_cart, customer_info):
        checkout("sess-drone", customer_info, "card", VALID_CARD)
        assert len(_all(Order)) == 1

        with pytest.raises(EmptyCart):
            checkout("sess-drone", customer_info, "card", VALID_CARD)
        assert len(_all(Order)) == 1

    def test_order_item_price_is_frozen(self, drone_cart, customer_info):
        result = checkout("sess-drone", customer_info, "card", VALID_CARD)

        drone_cart.price = 1299.99
        current_domain.repository_for(Product).add(drone_cart)

        order = current_domain.repository_for(Order).get(result.order_id)
        assert order.items[0].price == 129998.70

    def test_missing_payment_info_leaves_order_pending(self, drone_cart, customer_info):
        result = checkout("sess-drone", customer_info)

        assert result.status == "pending"
        assert result.payment_status == "pending"
        assert result.payment_method == PaymentMethod.UNKNOWN.value

    def test_bank_transfer_is_completed_by_default(self, drone_cart, customer_info):
        result = checkout("sess-drone", customer_info, "bank", {})

        assert result.status == "processing"
        assert result.receipt["referenceNumber"] == result.payment_reference

    def test_pessimistic_bank_transfer_leaves_order_pending(self, drone_cart, customer_info):
        set_settings(Settings(bank_transfer_optimistic=False))
        result = checkout("sess-drone", customer_info, "bank", {})

        assert result.status == "pending"
        assert result.payment_status == "pending"

    def test_external_wallet_alias(self, drone_cart, customer_info):
        result = checkout("sess-drone", customer_info, "paypal", {})
        assert result.payment_method == "external-wallet"
        assert result.status == "processing"


class TestCustomerUpsert:
    def test_first_checkout_creates_customer(self, drone_cart, customer_info):
        result = checkout("sess-drone", customer_info, "card", VALID_CARD)

        customer = current_domain.repository_for(Customer).get(customer_id_for("wanjiru@example.com"))
        order = current_domain.repository_for(Order).get(result.order_id)
        assert str(order.customer_id) == str(customer.id)

    def test_repeat_checkout_reuses_customer_with_latest_details(self, make_product, customer_info):
        product = make_product()
        add_item("sess-1", product.id, 1)
        first = checkout("sess-1", customer_info, "card", VALID_CARD)

        add_item("sess-2", product.id, 1)
        moved = {**customer_info, "email": "WANJIRU@example.com", "city": "Mombasa"}
        second = checkout("sess-2", moved, "card", VALID_CARD)

        customers = _all(Customer)
        assert len(customers) == 1
        assert customers[0].city == "Mombasa"

        orders = current_domain.repository_for(Order)
        assert orders.get(first.order_id).customer_id == orders.get(second.order_id).customer_id


class TestRejectedBeforePayment:
    def test_empty_cart(self, customer_info):
        with pytest.raises(EmptyCart):
            checkout("sess-empty", customer_info, "card", VALID_CARD)
        assert _all(Order) == []

    def test_invalid_customer_details(self, drone_cart, customer_info):
        with pytest.raises(ValidationError):
            checkout("sess-drone", {**customer_info, "email": "nope"}, "card", VALID_CARD)

        assert _all(PaymentReceipt) == []
        assert len(get_cart("sess-drone")) == 1

    def test_line_for_withdrawn_product_blocks_checkout(self, drone_cart, make_product, customer_info):
        withdrawn = make_product(name="Falcon FPV Racer")
        add_item("sess-drone", withdrawn.id, 1)
        current_domain.repository_for(Product)._dao.delete(withdrawn)

        with pytest.raises(ValidationError) as exc:
            checkout("sess-drone", customer_info, "card", VALID_CARD)

        assert "cart" in exc.value.messages
        assert _all(PaymentReceipt) == []
        assert len(_all(CartLine)) == 2

    def test_unsupported_payment_method(self, drone_cart, customer_info):
        with pytest.raises(ValidationError):
            checkout("sess-drone", customer_info, "bitcoin", {})
        assert len(get_cart("sess-drone")) == 1


class TestPaymentFailure:
    def test_declined_card_writes_nothing(self, drone_cart, customer_info):
        with pytest.raises(PaymentFailed) as exc:
            checkout("sess-drone", customer_info, "card", {**VALID_CARD, "cvv": "1"})

        assert "cvv" in exc.value.outcome.errors
        assert _all(Order) == []
        assert _all(Customer) == []
        assert _all(PaymentReceipt) == []
        assert get_cart("sess-drone")[0]["quantity"] == 1


class TestPersistenceFailure:
    @pytest.fixture()
    def failing_placement(self, monkeypatch):
        def _boom(cls, *args, **kwargs):
            raise RuntimeError("database unavailable")

        monkeypatch.setattr(Order, "place", classmethod(_boom))
        return monkeypatch

    def test_failure_after_payment_keeps_cart_and_receipt(self, drone_cart, customer_info, failing_placement):
        with pytest.raises(PersistenceFailure) as exc:
            checkout("sess-drone", customer_info, "card", VALID_CARD)

        reference = exc.value.payment_reference
        assert reference.startswith("CARD-")
        assert _all(Order) == []
        assert len(get_cart("sess-drone")) == 1

        receipt = find_receipt(reference)
        assert receipt is not None
        assert not receipt.consumed

    def test_failure_after_cart_is_cleared_rolls_the_cart_back(self, drone_cart, customer_info, monkeypatch):
        def _clear_then_fail(session_id):
            delete_session_lines(session_id)
            raise RuntimeError("connection lost")

        monkeypatch.setattr(placement, "delete_session_lines", _clear_then_fail)

        with pytest.raises(PersistenceFailure) as exc:
            checkout("sess-drone", customer_info, "card", VALID_CARD)

        assert _all(Order) == []
        assert _all(Customer) == []
        assert get_cart("sess-drone")[0]["quantity"] == 1
        assert not find_receipt(exc.value.payment_reference).consumed

    def test_retry_with_reference_does_not_charge_again(self, drone_cart, customer_info, failing_placement):
        bank = CountingBankSimulator()
        set_simulator("bank", bank)

        with pytest.raises(PersistenceFailure) as exc:
            checkout("sess-drone", customer_info, "bank", {})
        reference = exc.value.payment_reference

        failing_placement.undo()
        result = checkout("sess-drone", customer_info, payment_reference=reference)

        assert bank.calls == 1
        assert result.payment_reference == reference
        assert result.payment_method == "bank"
        assert result.status == "processing"
        assert len(_all(Order)) == 1
        assert get_cart("sess-drone") == []
        assert str(find_receipt(reference).consumed_by_order) == result.order_id


class TestPaymentReferenceReuse:
    def test_unknown_reference_is_not_found(self, drone_cart, customer_info):
        with pytest.raises(ObjectNotFoundError):
            checkout("sess-drone", customer_info, payment_reference="CARD-UNKNOWN1")

    def test_consumed_reference_is_rejected(self, make_product, customer_info):
        product = make_product()
        add_item("sess-1", product.id, 1)
        first = checkout("sess-1", customer_info, "card", VALID_CARD)

        add_item("sess-1", product.id, 1)
        with pytest.raises(ValidationError) as exc:
            checkout("sess-1", customer_info, payment_reference=first.payment_reference)
        assert "payment_reference" in exc.value.messages

    def test_reference_from_another_session_is_rejected(self, make_product, customer_info, monkeypatch):
        product = make_product()
        add_item("sess-1", product.id, 1)
        monkeypatch.setattr(Order, "place", classmethod(lambda cls, *a, **kw: 1 / 0))
        with pytest.raises(PersistenceFailure) as exc:
            checkout("sess-1", customer_info, "card", VALID_CARD)
        monkeypatch.undo()

        add_item("sess-2", product.id, 1)
        with pytest.raises(ValidationError):
            checkout("sess-2", customer_info, payment_reference=exc.value.payment_reference)

    def test_reference_for_a_different_total_is_rejected(self, make_product, customer_info, monkeypatch):
        product = make_product()
        add_item("sess-1", product.id, 1)
        monkeypatch.setattr(Order, "place", classmethod(lambda cls, *a, **kw: 1 / 0))
        with pytest.raises(PersistenceFailure) as exc:
            checkout("sess-1", customer_info, "card", VALID_CARD)
        monkeypatch.undo()

        add_item("sess-1", product.id, 1)
        with pytest.raises(ValidationError):
            checkout("sess-1", customer_info, payment_reference=exc.value.payment_reference)
        assert _all(Order) == []
