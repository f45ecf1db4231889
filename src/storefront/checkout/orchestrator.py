"""Checkout Orchestrator: turns a session's cart into exactly one order.

Sequence:
    1. Resolve the cart at live prices                 (EmptyCart, ValidationError for withdrawn products)
    2. Price it once; the same totals feed payment and the order
    3. Validate the customer's details                 (ValidationError)
    4. Take payment, or reuse a recorded payment       (PaymentFailed, nothing written)
    5. Place the order in one unit of work             (PersistenceFailure, cart intact)

No order exists until payment has succeeded, and the cart is only emptied
together with the order being stored.
"""

import json
from dataclasses import dataclass, field
from decimal import Decimal

import structlog
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.utils.globals import current_domain

from storefront.cart.store import resolve_cart
from storefront.checkout.placement import PlaceOrder
from storefront.customer.customer import CustomerDetails
from storefront.exceptions import EmptyCart, PaymentFailed, PersistenceFailure
from storefront.order.order import status_for_payment
from storefront.payment.methods import normalize_method
from storefront.payment.mobile_money import StartMobileMoneyPayment, get_mobile_money_payment
from storefront.payment.receipt import RecordPaymentReceipt, find_receipt
from storefront.payment.simulators import PaymentOutcome, get_simulator
from storefront.pricing.engine import CartTotals, PricingPolicy, convert, price_cart

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class CheckoutResult:
    order_id: str
    status: str
    payment_status: str
    payment_method: str
    total: Decimal
    currency: str
    payment_reference: str | None = None
    receipt: dict = field(default_factory=dict)

    def as_dict(self) -> dict:
        return {
            "order_id": self.order_id,
            "status": self.status,
            "payment_status": self.payment_status,
            "payment_method": self.payment_method,
            "total": float(self.total),
            "currency": self.currency,
            "payment_reference": self.payment_reference,
            "payment_details": self.receipt,
        }


def _priced_cart(session_id, policy: PricingPolicy | None = None):
    lines = resolve_cart(session_id)
    if not lines:
        raise EmptyCart(session_id)
    policy = policy or PricingPolicy.from_settings()
    return lines, price_cart(lines, policy), policy


def quote(session_id, policy: PricingPolicy | None = None) -> CartTotals:
    """Totals the buyer would pay for the cart right now."""
    _, totals, _ = _priced_cart(session_id, policy)
    return totals


def start_mobile_money(session_id, phone=None, policy: PricingPolicy | None = None):
    """Open a mobile money prompt for the current cart total."""
    _, totals, _ = _priced_cart(session_id, policy)
    payment_id = current_domain.process(
        StartMobileMoneyPayment(
            amount=float(totals.total),
            currency=totals.currency,
            session_id=session_id,
            phone=phone,
        ),
        asynchronous=False,
    )
    return get_mobile_money_payment(payment_id)


# ---------------------------------------------------------------------------
# Payment
# ---------------------------------------------------------------------------
def _take_payment(session_id, method, details, totals: CartTotals) -> PaymentOutcome:
    simulator = get_simulator(normalize_method(method))
    outcome = simulator.initiate(totals.total, totals.currency, details or {}, session_id=session_id)

    if outcome.failed:
        logger.warning(
            "Payment declined",
            session_id=session_id,
            method=outcome.method.value,
            reason=outcome.failure_reason,
        )
        raise PaymentFailed(outcome)

    existing = find_receipt(outcome.reference)
    if existing is not None:
        # Only a completed mobile money prompt can come back with a known reference
        if existing.consumed:
            raise PaymentFailed(
                PaymentOutcome.failure(outcome.method, f"Payment {outcome.reference} has already been used")
            )
        return outcome

    current_domain.process(
        RecordPaymentReceipt(
            reference=outcome.reference,
            session_id=session_id,
            method=outcome.method.value,
            status=outcome.status.value,
            amount=float(totals.total),
            currency=totals.currency,
            details=json.dumps(outcome.receipt),
        ),
        asynchronous=False,
    )
    return outcome


def _reuse_payment(session_id, reference, totals: CartTotals) -> PaymentOutcome:
    receipt = find_receipt(reference)
    if receipt is None:
        raise ObjectNotFoundError(f"Payment reference {reference} not found")
    if receipt.session_id != session_id:
        raise ValidationError({"payment_reference": ["Payment reference belongs to another cart"]})
    if receipt.consumed:
        raise ValidationError({"payment_reference": [f"Payment already used for order {receipt.consumed_by_order}"]})
    if Decimal(str(receipt.amount)) != totals.total or receipt.currency != totals.currency:
        raise ValidationError(
            {
                "payment_reference": [
                    f"Payment was for {receipt.amount} {receipt.currency} but the cart now totals "
                    f"{totals.total} {totals.currency}; submit payment again"
                ]
            }
        )

    logger.info("Reusing recorded payment", session_id=session_id, payment_reference=reference)
    return receipt.as_outcome()


# ---------------------------------------------------------------------------
# Checkout
# ---------------------------------------------------------------------------
def checkout(
    session_id,
    customer_info: dict,
    payment_method=None,
    payment_details: dict | None = None,
    payment_reference: str | None = None,
    policy: PricingPolicy | None = None,
) -> CheckoutResult:
    lines, totals, policy = _priced_cart(session_id, policy)
    details = CustomerDetails.from_checkout(customer_info)

    if payment_reference:
        outcome = _reuse_payment(session_id, payment_reference, totals)
    else:
        outcome = _take_payment(session_id, payment_method, payment_details, totals)

    items = [
        {
            "product_id": line.product_id,
            "product_name": line.product_name,
            "quantity": line.quantity,
            "price": float(convert(line.unit_price, policy)),
        }
        for line in lines
    ]

    try:
        order_id = current_domain.process(
            PlaceOrder(
                session_id=session_id,
                customer=json.dumps(details.to_dict()),
                items=json.dumps(items),
                subtotal=float(totals.subtotal),
                shipping=float(totals.shipping),
                tax=float(totals.tax),
                total=float(totals.total),
                currency=totals.currency,
                payment_method=outcome.method.value,
                payment_status=outcome.status.value,
                payment_reference=outcome.reference,
                payment_details=json.dumps(outcome.receipt),
            ),
            asynchronous=False,
        )
    except Exception as exc:
        logger.exception(
            "Order could not be stored after payment",
            session_id=session_id,
            payment_reference=outcome.reference,
        )
        raise PersistenceFailure(outcome.reference) from exc

    return CheckoutResult(
        order_id=order_id,
        status=status_for_payment(outcome.status.value).value,
        payment_status=outcome.status.value,
        payment_method=outcome.method.value,
        total=totals.total,
        currency=totals.currency,
        payment_reference=outcome.reference,
        receipt=outcome.receipt,
    )
