"""Order placement: the single unit of work that ends a checkout.

Runs only after payment has succeeded (or been left pending). Upserts the
customer, creates the order with its items, marks the payment receipt as
used and empties the cart, all in one unit of work: either everything is
committed or the cart is left exactly as it was.
"""

import json

import structlog
from protean import handle
from protean.fields import Float, String, Text
from protean.utils.globals import current_domain

from storefront.cart.items import delete_session_lines
from storefront.customer.customer import CustomerDetails, upsert_customer
from storefront.domain import storefront
from storefront.order.order import Order
from storefront.payment.receipt import PaymentReceipt

logger = structlog.get_logger(__name__)


@storefront.command(part_of="Order")
class PlaceOrder:
    session_id = String(required=True, max_length=64)
    customer = Text(required=True)  # JSON: CustomerDetails fields
    items = Text(required=True)  # JSON: list of {product_id, product_name, quantity, price}
    subtotal = Float(required=True)
    shipping = Float(default=0.0)
    tax = Float(default=0.0)
    total = Float(required=True)
    currency = String(required=True, max_length=3)
    payment_method = String(required=True, max_length=20)
    payment_status = String(required=True, max_length=20)
    payment_reference = String(max_length=50)
    payment_details = Text()  # JSON: receipt


@storefront.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        details = CustomerDetails.from_checkout(json.loads(command.customer))
        customer = upsert_customer(details)

        order = Order.place(
            customer_id=customer.id,
            shipping_address=details.shipping_address(),
            items_data=json.loads(command.items),
            totals={
                "subtotal": command.subtotal,
                "shipping": command.shipping or 0.0,
                "tax": command.tax or 0.0,
                "total": command.total,
                "currency": command.currency,
            },
            payment={
                "method": command.payment_method,
                "status": command.payment_status,
                "reference": command.payment_reference,
                "receipt": json.loads(command.payment_details) if command.payment_details else {},
            },
        )
        current_domain.repository_for(Order).add(order)

        if command.payment_reference:
            receipts = current_domain.repository_for(PaymentReceipt)
            receipt = receipts.get(command.payment_reference)
            receipt.consume(order.id)
            receipts.add(receipt)

        cleared = delete_session_lines(command.session_id)

        logger.info(
            "Order placed",
            order_id=str(order.id),
            customer_id=str(customer.id),
            status=order.status,
            payment_status=order.payment_status,
            lines_cleared=cleared,
        )
        return str(order.id)
