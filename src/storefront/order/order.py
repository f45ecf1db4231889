"""Order aggregate: what a successful checkout leaves behind.

An order is written once, by the checkout, and never changes afterwards in
this context. Its items freeze the unit price paid (in the settlement
currency); later catalogue price changes do not touch them.

Status at creation follows the payment:
    payment completed      → processing
    payment pending/other  → pending
"""

import json
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String, Text

from storefront.domain import storefront
from storefront.payment.methods import PaymentMethod, PaymentStatus
from storefront.utils.clock import utcnow


class OrderStatus(Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


def status_for_payment(payment_status) -> OrderStatus:
    if PaymentStatus(payment_status) == PaymentStatus.COMPLETED:
        return OrderStatus.PROCESSING
    return OrderStatus.PENDING


@storefront.entity(part_of="Order")
class OrderItem:
    product_id = Identifier(required=True)
    product_name = String(max_length=255)
    quantity = Integer(required=True, min_value=1)
    price = Float(required=True, min_value=0.0)  # Unit price at purchase, settlement currency

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "product_id": str(self.product_id),
            "product_name": self.product_name,
            "quantity": self.quantity,
            "price": self.price,
        }


@storefront.aggregate
class Order:
    customer_id = Identifier(required=True)
    status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    shipping_address = String(required=True, max_length=500)
    items = HasMany(OrderItem)
    subtotal = Float(default=0.0)
    shipping = Float(default=0.0)
    tax = Float(default=0.0)
    total = Float(required=True, min_value=0.0)
    currency = String(max_length=3, default="KES")
    payment_method = String(choices=PaymentMethod, default=PaymentMethod.UNKNOWN.value)
    payment_status = String(choices=PaymentStatus, default=PaymentStatus.PENDING.value)
    payment_reference = String(max_length=50)
    payment_details = Text()  # JSON: receipt returned by the payment simulator
    created_at = DateTime()

    @invariant.post
    def status_must_follow_payment_at_creation(self):
        if self.status not in (OrderStatus.PENDING.value, OrderStatus.PROCESSING.value):
            return
        if self.status != status_for_payment(self.payment_status).value:
            raise ValidationError(
                {"status": [f"Order cannot be {self.status} when payment is {self.payment_status}"]}
            )

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def place(cls, customer_id, shipping_address, items_data, totals, payment):
        """Create an order from a priced cart and a payment outcome.

        Args:
            customer_id: The (upserted) customer placing the order.
            shipping_address: Flattened address string.
            items_data: List of dicts with product_id, product_name, quantity, price.
            totals: Dict with subtotal, shipping, tax, total, currency.
            payment: Dict with method, status, reference, receipt.
        """
        order = cls(
            customer_id=str(customer_id),
            status=status_for_payment(payment["status"]).value,
            shipping_address=shipping_address,
            subtotal=totals["subtotal"],
            shipping=totals["shipping"],
            tax=totals["tax"],
            total=totals["total"],
            currency=totals["currency"],
            payment_method=payment["method"],
            payment_status=payment["status"],
            payment_reference=payment.get("reference"),
            payment_details=json.dumps(payment.get("receipt") or {}),
            created_at=utcnow(),
        )
        for item in items_data:
            order.add_items(
                OrderItem(
                    product_id=item["product_id"],
                    product_name=item.get("product_name"),
                    quantity=item["quantity"],
                    price=item["price"],
                )
            )
        return order

    @property
    def receipt(self) -> dict:
        return json.loads(self.payment_details) if self.payment_details else {}

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "customer_id": str(self.customer_id),
            "status": self.status,
            "shipping_address": self.shipping_address,
            "subtotal": self.subtotal,
            "shipping": self.shipping,
            "tax": self.tax,
            "total": self.total,
            "currency": self.currency,
            "payment_method": self.payment_method,
            "payment_status": self.payment_status,
            "payment_reference": self.payment_reference,
            "payment_details": self.receipt,
            "created_at": self.created_at,
            "items": [item.to_dict() for item in self.items],
        }
