"""PaymentReceipt aggregate: the record of a payment that went through.

A receipt is written as soon as a simulated payment succeeds (or is left
pending), before the order is stored. If storing the order fails, the
client retries checkout with the receipt's reference and the payment is
reused instead of being taken again. A receipt backs at most one order.
"""

import json

from protean import handle
from protean.exceptions import InvalidOperationError, ObjectNotFoundError
from protean.fields import DateTime, Float, Identifier, String, Text
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.payment.methods import PaymentMethod, PaymentStatus
from storefront.payment.simulators.port import PaymentOutcome
from storefront.utils.clock import utcnow


@storefront.aggregate
class PaymentReceipt:
    session_id = String(required=True, max_length=64)
    method = String(required=True, choices=PaymentMethod)
    status = String(required=True, choices=PaymentStatus)
    amount = Float(required=True, min_value=0.0)
    currency = String(required=True, max_length=3)
    details = Text()  # JSON: method specific receipt
    consumed_by_order = Identifier()
    created_at = DateTime()

    @classmethod
    def record(cls, outcome: PaymentOutcome, session_id, amount, currency):
        return cls(
            id=outcome.reference,
            session_id=session_id,
            method=outcome.method.value,
            status=outcome.status.value,
            amount=float(amount),
            currency=currency,
            details=json.dumps(outcome.receipt),
            created_at=utcnow(),
        )

    @property
    def consumed(self) -> bool:
        return self.consumed_by_order is not None

    def consume(self, order_id):
        if self.consumed:
            raise InvalidOperationError(f"Payment {self.id} already backs order {self.consumed_by_order}")
        self.consumed_by_order = str(order_id)

    def as_outcome(self) -> PaymentOutcome:
        return PaymentOutcome(
            status=PaymentStatus(self.status),
            method=PaymentMethod(self.method),
            reference=str(self.id),
            receipt=json.loads(self.details) if self.details else {},
        )


@storefront.command(part_of="PaymentReceipt")
class RecordPaymentReceipt:
    reference = String(required=True, max_length=50)
    session_id = String(required=True, max_length=64)
    method = String(required=True, max_length=20)
    status = String(required=True, max_length=20)
    amount = Float(required=True, min_value=0.0)
    currency = String(required=True, max_length=3)
    details = Text()


def find_receipt(reference) -> PaymentReceipt | None:
    try:
        return current_domain.repository_for(PaymentReceipt).get(str(reference))
    except ObjectNotFoundError:
        return None


@storefront.command_handler(part_of=PaymentReceipt)
class RecordPaymentReceiptHandler:
    @handle(RecordPaymentReceipt)
    def record_receipt(self, command):
        outcome = PaymentOutcome(
            status=PaymentStatus(command.status),
            method=PaymentMethod(command.method),
            reference=command.reference,
            receipt=json.loads(command.details) if command.details else {},
        )
        receipt = PaymentReceipt.record(outcome, command.session_id, command.amount, command.currency)
        current_domain.repository_for(PaymentReceipt).add(receipt)
        return str(receipt.id)
