"""External wallet (PayPal) placeholder and the no-payment-info fallback."""

from decimal import Decimal

from storefront.payment.methods import PaymentMethod, PaymentStatus, generate_reference
from storefront.payment.simulators.port import PaymentOutcome, PaymentSimulator


class ExternalWalletSimulator(PaymentSimulator):
    method = PaymentMethod.EXTERNAL_WALLET

    def initiate(self, amount: Decimal, currency: str, details: dict, session_id=None) -> PaymentOutcome:
        reference = generate_reference("PP")
        return PaymentOutcome(
            status=PaymentStatus.COMPLETED,
            method=self.method,
            reference=reference,
            receipt={"transaction": reference},
        )


class UnpaidSimulator(PaymentSimulator):
    """Checkout submitted without payment info: the order waits for payment."""

    method = PaymentMethod.UNKNOWN

    def initiate(self, amount: Decimal, currency: str, details: dict, session_id=None) -> PaymentOutcome:
        return PaymentOutcome(
            status=PaymentStatus.PENDING,
            method=self.method,
            reference=generate_reference("UNPAID"),
        )
