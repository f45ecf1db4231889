"""Bank transfer: returns settlement instructions for an out-of-band transfer.

Nothing confirms that the buyer actually transfers the money. Whether such
an order is treated as paid straight away is decided in one place, the
``BANK_TRANSFER_OPTIMISTIC`` setting: completed by default, pending when
switched off.
"""

from decimal import Decimal

from storefront.payment.methods import PaymentMethod, PaymentStatus, generate_reference
from storefront.payment.simulators.port import PaymentOutcome, PaymentSimulator
from storefront.settings import get_settings

BANK_INSTRUCTIONS = {
    "bankName": "Kenya Commercial Bank (KCB)",
    "accountNumber": "1234567890",
    "accountName": "DroneZone Kenya Ltd",
    "branch": "Nairobi Main Branch",
    "swiftCode": "KCBLKENX",
    "instructions": "Please use the reference number when making your transfer.",
}


class BankTransferSimulator(PaymentSimulator):
    method = PaymentMethod.BANK

    def __init__(self, optimistic: bool | None = None) -> None:
        self._optimistic = optimistic

    @property
    def optimistic(self) -> bool:
        if self._optimistic is None:
            return get_settings().bank_transfer_optimistic
        return self._optimistic

    def initiate(self, amount: Decimal, currency: str, details: dict, session_id=None) -> PaymentOutcome:
        reference = generate_reference("BT")
        status = PaymentStatus.COMPLETED if self.optimistic else PaymentStatus.PENDING
        return PaymentOutcome(
            status=status,
            method=self.method,
            reference=reference,
            receipt={
                **BANK_INSTRUCTIONS,
                "referenceNumber": reference,
                "amount": str(amount),
                "currency": currency,
            },
        )
