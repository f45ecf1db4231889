"""Card payments: single step, approved whenever the card fields are well formed."""

import re
from decimal import Decimal

import structlog

from storefront.payment.methods import PaymentMethod, PaymentStatus, generate_reference
from storefront.payment.simulators.port import PaymentOutcome, PaymentSimulator, detail

logger = structlog.get_logger(__name__)

_EXPIRY = re.compile(r"^(0[1-9]|1[0-2])/\d{2}$")
_CVV = re.compile(r"^\d{3,4}$")


class CardSimulator(PaymentSimulator):
    method = PaymentMethod.CARD

    def _validate(self, number: str, expiry: str, cvv: str) -> dict:
        errors = {}
        if not number:
            errors["cardNumber"] = ["Card number is required"]
        elif not number.isdigit() or not 12 <= len(number) <= 19:
            errors["cardNumber"] = ["Card number must be 12 to 19 digits"]
        if not expiry:
            errors["expiryDate"] = ["Expiry date is required"]
        elif not _EXPIRY.match(expiry):
            errors["expiryDate"] = ["Expiry date must be in MM/YY format"]
        if not cvv:
            errors["cvv"] = ["CVV is required"]
        elif not _CVV.match(cvv):
            errors["cvv"] = ["CVV must be 3 or 4 digits"]
        return errors

    def initiate(self, amount: Decimal, currency: str, details: dict, session_id=None) -> PaymentOutcome:
        number = re.sub(r"[\s-]", "", detail(details, "cardNumber", "card_number", "number"))
        expiry = detail(details, "expiryDate", "expiry_date", "expiry")
        cvv = detail(details, "cvv", "cvc")

        errors = self._validate(number, expiry, cvv)
        if errors:
            logger.info("Card payment rejected", fields=sorted(errors))
            return PaymentOutcome.failure(self.method, "Card details are incomplete or invalid", errors)

        reference = generate_reference("CARD")
        return PaymentOutcome(
            status=PaymentStatus.COMPLETED,
            method=self.method,
            reference=reference,
            receipt={"last4": number[-4:], "expiry": expiry, "transaction": reference},
        )
