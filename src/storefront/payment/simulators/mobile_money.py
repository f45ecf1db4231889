"""Mobile money: settles against a completed PIN prompt.

With a ``promptId`` the prompt must belong to the cart being paid for and
have reached COMPLETE for the amount being charged. Without one, a well
formed phone number means the payment request went out but is not
confirmed yet, so the order is left pending.
"""

from decimal import Decimal

import structlog
from protean.exceptions import ObjectNotFoundError

from storefront.payment.methods import PaymentMethod, PaymentStatus, generate_reference
from storefront.payment.mobile_money import get_mobile_money_payment, is_valid_phone
from storefront.payment.simulators.port import PaymentOutcome, PaymentSimulator, detail

logger = structlog.get_logger(__name__)


class MobileMoneySimulator(PaymentSimulator):
    method = PaymentMethod.MOBILE_MONEY

    def initiate(self, amount: Decimal, currency: str, details: dict, session_id=None) -> PaymentOutcome:
        prompt_id = detail(details, "promptId", "prompt_id", "paymentId", "payment_id")
        if prompt_id:
            return self._settle_prompt(prompt_id, amount, currency, session_id)

        phone = detail(details, "phone", "mpesaNumber", "mpesa_number", "phoneNumber")
        if not is_valid_phone(phone):
            return PaymentOutcome.failure(
                self.method,
                "Invalid mobile money number",
                {"phone": ["Enter a valid mobile money number in the format 254XXXXXXXXX"]},
            )

        return PaymentOutcome(
            status=PaymentStatus.PENDING,
            method=self.method,
            reference=generate_reference("MM"),
            receipt={"phone": phone, "message": "Payment request sent, awaiting confirmation"},
        )

    def _settle_prompt(self, prompt_id, amount, currency, session_id) -> PaymentOutcome:
        try:
            payment = get_mobile_money_payment(prompt_id)
        except ObjectNotFoundError:
            return PaymentOutcome.failure(self.method, f"Mobile money payment {prompt_id} not found")

        if payment.session_id != session_id:
            logger.warning(
                "Mobile money prompt used by another cart",
                prompt_id=prompt_id,
                session_id=session_id,
            )
            return PaymentOutcome.failure(self.method, f"Mobile money payment {prompt_id} belongs to another cart")

        if not payment.is_complete:
            logger.info("Mobile money prompt not complete", prompt_id=prompt_id, stage=payment.stage)
            return PaymentOutcome.failure(self.method, f"Mobile money payment is {payment.stage}, not COMPLETE")

        if Decimal(str(payment.amount)) != Decimal(amount) or payment.currency != currency:
            return PaymentOutcome.failure(
                self.method,
                f"Mobile money payment was for {payment.amount} {payment.currency}, not {amount} {currency}",
            )

        return PaymentOutcome(
            status=PaymentStatus.COMPLETED,
            method=self.method,
            reference=payment.transaction_id,
            receipt={"phone": payment.phone, "transaction": payment.transaction_id, "promptId": str(payment.id)},
        )
