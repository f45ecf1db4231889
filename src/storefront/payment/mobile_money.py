"""Mobile money payment prompt: the multi-step simulated payment flow.

State Machine:
    PROMPT → PROCESSING → PIN_ENTRY → PROCESSING → COMPLETE
    PROMPT / PIN_ENTRY → CANCELLED

Each step is a separate command, committed on its own, so nothing is held
open while the payer types their phone number or PIN. The simulated network
and settlement delays are stored as a ``ready_at`` deadline: a payment in
PROCESSING moves on to ``next_stage`` the first time it is read or stepped
after the deadline. The delays never fail.
"""

import re
from datetime import timedelta
from enum import Enum

import structlog
from protean import handle
from protean.exceptions import InvalidOperationError, ObjectNotFoundError, ValidationError
from protean.fields import DateTime, Float, Identifier, String
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.payment.methods import generate_reference
from storefront.settings import get_settings
from storefront.utils.clock import as_naive_utc, utcnow

logger = structlog.get_logger(__name__)

_PIN = re.compile(r"^\d{4}$")


class MobileMoneyStage(Enum):
    PROMPT = "PROMPT"
    PROCESSING = "PROCESSING"
    PIN_ENTRY = "PIN_ENTRY"
    COMPLETE = "COMPLETE"
    CANCELLED = "CANCELLED"


_CANCELLABLE_STAGES = {MobileMoneyStage.PROMPT, MobileMoneyStage.PIN_ENTRY}


def is_valid_phone(phone, pattern: str | None = None) -> bool:
    pattern = pattern or get_settings().mobile_money_phone_pattern
    return bool(phone) and re.match(pattern, str(phone)) is not None


@storefront.aggregate
class MobileMoneyPayment:
    session_id = String(max_length=64)
    amount = Float(required=True, min_value=0.0)
    currency = String(max_length=3, default="KES")
    phone = String(max_length=20)
    stage = String(choices=MobileMoneyStage, default=MobileMoneyStage.PROMPT.value)
    next_stage = String(max_length=20)
    ready_at = DateTime()
    transaction_id = String(max_length=50)
    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def start(cls, amount, currency, session_id=None, phone=None):
        now = utcnow()
        return cls(
            session_id=session_id,
            amount=amount,
            currency=currency,
            phone=phone,
            stage=MobileMoneyStage.PROMPT.value,
            created_at=now,
            updated_at=now,
        )

    # -------------------------------------------------------------------
    # Simulated delays
    # -------------------------------------------------------------------
    def advance(self, now=None) -> bool:
        """Resolve an elapsed PROCESSING delay. Returns True if the stage changed."""
        if MobileMoneyStage(self.stage) != MobileMoneyStage.PROCESSING or self.ready_at is None:
            return False

        now = now or utcnow()
        if as_naive_utc(now) < as_naive_utc(self.ready_at):
            return False

        self.stage = self.next_stage
        self.next_stage = None
        self.ready_at = None
        self.updated_at = now
        return True

    def _begin_processing(self, next_stage, delay_seconds, now):
        self.stage = MobileMoneyStage.PROCESSING.value
        self.next_stage = next_stage.value
        self.ready_at = now + timedelta(seconds=delay_seconds)
        self.updated_at = now

    def _assert_stage(self, expected, action):
        current = MobileMoneyStage(self.stage)
        if current != expected:
            raise InvalidOperationError(f"Cannot {action} while the payment is {current.value}")

    # -------------------------------------------------------------------
    # Steps
    # -------------------------------------------------------------------
    def request_pin(self, phone, now=None):
        """PROMPT → PROCESSING (→ PIN_ENTRY once the prompt delay elapses)."""
        self._assert_stage(MobileMoneyStage.PROMPT, "request a PIN prompt")

        settings = get_settings()
        if not is_valid_phone(phone, settings.mobile_money_phone_pattern):
            raise ValidationError({"phone": ["Enter a valid mobile money number in the format 254XXXXXXXXX"]})

        self.phone = str(phone)
        self._begin_processing(MobileMoneyStage.PIN_ENTRY, settings.mobile_money_prompt_delay, now or utcnow())

    def submit_pin(self, pin, now=None):
        """PIN_ENTRY → PROCESSING (→ COMPLETE once the settlement delay elapses)."""
        self._assert_stage(MobileMoneyStage.PIN_ENTRY, "submit a PIN")

        if pin is None or not _PIN.match(str(pin)):
            raise ValidationError({"pin": ["PIN must be exactly 4 digits"]})

        # The PIN itself is never stored
        self.transaction_id = generate_reference("MM")
        self._begin_processing(
            MobileMoneyStage.COMPLETE,
            get_settings().mobile_money_settlement_delay,
            now or utcnow(),
        )

    def cancel(self, now=None):
        current = MobileMoneyStage(self.stage)
        if current not in _CANCELLABLE_STAGES:
            raise InvalidOperationError(f"Cannot cancel a payment that is {current.value}")

        self.stage = MobileMoneyStage.CANCELLED.value
        self.next_stage = None
        self.ready_at = None
        self.updated_at = now or utcnow()

    @property
    def is_complete(self) -> bool:
        return MobileMoneyStage(self.stage) == MobileMoneyStage.COMPLETE

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "session_id": self.session_id,
            "amount": self.amount,
            "currency": self.currency,
            "phone": self.phone,
            "stage": self.stage,
            "ready_at": self.ready_at,
            "transaction_id": self.transaction_id if self.is_complete else None,
        }


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------
@storefront.command(part_of="MobileMoneyPayment")
class StartMobileMoneyPayment:
    amount = Float(required=True, min_value=0.0)
    currency = String(required=True, max_length=3)
    session_id = String(max_length=64)
    phone = String(max_length=20)


@storefront.command(part_of="MobileMoneyPayment")
class RequestMobileMoneyPin:
    payment_id = Identifier(required=True)
    phone = String(required=True, max_length=20)


@storefront.command(part_of="MobileMoneyPayment")
class SubmitMobileMoneyPin:
    payment_id = Identifier(required=True)
    pin = String(required=True, max_length=10)


@storefront.command(part_of="MobileMoneyPayment")
class CancelMobileMoneyPayment:
    payment_id = Identifier(required=True)


def load_mobile_money_payment(payment_id) -> MobileMoneyPayment:
    try:
        return current_domain.repository_for(MobileMoneyPayment).get(str(payment_id))
    except ObjectNotFoundError as exc:
        raise ObjectNotFoundError(f"Mobile money payment {payment_id} not found") from exc


def get_mobile_money_payment(payment_id) -> MobileMoneyPayment:
    """Current state of a prompt, with elapsed delays applied (not persisted by a read)."""
    payment = load_mobile_money_payment(payment_id)
    payment.advance()
    return payment


@storefront.command_handler(part_of=MobileMoneyPayment)
class MobileMoneyPaymentHandler:
    @handle(StartMobileMoneyPayment)
    def start_payment(self, command):
        payment = MobileMoneyPayment.start(
            amount=command.amount,
            currency=command.currency,
            session_id=command.session_id,
            phone=command.phone,
        )
        current_domain.repository_for(MobileMoneyPayment).add(payment)
        logger.info("Mobile money prompt started", payment_id=str(payment.id), session_id=command.session_id)
        return str(payment.id)

    @handle(RequestMobileMoneyPin)
    def request_pin(self, command):
        payment = load_mobile_money_payment(command.payment_id)
        payment.advance()
        payment.request_pin(command.phone)
        current_domain.repository_for(MobileMoneyPayment).add(payment)
        return payment.stage

    @handle(SubmitMobileMoneyPin)
    def submit_pin(self, command):
        payment = load_mobile_money_payment(command.payment_id)
        payment.advance()
        payment.submit_pin(command.pin)
        current_domain.repository_for(MobileMoneyPayment).add(payment)
        return payment.stage

    @handle(CancelMobileMoneyPayment)
    def cancel_payment(self, command):
        payment = load_mobile_money_payment(command.payment_id)
        payment.advance()
        payment.cancel()
        current_domain.repository_for(MobileMoneyPayment).add(payment)
        logger.info("Mobile money prompt cancelled", payment_id=str(payment.id))
        return payment.stage
