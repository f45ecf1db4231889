"""Payment simulator port (abstract interface).

Every payment method is simulated behind the same contract:
``initiate(amount, currency, details, session_id) -> PaymentOutcome``. Simulators never
raise for bad payer input; they return a failed outcome carrying the field
errors so the checkout can reject it before anything is persisted.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from decimal import Decimal

from storefront.payment.methods import PaymentMethod, PaymentStatus


def detail(details: dict | None, *keys: str) -> str:
    """First non-blank value among ``keys`` (clients send camelCase or snake_case)."""
    for key in keys:
        value = (details or {}).get(key)
        if value is not None and str(value).strip():
            return str(value).strip()
    return ""


@dataclass(frozen=True)
class PaymentOutcome:
    """Result of a simulated payment attempt."""

    status: PaymentStatus
    method: PaymentMethod
    reference: str | None = None
    receipt: dict = field(default_factory=dict)
    failure_reason: str | None = None
    errors: dict = field(default_factory=dict)

    @property
    def failed(self) -> bool:
        return self.status == PaymentStatus.FAILED

    @property
    def completed(self) -> bool:
        return self.status == PaymentStatus.COMPLETED

    @classmethod
    def failure(cls, method: PaymentMethod, reason: str, errors: dict | None = None) -> "PaymentOutcome":
        return cls(
            status=PaymentStatus.FAILED,
            method=method,
            failure_reason=reason,
            errors=errors or {},
        )


class PaymentSimulator(ABC):
    """Abstract simulated payment method."""

    method: PaymentMethod

    @abstractmethod
    def initiate(self, amount: Decimal, currency: str, details: dict, session_id=None) -> PaymentOutcome:
        """Attempt to collect ``amount`` in ``currency`` with the payer's method details.

        ``session_id`` is the cart being paid for; methods that settle against
        an earlier payer action check it belongs to that cart.
        """
        ...
