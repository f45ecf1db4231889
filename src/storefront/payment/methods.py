"""Payment methods and payment statuses shared by simulators, receipts and orders."""

import secrets
import string
from enum import Enum

from protean.exceptions import ValidationError

_REFERENCE_ALPHABET = string.ascii_uppercase + string.digits


class PaymentMethod(Enum):
    CARD = "card"
    MOBILE_MONEY = "mobile-money"
    BANK = "bank"
    EXTERNAL_WALLET = "external-wallet"
    UNKNOWN = "unknown"


class PaymentStatus(Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"


# Names used by older storefront clients
_ALIASES = {
    "mpesa": PaymentMethod.MOBILE_MONEY,
    "m-pesa": PaymentMethod.MOBILE_MONEY,
    "mobile_money": PaymentMethod.MOBILE_MONEY,
    "paypal": PaymentMethod.EXTERNAL_WALLET,
    "external_wallet": PaymentMethod.EXTERNAL_WALLET,
    "bank-transfer": PaymentMethod.BANK,
    "bank_transfer": PaymentMethod.BANK,
    "credit-card": PaymentMethod.CARD,
    "credit_card": PaymentMethod.CARD,
}


def normalize_method(name) -> PaymentMethod:
    """Resolve a client supplied method name. No name means no payment info was sent."""
    if isinstance(name, PaymentMethod):
        return name
    if name is None or not str(name).strip():
        return PaymentMethod.UNKNOWN

    key = str(name).strip().lower()
    if key in _ALIASES:
        return _ALIASES[key]
    try:
        return PaymentMethod(key)
    except ValueError as exc:
        raise ValidationError({"payment_method": [f"Unsupported payment method: {name}"]}) from exc


def generate_reference(prefix: str, length: int = 8) -> str:
    """Reconciliation reference such as ``BT-7KQ2M9XA``."""
    return f"{prefix}-" + "".join(secrets.choice(_REFERENCE_ALPHABET) for _ in range(length))
