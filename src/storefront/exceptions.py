"""Checkout failures that are neither validation nor not-found errors.

Malformed input and missing records use Protean's own ``ValidationError``
and ``ObjectNotFoundError`` throughout the domain. The exceptions here cover
the checkout-specific outcomes the API reports as separate categories.
"""


class CheckoutError(Exception):
    """Base class for checkout failures."""

    category = "checkout_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class EmptyCart(CheckoutError):
    """Checkout was attempted for a session without cart lines."""

    category = "empty_cart"

    def __init__(self, session_id: str) -> None:
        super().__init__(f"Cart is empty for session {session_id}")
        self.session_id = session_id


class PaymentFailed(CheckoutError):
    """The payment simulator rejected the attempt. Nothing was persisted."""

    category = "payment_failed"

    def __init__(self, outcome) -> None:
        super().__init__(outcome.failure_reason or "Payment was declined")
        self.outcome = outcome


class PersistenceFailure(CheckoutError):
    """The order could not be stored after payment succeeded.

    The cart is left intact and ``payment_reference`` can be sent back with
    the next checkout attempt to reuse the recorded payment.
    """

    category = "persistence_failure"

    def __init__(self, payment_reference: str | None) -> None:
        super().__init__("Order could not be saved; retry with the same payment reference")
        self.payment_reference = payment_reference
