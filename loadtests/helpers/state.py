"""Per-user state tracking for Locust load test scenarios.

Each Locust user instance maintains its own state; nothing is shared
between users. State keeps the ids returned by the API so follow-up
requests can reference them.
"""

from dataclasses import dataclass, field


@dataclass
class CartState:
    """Tracks one shopper's cart session."""

    session: str | None = None
    line_ids: list[str] = field(default_factory=list)
    line_count: int = 0


@dataclass
class CheckoutState:
    """Tracks a cart session through checkout to the placed order."""

    session: str | None = None
    email: str | None = None
    total: float = 0.0
    order_id: str | None = None
    payment_reference: str | None = None


@dataclass
class MobileMoneyState:
    """Tracks a mobile money prompt from start to checkout."""

    session: str | None = None
    payment_id: str | None = None
    stage: str = "PROMPT"
    order_id: str | None = None
