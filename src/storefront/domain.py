"""Storefront bounded context: Cart, Checkout and Order Ledger.

Handles session-scoped shopping carts, cart pricing, simulated payment
methods and the checkout flow that turns a cart into an order. The product
catalogue is read-only from this context's point of view.
"""

import structlog
from protean.domain import Domain

storefront = Domain(name="storefront")

logger = structlog.get_logger(__name__)
