"""CartLine aggregate: one product and quantity held by an anonymous cart session.

A cart is not an aggregate of its own: it is simply the set of lines that
share a ``session_id``. Each line's identity is derived from the
(session, product) pair, so the store can never hold two lines for the same
product in the same cart.
"""

from datetime import UTC, datetime
from uuid import NAMESPACE_URL, uuid5

from protean.exceptions import ValidationError
from protean.fields import DateTime, Identifier, Integer, String

from storefront.domain import storefront
from storefront.utils.clock import as_naive_utc


def line_id_for(session_id, product_id) -> str:
    return str(uuid5(NAMESPACE_URL, f"storefront:cart:{session_id}:{product_id}"))


def _require_positive(quantity):
    if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity < 1:
        raise ValidationError({"quantity": ["Quantity must be a positive integer"]})


@storefront.aggregate
class CartLine:
    session_id = String(required=True, max_length=64)
    product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)
    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def open(cls, session_id, product_id, quantity):
        _require_positive(quantity)
        now = datetime.now(UTC)
        return cls(
            id=line_id_for(session_id, product_id),
            session_id=session_id,
            product_id=str(product_id),
            quantity=quantity,
            created_at=now,
            updated_at=now,
        )

    # -------------------------------------------------------------------
    # Quantity changes
    # -------------------------------------------------------------------
    def increment(self, quantity):
        """Add ``quantity`` to the line (repeat add-to-cart of the same product)."""
        _require_positive(quantity)
        self.quantity = self.quantity + quantity
        self.updated_at = datetime.now(UTC)

    def set_quantity(self, quantity):
        """Overwrite the quantity. Zero is not a removal."""
        _require_positive(quantity)
        self.quantity = quantity
        self.updated_at = datetime.now(UTC)

    def idle_since(self, cutoff) -> bool:
        last_touched = self.updated_at or self.created_at
        if last_touched is None:
            return False
        return as_naive_utc(last_touched) <= as_naive_utc(cutoff)
