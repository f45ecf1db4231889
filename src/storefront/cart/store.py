"""Cart Store: the storefront's session-scoped cart operations.

Every mutation goes through a Protean command processed synchronously, so
it is committed before the call returns. Reads join each line with the live
product record; prices are never copied onto cart lines.
"""

import secrets
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from decimal import Decimal

import structlog
from protean.exceptions import ExpectedVersionError, TransactionError, ValidationError
from protean.utils.globals import current_domain

from storefront.cart.items import (
    AddToCart,
    ClearCart,
    RemoveFromCart,
    UpdateCartQuantity,
    get_line,
    lines_for_session,
)
from storefront.cart.line import line_id_for
from storefront.catalogue.product import products_by_id

logger = structlog.get_logger(__name__)

# Striped locks: concurrent adds of the same (session, product) pair always
# contend on the same lock, so the increment and its commit are serialized.
# They only cover one process; across workers the store itself rejects the
# stale write (version check on update, primary key on a first insert) and
# the add is processed again.
_LOCK_STRIPES = [threading.Lock() for _ in range(64)]

ADD_ATTEMPTS = 5


@contextmanager
def _line_lock(session_id, product_id):
    key = line_id_for(session_id, product_id)
    with _LOCK_STRIPES[hash(key) % len(_LOCK_STRIPES)]:
        yield


@dataclass(frozen=True)
class ResolvedLine:
    """A cart line priced at the current catalogue price."""

    line_id: str
    product_id: str
    product_name: str
    unit_price: Decimal
    quantity: int


def new_session_token() -> str:
    """Mint an opaque 16 character cart session token."""
    return secrets.token_urlsafe(12)


def _line_view(line, product) -> dict:
    return {
        "id": str(line.id),
        "session_id": line.session_id,
        "product_id": str(line.product_id),
        "quantity": line.quantity,
        "created_at": line.created_at,
        "product": product.snapshot() if product is not None else None,
    }


def _join_products(session_id):
    lines = lines_for_session(session_id)
    products = products_by_id(line.product_id for line in lines)

    cart, unavailable = [], []
    for line in lines:
        product = products.get(str(line.product_id))
        if product is None:
            unavailable.append(line)
        else:
            cart.append(_line_view(line, product))
    return cart, unavailable


def get_cart(session_id) -> list[dict]:
    """Lines of the session joined with their products, oldest first.

    Lines whose product has left the catalogue are not shown.
    """
    cart, unavailable = _join_products(session_id)
    for line in unavailable:
        logger.warning("Cart line references a missing product", line_id=str(line.id))
    return cart


def resolve_cart(session_id) -> list[ResolvedLine]:
    """Cart lines with live prices, ready for the pricing engine.

    Raises ``ValidationError`` when a stored line's product no longer exists,
    so a cart is never charged without lines it still holds.
    """
    cart, unavailable = _join_products(session_id)
    if unavailable:
        logger.warning(
            "Cart holds lines for unavailable products",
            session_id=session_id,
            line_ids=[str(line.id) for line in unavailable],
        )
        raise ValidationError(
            {
                "cart": [
                    f"Product {line.product_id} is no longer available; remove cart line {line.id}"
                    for line in unavailable
                ]
            }
        )

    return [
        ResolvedLine(
            line_id=entry["id"],
            product_id=entry["product_id"],
            product_name=entry["product"]["name"],
            unit_price=Decimal(str(entry["product"]["price"])),
            quantity=entry["quantity"],
        )
        for entry in cart
    ]


def add_item(session_id, product_id, quantity) -> list[dict]:
    with _line_lock(session_id, product_id):
        for attempt in range(1, ADD_ATTEMPTS + 1):
            try:
                current_domain.process(
                    AddToCart(session_id=session_id, product_id=str(product_id), quantity=quantity),
                    asynchronous=False,
                )
                break
            except (ExpectedVersionError, TransactionError) as exc:
                if attempt == ADD_ATTEMPTS:
                    raise
                logger.info(
                    "Cart line write conflicted, adding again",
                    session_id=session_id,
                    product_id=str(product_id),
                    attempt=attempt,
                    error=str(exc),
                )
    return get_cart(session_id)


def update_quantity(line_id, quantity) -> dict:
    current_domain.process(UpdateCartQuantity(line_id=line_id, quantity=quantity), asynchronous=False)
    line = get_line(line_id)
    product = products_by_id([line.product_id]).get(str(line.product_id))
    return _line_view(line, product)


def remove_item(line_id) -> list[dict]:
    session_id = current_domain.process(RemoveFromCart(line_id=line_id), asynchronous=False)
    return get_cart(session_id)


def clear_cart(session_id) -> None:
    current_domain.process(ClearCart(session_id=session_id), asynchronous=False)
