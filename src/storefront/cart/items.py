"""Cart line management: commands and handler."""

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Identifier, Integer, String
from protean.utils.globals import current_domain

from storefront.cart.line import CartLine, line_id_for
from storefront.catalogue.product import get_product
from storefront.domain import storefront

logger = structlog.get_logger(__name__)


@storefront.command(part_of="CartLine")
class AddToCart:
    session_id = String(required=True, max_length=64)
    product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)


@storefront.command(part_of="CartLine")
class UpdateCartQuantity:
    line_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)


@storefront.command(part_of="CartLine")
class RemoveFromCart:
    line_id = Identifier(required=True)


@storefront.command(part_of="CartLine")
class ClearCart:
    session_id = String(required=True, max_length=64)


def get_line(line_id) -> CartLine:
    try:
        return current_domain.repository_for(CartLine).get(str(line_id))
    except ObjectNotFoundError as exc:
        raise ObjectNotFoundError(f"Cart line {line_id} not found") from exc


def lines_for_session(session_id) -> list[CartLine]:
    lines = current_domain.repository_for(CartLine)._dao.query.filter(session_id=session_id).all().items
    return sorted(lines, key=lambda line: line.created_at)


def delete_session_lines(session_id) -> int:
    """Delete every line of a session inside the caller's unit of work."""
    repo = current_domain.repository_for(CartLine)
    lines = lines_for_session(session_id)
    for line in lines:
        repo._dao.delete(line)
    return len(lines)


@storefront.command_handler(part_of=CartLine)
class ManageCartLinesHandler:
    @handle(AddToCart)
    def add_to_cart(self, command):
        get_product(command.product_id)

        repo = current_domain.repository_for(CartLine)
        line_id = line_id_for(command.session_id, command.product_id)
        try:
            line = repo.get(line_id)
        except ObjectNotFoundError:
            line = CartLine.open(
                session_id=command.session_id,
                product_id=command.product_id,
                quantity=command.quantity,
            )
        else:
            line.increment(command.quantity)
        repo.add(line)

        logger.debug(
            "Cart line saved",
            session_id=command.session_id,
            line_id=line_id,
            quantity=line.quantity,
        )
        return line_id

    @handle(UpdateCartQuantity)
    def update_cart_quantity(self, command):
        line = get_line(command.line_id)
        line.set_quantity(command.quantity)
        current_domain.repository_for(CartLine).add(line)
        return str(line.id)

    @handle(RemoveFromCart)
    def remove_from_cart(self, command):
        line = get_line(command.line_id)
        current_domain.repository_for(CartLine)._dao.delete(line)
        return line.session_id

    @handle(ClearCart)
    def clear_cart(self, command):
        removed = delete_session_lines(command.session_id)
        logger.debug("Cart cleared", session_id=command.session_id, removed=removed)
        return removed
