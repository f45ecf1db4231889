"""Order Ledger: read side of orders and customers."""

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from storefront.catalogue.product import products_by_id
from storefront.customer.customer import Customer, find_customer_by_email
from storefront.order.order import Order


def _order_view(order: Order, customer: Customer | None, products) -> dict:
    view = order.to_dict()
    view["customer"] = customer.to_dict() if customer is not None else None
    for item in view["items"]:
        product = products.get(item["product_id"])
        item["product"] = product.snapshot() if product is not None else None
    return view


def get_order(order_id) -> dict:
    """Order with its customer and items, each item joined with the live product."""
    try:
        order = current_domain.repository_for(Order).get(str(order_id))
    except ObjectNotFoundError as exc:
        raise ObjectNotFoundError(f"Order {order_id} not found") from exc

    try:
        customer = current_domain.repository_for(Customer).get(str(order.customer_id))
    except ObjectNotFoundError:
        customer = None

    products = products_by_id(item.product_id for item in order.items)
    return _order_view(order, customer, products)


def get_orders_by_customer_email(email) -> list[dict]:
    """Orders of the customer with this email, newest first."""
    customer = find_customer_by_email(email)
    if customer is None:
        raise ObjectNotFoundError(f"Customer {email} not found")

    orders = current_domain.repository_for(Order)._dao.query.filter(customer_id=str(customer.id)).all().items
    orders = sorted(orders, key=lambda order: order.created_at, reverse=True)

    products = products_by_id(item.product_id for order in orders for item in order.items)
    return [_order_view(order, customer, products) for order in orders]
