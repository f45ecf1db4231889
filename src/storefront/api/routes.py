"""FastAPI routes for the Storefront: cart, checkout, orders and mobile money."""

import structlog
from fastapi import APIRouter
from protean.utils.globals import current_domain

from storefront.api.schemas import (
    AddToCartRequest,
    CartLineResponse,
    CartTotalsResponse,
    CheckoutRequest,
    CheckoutResponse,
    MobileMoneyPaymentResponse,
    MobileMoneyPhoneRequest,
    MobileMoneyPinRequest,
    OrderResponse,
    SessionResponse,
    StartMobileMoneyRequest,
    UpdateCartQuantityRequest,
)
from storefront.cart import store
from storefront.checkout.orchestrator import checkout, quote, start_mobile_money
from storefront.order.ledger import get_order, get_orders_by_customer_email
from storefront.payment.mobile_money import (
    CancelMobileMoneyPayment,
    RequestMobileMoneyPin,
    SubmitMobileMoneyPin,
    get_mobile_money_payment,
)

logger = structlog.get_logger(__name__)

# ---------------------------------------------------------------------------
# Cart Router
# ---------------------------------------------------------------------------
cart_router = APIRouter(prefix="/cart", tags=["cart"])


@cart_router.post("/session", status_code=201, response_model=SessionResponse)
async def create_session() -> SessionResponse:
    return SessionResponse(session_id=store.new_session_token())


@cart_router.get("/{session_id}", response_model=list[CartLineResponse])
async def get_cart(session_id: str):
    return store.get_cart(session_id)


@cart_router.get("/{session_id}/totals", response_model=CartTotalsResponse)
async def get_cart_totals(session_id: str):
    return quote(session_id).as_dict()


@cart_router.post("", response_model=list[CartLineResponse])
async def add_to_cart(body: AddToCartRequest):
    return store.add_item(body.session, body.product_id, body.quantity)


@cart_router.put("/{line_id}", response_model=CartLineResponse)
async def update_cart_line(line_id: str, body: UpdateCartQuantityRequest):
    return store.update_quantity(line_id, body.quantity)


@cart_router.delete("/{line_id}", response_model=list[CartLineResponse])
async def remove_cart_line(line_id: str):
    return store.remove_item(line_id)


# ---------------------------------------------------------------------------
# Checkout Router
# ---------------------------------------------------------------------------
checkout_router = APIRouter(prefix="/checkout", tags=["checkout"])


@checkout_router.post("", status_code=201, response_model=CheckoutResponse)
async def submit_checkout(body: CheckoutRequest):
    """Run the checkout for a cart session.

    1. Price the cart at live prices
    2. Take payment (or reuse ``paymentReference`` after a failed save)
    3. Store the order and empty the cart
    """
    payment = body.payment_info
    result = checkout(
        session_id=body.session,
        customer_info=body.customer_info.model_dump(),
        payment_method=payment.method if payment else None,
        payment_details=payment.details if payment else None,
        payment_reference=body.payment_reference,
    )

    if body.total_amount is not None and round(body.total_amount, 2) != float(result.total):
        logger.warning(
            "Client total differs from server total",
            order_id=result.order_id,
            client_total=body.total_amount,
            client_currency=body.currency,
            server_total=float(result.total),
            server_currency=result.currency,
        )
    return result.as_dict()


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(tags=["orders"])


@order_router.get("/orders/{order_id}", response_model=OrderResponse)
async def order_detail(order_id: str):
    return get_order(order_id)


@order_router.get("/customers/{email}/orders", response_model=list[OrderResponse])
async def customer_orders(email: str):
    return get_orders_by_customer_email(email)


# ---------------------------------------------------------------------------
# Mobile Money Router
# ---------------------------------------------------------------------------
mobile_money_router = APIRouter(prefix="/payments/mobile-money", tags=["payments"])


@mobile_money_router.post("", status_code=201, response_model=MobileMoneyPaymentResponse)
async def start_mobile_money_payment(body: StartMobileMoneyRequest):
    return start_mobile_money(body.session, phone=body.phone).to_dict()


@mobile_money_router.get("/{payment_id}", response_model=MobileMoneyPaymentResponse)
async def mobile_money_payment(payment_id: str):
    return get_mobile_money_payment(payment_id).to_dict()


@mobile_money_router.post("/{payment_id}/phone", response_model=MobileMoneyPaymentResponse)
async def request_mobile_money_pin(payment_id: str, body: MobileMoneyPhoneRequest):
    current_domain.process(RequestMobileMoneyPin(payment_id=payment_id, phone=body.phone), asynchronous=False)
    return get_mobile_money_payment(payment_id).to_dict()


@mobile_money_router.post("/{payment_id}/pin", response_model=MobileMoneyPaymentResponse)
async def submit_mobile_money_pin(payment_id: str, body: MobileMoneyPinRequest):
    current_domain.process(SubmitMobileMoneyPin(payment_id=payment_id, pin=body.pin), asynchronous=False)
    return get_mobile_money_payment(payment_id).to_dict()


@mobile_money_router.post("/{payment_id}/cancel", response_model=MobileMoneyPaymentResponse)
async def cancel_mobile_money_payment(payment_id: str):
    current_domain.process(CancelMobileMoneyPayment(payment_id=payment_id), asynchronous=False)
    return get_mobile_money_payment(payment_id).to_dict()


routers = [cart_router, checkout_router, order_router, mobile_money_router]
