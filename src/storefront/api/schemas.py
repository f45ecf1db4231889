"""Pydantic request/response schemas for the Storefront API.

These are external contracts (anti-corruption layer), kept separate from
internal Protean commands. Fields are exchanged in camelCase; snake_case
names are accepted on input too.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class ProductSnapshot(ApiModel):
    id: str
    name: str
    slug: str | None = None
    price: float
    image_url: str | None = None
    stock: int | None = None


class CustomerInfo(ApiModel):
    name: str
    email: str
    address: str
    city: str
    state: str
    zip_code: str
    phone: str | None = None


class PaymentInfo(ApiModel):
    method: str
    details: dict = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Cart
# ---------------------------------------------------------------------------
class AddToCartRequest(ApiModel):
    session: str = Field(min_length=1, max_length=64)
    product_id: str
    quantity: int = Field(ge=1, default=1)

    model_config = ConfigDict(
        json_schema_extra={"examples": [{"session": "V1StGXR8_Z5jdHi6", "productId": "prod-001", "quantity": 1}]},
    )


class UpdateCartQuantityRequest(ApiModel):
    quantity: int = Field(ge=1)


class CartLineResponse(ApiModel):
    id: str
    session_id: str
    product_id: str
    quantity: int
    created_at: datetime | None = None
    product: ProductSnapshot | None = None


class SessionResponse(ApiModel):
    session_id: str


class CartTotalsResponse(ApiModel):
    base_subtotal: float
    subtotal: float
    shipping: float
    tax: float
    total: float
    base_currency: str
    currency: str


# ---------------------------------------------------------------------------
# Checkout
# ---------------------------------------------------------------------------
class CheckoutRequest(ApiModel):
    session: str = Field(min_length=1, max_length=64)
    customer_info: CustomerInfo
    payment_info: PaymentInfo | None = None
    payment_reference: str | None = None
    total_amount: float | None = None  # Informational; the server recomputes the total
    currency: str | None = None

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "session": "V1StGXR8_Z5jdHi6",
                    "customerInfo": {
                        "name": "Wanjiru Kamau",
                        "email": "wanjiru@example.com",
                        "address": "12 Kenyatta Avenue",
                        "city": "Nairobi",
                        "state": "Nairobi",
                        "zipCode": "00100",
                        "phone": "254712345678",
                    },
                    "paymentInfo": {"method": "bank", "details": {}},
                }
            ]
        },
    )


class CheckoutResponse(ApiModel):
    order_id: str
    status: str
    total: float
    currency: str
    payment_method: str
    payment_status: str
    payment_details: dict
    payment_reference: str | None = None


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------
class OrderItemResponse(ApiModel):
    id: str
    product_id: str
    product_name: str | None = None
    quantity: int
    price: float
    product: ProductSnapshot | None = None


class CustomerResponse(ApiModel):
    id: str
    name: str
    email: str
    address: str | None = None
    city: str | None = None
    state: str | None = None
    zip_code: str | None = None
    phone: str | None = None


class OrderResponse(ApiModel):
    id: str
    customer_id: str
    status: str
    shipping_address: str
    subtotal: float
    shipping: float
    tax: float
    total: float
    currency: str
    payment_method: str
    payment_status: str
    payment_reference: str | None = None
    payment_details: dict
    created_at: datetime | None = None
    customer: CustomerResponse | None = None
    items: list[OrderItemResponse]


# ---------------------------------------------------------------------------
# Mobile money
# ---------------------------------------------------------------------------
class StartMobileMoneyRequest(ApiModel):
    session: str = Field(min_length=1, max_length=64)
    phone: str | None = None


class MobileMoneyPhoneRequest(ApiModel):
    phone: str


class MobileMoneyPinRequest(ApiModel):
    pin: str


class MobileMoneyPaymentResponse(ApiModel):
    id: str
    session_id: str | None = None
    amount: float
    currency: str
    phone: str | None = None
    stage: str
    ready_at: datetime | None = None
    transaction_id: str | None = None
