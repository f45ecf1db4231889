"""Faker-based data generators for Locust load test scenarios.

Each generator produces payloads that pass the storefront's validation
rules (customer detail lengths, email format, card and phone formats) and
use the camelCase field names of the API's Pydantic request schemas.
"""

import random
import uuid

from faker import Faker

fake = Faker()

# Fixed ids of the catalogue loaded by ``manage.py seed-catalogue``
SEED_PRODUCT_IDS = ["1", "2", "3", "4", "5"]


# ---------- Cart ----------


def product_id() -> str:
    return random.choice(SEED_PRODUCT_IDS)


def add_to_cart_data(session: str, quantity: int | None = None) -> dict:
    """Generate an AddToCartRequest payload."""
    return {
        "session": session,
        "productId": product_id(),
        "quantity": quantity or random.randint(1, 3),
    }


# ---------- Customers ----------


def valid_email() -> str:
    """Unique per call so each journey creates its own customer."""
    local = fake.user_name()[:20]
    return f"{local}.{uuid.uuid4().hex[:6]}@{fake.free_email_domain()}"


def mobile_money_phone() -> str:
    """Phone numbers matching ^254[17]\\d{8}$."""
    return f"254{random.choice('17')}{random.randint(0, 99_999_999):08d}"


def customer_info(email: str | None = None) -> dict:
    """Generate a CustomerInfo payload (min lengths: name 2, address 5, zip 5)."""
    return {
        "name": fake.name()[:255],
        "email": email or valid_email(),
        "address": fake.street_address()[:255],
        "city": fake.city()[:100],
        "state": fake.state()[:100],
        "zipCode": fake.zipcode(),
        "phone": mobile_money_phone(),
    }


# ---------- Payments ----------


def card_details(valid: bool = True) -> dict:
    month = random.randint(1, 12)
    year = random.randint(27, 35)
    return {
        "cardNumber": fake.credit_card_number(card_type="visa16"),
        "expiryDate": f"{month:02d}/{year}",
        "cvv": f"{random.randint(100, 999)}" if valid else "1",
    }


def payment_info(method: str) -> dict:
    details = {}
    if method == "card":
        details = card_details()
    elif method == "mobile-money":
        details = {"phone": mobile_money_phone()}
    return {"method": method, "details": details}


def checkout_data(session: str, method: str = "card", email: str | None = None, **extra) -> dict:
    """Generate a CheckoutRequest payload."""
    return {
        "session": session,
        "customerInfo": customer_info(email),
        "paymentInfo": payment_info(method),
        **extra,
    }


def pin() -> str:
    return f"{random.randint(0, 9999):04d}"
