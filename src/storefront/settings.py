"""Runtime settings for the storefront.

Pricing, payment and cart policies are plain environment variables read once
into an immutable ``Settings`` object. Tests (and one-off scripts) swap the
active settings with ``set_settings()`` / ``reset_settings()``, the same way
payment simulators are swapped.

Recognized variables:
    STOREFRONT_TAX_RATE             Fraction applied to the settlement subtotal (0.16)
    STOREFRONT_SHIPPING_FLAT        Flat shipping in the settlement currency (0)
    STOREFRONT_FX_RATE              Base-to-settlement currency multiplier (130)
    STOREFRONT_BASE_CURRENCY        Catalogue currency (USD)
    STOREFRONT_SETTLEMENT_CURRENCY  Display/payment currency (KES)
    BANK_TRANSFER_OPTIMISTIC        Mark bank transfers completed immediately (true)
    MOBILE_MONEY_PHONE_PATTERN      Accepted payer phone numbers (^254[17]\\d{8}$)
    MOBILE_MONEY_PROMPT_DELAY       Seconds before the PIN prompt appears (2)
    MOBILE_MONEY_SETTLEMENT_DELAY   Seconds before a PIN is settled (3)
    CART_TTL_HOURS                  Idle hours before cart lines are purged (unset)
"""

import os
from dataclasses import dataclass
from decimal import Decimal

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    tax_rate: Decimal = Decimal("0.16")
    shipping_flat: Decimal = Decimal("0")
    fx_rate: Decimal = Decimal("130")
    base_currency: str = "USD"
    settlement_currency: str = "KES"
    bank_transfer_optimistic: bool = True
    mobile_money_phone_pattern: str = r"^254[17]\d{8}$"
    mobile_money_prompt_delay: float = 2.0
    mobile_money_settlement_delay: float = 3.0
    cart_ttl_hours: int | None = None

    @classmethod
    def from_env(cls) -> "Settings":
        ttl = os.getenv("CART_TTL_HOURS")
        return cls(
            tax_rate=Decimal(os.getenv("STOREFRONT_TAX_RATE", "0.16")),
            shipping_flat=Decimal(os.getenv("STOREFRONT_SHIPPING_FLAT", "0")),
            fx_rate=Decimal(os.getenv("STOREFRONT_FX_RATE", "130")),
            base_currency=os.getenv("STOREFRONT_BASE_CURRENCY", "USD"),
            settlement_currency=os.getenv("STOREFRONT_SETTLEMENT_CURRENCY", "KES"),
            bank_transfer_optimistic=os.getenv("BANK_TRANSFER_OPTIMISTIC", "true").lower() in _TRUTHY,
            mobile_money_phone_pattern=os.getenv("MOBILE_MONEY_PHONE_PATTERN", r"^254[17]\d{8}$"),
            mobile_money_prompt_delay=float(os.getenv("MOBILE_MONEY_PROMPT_DELAY", "2")),
            mobile_money_settlement_delay=float(os.getenv("MOBILE_MONEY_SETTLEMENT_DELAY", "3")),
            cart_ttl_hours=int(ttl) if ttl else None,
        )


_current_settings: Settings | None = None


def get_settings() -> Settings:
    """Return the active settings, loading them from the environment on first use."""
    global _current_settings
    if _current_settings is None:
        _current_settings = Settings.from_env()
    return _current_settings


def set_settings(settings: Settings) -> None:
    """Override the active settings (useful for tests)."""
    global _current_settings
    _current_settings = settings


def reset_settings() -> None:
    """Drop overrides; the next ``get_settings()`` re-reads the environment."""
    global _current_settings
    _current_settings = None
