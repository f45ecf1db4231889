"""Pricing Engine: totals for a resolved cart.

Pure functions over ``Decimal`` amounts; nothing here touches the database.
Catalogue prices are in the base currency. Everything the buyer pays
(subtotal, shipping, tax, total) is expressed in the settlement currency,
obtained with a fixed conversion rate, and rounded half-up to cents.

    subtotal (base)        = Σ unit price × quantity
    subtotal (settlement)  = round(subtotal (base) × fx rate, 2)
    shipping               = flat shipping
    tax                    = round(subtotal (settlement) × tax rate, 2)
    total                  = subtotal (settlement) + shipping + tax
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from storefront.settings import Settings, get_settings

CENTS = Decimal("0.01")


def money(value) -> Decimal:
    """Round an amount half-up to two decimal places."""
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class PricingPolicy:
    tax_rate: Decimal
    shipping_flat: Decimal
    fx_rate: Decimal
    base_currency: str = "USD"
    settlement_currency: str = "KES"

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "PricingPolicy":
        settings = settings or get_settings()
        return cls(
            tax_rate=settings.tax_rate,
            shipping_flat=settings.shipping_flat,
            fx_rate=settings.fx_rate,
            base_currency=settings.base_currency,
            settlement_currency=settings.settlement_currency,
        )


@dataclass(frozen=True)
class CartTotals:
    """Totals computed once per checkout and reused for payment and the order."""

    base_subtotal: Decimal
    subtotal: Decimal
    shipping: Decimal
    tax: Decimal
    total: Decimal
    base_currency: str
    currency: str

    def as_dict(self) -> dict:
        return {
            "base_subtotal": float(self.base_subtotal),
            "subtotal": float(self.subtotal),
            "shipping": float(self.shipping),
            "tax": float(self.tax),
            "total": float(self.total),
            "base_currency": self.base_currency,
            "currency": self.currency,
        }


def subtotal(lines) -> Decimal:
    """Base-currency subtotal of lines exposing ``unit_price`` and ``quantity``."""
    return money(sum((Decimal(str(line.unit_price)) * line.quantity for line in lines), Decimal("0")))


def convert(amount, policy: PricingPolicy) -> Decimal:
    """Convert a base-currency amount into the settlement currency."""
    return money(Decimal(str(amount)) * policy.fx_rate)


def tax_on(amount, policy: PricingPolicy) -> Decimal:
    return money(Decimal(str(amount)) * policy.tax_rate)


def price_cart(lines, policy: PricingPolicy | None = None) -> CartTotals:
    policy = policy or PricingPolicy.from_settings()

    base_subtotal = subtotal(lines)
    settlement_subtotal = convert(base_subtotal, policy)
    shipping = money(policy.shipping_flat)
    tax = tax_on(settlement_subtotal, policy)

    return CartTotals(
        base_subtotal=base_subtotal,
        subtotal=settlement_subtotal,
        shipping=shipping,
        tax=tax,
        total=settlement_subtotal + shipping + tax,
        base_currency=policy.base_currency,
        currency=policy.settlement_currency,
    )
