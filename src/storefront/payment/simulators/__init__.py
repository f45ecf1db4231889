"""Payment simulator registry.

Provides get_simulator() / set_simulator() to swap the implementation used
for a payment method:
- the built-in simulators by default
- stubs that decline or misbehave, for tests
"""

from storefront.payment.methods import PaymentMethod, normalize_method
from storefront.payment.simulators.bank_transfer import BankTransferSimulator
from storefront.payment.simulators.card import CardSimulator
from storefront.payment.simulators.external_wallet import ExternalWalletSimulator, UnpaidSimulator
from storefront.payment.simulators.mobile_money import MobileMoneySimulator
from storefront.payment.simulators.port import PaymentOutcome, PaymentSimulator

_overrides: dict[PaymentMethod, PaymentSimulator] = {}


def _default_simulator(method: PaymentMethod) -> PaymentSimulator:
    return {
        PaymentMethod.CARD: CardSimulator,
        PaymentMethod.MOBILE_MONEY: MobileMoneySimulator,
        PaymentMethod.BANK: BankTransferSimulator,
        PaymentMethod.EXTERNAL_WALLET: ExternalWalletSimulator,
        PaymentMethod.UNKNOWN: UnpaidSimulator,
    }[method]()


def get_simulator(method) -> PaymentSimulator:
    """Return the simulator for a method name or ``PaymentMethod``."""
    method = normalize_method(method)
    return _overrides.get(method) or _default_simulator(method)


def set_simulator(method, simulator: PaymentSimulator) -> None:
    """Override the simulator for one method (useful for tests)."""
    _overrides[normalize_method(method)] = simulator


def reset_simulators() -> None:
    """Reset every method to its default simulator."""
    _overrides.clear()


__all__ = [
    "PaymentOutcome",
    "PaymentSimulator",
    "get_simulator",
    "reset_simulators",
    "set_simulator",
]
