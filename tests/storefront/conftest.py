import pytest
from protean.integrations.pytest import DomainFixture
from storefront.payment.simulators import reset_simulators
from storefront.settings import Settings, reset_settings, set_settings

# Simulated mobile money delays resolve immediately under test
TEST_SETTINGS = Settings(mobile_money_prompt_delay=0, mobile_money_settlement_delay=0)


@pytest.fixture(scope="session")
def storefront_bed():
    from storefront.domain import storefront
    from storefront.utils.db import drop_db, setup_db

    bed = DomainFixture(storefront)
    bed.setup()
    setup_db(storefront)
    yield bed
    drop_db(storefront)
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(storefront_bed):
    set_settings(TEST_SETTINGS)
    with storefront_bed.domain_context():
        yield

        from protean import current_domain

        for _, provider in current_domain.providers.items():
            provider._data_reset()
        current_domain.event_store.store._data_reset()

    reset_simulators()
    reset_settings()


@pytest.fixture()
def make_product():
    """Factory adding a catalogue product and returning it."""
    from protean import current_domain
    from storefront.catalogue.product import Product

    def _make(price=100.0, name="Nimbus Mini", slug=None, stock=10, **kwargs):
        product = Product(
            name=name,
            slug=slug or name.lower().replace(" ", "-"),
            price=price,
            stock=stock,
            **kwargs,
        )
        current_domain.repository_for(Product).add(product)
        return product

    return _make


@pytest.fixture()
def customer_info():
    return {
        "name": "Wanjiru Kamau",
        "email": "wanjiru@example.com",
        "address": "12 Kenyatta Avenue",
        "city": "Nairobi",
        "state": "Nairobi",
        "zipCode": "00100",
        "phone": "254712345678",
    }
