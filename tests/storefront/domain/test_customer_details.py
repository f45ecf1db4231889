"""Domain tests for CustomerDetails and the Customer aggregate."""

import pytest
from protean.exceptions import ValidationError
from storefront.customer.customer import Customer, CustomerDetails, customer_id_for, normalize_email


def _details(customer_info, **overrides):
    return CustomerDetails.from_checkout({**customer_info, **overrides})


class TestEmailIdentity:
    def test_normalizes_case_and_whitespace(self):
        assert normalize_email("  Wanjiru@Example.COM ") == "wanjiru@example.com"

    def test_customer_id_ignores_email_case(self):
        assert customer_id_for("Wanjiru@Example.com") == customer_id_for("wanjiru@example.com")

    def test_different_emails_yield_different_ids(self):
        assert customer_id_for("a@example.com") != customer_id_for("b@example.com")


class TestCustomerDetails:
    def test_accepts_camel_case_zip(self, customer_info):
        details = _details(customer_info)
        assert details.zip_code == "00100"

    def test_accepts_snake_case_zip(self, customer_info):
        info = {k: v for k, v in customer_info.items() if k != "zipCode"}
        details = _details(info, zip_code="00200")
        assert details.zip_code == "00200"

    def test_email_is_normalized(self, customer_info):
        details = _details(customer_info, email="Wanjiru@Example.com")
        assert details.email == "wanjiru@example.com"

    def test_shipping_address_is_flattened(self, customer_info):
        details = _details(customer_info)
        assert details.shipping_address() == "12 Kenyatta Avenue, Nairobi, Nairobi 00100"

    def test_phone_is_optional(self, customer_info):
        details = _details(customer_info, phone="")
        assert details.phone is None

    @pytest.mark.parametrize(
        "field, value",
        [
            ("name", "W"),
            ("address", "12"),
            ("city", "N"),
            ("state", "N"),
            ("zipCode", "001"),
        ],
    )
    def test_rejects_short_fields(self, customer_info, field, value):
        with pytest.raises(ValidationError):
            _details(customer_info, **{field: value})

    @pytest.mark.parametrize("email", ["not-an-email", "user@", "user@localhost", "@example.com"])
    def test_rejects_malformed_email(self, customer_info, email):
        with pytest.raises(ValidationError) as exc:
            _details(customer_info, email=email)
        assert "email" in exc.value.messages

    @pytest.mark.parametrize("field", ["name", "email", "address", "city", "state", "zipCode"])
    def test_rejects_missing_required_field(self, customer_info, field):
        info = {k: v for k, v in customer_info.items() if k != field}
        with pytest.raises(ValidationError):
            CustomerDetails.from_checkout(info)


class TestCustomer:
    def test_register_derives_id_from_email(self, customer_info):
        customer = Customer.register(_details(customer_info))
        assert str(customer.id) == customer_id_for("wanjiru@example.com")
        assert customer.name == "Wanjiru Kamau"

    def test_update_profile_overwrites_shipping_details(self, customer_info):
        customer = Customer.register(_details(customer_info))
        customer.update_profile(_details(customer_info, name="Wanjiru K.", city="Mombasa"))
        assert customer.name == "Wanjiru K."
        assert customer.city == "Mombasa"
        assert customer.email == "wanjiru@example.com"
