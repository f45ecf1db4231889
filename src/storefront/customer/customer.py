"""Customer aggregate: buyers recognized by email, without an account.

Email is the natural key: the customer id is derived from the normalized
email, so one email maps to exactly one customer record. Every checkout
overwrites the stored profile with the latest shipping details; older
addresses are not kept.
"""

from uuid import NAMESPACE_URL, uuid5

from protean import invariant
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import DateTime, String
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.utils.clock import utcnow

_PROFILE_FIELDS = ("name", "email", "address", "city", "state", "zip_code", "phone")


def normalize_email(email) -> str:
    return str(email or "").strip().lower()


def customer_id_for(email) -> str:
    return str(uuid5(NAMESPACE_URL, f"storefront:customer:{normalize_email(email)}"))


@storefront.value_object
class CustomerDetails:
    """Contact and shipping details entered at checkout."""

    name = String(required=True, min_length=2, max_length=255)
    email = String(required=True, max_length=254)
    address = String(required=True, min_length=5, max_length=255)
    city = String(required=True, min_length=2, max_length=100)
    state = String(required=True, min_length=2, max_length=100)
    zip_code = String(required=True, min_length=5, max_length=20)
    phone = String(max_length=30)

    @invariant.post
    def email_must_look_like_an_address(self):
        local_part, _, domain_part = (self.email or "").partition("@")
        if not local_part or "." not in domain_part or " " in self.email or domain_part.startswith("."):
            raise ValidationError({"email": ["Invalid email address"]})

    @classmethod
    def from_checkout(cls, info: dict) -> "CustomerDetails":
        """Build from API input; accepts ``zipCode`` as well as ``zip_code``."""
        data = dict(info or {})
        if "zipCode" in data and "zip_code" not in data:
            data["zip_code"] = data.pop("zipCode")
        values = {key: data.get(key) for key in _PROFILE_FIELDS if data.get(key) not in (None, "")}
        if "email" in values:
            values["email"] = normalize_email(values["email"])
        return cls(**values)

    def shipping_address(self) -> str:
        return f"{self.address}, {self.city}, {self.state} {self.zip_code}"

    def to_dict(self) -> dict:
        return {key: getattr(self, key) for key in _PROFILE_FIELDS}


@storefront.aggregate
class Customer:
    email = String(required=True, max_length=254)
    name = String(required=True, max_length=255)
    address = String(max_length=255)
    city = String(max_length=100)
    state = String(max_length=100)
    zip_code = String(max_length=20)
    phone = String(max_length=30)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def register(cls, details: CustomerDetails):
        now = utcnow()
        return cls(
            id=customer_id_for(details.email),
            created_at=now,
            updated_at=now,
            **details.to_dict(),
        )

    def update_profile(self, details: CustomerDetails):
        """Last write wins: the latest checkout's details become current."""
        for key in ("name", "address", "city", "state", "zip_code", "phone"):
            setattr(self, key, getattr(details, key))
        self.updated_at = utcnow()

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            **{key: getattr(self, key) for key in _PROFILE_FIELDS},
            "created_at": self.created_at,
        }


def find_customer_by_email(email) -> Customer | None:
    try:
        return current_domain.repository_for(Customer).get(customer_id_for(email))
    except ObjectNotFoundError:
        return None


def upsert_customer(details: CustomerDetails) -> Customer:
    """Create or refresh the customer for ``details.email`` in the caller's unit of work."""
    customer = find_customer_by_email(details.email)
    if customer is None:
        customer = Customer.register(details)
    else:
        customer.update_profile(details)
    current_domain.repository_for(Customer).add(customer)
    return customer
