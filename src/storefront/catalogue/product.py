"""Product: the catalogue as seen from the storefront.

Products are owned by the catalogue; the cart and checkout only read them.
Prices are always read live so the cart reflects the current catalogue
price, and only order items freeze a price.
"""

from protean.exceptions import ObjectNotFoundError
from protean.fields import Boolean, Float, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from storefront.domain import storefront


@storefront.aggregate
class Product:
    name = String(required=True, max_length=255)
    description = Text()
    price = Float(required=True, min_value=0.0)
    compare_at_price = Float(min_value=0.0)
    image_url = String(max_length=500)
    stock = Integer(default=0, min_value=0)
    slug = String(required=True, max_length=255)
    category_id = Identifier()
    featured = Boolean(default=False)

    def snapshot(self) -> dict:
        """Display fields joined onto cart lines and order items."""
        return {
            "id": str(self.id),
            "name": self.name,
            "slug": self.slug,
            "price": self.price,
            "image_url": self.image_url,
            "stock": self.stock,
        }


def get_product(product_id) -> Product:
    try:
        return current_domain.repository_for(Product).get(str(product_id))
    except ObjectNotFoundError as exc:
        raise ObjectNotFoundError(f"Product {product_id} not found") from exc


def products_by_id(product_ids) -> dict[str, Product]:
    """Load several products at once, skipping ids that no longer resolve."""
    repo = current_domain.repository_for(Product)
    found = {}
    for product_id in {str(pid) for pid in product_ids}:
        try:
            found[product_id] = repo.get(product_id)
        except ObjectNotFoundError:
            continue
    return found


# Starter catalogue loaded by ``manage.py seed-catalogue`` for local runs and
# load tests. Ids are fixed so clients can reference the products directly.
SEED_PRODUCTS = [
    {
        "id": "5",
        "name": "Skyline Pro 4K",
        "slug": "skyline-pro-4k",
        "price": 999.99,
        "compare_at_price": 1199.99,
        "stock": 15,
        "featured": True,
        "description": "Foldable camera drone with a 3-axis gimbal and 34 minute flight time.",
    },
    {
        "id": "1",
        "name": "Nimbus Mini",
        "slug": "nimbus-mini",
        "price": 449.0,
        "stock": 40,
        "featured": True,
        "description": "Sub-250g travel drone that needs no registration in most regions.",
    },
    {
        "id": "2",
        "name": "Falcon FPV Racer",
        "slug": "falcon-fpv-racer",
        "price": 629.5,
        "stock": 8,
        "description": "Ready-to-fly FPV racing quad with goggles and controller.",
    },
    {
        "id": "3",
        "name": "Intelligent Flight Battery",
        "slug": "intelligent-flight-battery",
        "price": 89.99,
        "stock": 120,
        "description": "Spare battery compatible with the Skyline series.",
    },
    {
        "id": "4",
        "name": "Propeller Guard Set",
        "slug": "propeller-guard-set",
        "price": 24.5,
        "stock": 200,
        "description": "Quick-release guards for indoor and beginner flights.",
    },
]


def seed_catalogue() -> int:
    """Add the starter products whose slug is not in the catalogue yet."""
    repo = current_domain.repository_for(Product)
    added = 0
    for data in SEED_PRODUCTS:
        if repo._dao.query.filter(slug=data["slug"]).all().items:
            continue
        repo.add(Product(**data))
        added += 1
    return added
