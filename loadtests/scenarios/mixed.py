"""Mixed storefront workload scenario.

Combines browsing and checkout journeys with weights that model a
storefront where most carts are abandoned. This is the recommended
scenario for a load baseline.
"""

from locust import HttpUser, between

from loadtests.scenarios.cart import CartBrowsingJourney
from loadtests.scenarios.checkout import CheckoutJourney, DeclinedCardJourney, MobileMoneyJourney


class MixedWorkloadUser(HttpUser):
    """Realistic mixed workload.

    Browsing (60%): carts filled, edited and left behind.
    Checkout (40%): card/bank/PayPal orders, mobile money prompts and the
    occasional declined card.

    Concurrent adds to popular products exercise the per-line lock; the
    mobile money journeys keep prompts open across several requests.
    """

    wait_time = between(0.5, 3.0)
    tasks = {
        CartBrowsingJourney: 60,
        CheckoutJourney: 24,
        MobileMoneyJourney: 12,
        DeclinedCardJourney: 4,
    }
