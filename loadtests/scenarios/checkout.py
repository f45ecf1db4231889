"""Checkout load test scenarios.

Cart-to-order journeys for the single step payment methods, a declined
card that must leave the cart intact, and the mobile money prompt flow.
"""

import random
import time

from locust import HttpUser, SequentialTaskSet, between, task

from loadtests.data_generators import add_to_cart_data, card_details, checkout_data, mobile_money_phone, pin
from loadtests.helpers.response import extract_error_detail
from loadtests.helpers.state import CheckoutState, MobileMoneyState


def _open_cart(taskset, state):
    with taskset.client.post("/cart/session", catch_response=True, name="POST /cart/session") as resp:
        if resp.status_code != 201:
            resp.failure(f"Create session failed: {resp.status_code}: {extract_error_detail(resp)}")
            taskset.interrupt()
            return
        state.session = resp.json()["sessionId"]

    for _ in range(random.randint(1, 3)):
        with taskset.client.post(
            "/cart",
            json=add_to_cart_data(state.session),
            catch_response=True,
            name="POST /cart",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Add to cart failed: {resp.status_code}: {extract_error_detail(resp)}")
                taskset.interrupt()


class CheckoutJourney(SequentialTaskSet):
    """Session -> Add items -> Totals -> Checkout -> Order detail -> History.

    The payment method is picked per journey among card, bank and PayPal.
    """

    def on_start(self):
        self.state = CheckoutState()

    @task
    def fill_cart(self):
        _open_cart(self, self.state)

    @task
    def totals(self):
        with self.client.get(
            f"/cart/{self.state.session}/totals",
            catch_response=True,
            name="GET /cart/{session}/totals",
        ) as resp:
            if resp.status_code == 200:
                self.state.total = resp.json()["total"]
            else:
                resp.failure(f"Cart totals failed: {resp.status_code}: {extract_error_detail(resp)}")

    @task
    def checkout(self):
        method = random.choice(["card", "bank", "paypal"])
        payload = checkout_data(self.state.session, method, totalAmount=self.state.total, currency="KES")
        with self.client.post("/checkout", json=payload, catch_response=True, name="POST /checkout") as resp:
            if resp.status_code == 201:
                body = resp.json()
                self.state.order_id = body["orderId"]
                self.state.payment_reference = body.get("paymentReference")
                self.state.email = payload["customerInfo"]["email"]
            else:
                resp.failure(f"Checkout failed: {resp.status_code}: {extract_error_detail(resp)}")
                self.interrupt()

    @task
    def order_detail(self):
        with self.client.get(
            f"/orders/{self.state.order_id}",
            catch_response=True,
            name="GET /orders/{id}",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Order detail failed: {resp.status_code}: {extract_error_detail(resp)}")

    @task
    def order_history(self):
        with self.client.get(
            f"/customers/{self.state.email}/orders",
            catch_response=True,
            name="GET /customers/{email}/orders",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Order history failed: {resp.status_code}: {extract_error_detail(resp)}")

    @task
    def done(self):
        self.interrupt()


class DeclinedCardJourney(SequentialTaskSet):
    """Session -> Add items -> Checkout with a bad card (402) -> Cart still full."""

    def on_start(self):
        self.state = CheckoutState()

    @task
    def fill_cart(self):
        _open_cart(self, self.state)

    @task
    def declined_checkout(self):
        payload = checkout_data(self.state.session, "card")
        payload["paymentInfo"]["details"] = card_details(valid=False)
        with self.client.post(
            "/checkout",
            json=payload,
            catch_response=True,
            name="POST /checkout [declined]",
        ) as resp:
            if resp.status_code == 402:
                resp.success()
            else:
                resp.failure(f"Expected 402, got {resp.status_code}: {extract_error_detail(resp)}")

    @task
    def cart_intact(self):
        with self.client.get(
            f"/cart/{self.state.session}",
            catch_response=True,
            name="GET /cart/{session}",
        ) as resp:
            if resp.status_code != 200 or not resp.json():
                resp.failure("Cart was emptied by a declined payment")

    @task
    def done(self):
        self.interrupt()


class MobileMoneyJourney(SequentialTaskSet):
    """Session -> Add items -> Prompt -> Phone -> poll -> PIN -> poll -> Checkout."""

    def on_start(self):
        self.state = MobileMoneyState()

    def _poll_until(self, stage, timeout=10.0):
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            with self.client.get(
                f"/payments/mobile-money/{self.state.payment_id}",
                catch_response=True,
                name="GET /payments/mobile-money/{id}",
            ) as resp:
                if resp.status_code != 200:
                    resp.failure(f"Poll failed: {resp.status_code}: {extract_error_detail(resp)}")
                    self.interrupt()
                self.state.stage = resp.json()["stage"]
            if self.state.stage == stage:
                return
            time.sleep(0.5)
        self.interrupt()

    @task
    def fill_cart(self):
        _open_cart(self, self.state)

    @task
    def start_prompt(self):
        with self.client.post(
            "/payments/mobile-money",
            json={"session": self.state.session},
            catch_response=True,
            name="POST /payments/mobile-money",
        ) as resp:
            if resp.status_code == 201:
                self.state.payment_id = resp.json()["id"]
            else:
                resp.failure(f"Start prompt failed: {resp.status_code}: {extract_error_detail(resp)}")
                self.interrupt()

    @task
    def enter_phone(self):
        with self.client.post(
            f"/payments/mobile-money/{self.state.payment_id}/phone",
            json={"phone": mobile_money_phone()},
            catch_response=True,
            name="POST /payments/mobile-money/{id}/phone",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Phone step failed: {resp.status_code}: {extract_error_detail(resp)}")
                self.interrupt()
        self._poll_until("PIN_ENTRY")

    @task
    def enter_pin(self):
        with self.client.post(
            f"/payments/mobile-money/{self.state.payment_id}/pin",
            json={"pin": pin()},
            catch_response=True,
            name="POST /payments/mobile-money/{id}/pin",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"PIN step failed: {resp.status_code}: {extract_error_detail(resp)}")
                self.interrupt()
        self._poll_until("COMPLETE")

    @task
    def checkout(self):
        payload = checkout_data(self.state.session, "mobile-money")
        payload["paymentInfo"]["details"] = {"promptId": self.state.payment_id}
        with self.client.post(
            "/checkout",
            json=payload,
            catch_response=True,
            name="POST /checkout [mobile-money]",
        ) as resp:
            if resp.status_code == 201:
                self.state.order_id = resp.json()["orderId"]
            else:
                resp.failure(f"Checkout failed: {resp.status_code}: {extract_error_detail(resp)}")

    @task
    def done(self):
        self.interrupt()


class CheckoutUser(HttpUser):
    """Standalone user running only checkout journeys."""

    wait_time = between(1.0, 3.0)
    tasks = {CheckoutJourney: 6, DeclinedCardJourney: 1, MobileMoneyJourney: 3}
