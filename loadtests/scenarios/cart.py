"""Cart load test scenarios.

A browsing shopper who mints a session, adds products, changes a
quantity, removes a line and leaves the cart behind.
"""

from locust import HttpUser, SequentialTaskSet, between, task

from loadtests.data_generators import add_to_cart_data
from loadtests.helpers.response import extract_error_detail
from loadtests.helpers.state import CartState


class CartBrowsingJourney(SequentialTaskSet):
    """Session -> Add x3 -> View -> Totals -> Update Quantity -> Remove -> leave."""

    def on_start(self):
        self.state = CartState()

    @task
    def create_session(self):
        with self.client.post("/cart/session", catch_response=True, name="POST /cart/session") as resp:
            if resp.status_code == 201:
                self.state.session = resp.json()["sessionId"]
            else:
                resp.failure(f"Create session failed: {resp.status_code}: {extract_error_detail(resp)}")
                self.interrupt()

    def _add(self, label):
        with self.client.post(
            "/cart",
            json=add_to_cart_data(self.state.session),
            catch_response=True,
            name="POST /cart",
        ) as resp:
            if resp.status_code == 200:
                lines = resp.json()
                self.state.line_ids = [line["id"] for line in lines]
                self.state.line_count = len(lines)
            else:
                resp.failure(f"{label} failed: {resp.status_code}: {extract_error_detail(resp)}")

    @task
    def add_item_1(self):
        self._add("Add item 1")

    @task
    def add_item_2(self):
        self._add("Add item 2")

    @task
    def add_item_3(self):
        self._add("Add item 3")

    @task
    def view_cart(self):
        with self.client.get(
            f"/cart/{self.state.session}",
            catch_response=True,
            name="GET /cart/{session}",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"View cart failed: {resp.status_code}: {extract_error_detail(resp)}")

    @task
    def view_totals(self):
        with self.client.get(
            f"/cart/{self.state.session}/totals",
            catch_response=True,
            name="GET /cart/{session}/totals",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Cart totals failed: {resp.status_code}: {extract_error_detail(resp)}")

    @task
    def update_quantity(self):
        if not self.state.line_ids:
            return
        with self.client.put(
            f"/cart/{self.state.line_ids[0]}",
            json={"quantity": 4},
            catch_response=True,
            name="PUT /cart/{lineId}",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Update quantity failed: {resp.status_code}: {extract_error_detail(resp)}")

    @task
    def remove_line(self):
        if not self.state.line_ids:
            return
        with self.client.delete(
            f"/cart/{self.state.line_ids[-1]}",
            catch_response=True,
            name="DELETE /cart/{lineId}",
        ) as resp:
            if resp.status_code == 200:
                self.state.line_count = len(resp.json())
            else:
                resp.failure(f"Remove line failed: {resp.status_code}: {extract_error_detail(resp)}")

    @task
    def done(self):
        self.interrupt()


class CartUser(HttpUser):
    """Standalone user running only cart browsing."""

    wait_time = between(0.5, 2.0)
    tasks = [CartBrowsingJourney]
