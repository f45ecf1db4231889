"""Integration tests for the mobile money prompt endpoints via TestClient."""

import pytest
from storefront.cart.store import add_item

PHONE = "254712345678"


@pytest.fixture()
def drone_cart(make_product):
    product = make_product(price=999.99, name="Skyline Pro 4K")
    add_item("sess-mm", product.id, 1)
    return product


def _start(client, session="sess-mm"):
    response = client.post("/payments/mobile-money", json={"session": session})
    assert response.status_code == 201
    return response.json()


class TestMobileMoneyEndpoints:
    def test_start_prompt(self, client, drone_cart):
        payment = _start(client)

        assert payment["stage"] == "PROMPT"
        assert payment["amount"] == 150798.49
        assert payment["currency"] == "KES"
        assert payment["transactionId"] is None

    def test_start_for_empty_cart(self, client):
        response = client.post("/payments/mobile-money", json={"session": "sess-empty"})
        assert response.status_code == 409

    def test_full_prompt_flow(self, client, drone_cart):
        payment_id = _start(client)["id"]

        after_phone = client.post(f"/payments/mobile-money/{payment_id}/phone", json={"phone": PHONE})
        assert after_phone.status_code == 200
        assert after_phone.json()["stage"] == "PIN_ENTRY"

        after_pin = client.post(f"/payments/mobile-money/{payment_id}/pin", json={"pin": "1234"})
        assert after_pin.status_code == 200
        assert after_pin.json()["stage"] == "COMPLETE"
        assert after_pin.json()["transactionId"].startswith("MM-")

        polled = client.get(f"/payments/mobile-money/{payment_id}")
        assert polled.json()["stage"] == "COMPLETE"

    def test_invalid_phone_keeps_prompt(self, client, drone_cart):
        payment_id = _start(client)["id"]

        response = client.post(f"/payments/mobile-money/{payment_id}/phone", json={"phone": "12345"})

        assert response.status_code == 400
        assert "phone" in response.json()["details"]
        assert client.get(f"/payments/mobile-money/{payment_id}").json()["stage"] == "PROMPT"

    def test_bad_pin(self, client, drone_cart):
        payment_id = _start(client)["id"]
        client.post(f"/payments/mobile-money/{payment_id}/phone", json={"phone": PHONE})

        response = client.post(f"/payments/mobile-money/{payment_id}/pin", json={"pin": "12"})

        assert response.status_code == 400
        assert client.get(f"/payments/mobile-money/{payment_id}").json()["stage"] == "PIN_ENTRY"

    def test_pin_out_of_order_is_conflict(self, client, drone_cart):
        payment_id = _start(client)["id"]

        response = client.post(f"/payments/mobile-money/{payment_id}/pin", json={"pin": "1234"})

        assert response.status_code == 409
        assert response.json()["error"] == "invalid_operation"

    def test_cancel(self, client, drone_cart):
        payment_id = _start(client)["id"]

        response = client.post(f"/payments/mobile-money/{payment_id}/cancel")

        assert response.status_code == 200
        assert response.json()["stage"] == "CANCELLED"

    def test_unknown_prompt(self, client):
        response = client.get("/payments/mobile-money/no-such-prompt")
        assert response.status_code == 404

    def test_checkout_with_completed_prompt(self, client, drone_cart, checkout_body):
        payment_id = _start(client)["id"]
        client.post(f"/payments/mobile-money/{payment_id}/phone", json={"phone": PHONE})
        transaction_id = client.post(f"/payments/mobile-money/{payment_id}/pin", json={"pin": "1234"}).json()[
            "transactionId"
        ]

        response = client.post("/checkout", json=checkout_body("sess-mm", "mobile-money", {"promptId": payment_id}))

        assert response.status_code == 201
        assert response.json()["status"] == "processing"
        assert response.json()["paymentReference"] == transaction_id

    def test_checkout_with_abandoned_prompt_fails(self, client, drone_cart, checkout_body):
        payment_id = _start(client)["id"]
        client.post(f"/payments/mobile-money/{payment_id}/phone", json={"phone": "12345"})

        response = client.post("/checkout", json=checkout_body("sess-mm", "mobile-money", {"promptId": payment_id}))

        assert response.status_code == 402
        assert len(client.get("/cart/sess-mm").json()) == 1
