import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from storefront.api.errors import register_error_handlers
from storefront.api.routes import routers


@pytest.fixture()
def client():
    app = FastAPI()
    for router in routers:
        app.include_router(router)
    register_error_handlers(app)
    return TestClient(app)


@pytest.fixture()
def checkout_body(customer_info):
    def _body(session, method="card", details=None, **extra):
        body = {"session": session, "customerInfo": customer_info, **extra}
        if method is not None:
            body["paymentInfo"] = {
                "method": method,
                "details": details if details is not None else {},
            }
        return body

    return _body
