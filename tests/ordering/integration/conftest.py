import pytest
from fastapi import FastAPI, Request
from fastapi.testclient import TestClient
from ordering.api import admin_router, delivery_router, order_router, restaurant_router
from ordering.api.errors import register_error_handlers
from realtime.ws import router as realtime_router


@pytest.fixture()
def app(_ordering_domain):
    app = FastAPI()

    @app.middleware("http")
    async def domain_context_middleware(request: Request, call_next):
        with _ordering_domain.domain_context():
            return await call_next(request)

    app.include_router(order_router)
    app.include_router(restaurant_router)
    app.include_router(delivery_router)
    app.include_router(admin_router)
    app.include_router(realtime_router)
    register_error_handlers(app)
    return app


@pytest.fixture()
def client(app):
    return TestClient(app)


@pytest.fixture()
def order_body(address, branch, pizza_and_drink):
    return {
        "address_id": str(address.id),
        "branch_id": str(branch.id),
        "payment_method": "CARD",
        "products": pizza_and_drink,
    }


@pytest.fixture()
def placed(client, customer, order_body):
    """Place an order over HTTP and return its id."""

    def _placed():
        response = client.post("/orders", json=order_body, headers={"X-User-Id": str(customer.id)})
        assert response.status_code == 201
        return response.json()["id"]

    return _placed
