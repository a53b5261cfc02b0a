import pytest
from dining.api import (
    address_router,
    cart_router,
    order_router,
    register_exception_handlers,
    reservation_router,
    table_router,
    time_slot_router,
)
from fastapi import FastAPI
from fastapi.testclient import TestClient


@pytest.fixture()
def client():
    app = FastAPI()
    for router in (address_router, cart_router, order_router, table_router, time_slot_router, reservation_router):
        app.include_router(router)
    register_exception_handlers(app)
    return TestClient(app)


@pytest.fixture()
def headers(actor_id):
    return {"X-Actor-Id": actor_id}


@pytest.fixture()
def admin_headers():
    return {"X-Actor-Id": "staff-001", "X-Actor-Role": "admin"}


@pytest.fixture()
def add_dish(client, headers):
    """POST one dish (28.00 + 5.00 addon) to the caller's cart and return the cart id."""

    def _add(base_price=28.0, addon_price=5.0, quantity=2, as_headers=None):
        response = client.post(
            "/cart/dishes",
            json={
                "dish_id": "dish-beef-noodle",
                "name": "Beef Noodle Soup",
                "base_price": base_price,
                "quantity": quantity,
                "addons": [{"option_id": "addon-egg", "name": "Extra egg", "price": addon_price}],
            },
            headers=as_headers or headers,
        )
        assert response.status_code == 201
        return response.json()["cart_id"]

    return _add
