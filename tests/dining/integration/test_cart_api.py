"""Integration tests for the cart and address endpoints via TestClient."""

from dining.address.address import Address
from dining.cart.cart import Cart, CartStatus
from protean import current_domain


class TestAuthentication:
    def test_missing_actor_header_is_401(self, client):
        response = client.get("/cart")
        assert response.status_code == 401
        assert response.json()["error"] == "Unauthenticated"

    def test_time_slots_need_no_actor(self, client):
        assert client.get("/time-slots").status_code == 200


class TestCartEndpoints:
    def test_add_dish_opens_a_cart(self, client, actor_id, add_dish):
        cart_id = add_dish()

        cart = current_domain.repository_for(Cart).get(cart_id)
        assert cart.actor_id == actor_id
        assert cart.status == CartStatus.ACTIVE.value
        assert len(cart.items) == 1

    def test_second_dish_lands_in_the_same_cart(self, add_dish):
        assert add_dish() == add_dish(base_price=12.0)

    def test_add_package(self, client, headers):
        response = client.post(
            "/cart/packages",
            json={
                "package_id": "pkg-001",
                "name": "Lunch Set",
                "package_price": 45.0,
                "dishes": [{"dish_id": "dish-002", "name": "Dumplings"}],
            },
            headers=headers,
        )
        assert response.status_code == 201

        cart = current_domain.repository_for(Cart).get(response.json()["cart_id"])
        assert cart.package_items[0].dish_snapshots[0].name == "Dumplings"

    def test_get_cart_returns_snapshots(self, client, headers, add_dish):
        cart_id = add_dish()

        body = client.get("/cart", headers=headers).json()
        assert body["cart_id"] == cart_id
        assert body["items"][0]["addons"] == [{"option_id": "addon-egg", "name": "Extra egg", "price": 5.0}]

    def test_get_cart_without_one_is_empty(self, client, headers):
        body = client.get("/cart", headers=headers).json()
        assert body["cart_id"] is None
        assert body["items"] == []

    def test_clear_cart(self, client, headers, add_dish):
        cart_id = add_dish()

        response = client.delete("/cart", headers=headers)
        assert response.status_code == 200

        assert current_domain.repository_for(Cart).get(cart_id).is_empty

    def test_zero_quantity_is_rejected(self, client, headers):
        response = client.post(
            "/cart/dishes",
            json={"dish_id": "dish-001", "name": "Tea", "base_price": 3.0, "quantity": 0},
            headers=headers,
        )
        assert response.status_code == 422


class TestAddressEndpoint:
    def test_register_address(self, client, actor_id, headers):
        response = client.post(
            "/addresses",
            json={"name": "Mei", "phone": "0812345678", "address": "12 Riverside Road", "floor": "3"},
            headers=headers,
        )
        assert response.status_code == 201

        address = current_domain.repository_for(Address).get(response.json()["address_id"])
        assert address.actor_id == actor_id
        assert address.floor == "3"
