"""Integration tests for Cart API endpoints via TestClient."""

import contextvars
import threading

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from ordering.api.errors import register_error_handlers
from ordering.api.routes import cart_locks, cart_router, order_router
from ordering.cart.cart import Cart
from ordering.catalogue.port import SaleStatus
from protean import current_domain

AUTH = {"Authorization": "Bearer token-001"}
OTHER_AUTH = {"Authorization": "Bearer token-002"}


@pytest.fixture()
def client():
    app = FastAPI()
    app.include_router(cart_router)
    app.include_router(order_router)
    register_error_handlers(app)
    return TestClient(app)


def _add_item(client, product_id, quantity=1, headers=AUTH):
    response = client.post("/cart/items", json={"product_id": product_id, "quantity": quantity}, headers=headers)
    assert response.status_code == 201
    return response.json()


class TestAuthentication:
    def test_missing_header(self, client):
        response = client.get("/cart")
        assert response.status_code == 401
        assert response.json()["error"] == "unauthorized"

    def test_unknown_token(self, client):
        response = client.get("/cart", headers={"Authorization": "Bearer nope"})
        assert response.status_code == 401

    def test_wrong_scheme(self, client):
        response = client.get("/cart", headers={"Authorization": "Basic dXNlcjpwYXNz"})
        assert response.status_code == 401

    def test_removed_user(self, client, users):
        users.remove("user-001")
        response = client.get("/cart", headers=AUTH)
        assert response.status_code == 404
        assert response.json()["messages"] == {"user": ["User not found: user-001"]}


class TestGetCart:
    def test_first_access_creates_empty_cart(self, client):
        response = client.get("/cart", headers=AUTH)

        assert response.status_code == 200
        data = response.json()
        assert data["user_id"] == "user-001"
        assert data["is_active"] is True
        assert data["total_items"] == 0
        assert data["total_price"] == 0.0
        assert data["items"] == []

    def test_same_cart_on_every_access(self, client):
        first = client.get("/cart", headers=AUTH).json()["cart_id"]
        second = client.get("/cart", headers=AUTH).json()["cart_id"]
        assert first == second

    def test_summary(self, client, strap):
        _add_item(client, strap.id, 2)

        response = client.get("/cart/summary", headers=AUTH)
        assert response.status_code == 200
        data = response.json()
        assert data["total_price"] == 24000.0
        assert data["estimated_delivery_fee"] == 3000.0
        assert data["has_issues"] is False


class TestCartItems:
    def test_add_item(self, client, camera):
        data = _add_item(client, camera.id, 2)

        assert data["cart_item_id"]
        line = data["cart"]["items"][0]
        assert line["cart_item_id"] == data["cart_item_id"]
        assert line["quantity"] == 2
        assert line["unit_price"] == 150000.0
        assert data["cart"]["total_price"] == 300000.0

    def test_add_merges(self, client, camera):
        first = _add_item(client, camera.id, 2)
        second = _add_item(client, camera.id, 1)

        assert first["cart_item_id"] == second["cart_item_id"]
        assert second["cart"]["items"][0]["quantity"] == 3

    def test_insufficient_stock(self, client, camera):
        response = client.post("/cart/items", json={"product_id": camera.id, "quantity": 11}, headers=AUTH)

        assert response.status_code == 409
        assert response.json() == {
            "error": "conflict",
            "messages": {"stock": ["Insufficient stock. Product: Vintage Camera, current stock: 10, requested: 11"]},
        }

    def test_unsellable_product(self, client, catalog, camera):
        catalog.update(camera.id, sale_status=SaleStatus.INACTIVE)
        response = client.post("/cart/items", json={"product_id": camera.id, "quantity": 1}, headers=AUTH)
        assert response.status_code == 409

    def test_zero_quantity(self, client, camera):
        response = client.post("/cart/items", json={"product_id": camera.id, "quantity": 0}, headers=AUTH)
        assert response.status_code == 400
        assert response.json()["error"] == "invalid_argument"

    def test_unknown_product(self, client):
        response = client.post("/cart/items", json={"product_id": "prod-404", "quantity": 1}, headers=AUTH)
        assert response.status_code == 404

    def test_update_quantity(self, client, camera):
        item_id = _add_item(client, camera.id, 1)["cart_item_id"]

        response = client.patch(f"/cart/items/{item_id}", json={"quantity": 3}, headers=AUTH)
        assert response.status_code == 200
        assert response.json()["total_items"] == 3

    def test_update_to_zero_removes(self, client, camera):
        item_id = _add_item(client, camera.id, 1)["cart_item_id"]

        response = client.patch(f"/cart/items/{item_id}", json={"quantity": 0}, headers=AUTH)
        assert response.status_code == 200
        assert response.json()["items"] == []

    def test_cannot_touch_another_users_item(self, client, camera):
        item_id = _add_item(client, camera.id, 1, headers=OTHER_AUTH)["cart_item_id"]

        response = client.delete(f"/cart/items/{item_id}", headers=AUTH)
        assert response.status_code == 403
        assert response.json()["error"] == "forbidden"
        assert current_domain.repository_for(Cart).find_by_user("user-002").item_count() == 1

    def test_unknown_item(self, client):
        response = client.patch("/cart/items/item-404", json={"quantity": 1}, headers=AUTH)
        assert response.status_code == 404
        assert response.json()["error"] == "not_found"

    def test_remove_item(self, client, camera, lens):
        item_id = _add_item(client, camera.id, 1)["cart_item_id"]
        _add_item(client, lens.id, 1)

        response = client.delete(f"/cart/items/{item_id}", headers=AUTH)
        assert response.status_code == 200
        assert [line["product_id"] for line in response.json()["items"]] == [lens.id]

    def test_clear(self, client, camera, lens):
        _add_item(client, camera.id, 1)
        _add_item(client, lens.id, 1)

        response = client.delete("/cart", headers=AUTH)
        assert response.status_code == 200
        assert response.json()["items"] == []
        assert response.json()["total_price"] == 0.0


class TestValidateEndpoint:
    def test_reports_and_refreshes(self, client, catalog, camera):
        _add_item(client, camera.id, 2)
        catalog.update(camera.id, price=160000.0, stock_quantity=1)

        response = client.post("/cart/validate", headers=AUTH)

        assert response.status_code == 200
        line = response.json()["items"][0]
        assert line["is_stock_available"] is False
        assert line["is_price_changed"] is True
        assert line["warning_message"] == "Insufficient stock. Current stock: 1, requested: 2"
        assert line["unit_price"] == 160000.0


class TestPerUserSerialisation:
    def test_mutation_waits_for_the_users_lock(self, client, camera):
        holding = threading.Event()
        release = threading.Event()

        def hold_lock():
            with cart_locks.hold("user-001"):
                holding.set()
                release.wait(5)

        result = {}

        def add():
            result["response"] = client.post(
                "/cart/items", json={"product_id": camera.id, "quantity": 1}, headers=AUTH
            )

        holder = threading.Thread(target=hold_lock)
        holder.start()
        assert holding.wait(5)

        # The request thread needs the test's domain context
        requester = threading.Thread(target=contextvars.copy_context().run, args=(add,))
        requester.start()
        requester.join(0.5)
        assert requester.is_alive()
        assert "response" not in result

        release.set()
        requester.join(5)
        holder.join(5)
        assert result["response"].status_code == 201

    def test_other_users_are_not_blocked(self, client, camera):
        with cart_locks.hold("user-002"):
            response = client.post("/cart/items", json={"product_id": camera.id, "quantity": 1}, headers=AUTH)
        assert response.status_code == 201
