"""Tests for the FastAPI routers"""
from unittest.mock import AsyncMock, Mock, patch

import pytest
from aiogram import Bot
from fastapi import FastAPI
from fastapi.testclient import TestClient

from kalipos.auth import TelegramUser, verify_telegram_auth
from kalipos.models import Order, OrderLine, OrderWithLines
from kalipos.orders import OrderPipeline, OrderSubmitter
from kalipos.routers.deps import get_session_registry, get_storefront_session
from kalipos.routers.webapp import router as webapp_router
from kalipos.routers.webhooks import router as webhooks_router
from kalipos.storefront import InMemoryFilterStateStorage, StorefrontSession


def create_app() -> FastAPI:
    app = FastAPI()
    app.include_router(webhooks_router)
    app.include_router(webapp_router)
    return app


@pytest.fixture
def session(order_repo, catalog_repo, cart_repo, catalog):
    session = StorefrontSession(
        user_id=42,
        submitter=OrderSubmitter(OrderPipeline(order_repo)),
        carts=cart_repo,
        catalog_repo=catalog_repo,
        filter_storage=InMemoryFilterStateStorage(),
        orders=order_repo,
    )
    session.catalog = list(catalog)
    return session


@pytest.fixture
def client(session):
    app = create_app()
    app.dependency_overrides[get_storefront_session] = lambda: session
    return TestClient(app)


class TestWebappCatalog:

    def test_catalog_view(self, client):
        response = client.get("/api/webapp/catalog", params={"q": "sponge"})

        assert response.status_code == 200
        data = response.json()
        assert [item["item_name"] for item in data["items"]] == ["Sponge", "Sponge Scrub"]
        assert data["categories"] == ["Cleaning", "Box", "Cheese"]

    def test_filters_round_trip(self, client):
        response = client.put("/api/webapp/filters", json={"selected_categories": ["Cheese"]})
        assert response.status_code == 200

        assert client.get("/api/webapp/filters").json()["selected_categories"] == ["Cheese"]
        assert [i["item_name"] for i in client.get("/api/webapp/catalog").json()["items"]] == ["Mozzarella"]

    def test_search_digit_adds_item(self, client):
        response = client.post("/api/webapp/search", json={"text": "Sponge", "key": "3"})

        data = response.json()
        assert data["search_text"] == ""
        assert data["notice"]["title"] == "Item Added to Order"
        assert data["cart"]["items"][0]["quantity"] == 3

    def test_search_typing_is_quiet(self, client):
        data = client.post("/api/webapp/search", json={"text": "Spo", "key": "n"}).json()

        assert data["notice"] is None
        assert data["search_text"] == "Spo"


class TestWebappCart:

    def test_add_update_remove(self, client):
        added = client.post("/api/webapp/cart/items", json={"item_name": "Sponge", "quantity": 2}).json()
        client.post("/api/webapp/cart/items", json={"item_name": "Sponge", "quantity": 1})
        line_id = added["cart"]["items"][0]["id"]

        cart = client.get("/api/webapp/cart").json()
        assert cart["item_count"] == 1
        assert cart["items"][0]["quantity"] == 3

        cart = client.patch(f"/api/webapp/cart/items/{line_id}", json={"quantity": 1.5}).json()
        assert cart["items"][0]["quantity"] == 1.5

        cart = client.patch(f"/api/webapp/cart/items/{line_id}", json={"quantity": 0}).json()
        assert cart["item_count"] == 0

    def test_add_unknown_item(self, client):
        response = client.post("/api/webapp/cart/items", json={"item_name": "Unknown"})
        assert response.status_code == 404

    def test_update_unknown_line(self, client):
        response = client.patch("/api/webapp/cart/items/missing", json={"quantity": 2})
        assert response.status_code == 404

    def test_place_order(self, client, order_repo):
        client.post("/api/webapp/cart/items", json={"item_name": "Sponge", "quantity": 2})

        data = client.post("/api/webapp/orders").json()

        assert data["notice"]["title"] == "Order Created"
        assert data["cart"]["item_count"] == 0
        assert order_repo.create_header.await_count == 1

    def test_place_empty_order(self, client, order_repo):
        data = client.post("/api/webapp/orders").json()

        assert data["notice"]["title"] == "Empty Cart"
        order_repo.create_header.assert_not_called()

    def test_clear_cart(self, client):
        client.post("/api/webapp/cart/items", json={"item_name": "Sponge"})

        assert client.delete("/api/webapp/cart").json()["item_count"] == 0


class TestWebappSavedCarts:

    def test_save_and_list(self, client, cart_repo):
        client.post("/api/webapp/cart/items", json={"item_name": "Sponge", "quantity": 2})

        data = client.post("/api/webapp/carts", json={"cart_name": "Weekly"}).json()

        assert data["notice"]["title"] == "Cart Saved"
        assert client.get("/api/webapp/carts").json() == {"carts": [], "count": 0}
        cart_repo.get_by_user.assert_awaited_once_with(42)

    def test_delete_missing(self, client, cart_repo):
        cart_repo.delete.return_value = False

        assert client.delete("/api/webapp/carts/c-9").status_code == 404
        cart_repo.delete.assert_awaited_once_with("c-9", 42)

    def test_list_failure_is_notice(self, client, cart_repo):
        cart_repo.get_by_user.side_effect = RuntimeError("down")

        response = client.get("/api/webapp/carts")

        assert response.status_code == 200
        assert response.json()["notice"]["level"] == "error"

    def test_delete(self, client):
        data = client.delete("/api/webapp/carts/cart-1").json()

        assert data["ok"] is True
        assert data["notice"]["title"] == "Cart Deleted"

    def test_delete_failure_is_notice(self, client, cart_repo):
        cart_repo.delete.side_effect = RuntimeError("down")

        response = client.delete("/api/webapp/carts/cart-1")

        assert response.status_code == 200
        assert response.json()["ok"] is False

    def test_duplicate(self, client, cart_repo):
        data = client.post("/api/webapp/carts/cart-1/duplicate").json()

        assert data["notice"]["title"] == "Cart Duplicated"
        cart_repo.duplicate.assert_awaited_once_with("cart-1", 42)

    def test_duplicate_missing(self, client, cart_repo):
        cart_repo.duplicate.return_value = None

        assert client.post("/api/webapp/carts/c-9/duplicate").status_code == 404

    def test_toggle_template(self, client, cart_repo):
        data = client.patch("/api/webapp/carts/cart-1", json={"is_template": False}).json()

        assert data["notice"]["message"] == "Removed from templates"
        cart_repo.set_template.assert_awaited_once_with("cart-1", 42, False)


class TestWebappOrderHistory:

    def test_orders_with_items(self, client, order_repo):
        order_repo.get_recent_by_user.return_value = [
            OrderWithLines(
                order=Order(id="o-1", order_number="ORD-1", telegram_user_id=42),
                lines=[OrderLine(order_id="o-1", item_name="Sponge", quantity="2.5", category="Cleaning")],
            ),
        ]

        data = client.get("/api/webapp/orders").json()

        assert data["count"] == 1
        assert data["orders"][0]["order_number"] == "ORD-1"
        assert data["orders"][0]["items"] == [{"item_name": "Sponge", "quantity": 2.5, "category": "Cleaning"}]
        order_repo.get_recent_by_user.assert_awaited_once_with(42, limit=None)

    def test_limit(self, client, order_repo):
        client.get("/api/webapp/orders", params={"limit": 10})

        order_repo.get_recent_by_user.assert_awaited_once_with(42, limit=10)


def test_reset_session():
    registry = Mock()
    registry.reset.return_value = True
    app = create_app()
    app.dependency_overrides[verify_telegram_auth] = lambda: TelegramUser(id=42)
    app.dependency_overrides[get_session_registry] = lambda: registry

    data = TestClient(app).delete("/api/webapp/session").json()

    assert data == {"ok": True, "reset": True}
    registry.reset.assert_called_once_with(42)


def test_webapp_requires_init_data():
    response = TestClient(create_app()).get("/api/webapp/cart")

    assert response.status_code == 401


class TestTelegramWebhook:

    @pytest.fixture
    def app_client(self):
        return TestClient(create_app())

    def test_bot_not_configured(self, app_client):
        with patch("kalipos.routers.webhooks.get_bot", return_value=None):
            response = app_client.post("/webhook/telegram", json={"update_id": 1})

        assert response.status_code == 200
        assert response.json()["ok"] is False

    def test_invalid_json_still_200(self, app_client):
        with patch("kalipos.routers.webhooks.get_bot", return_value=Bot(token="42:TEST")):
            response = app_client.post(
                "/webhook/telegram", content=b"not json", headers={"Content-Type": "application/json"},
            )

        assert response.status_code == 200
        assert response.json() == {"ok": False, "error": "Invalid JSON"}

    def test_update_is_fed_to_dispatcher(self, app_client):
        dispatcher = Mock()
        dispatcher.feed_update = AsyncMock(side_effect=RuntimeError("handler crashed"))
        update = {
            "update_id": 10,
            "message": {
                "message_id": 1,
                "date": 1700000000,
                "chat": {"id": 42, "type": "private"},
                "from": {"id": 42, "is_bot": False, "first_name": "Ana"},
                "text": "hi",
            },
        }

        with patch("kalipos.routers.webhooks.get_bot", return_value=Bot(token="42:TEST")), \
             patch("kalipos.routers.webhooks.get_dispatcher", return_value=dispatcher):
            response = app_client.post("/webhook/telegram", json=update)

        assert response.status_code == 200
        assert response.json() == {"ok": True}
        dispatcher.feed_update.assert_awaited_once()


class TestNotifyRelay:

    @pytest.fixture
    def app_client(self):
        return TestClient(create_app())

    def test_forwards_message(self, app_client, monkeypatch):
        monkeypatch.setenv("NOTIFY_RELAY_TOKEN", "secret")
        send = AsyncMock(return_value=True)

        with patch("kalipos.routers.webhooks.send_telegram_message", send):
            response = app_client.post(
                "/api/notify/order",
                json={"type": "order", "telegram_user_id": 42, "message": "🛒 New Order: ORD-1", "items": []},
                headers={"Authorization": "Bearer secret"},
            )

        assert response.status_code == 200
        send.assert_awaited_once_with(chat_id=42, text="🛒 New Order: ORD-1")

    def test_rejects_bad_token(self, app_client, monkeypatch):
        monkeypatch.setenv("NOTIFY_RELAY_TOKEN", "secret")

        response = app_client.post(
            "/api/notify/order",
            json={"type": "order", "user_id": 42, "message": "m"},
            headers={"Authorization": "Bearer wrong"},
        )

        assert response.status_code == 401

    def test_delivery_failure_is_502(self, app_client, monkeypatch):
        monkeypatch.delenv("NOTIFY_RELAY_TOKEN", raising=False)

        with patch("kalipos.routers.webhooks.send_telegram_message", AsyncMock(return_value=False)):
            response = app_client.post("/api/notify/order", json={"user_id": 42, "message": "m"})

        assert response.status_code == 502


def test_health_check():
    from api.index import app

    response = TestClient(app).get("/api/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "service": "kalipos"}
