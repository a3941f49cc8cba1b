"""Integration tests for the order history endpoints."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from ordering.api.routes import order_router
from ordering.order.draft import LineItem
from ordering.order.order import Order


@pytest.fixture()
def client(order_store):
    app = FastAPI()
    app.include_router(order_router)
    return TestClient(app)


def _make_order(order_id):
    items = [LineItem(item_id="l1", name="Shawarma", price=400, quantity=1)]
    return Order.paid_in_cash(order_id, items, 500)


class TestListOrders:
    def test_lists_orders(self, client, order_store):
        order_store.save(_make_order("ORDAAAAAA"))
        body = client.get("/orders").json()
        assert [o["id"] for o in body["orders"]] == ["ORDAAAAAA"]
        assert body["orders"][0]["items"][0]["name"] == "Shawarma"
        assert body["stale"] is False

    def test_serves_cached_list_when_store_is_down(self, client, order_store):
        order_store.save(_make_order("ORDAAAAAA"))
        client.get("/orders")
        order_store.configure(fail_reads=True)
        body = client.get("/orders").json()
        assert body["stale"] is True
        assert [o["id"] for o in body["orders"]] == ["ORDAAAAAA"]


class TestDeleteOrders:
    def test_clear_all(self, client, order_store):
        order_store.save(_make_order("ORDAAAAAA"))
        assert client.delete("/orders").json()["status"] == "cleared"
        assert order_store.orders == {}

    def test_delete_one(self, client, order_store):
        order_store.save(_make_order("ORDAAAAAA"))
        order_store.save(_make_order("ORDBBBBBB"))
        client.delete("/orders/ORDAAAAAA")
        assert list(order_store.orders) == ["ORDBBBBBB"]
