"""Integration tests for the menu endpoints."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from catalogue.api import menu_router


@pytest.fixture()
def client(catalogue):
    app = FastAPI()
    app.include_router(menu_router)
    return TestClient(app)


class TestMenuEndpoints:
    def test_list_menu(self, client, catalogue):
        items = client.get("/menu").json()["items"]
        assert len(items) == len(catalogue.list_items())

    def test_filter_by_category(self, client):
        items = client.get("/menu", params={"category": "desserts"}).json()["items"]
        assert items
        assert {item["category"] for item in items} == {"desserts"}

    def test_unknown_category_is_422(self, client):
        assert client.get("/menu", params={"category": "dinner"}).status_code == 422

    def test_get_item(self, client):
        assert client.get("/menu/b1").json()["name"] == "Kahawa"
