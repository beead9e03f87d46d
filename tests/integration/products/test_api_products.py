"""HTTP surface of the products API."""

from __future__ import annotations

from decimal import Decimal
from uuid import uuid4

import pytest

pytestmark = pytest.mark.integration

URL = "/api/v1/products/"


class TestProductAPI:
    def test_create(self, auth_client):
        response = auth_client.post(
            URL,
            {"name": "Keyboard", "price": "49.90", "stock_quantity": 10},
            format="json",
        )

        assert response.status_code == 201
        body = response.json()
        assert body["name"] == "Keyboard"
        assert Decimal(body["price"]) == Decimal("49.90")
        assert body["stock_quantity"] == 10

    def test_create_rejects_non_positive_price(self, auth_client):
        response = auth_client.post(
            URL, {"name": "Free", "price": "0"}, format="json"
        )
        assert response.status_code == 400

    def test_list_filters_in_stock(self, auth_client, make_product):
        make_product(name="Available", stock=3)
        make_product(name="Sold out", stock=0)

        body = auth_client.get(URL, {"in_stock": "true"}).json()

        assert [p["name"] for p in body["results"]] == ["Available"]

    def test_update_price(self, auth_client, product):
        response = auth_client.patch(
            f"{URL}{product.id}/", {"price": "120.00"}, format="json"
        )

        assert response.status_code == 200
        assert Decimal(response.json()["price"]) == Decimal("120.00")

    def test_retrieve_missing_is_404(self, auth_client):
        assert auth_client.get(f"{URL}{uuid4()}/").status_code == 404

    def test_delete_hides_product(self, auth_client, product):
        assert auth_client.delete(f"{URL}{product.id}/").status_code == 204
        assert auth_client.get(f"{URL}{product.id}/").status_code == 404
