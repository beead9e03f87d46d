"""HTTP surface of the orders API."""

from __future__ import annotations

from decimal import Decimal
from unittest.mock import MagicMock
from uuid import uuid4

import pytest

from modules.orders.constants import OrderStatus
from modules.orders.events import OrderCreated
from modules.orders.models import Order
from shared.domain.exceptions import PersistenceFailure

pytestmark = pytest.mark.integration

URL = "/api/v1/orders/"


def _create(client, product, quantity=1, **extra):
    payload = {"items": [{"product_id": str(product.id), "quantity": quantity}]}
    payload.update(extra)
    return client.post(URL, payload, format="json")


class TestCreateOrderAPI:
    def test_creates_order_for_authenticated_user(
        self, auth_client, user, product, event_bus
    ):
        response = _create(auth_client, product, quantity=2)

        assert response.status_code == 201
        body = response.json()
        assert body["status"] == OrderStatus.PENDING
        assert Decimal(body["total"]) == Decimal("199.98")
        assert body["user_id"] == user.pk
        assert body["items"][0]["product_name"] == product.name
        assert Decimal(body["items"][0]["unit_price"]) == Decimal("99.99")
        product.refresh_from_db()
        assert product.stock_quantity == 98
        assert len(event_bus.of_type(OrderCreated)) == 1

    def test_empty_items_rejected(self, auth_client):
        response = auth_client.post(URL, {"items": []}, format="json")
        assert response.status_code == 400

    def test_non_positive_quantity_rejected(self, auth_client, product):
        assert _create(auth_client, product, quantity=0).status_code == 400

    def test_repeated_product_lines_reserve_cumulatively(self, auth_client, product):
        lines = [
            {"product_id": str(product.id), "quantity": 1},
            {"product_id": str(product.id), "quantity": 2},
        ]
        response = auth_client.post(URL, {"items": lines}, format="json")

        assert response.status_code == 201
        assert Decimal(response.json()["total"]) == Decimal("299.97")
        assert len(response.json()["items"]) == 2
        product.refresh_from_db()
        assert product.stock_quantity == 97

    def test_insufficient_stock_is_400(self, auth_client, product):
        response = _create(auth_client, product, quantity=101)

        assert response.status_code == 400
        assert "Insufficient stock" in response.json()["detail"]
        product.refresh_from_db()
        assert product.stock_quantity == 100

    def test_unknown_product_is_404(self, auth_client):
        payload = {"items": [{"product_id": str(uuid4()), "quantity": 1}]}
        assert auth_client.post(URL, payload, format="json").status_code == 404

    def test_unknown_user_is_404(self, auth_client, product):
        assert _create(auth_client, product, user_id=999999).status_code == 404

    def test_requires_authentication(self, api_client, product):
        assert _create(api_client, product).status_code == 401


class TestReadOrdersAPI:
    def test_list_is_paginated(self, auth_client, product):
        _create(auth_client, product)
        _create(auth_client, product)

        body = auth_client.get(URL).json()

        assert body["count"] == 2
        assert len(body["results"]) == 2

    def test_list_filters_by_status(self, auth_client, product):
        first = _create(auth_client, product).json()
        _create(auth_client, product)
        Order.objects.filter(id=first["id"]).update(status=OrderStatus.EXPIRED)

        body = auth_client.get(URL, {"status": "EXPIRED"}).json()

        assert [o["id"] for o in body["results"]] == [first["id"]]

    def test_list_filters_by_user(self, auth_client, user, product):
        _create(auth_client, product)

        assert auth_client.get(URL, {"user": user.pk}).json()["count"] == 1
        assert auth_client.get(URL, {"user": user.pk + 1}).json()["count"] == 0

    def test_retrieve(self, auth_client, product):
        created = _create(auth_client, product).json()

        response = auth_client.get(f"{URL}{created['id']}/")

        assert response.status_code == 200
        assert response.json()["id"] == created["id"]

    def test_retrieve_missing_is_404(self, auth_client):
        assert auth_client.get(f"{URL}{uuid4()}/").status_code == 404


class TestOverrideStatusAPI:
    def test_status_is_case_insensitive(self, auth_client, product):
        created = _create(auth_client, product).json()

        response = auth_client.patch(
            f"{URL}{created['id']}/", {"status": "COMPLETED"}, format="json"
        )

        assert response.status_code == 200
        assert response.json()["status"] == OrderStatus.COMPLETED

    def test_backward_move_is_applied(self, auth_client, product):
        created = _create(auth_client, product).json()
        Order.objects.filter(id=created["id"]).update(status=OrderStatus.COMPLETED)

        response = auth_client.put(
            f"{URL}{created['id']}/", {"status": "pending"}, format="json"
        )

        assert response.status_code == 200
        assert response.json()["status"] == OrderStatus.PENDING

    def test_unknown_status_is_400(self, auth_client, product):
        created = _create(auth_client, product).json()

        response = auth_client.patch(
            f"{URL}{created['id']}/", {"status": "shipped"}, format="json"
        )

        assert response.status_code == 400

    def test_missing_order_is_404(self, auth_client):
        response = auth_client.patch(
            f"{URL}{uuid4()}/", {"status": "completed"}, format="json"
        )
        assert response.status_code == 404


class TestDeleteOrderAPI:
    def test_delete_restores_stock(self, auth_client, product):
        created = _create(auth_client, product, quantity=4).json()

        response = auth_client.delete(f"{URL}{created['id']}/")

        assert response.status_code == 204
        product.refresh_from_db()
        assert product.stock_quantity == 100
        assert auth_client.get(f"{URL}{created['id']}/").status_code == 404

    def test_delete_missing_is_404(self, auth_client):
        assert auth_client.delete(f"{URL}{uuid4()}/").status_code == 404


class TestStoreUnavailableAPI:
    @pytest.fixture()
    def failing_service(self, monkeypatch):
        service = MagicMock()
        failure = PersistenceFailure("connection lost")
        service.create_order.side_effect = failure
        service.update_status.side_effect = failure
        service.delete_order.side_effect = failure
        monkeypatch.setattr(
            "modules.orders.views.build_order_service", lambda: service
        )
        return service

    def test_create_is_503(self, auth_client, product, failing_service):
        response = _create(auth_client, product)

        assert response.status_code == 503
        assert "connection lost" not in response.json()["detail"]

    def test_status_override_is_503(self, auth_client, failing_service):
        response = auth_client.patch(
            f"{URL}{uuid4()}/", {"status": "completed"}, format="json"
        )
        assert response.status_code == 503

    def test_delete_is_503(self, auth_client, failing_service):
        assert auth_client.delete(f"{URL}{uuid4()}/").status_code == 503
