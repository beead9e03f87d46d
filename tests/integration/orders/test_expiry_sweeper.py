"""Expiry sweeper against the real database."""

from __future__ import annotations

from datetime import timedelta

import pytest
from freezegun import freeze_time
from django.utils import timezone

from modules.orders.constants import OrderStatus
from modules.orders.dtos import CreateOrderDTO
from modules.orders.events import OrderExpired
from modules.orders.models import Order
from modules.orders.repositories import OrderDjangoRepository
from modules.orders.sweeper import ExpirySweeper

pytestmark = pytest.mark.integration


@pytest.fixture()
def order(order_service, user, product):
    return order_service.create_order(
        CreateOrderDTO(
            user_id=user.pk, items=[{"product_id": product.id, "quantity": 1}]
        )
    )


def _sweeper(order_service, event_bus, threshold):
    return ExpirySweeper(
        order_service=order_service,
        order_repository=OrderDjangoRepository(),
        event_bus=event_bus,
        threshold_minutes=threshold,
    )


def _age(order, minutes):
    Order.objects.filter(id=order.id).update(
        created_at=timezone.now() - timedelta(minutes=minutes)
    )


class TestExpirySweeper:
    def test_zero_threshold_expires_pending_order_once(
        self, order_service, event_bus, order
    ):
        sweeper = _sweeper(order_service, event_bus, threshold=0)

        first = sweeper.sweep()
        second = sweeper.sweep()

        order.refresh_from_db()
        assert order.status == OrderStatus.EXPIRED
        assert [e.aggregate_id for e in first] == [order.id]
        assert first[0].expiry_threshold_minutes == 0
        assert first[0].expired_at == order.updated_at
        assert second == []
        assert len(event_bus.of_type(OrderExpired)) == 1

    def test_recent_order_is_left_alone(self, order_service, event_bus, order):
        assert _sweeper(order_service, event_bus, threshold=30).sweep() == []

        order.refresh_from_db()
        assert order.status == OrderStatus.PENDING

    def test_old_processing_order_expires(self, order_service, event_bus, order):
        Order.objects.filter(id=order.id).update(status=OrderStatus.PROCESSING)
        _age(order, 31)

        events = _sweeper(order_service, event_bus, threshold=30).sweep()

        order.refresh_from_db()
        assert order.status == OrderStatus.EXPIRED
        assert events[0].expiry_threshold_minutes == 30

    def test_completed_order_is_never_expired(self, order_service, event_bus, order):
        Order.objects.filter(id=order.id).update(status=OrderStatus.COMPLETED)
        _age(order, 120)

        assert _sweeper(order_service, event_bus, threshold=0).sweep() == []

        order.refresh_from_db()
        assert order.status == OrderStatus.COMPLETED

    def test_expiry_keeps_stock_reserved(self, order_service, event_bus, order, product):
        _sweeper(order_service, event_bus, threshold=0).sweep()

        product.refresh_from_db()
        assert product.stock_quantity == 99

    def test_threshold_boundary_is_inclusive(
        self, order_service, event_bus, user, product
    ):
        with freeze_time("2024-06-01 12:00:00") as frozen:
            order = order_service.create_order(
                CreateOrderDTO(
                    user_id=user.pk,
                    items=[{"product_id": product.id, "quantity": 1}],
                )
            )
            sweeper = _sweeper(order_service, event_bus, threshold=30)

            frozen.tick(timedelta(minutes=29, seconds=59))
            assert sweeper.sweep() == []

            frozen.tick(timedelta(seconds=1))
            events = sweeper.sweep()

        assert [e.aggregate_id for e in events] == [order.id]
