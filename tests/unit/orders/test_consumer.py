"""Unit tests for PaymentSimulationConsumer.

The order service is mocked, sleep is a recorder and the PRNG is seeded,
so every branch of the payment state machine is deterministic.
"""

from __future__ import annotations

import random
from datetime import datetime, timezone
from decimal import Decimal
from unittest.mock import MagicMock
from uuid import uuid4

import pytest
from django.db import OperationalError

from modules.orders.config import EventProcessingSettings
from modules.orders.constants import OrderStatus
from modules.orders.consumers import PaymentSimulationConsumer
from modules.orders.events import OrderCompleted, OrderCreated
from modules.orders.exceptions import InvalidStatusTransition, OrderNotFound
from modules.orders.models import Order
from shared.domain.exceptions import PersistenceFailure, TransportFailure

pytestmark = pytest.mark.unit

COMPLETED_AT = datetime(2024, 3, 1, 10, 0, 5, tzinfo=timezone.utc)


@pytest.fixture()
def order():
    return Order(id=uuid4(), user_id=9, total=Decimal("59.90"), status="pending")


@pytest.fixture()
def order_service(order):
    service = MagicMock()
    service.get_order.return_value = order
    service.advance_status.return_value = COMPLETED_AT
    return service


@pytest.fixture()
def bus():
    return MagicMock()


@pytest.fixture()
def sleeps():
    return []


def _consumer(order_service, bus, sleeps, success_rate=1.0, rng=None):
    return PaymentSimulationConsumer(
        order_service=order_service,
        event_bus=bus,
        settings=EventProcessingSettings(
            payment_processing_delay_seconds=5,
            order_completion_success_rate=success_rate,
        ),
        rng=rng or random.Random(0),
        sleep=sleeps.append,
    )


def _event(order):
    return OrderCreated(
        aggregate_id=order.id,
        user_id=order.user_id,
        total=order.total,
        created_at=order.created_at,
    )


def _targets(order_service):
    return [c.args[1] for c in order_service.advance_status.call_args_list]


# ===========================================================================
# Happy paths
# ===========================================================================


class TestResolution:
    def test_success_rate_one_completes_and_publishes(
        self, order, order_service, bus, sleeps
    ):
        _consumer(order_service, bus, sleeps, success_rate=1.0).handle(_event(order))

        assert _targets(order_service) == [
            OrderStatus.PROCESSING,
            OrderStatus.COMPLETED,
        ]
        assert sleeps == [5]
        published = bus.publish.call_args.args[0]
        assert isinstance(published, OrderCompleted)
        assert published.aggregate_id == order.id
        assert published.user_id == 9
        assert published.total == Decimal("59.90")
        assert published.completed_at == COMPLETED_AT

    def test_success_rate_zero_leaves_order_processing(
        self, order, order_service, bus, sleeps
    ):
        _consumer(order_service, bus, sleeps, success_rate=0.0).handle(_event(order))

        assert _targets(order_service) == [OrderStatus.PROCESSING]
        assert sleeps == [5]
        bus.publish.assert_not_called()

    def test_outcome_follows_injected_rng(self, order, order_service, bus, sleeps):
        expected_draw = random.Random(42).random()

        _consumer(
            order_service, bus, sleeps, success_rate=0.5, rng=random.Random(42)
        ).handle(_event(order))

        completed = OrderStatus.COMPLETED in _targets(order_service)
        assert completed is (expected_draw < 0.5)
        assert bus.publish.called is completed


# ===========================================================================
# Redelivery and races
# ===========================================================================


class TestRedelivery:
    def test_missing_order_is_discarded(self, order, order_service, bus, sleeps):
        order_service.get_order.side_effect = OrderNotFound("gone")

        _consumer(order_service, bus, sleeps).handle(_event(order))

        order_service.advance_status.assert_not_called()
        assert sleeps == []
        bus.publish.assert_not_called()

    @pytest.mark.parametrize("status", [OrderStatus.COMPLETED, OrderStatus.EXPIRED])
    def test_terminal_order_is_skipped(self, order, order_service, bus, sleeps, status):
        order.status = status

        _consumer(order_service, bus, sleeps).handle(_event(order))

        order_service.advance_status.assert_not_called()
        assert sleeps == []
        bus.publish.assert_not_called()

    def test_processing_order_is_re_entered_without_rewrite(
        self, order, order_service, bus, sleeps
    ):
        order.status = OrderStatus.PROCESSING

        _consumer(order_service, bus, sleeps).handle(_event(order))

        assert _targets(order_service) == [OrderStatus.COMPLETED]
        bus.publish.assert_called_once()

    def test_lost_completion_race_publishes_nothing(
        self, order, order_service, bus, sleeps
    ):
        order_service.advance_status.side_effect = [
            COMPLETED_AT,
            InvalidStatusTransition("already completed"),
        ]

        _consumer(order_service, bus, sleeps).handle(_event(order))

        bus.publish.assert_not_called()

    def test_expired_before_processing_stops(self, order, order_service, bus, sleeps):
        expired = Order(id=order.id, user_id=9, status=OrderStatus.EXPIRED)
        order_service.get_order.side_effect = [order, expired]
        order_service.advance_status.side_effect = InvalidStatusTransition("expired")

        _consumer(order_service, bus, sleeps).handle(_event(order))

        assert _targets(order_service) == [OrderStatus.PROCESSING]
        assert sleeps == []


# ===========================================================================
# Failures
# ===========================================================================


class TestFailures:
    def test_database_error_becomes_persistence_failure(
        self, order, order_service, bus, sleeps
    ):
        order_service.advance_status.side_effect = OperationalError("db down")

        with pytest.raises(PersistenceFailure):
            _consumer(order_service, bus, sleeps).handle(_event(order))

    def test_publish_failure_is_not_raised(self, order, order_service, bus, sleeps):
        bus.publish.side_effect = TransportFailure("broker down")

        _consumer(order_service, bus, sleeps).handle(_event(order))

        bus.publish.assert_called_once()
