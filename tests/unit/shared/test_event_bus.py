"""Unit tests for the event bus implementations."""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from unittest.mock import MagicMock
from uuid import uuid4

import pytest
import structlog
from kombu.exceptions import OperationalError

from modules.orders.events import OrderCompleted, OrderCreated
from shared.domain.exceptions import TransportFailure
from shared.infrastructure.bus import CeleryEventBus, InMemoryEventBus

pytestmark = pytest.mark.unit


def _event():
    return OrderCreated(
        aggregate_id=uuid4(),
        user_id=1,
        total=Decimal("10.00"),
        created_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
    )


# ===========================================================================
# InMemoryEventBus
# ===========================================================================


class TestInMemoryEventBus:
    def test_dispatches_to_subscribed_handlers_only(self):
        bus = InMemoryEventBus()
        created_handler, completed_handler = MagicMock(), MagicMock()
        bus.subscribe(OrderCreated, created_handler)
        bus.subscribe(OrderCompleted, completed_handler)

        event = _event()
        bus.publish(event)

        created_handler.handle.assert_called_once_with(event)
        completed_handler.handle.assert_not_called()

    def test_subscribing_twice_dispatches_once(self):
        bus = InMemoryEventBus()
        handler = MagicMock()
        bus.subscribe(OrderCreated, handler)
        bus.subscribe(OrderCreated, handler)

        bus.publish(_event())

        assert handler.handle.call_count == 1


# ===========================================================================
# CeleryEventBus
# ===========================================================================


class TestCeleryEventBus:
    def test_sends_one_task_per_route(self):
        app = MagicMock()
        bus = CeleryEventBus(
            app, routes={"OrderCreated": ["orders.process_payment", "audit.log"]}
        )
        event = _event()

        bus.publish(event)

        assert app.send_task.call_count == 2
        name, = app.send_task.call_args_list[0].args
        assert name == "orders.process_payment"
        payload = app.send_task.call_args_list[0].kwargs["kwargs"]["payload"]
        assert payload == event.to_payload()

    def test_subscribe_adds_task_route(self):
        app = MagicMock()
        bus = CeleryEventBus(app)
        task = MagicMock()
        task.name = "notifications.notify_order_completed"

        bus.subscribe(OrderCreated, task)
        bus.publish(_event())

        app.send_task.assert_called_once()
        assert app.send_task.call_args.args[0] == task.name

    def test_unrouted_event_is_dropped(self):
        app = MagicMock()
        bus = CeleryEventBus(app, routes={})

        bus.publish(_event())

        app.send_task.assert_not_called()

    @pytest.mark.parametrize(
        "error", [OperationalError("broker down"), ConnectionError("refused")]
    )
    def test_broker_errors_become_transport_failure(self, error):
        app = MagicMock()
        app.send_task.side_effect = error
        bus = CeleryEventBus(app, routes={"OrderCreated": ["orders.process_payment"]})

        with pytest.raises(TransportFailure) as exc_info:
            bus.publish(_event())

        assert exc_info.value.__cause__ is error


class TestRequestIdPropagation:
    def test_bound_request_id_travels_as_task_header(self):
        app = MagicMock()
        bus = CeleryEventBus(app, routes={"OrderCreated": ["orders.process_payment"]})

        with structlog.contextvars.bound_contextvars(correlation_id="req-42"):
            bus.publish(_event())

        assert app.send_task.call_args.kwargs["headers"] == {"request_id": "req-42"}

    def test_no_header_outside_a_request(self):
        app = MagicMock()
        bus = CeleryEventBus(app, routes={"OrderCreated": ["orders.process_payment"]})

        bus.publish(_event())

        assert "headers" not in app.send_task.call_args.kwargs

    def test_worker_binds_request_id_from_header(self):
        from config.celery import bind_request_id, clear_request_id

        task = MagicMock()
        task.request.get.return_value = "req-42"

        bind_request_id(task=task, task_id="t-1")
        try:
            context = structlog.contextvars.get_contextvars()
            assert context == {"task_id": "t-1", "correlation_id": "req-42"}
        finally:
            clear_request_id()

        assert structlog.contextvars.get_contextvars() == {}
