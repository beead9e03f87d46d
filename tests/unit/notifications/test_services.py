"""Unit tests for NotificationService with a mocked repository."""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from unittest.mock import MagicMock
from uuid import uuid4

import pytest

from modules.notifications.handlers import OrderCompletedNotifier, OrderExpiredNotifier
from modules.notifications.models import Notification, NotificationEventType
from modules.notifications.services import NotificationService
from modules.orders.events import OrderCompleted, OrderCreated, OrderExpired

pytestmark = pytest.mark.unit

AT = datetime(2024, 5, 4, 8, 30, tzinfo=timezone.utc)
ORDER_ID = uuid4()


@pytest.fixture()
def repo():
    repo = MagicMock()
    repo.exists.return_value = False
    repo.record.side_effect = lambda key, defaults: (
        Notification(idempotency_key=key, **defaults),
        True,
    )
    return repo


@pytest.fixture()
def sleeps():
    return []


@pytest.fixture()
def service(repo, sleeps):
    return NotificationService(repo, email_delay_seconds=0.5, sleep=sleeps.append)


def _completed():
    return OrderCompleted(
        aggregate_id=ORDER_ID, user_id=3, total=Decimal("20.00"), completed_at=AT
    )


class TestRecordOrderCreated:
    def test_message_carries_total_and_no_email(self, service, repo, sleeps):
        event = OrderCreated(
            aggregate_id=ORDER_ID, user_id=3, total=Decimal("199.98"), created_at=AT
        )

        notification = service.record_order_created(event)

        assert notification.message == f"Order #{ORDER_ID} created with total $199.98"
        assert notification.event_type == NotificationEventType.ORDER_CREATED
        assert notification.email_sent is False
        assert repo.record.call_args.args[0] == event.idempotency_key
        assert sleeps == []


class TestRecordOrderCompleted:
    def test_first_delivery_simulates_email(self, service, repo, sleeps):
        notification = service.record_order_completed(_completed())

        assert notification.message == f"Order #{ORDER_ID} completed successfully"
        assert notification.event_type == NotificationEventType.ORDER_COMPLETED
        assert notification.email_sent is True
        assert sleeps == [0.5]

    def test_redelivery_is_a_no_op(self, service, repo, sleeps):
        repo.exists.return_value = True

        assert service.record_order_completed(_completed()) is None
        repo.record.assert_not_called()
        assert sleeps == []

    def test_lost_insert_race_returns_none(self, service, repo):
        repo.record.side_effect = lambda key, defaults: (
            Notification(idempotency_key=key, **defaults),
            False,
        )

        assert service.record_order_completed(_completed()) is None


class TestRecordOrderExpired:
    def test_message_carries_threshold(self, service, sleeps):
        event = OrderExpired(
            aggregate_id=ORDER_ID,
            user_id=3,
            total=Decimal("5.00"),
            expired_at=AT,
            expiry_threshold_minutes=45,
        )

        notification = service.record_order_expired(event)

        assert notification.message == f"Order #{ORDER_ID} expired after 45 minutes"
        assert notification.event_type == NotificationEventType.ORDER_EXPIRED
        assert notification.email_sent is False
        assert sleeps == []


class TestNotifiers:
    def test_completed_notifier_delegates(self):
        service = MagicMock()
        event = _completed()

        OrderCompletedNotifier(service).handle(event)

        service.record_order_completed.assert_called_once_with(event)

    def test_expired_notifier_delegates(self):
        service = MagicMock()
        event = OrderExpired(
            aggregate_id=ORDER_ID,
            user_id=3,
            total=Decimal("5.00"),
            expired_at=AT,
            expiry_threshold_minutes=0,
        )

        OrderExpiredNotifier(service).handle(event)

        service.record_order_expired.assert_called_once_with(event)
