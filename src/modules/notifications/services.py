"""Notification service layer.

Turns order events into audit notifications.  Every record is keyed by
the event's idempotency key, so the at-least-once channel yields at most
one notification (and one simulated email) per logical event.
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional

import structlog

from modules.notifications.models import NotificationEventType

if TYPE_CHECKING:
    from modules.notifications.models import Notification
    from modules.notifications.repositories.interfaces import (
        INotificationRepository,
    )
    from modules.orders.events import OrderCompleted, OrderCreated, OrderExpired

logger = structlog.get_logger(__name__)


class NotificationService:
    """Application service for notification use-cases.

    ``sleep`` stands in for the latency of a real mail gateway; tests
    pass a no-op.
    """

    def __init__(
        self,
        repository: INotificationRepository,
        email_delay_seconds: float = 0.5,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._repo = repository
        self._email_delay = email_delay_seconds
        self._sleep = sleep

    def record_order_created(self, event: OrderCreated) -> Notification:
        notification, _ = self._repo.record(
            event.idempotency_key,
            {
                "order_id": event.aggregate_id,
                "event_type": NotificationEventType.ORDER_CREATED,
                "message": f"Order #{event.aggregate_id} created with total "
                f"${event.total:.2f}",
                "email_sent": False,
            },
        )
        return notification

    def record_order_completed(self, event: OrderCompleted) -> Optional[Notification]:
        """Record the completion and simulate the confirmation email.

        Returns ``None`` when the event was already handled.
        """
        log = logger.bind(
            order_id=str(event.aggregate_id), idempotency_key=event.idempotency_key
        )
        if self._repo.exists(event.idempotency_key):
            log.info("notification.redelivery_skipped")
            return None

        self._sleep(self._email_delay)
        log.info("notification.email_simulated")

        notification, created = self._repo.record(
            event.idempotency_key,
            {
                "order_id": event.aggregate_id,
                "event_type": NotificationEventType.ORDER_COMPLETED,
                "message": f"Order #{event.aggregate_id} completed successfully",
                "email_sent": True,
            },
        )
        return notification if created else None

    def record_order_expired(self, event: OrderExpired) -> Optional[Notification]:
        notification, created = self._repo.record(
            event.idempotency_key,
            {
                "order_id": event.aggregate_id,
                "event_type": NotificationEventType.ORDER_EXPIRED,
                "message": f"Order #{event.aggregate_id} expired after "
                f"{event.expiry_threshold_minutes} minutes",
                "email_sent": False,
            },
        )
        return notification if created else None

    def list_notifications(
        self, filters: Optional[Dict[str, Any]] = None
    ) -> List[Notification]:
        return self._repo.list(filters)
