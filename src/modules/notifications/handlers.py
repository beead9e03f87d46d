"""Event handlers for order events consumed by the notifications context."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from modules.orders.events import OrderCompleted, OrderExpired
from shared.domain.bus import IEventHandler

if TYPE_CHECKING:
    from modules.notifications.services import NotificationService

logger = structlog.get_logger(__name__)


class OrderCompletedNotifier(IEventHandler[OrderCompleted]):
    def __init__(self, service: NotificationService) -> None:
        self._service = service

    def handle(self, event: OrderCompleted) -> None:
        logger.info(
            "notifier.order_completed", order_id=str(event.aggregate_id)
        )
        self._service.record_order_completed(event)


class OrderExpiredNotifier(IEventHandler[OrderExpired]):
    def __init__(self, service: NotificationService) -> None:
        self._service = service

    def handle(self, event: OrderExpired) -> None:
        logger.info(
            "notifier.order_expired",
            order_id=str(event.aggregate_id),
            expiry_threshold_minutes=event.expiry_threshold_minutes,
        )
        self._service.record_order_expired(event)
