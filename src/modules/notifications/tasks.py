"""Celery tasks hosting the completion and expiry notifiers."""

import structlog
from celery import shared_task
from django.db import DatabaseError

from modules.notifications.handlers import OrderCompletedNotifier, OrderExpiredNotifier
from modules.orders.events import OrderCompleted, OrderExpired
from modules.orders.factories import build_notification_service
from shared.domain.exceptions import PersistenceFailure

logger = structlog.get_logger(__name__)


@shared_task(
    name="notifications.notify_order_completed",
    acks_late=True,
    reject_on_worker_lost=True,
    autoretry_for=(PersistenceFailure,),
    retry_backoff=True,
    max_retries=5,
)
def notify_order_completed(payload: dict) -> None:
    event = OrderCompleted.from_payload(payload)
    try:
        OrderCompletedNotifier(build_notification_service()).handle(event)
    except DatabaseError as exc:
        logger.error(
            "task.notify_order_completed_failed",
            order_id=str(event.aggregate_id),
            error=str(exc),
        )
        raise PersistenceFailure(str(exc)) from exc


@shared_task(
    name="notifications.notify_order_expired",
    acks_late=True,
    reject_on_worker_lost=True,
    autoretry_for=(PersistenceFailure,),
    retry_backoff=True,
    max_retries=5,
)
def notify_order_expired(payload: dict) -> None:
    event = OrderExpired.from_payload(payload)
    try:
        OrderExpiredNotifier(build_notification_service()).handle(event)
    except DatabaseError as exc:
        logger.error(
            "task.notify_order_expired_failed",
            order_id=str(event.aggregate_id),
            error=str(exc),
        )
        raise PersistenceFailure(str(exc)) from exc
