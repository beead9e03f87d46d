"""Wiring for the order workflows.

Views, Celery tasks and management commands build their collaborators
here so each entry point gets the same Django-backed repositories and
broker-backed event bus.  Tests construct the classes directly.
"""

from __future__ import annotations

import random
import time
from functools import lru_cache
from typing import Optional

from modules.notifications.repositories import NotificationDjangoRepository
from modules.notifications.services import NotificationService
from modules.orders.config import EventProcessingSettings
from modules.orders.consumers import PaymentSimulationConsumer
from modules.orders.repositories import OrderDjangoRepository
from modules.orders.services import OrderService
from modules.orders.sweeper import ExpirySweeper
from modules.products.repositories import ProductDjangoRepository
from modules.users.repositories import UserDjangoRepository
from shared.domain.bus import IEventBus
from shared.infrastructure.bus import build_event_bus


@lru_cache(maxsize=None)
def event_processing_settings() -> EventProcessingSettings:
    return EventProcessingSettings.from_django_settings()


@lru_cache(maxsize=None)
def payment_rng() -> random.Random:
    """One generator per worker process, so a seeded run is reproducible."""
    return event_processing_settings().build_rng()


def build_notification_service() -> NotificationService:
    return NotificationService(
        repository=NotificationDjangoRepository(),
        email_delay_seconds=event_processing_settings().email_simulation_delay_seconds,
        sleep=time.sleep,
    )


def build_order_service(event_bus: Optional[IEventBus] = None) -> OrderService:
    return OrderService(
        order_repository=OrderDjangoRepository(),
        user_repository=UserDjangoRepository(),
        product_repository=ProductDjangoRepository(),
        event_bus=event_bus or build_event_bus(),
        notification_service=build_notification_service(),
    )


def build_payment_consumer() -> PaymentSimulationConsumer:
    event_bus = build_event_bus()
    return PaymentSimulationConsumer(
        order_service=build_order_service(event_bus),
        event_bus=event_bus,
        settings=event_processing_settings(),
        rng=payment_rng(),
    )


def build_expiry_sweeper(threshold_minutes: Optional[int] = None) -> ExpirySweeper:
    event_bus = build_event_bus()
    if threshold_minutes is None:
        threshold_minutes = event_processing_settings().order_expiry_threshold_minutes
    return ExpirySweeper(
        order_service=build_order_service(event_bus),
        order_repository=OrderDjangoRepository(),
        event_bus=event_bus,
        threshold_minutes=threshold_minutes,
    )
