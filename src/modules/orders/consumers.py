"""Payment simulation consumer.

Reacts to ``OrderCreated``.  The order moves to processing, waits for
the simulated gateway latency, then resolves to completed with the
configured probability.  A failed draw leaves the order in processing;
the expiry sweeper reclaims it later.

Redelivery is expected.  The consumer re-enters processing as a no-op
and never publishes ``OrderCompleted`` twice: completion is written
through a compare-and-set and the event is only published by the
delivery that won it.
"""

from __future__ import annotations

import random
import time
from typing import TYPE_CHECKING, Callable

import structlog
from django.db import DatabaseError

from modules.orders.constants import OrderStatus
from modules.orders.events import OrderCompleted, OrderCreated
from modules.orders.exceptions import InvalidStatusTransition, OrderNotFound
from shared.domain.bus import IEventHandler
from shared.domain.exceptions import PersistenceFailure, TransportFailure

if TYPE_CHECKING:
    from modules.orders.config import EventProcessingSettings
    from modules.orders.models import Order
    from modules.orders.services import OrderService
    from shared.domain.bus import IEventBus

logger = structlog.get_logger(__name__)


class PaymentSimulationConsumer(IEventHandler[OrderCreated]):
    def __init__(
        self,
        order_service: OrderService,
        event_bus: IEventBus,
        settings: EventProcessingSettings,
        rng: random.Random,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._orders = order_service
        self._event_bus = event_bus
        self._settings = settings
        self._rng = rng
        self._sleep = sleep

    def handle(self, event: OrderCreated) -> None:
        log = logger.bind(
            order_id=str(event.aggregate_id),
            event_id=str(event.event_id),
            idempotency_key=event.idempotency_key,
        )
        try:
            self._process(event, log)
        except DatabaseError as exc:
            log.error("payment.persistence_failed", error=str(exc))
            raise PersistenceFailure(
                f"Store unavailable while processing order {event.aggregate_id}."
            ) from exc

    def _process(self, event: OrderCreated, log) -> None:
        order = self._load(event, log)
        if order is None:
            return

        if order.status == OrderStatus.PENDING:
            try:
                self._orders.advance_status(order.id, OrderStatus.PROCESSING)
            except OrderNotFound:
                log.warning("payment.order_missing")
                return
            except InvalidStatusTransition:
                # Another actor moved the order first; re-read and decide.
                order = self._load(event, log)
                if order is None:
                    return
        else:
            log.info("payment.reentered_processing")

        log.info(
            "payment.processing",
            delay_seconds=self._settings.payment_processing_delay_seconds,
        )
        self._sleep(self._settings.payment_processing_delay_seconds)

        draw = self._rng.random()
        success_rate = self._settings.order_completion_success_rate
        if draw >= success_rate:
            log.info("payment.failed", draw=draw, success_rate=success_rate)
            return

        try:
            completed_at = self._orders.advance_status(order.id, OrderStatus.COMPLETED)
        except (OrderNotFound, InvalidStatusTransition) as exc:
            log.info("payment.completion_skipped", reason=str(exc))
            return

        completed = OrderCompleted(
            aggregate_id=order.id,
            user_id=order.user_id,
            total=order.total,
            completed_at=completed_at,
        )
        log.info("payment.completed", draw=draw, success_rate=success_rate)
        try:
            self._event_bus.publish(completed)
        except TransportFailure as exc:
            log.error("payment.completion_publish_failed", error=str(exc))

    def _load(self, event: OrderCreated, log) -> Order | None:
        """Return the order if it still needs a payment attempt."""
        try:
            order = self._orders.get_order(str(event.aggregate_id))
        except OrderNotFound:
            log.warning("payment.order_missing")
            return None
        if order.is_terminal:
            log.info("payment.already_resolved", status=order.status)
            return None
        return order
