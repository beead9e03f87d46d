"""Expiry sweeper.

Periodically reclaims orders stuck in pending or processing for longer
than the configured threshold.  Each order is expired through its own
compare-and-set write and gets its own ``OrderExpired`` event, so one
failed publish never holds back the rest of the batch.

``run_until_stopped`` is the long-lived loop: it owns no thread, waits
on a caller-supplied stop event, and only checks it between ticks.
"""

from __future__ import annotations

import threading
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Callable, List

import structlog
from django.utils import timezone

from modules.orders.constants import ACTIVE_STATES, OrderStatus
from modules.orders.events import OrderExpired
from modules.orders.exceptions import InvalidStatusTransition, OrderNotFound
from shared.domain.exceptions import TransportFailure

if TYPE_CHECKING:
    from modules.orders.repositories.interfaces import IOrderRepository
    from modules.orders.services import OrderService
    from shared.domain.bus import IEventBus

logger = structlog.get_logger(__name__)


class ExpirySweeper:
    def __init__(
        self,
        order_service: OrderService,
        order_repository: IOrderRepository,
        event_bus: IEventBus,
        threshold_minutes: int,
        clock: Callable[[], datetime] = timezone.now,
    ) -> None:
        self._orders = order_service
        self._order_repo = order_repository
        self._event_bus = event_bus
        self._threshold_minutes = threshold_minutes
        self._clock = clock

    def sweep(self) -> List[OrderExpired]:
        """Run one tick and return the events that were published."""
        now = self._clock()
        cutoff = now - timedelta(minutes=self._threshold_minutes)
        log = logger.bind(
            cutoff=cutoff.isoformat(), threshold_minutes=self._threshold_minutes
        )

        candidates = self._order_repo.list_stale(ACTIVE_STATES, cutoff)
        if not candidates:
            log.debug("order_expiry.nothing_to_expire")
            return []

        expired = 0
        published: List[OrderExpired] = []
        for order in candidates:
            try:
                expired_at = self._orders.advance_status(
                    order.id, OrderStatus.EXPIRED, at=now
                )
            except (OrderNotFound, InvalidStatusTransition) as exc:
                log.info(
                    "order_expiry.skipped", order_id=str(order.id), reason=str(exc)
                )
                continue
            expired += 1

            event = OrderExpired(
                aggregate_id=order.id,
                user_id=order.user_id,
                total=order.total,
                expired_at=expired_at,
                expiry_threshold_minutes=self._threshold_minutes,
            )
            try:
                self._event_bus.publish(event)
            except TransportFailure as exc:
                log.error(
                    "order_expiry.publish_failed",
                    order_id=str(order.id),
                    error=str(exc),
                )
                continue
            published.append(event)

        log.info(
            "order_expiry.sweep_finished",
            candidates=len(candidates),
            expired=expired,
            published=len(published),
        )
        return published

    def run_until_stopped(
        self, stop_event: threading.Event, interval_seconds: float
    ) -> None:
        """Tick every *interval_seconds* until *stop_event* is set.

        The first tick runs after one full interval.  Ticks never overlap:
        the next wait starts only once the current sweep has returned.
        """
        log = logger.bind(
            interval_seconds=interval_seconds,
            threshold_minutes=self._threshold_minutes,
        )
        log.info("order_expiry.started")
        while not stop_event.wait(interval_seconds):
            try:
                self.sweep()
            except Exception:
                # A failed tick is retried on the next interval.
                log.exception("order_expiry.tick_failed")
        log.info("order_expiry.stopped")
