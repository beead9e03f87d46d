"""Event bus implementations.

- ``InMemoryEventBus``: synchronous in-process dispatch (tests, scripts).
- ``CeleryEventBus``: publishes each event as one JSON task message per
  subscribed consumer task on the Celery broker.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Dict, Iterable, List, Mapping, Optional, Type

import structlog
from django.conf import settings
from kombu.exceptions import OperationalError

from shared.domain.bus import IEventBus, IEventHandler
from shared.domain.events import DomainEvent
from shared.domain.exceptions import TransportFailure

if TYPE_CHECKING:
    from celery import Celery

logger = structlog.get_logger(__name__)


class InMemoryEventBus(IEventBus):
    """Simple in-process event bus."""

    def __init__(self) -> None:
        self._handlers: Dict[Type[DomainEvent], List[IEventHandler]] = {}

    def subscribe(self, event_class: Type[DomainEvent], handler: IEventHandler) -> None:
        handlers = self._handlers.setdefault(event_class, [])
        if handler not in handlers:
            handlers.append(handler)

    def publish(self, event: DomainEvent) -> None:
        for handler in self._handlers.get(type(event), []):
            handler.handle(event)


class CeleryEventBus(IEventBus):
    """Publishes domain events through the Celery broker.

    ``routes`` maps an event type tag (``OrderCreated``...) to the names
    of the tasks that consume it.  Broker errors surface to the caller as
    ``TransportFailure``; the caller decides whether to log or re-raise.
    """

    def __init__(
        self,
        app: Celery,
        routes: Optional[Mapping[str, Iterable[str]]] = None,
    ) -> None:
        self._app = app
        self._routes: Dict[str, List[str]] = {
            name: list(tasks) for name, tasks in (routes or {}).items()
        }

    def subscribe(self, event_class: Type[DomainEvent], handler) -> None:
        """Route ``event_class`` to a Celery task (anything with a ``name``)."""
        task_names = self._routes.setdefault(event_class.__name__, [])
        if handler.name not in task_names:
            task_names.append(handler.name)

    def publish(self, event: DomainEvent) -> None:
        payload = event.to_payload()
        log = logger.bind(
            event_name=event.event_name,
            event_id=str(event.event_id),
            aggregate_id=str(event.aggregate_id),
        )
        task_names = self._routes.get(event.event_name, [])
        if not task_names:
            log.warning("event_bus.no_route")
            return

        options = {}
        request_id = structlog.contextvars.get_contextvars().get("correlation_id")
        if request_id:
            options["headers"] = {"request_id": request_id}

        for task_name in task_names:
            try:
                self._app.send_task(
                    task_name, kwargs={"payload": payload}, **options
                )
            except (OperationalError, ConnectionError) as exc:
                log.error("event_bus.publish_failed", task=task_name, error=str(exc))
                raise TransportFailure(
                    f"Could not publish {event.event_name} to {task_name}."
                ) from exc

        log.info("event_bus.published", tasks=task_names)


def build_event_bus() -> CeleryEventBus:
    """Return the broker-backed bus configured by ``settings.EVENT_ROUTES``."""
    from config.celery import app

    return CeleryEventBus(app, routes=settings.EVENT_ROUTES)
