"""Domain bus interfaces for event publishing and handling."""

from __future__ import annotations

from typing import Generic, Protocol, Type, TypeVar

from shared.domain.events import DomainEvent

E = TypeVar("E", bound=DomainEvent, contravariant=True)


class IEventHandler(Protocol, Generic[E]):
    """Handler interface for domain events."""

    def handle(self, event: E) -> None: ...


class IEventBus(Protocol):
    """Event bus interface.

    ``publish`` is fire-and-forget with at-least-once semantics: it
    returns nothing and raises ``TransportFailure`` when the event could
    not be handed over.
    """

    def publish(self, event: DomainEvent) -> None: ...

    def subscribe(self, event_class: Type[E], handler: IEventHandler[E]) -> None: ...
