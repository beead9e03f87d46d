"""Domain events primitives for the modular monolith.

Events are immutable value records.  They travel through the message
channel as JSON, so every event can be flattened with ``to_payload`` and
rebuilt with ``from_payload``.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, get_type_hints
from uuid import UUID, uuid4


@dataclass(frozen=True)
class DomainEvent:
    """Base domain event (immutable)."""

    aggregate_id: UUID
    event_id: UUID = field(default_factory=uuid4)
    occurred_on: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    event_name: str = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "event_name", self.__class__.__name__)

    @property
    def transition_at(self) -> datetime:
        """Timestamp of the state change the event reports."""
        return self.occurred_on

    @property
    def idempotency_key(self) -> str:
        """Identifies the logical event across redeliveries.

        Derived from the event type, the aggregate and the transition
        timestamp, so two deliveries of the same transition share a key
        even though each carries its own ``event_id``.
        """
        return f"{self.event_name}:{self.aggregate_id}:{self.transition_at.isoformat()}"

    # ------------------------------------------------------------------
    # Wire format
    # ------------------------------------------------------------------

    def to_payload(self) -> Dict[str, Any]:
        return _normalize_for_json(asdict(self))

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> DomainEvent:
        hints = get_type_hints(cls)
        kwargs = {
            f.name: _coerce(hints[f.name], payload[f.name])
            for f in fields(cls)
            if f.init and f.name in payload
        }
        return cls(**kwargs)


class DomainEventMixin:
    """Mixin for aggregate roots that collect domain events in memory."""

    _domain_events: list[DomainEvent]

    def add_domain_event(self, event: DomainEvent) -> None:
        if not hasattr(self, "_domain_events"):
            self._domain_events = []
        self._domain_events.append(event)

    def clear_domain_events(self) -> None:
        if hasattr(self, "_domain_events"):
            self._domain_events.clear()

    @property
    def domain_events(self) -> list[DomainEvent]:
        if not hasattr(self, "_domain_events"):
            self._domain_events = []
        return list(self._domain_events)


def _normalize_for_json(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, list):
        return [_normalize_for_json(item) for item in value]
    if isinstance(value, dict):
        return {key: _normalize_for_json(val) for key, val in value.items()}
    return value


def _coerce(target: Any, value: Any) -> Any:
    if value is None or isinstance(target, str):
        return value
    if target is UUID and not isinstance(value, UUID):
        return UUID(str(value))
    if target is datetime and isinstance(value, str):
        return datetime.fromisoformat(value)
    if target is Decimal and not isinstance(value, Decimal):
        return Decimal(str(value))
    if target is int and not isinstance(value, int):
        return int(value)
    return value
