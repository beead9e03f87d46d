"""Domain events for the Orders bounded context.

Field types are resolved at runtime by ``DomainEvent.from_payload``,
so the imports below must stay outside ``TYPE_CHECKING``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from shared.domain.events import DomainEvent


@dataclass(frozen=True, kw_only=True)
class OrderCreated(DomainEvent):
    """Raised once the order and its stock reservation are committed."""

    user_id: int
    total: Decimal
    created_at: datetime

    @property
    def transition_at(self) -> datetime:
        return self.created_at


@dataclass(frozen=True, kw_only=True)
class OrderCompleted(DomainEvent):
    """Raised when the simulated payment moves an order to completed."""

    user_id: int
    total: Decimal
    completed_at: datetime

    @property
    def transition_at(self) -> datetime:
        return self.completed_at


@dataclass(frozen=True, kw_only=True)
class OrderExpired(DomainEvent):
    """Raised by the expiry sweeper for every order it reclaims.

    ``expiry_threshold_minutes`` records the threshold in force when the
    order was swept, for audit purposes.
    """

    user_id: int
    total: Decimal
    expired_at: datetime
    expiry_threshold_minutes: int

    @property
    def transition_at(self) -> datetime:
        return self.expired_at
