"""Order repository interface.

Extends ``IRepository[Order]`` with the operations the order workflows
and background actors need: atomic creation with items, hard deletion,
compare-and-set status transitions and the stale-order scan used by the
expiry sweeper.

The Service Layer depends exclusively on this contract (DIP).
"""

from __future__ import annotations

from abc import abstractmethod
from datetime import datetime
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.orders.models import Order


class IOrderRepository(IRepository["Order"]):
    """Repository contract for the Order aggregate root.

    The Order aggregate includes its OrderItem children.  Mutations
    must be atomic.
    """

    @abstractmethod
    def create(self, data: Dict[str, Any]) -> Order:
        """Create an order with its items atomically.

        ``data`` must include ``user_id`` and ``items`` (list of dicts
        with ``product_id``, ``quantity``, ``unit_price``).
        """

    @abstractmethod
    def get_for_update(self, id: str) -> Optional[Order]:
        """Retrieve an order with a row-level lock."""

    @abstractmethod
    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Order]:
        """List orders with optional filters."""

    @abstractmethod
    def delete(self, order: Order) -> None:
        """Physically remove an order and its items."""

    @abstractmethod
    def transition_status(self, id: str, target: str, at: datetime) -> bool:
        """Move an order to *target* only if its stored status allows it.

        Returns ``False`` when the order is gone or its current status is
        not in ``ALLOWED_FROM[target]``.
        """

    @abstractmethod
    def list_stale(self, statuses: Iterable[str], cutoff: datetime) -> List[Order]:
        """Orders in one of *statuses* created at or before *cutoff*."""
