"""Django ORM implementation of the Order repository.

Satisfies ``IOrderRepository`` using Django's QuerySet API.
Creation is wrapped in ``transaction.atomic()`` so the Order aggregate
(Order + OrderItems) is persisted atomically.

Automated status changes never read-then-write: ``transition_status``
issues a single ``UPDATE ... WHERE status IN (...)`` so a redelivered
event, the expiry sweeper and the payment consumer cannot overwrite
each other's transitions.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction

from modules.orders.constants import ALLOWED_FROM
from modules.orders.models import Order, OrderItem
from modules.orders.repositories.interfaces import IOrderRepository

logger = structlog.get_logger(__name__)


class OrderDjangoRepository(IOrderRepository):
    """Concrete Order repository backed by Django ORM."""

    # ------------------------------------------------------------------
    # Create (aggregate root + children)
    # ------------------------------------------------------------------

    @transaction.atomic
    def create(self, data: Dict[str, Any]) -> Order:
        """Create an order with its items atomically.

        ``data`` keys:
        - ``user_id`` (required)
        - ``items`` (required): list of dicts with ``product_id``,
          ``quantity``, ``unit_price``
        """
        order = Order(user_id=data["user_id"])
        order.save()

        total = Decimal("0.00")
        items = data.get("items", [])
        for item_data in items:
            item = OrderItem(
                order=order,
                product_id=item_data["product_id"],
                quantity=item_data["quantity"],
                unit_price=item_data["unit_price"],
            )
            item.save()
            total += item.subtotal

        order.total = total
        order.save(update_fields=["total"])

        logger.info(
            "order.persisted",
            order_id=str(order.id),
            item_count=len(items),
            total=str(total),
        )
        return order

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get_by_id(self, id: str) -> Optional[Order]:
        """Retrieve an order with eager-loaded items and their products.

        Returns ``None`` for non-existent or invalid IDs.
        """
        try:
            return (
                Order.objects.prefetch_related("items__product")
                .filter(id=id)
                .first()
            )
        except (ValueError, ValidationError):
            return None

    def get_for_update(self, id: str) -> Optional[Order]:
        """Retrieve an order with a row-level lock (SELECT FOR UPDATE).

        Eager-loads items so the caller can iterate over them while the
        row is locked.  Returns ``None`` for non-existent or invalid IDs.
        """
        try:
            return (
                Order.objects.select_for_update()
                .prefetch_related("items")
                .filter(id=id)
                .first()
            )
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Order]:
        """List orders with optional filters and eager-loaded relations.

        Supported filter keys are plain ORM look-ups, e.g.:
        - ``status``
        - ``user_id``
        - ``created_at__range``
        - ``total__gte`` / ``total__lte``
        """
        queryset = Order.objects.prefetch_related("items__product")
        if filters:
            queryset = queryset.filter(**filters)
        return list(queryset)

    def list_stale(self, statuses: Iterable[str], cutoff: datetime) -> List[Order]:
        return list(
            Order.objects.filter(
                status__in=list(statuses), created_at__lte=cutoff
            ).order_by("created_at")
        )

    # ------------------------------------------------------------------
    # Save / Delete
    # ------------------------------------------------------------------

    @transaction.atomic
    def save(self, entity: Order) -> Order:
        """Persist (create or update) an order."""
        entity.save()
        logger.info("order.saved", order_id=str(entity.id), status=entity.status)
        return entity

    @transaction.atomic
    def delete(self, order: Order) -> None:
        """Hard-delete an order; items go with it through CASCADE."""
        order_id = str(order.id)
        order.delete()
        logger.info("order.deleted", order_id=order_id)

    # ------------------------------------------------------------------
    # Status transitions
    # ------------------------------------------------------------------

    def transition_status(self, id: str, target: str, at: datetime) -> bool:
        allowed = ALLOWED_FROM.get(target, frozenset())
        try:
            updated = Order.objects.filter(id=id, status__in=list(allowed)).update(
                status=target, updated_at=at
            )
        except (ValueError, ValidationError):
            return False
        return bool(updated)
