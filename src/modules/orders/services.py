"""Order service layer (Use Cases).

Orchestrates order creation, deletion and status changes.  The service
defines the unit-of-work boundary for every write.

Two paths change an order's status and they are kept apart on purpose:
- ``advance_status`` is used by background actors.  It only follows
  ``ALLOWED_FROM`` and writes through a compare-and-set.
- ``update_status`` is the administrative override.  It accepts any of
  the four statuses and logs a warning when the move leaves the state
  machine.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any, Dict, List, Optional
from uuid import UUID

import structlog
from django.db import DatabaseError, transaction
from django.utils import timezone

from modules.orders.constants import STATUS_RANK, OrderStatus
from modules.orders.events import OrderCreated
from modules.orders.exceptions import (
    InsufficientStock,
    InvalidOrderStatus,
    InvalidStatusTransition,
    OrderNotFound,
    ProductNotFound,
    UserNotFound,
)
from shared.domain.exceptions import PersistenceFailure, TransportFailure

if TYPE_CHECKING:
    from modules.notifications.services import NotificationService
    from modules.orders.dtos import CreateOrderDTO
    from modules.orders.models import Order
    from modules.orders.repositories.interfaces import IOrderRepository
    from modules.products.repositories.interfaces import IProductRepository
    from modules.users.repositories.interfaces import IUserRepository
    from shared.domain.bus import IEventBus

logger = structlog.get_logger(__name__)


class OrderService:
    """Application service for Order use-cases.

    Receives repositories, the event bus and the notification service
    via constructor injection (DIP).
    """

    def __init__(
        self,
        order_repository: IOrderRepository,
        user_repository: IUserRepository,
        product_repository: IProductRepository,
        event_bus: IEventBus,
        notification_service: Optional[NotificationService] = None,
    ) -> None:
        self._order_repo = order_repository
        self._user_repo = user_repository
        self._product_repo = product_repository
        self._event_bus = event_bus
        self._notifications = notification_service

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def create_order(self, dto: CreateOrderDTO) -> Order:
        """Create a new order and reserve its stock.

        Steps:
        1. Validate the user exists.
        2. For each item (sorted by product PK to avoid deadlocks):
           - Lock the product row (SELECT FOR UPDATE).
           - Decrement stock with a guarded UPDATE.
           - Snapshot the current price.
        3. Persist order + items.
        4. After commit, publish ``OrderCreated`` and record the audit
           notification.  Neither can undo the order.

        Steps 1-3 share one transaction: any failure leaves no stock
        decremented and no order.

        Raises:
            UserNotFound: the user does not exist.
            ProductNotFound: a product does not exist.
            InsufficientStock: a product has less stock than requested.
            PersistenceFailure: the store failed; nothing was written.
        """
        log = logger.bind(user_id=str(dto.user_id))
        log.info("order.creation_started", item_count=len(dto.items))

        try:
            order, created_event = self._reserve_and_persist(dto, log)
        except DatabaseError as exc:
            log.error("order.persistence_failed", error=str(exc))
            raise PersistenceFailure(
                "Store unavailable while creating the order."
            ) from exc

        log.info("order.created", order_id=str(order.id), total=str(order.total))
        self._publish_pending_events(order)
        self._record_creation_notification(created_event)

        order_with_relations = self._order_repo.get_by_id(str(order.id))
        return order_with_relations or order

    @transaction.atomic
    def _reserve_and_persist(
        self, dto: CreateOrderDTO, log
    ) -> tuple[Order, OrderCreated]:
        """Steps 1-3 of ``create_order`` in one transaction."""
        if not self._user_repo.exists(str(dto.user_id)):
            raise UserNotFound(f"User {dto.user_id} not found.")

        sorted_items = sorted(dto.items, key=lambda i: str(i.product_id))
        repo_items = []

        for item_dto in sorted_items:
            product = self._product_repo.get_for_update(str(item_dto.product_id))
            if not product:
                raise ProductNotFound(f"Product {item_dto.product_id} not found.")
            if product.stock_quantity < item_dto.quantity:
                raise InsufficientStock(
                    f"Insufficient stock for product {product.name}: "
                    f"requested {item_dto.quantity}, "
                    f"available {product.stock_quantity}."
                )

            remaining = self._product_repo.decrement_stock(
                str(product.id), item_dto.quantity
            )
            log.info(
                "order.stock_reserved",
                product_id=str(product.id),
                quantity=item_dto.quantity,
                remaining=remaining,
            )

            repo_items.append(
                {
                    "product_id": product.id,
                    "quantity": item_dto.quantity,
                    "unit_price": product.price,
                }
            )

        order = self._order_repo.create(
            {"user_id": dto.user_id, "items": repo_items}
        )
        created_event = OrderCreated(
            aggregate_id=order.id,
            user_id=order.user_id,
            total=order.total,
            created_at=order.created_at,
        )
        order.add_domain_event(created_event)
        return order, created_event

    def delete_order(self, order_id: UUID | str) -> None:
        """Delete an order and give its reserved stock back.

        Stock is restored for every line item, whatever the product's
        current price.  A product that no longer exists is skipped with a
        warning.  No event is published.

        Raises:
            OrderNotFound: order does not exist.
            PersistenceFailure: the store failed; nothing was written.
        """
        try:
            self._delete_order(order_id)
        except DatabaseError as exc:
            logger.error(
                "order.persistence_failed", order_id=str(order_id), error=str(exc)
            )
            raise PersistenceFailure(
                f"Store unavailable while deleting order {order_id}."
            ) from exc

    @transaction.atomic
    def _delete_order(self, order_id: UUID | str) -> None:
        order = self._order_repo.get_for_update(str(order_id))
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")

        log = logger.bind(order_id=str(order_id), status=order.status)

        items = sorted(order.items.all(), key=lambda i: str(i.product_id))
        for item in items:
            restored = self._product_repo.increment_stock(
                str(item.product_id), item.quantity
            )
            if not restored:
                log.warning(
                    "order.stock_restore_skipped",
                    product_id=str(item.product_id),
                    quantity=item.quantity,
                )

        self._order_repo.delete(order)
        log.info("order.deleted_by_request", item_count=len(items))

    def update_status(self, order_id: UUID | str, new_status: str) -> Order:
        """Administrative override: set any recognised status.

        The value is matched case-insensitively.  Moves that the state
        machine would reject are still applied, with a warning.

        Raises:
            OrderNotFound: order does not exist.
            InvalidOrderStatus: *new_status* is not a recognised status.
            PersistenceFailure: the store failed; the status is unchanged.
        """
        try:
            return self._override_status(order_id, new_status)
        except DatabaseError as exc:
            logger.error(
                "order.persistence_failed", order_id=str(order_id), error=str(exc)
            )
            raise PersistenceFailure(
                f"Store unavailable while updating order {order_id}."
            ) from exc

    @transaction.atomic
    def _override_status(self, order_id: UUID | str, new_status: str) -> Order:
        order = self._order_repo.get_for_update(str(order_id))
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")

        normalized = (new_status or "").strip().lower()
        if normalized not in OrderStatus.values:
            raise InvalidOrderStatus(
                f"Invalid status '{new_status}'. "
                f"Valid values: {', '.join(OrderStatus.values)}."
            )

        old_status = order.status
        log = logger.bind(
            order_id=str(order_id),
            current_status=old_status,
            new_status=normalized,
        )

        if normalized != old_status and not order.can_transition_to(normalized):
            log.warning(
                "order.status_override_non_monotonic",
                backward=STATUS_RANK[normalized] < STATUS_RANK[old_status],
            )

        order.status = normalized
        self._order_repo.save(order)
        log.info("order.status_overridden")
        return self._order_repo.get_by_id(str(order_id)) or order

    def advance_status(
        self,
        order_id: UUID | str,
        target: str,
        at: Optional[datetime] = None,
    ) -> datetime:
        """Automated transition guarded by ``ALLOWED_FROM``.

        The write is a compare-and-set on the stored status, so two actors
        racing on the same order cannot both apply a transition.  Returns
        the timestamp written as ``updated_at``.

        Raises:
            OrderNotFound: order does not exist.
            InvalidStatusTransition: the stored status may not move to
                *target*.
        """
        at = at or timezone.now()
        if self._order_repo.transition_status(str(order_id), target, at):
            logger.info(
                "order.status_advanced", order_id=str(order_id), new_status=target
            )
            return at

        order = self._order_repo.get_by_id(str(order_id))
        if order is None:
            raise OrderNotFound(f"Order {order_id} not found.")
        raise InvalidStatusTransition(
            f"Cannot move order {order_id} from {order.status} to {target}."
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_order(self, order_id: str) -> Order:
        """Retrieve a single order by ID.

        Raises:
            OrderNotFound: if the order does not exist.
        """
        order = self._order_repo.get_by_id(order_id)
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")
        return order

    def list_orders(self, filters: Optional[Dict[str, Any]] = None) -> List[Order]:
        """Return a list of orders, optionally filtered."""
        return self._order_repo.list(filters)

    # ------------------------------------------------------------------
    # Post-commit side effects
    # ------------------------------------------------------------------

    def _publish_pending_events(self, order: Order) -> None:
        for event in order.domain_events:
            try:
                self._event_bus.publish(event)
            except TransportFailure as exc:
                # The order stays; the expiry sweeper reclaims it if the
                # payment consumer never hears about it.
                logger.error(
                    "order.event_publish_failed",
                    order_id=str(order.id),
                    event_name=event.event_name,
                    error=str(exc),
                )
        order.clear_domain_events()

    def _record_creation_notification(self, event: OrderCreated) -> None:
        if self._notifications is None:
            return
        try:
            with transaction.atomic():
                self._notifications.record_order_created(event)
        except DatabaseError as exc:
            logger.error(
                "order.creation_notification_failed",
                order_id=str(event.aggregate_id),
                error=str(exc),
            )
