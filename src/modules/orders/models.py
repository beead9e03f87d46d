"""Order and OrderItem models.

Invariants kept here:
- ``OrderItem.unit_price`` is a snapshot of the product price at creation
  time; later price changes never reach existing orders.
- ``OrderItem.subtotal`` is always ``quantity * unit_price``.
- ``Order.total`` is the sum of item subtotals, computed once at creation
  and never recomputed.
- Orders are hard-deleted; the owning user FK uses PROTECT.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models

from modules.core.models import BaseModel
from modules.orders.constants import (
    ALLOWED_FROM,
    TERMINAL_STATES,
    OrderStatus,
)
from shared.domain.events import DomainEventMixin


class Order(DomainEventMixin, BaseModel):
    """Order aggregate root.

    Status changes made by background actors go through
    ``OrderDjangoRepository.transition_status`` (compare-and-set on the
    current status); ``can_transition_to`` is the in-memory view of the
    same table.
    """

    user: models.ForeignKey = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="orders",
    )
    status: models.CharField = models.CharField(
        max_length=20,
        choices=OrderStatus.choices,
        default=OrderStatus.PENDING,
    )
    total: models.DecimalField = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
    )

    class Meta:
        db_table = "orders"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status"], name="orders_status_idx"),
            models.Index(fields=["-created_at"], name="orders_created_idx"),
            models.Index(
                fields=["status", "created_at"], name="orders_status_created_idx"
            ),
        ]

    # ------------------------------------------------------------------
    # State Machine helpers
    # ------------------------------------------------------------------

    @property
    def is_terminal(self) -> bool:
        """Return ``True`` if the order is completed or expired."""
        return self.status in TERMINAL_STATES

    def can_transition_to(self, new_status: str) -> bool:
        """Check whether an automated transition to *new_status* is valid."""
        return self.status in ALLOWED_FROM.get(new_status, frozenset())

    # ------------------------------------------------------------------
    # Display
    # ------------------------------------------------------------------

    def __str__(self) -> str:
        return f"Order #{self.id} ({self.status})"


class OrderItem(BaseModel):
    """Line item linking an Order to a Product.

    If the parent Order is deleted, CASCADE removes items at the
    database level.
    """

    order: models.ForeignKey = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="items",
    )
    product: models.ForeignKey = models.ForeignKey(
        "products.Product",
        on_delete=models.PROTECT,
        related_name="order_items",
    )
    quantity: models.PositiveIntegerField = models.PositiveIntegerField(
        default=1,
        validators=[MinValueValidator(1)],
    )
    unit_price: models.DecimalField = models.DecimalField(
        max_digits=10,
        decimal_places=2,
    )
    subtotal: models.DecimalField = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        editable=False,
    )

    class Meta:
        db_table = "order_items"
        ordering = ["created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gte=1),
                name="order_items_quantity_positive",
            ),
        ]

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def clean(self) -> None:
        super().clean()
        if self.quantity is not None and self.quantity < 1:
            raise ValidationError({"quantity": "Quantity must be at least 1."})

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save(self, *args: Any, **kwargs: Any) -> None:
        if self.unit_price is None:
            unit_price = getattr(self.product, "price", None)
            if unit_price is None:
                raise ValidationError({"unit_price": "Product price is required."})
            self.unit_price = unit_price
        self.subtotal = self.quantity * self.unit_price
        super().save(*args, **kwargs)

    # ------------------------------------------------------------------
    # Display
    # ------------------------------------------------------------------

    def __str__(self) -> str:
        return f"{self.product_id} x{self.quantity} (${self.subtotal})"
