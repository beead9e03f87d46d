"""Product model with inventory (stock) control.

Business rules implemented:
- Price must be greater than zero.
- Stock quantity can never be negative (DB constraint + conditional
  decrements in the repository).
- Soft delete via ``deleted_at`` (inherited from SoftDeleteModel).
"""

from __future__ import annotations

from decimal import Decimal

import structlog
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models

from modules.core.models import SoftDeleteModel

logger = structlog.get_logger(__name__)


class Product(SoftDeleteModel):
    """Product aggregate root and inventory ledger entry.

    ``stock_quantity`` is decremented only by order creation and
    incremented only by order deletion restoring reserved quantities.
    """

    name = models.CharField(max_length=100)
    description = models.TextField(blank=True, default="")
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.01"))],
    )
    stock_quantity = models.PositiveIntegerField(default=0)

    class Meta:
        db_table = "products"
        ordering = ["name"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(price__gt=0),
                name="products_price_positive",
            ),
            models.CheckConstraint(
                condition=models.Q(stock_quantity__gte=0),
                name="products_stock_non_negative",
            ),
        ]

    def clean(self) -> None:
        super().clean()
        if self.price is not None and self.price <= 0:
            raise ValidationError({"price": "Price must be greater than zero."})
        if self.stock_quantity is not None and self.stock_quantity < 0:
            raise ValidationError(
                {"stock_quantity": "Stock quantity cannot be negative."}
            )

    def save(self, *args, **kwargs) -> None:
        is_new = self._state.adding
        super().save(*args, **kwargs)
        if is_new:
            logger.info(
                "product_created",
                product_id=str(self.id),
                name=self.name,
                stock=self.stock_quantity,
            )

    def __str__(self) -> str:
        return f"{self.name} (${self.price})"
