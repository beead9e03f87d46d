"""Django ORM implementation of the Product repository.

Stock mutations are single conditional ``UPDATE`` statements: the check
(``stock_quantity >= quantity``) and the decrement run in the same
statement, so concurrent reservations can never drive stock negative.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import F
from django.utils import timezone

from modules.products.exceptions import InsufficientStock, ProductNotFound
from modules.products.models import Product
from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)


class ProductDjangoRepository(IProductRepository):
    """Concrete Product repository backed by Django ORM."""

    def get_by_id(self, id: str) -> Optional[Product]:
        """Retrieve a live product by primary key.

        Returns ``None`` for non-existent, soft-deleted or invalid IDs.
        """
        try:
            return Product.objects.alive().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_for_update(self, id: str) -> Optional[Product]:
        try:
            return Product.objects.alive().select_for_update().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Product]:
        """List live products with optional Django ORM look-ups.

        Examples of valid filters::

            {"name__icontains": "widget"}
            {"stock_quantity__gt": 0}
        """
        queryset = Product.objects.alive()
        if filters:
            queryset = queryset.filter(**filters)
        return list(queryset)

    @transaction.atomic
    def save(
        self, entity: Product, update_fields: Optional[List[str]] = None
    ) -> Product:
        """Persist (create or update) a product.

        With ``update_fields`` only those columns are written, so a
        concurrent stock move on the same row is not overwritten.
        """
        entity.full_clean(exclude=["id"])
        entity.save(update_fields=update_fields)
        logger.info("product.saved", product_id=str(entity.id))
        return entity

    @transaction.atomic
    def delete(self, id: str) -> bool:
        """Soft-delete a product by ID."""
        product = self.get_by_id(id)
        if not product:
            return False
        product.delete()
        logger.info("product.soft_deleted", product_id=str(id))
        return True

    # ------------------------------------------------------------------
    # Inventory ledger
    # ------------------------------------------------------------------

    @transaction.atomic
    def decrement_stock(self, id: str, quantity: int) -> int:
        updated = (
            Product.objects.alive()
            .filter(id=id, stock_quantity__gte=quantity)
            .update(
                stock_quantity=F("stock_quantity") - quantity,
                updated_at=timezone.now(),
            )
        )
        product = self.get_by_id(id)
        if product is None:
            raise ProductNotFound(f"Product {id} not found.")
        if not updated:
            raise InsufficientStock(
                f"Insufficient stock for product {product.name}: "
                f"requested {quantity}, available {product.stock_quantity}."
            )

        logger.info(
            "product.stock_decremented",
            product_id=str(id),
            quantity=quantity,
            remaining=product.stock_quantity,
        )
        return product.stock_quantity

    @transaction.atomic
    def increment_stock(self, id: str, quantity: int) -> bool:
        try:
            updated = (
                Product.objects.alive()
                .filter(id=id)
                .update(
                    stock_quantity=F("stock_quantity") + quantity,
                    updated_at=timezone.now(),
                )
            )
        except (ValueError, ValidationError):
            return False

        if updated:
            logger.info(
                "product.stock_restored", product_id=str(id), quantity=quantity
            )
        return bool(updated)
