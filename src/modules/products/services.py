"""Product service layer (Use Cases).

Catalogue maintenance for the products orders are placed against.
Stock moves caused by orders go through the repository's ledger
operations from ``OrderService``, not through this service.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List, Optional

import structlog
from django.db import transaction

from modules.products.exceptions import ProductNotFound
from modules.products.models import Product

if TYPE_CHECKING:
    from modules.products.dtos import CreateProductDTO, UpdateProductDTO
    from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)


class ProductService:
    """Application service for Product use-cases."""

    def __init__(self, repository: IProductRepository) -> None:
        self._repo = repository

    @transaction.atomic
    def create_product(self, dto: CreateProductDTO) -> Product:
        product = Product(
            name=dto.name,
            price=dto.price,
            description=dto.description,
            stock_quantity=dto.stock_quantity,
        )
        product = self._repo.save(product)
        logger.info("product.created", product_id=str(product.id))
        return product

    @transaction.atomic
    def update_product(self, id: str, dto: UpdateProductDTO) -> Product:
        """Update an existing product with the supplied fields.

        A price change never touches existing orders: their line items
        keep the price captured at creation time.  The row is locked and
        only the supplied fields are written, so an order reserving stock
        at the same time keeps its decrement.

        Raises:
            ProductNotFound: if the product does not exist.
        """
        product = self._repo.get_for_update(id)
        if not product:
            raise ProductNotFound(f"Product {id} not found.")

        changed = []
        for field in ("name", "price", "description", "stock_quantity"):
            value = getattr(dto, field)
            if value is not None:
                setattr(product, field, value)
                changed.append(field)

        product = self._repo.save(product, update_fields=changed)
        logger.info("product.updated", product_id=str(id))
        return product

    def list_products(self, filters: Optional[Dict[str, Any]] = None) -> List[Product]:
        return self._repo.list(filters)

    def get_product(self, id: str) -> Product:
        """Raises ``ProductNotFound`` if the product does not exist."""
        product = self._repo.get_by_id(id)
        if not product:
            raise ProductNotFound(f"Product {id} not found.")
        return product

    @transaction.atomic
    def delete_product(self, id: str) -> None:
        if not self._repo.delete(id):
            raise ProductNotFound(f"Product {id} not found.")
