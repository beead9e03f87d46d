"""Product repository interface.

Extends ``IRepository[Product]`` with the inventory-ledger operations
used by the order workflows.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.products.models import Product


class IProductRepository(IRepository["Product"]):
    """Repository contract for the Product aggregate."""

    @abstractmethod
    def save(
        self, entity: Product, update_fields: Optional[List[str]] = None
    ) -> Product:
        """Persist a product, restricted to ``update_fields`` when given."""

    @abstractmethod
    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Product]:
        """List live products with optional filters."""

    @abstractmethod
    def delete(self, id: str) -> bool:
        """Soft-delete a product."""

    @abstractmethod
    def get_for_update(self, id: str) -> Optional[Product]:
        """Retrieve a product with a row-level lock (SELECT FOR UPDATE).

        Used by the order service so the price snapshot and the stock
        decrement read the same row version.  Returns ``None`` if the
        product does not exist.
        """

    @abstractmethod
    def decrement_stock(self, id: str, quantity: int) -> int:
        """Remove ``quantity`` units from stock and return the remainder.

        Raises:
            ProductNotFound: the product does not exist.
            InsufficientStock: current stock is lower than ``quantity``.
        """

    @abstractmethod
    def increment_stock(self, id: str, quantity: int) -> bool:
        """Put ``quantity`` units back; ``False`` if the product is gone."""
