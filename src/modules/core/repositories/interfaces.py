"""Generic repository interface (Dependency Inversion Principle).

Provides ``IRepository[T]``, the base abstract class that all
domain-specific repository interfaces extend.  Service-layer code
depends on this abstraction, never on Django ORM directly.

Every individual call is atomic against the store; multi-step
sequences are wrapped by the caller in ``transaction.atomic()``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class IRepository(ABC, Generic[T]):
    """Base generic repository contract.

    Type parameter ``T`` represents the entity managed by the
    repository (e.g. ``Order``, ``Product``).
    """

    @abstractmethod
    def get_by_id(self, id: str) -> Optional[T]:
        """Retrieve an entity by its primary key (``None`` when absent)."""

    @abstractmethod
    def save(self, entity: T) -> T:
        """Persist (create or update) an entity."""
