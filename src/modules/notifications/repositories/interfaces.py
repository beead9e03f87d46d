"""Notification repository interface."""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Tuple

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.notifications.models import Notification


class INotificationRepository(IRepository["Notification"]):
    @abstractmethod
    def exists(self, idempotency_key: str) -> bool:
        """Whether a notification was already recorded for this key."""

    @abstractmethod
    def record(
        self,
        idempotency_key: str,
        defaults: Dict[str, Any],
    ) -> Tuple[Notification, bool]:
        """Insert a notification unless one with the same key exists.

        Returns the stored row and whether it was created by this call.
        """

    @abstractmethod
    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Notification]:
        """List notifications with optional filters."""
