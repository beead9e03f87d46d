"""User repository interface.

Orders resolve the owning user through ``exists``; the account API
uses the rest.  Authentication stays with ``django.contrib.auth``.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, List, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from django.contrib.auth.models import AbstractBaseUser


class IUserRepository(IRepository["AbstractBaseUser"]):
    """Repository contract for user accounts."""

    @abstractmethod
    def exists(self, id: str) -> bool:
        """Return ``True`` if an active user with ``id`` exists."""

    @abstractmethod
    def list(self) -> List[AbstractBaseUser]:
        """List active users ordered by primary key."""

    @abstractmethod
    def username_taken(self, username: str, exclude_id: Optional[int] = None) -> bool:
        """Return ``True`` if any account, active or not, holds ``username``."""

    @abstractmethod
    def email_taken(self, email: str, exclude_id: Optional[int] = None) -> bool:
        """Return ``True`` if an active account uses ``email`` (case-insensitive)."""

    @abstractmethod
    def deactivate(self, id: str) -> bool:
        """Deactivate an active user; ``False`` if there is none."""
