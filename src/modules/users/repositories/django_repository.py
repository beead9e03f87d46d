"""Django ORM implementation of the User repository.

Backed by the configured ``AUTH_USER_MODEL``.  Follows the Null Object
pattern: look-ups return ``None`` instead of raising, the Service Layer
decides how to translate a missing user.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Optional

import structlog
from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.db import transaction

from modules.users.repositories.interfaces import IUserRepository

if TYPE_CHECKING:
    from django.contrib.auth.models import AbstractBaseUser

logger = structlog.get_logger(__name__)


class UserDjangoRepository(IUserRepository):
    """Concrete User repository backed by Django ORM."""

    def get_by_id(self, id: str) -> Optional[AbstractBaseUser]:
        """Retrieve an active user by primary key.

        Returns ``None`` for non-existent, inactive or malformed IDs.
        """
        User = get_user_model()
        try:
            return User.objects.filter(pk=id, is_active=True).first()
        except (ValueError, TypeError, ValidationError):
            return None

    def exists(self, id: str) -> bool:
        return self.get_by_id(id) is not None

    def list(self) -> List[AbstractBaseUser]:
        return list(get_user_model().objects.filter(is_active=True).order_by("pk"))

    def username_taken(self, username: str, exclude_id: Optional[int] = None) -> bool:
        queryset = get_user_model().objects.filter(username=username)
        if exclude_id is not None:
            queryset = queryset.exclude(pk=exclude_id)
        return queryset.exists()

    def email_taken(self, email: str, exclude_id: Optional[int] = None) -> bool:
        queryset = get_user_model().objects.filter(email__iexact=email, is_active=True)
        if exclude_id is not None:
            queryset = queryset.exclude(pk=exclude_id)
        return queryset.exists()

    @transaction.atomic
    def save(self, entity: AbstractBaseUser) -> AbstractBaseUser:
        entity.save()
        logger.info("user.saved", user_id=str(entity.pk))
        return entity

    @transaction.atomic
    def deactivate(self, id: str) -> bool:
        """Orders keep a protected reference to their user, so accounts
        are switched off rather than removed."""
        user = self.get_by_id(id)
        if user is None:
            return False
        user.is_active = False
        user.save(update_fields=["is_active"])
        logger.info("user.deactivated", user_id=str(id))
        return True
