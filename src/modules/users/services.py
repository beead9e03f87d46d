"""User service layer (Use Cases).

Account maintenance for the users who place orders.  Passwords are
hashed with Django's configured hashers and never returned.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List

import structlog
from django.contrib.auth import get_user_model
from django.db import IntegrityError

from modules.users.exceptions import UserAlreadyExists, UserNotFound

if TYPE_CHECKING:
    from django.contrib.auth.models import AbstractBaseUser

    from modules.users.dtos import CreateUserDTO, UpdateUserDTO
    from modules.users.repositories.interfaces import IUserRepository

logger = structlog.get_logger(__name__)


class UserService:
    """Application service for User use-cases."""

    def __init__(self, repository: IUserRepository) -> None:
        self._repo = repository

    def list_users(self) -> List[AbstractBaseUser]:
        return self._repo.list()

    def get_user(self, id: str) -> AbstractBaseUser:
        """Raises ``UserNotFound`` if the user does not exist."""
        user = self._repo.get_by_id(id)
        if user is None:
            raise UserNotFound(f"User with ID {id} not found.")
        return user

    def create_user(self, dto: CreateUserDTO) -> AbstractBaseUser:
        """Register a new account.

        Raises:
            UserAlreadyExists: the username or email is already in use.
        """
        self._ensure_available(dto.username, dto.email)

        user = get_user_model()(
            username=dto.username,
            email=dto.email,
            first_name=dto.first_name,
            last_name=dto.last_name,
        )
        user.set_password(dto.password)
        user = self._save(user)
        logger.info("user.created", user_id=str(user.pk))
        return user

    def update_user(self, id: str, dto: UpdateUserDTO) -> AbstractBaseUser:
        """Update an account with the supplied fields.

        Raises:
            UserNotFound: the user does not exist.
            UserAlreadyExists: the new username or email belongs to
                another account.
        """
        user = self.get_user(id)
        self._ensure_available(dto.username, dto.email, exclude_id=user.pk)

        for field in ("username", "email", "first_name", "last_name"):
            value = getattr(dto, field)
            if value is not None:
                setattr(user, field, value)
        if dto.password is not None:
            user.set_password(dto.password)

        user = self._save(user)
        logger.info(
            "user.updated", user_id=str(user.pk), password_changed=bool(dto.password)
        )
        return user

    def delete_user(self, id: str) -> None:
        """Deactivate an account; its orders are kept.

        Raises:
            UserNotFound: the user does not exist.
        """
        if not self._repo.deactivate(id):
            raise UserNotFound(f"User with ID {id} not found.")

    def _ensure_available(self, username, email, exclude_id=None) -> None:
        if username is not None and self._repo.username_taken(username, exclude_id):
            logger.warning("user.duplicate_username", username=username)
            raise UserAlreadyExists("Username already exists.")
        if email is not None and self._repo.email_taken(email, exclude_id):
            logger.warning("user.duplicate_email")
            raise UserAlreadyExists("Email already exists.")

    def _save(self, user: AbstractBaseUser) -> AbstractBaseUser:
        # A concurrent registration can still win the unique username.
        try:
            return self._repo.save(user)
        except IntegrityError as exc:
            raise UserAlreadyExists("Username already exists.") from exc
