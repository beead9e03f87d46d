"""User domain exceptions."""

from __future__ import annotations

from shared.domain.exceptions import BusinessRuleViolation, NotFound


class UserNotFound(NotFound):
    """The user does not exist or has been deactivated."""


class UserAlreadyExists(BusinessRuleViolation):
    """Another account already uses the requested username or email."""
