"""Order domain exceptions.

Raised by the Service Layer when business rules are violated.
The API layer (Views) catches these and translates them into
appropriate HTTP responses.
"""

from __future__ import annotations

from modules.products.exceptions import InsufficientStock, ProductNotFound
from modules.users.exceptions import UserNotFound
from shared.domain.exceptions import BusinessRuleViolation, InvalidInput, NotFound

__all__ = [
    "InsufficientStock",
    "InvalidOrderRequest",
    "InvalidOrderStatus",
    "InvalidStatusTransition",
    "OrderNotFound",
    "ProductNotFound",
    "UserNotFound",
]


class OrderNotFound(NotFound):
    """The requested order does not exist."""


class InvalidOrderStatus(InvalidInput):
    """The status value is not one of the four recognised statuses."""


class InvalidOrderRequest(InvalidInput):
    """The creation request has no items or a non-positive quantity."""


class InvalidStatusTransition(BusinessRuleViolation):
    """An automated transition was attempted from a status it may not leave."""
