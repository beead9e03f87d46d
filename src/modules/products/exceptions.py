"""Product and inventory exceptions.

Raised by the Service/Repository layers when business rules are violated.
The API layer (Views) translates them into HTTP responses.
"""

from __future__ import annotations

from shared.domain.exceptions import BusinessRuleViolation, NotFound


class ProductNotFound(NotFound):
    """The requested product does not exist or has been soft-deleted."""


class InsufficientStock(BusinessRuleViolation):
    """Current stock is lower than the requested quantity."""
