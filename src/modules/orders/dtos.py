"""Order DTOs for the Service Layer.

Framework-agnostic data transfer objects using Pydantic v2.
These are the contracts between the API layer (DRF Serializers)
and the Service layer.  DTOs are immutable (``frozen=True``).

- ``CreateOrderItemDTO``: input for a single order line item.
- ``CreateOrderDTO``: input for order creation (nested items).
"""

from __future__ import annotations

from typing import Any, List, Mapping
from uuid import UUID

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from modules.orders.exceptions import InvalidOrderRequest


class CreateOrderItemDTO(BaseModel):
    """Immutable DTO for a single order item in a creation request.

    The client sends ``product_id`` and ``quantity``.
    ``unit_price`` is resolved by the Service Layer from the product catalog.
    """

    model_config = ConfigDict(frozen=True)

    product_id: UUID
    quantity: int

    @field_validator("quantity")
    @classmethod
    def quantity_must_be_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Quantity must be at least 1.")
        return v


class CreateOrderDTO(BaseModel):
    """Immutable DTO for order creation requests.

    Validates:
    - ``items`` must contain at least one item.
    - Each item quantity must be positive.

    A product may appear on several lines; each line reserves its own
    quantity.
    """

    model_config = ConfigDict(frozen=True)

    user_id: int
    items: List[CreateOrderItemDTO]

    @field_validator("items")
    @classmethod
    def items_must_not_be_empty(
        cls, v: List[CreateOrderItemDTO]
    ) -> List[CreateOrderItemDTO]:
        if not v:
            raise ValueError("Order must have at least one item.")
        return v

    @classmethod
    def from_request(cls, data: Mapping[str, Any]) -> CreateOrderDTO:
        """Build the DTO from raw request data.

        Raises:
            InvalidOrderRequest: the payload fails validation.
        """
        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            messages = "; ".join(err["msg"] for err in exc.errors())
            raise InvalidOrderRequest(messages) from exc
