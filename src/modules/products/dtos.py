"""Product DTOs for the Service Layer.

Framework-agnostic data transfer objects using Pydantic v2.
DTOs are immutable (``frozen=True``).
"""

from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, field_validator


class CreateProductDTO(BaseModel):
    """Immutable DTO for product creation requests."""

    model_config = ConfigDict(frozen=True)

    name: str
    price: Decimal
    description: str = ""
    stock_quantity: int = 0

    @field_validator("name")
    @classmethod
    def name_must_not_be_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Name must not be empty.")
        return v.strip()

    @field_validator("price")
    @classmethod
    def price_must_be_positive(cls, v: Decimal) -> Decimal:
        if v <= 0:
            raise ValueError("Price must be greater than zero.")
        return v

    @field_validator("stock_quantity")
    @classmethod
    def stock_must_be_non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("Stock quantity cannot be negative.")
        return v


class UpdateProductDTO(BaseModel):
    """Immutable DTO for product update requests.

    All fields are optional; only supplied fields will be updated.
    """

    model_config = ConfigDict(frozen=True)

    name: str | None = None
    price: Decimal | None = None
    description: str | None = None
    stock_quantity: int | None = None

    @field_validator("price")
    @classmethod
    def price_must_be_positive(cls, v: Decimal | None) -> Decimal | None:
        if v is not None and v <= 0:
            raise ValueError("Price must be greater than zero.")
        return v

    @field_validator("stock_quantity")
    @classmethod
    def stock_must_be_non_negative(cls, v: int | None) -> int | None:
        if v is not None and v < 0:
            raise ValueError("Stock quantity cannot be negative.")
        return v
