"""Unit tests for order DTO validation."""

from __future__ import annotations

from uuid import uuid4

import pytest
from pydantic import ValidationError

from modules.orders.dtos import CreateOrderDTO, CreateOrderItemDTO
from modules.orders.exceptions import InvalidOrderRequest
from shared.domain.exceptions import InvalidInput

pytestmark = pytest.mark.unit


class TestCreateOrderItemDTO:
    def test_valid_item(self):
        dto = CreateOrderItemDTO(product_id=uuid4(), quantity=2)
        assert dto.quantity == 2

    @pytest.mark.parametrize("quantity", [0, -1])
    def test_non_positive_quantity_rejected(self, quantity):
        with pytest.raises(ValidationError, match="Quantity must be at least 1"):
            CreateOrderItemDTO(product_id=uuid4(), quantity=quantity)


class TestCreateOrderDTO:
    def test_valid_order(self):
        dto = CreateOrderDTO(
            user_id=1, items=[CreateOrderItemDTO(product_id=uuid4(), quantity=1)]
        )
        assert dto.user_id == 1
        assert len(dto.items) == 1

    def test_empty_items_rejected(self):
        with pytest.raises(ValidationError, match="at least one item"):
            CreateOrderDTO(user_id=1, items=[])

    def test_repeated_product_lines_are_kept(self):
        product_id = uuid4()
        dto = CreateOrderDTO(
            user_id=1,
            items=[
                CreateOrderItemDTO(product_id=product_id, quantity=1),
                CreateOrderItemDTO(product_id=product_id, quantity=2),
            ],
        )
        assert [item.quantity for item in dto.items] == [1, 2]

    def test_dto_is_frozen(self):
        dto = CreateOrderDTO(
            user_id=1, items=[CreateOrderItemDTO(product_id=uuid4(), quantity=1)]
        )
        with pytest.raises(ValidationError):
            dto.user_id = 2  # type: ignore[misc]


class TestFromRequest:
    def test_builds_nested_items(self):
        product_id = uuid4()
        dto = CreateOrderDTO.from_request(
            {"user_id": 5, "items": [{"product_id": str(product_id), "quantity": 3}]}
        )
        assert dto.items[0].product_id == product_id
        assert dto.items[0].quantity == 3

    def test_invalid_payload_raises_invalid_order_request(self):
        with pytest.raises(InvalidOrderRequest) as exc_info:
            CreateOrderDTO.from_request({"user_id": 5, "items": []})

        assert isinstance(exc_info.value, InvalidInput)
        assert "at least one item" in str(exc_info.value)
