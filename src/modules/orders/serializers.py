"""Order DRF serializers for API input/output.

The serializer operates at the Interface layer (API Views).
Business logic lives in the Service Layer, which receives
Pydantic DTOs from ``dtos.py``.
"""

from __future__ import annotations

from rest_framework import serializers

from modules.orders.constants import OrderStatus
from modules.orders.models import Order, OrderItem

# ---------------------------------------------------------------------------
# Input Serializers
# ---------------------------------------------------------------------------


class CreateOrderItemSerializer(serializers.Serializer):
    """Validates a single item in an order creation request."""

    product_id = serializers.UUIDField()
    quantity = serializers.IntegerField(min_value=1)


class CreateOrderSerializer(serializers.Serializer):
    """Validates the order creation request payload.

    ``user_id`` is optional; when omitted the order belongs to the
    authenticated user.
    """

    user_id = serializers.IntegerField(required=False)
    items = CreateOrderItemSerializer(many=True, allow_empty=False)


class UpdateOrderStatusSerializer(serializers.Serializer):
    """Accepts any casing; the service validates the value itself."""

    status = serializers.CharField()


# ---------------------------------------------------------------------------
# Output Serializers (Read)
# ---------------------------------------------------------------------------


class OrderItemSerializer(serializers.ModelSerializer):
    """Read serializer for order items with the captured price."""

    product_name = serializers.CharField(source="product.name", read_only=True)

    class Meta:
        model = OrderItem
        fields = [
            "id",
            "product_id",
            "product_name",
            "quantity",
            "unit_price",
            "subtotal",
        ]
        read_only_fields = fields


class OrderSerializer(serializers.ModelSerializer):
    """Read serializer for orders with nested items."""

    items = OrderItemSerializer(many=True, read_only=True)
    status = serializers.ChoiceField(choices=OrderStatus.choices, read_only=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "user_id",
            "status",
            "total",
            "created_at",
            "updated_at",
            "items",
        ]
        read_only_fields = fields
