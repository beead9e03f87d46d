"""Order API views.

Exposes the ``OrderService`` via HTTP using DRF ViewSets.
Domain exceptions are caught by kind and translated into HTTP status
codes (NotFound -> 404, InvalidInput and rule violations -> 400, an
unavailable store -> 503); the view never swallows generic exceptions.
"""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import status
from rest_framework.filters import OrderingFilter
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.throttling import BaseThrottle
from rest_framework.viewsets import GenericViewSet

from modules.core.pagination import StandardResultsSetPagination
from modules.orders.dtos import CreateOrderDTO
from modules.orders.factories import build_order_service
from modules.orders.filters import OrderFilter
from modules.orders.models import Order
from modules.orders.serializers import (
    CreateOrderSerializer,
    OrderSerializer,
    UpdateOrderStatusSerializer,
)
from shared.domain.exceptions import (
    BusinessRuleViolation,
    InvalidInput,
    NotFound,
    PersistenceFailure,
)

STORE_UNAVAILABLE = {"detail": "Store temporarily unavailable, retry later."}


class OrderViewSet(GenericViewSet):
    """ViewSet for Order operations.

    Uses ``OrderService`` with injected repositories (DIP).
    Does **not** extend ``ModelViewSet``: all writes go through the
    service/repository layer.
    """

    queryset = Order.objects.all()
    filterset_class = OrderFilter
    ordering_fields = ["created_at", "total", "status"]
    ordering = ["-created_at", "-id"]
    filter_backends = [DjangoFilterBackend, OrderingFilter]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = build_order_service()

    def get_throttles(self) -> list[BaseThrottle]:
        """Per-action throttling scopes."""
        throttle_scope: str | None
        if self.action == "create":
            throttle_scope = "order_creation"
        elif self.action in {"list", "retrieve"}:
            throttle_scope = "order_listing"
        else:
            throttle_scope = None
        self.throttle_scope = throttle_scope
        return super().get_throttles()

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def create(self, request: Request) -> Response:
        """POST /api/v1/orders/"""
        create_serializer = CreateOrderSerializer(data=request.data)
        create_serializer.is_valid(raise_exception=True)

        data = create_serializer.validated_data
        try:
            dto = CreateOrderDTO.from_request(
                {
                    "user_id": data.get("user_id", request.user.pk),
                    "items": [dict(item) for item in data["items"]],
                }
            )
            order = self._service.create_order(dto)
        except NotFound as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_404_NOT_FOUND)
        except (InvalidInput, BusinessRuleViolation) as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        except PersistenceFailure:
            return Response(
                STORE_UNAVAILABLE, status=status.HTTP_503_SERVICE_UNAVAILABLE
            )

        out = OrderSerializer(order)
        return Response(out.data, status=status.HTTP_201_CREATED)

    # ------------------------------------------------------------------
    # List / Retrieve
    # ------------------------------------------------------------------

    def get_queryset(self):
        return Order.objects.prefetch_related("items__product")

    def list(self, request: Request) -> Response:
        """GET /api/v1/orders/

        Filtering (status, user, date range, total range) is handled
        by ``OrderFilter`` via ``filter_backends``.  Ordering is handled
        by ``OrderingFilter``.  Results are paginated.
        """
        queryset = self.filter_queryset(self.get_queryset())

        paginator = StandardResultsSetPagination()
        page = paginator.paginate_queryset(queryset, request)
        serializer = OrderSerializer(page, many=True)
        return paginator.get_paginated_response(serializer.data)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/orders/{pk}/"""
        try:
            order = self._service.get_order(pk or "")
        except NotFound:
            return Response(
                {"detail": "Order not found."},
                status=status.HTTP_404_NOT_FOUND,
            )
        return Response(OrderSerializer(order).data)

    # ------------------------------------------------------------------
    # Status override
    # ------------------------------------------------------------------

    def update(self, request: Request, pk: str | None = None) -> Response:
        """PUT/PATCH /api/v1/orders/{pk}/

        Administrative status override.  Any of the four statuses is
        accepted, in any casing.
        """
        status_serializer = UpdateOrderStatusSerializer(data=request.data)
        status_serializer.is_valid(raise_exception=True)

        try:
            order = self._service.update_status(
                pk or "", status_serializer.validated_data["status"]
            )
        except NotFound:
            return Response(
                {"detail": "Order not found."},
                status=status.HTTP_404_NOT_FOUND,
            )
        except InvalidInput as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        except PersistenceFailure:
            return Response(
                STORE_UNAVAILABLE, status=status.HTTP_503_SERVICE_UNAVAILABLE
            )

        return Response(OrderSerializer(order).data)

    def partial_update(self, request: Request, pk: str | None = None) -> Response:
        return self.update(request, pk)

    # ------------------------------------------------------------------
    # Delete
    # ------------------------------------------------------------------

    def destroy(self, request: Request, pk: str | None = None) -> Response:
        """DELETE /api/v1/orders/{pk}/

        Restores the reserved stock and removes the order.
        """
        try:
            self._service.delete_order(pk or "")
        except NotFound:
            return Response(
                {"detail": "Order not found."},
                status=status.HTTP_404_NOT_FOUND,
            )
        except PersistenceFailure:
            return Response(
                STORE_UNAVAILABLE, status=status.HTTP_503_SERVICE_UNAVAILABLE
            )
        return Response(status=status.HTTP_204_NO_CONTENT)
