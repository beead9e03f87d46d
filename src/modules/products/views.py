"""Product API views.

Exposes the ``ProductService`` via HTTP using DRF ViewSets.
Domain exceptions are caught and translated into HTTP status codes.
"""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend
from pydantic import ValidationError as PydanticValidationError
from rest_framework import status
from rest_framework.filters import OrderingFilter, SearchFilter
from rest_framework.mixins import ListModelMixin
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet

from modules.products.dtos import CreateProductDTO, UpdateProductDTO
from modules.products.exceptions import ProductNotFound
from modules.products.filters import ProductFilter
from modules.products.models import Product
from modules.products.repositories.django_repository import ProductDjangoRepository
from modules.products.serializers import ProductSerializer
from modules.products.services import ProductService


class ProductViewSet(ListModelMixin, GenericViewSet):
    """ViewSet for Product operations.

    All ORM access goes through the service/repository layer.
    """

    filterset_class = ProductFilter
    search_fields = ["name", "description"]
    ordering_fields = ["name", "price", "stock_quantity"]
    ordering = ["name"]
    filter_backends = [DjangoFilterBackend, SearchFilter, OrderingFilter]
    queryset = Product.objects.alive()
    serializer_class = ProductSerializer

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = ProductService(repository=ProductDjangoRepository())

    def get_queryset(self):
        return Product.objects.alive()

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/products/{pk}/"""
        try:
            product = self._service.get_product(pk or "")
        except ProductNotFound:
            return Response(
                {"detail": "Product not found."},
                status=status.HTTP_404_NOT_FOUND,
            )
        return Response(ProductSerializer(product).data)

    def create(self, request: Request) -> Response:
        """POST /api/v1/products/"""
        data = request.data
        try:
            dto = CreateProductDTO(
                name=data.get("name", ""),
                price=data.get("price", 0),
                description=data.get("description", ""),
                stock_quantity=data.get("stock_quantity", 0),
            )
        except (PydanticValidationError, ValueError) as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        product = self._service.create_product(dto)
        return Response(
            ProductSerializer(product).data, status=status.HTTP_201_CREATED
        )

    def update(self, request: Request, pk: str | None = None) -> Response:
        """PUT/PATCH /api/v1/products/{pk}/"""
        data = request.data
        try:
            dto = UpdateProductDTO(
                name=data.get("name"),
                price=data.get("price"),
                description=data.get("description"),
                stock_quantity=data.get("stock_quantity"),
            )
        except (PydanticValidationError, ValueError) as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        try:
            product = self._service.update_product(pk or "", dto)
        except ProductNotFound:
            return Response(
                {"detail": "Product not found."},
                status=status.HTTP_404_NOT_FOUND,
            )
        return Response(ProductSerializer(product).data)

    def partial_update(self, request: Request, pk: str | None = None) -> Response:
        return self.update(request, pk)

    def destroy(self, request: Request, pk: str | None = None) -> Response:
        """DELETE /api/v1/products/{pk}/"""
        try:
            self._service.delete_product(pk or "")
        except ProductNotFound:
            return Response(
                {"detail": "Product not found."},
                status=status.HTTP_404_NOT_FOUND,
            )
        return Response(status=status.HTTP_204_NO_CONTENT)
