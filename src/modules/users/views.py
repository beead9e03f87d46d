"""User API views.

Exposes the ``UserService`` via HTTP using DRF ViewSets.
Domain exceptions are caught and translated into HTTP status codes.
"""

from __future__ import annotations

from django.contrib.auth import get_user_model
from pydantic import ValidationError as PydanticValidationError
from rest_framework import status
from rest_framework.filters import OrderingFilter, SearchFilter
from rest_framework.mixins import ListModelMixin
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet

from modules.users.dtos import CreateUserDTO, UpdateUserDTO
from modules.users.exceptions import UserAlreadyExists, UserNotFound
from modules.users.repositories import UserDjangoRepository
from modules.users.serializers import UserSerializer
from modules.users.services import UserService


def _invalid(exc: PydanticValidationError) -> Response:
    # Messages only; the rejected input may be a password.
    detail = [f"{'.'.join(map(str, e['loc']))}: {e['msg']}" for e in exc.errors()]
    return Response({"detail": detail}, status=status.HTTP_400_BAD_REQUEST)


class UserViewSet(ListModelMixin, GenericViewSet):
    """ViewSet for User operations.

    Listing reads the active users; every write goes through the
    service/repository layer.
    """

    search_fields = ["username", "email", "first_name", "last_name"]
    ordering_fields = ["username", "email", "date_joined"]
    ordering = ["id"]
    filter_backends = [SearchFilter, OrderingFilter]
    serializer_class = UserSerializer

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = UserService(repository=UserDjangoRepository())

    def get_queryset(self):
        return get_user_model().objects.filter(is_active=True)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/users/{pk}/"""
        try:
            user = self._service.get_user(pk or "")
        except UserNotFound as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_404_NOT_FOUND)
        return Response(UserSerializer(user).data)

    def create(self, request: Request) -> Response:
        """POST /api/v1/users/"""
        data = request.data
        try:
            dto = CreateUserDTO(
                username=data.get("username", ""),
                email=data.get("email", ""),
                password=data.get("password", ""),
                first_name=data.get("first_name", ""),
                last_name=data.get("last_name", ""),
            )
        except PydanticValidationError as exc:
            return _invalid(exc)

        try:
            user = self._service.create_user(dto)
        except UserAlreadyExists as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        return Response(UserSerializer(user).data, status=status.HTTP_201_CREATED)

    def update(self, request: Request, pk: str | None = None) -> Response:
        """PUT/PATCH /api/v1/users/{pk}/"""
        data = request.data
        try:
            dto = UpdateUserDTO(
                username=data.get("username"),
                email=data.get("email"),
                password=data.get("password"),
                first_name=data.get("first_name"),
                last_name=data.get("last_name"),
            )
        except PydanticValidationError as exc:
            return _invalid(exc)

        try:
            user = self._service.update_user(pk or "", dto)
        except UserNotFound as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_404_NOT_FOUND)
        except UserAlreadyExists as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        return Response(UserSerializer(user).data)

    def partial_update(self, request: Request, pk: str | None = None) -> Response:
        return self.update(request, pk)

    def destroy(self, request: Request, pk: str | None = None) -> Response:
        """DELETE /api/v1/users/{pk}/"""
        try:
            self._service.delete_user(pk or "")
        except UserNotFound as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_404_NOT_FOUND)
        return Response(status=status.HTTP_204_NO_CONTENT)
