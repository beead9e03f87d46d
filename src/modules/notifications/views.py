"""Notification API views.

Notifications are audit records: the API only lists and retrieves them.
"""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend
from rest_framework.filters import OrderingFilter
from rest_framework.mixins import ListModelMixin, RetrieveModelMixin
from rest_framework.viewsets import GenericViewSet

from modules.core.pagination import StandardResultsSetPagination
from modules.notifications.filters import NotificationFilter
from modules.notifications.models import Notification
from modules.notifications.serializers import NotificationSerializer


class NotificationViewSet(ListModelMixin, RetrieveModelMixin, GenericViewSet):
    queryset = Notification.objects.all()
    serializer_class = NotificationSerializer
    pagination_class = StandardResultsSetPagination
    filterset_class = NotificationFilter
    ordering_fields = ["created_at", "event_type"]
    ordering = ["-created_at"]
    filter_backends = [DjangoFilterBackend, OrderingFilter]
