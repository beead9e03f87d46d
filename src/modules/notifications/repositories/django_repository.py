"""Django ORM implementation of the Notification repository."""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

import structlog
from django.core.exceptions import ValidationError

from modules.notifications.models import Notification
from modules.notifications.repositories.interfaces import INotificationRepository

logger = structlog.get_logger(__name__)


class NotificationDjangoRepository(INotificationRepository):
    def get_by_id(self, id: str) -> Optional[Notification]:
        try:
            return Notification.objects.filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def save(self, entity: Notification) -> Notification:
        entity.save()
        return entity

    def exists(self, idempotency_key: str) -> bool:
        return Notification.objects.filter(idempotency_key=idempotency_key).exists()

    def record(
        self,
        idempotency_key: str,
        defaults: Dict[str, Any],
    ) -> Tuple[Notification, bool]:
        # get_or_create retries the lookup on IntegrityError, so two
        # concurrent deliveries still end with a single row.
        notification, created = Notification.objects.get_or_create(
            idempotency_key=idempotency_key, defaults=defaults
        )
        logger.info(
            "notification.recorded" if created else "notification.duplicate",
            notification_id=str(notification.id),
            order_id=str(notification.order_id),
            event_type=notification.event_type,
        )
        return notification, created

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Notification]:
        queryset = Notification.objects.all()
        if filters:
            queryset = queryset.filter(**filters)
        return list(queryset)
