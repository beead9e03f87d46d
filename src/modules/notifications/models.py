"""Notification audit records.

One row per order event successfully consumed.  Rows are append-only:
nothing updates or deletes them, and ``order_id`` is a plain UUID so
the record outlives the order it describes.
"""

from __future__ import annotations

from django.db import models

from modules.core.models import BaseModel


class NotificationEventType(models.TextChoices):
    ORDER_CREATED = "OrderCreated", "Order created"
    ORDER_COMPLETED = "OrderCompleted", "Order completed"
    ORDER_EXPIRED = "OrderExpired", "Order expired"


class Notification(BaseModel):
    """Audit record written by the notifiers.

    ``idempotency_key`` is derived from the event that produced the row;
    the unique constraint turns a redelivered event into a no-op.
    """

    order_id: models.UUIDField = models.UUIDField(db_index=True)
    event_type: models.CharField = models.CharField(
        max_length=32,
        choices=NotificationEventType.choices,
    )
    message: models.CharField = models.CharField(max_length=255)
    email_sent: models.BooleanField = models.BooleanField(default=False)
    idempotency_key: models.CharField = models.CharField(
        max_length=255,
        unique=True,
        null=True,
        blank=True,
    )

    class Meta:
        db_table = "notifications"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["event_type"], name="notifications_type_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.event_type}: {self.message}"
