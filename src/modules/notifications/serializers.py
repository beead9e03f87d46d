"""Notification DRF serializers (read-only)."""

from __future__ import annotations

from rest_framework import serializers

from modules.notifications.models import Notification


class NotificationSerializer(serializers.ModelSerializer):
    class Meta:
        model = Notification
        fields = [
            "id",
            "order_id",
            "event_type",
            "message",
            "email_sent",
            "created_at",
        ]
        read_only_fields = fields
