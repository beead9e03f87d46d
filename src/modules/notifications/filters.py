import django_filters

from modules.notifications.models import Notification, NotificationEventType


class NotificationFilter(django_filters.FilterSet):
    order = django_filters.UUIDFilter(field_name="order_id")
    event_type = django_filters.ChoiceFilter(choices=NotificationEventType.choices)
    email_sent = django_filters.BooleanFilter(field_name="email_sent")

    class Meta:
        model = Notification
        fields = ["order", "event_type", "email_sent"]
