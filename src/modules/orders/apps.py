from django.apps import AppConfig


class OrdersConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "modules.orders"
    label = "orders"

    def ready(self) -> None:
        from modules.orders.config import EventProcessingSettings

        # Fail fast on a bad success rate or negative delay.
        EventProcessingSettings.from_django_settings()
